from typing import Dict, Iterable, Tuple

from .domain import CatalogEntry, Product
from .ftypes import Maybe
from .compose import ordered_union


class CatalogIndex:
    """
    id товара -> CatalogEntry(товар, категории-предки).

    Повторный upsert того же id только дополняет категории; запись товара
    остаётся от первой успешной загрузки.
    """

    def __init__(self):
        self._entries: Dict[str, CatalogEntry] = {}

    def upsert(self, product_id: str, product: Product, category_ids: Iterable[str]) -> CatalogEntry:
        current = self._entries.get(product_id)
        if current is None:
            entry = CatalogEntry(product=product, categories=ordered_union((), tuple(category_ids)))
        else:
            entry = CatalogEntry(
                product=current.product,
                categories=ordered_union(current.categories, tuple(category_ids)),
            )
        self._entries[product_id] = entry
        return entry

    def get(self, product_id: str) -> Maybe[CatalogEntry]:
        return Maybe.from_optional(self._entries.get(product_id))

    def all(self) -> Tuple[CatalogEntry, ...]:
        """Все записи в порядке добавления"""
        return tuple(self._entries.values())

    def ids(self) -> Tuple[str, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self._entries

    def __repr__(self) -> str:
        return f"CatalogIndex({len(self)} entries)"
