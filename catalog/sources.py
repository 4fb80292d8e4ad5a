import asyncio
import json
import logging
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional, Tuple

from . import config
from .domain import Product

logger = logging.getLogger(__name__)

# Внешние источники для каталога: дерево категорий и товары по одному id.
# Здесь - реализация поверх JSON-файла с имитацией сетевой задержки.


def product_from_dict(raw: Mapping[str, Any]) -> Product:
    """{"id", "name", "extra": {группа: {код: значение}}} -> Product"""
    attributes = raw.get("attributes", raw.get("extra", {})) or {}
    return Product(
        id=str(raw["id"]),
        name=str(raw.get("name") or ""),
        attributes={
            str(group): dict(fields or {}) for group, fields in attributes.items()
        },
    )


def load_seed(path: str = config.DATA_PATH) -> Tuple[Any, Optional[Any], Dict[str, Product]]:
    """Загружает catalog.json: (дерево, большое дерево или None, товары по id)"""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    products = {
        pid: product_from_dict({"id": pid, **raw})
        for pid, raw in data.get("products", {}).items()
    }
    return data.get("tree", []), data.get("large_tree"), products


class JsonCatalogSource:
    """
    Источник дерева и товаров поверх загруженного JSON.

    failing_ids - id, запрос которых завершается исключением
    (для проверки обработки сбоев загрузки).
    """

    def __init__(
        self,
        tree: Any,
        products: Mapping[str, Product],
        large_tree: Optional[Any] = None,
        latency: float = config.SOURCE_LATENCY,
        failing_ids: Iterable[str] = (),
    ):
        self.tree = tree
        self.large_tree = large_tree
        self.products = dict(products)
        self.latency = latency
        self.failing_ids: FrozenSet[str] = frozenset(failing_ids)

    @classmethod
    def from_file(cls, path: str = config.DATA_PATH, **kwargs) -> "JsonCatalogSource":
        tree, large_tree, products = load_seed(path)
        logger.info("Loaded seed %s: %d products", path, len(products))
        return cls(tree, products, large_tree=large_tree, **kwargs)

    async def get_tree(self, large: bool = False) -> Any:
        await asyncio.sleep(self.latency)
        if large and self.large_tree is not None:
            return self.large_tree
        return self.tree

    async def get_product(self, product_id: str) -> Optional[Product]:
        await asyncio.sleep(self.latency)
        if product_id in self.failing_ids:
            raise ConnectionError(f"product service unavailable for {product_id}")
        return self.products.get(product_id)
