from functools import reduce
from typing import Dict, List, Tuple

from catalog.domain import CatalogEntry
from catalog.names import CategoryNameCache
from catalog.state import CatalogSnapshot


# ============ Сводка по каталогу ============


def catalog_summary(entries: Tuple[CatalogEntry, ...]) -> dict:
    """Сводка по набору записей (весь индекс или результат фильтра)"""
    real = tuple(filter(lambda e: not e.product.is_placeholder, entries))
    prices = tuple(e.product.price for e in real)

    return {
        "total_products": len(entries),
        "in_stock": sum(1 for e in entries if e.product.in_stock),
        "placeholders": len(entries) - len(real),
        "min_price": min(prices) if prices else 0.0,
        "max_price": max(prices) if prices else 0.0,
        "average_price": (sum(prices) / len(prices)) if prices else 0.0,
        "total_volume": reduce(lambda acc, e: acc + e.product.volume, entries, 0.0),
    }


# ============ Отчёт по категориям ============


def category_breakdown(
    entries: Tuple[CatalogEntry, ...], names: CategoryNameCache
) -> List[dict]:
    """
    Для каждой категории: сколько товаров лежит в ней (на любой глубине)
    и сколько из них в наличии. Сортировка по убыванию числа товаров.
    """

    def accumulate(acc: Dict[str, Tuple[int, int]], entry: CatalogEntry) -> dict:
        stocked = 1 if entry.product.in_stock else 0

        def add_category(inner: dict, category_id: str) -> dict:
            count, in_stock = inner.get(category_id, (0, 0))
            return {**inner, category_id: (count + 1, in_stock + stocked)}

        return reduce(add_category, entry.categories, acc)

    counts = reduce(accumulate, entries, {})

    return [
        {
            "category_id": category_id,
            "name": names.resolve_name(category_id),
            "products": count,
            "in_stock": in_stock,
        }
        for category_id, (count, in_stock) in sorted(
            counts.items(), key=lambda item: item[1][0], reverse=True
        )
    ]


# ============ Отчёт о загрузке ============


def load_report(snapshot: CatalogSnapshot) -> dict:
    """Что загрузилось, что не найдено, что упало"""
    return {
        "generation": snapshot.generation,
        "entries": len(snapshot.index),
        "not_found": list(snapshot.not_found),
        "failed": {f.id: f.reason for f in snapshot.failures},
        "partial": snapshot.partial,
    }
