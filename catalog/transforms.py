from functools import cmp_to_key, partial
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

from .compose import pipe
from .domain import (
    SORT_KEYS,
    SORT_ORDERS,
    CatalogEntry,
    FilterCriteria,
    InvalidCriteria,
    SortCriteria,
)
from .ftypes import Either
from .index import CatalogIndex
from .lazy import iter_matching
from .names import CategoryNameCache

Predicate = Callable[[CatalogEntry], bool]
Comparator = Callable[[CatalogEntry, CatalogEntry], int]


# ============ Проверка критериев ============


def _check_range(name: str, low: Optional[float], high: Optional[float]) -> Optional[InvalidCriteria]:
    if low is not None and high is not None and low > high:
        return InvalidCriteria(name, f"Минимум {low} больше максимума {high}")
    return None


def validate_criteria(
    criteria: FilterCriteria, sort: SortCriteria
) -> Either[InvalidCriteria, Tuple[FilterCriteria, SortCriteria]]:
    """
    Left(InvalidCriteria) при min > max или неизвестном ключе/направлении
    сортировки. Плохая граница не игнорируется молча.
    """
    errors = [
        _check_range("price", criteria.min_price, criteria.max_price),
        _check_range("volume", criteria.min_volume, criteria.max_volume),
    ]
    if sort.key not in SORT_KEYS:
        errors.append(InvalidCriteria("sort.key", f"Неизвестный ключ сортировки: {sort.key!r}"))
    if sort.order not in SORT_ORDERS:
        errors.append(InvalidCriteria("sort.order", f"Неизвестное направление: {sort.order!r}"))

    first_error = next((e for e in errors if e is not None), None)
    if first_error is not None:
        return Either.left(first_error)
    return Either.right((criteria, sort))


# ============ Замыкания-фильтры ============

# Подстроки id и имени сравниваются без учёта регистра


def by_id_substring(text: str) -> Predicate:
    needle = text.lower()
    return lambda e: needle in e.product.id.lower()


def by_name_substring(text: str) -> Predicate:
    needle = text.lower()
    return lambda e: needle in e.product.name.lower()


def _in_range(value: float, low: Optional[float], high: Optional[float]) -> bool:
    return (low is None or value >= low) and (high is None or value <= high)


def by_price_range(low: Optional[float], high: Optional[float]) -> Predicate:
    """Границы включительные, None - без ограничения"""
    return lambda e: _in_range(e.product.price, low, high)


def by_volume_range(low: Optional[float], high: Optional[float]) -> Predicate:
    return lambda e: _in_range(e.product.volume, low, high)


def by_in_stock() -> Predicate:
    return lambda e: e.product.in_stock


def by_categories(selected: FrozenSet[str]) -> Predicate:
    """Хотя бы одна категория-предок входит в выбранные"""
    return lambda e: not selected.isdisjoint(e.categories)


def build_predicate(criteria: FilterCriteria) -> Predicate:
    """Собирает только активные фильтры; без фильтров проходит всё"""
    filters: List[Predicate] = []

    if criteria.id_substring:
        filters.append(by_id_substring(criteria.id_substring))
    if criteria.name_substring:
        filters.append(by_name_substring(criteria.name_substring))
    if criteria.min_price is not None or criteria.max_price is not None:
        filters.append(by_price_range(criteria.min_price, criteria.max_price))
    if criteria.min_volume is not None or criteria.max_volume is not None:
        filters.append(by_volume_range(criteria.min_volume, criteria.max_volume))
    if criteria.in_stock_only:
        filters.append(by_in_stock())
    if criteria.selected_categories:
        filters.append(by_categories(frozenset(criteria.selected_categories)))

    return lambda e: all(f(e) for f in filters)


def filter_entries(entries: Iterable[CatalogEntry], criteria: FilterCriteria) -> Tuple[CatalogEntry, ...]:
    return tuple(iter_matching(entries, build_predicate(criteria)))


# ============ Сортировка ============


def _three_way(a, b) -> int:
    return (a > b) - (a < b)


def category_label(entry: CatalogEntry, names: CategoryNameCache) -> str:
    """Путь категорий для показа; тот же порядок, что и в сортировке"""
    return names.compose_path(entry.categories)


def comparator(key: str, names: Optional[CategoryNameCache] = None) -> Comparator:
    """Трёхзначное сравнение двух записей по ключу сортировки"""
    extractors = {
        "id": lambda e: e.product.id,
        "name": lambda e: e.product.name,
        "price": lambda e: e.product.price,
        "volume": lambda e: e.product.volume,
        "stock": lambda e: e.product.stock,
        "categories": lambda e: category_label(e, names or CategoryNameCache({})),
    }
    extract = extractors[key]
    return lambda a, b: _three_way(extract(a), extract(b))


def sort_entries(
    entries: Iterable[CatalogEntry],
    sort: SortCriteria,
    names: Optional[CategoryNameCache] = None,
) -> Tuple[CatalogEntry, ...]:
    """
    Устойчивая сортировка. Для "desc" инвертируется сравнение, а не результат,
    поэтому равные записи сохраняют исходный порядок в обоих направлениях.
    """
    compare = comparator(sort.key, names)
    if sort.order == "desc":
        ascending = compare
        compare = lambda a, b: -ascending(a, b)
    return tuple(sorted(entries, key=cmp_to_key(compare)))


# ============ Пайплайн ============


def evaluate(
    index: CatalogIndex,
    criteria: FilterCriteria,
    sort: SortCriteria,
    names: Optional[CategoryNameCache] = None,
) -> Either[InvalidCriteria, Tuple[CatalogEntry, ...]]:
    """
    Чистая функция: индекс + критерии -> упорядоченный список записей.
    Индекс не изменяется; повторный вызов с теми же данными даёт тот же результат.
    """
    names = names or CategoryNameCache({})

    def run(valid: Tuple[FilterCriteria, SortCriteria]) -> Tuple[CatalogEntry, ...]:
        valid_filter, valid_sort = valid
        return pipe(
            partial(filter_entries, criteria=valid_filter),
            partial(sort_entries, sort=valid_sort, names=names),
        )(index.all())

    return validate_criteria(criteria, sort).map(run)
