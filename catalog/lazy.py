from itertools import islice
from typing import Callable, Iterable, Iterator, Tuple, TypeVar

from .domain import CatalogEntry

T = TypeVar("T")


## ленивое разбиение на батчи фиксированного размера (последний может быть короче)
def iter_batches(items: Iterable[T], size: int) -> Iterator[Tuple[T, ...]]:
    if size < 1:
        raise ValueError(f"batch size must be positive, got {size}")
    iterator = iter(items)
    while True:
        batch = tuple(islice(iterator, size))
        if not batch:
            return
        yield batch


## лениво отдаёт записи, прошедшие предикат, не копируя весь индекс
def iter_matching(
    entries: Iterable[CatalogEntry], predicate: Callable[[CatalogEntry], bool]
) -> Iterator[CatalogEntry]:
    for entry in entries:
        if predicate(entry):
            yield entry
