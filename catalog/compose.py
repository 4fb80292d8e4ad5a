from functools import reduce
from typing import Iterable, Tuple


def pipe(*funcs):
    """pipe(f, g, h)(x) == h(g(f(x)))"""
    return reduce(lambda f, g: lambda x: g(f(x)), funcs)


def ordered_union(existing: Tuple[str, ...], extra: Iterable[str]) -> Tuple[str, ...]:
    """Объединение без повторов, порядок первого появления сохраняется"""
    return reduce(
        lambda acc, item: acc if item in acc else acc + (item,),
        extra,
        tuple(dict.fromkeys(existing)),
    )
