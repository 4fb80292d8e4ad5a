# catalog/ftypes.py
# Maybe и Either: отсутствие значения и ошибка как обычные значения.
# Maybe - "товар не найден" (мягкий промах), Either - ошибка, которую
# вызывающий код обязан разобрать (сбой загрузки, плохие критерии, битое дерево).

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
L = TypeVar("L")
R = TypeVar("R")


# ============ Maybe ============


@dataclass(frozen=True)
class Maybe(Generic[T]):
    """
    Опциональное значение: Maybe.some(x) или Maybe.nothing().
    """

    value: Optional[T]

    @staticmethod
    def some(value: T) -> "Maybe[T]":
        return Maybe(value)

    @staticmethod
    def nothing() -> "Maybe[T]":
        return Maybe(None)

    @staticmethod
    def from_optional(value: Optional[T]) -> "Maybe[T]":
        """None -> Nothing, всё остальное -> Some"""
        return Maybe(value)

    def is_some(self) -> bool:
        return self.value is not None

    def is_none(self) -> bool:
        return self.value is None

    def map(self, fn: Callable[[T], U]) -> "Maybe[U]":
        return Maybe.some(fn(self.value)) if self.is_some() else Maybe.nothing()

    def bind(self, fn: Callable[[T], "Maybe[U]"]) -> "Maybe[U]":
        return fn(self.value) if self.is_some() else Maybe.nothing()

    def get_or_else(self, default: U) -> T | U:
        return self.value if self.is_some() else default

    def __repr__(self) -> str:
        return f"Some({self.value!r})" if self.is_some() else "Nothing"


# ============ Either ============


@dataclass(frozen=True)
class Either(Generic[L, R]):
    """
    Either[L, R]: Left - ошибка, Right - успешный результат.
    map/bind работают только с Right, Left проходит насквозь без изменений.
    """

    is_left: bool
    value: Union[L, R]

    @staticmethod
    def left(value: L) -> "Either[L, R]":
        return Either(True, value)

    @staticmethod
    def right(value: R) -> "Either[L, R]":
        return Either(False, value)

    @property
    def is_right(self) -> bool:
        return not self.is_left

    @property
    def error(self) -> Optional[L]:
        """Значение ошибки или None для Right"""
        return self.value if self.is_left else None  # type: ignore[return-value]

    def map(self, fn: Callable[[R], U]) -> "Either[L, U]":
        return self if self.is_left else Either.right(fn(self.value))  # type: ignore[return-value]

    def bind(self, fn: Callable[[R], "Either[L, U]"]) -> "Either[L, U]":
        return self if self.is_left else fn(self.value)  # type: ignore[return-value]

    def fold(self, on_left: Callable[[L], U], on_right: Callable[[R], U]) -> U:
        """Сводит обе ветви к одному типу"""
        return on_left(self.value) if self.is_left else on_right(self.value)  # type: ignore[arg-type]

    def get_or_else(self, default: U) -> R | U:
        return default if self.is_left else self.value  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"Left({self.value!r})" if self.is_left else f"Right({self.value!r})"
