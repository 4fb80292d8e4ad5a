import math
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple, Union

from . import config


# ============ Дерево категорий ============


@dataclass(frozen=True)
class ProductLeaf:
    id: str
    name: str


@dataclass(frozen=True)
class CategoryNode:
    id: str
    name: str
    children: Tuple["TreeNode", ...] = ()


# Тип узла определяется один раз при разборе дерева (recursion.parse_tree)
TreeNode = Union[CategoryNode, ProductLeaf]


@dataclass(frozen=True)
class CategoryIdTree:
    """
    Дерево только из категорий: корни и список детей для каждой категории.
    Хранится плоско, поэтому обход не упирается в глубину рекурсии.
    """

    roots: Tuple[str, ...] = ()
    children: Dict[str, Tuple[str, ...]] = field(default_factory=dict)

    def children_of(self, category_id: str) -> Tuple[str, ...]:
        return self.children.get(category_id, ())

    def walk(self) -> Iterator[Tuple[str, int]]:
        """Прямой обход: (id категории, глубина)"""
        # одна категория может висеть в нескольких ветках, поэтому по id
        # возможна петля; потомок, уже стоящий на пути от корня, пропускается
        stack = [(root, ()) for root in reversed(self.roots)]
        while stack:
            category_id, path = stack.pop()
            yield category_id, len(path)
            child_path = path + (category_id,)
            stack.extend(
                (child, child_path)
                for child in reversed(self.children_of(category_id))
                if child not in child_path
            )


# ============ Товары ============


def _as_number(value: Any) -> float:
    """Число из атрибута ("12.5", 12, None...). Всё нечисловое -> 0.0"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    attributes: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    def attribute(self, code: str, group: str = config.ATTRIBUTE_GROUP) -> float:
        return _as_number(self.attributes.get(group, {}).get(code))

    @property
    def price(self) -> float:
        return self.attribute(config.PRICE_CODE)

    @property
    def volume(self) -> float:
        return self.attribute(config.VOLUME_CODE)

    @property
    def stock(self) -> float:
        return self.attribute(config.STOCK_CODE)

    @property
    def in_stock(self) -> bool:
        return self.stock > 0

    @property
    def is_placeholder(self) -> bool:
        """Заглушка вместо ненайденного товара (только для отчётов)"""
        return self.name == "" and self.attributes == zeroed_attributes()


def zeroed_attributes() -> Dict[str, Dict[str, float]]:
    return {
        config.ATTRIBUTE_GROUP: {
            config.PRICE_CODE: 0.0,
            config.VOLUME_CODE: 0.0,
            config.STOCK_CODE: 0.0,
        }
    }


def placeholder_product(product_id: str) -> Product:
    """Нейтральная запись для товара, которого нет в источнике"""
    return Product(id=product_id, name="", attributes=zeroed_attributes())


@dataclass(frozen=True)
class CatalogEntry:
    product: Product
    categories: Tuple[str, ...]  # от внешней категории к ближайшей

    @property
    def id(self) -> str:
        return self.product.id


# ============ Критерии ============

SORT_KEYS = ("id", "name", "price", "volume", "stock", "categories")
SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class FilterCriteria:
    id_substring: str = ""
    name_substring: str = ""
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_volume: Optional[float] = None
    max_volume: Optional[float] = None
    in_stock_only: bool = False
    selected_categories: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class SortCriteria:
    key: str = "id"
    order: str = "asc"


# ============ Ошибки (значения для Either.left) ============


@dataclass(frozen=True)
class NotFound:
    id: str

    @property
    def message(self) -> str:
        return f"Товар {self.id} не найден"


@dataclass(frozen=True)
class FetchFailed:
    id: str
    reason: str

    @property
    def message(self) -> str:
        return f"Не удалось загрузить товар {self.id}: {self.reason}"


@dataclass(frozen=True)
class MalformedTree:
    message: str
    path: Tuple[str, ...] = ()  # id узлов от корня до места ошибки


@dataclass(frozen=True)
class InvalidCriteria:
    field: str
    message: str


@dataclass(frozen=True)
class LoadSuperseded:
    generation: int

    @property
    def message(self) -> str:
        return f"Загрузка #{self.generation} отменена или заменена более новой"


@dataclass(frozen=True)
class CatalogNotLoaded:
    message: str = "Каталог ещё не загружен"


LoadError = Union[MalformedTree, LoadSuperseded]
