import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from . import config
from .compose import ordered_union
from .domain import CategoryIdTree, CategoryNode, MalformedTree, ProductLeaf, TreeNode
from .ftypes import Either

logger = logging.getLogger(__name__)

# Обход дерева категорий. Глубина каталога заранее не известна, поэтому
# вместо рекурсии Python везде используется явный стек.


@dataclass(frozen=True)
class FlatCatalog:
    ancestor_paths: Dict[str, Tuple[str, ...]] = field(default_factory=dict)
    category_names: Dict[str, str] = field(default_factory=dict)
    category_tree: CategoryIdTree = field(default_factory=CategoryIdTree)

    @property
    def leaf_ids(self) -> Tuple[str, ...]:
        """Уникальные id товаров в порядке обнаружения"""
        return tuple(self.ancestor_paths)


# ============ Разбор сырого дерева ============


def _check_node(raw: Any, path: Tuple[str, ...]) -> Either[MalformedTree, Tuple[str, str, list]]:
    """Проверяет форму одного узла: (id, name, children) или ошибка"""
    if not isinstance(raw, Mapping):
        return Either.left(MalformedTree("Узел дерева должен быть объектом", path))

    node_id = raw.get("id")
    if not isinstance(node_id, str) or not node_id:
        return Either.left(MalformedTree("У узла нет id", path))

    name = raw.get("name", "")
    if name is None:
        name = ""
    if not isinstance(name, str):
        return Either.left(MalformedTree(f"Имя узла {node_id} не строка", path + (node_id,)))

    children = raw.get("children", [])
    if children is None:
        children = []
    if not isinstance(children, (list, tuple)):
        return Either.left(
            MalformedTree(f"children узла {node_id} не список", path + (node_id,))
        )

    return Either.right((node_id, name, list(children)))


def parse_tree(
    raw: Union[Mapping, Sequence[Mapping]],
    category_prefix: str = config.CATEGORY_PREFIX,
) -> Either[MalformedTree, Tuple[TreeNode, ...]]:
    """
    Превращает сырое дерево (dict или список dict) в CategoryNode/ProductLeaf.
    Тип узла определяется по префиксу id только здесь.

    Проверки: форма каждого узла и отсутствие циклов (категория не может
    встречаться среди собственных предков). При любой ошибке возвращается
    Left(MalformedTree) и ничего частичного.
    """
    raw_roots = list(raw) if isinstance(raw, (list, tuple)) else [raw]

    # Прямой обход: (id, name, is_category, индекс родителя)
    frames: List[Tuple[str, str, bool, int]] = []
    stack = [(node, -1, ()) for node in reversed(raw_roots)]

    while stack:
        raw_node, parent_index, ancestry = stack.pop()

        checked = _check_node(raw_node, ancestry)
        if checked.is_left:
            logger.error("Malformed category tree: %s", checked.error.message)
            return checked
        node_id, name, raw_children = checked.value

        is_category = node_id.startswith(category_prefix)
        if is_category and node_id in ancestry:
            error = MalformedTree(f"Цикл в дереве: {node_id}", ancestry + (node_id,))
            logger.error("Malformed category tree: %s", error.message)
            return Either.left(error)

        index = len(frames)
        frames.append((node_id, name, is_category, parent_index))

        # У товара дочерние узлы не обходятся
        if is_category:
            child_ancestry = ancestry + (node_id,)
            stack.extend(
                (child, index, child_ancestry) for child in reversed(raw_children)
            )

    # Сборка снизу вверх: в обратном прямом порядке все потомки узла
    # встречаются раньше него самого
    collected: List[List[TreeNode]] = [[] for _ in frames]
    roots: List[TreeNode] = []
    for index in range(len(frames) - 1, -1, -1):
        node_id, name, is_category, parent_index = frames[index]
        node: TreeNode = (
            CategoryNode(node_id, name, tuple(reversed(collected[index])))
            if is_category
            else ProductLeaf(node_id, name)
        )
        if parent_index >= 0:
            collected[parent_index].append(node)
        else:
            roots.append(node)

    return Either.right(tuple(reversed(roots)))


# ============ Разворачивание дерева ============


def flatten(tree: Union[TreeNode, Sequence[TreeNode]]) -> FlatCatalog:
    """
    Для каждого товара собирает путь из id категорий-предков
    (от внешней к ближайшей, без id самого товара).

    Пример:
      s1 -> (p1, p2), s2 -> (p1)
      ancestor_paths == {"p1": ("s1", "s2"), "p2": ("s1",)}

    Один и тот же товар в нескольких ветках даёт объединение путей.
    Попутно заполняются имена категорий и дерево только из категорий.
    """
    roots = (tree,) if isinstance(tree, (CategoryNode, ProductLeaf)) else tuple(tree)

    ancestor_paths: Dict[str, Tuple[str, ...]] = {}
    category_names: Dict[str, str] = {}
    tree_roots: List[str] = []
    tree_children: Dict[str, List[str]] = {}

    # (узел, путь предков, ближайшая категория-предок)
    stack: List[Tuple[TreeNode, Tuple[str, ...], Optional[str]]] = [
        (node, (), None) for node in reversed(roots)
    ]

    while stack:
        node, path, parent_category = stack.pop()

        if isinstance(node, CategoryNode):
            category_names[node.id] = node.name
            siblings = tree_children.setdefault(parent_category, []) if parent_category else tree_roots
            if node.id not in siblings:
                siblings.append(node.id)
            tree_children.setdefault(node.id, [])

            child_path = path + (node.id,)
            stack.extend(
                (child, child_path, node.id) for child in reversed(node.children)
            )
        else:
            known = ancestor_paths.get(node.id)
            ancestor_paths[node.id] = path if known is None else ordered_union(known, path)

    category_tree = CategoryIdTree(
        roots=tuple(tree_roots),
        children={cid: tuple(kids) for cid, kids in tree_children.items()},
    )
    logger.debug(
        "Flattened tree: %d leaves, %d categories",
        len(ancestor_paths),
        len(category_names),
    )
    return FlatCatalog(ancestor_paths, category_names, category_tree)
