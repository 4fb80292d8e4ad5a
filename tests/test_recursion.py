import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from catalog.domain import CategoryNode, ProductLeaf, MalformedTree
from catalog.recursion import parse_tree, flatten


# Разбор сырого дерева


def test_parse_tree_tags_nodes_by_prefix(nested_raw_tree):
    parsed = parse_tree(nested_raw_tree)
    assert parsed.is_right

    (root,) = parsed.value
    assert isinstance(root, CategoryNode)
    drinks, food = root.children
    juice, cola = drinks.children
    assert isinstance(juice, CategoryNode)
    assert isinstance(cola, ProductLeaf)
    assert [c.id for c in juice.children] == ["p1", "p2"]
    # пустая категория остаётся категорией
    assert isinstance(food.children[1], CategoryNode)
    assert food.children[1].children == ()


def test_parse_tree_accepts_forest(example_raw_tree):
    parsed = parse_tree(example_raw_tree)
    assert parsed.is_right
    assert [n.id for n in parsed.value] == ["s1", "s2"]


def test_parse_tree_custom_prefix():
    raw = {"id": "cat-1", "name": "A", "children": [{"id": "x1", "name": "X"}]}
    parsed = parse_tree(raw, category_prefix="cat-")
    assert isinstance(parsed.value[0], CategoryNode)
    assert isinstance(parsed.value[0].children[0], ProductLeaf)


def test_parse_tree_leaf_children_are_ignored():
    raw = {
        "id": "s1",
        "name": "A",
        "children": [{"id": "p1", "name": "P", "children": [{"id": "p2", "name": "Q"}]}],
    }
    flat = flatten(parse_tree(raw).value)
    assert set(flat.ancestor_paths) == {"p1"}


def test_parse_tree_missing_id_is_malformed():
    raw = {"id": "s1", "name": "A", "children": [{"name": "no id"}]}
    parsed = parse_tree(raw)
    assert parsed.is_left
    assert isinstance(parsed.error, MalformedTree)
    assert parsed.error.path == ("s1",)


def test_parse_tree_bad_children_is_malformed():
    parsed = parse_tree({"id": "s1", "name": "A", "children": "p1"})
    assert parsed.is_left


def test_parse_tree_non_mapping_node_is_malformed():
    parsed = parse_tree([{"id": "s1", "name": "A", "children": [42]}])
    assert parsed.is_left


def test_parse_tree_cycle_is_malformed():
    node = {"id": "s1", "name": "Loop", "children": []}
    node["children"].append(node)

    parsed = parse_tree(node)
    assert parsed.is_left
    assert parsed.error.path == ("s1", "s1")


def test_parse_tree_deep_chain_does_not_hit_recursion_limit():
    depth = 3000
    leaf = {"id": "p-bottom", "name": "Bottom"}
    raw = leaf
    for level in range(depth - 1, -1, -1):
        raw = {"id": f"s{level}", "name": f"Level {level}", "children": [raw]}

    parsed = parse_tree(raw)
    assert parsed.is_right

    flat = flatten(parsed.value)
    path = flat.ancestor_paths["p-bottom"]
    assert len(path) == depth
    assert path[0] == "s0" and path[-1] == f"s{depth - 1}"


# Разворачивание дерева


def test_flatten_ancestor_paths(nested_raw_tree):
    flat = flatten(parse_tree(nested_raw_tree).value)

    assert flat.ancestor_paths == {
        "p1": ("s0", "s1", "s11"),
        "p2": ("s0", "s1", "s11"),
        "p3": ("s0", "s1"),
        "p4": ("s0", "s2"),
    }


def test_flatten_path_excludes_own_id_and_siblings(nested_raw_tree):
    flat = flatten(parse_tree(nested_raw_tree).value)

    for leaf_id, path in flat.ancestor_paths.items():
        assert leaf_id not in path
    # ветка Food не попадает в пути товаров из Drinks
    assert "s2" not in flat.ancestor_paths["p1"]
    assert "s11" not in flat.ancestor_paths["p3"]


def test_flatten_duplicate_leaf_unions_categories(example_raw_tree):
    flat = flatten(parse_tree(example_raw_tree).value)

    assert flat.ancestor_paths["p1"] == ("s1", "s2")
    assert flat.ancestor_paths["p2"] == ("s1",)
    assert flat.leaf_ids == ("p1", "p2")


def test_flatten_duplicate_leaf_under_shared_ancestor_has_no_duplicates():
    raw = {
        "id": "s0",
        "name": "Root",
        "children": [
            {"id": "s1", "name": "A", "children": [{"id": "p1", "name": "P"}]},
            {"id": "s2", "name": "B", "children": [{"id": "p1", "name": "P"}]},
        ],
    }
    flat = flatten(parse_tree(raw).value)
    assert flat.ancestor_paths["p1"] == ("s0", "s1", "s2")


def test_flatten_category_names_only_for_categories(nested_raw_tree):
    flat = flatten(parse_tree(nested_raw_tree).value)

    assert flat.category_names == {
        "s0": "Root",
        "s1": "Drinks",
        "s11": "Juice",
        "s2": "Food",
        "s21": "Empty shelf",
    }


def test_flatten_category_tree_is_pruned(nested_raw_tree):
    flat = flatten(parse_tree(nested_raw_tree).value)
    tree = flat.category_tree

    assert tree.roots == ("s0",)
    assert tree.children_of("s0") == ("s1", "s2")
    assert tree.children_of("s1") == ("s11",)
    assert tree.children_of("s21") == ()
    assert list(tree.walk()) == [
        ("s0", 0),
        ("s1", 1),
        ("s11", 2),
        ("s2", 1),
        ("s21", 2),
    ]


def test_flatten_forest_roots(example_raw_tree):
    flat = flatten(parse_tree(example_raw_tree).value)
    assert flat.category_tree.roots == ("s1", "s2")


def test_flatten_single_leaf_root():
    flat = flatten(ProductLeaf("p1", "Lonely"))
    assert flat.ancestor_paths == {"p1": ()}
    assert flat.category_names == {}


def test_category_tree_walk_survives_crossed_branches():
    raw = [
        {"id": "s1", "name": "A", "children": [{"id": "s2", "name": "B", "children": []}]},
        {"id": "s2", "name": "B", "children": [{"id": "s1", "name": "A", "children": []}]},
    ]
    flat = flatten(parse_tree(raw).value)
    walked = list(flat.category_tree.walk())
    assert walked == [("s1", 0), ("s2", 1), ("s2", 0), ("s1", 1)]
