import sys
import os

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from catalog.names import CategoryNameCache


def test_resolve_name_known_and_unknown():
    names = CategoryNameCache({"s1": "Drinks", "s2": "Food"})

    assert names.resolve_name("s1") == "Drinks"
    # неизвестный id возвращается как есть
    assert names.resolve_name("s404") == "s404"


def test_resolve_name_empty_name_falls_back_to_id():
    names = CategoryNameCache({"s1": ""})
    assert names.resolve_name("s1") == "s1"


def test_resolve_name_is_memoized():
    calls = []

    def lookup(category_id):
        calls.append(category_id)
        return {"s1": "Drinks"}.get(category_id)

    names = CategoryNameCache(lookup)
    assert names.resolve_name("s1") == "Drinks"
    assert names.resolve_name("s1") == "Drinks"
    assert names.resolve_name("s9") == "s9"

    assert calls == ["s1", "s9"]
    assert names.cache_info().hits == 1


def test_cache_clear_forces_new_lookup():
    calls = []
    names = CategoryNameCache(lambda cid: calls.append(cid) or "X")

    names.resolve_name("s1")
    names.cache_clear()
    names.resolve_name("s1")
    assert calls == ["s1", "s1"]


def test_caches_are_per_instance():
    first = CategoryNameCache({"s1": "Old name"})
    second = CategoryNameCache({"s1": "New name"})

    assert first.resolve_name("s1") == "Old name"
    assert second.resolve_name("s1") == "New name"


def test_compose_path_keeps_given_order():
    names = CategoryNameCache({"s1": "Drinks", "s11": "Juice"})

    assert names.compose_path(("s1", "s11")) == "Drinks > Juice"
    assert names.compose_path(("s11", "s1")) == "Juice > Drinks"
    assert names.compose_path(()) == ""


def test_compose_path_with_unknown_ids():
    names = CategoryNameCache({"s1": "Drinks"})
    assert names.compose_path(("s1", "s7")) == "Drinks > s7"


def test_custom_separator():
    names = CategoryNameCache({"a": "A", "b": "B"}, separator=" / ")
    assert names.compose_path(("a", "b")) == "A / B"
