import pytest

from cargo_component.use_trie import UseTrie


def test_new_trie_is_empty():
    trie = UseTrie()
    assert trie.is_empty()
    assert str(trie) == ""


def test_single_use():
    trie = UseTrie()
    assert trie.insert(["bindings"], "guest") == "Guest"
    assert not trie.is_empty()
    assert str(trie).splitlines() == ["use bindings::Guest;"]


def test_types_at_same_path_are_grouped():
    trie = UseTrie()
    trie.insert(["bindings"], "seed")
    trie.insert(["bindings"], "guest")
    assert str(trie) == "use bindings::{Guest, Seed};\n"


def test_same_type_same_path_is_unqualified():
    trie = UseTrie()
    first = trie.insert(["bindings"], "Guest")
    second = trie.insert(["bindings"], "guest")
    assert first == second == "Guest"
    assert trie.get(["bindings"]) == ["Guest"]


def test_conflicting_type_is_qualified():
    trie = UseTrie()
    trie.insert(["bindings", "exports", "foo"], "guest")
    assert trie.insert(["bindings", "exports", "bar"], "guest") == (
        "bindings::exports::bar::Guest"
    )
    assert trie.get(["bindings", "exports", "bar"]) is None


def test_interface_types_nest():
    trie = UseTrie()
    trie.insert_interface_type("foo", "bar", "baz", "guest")
    trie.insert_interface_type("foo", "bar", "baz", "ty")
    qualified = trie.insert_interface_type("bar", "baz", "qux", "guest")
    assert qualified.endswith("::Guest")
    assert qualified.startswith("bindings::exports::bar::baz::qux")
    assert str(trie) == "use bindings::exports::foo::bar::baz::{Guest, Ty};\n"


def test_segments_are_snake_cased():
    trie = UseTrie()
    trie.insert(["Foo-Bar"], "x")
    assert trie.get(["foo_bar"]) == ["X"]
    assert trie.get(["Foo-Bar"]) is None


def test_get_unknown_path():
    trie = UseTrie()
    trie.insert(["bindings"], "guest")
    assert trie.get(["missing"]) is None
    assert trie.get([]) == []


def test_empty_segment_is_rejected():
    trie = UseTrie()
    with pytest.raises(ValueError):
        trie.insert(["bindings", ""], "guest")
    assert trie.is_empty()


def test_root_type_cannot_be_printed():
    trie = UseTrie()
    assert trie.insert([], "guest") == "Guest"
    assert trie.get([]) == ["Guest"]
    with pytest.raises(ValueError, match="root of the trie"):
        str(trie)