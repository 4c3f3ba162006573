import pytest

from cargo_component.naming import to_rust_ident, to_snake_case, to_upper_camel_case


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("keyed-integer", "KeyedInteger"),
        ("seed", "Seed"),
        ("foo", "Foo"),
        ("ty", "Ty"),
        ("guest", "Guest"),
    ],
)
def test_upper_camel_case_of_wit_names(text, expected):
    assert to_upper_camel_case(text) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("hello-world", "hello_world"),
        ("cargo-component-bindings", "cargo_component_bindings"),
        ("KeyedInteger", "keyed_integer"),
    ],
)
def test_snake_case(text, expected):
    assert to_snake_case(text) == expected


def test_acronym_boundary():
    assert to_snake_case("HTTPServer") == "http_server"


def test_separators_are_dropped():
    assert to_snake_case("--foo__bar  baz--") == "foo_bar_baz"


@pytest.mark.parametrize("text", ["hello-world", "KeyedInteger", "a-b-c", "fooBar"])
def test_snake_case_is_idempotent(text):
    once = to_snake_case(text)
    assert to_snake_case(once) == once


@pytest.mark.parametrize("text", ["keyed_integer", "hello_world", "seed"])
def test_camel_and_snake_round_trip(text):
    assert to_snake_case(to_upper_camel_case(text)) == text


@pytest.mark.parametrize("keyword", ["type", "fn", "use", "self", "async", "try"])
def test_rust_keywords_are_escaped(keyword):
    assert to_rust_ident(keyword) == keyword + "_"


def test_rust_ident_of_plain_name():
    assert to_rust_ident("hello-world") == to_snake_case("hello-world")