import pytest
import semver

from cargo_component.requirements import parse_version_req


def test_bare_version_displays_as_caret():
    assert str(parse_version_req("0.1")) == "^0.1"


@pytest.mark.parametrize(
    "text",
    ["^1.2.3", "=1.2.3", ">=1.0.0", "<2", "~1.2", "1.*", "1.2.*", "^1.0.0-alpha"],
)
def test_display_round_trip(text):
    req = parse_version_req(text)
    assert str(req) == text
    assert parse_version_req(str(req)) == req


def test_star_matches_releases_only():
    req = parse_version_req("*")
    assert str(req) == "*"
    assert req.matches("3.4.5")
    assert not req.matches("3.4.5-beta")


def test_caret_bounds():
    req = parse_version_req("1.2.3")
    assert req.matches("1.2.3")
    assert req.matches("1.9.0")
    assert not req.matches("2.0.0")
    assert not req.matches("1.2.2")


def test_caret_zero_major():
    req = parse_version_req("^0.2.3")
    assert req.matches("0.2.9")
    assert not req.matches("0.3.0")
    exact = parse_version_req("^0.0.3")
    assert exact.matches("0.0.3")
    assert not exact.matches("0.0.4")


def test_caret_requirement_matches_own_version():
    for text in ["1.1.0", "0.1.0", "0.0.1", "2.0.0"]:
        assert parse_version_req(text).matches(semver.Version.parse(text))


def test_tilde_bounds():
    req = parse_version_req("~1.2.3")
    assert req.matches("1.2.7")
    assert not req.matches("1.3.0")


def test_multiple_comparators():
    req = parse_version_req(">=1.2, <1.5")
    assert req.matches("1.4.9")
    assert not req.matches("1.5.0")
    assert not req.matches("1.1.0")


def test_wildcard_matches_within_major():
    req = parse_version_req("1.x")
    assert req.matches("1.8.2")
    assert not req.matches("2.0.0")


def test_prerelease_requires_matching_comparator():
    req = parse_version_req("^1.0.0-alpha")
    assert req.matches("1.0.0-beta")
    assert req.matches("1.0.0")
    assert not parse_version_req("^1.0.0").matches("1.1.0-beta")


@pytest.mark.parametrize("text", ["", "abc", "1.2.3.4", ">=", "01.2", "1,,2"])
def test_rejects_invalid(text):
    with pytest.raises(ValueError):
        parse_version_req(text)