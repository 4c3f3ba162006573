"""Cargo-style semantic version requirements."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

import semver


class _Op(Enum):
    EXACT = "="
    GREATER = ">"
    GREATER_EQ = ">="
    LESS = "<"
    LESS_EQ = "<="
    TILDE = "~"
    CARET = "^"
    WILDCARD = "*"


_OPERATORS = (">=", "<=", ">", "<", "=", "~", "^")
_NUMBER = re.compile(r"0|[1-9][0-9]*")
_WILDCARDS = {"*", "x", "X"}


def _pre_key(pre: str) -> semver.Version:
    return semver.Version(0, 0, 0, prerelease=pre or None)


@dataclass(frozen=True)
class _Comparator:
    op: _Op
    major: int
    minor: int | None
    patch: int | None
    pre: str

    def __str__(self) -> str:
        if self.op is _Op.WILDCARD:
            if self.minor is None:
                return f"{self.major}.*"
            return f"{self.major}.{self.minor}.*"
        text = f"{self.op.value}{self.major}"
        if self.minor is not None:
            text += f".{self.minor}"
            if self.patch is not None:
                text += f".{self.patch}"
        if self.pre:
            text += f"-{self.pre}"
        return text

    def _exact(self, v: semver.Version) -> bool:
        return (
            v.major == self.major
            and (self.minor is None or v.minor == self.minor)
            and (self.patch is None or v.patch == self.patch)
            and (v.prerelease or "") == self.pre
        )

    def _greater(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major > self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor > self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch > self.patch
        return _pre_key(v.prerelease or "") > _pre_key(self.pre)

    def _less(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return v.major < self.major
        if self.minor is None:
            return False
        if v.minor != self.minor:
            return v.minor < self.minor
        if self.patch is None:
            return False
        if v.patch != self.patch:
            return v.patch < self.patch
        return _pre_key(v.prerelease or "") < _pre_key(self.pre)

    def _pre_at_least(self, v: semver.Version) -> bool:
        return _pre_key(v.prerelease or "") >= _pre_key(self.pre)

    def _tilde(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is not None and v.minor != self.minor:
            return False
        if self.patch is not None and v.patch != self.patch:
            return v.patch > self.patch
        return self._pre_at_least(v)

    def _caret(self, v: semver.Version) -> bool:
        if v.major != self.major:
            return False
        if self.minor is None:
            return True
        if self.patch is None:
            if self.major > 0:
                return v.minor >= self.minor
            return v.minor == self.minor
        if self.major > 0:
            if v.minor != self.minor:
                return v.minor > self.minor
            if v.patch != self.patch:
                return v.patch > self.patch
        elif self.minor > 0:
            if v.minor != self.minor:
                return False
            if v.patch != self.patch:
                return v.patch > self.patch
        elif v.minor != self.minor or v.patch != self.patch:
            return False
        return self._pre_at_least(v)

    def matches(self, v: semver.Version) -> bool:
        op = self.op
        if op in (_Op.EXACT, _Op.WILDCARD):
            return self._exact(v)
        if op is _Op.GREATER:
            return self._greater(v)
        if op is _Op.GREATER_EQ:
            return self._exact(v) or self._greater(v)
        if op is _Op.LESS:
            return self._less(v)
        if op is _Op.LESS_EQ:
            return self._exact(v) or self._less(v)
        if op is _Op.TILDE:
            return self._tilde(v)
        return self._caret(v)

    def allows_pre_of(self, v: semver.Version) -> bool:
        return (
            bool(self.pre)
            and self.major == v.major
            and self.minor == v.minor
            and self.patch == v.patch
        )


@dataclass(frozen=True)
class VersionReq:
    """A set of comparators that a version must all satisfy."""

    comparators: tuple[_Comparator, ...] = ()

    def matches(self, version: semver.Version | str) -> bool:
        """Return whether ``version`` satisfies every comparator."""
        if isinstance(version, str):
            version = semver.Version.parse(version)
        if not all(c.matches(version) for c in self.comparators):
            return False
        if not version.prerelease:
            return True
        return any(c.allows_pre_of(version) for c in self.comparators)

    def __str__(self) -> str:
        if not self.comparators:
            return "*"
        return ", ".join(str(c) for c in self.comparators)


def _parse_number(part: str, text: str) -> int:
    if not _NUMBER.fullmatch(part):
        raise ValueError(f"invalid version requirement `{text}`")
    return int(part)


def _parse_comparator(item: str, text: str) -> _Comparator | None:
    op: _Op | None = None
    for prefix in _OPERATORS:
        if item.startswith(prefix):
            op = _Op(prefix)
            item = item[len(prefix):].strip()
            break
    if not item:
        raise ValueError(f"invalid version requirement `{text}`")

    item, _, _build = item.partition("+")
    core, dash, pre = item.partition("-")
    if dash and not pre:
        raise ValueError(f"invalid version requirement `{text}`")

    parts = core.split(".")
    if len(parts) > 3 or any(not part for part in parts):
        raise ValueError(f"invalid version requirement `{text}`")

    if parts[0] in _WILDCARDS:
        if op is not None or len(parts) > 1 or pre:
            raise ValueError(f"invalid version requirement `{text}`")
        return None

    numbers: list[int] = [_parse_number(parts[0], text)]
    wildcard = False
    for part in parts[1:]:
        if part in _WILDCARDS:
            wildcard = True
        elif wildcard:
            raise ValueError(f"invalid version requirement `{text}`")
        else:
            numbers.append(_parse_number(part, text))

    if pre and len(numbers) < 3:
        raise ValueError(f"invalid version requirement `{text}`")

    if wildcard:
        if pre:
            raise ValueError(f"invalid version requirement `{text}`")
        if op in (None, _Op.EXACT):
            op = _Op.WILDCARD

    major = numbers[0]
    minor = numbers[1] if len(numbers) > 1 else None
    patch = numbers[2] if len(numbers) > 2 else None
    return _Comparator(op or _Op.CARET, major, minor, patch, pre)


def parse_version_req(text: str) -> VersionReq:
    """Parse a comma-separated version requirement such as ``>=1.2, <2``."""
    items = [item.strip() for item in text.split(",")]
    if any(not item for item in items):
        raise ValueError(f"invalid version requirement `{text}`")

    comparators = []
    for item in items:
        comparator = _parse_comparator(item, text)
        if comparator is not None:
            comparators.append(comparator)
        elif len(items) > 1:
            raise ValueError(f"invalid version requirement `{text}`")
    return VersionReq(tuple(comparators))