"""Coalesced ``use`` statements for generated Rust source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from cargo_component.naming import to_snake_case, to_upper_camel_case


@dataclass
class _Node:
    children: dict[str, _Node] = field(default_factory=dict)
    tys: set[str] = field(default_factory=set)

    def __str__(self) -> str:
        parts = [f"{segment}::{child}" for segment, child in sorted(self.children.items())]
        parts.extend(sorted(self.tys))
        text = ", ".join(parts)
        return f"{{{text}}}" if len(parts) > 1 else text


class UseTrie:
    """Tracks type uses by path so they can be printed as grouped ``use`` lines."""

    def __init__(self) -> None:
        self._root = _Node()
        self._types: set[str] = set()

    def get(self, path: Iterable[str]) -> list[str] | None:
        """Return the types used at ``path``, or None if the path is unknown."""
        node = self._root
        for segment in path:
            child = node.children.get(segment)
            if child is None:
                return None
            node = child
        return sorted(node.tys)

    def insert(self, path: Iterable[str], ty: str) -> str:
        """Record a use of ``ty`` at ``path`` and return how to refer to it."""
        segments = list(path)
        name = to_upper_camel_case(ty)
        if name in self._types:
            existing = self.get(segments)
            if existing is not None and name in existing:
                return name
            qualified = "::".join(to_snake_case(segment) for segment in segments)
            return f"{qualified}::{name}"

        if any(not segment for segment in segments):
            raise ValueError("path segments must not be empty")

        self._types.add(name)
        node = self._root
        for segment in segments:
            node = node.children.setdefault(to_snake_case(segment), _Node())
        node.tys.add(name)
        return name

    def insert_interface_type(
        self, namespace: str, package: str, interface: str, ty: str
    ) -> str:
        """Use a type that belongs to an interface of a package."""
        return self.insert(["bindings", "exports", namespace, package, interface], ty)

    def is_empty(self) -> bool:
        """Whether no type has been used."""
        return not self._root.children and not self._root.tys

    def __str__(self) -> str:
        if self._root.tys:
            raise ValueError("types cannot be used at the root of the trie")
        return "".join(
            f"use {segment}::{child};\n"
            for segment, child in sorted(self._root.children.items())
        )