"""Generation of a starter Rust source file for a component's target world.

The world to implement is described with the small type model defined
here; the generated source declares a ``Component`` type with
unimplemented bodies for every exported function.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Union

from cargo_component.naming import to_rust_ident
from cargo_component.use_trie import UseTrie


class GeneratorError(Exception):
    """Raised when source cannot be generated for a world."""


class Primitive(Enum):
    """A WIT primitive type, valued by its Rust spelling."""

    BOOL = "bool"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    S8 = "i8"
    S16 = "i16"
    S32 = "i32"
    S64 = "i64"
    FLOAT32 = "f32"
    FLOAT64 = "f64"
    CHAR = "char"
    STRING = "String"


@dataclass(frozen=True)
class ListType:
    """``list<T>``."""

    element: "Type"


@dataclass(frozen=True)
class OptionType:
    """``option<T>``."""

    element: "Type"


@dataclass(frozen=True)
class ResultType:
    """``result<T, E>``; either side may be absent."""

    ok: Optional["Type"] = None
    err: Optional["Type"] = None


@dataclass(frozen=True)
class TupleType:
    """``tuple<...>``."""

    types: tuple = ()


@dataclass(frozen=True)
class FutureType:
    """``future<T>``; the element may be absent."""

    element: Optional["Type"] = None


@dataclass(frozen=True)
class StreamType:
    """``stream<T, E>``; either side may be absent."""

    element: Optional["Type"] = None
    end: Optional["Type"] = None


@dataclass(frozen=True)
class OwnHandle:
    """An owned handle to a resource."""

    resource: "TypeDef"


@dataclass(frozen=True)
class BorrowHandle:
    """A borrowed handle to a resource."""

    resource: "TypeDef"


# Definitions whose structure the generator never prints; they can only be
# referred to by name.
_DEFINITION_KINDS = frozenset({"record", "variant", "flags", "enum", "resource"})

TypeKind = Union[
    Primitive,
    "TypeDef",
    ListType,
    OptionType,
    ResultType,
    TupleType,
    FutureType,
    StreamType,
    OwnHandle,
    BorrowHandle,
    str,
]


@dataclass(eq=False)
class TypeDef:
    """A type definition, named or anonymous.

    ``kind`` is a structural type, another type (an alias), or one of the
    strings ``record``, ``variant``, ``flags``, ``enum`` or ``resource``.
    ``owner`` is the interface defining the type, or None for a world.
    """

    name: str | None
    kind: TypeKind
    owner: Interface | None = None

    def __post_init__(self) -> None:
        if isinstance(self.kind, str) and self.kind not in _DEFINITION_KINDS:
            raise ValueError(f"unknown type definition kind `{self.kind}`")


Type = Union[Primitive, TypeDef]


@dataclass
class Function:
    """A WIT function with named parameters and result types."""

    name: str
    params: list[tuple[str, Type]] = field(default_factory=list)
    results: list[Type] = field(default_factory=list)


@dataclass(eq=False)
class Interface:
    """A WIT interface, optionally belonging to a ``namespace:package``."""

    name: str | None = None
    namespace: str | None = None
    package: str | None = None
    functions: list[Function] = field(default_factory=list)

    @property
    def has_package(self) -> bool:
        return self.namespace is not None and self.package is not None


WorldKey = Union[str, Interface]
WorldItem = Union[Function, Interface, TypeDef]


@dataclass
class World:
    """A WIT world and its exports, in declaration order."""

    name: str
    exports: list[tuple[WorldKey, WorldItem]] = field(default_factory=list)


def _interface_type(trie: UseTrie, interface: Interface, ty: str) -> str:
    if not interface.has_package:
        raise GeneratorError("interface should have a package")
    if interface.name is None:
        raise GeneratorError("unnamed interface")
    return trie.insert_interface_type(
        interface.namespace, interface.package, interface.name, ty
    )


def _export_trait(trie: UseTrie, key: WorldKey) -> str:
    if isinstance(key, str):
        return trie.insert(["bindings", "exports", key], "Guest")
    return _interface_type(trie, key, "Guest")


class SourceGenerator:
    """Generates Rust source implementing the exports of a target world."""

    def __init__(self, id: str, worlds: Iterable[World], format: bool = False) -> None:
        self.id = id
        self.worlds = list(worlds)
        self.format = format

    def generate(self, world: str | None = None) -> str:
        """Return the Rust source for the selected world."""
        selected = self._select_world(world)
        trie = UseTrie()
        impls: list[str] = []
        function_exports: list[Function] = []

        for key, item in selected.exports:
            if isinstance(item, Function):
                function_exports.append(item)
            elif isinstance(item, Interface):
                header = f"\nimpl {_export_trait(trie, key)} for Component {{\n"
                body = "\n".join(self._function(func, trie) for func in item.functions)
                impls.append(f"{header}{body}}}\n")

        if function_exports:
            header = f"\nimpl {trie.insert(['bindings'], 'Guest')} for Component {{\n"
            body = "\n".join(self._function(func, trie) for func in function_exports)
            impls.append(f"{header}{body}}}\n")

        source = (
            "// Required for component bindings generation\n"
            "cargo_component_bindings::generate!();\n"
            "\n"
            f"{trie}{'' if trie.is_empty() else chr(10)}"
            "struct Component;\n"
            + "\n\n".join(impls)
        )

        if self.format:
            source = self._rustfmt(source)
        return source

    def _select_world(self, name: str | None) -> World:
        if name is None:
            if len(self.worlds) == 1:
                return self.worlds[0]
            reason = (
                "package contains no worlds"
                if not self.worlds
                else "multiple worlds in package; one must be selected explicitly"
            )
        else:
            for world in self.worlds:
                if world.name == name:
                    return world
            reason = f"world `{name}` not found in package"
        raise GeneratorError(
            f"failed to select world from target package `{self.id}`"
        ) from GeneratorError(reason)

    @staticmethod
    def _rustfmt(source: str) -> str:
        try:
            result = subprocess.run(
                ["rustfmt", "--edition=2018"],
                input=source,
                stdout=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as error:
            raise GeneratorError("failed to spawn `rustfmt`") from error
        if result.returncode != 0:
            raise GeneratorError(
                "execution of `rustfmt` returned a non-zero exit code "
                f"{result.returncode}"
            )
        return result.stdout

    def _function(self, func: Function, trie: UseTrie) -> str:
        params = ", ".join(
            f"{to_rust_ident(name)}: {self._type(ty, trie)}" for name, ty in func.params
        )
        if not func.results:
            results = ""
        elif len(func.results) == 1:
            results = f" -> {self._type(func.results[0], trie)}"
        else:
            types = ", ".join(self._type(ty, trie) for ty in func.results)
            results = f" -> ({types})"
        return (
            f"    fn {to_rust_ident(func.name)}({params}){results}"
            " {\n        unimplemented!()\n    }\n"
        )

    def _type(self, ty: Type, trie: UseTrie) -> str:
        if isinstance(ty, Primitive):
            return ty.value
        if isinstance(ty, TypeDef):
            return self._type_def(ty, trie)
        raise GeneratorError(f"unsupported type `{ty!r}`")

    def _optional(self, ty: Type | None, trie: UseTrie) -> str:
        return "()" if ty is None else self._type(ty, trie)

    def _type_def(self, ty: TypeDef, trie: UseTrie) -> str:
        if ty.name is not None:
            return self._type_path(ty, trie)

        kind = ty.kind
        if isinstance(kind, str):
            raise GeneratorError(f"unsupported anonymous {kind} type found in WIT package")
        if isinstance(kind, (Primitive, TypeDef)):
            return self._type(kind, trie)
        if isinstance(kind, ListType):
            return f"Vec<{self._type(kind.element, trie)}>"
        if isinstance(kind, OptionType):
            return f"Option<{self._type(kind.element, trie)}>"
        if isinstance(kind, ResultType):
            ok = self._optional(kind.ok, trie)
            err = self._optional(kind.err, trie)
            return f"Result<{ok}, {err}>"
        if isinstance(kind, TupleType):
            return "(" + ", ".join(self._type(t, trie) for t in kind.types) + ")"
        if isinstance(kind, FutureType):
            return f"Future<{self._optional(kind.element, trie)}>"
        if isinstance(kind, StreamType):
            element = self._optional(kind.element, trie)
            end = self._optional(kind.end, trie)
            return f"Stream<{element}, {end}>"
        if isinstance(kind, OwnHandle):
            return self._type_def(kind.resource, trie)
        if isinstance(kind, BorrowHandle):
            return "&" + self._type_def(kind.resource, trie)
        raise GeneratorError(f"unsupported type definition `{kind!r}`")

    @staticmethod
    def _type_path(ty: TypeDef, trie: UseTrie) -> str:
        owner = ty.owner
        if owner is not None and owner.has_package:
            return _interface_type(trie, owner, ty.name)
        return trie.insert(["bindings"], ty.name)