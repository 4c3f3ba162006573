"""Component metadata stored in the ``package.metadata.component`` table."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Mapping, Union

import semver

from cargo_component.requirements import VersionReq, parse_version_req

DEFAULT_WIT_DIR = "wit"

_log = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z][a-z0-9]*|[A-Z][A-Z0-9]*")
_URL_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:.+")


class MetadataError(Exception):
    """Raised when component metadata is missing or malformed."""


class Ownership(Enum):
    """The ownership model for generated types."""

    OWNING = "owning"
    BORROWING = "borrowing"
    BORROWING_DUPLICATE_IF_NECESSARY = "borrowing-duplicate-if-necessary"


def parse_ownership(value: str) -> Ownership:
    """Parse an ownership model name."""
    try:
        return Ownership(value)
    except ValueError:
        raise MetadataError(
            f"unrecognized ownership: `{value}`; "
            "expected `owning`, `borrowing`, or `borrowing-duplicate-if-necessary`"
        ) from None


def _table(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MetadataError(f"expected a table for {what}")
    return value


def _string(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise MetadataError(f"expected a string for {what}")
    return value


def _check_fields(table: Mapping[str, Any], allowed: Iterable[str], what: str) -> None:
    allowed = tuple(allowed)
    for key in table:
        if key not in allowed:
            expected = ", ".join(f"`{name}`" for name in allowed)
            raise MetadataError(
                f"unknown field `{key}` in {what}, expected one of {expected}"
            )


def _version_req(text: Any) -> VersionReq:
    try:
        return parse_version_req(_string(text, "version"))
    except ValueError as error:
        raise MetadataError(str(error)) from error


def _is_kebab(text: str) -> bool:
    return bool(text) and all(_WORD.fullmatch(word) for word in text.split("-"))


@dataclass
class Bindings:
    """Configuration for bindings generation."""

    implementor: str | None = None
    resources: dict[str, str] = field(default_factory=dict)
    ownership: Ownership = Ownership.OWNING
    derives: list[str] = field(default_factory=list)


def parse_bindings(table: Mapping[str, Any]) -> Bindings:
    """Parse the ``bindings`` table; unknown keys are ignored."""
    table = _table(table, "bindings")
    bindings = Bindings()
    if "implementor" in table:
        bindings.implementor = _string(table["implementor"], "implementor")
    if "resources" in table:
        bindings.resources = {
            _string(key, "resource name"): _string(value, "resource implementor")
            for key, value in _table(table["resources"], "resources").items()
        }
    if "ownership" in table:
        bindings.ownership = parse_ownership(table["ownership"])
    if "derives" in table:
        derives = table["derives"]
        if not isinstance(derives, list):
            raise MetadataError("expected an array for derives")
        bindings.derives = [_string(item, "derive") for item in derives]
    return bindings


def parse_package_id(text: str) -> str:
    """Validate a package id of the form ``namespace:name``."""
    namespace, separator, name = _string(text, "package id").partition(":")
    if not separator or not _is_kebab(namespace) or not _is_kebab(name):
        raise MetadataError(
            f"invalid package id `{text}`: "
            "expected the format `namespace:name` with kebab-case parts"
        )
    return text


@dataclass(frozen=True)
class RegistryPackage:
    """A dependency on a package from a component registry."""

    version: VersionReq
    id: str | None = None
    registry: str | None = None


@dataclass(frozen=True)
class LocalDependency:
    """A dependency on a local file or directory."""

    path: Path


Dependency = Union[RegistryPackage, LocalDependency]


def parse_dependency(value: Any) -> Dependency:
    """Parse a dependency given as a version string or a table."""
    if isinstance(value, str):
        return RegistryPackage(version=_version_req(value))
    table = _table(value, "a dependency")
    if "path" in table:
        _check_fields(table, ("path",), "a local dependency")
        return LocalDependency(Path(_string(table["path"], "path")))
    _check_fields(table, ("package", "version", "registry"), "a registry dependency")
    if "version" not in table:
        raise MetadataError("missing field `version`")
    return RegistryPackage(
        version=_version_req(table["version"]),
        id=parse_package_id(table["package"]) if "package" in table else None,
        registry=_string(table["registry"], "registry") if "registry" in table else None,
    )


def _dependencies(value: Any) -> dict[str, Dependency]:
    return {
        parse_package_id(key): parse_dependency(dependency)
        for key, dependency in _table(value, "dependencies").items()
    }


@dataclass
class PackageTarget:
    """A target world taken from a registry package."""

    id: str
    package: RegistryPackage
    world: str | None = None

    def dependencies(self) -> dict[str, Dependency]:
        """The target's dependencies: just the targeted package."""
        return {self.id: self.package}


@dataclass
class LocalTarget:
    """A target world taken from a local WIT document."""

    path: Path | None = None
    world: str | None = None
    wit_dependencies: dict[str, Dependency] = field(default_factory=dict)

    def dependencies(self) -> dict[str, Dependency]:
        """The dependencies of the WIT document."""
        return self.wit_dependencies


Target = Union[PackageTarget, LocalTarget]


def _validate_world(world: str) -> None:
    if not _is_kebab(world.removeprefix("%")):
        raise MetadataError(f"invalid target world name `{world}`")


def _target_from_str(text: str) -> PackageTarget:
    id_part, separator, version = text.partition("@")
    if not separator:
        raise MetadataError("expected target format `<package-id>[/<world>]@<version>`")
    try:
        requirement = parse_version_req(version)
    except ValueError as error:
        raise MetadataError(f"invalid target version `{version}`") from error

    package_id, slash, world = id_part.partition("/")
    if slash:
        _validate_world(world)
    return PackageTarget(
        id=parse_package_id(package_id),
        package=RegistryPackage(version=requirement),
        world=world if slash else None,
    )


def parse_target(value: Any) -> Target:
    """Parse a target given as ``id[/world]@version`` or as a table."""
    if isinstance(value, str):
        return _target_from_str(value)
    if not isinstance(value, Mapping):
        raise MetadataError("invalid target: expected a string or a table")

    _check_fields(
        value,
        ("package", "version", "world", "registry", "path", "dependencies"),
        "a target entry",
    )
    package = value.get("package")
    path = value.get("path")
    world = _string(value["world"], "world") if "world" in value else None
    registry = _string(value["registry"], "registry") if "registry" in value else None
    dependencies = _dependencies(value.get("dependencies", {}))

    if path is not None and package is not None:
        raise MetadataError(
            "cannot specify both `path` and `package` fields in a target entry"
        )

    if package is not None:
        if dependencies:
            raise MetadataError(
                "cannot specify both `dependencies` and `package` fields in a target entry"
            )
        if "version" not in value:
            raise MetadataError("missing field `version`")
        return PackageTarget(
            id=parse_package_id(package),
            package=RegistryPackage(
                version=_version_req(value["version"]), registry=registry
            ),
            world=world,
        )

    for present, name in (("version" in value, "version"), (registry is not None, "registry")):
        if present:
            raise MetadataError(
                f"cannot specify both `{name}` and `path` fields in a target entry"
            )
    return LocalTarget(
        path=Path(_string(path, "path")) if path is not None else None,
        world=world,
        wit_dependencies=dependencies,
    )


@dataclass
class ComponentSection:
    """The ``package.metadata.component`` table."""

    package: str | None = None
    target: Target = field(default_factory=LocalTarget)
    adapter: Path | None = None
    dependencies: dict[str, Dependency] = field(default_factory=dict)
    registries: dict[str, str] = field(default_factory=dict)
    bindings: Bindings = field(default_factory=Bindings)


def _registries(value: Any) -> dict[str, str]:
    registries = {}
    for name, url in _table(value, "registries").items():
        url = _string(url, f"registry `{name}`")
        if not _URL_SCHEME.fullmatch(url):
            raise MetadataError(f"invalid URL `{url}` for registry `{name}`")
        registries[name] = url
    return registries


def parse_component_section(table: Mapping[str, Any]) -> ComponentSection:
    """Parse the component metadata table, rejecting unknown fields."""
    table = _table(table, "component metadata")
    _check_fields(
        table,
        ("package", "target", "adapter", "dependencies", "registries", "bindings"),
        "component metadata",
    )
    section = ComponentSection()
    if "package" in table:
        section.package = parse_package_id(table["package"])
    if "target" in table:
        section.target = parse_target(table["target"])
    if "adapter" in table:
        section.adapter = Path(_string(table["adapter"], "adapter"))
    if "dependencies" in table:
        section.dependencies = _dependencies(table["dependencies"])
    if "registries" in table:
        section.registries = _registries(table["registries"])
    if "bindings" in table:
        section.bindings = parse_bindings(table["bindings"])
    return section


def last_modified_time(path: str | os.PathLike) -> float:
    """Return the modification time of ``path`` as a timestamp."""
    try:
        return os.stat(path).st_mtime
    except OSError as error:
        raise MetadataError(f"failed to read file metadata for `{path}`") from error


@dataclass
class ComponentMetadata:
    """A cargo package's component metadata."""

    name: str
    version: semver.Version
    manifest_path: Path
    modified_at: float
    section: ComponentSection

    def target_path(self) -> Path | None:
        """The local target path, or None for registry targets or a missing default."""
        target = self.section.target
        if isinstance(target, PackageTarget):
            return None
        if target.path is not None:
            return target.path
        path = self.manifest_path.parent / DEFAULT_WIT_DIR
        return path if path.exists() else None


def _rebase(dependencies: dict[str, Dependency], base: Path) -> dict[str, Dependency]:
    return {
        key: replace(dep, path=base / dep.path) if isinstance(dep, LocalDependency) else dep
        for key, dep in dependencies.items()
    }


def component_metadata_from_package(
    package: Mapping[str, Any],
) -> ComponentMetadata | None:
    """Build component metadata from a cargo metadata package entry.

    Returns None if the package has no component table.
    """
    manifest_path = Path(package["manifest_path"])
    _log.debug("searching for component metadata in manifest `%s`", manifest_path)

    metadata = package.get("metadata")
    component = metadata.get("component") if isinstance(metadata, Mapping) else None
    if component is None:
        _log.debug("manifest `%s` has no component metadata", manifest_path)
        return None

    try:
        section = parse_component_section(component)
        version = semver.Version.parse(package["version"])
    except (MetadataError, ValueError, TypeError) as error:
        raise MetadataError(
            f"failed to deserialize component metadata from `{manifest_path}`"
        ) from error

    manifest_dir = manifest_path.parent
    if manifest_dir == manifest_path:
        raise MetadataError(
            f"manifest path `{manifest_path}` has no parent directory"
        )
    modified_at = last_modified_time(manifest_path)

    if isinstance(section.target, LocalTarget):
        target = section.target
        if target.path is not None:
            target.path = manifest_dir / target.path
        target.wit_dependencies = _rebase(target.wit_dependencies, manifest_dir)

    section.dependencies = _rebase(section.dependencies, manifest_dir)
    if section.adapter is not None:
        section.adapter = manifest_dir / section.adapter

    return ComponentMetadata(
        name=package["name"],
        version=version,
        manifest_path=manifest_path,
        modified_at=modified_at,
        section=section,
    )