"""Loading cargo workspace metadata and the component packages in it."""

from __future__ import annotations

import json
import logging
import os
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Mapping

import semver

from cargo_component.config import CargoPackageSpec
from cargo_component.metadata import ComponentMetadata, component_metadata_from_package
from cargo_component.requirements import parse_version_req

BINDINGS_CRATE_NAME = "cargo-component-bindings"

_WASM_MAGIC = b"\0asm"
_MODULE_VERSION = b"\x01\x00\x00\x00"

_log = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Raised when workspace metadata cannot be loaded or matched."""


@dataclass
class PackageComponentMetadata:
    """A cargo package paired with its component metadata, if any."""

    package: Mapping[str, Any]
    metadata: ComponentMetadata | None = None


def is_wasm_target(target: str) -> bool:
    """Whether ``target`` is a WebAssembly target triple."""
    return target in ("wasm32-wasi", "wasm32-unknown-unknown")


def is_wasm_module(path: str | os.PathLike) -> bool:
    """Whether the WebAssembly file at ``path`` is a core module.

    Returns False for components; raises if the file is not WebAssembly.
    """
    try:
        with open(path, "rb") as file:
            header = file.read(8)
    except OSError as error:
        raise WorkspaceError(f"failed to open `{path}` for read") from error

    header = header.ljust(8, b"\0")
    if header[:4] != _WASM_MAGIC:
        raise WorkspaceError(f"expected `{path}` to be a WebAssembly module")
    return header[4:] == _MODULE_VERSION


def _warn(message: str) -> None:
    print(f"warning: {message}", file=sys.stderr)


def load_metadata(
    manifest_path: str | os.PathLike | None = None,
    ignore_version_mismatch: bool = False,
    version: str | semver.Version | None = None,
) -> dict[str, Any]:
    """Run ``cargo metadata`` and return the parsed workspace metadata.

    A warning is printed for each dependency on the bindings crate whose
    requirement does not match ``version``; no check is made if
    ``version`` is None.
    """
    command = [
        os.environ.get("CARGO", "cargo"),
        "metadata",
        "--format-version",
        "1",
        "--no-deps",
    ]
    if manifest_path is not None:
        _log.debug("loading metadata from manifest `%s`", manifest_path)
        command += ["--manifest-path", str(manifest_path)]
    else:
        _log.debug("loading metadata from current directory")

    try:
        result = subprocess.run(command, capture_output=True, text=True, check=False)
    except OSError as error:
        raise WorkspaceError("failed to load cargo metadata") from error
    if result.returncode != 0:
        raise WorkspaceError(f"failed to load cargo metadata: {result.stderr.strip()}")
    try:
        metadata = json.loads(result.stdout)
    except json.JSONDecodeError as error:
        raise WorkspaceError("failed to load cargo metadata") from error

    if version is None or ignore_version_mismatch:
        return metadata
    if isinstance(version, str):
        version = semver.Version.parse(version)

    for package in metadata.get("packages", []):
        for dependency in package.get("dependencies", []):
            name = dependency.get("rename") or dependency.get("name")
            if name != BINDINGS_CRATE_NAME:
                continue
            try:
                requirement = parse_version_req(dependency.get("req", "*"))
            except ValueError as error:
                raise WorkspaceError(str(error)) from error
            if requirement.matches(version):
                continue
            _warn(
                f"mismatched version of `{BINDINGS_CRATE_NAME}` detected in manifest "
                f"`{package.get('manifest_path')}`: please update the version in the "
                f"manifest to {version}"
            )

    return metadata


def _workspace_packages(metadata: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    members = set(metadata.get("workspace_members", []))
    return [p for p in metadata.get("packages", []) if p.get("id") in members]


def _matches(package: Mapping[str, Any], spec: CargoPackageSpec) -> bool:
    if package.get("name") != spec.name:
        return False
    if spec.version is None:
        return True
    return semver.Version.parse(package["version"]) == spec.version


def load_component_metadata(
    metadata: Mapping[str, Any],
    specs: Iterable[CargoPackageSpec] = (),
    workspace: bool = False,
) -> list[PackageComponentMetadata]:
    """Pair the selected packages with their component metadata.

    All workspace members are selected when ``workspace`` is set or no
    specs are given; otherwise each spec must match a package.
    """
    specs = list(specs)
    if workspace or not specs:
        packages = _workspace_packages(metadata)
    else:
        packages = []
        for spec in specs:
            found = next(
                (p for p in metadata.get("packages", []) if _matches(p, spec)), None
            )
            if found is None:
                raise WorkspaceError(
                    f"package ID specification `{spec}` did not match any packages"
                )
            packages.append(found)

    return [
        PackageComponentMetadata(package, component_metadata_from_package(package))
        for package in packages
    ]


def _manifest_dir(package: Mapping[str, Any]) -> Path:
    return Path(package["manifest_path"]).parent