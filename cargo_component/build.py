"""Running cargo commands and locating the WebAssembly modules they produce."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Sequence

from cargo_component.config import CargoArguments
from cargo_component.target import install_wasm32_wasi
from cargo_component.workspace import (
    PackageComponentMetadata,
    WorkspaceError,
    is_wasm_module,
    is_wasm_target,
)

DEFAULT_TARGET = "wasm32-wasi"
_BUILD_COMMANDS = frozenset({"b", "build", "rustc"})

_log = logging.getLogger(__name__)


def is_build_command(subcommand: str | None) -> bool:
    """Whether ``subcommand`` compiles code and so produces modules."""
    return subcommand in _BUILD_COMMANDS


def cargo_command_args(
    spawn_args: Iterable[str], subcommand: str | None, targets: Sequence[str]
) -> list[str]:
    """Return the arguments to hand to cargo.

    A leading ``component`` is dropped, and build commands get an implicit
    ``--target wasm32-wasi`` unless a WebAssembly target was given.
    """
    args = list(spawn_args)
    if args and args[0] == "component":
        args = args[1:]
    if is_build_command(subcommand) and not any(is_wasm_target(t) for t in targets):
        args += ["--target", DEFAULT_TARGET]
    return args


def output_directories(
    target_directory: str | os.PathLike, targets: Sequence[str], release: bool
) -> list[Path]:
    """Return the directories holding build output for each WebAssembly target."""
    selected = [t for t in targets if is_wasm_target(t)]
    if not targets:
        selected.append(DEFAULT_TARGET)
    profile = "release" if release else "debug"
    return [Path(target_directory) / target / profile for target in selected]


def find_module_output(out_dir: str | os.PathLike, package_name: str) -> Path | None:
    """Return the ``.wasm`` output of a package in ``out_dir``, if present.

    The package name is tried as is, then with ``-`` replaced by ``_``.
    """
    out_dir = Path(out_dir)
    for name in dict.fromkeys((package_name, package_name.replace("-", "_"))):
        path = out_dir / f"{name}.wasm"
        if path.exists():
            return path
    return None


def _component_outputs(
    directories: Iterable[Path], packages: Iterable[PackageComponentMetadata]
) -> Iterator[Path]:
    packages = list(packages)
    for out_dir in directories:
        for entry in packages:
            if entry.metadata is None:
                continue
            name = entry.package["name"]
            path = find_module_output(out_dir, name)
            if path is None:
                _log.debug("no output found for package `%s`", name)
                continue
            if is_wasm_module(path):
                _log.debug("found WebAssembly module `%s`", path)
            else:
                _log.debug("output file `%s` is already a WebAssembly component", path)
            yield path


def run_cargo_command(
    metadata: Mapping[str, Any],
    packages: Sequence[PackageComponentMetadata],
    subcommand: str | None,
    cargo_args: CargoArguments,
    spawn_args: Sequence[str],
) -> list[Path]:
    """Run cargo with ``spawn_args`` and return the component packages' outputs.

    If cargo exits unsuccessfully the process exits with the same code.
    """
    cargo = os.environ.get("CARGO", "cargo")
    is_build = is_build_command(subcommand)
    args = cargo_command_args(spawn_args, subcommand, cargo_args.targets)

    if is_build:
        install_wasm32_wasi()

    _log.debug("spawning cargo `%s` with arguments `%s`", cargo, args)
    try:
        result = subprocess.run([cargo, *args], check=False)
    except OSError as error:
        raise WorkspaceError(f"failed to spawn `{cargo}`: {error}") from error
    if result.returncode != 0:
        sys.exit(result.returncode if result.returncode > 0 else 1)

    if not is_build:
        return []

    _log.debug("searching for WebAssembly modules to componentize")
    directories = output_directories(
        metadata["target_directory"], cargo_args.targets, cargo_args.release
    )
    return list(_component_outputs(directories, packages))