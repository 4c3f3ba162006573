"""The subset of cargo's command-line arguments that this tool needs to see."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable

import semver

from cargo_component.options import ArgumentSet


class Color(Enum):
    """When to use coloured terminal output."""

    AUTO = "auto"
    ALWAYS = "always"
    NEVER = "never"


def parse_color(value: str) -> Color:
    """Parse a ``--color`` value."""
    try:
        return Color(value)
    except ValueError:
        raise ValueError(
            f"invalid color `{value}`: expected `auto`, `always`, or `never`"
        ) from None


@dataclass(frozen=True)
class CargoPackageSpec:
    """A package specifier of the form ``name[@version]``."""

    name: str
    version: semver.Version | None = None

    def __str__(self) -> str:
        if self.version is None:
            return self.name
        return f"{self.name}@{self.version}"


def parse_package_spec(spec: str) -> CargoPackageSpec:
    """Parse a package specifier; URL specifiers are rejected."""
    if "://" in spec:
        raise ValueError(f"URL package specifier `{spec}` is not supported")

    name, separator, version = spec.partition("@")
    if not separator:
        return CargoPackageSpec(spec)

    try:
        parsed = semver.Version.parse(version)
    except (ValueError, TypeError) as error:
        raise ValueError(f"invalid package specified `{spec}`") from error
    return CargoPackageSpec(name, parsed)


@dataclass
class CargoArguments:
    """Known cargo arguments gathered from a command line."""

    color: Color | None = None
    verbose: int = 0
    quiet: bool = False
    targets: list[str] = field(default_factory=list)
    manifest_path: Path | None = None
    frozen: bool = False
    locked: bool = False
    release: bool = False
    offline: bool = False
    workspace: bool = False
    packages: list[CargoPackageSpec] = field(default_factory=list)

    def network_allowed(self) -> bool:
        """Whether network access is permitted."""
        return not self.frozen and not self.offline

    def lock_update_allowed(self) -> bool:
        """Whether the lock file may be updated."""
        return not self.frozen and not self.locked


def _known_arguments() -> ArgumentSet:
    return (
        ArgumentSet()
        .single("--color", "WHEN", "c")
        .single("--manifest-path", "PATH")
        .multiple("--package", "SPEC", "p")
        .multiple("--target", "TRIPLE")
        .flag("--release", "r")
        .flag("--frozen")
        .flag("--locked")
        .flag("--offline")
        .flag("--all")
        .flag("--workspace")
        .counting("--verbose", "v")
        .flag("--quiet", "q")
    )


def parse_cargo_arguments(argv: Iterable[str] | None = None) -> CargoArguments:
    """Scan ``argv`` (default: the process arguments) for known cargo options.

    A leading ``component`` is skipped and scanning stops at ``--``.
    Unknown arguments are ignored.
    """
    if argv is None:
        argv = sys.argv[1:]
    args = list(argv)
    if args and args[0] == "component":
        args = args[1:]

    known = _known_arguments()
    rest = iter(args)
    for arg in rest:
        if arg == "--":
            break
        known.parse(arg, rest)

    def present(name: str) -> bool:
        return known.get(name).count() > 0

    color = known.get("--color").take_single()
    manifest_path = known.get("--manifest-path").take_single()

    return CargoArguments(
        color=parse_color(color) if color is not None else None,
        verbose=known.get("--verbose").count(),
        quiet=present("--quiet"),
        targets=known.get("--target").take_multiple(),
        manifest_path=Path(manifest_path) if manifest_path is not None else None,
        frozen=present("--frozen"),
        locked=present("--locked"),
        release=present("--release"),
        offline=present("--offline"),
        workspace=present("--workspace") or present("--all"),
        packages=[
            parse_package_spec(spec) for spec in known.get("--package").take_multiple()
        ],
    )