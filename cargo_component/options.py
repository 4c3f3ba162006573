"""A permissive command-line option scanner.

Only a known subset of options is recognised; everything else is left
alone so the full argument list can be handed on to another tool
unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class ArgumentError(Exception):
    """Raised when a recognised option is used incorrectly."""


class ArgumentKind(Enum):
    """How an option consumes its occurrences."""

    FLAG = "flag"
    SINGLE = "single"
    MULTIPLE = "multiple"
    COUNTING = "counting"


@dataclass
class Argument:
    """A recognised option and the values collected for it."""

    kind: ArgumentKind
    name: str
    short: str | None = None
    value_name: str | None = None
    value: str | None = None
    values: list[str] = field(default_factory=list)
    occurrences: int = 0

    @property
    def expects_value(self) -> bool:
        return self.kind in (ArgumentKind.SINGLE, ArgumentKind.MULTIPLE)

    def _set_value(self, value: str) -> None:
        if self.kind is ArgumentKind.SINGLE:
            if self.value is not None:
                raise ArgumentError(
                    f"the argument '{self}' cannot be used multiple times"
                )
            self.value = value
        elif self.kind is ArgumentKind.MULTIPLE:
            self.values.append(value)
        else:
            raise TypeError(f"the argument '{self}' does not take a value")

    def _set_present(self) -> None:
        if self.kind is ArgumentKind.FLAG:
            if self.occurrences:
                raise ArgumentError(
                    f"the argument '{self}' cannot be used multiple times"
                )
            self.occurrences = 1
        elif self.kind is ArgumentKind.COUNTING:
            self.occurrences += 1
        else:
            raise TypeError(f"the argument '{self}' requires a value")

    def _missing_value(self) -> ArgumentError:
        return ArgumentError(
            f"a value is required for '{self}' but none was supplied"
        )

    def count(self) -> int:
        """Return how many times the option was seen."""
        if self.kind is ArgumentKind.SINGLE:
            return int(self.value is not None)
        if self.kind is ArgumentKind.MULTIPLE:
            return len(self.values)
        return self.occurrences

    def take_single(self) -> str | None:
        """Remove and return the value of a single-valued option."""
        if self.kind is not ArgumentKind.SINGLE:
            return None
        value, self.value = self.value, None
        return value

    def take_multiple(self) -> list[str]:
        """Remove and return the values of a multi-valued option."""
        if self.kind is not ArgumentKind.MULTIPLE:
            return []
        values, self.values = self.values, []
        return values

    def reset(self) -> None:
        """Forget everything collected for this option."""
        self.value = None
        self.values = []
        self.occurrences = 0

    def __str__(self) -> str:
        if self.expects_value:
            return f"{self.name} <{self.value_name}>"
        return self.name


class ArgumentSet:
    """A collection of recognised options, looked up by long or short name."""

    def __init__(self) -> None:
        self._long: dict[str, Argument] = {}
        self._short: dict[str, Argument] = {}

    def _insert(self, argument: Argument) -> ArgumentSet:
        if argument.name in self._long:
            raise ValueError(f"duplicate argument `{argument.name}` provided")
        if argument.short is not None and argument.short in self._short:
            raise ValueError(f"duplicate argument `-{argument.short}` provided")
        self._long[argument.name] = argument
        if argument.short is not None:
            self._short[argument.short] = argument
        return self

    def flag(self, name: str, short: str | None = None) -> ArgumentSet:
        """Add an option that may appear at most once without a value."""
        return self._insert(Argument(ArgumentKind.FLAG, name, short))

    def single(
        self, name: str, value_name: str, short: str | None = None
    ) -> ArgumentSet:
        """Add an option that takes one value and may appear at most once."""
        return self._insert(Argument(ArgumentKind.SINGLE, name, short, value_name))

    def multiple(
        self, name: str, value_name: str, short: str | None = None
    ) -> ArgumentSet:
        """Add an option that takes a value and may be repeated."""
        return self._insert(
            Argument(ArgumentKind.MULTIPLE, name, short, value_name)
        )

    def counting(self, name: str, short: str | None = None) -> ArgumentSet:
        """Add a value-less option whose occurrences are counted."""
        return self._insert(Argument(ArgumentKind.COUNTING, name, short))

    def get(self, name: str) -> Argument | None:
        """Return the option with the given long name, if registered."""
        return self._long.get(name)

    def parse(self, arg: str, rest: Iterator[str]) -> bool:
        """Record ``arg`` if it is a recognised option.

        Values given as separate arguments are pulled from ``rest``.
        Returns True if ``arg`` looks like an option (known or not) and
        False otherwise.
        """
        if arg.startswith("-") and not arg.startswith("--") and len(arg) > 1:
            self._parse_short(arg[1:], rest)
            return True

        if arg.startswith("--"):
            option = self._long.get(arg.split("=", 1)[0])
            if option is not None:
                if option.expects_value:
                    if arg == option.name:
                        value = next(rest, None)
                        if value is None:
                            raise option._missing_value()
                        option._set_value(value)
                    elif arg.startswith(option.name + "="):
                        option._set_value(arg[len(option.name) + 1 :])
                elif arg == option.name:
                    option._set_present()
            return True

        return False

    def _parse_short(self, letters: str, rest: Iterator[str]) -> None:
        for position, letter in enumerate(letters):
            option = self._short.get(letter)
            if option is None:
                continue
            if option.expects_value:
                value = letters[position + 1 :]
                if not value:
                    value = next(rest, None)
                    if value is None:
                        raise option._missing_value()
                option._set_value(value.removeprefix("="))
                return
            option._set_present()