"""Labels: key/value pairs, and maps that find labels by key."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

_MASK64 = (1 << 64) - 1


class Key:
    """The identity of a label.

    Keys are compared by object identity only; the name is meant for
    communicating with external systems and is not required to be unique.
    """

    def __init__(self, name: str, description: str = "") -> None:
        self.name = name
        self.description = description

    def format(self, label: Label) -> str:
        """Render the value held by ``label`` as text."""
        return str(label.unpack_value())

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


@dataclass(frozen=True)
class _PackedString:
    text: str


@dataclass(frozen=True)
class Label:
    """A key and its value. A label without a key is invalid."""

    key: Key | None = None
    packed: int = 0
    untyped: Any = None

    def valid(self) -> bool:
        """Report whether the label has a key."""
        return self.key is not None

    def unpack_value(self) -> Any:
        """Return the value given to :func:`of_value`."""
        return self.untyped

    def unpack64(self) -> int:
        """Return the unsigned 64-bit value given to :func:`of64`."""
        return self.packed

    def unpack_string(self) -> str:
        """Return the string given to :func:`of_string`.

        Raises TypeError if the label was not built from a string.
        """
        if not isinstance(self.untyped, _PackedString):
            raise TypeError(
                f"label value of type {type(self.untyped).__name__} "
                "was not packed as a string"
            )
        return self.untyped.text

    def __str__(self) -> str:
        if self.key is None:
            return "nil"
        return f"{self.key.name}={self.key.format(self)}"


def of_value(key: Key, value: Any) -> Label:
    """Build a label holding an arbitrary value."""
    return Label(key=key, untyped=value)


def of64(key: Key, value: int) -> Label:
    """Build a label holding an unsigned 64-bit value."""
    return Label(key=key, packed=value & _MASK64)


def of_string(key: Key, value: str) -> Label:
    """Build a label holding a string."""
    return Label(key=key, packed=len(value), untyped=_PackedString(value))


class LabelMap(ABC):
    """A collection of labels indexed by key."""

    @abstractmethod
    def find(self, key: Key) -> Label:
        """Return the label for ``key``, or an invalid label if absent."""


@dataclass(frozen=True)
class ListMap(LabelMap):
    """A map over a plain sequence of labels."""

    labels: tuple[Label, ...] = ()

    def find(self, key: Key) -> Label:
        return next((lbl for lbl in self.labels if lbl.key is key), Label())


@dataclass(frozen=True)
class MapChain(LabelMap):
    """A map that searches several maps in order."""

    maps: tuple[LabelMap, ...] = ()

    def find(self, key: Key) -> Label:
        for source in self.maps:
            found = source.find(key)
            if found.valid():
                return found
        return Label()


def new_map(*labels: Label) -> LabelMap:
    """Make a map from the given labels."""
    return ListMap(tuple(labels))


def merge_maps(*maps: LabelMap | None) -> LabelMap:
    """Chain maps together, earlier maps taking precedence; None is skipped."""
    present = tuple(m for m in maps if m is not None)
    if len(present) == 1:
        return present[0]
    return MapChain(present)