"""Events, contexts, and delivery of events to a single global exporter."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, Iterator, Sequence

from gosimports.keys import END, METRIC, MSG, START
from gosimports.label import Key, Label, LabelMap

_STATIC_SIZE = 3
_NO_KEY = object()


class Context:
    """An immutable chain of key/value pairs that travels with events."""

    __slots__ = ("_parent", "_key", "_value")

    def __init__(self) -> None:
        self._parent: Context | None = None
        self._key: Any = _NO_KEY
        self._value: Any = None

    def value(self, key: Any) -> Any:
        """Return the innermost value stored under ``key``, or None."""
        ctx: Context | None = self
        while ctx is not None:
            if ctx._key is not _NO_KEY and ctx._key == key:
                return ctx._value
            ctx = ctx._parent
        return None

    def with_value(self, key: Any, value: Any) -> Context:
        """Return a child context in which ``key`` maps to ``value``."""
        child = Context()
        child._parent = self
        child._key = key
        child._value = value
        return child


_BACKGROUND = Context()


def background() -> Context:
    """Return the empty root context."""
    return _BACKGROUND


@dataclass(frozen=True)
class Event(LabelMap):
    """Something of note that happened, described by a list of labels."""

    static: tuple[Label, ...] = (Label(),) * _STATIC_SIZE
    dynamic: tuple[Label, ...] = ()
    at: datetime | None = None

    def valid(self, index: int) -> bool:
        """Report whether ``index`` is within the event's label list."""
        return 0 <= index < len(self.static) + len(self.dynamic)

    def label(self, index: int) -> Label:
        """Return the label at ``index``; raises IndexError when out of range."""
        if not self.valid(index):
            raise IndexError(f"label index {index} out of range")
        if index < len(self.static):
            return self.static[index]
        return self.dynamic[index - len(self.static)]

    def find(self, key: Key) -> Label:
        return next((lbl for lbl in self if lbl.key is key), Label())

    def __iter__(self) -> Iterator[Label]:
        yield from self.static
        yield from self.dynamic


Exporter = Callable[[Context, Event, LabelMap], Context]


def make_event(static: Sequence[Label], labels: Sequence[Label] | None) -> Event:
    """Build an event from up to three leading labels and any further ones."""
    if len(static) > _STATIC_SIZE:
        raise ValueError(f"at most {_STATIC_SIZE} static labels are allowed")
    padded = tuple(static) + (Label(),) * (_STATIC_SIZE - len(static))
    return Event(static=padded, dynamic=tuple(labels or ()))


def clone_event(ev: Event, at: datetime | None) -> Event:
    """Return a copy of ``ev`` with its time set to ``at``."""
    return replace(ev, at=at)


_exporter: Exporter | None = None


def set_exporter(exporter: Exporter | None) -> None:
    """Install the global exporter; None disables delivery."""
    global _exporter
    _exporter = exporter


def _deliver(ctx: Context, exporter: Exporter, ev: Event) -> Context:
    ev = clone_event(ev, datetime.now().astimezone())
    return exporter(ctx, ev, ev)


def export(ctx: Context, ev: Event) -> Context:
    """Deliver ``ev`` to the global exporter, if one is set."""
    exporter = _exporter
    if exporter is None:
        return ctx
    return _deliver(ctx, exporter, ev)


def export_pair(
    ctx: Context, begin: Event, end: Event
) -> tuple[Context, Callable[[], None]]:
    """Deliver ``begin`` now and return a function that delivers ``end``."""
    exporter = _exporter
    if exporter is None:
        return ctx, lambda: None
    ctx = _deliver(ctx, exporter, begin)

    def done() -> None:
        _deliver(ctx, exporter, end)

    return ctx, done


def log1(ctx: Context, message: str, t1: Label) -> None:
    """Deliver a log event with a message and one label."""
    export(ctx, make_event([MSG.of(message), t1], None))


def metric1(ctx: Context, t1: Label) -> Context:
    """Deliver a metric event with one label."""
    return export(ctx, make_event([METRIC.new(), t1], None))


def start1(
    ctx: Context, name: str, t1: Label
) -> tuple[Context, Callable[[], None]]:
    """Start a span with one label; returns the context and an end function."""
    return export_pair(
        ctx,
        make_event([START.of(name), t1], None),
        make_event([END.new()], None),
    )