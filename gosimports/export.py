"""Exporters that log events, track spans and carry labels in the context."""

from __future__ import annotations

import os
import random
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Protocol

from gosimports.core import Context, Event, Exporter
from gosimports.event import is_detach, is_end, is_error, is_label, is_log, is_start
from gosimports.keys import ERR, MSG, START
from gosimports.label import LabelMap, merge_maps

_MASK64 = (1 << 64) - 1


class _Writer(Protocol):
    def write(self, text: str) -> object: ...


class TraceID(bytes):
    """A 16-byte trace identifier."""

    SIZE = 16

    def __new__(cls, data: bytes | None = None) -> TraceID:
        if data is None:
            data = bytes(cls.SIZE)
        if len(data) != cls.SIZE:
            raise ValueError(f"{cls.__name__} needs {cls.SIZE} bytes, got {len(data)}")
        return super().__new__(cls, data)

    def __str__(self) -> str:
        return self.hex()


class SpanID(bytes):
    """An 8-byte span identifier; all zeros means no span."""

    SIZE = 8

    def __new__(cls, data: bytes | None = None) -> SpanID:
        if data is None:
            data = bytes(cls.SIZE)
        if len(data) != cls.SIZE:
            raise ValueError(f"{cls.__name__} needs {cls.SIZE} bytes, got {len(data)}")
        return super().__new__(cls, data)

    def __str__(self) -> str:
        return self.hex()

    def is_valid(self) -> bool:
        """Report whether the identifier is not all zeros."""
        return any(self)


class _IDGenerator:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rand: random.Random | None = None
        self._trace_add = (0, 0)
        self._next_span = 0
        self._span_inc = 1

    def _seed(self) -> None:
        def word() -> int:
            return int.from_bytes(os.urandom(8), "little")

        self._rand = random.Random(word())
        self._trace_add = (word(), word())
        self._next_span = word()
        self._span_inc = word() | 1

    def trace_id(self) -> TraceID:
        with self._lock:
            if self._rand is None:
                self._seed()
            assert self._rand is not None
            halves = (
                (self._rand.getrandbits(64) + add) & _MASK64 for add in self._trace_add
            )
            return TraceID(b"".join(h.to_bytes(8, "little") for h in halves))

    def span_id(self) -> SpanID:
        with self._lock:
            if self._rand is None:
                self._seed()
            ident = 0
            while ident == 0:
                self._next_span = (self._next_span + self._span_inc) & _MASK64
                ident = self._next_span
            return SpanID(ident.to_bytes(8, "little"))


_generator = _IDGenerator()


def new_trace_id() -> TraceID:
    """Return a fresh random trace identifier."""
    return _generator.trace_id()


def new_span_id() -> SpanID:
    """Return a fresh non-zero span identifier."""
    return _generator.span_id()


class Printer:
    """Writes log events as human-readable text."""

    def write_event(self, writer: _Writer, ev: Event, lm: LabelMap) -> None:
        parts = []
        if ev.at is not None:
            parts.append(ev.at.strftime("%Y/%m/%d %H:%M:%S "))
        msg = MSG.get(lm)
        parts.append(msg)
        err = ERR.get(lm)
        if err is not None:
            if msg:
                parts.append(": ")
            parts.append(str(err))
        for lbl in ev:
            if not lbl.valid() or lbl.key is MSG or lbl.key is ERR:
                continue
            assert lbl.key is not None
            parts.append(f"\n\t{lbl.key.name}={lbl.key.format(lbl)}")
        parts.append("\n")
        writer.write("".join(parts))


class _LogWriter:
    def __init__(self, writer: _Writer, only_errors: bool) -> None:
        self._lock = threading.Lock()
        self._printer = Printer()
        self._writer = writer
        self._only_errors = only_errors

    def process_event(self, ctx: Context, ev: Event, lm: LabelMap) -> Context:
        if is_log(ev):
            if self._only_errors and not is_error(ev):
                return ctx
            with self._lock:
                self._printer.write_event(self._writer, ev, lm)
        elif is_start(ev):
            span = get_span(ctx)
            if span is not None:
                self._writer.write(f"start: {span.name} {span.id}")
                if span.parent_id.is_valid():
                    self._writer.write(f"[{span.parent_id}]")
        elif is_end(ev):
            span = get_span(ctx)
            if span is not None:
                self._writer.write(f"finish: {span.name} {span.id}")
        return ctx


def log_writer(writer: _Writer, only_errors: bool) -> Exporter:
    """Return an exporter that writes log events to ``writer``.

    When ``only_errors`` is true, log events without an error are dropped.
    """
    return _LogWriter(writer, only_errors).process_event


class _ContextKey(Enum):
    SPAN = "span"
    LABELS = "labels"


def labels(output: Exporter) -> Exporter:
    """Wrap ``output`` so labels from label and start events persist in the context."""

    def process(ctx: Context, ev: Event, lm: LabelMap) -> Context:
        stored = ctx.value(_ContextKey.LABELS)
        if not isinstance(stored, LabelMap):
            stored = None
        if is_label(ev) or is_start(ev):
            stored = ev if stored is None else merge_maps(ev, stored)
            ctx = ctx.with_value(_ContextKey.LABELS, stored)
        return output(ctx, ev, merge_maps(lm, stored))

    return process


@dataclass
class SpanContext:
    """The trace and span identifiers of a span."""

    trace_id: TraceID = field(default_factory=TraceID)
    span_id: SpanID = field(default_factory=SpanID)

    def __str__(self) -> str:
        return f"{{{self.trace_id} {self.span_id}}}"


class Span:
    """A named interval with the events recorded inside it."""

    def __init__(self, name: str = "", start: Event | None = None) -> None:
        self.name = name
        self.id = SpanContext()
        self.parent_id = SpanID()
        self._lock = threading.Lock()
        self._start = start if start is not None else Event()
        self._finish = Event()
        self._events: list[Event] = []

    def start(self) -> Event:
        """Return the event that opened the span."""
        return self._start

    def finish(self) -> Event:
        """Return the event that closed the span, or an empty event."""
        with self._lock:
            return self._finish

    def events(self) -> list[Event]:
        """Return the log and label events recorded in the span."""
        with self._lock:
            return list(self._events)

    def _record(self, ev: Event) -> None:
        with self._lock:
            self._events.append(ev)

    def _close(self, ev: Event) -> None:
        with self._lock:
            self._finish = ev


def get_span(ctx: Context) -> Span | None:
    """Return the span the context is in, if any."""
    span = ctx.value(_ContextKey.SPAN)
    return span if isinstance(span, Span) else None


def spans(output: Exporter) -> Exporter:
    """Wrap ``output`` so that spans are tracked in the context."""

    def process(ctx: Context, ev: Event, lm: LabelMap) -> Context:
        if is_log(ev) or is_label(ev):
            span = get_span(ctx)
            if span is not None:
                span._record(ev)
        elif is_start(ev):
            span = Span(START.get(lm), ev)
            parent = get_span(ctx)
            if parent is not None:
                span.id.trace_id = parent.id.trace_id
                span.parent_id = parent.id.span_id
            else:
                span.id.trace_id = new_trace_id()
            span.id.span_id = new_span_id()
            ctx = ctx.with_value(_ContextKey.SPAN, span)
        elif is_end(ev):
            span = get_span(ctx)
            if span is not None:
                span._close(ev)
        elif is_detach(ev):
            ctx = ctx.with_value(_ContextKey.SPAN, None)
        return output(ctx, ev, lm)

    return process


__all__: list[str] = [
    "TraceID",
    "SpanID",
    "new_trace_id",
    "new_span_id",
    "Printer",
    "log_writer",
    "labels",
    "SpanContext",
    "Span",
    "get_span",
    "spans",
]

_ = Callable  # typing helper kept for annotations above