"""Helpers that build typed events and hand them to the global exporter."""

from __future__ import annotations

from typing import Any, Callable

from gosimports import core
from gosimports.core import Context, Event, Exporter
from gosimports.keys import DETACH, END, ERR, LABEL, METRIC, MSG, START
from gosimports.label import Label


def set_exporter(exporter: Exporter | None) -> None:
    """Install the global exporter that receives every event."""
    core.set_exporter(exporter)


def log(ctx: Context, message: str, *labels: Label) -> None:
    """Deliver a log event carrying ``message`` and ``labels``."""
    core.export(ctx, core.make_event([MSG.of(message)], labels))


def is_log(ev: Event) -> bool:
    """Report whether ``ev`` was built by :func:`log` or :func:`error`."""
    return ev.label(0).key is MSG


def error(ctx: Context, message: str, err: BaseException | None, *labels: Label) -> None:
    """Deliver a log event that also carries an exception."""
    core.export(ctx, core.make_event([MSG.of(message), ERR.of(err)], labels))


def is_error(ev: Event) -> bool:
    """Report whether ``ev`` was built by :func:`error`."""
    return ev.label(0).key is MSG and ev.label(1).key is ERR


def metric(ctx: Context, *labels: Label) -> None:
    """Deliver a metric event with ``labels``."""
    core.export(ctx, core.make_event([METRIC.new()], labels))


def is_metric(ev: Event) -> bool:
    """Report whether ``ev`` was built by :func:`metric`."""
    return ev.label(0).key is METRIC


def label(ctx: Context, *labels: Label) -> Context:
    """Deliver a label event and return the context the exporter gives back."""
    return core.export(ctx, core.make_event([LABEL.new()], labels))


def is_label(ev: Event) -> bool:
    """Report whether ``ev`` was built by :func:`label`."""
    return ev.label(0).key is LABEL


def start(ctx: Context, name: str, *labels: Label) -> tuple[Context, Callable[[], None]]:
    """Start a span; returns the new context and a function that ends it."""
    return core.export_pair(
        ctx,
        core.make_event([START.of(name)], labels),
        core.make_event([END.new()], None),
    )


def is_start(ev: Event) -> bool:
    """Report whether ``ev`` starts a span."""
    return ev.label(0).key is START


def is_end(ev: Event) -> bool:
    """Report whether ``ev`` ends a span."""
    return ev.label(0).key is END


def is_detach(ev: Event) -> bool:
    """Report whether ``ev`` detaches a context from its span."""
    return ev.label(0).key is DETACH


__all__: list[Any] = [
    "set_exporter",
    "log",
    "is_log",
    "error",
    "is_error",
    "metric",
    "is_metric",
    "label",
    "is_label",
    "start",
    "is_start",
    "is_end",
    "is_detach",
]