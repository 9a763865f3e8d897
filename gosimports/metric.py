"""Aggregation of metric events into scalar and histogram data."""

from __future__ import annotations

import copy
import threading
from abc import ABC
from bisect import bisect_left
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, Sequence

from gosimports.core import Context, Event, Exporter
from gosimports.event import is_metric
from gosimports.keys import Float64, Int64, Value
from gosimports.label import Key, Label, LabelMap, merge_maps, new_map

ENTRIES = Value("metric_entries", "The set of metrics calculated for an event")

_MASK64 = (1 << 64) - 1


def _wrap_int64(value: int) -> int:
    value &= _MASK64
    return value - (1 << 64) if value >= 1 << 63 else value


def _label_list_text(labels: Sequence[Label]) -> str:
    return "[" + " ".join(str(lbl) for lbl in labels) + "]"


def _get_group(
    lm: LabelMap, groups: list[tuple[Label, ...]], keys: Sequence[Key]
) -> tuple[int, bool, list[tuple[Label, ...]]]:
    """Locate the row for the labels in ``lm``; insert it in sorted order if new."""
    group = tuple(
        found if found.valid() else Label() for found in (lm.find(k) for k in keys)
    )
    text = _label_list_text(group)
    index = bisect_left(groups, text, key=_label_list_text)
    if index < len(groups) and _label_list_text(groups[index]) == text:
        return index, False, groups
    updated = list(groups)
    updated.insert(index, group)
    return index, True, updated


@dataclass
class Scalar:
    """Construction information for a scalar metric."""

    name: str
    description: str = ""
    keys: Sequence[Key] = ()

    def sum_int64(self, config: Config, key: Int64) -> None:
        """Subscribe a metric that sums every value recorded on ``key``."""
        data = Int64Data(info=replace(self))
        data._key = key
        config._subscribe(key, data._sum)


@dataclass
class HistogramInt64:
    """Construction information for an int64 histogram metric."""

    name: str
    description: str = ""
    keys: Sequence[Key] = ()
    buckets: Sequence[int] = ()

    def record(self, config: Config, key: Int64) -> None:
        """Subscribe a metric that buckets every value recorded on ``key``."""
        data = HistogramInt64Data(info=replace(self))
        data._key = key
        config._subscribe(key, data._record)


@dataclass
class HistogramFloat64:
    """Construction information for a float64 histogram metric."""

    name: str
    description: str = ""
    keys: Sequence[Key] = ()
    buckets: Sequence[float] = ()

    def record(self, config: Config, key: Float64) -> None:
        """Subscribe a metric that buckets every value recorded on ``key``."""
        data = HistogramFloat64Data(info=replace(self))
        data._key = key
        config._subscribe(key, data._record)


class Data(ABC):
    """One point in the time series of a metric."""

    info: Scalar | HistogramInt64 | HistogramFloat64
    _groups: list[tuple[Label, ...]]

    def handle(self) -> str:
        """Return the name of the metric this data is for."""
        return self.info.name

    def groups(self) -> list[tuple[Label, ...]]:
        """Return the label groups of the rows that currently exist."""
        return list(self._groups)


@dataclass
class Int64Data(Data):
    """Data for int64 scalar metrics."""

    info: Scalar
    is_gauge: bool = False
    rows: list[int] = field(default_factory=list)
    end_time: datetime | None = None
    _groups: list[tuple[Label, ...]] = field(default_factory=list, init=False, repr=False)
    _key: Int64 | None = field(default=None, init=False, repr=False)

    def _modify(
        self, at: datetime | None, lm: LabelMap, update: Callable[[int], int]
    ) -> Data:
        index, inserted, self._groups = _get_group(lm, self._groups, self.info.keys)
        rows = list(self.rows)
        if inserted:
            rows.insert(index, 0)
        rows[index] = update(rows[index])
        self.rows = rows
        self.end_time = at
        return copy.copy(self)

    def _sum(self, at: datetime | None, lm: LabelMap, lbl: Label) -> Data:
        assert self._key is not None
        amount = self._key.from_label(lbl)
        return self._modify(at, lm, lambda v: _wrap_int64(v + amount))


@dataclass
class Float64Data(Data):
    """Data for float64 scalar metrics."""

    info: Scalar
    is_gauge: bool = False
    rows: list[float] = field(default_factory=list)
    end_time: datetime | None = None
    _groups: list[tuple[Label, ...]] = field(default_factory=list, init=False, repr=False)


@dataclass
class HistogramInt64Row:
    """The values of one row of an int64 histogram."""

    values: list[int] = field(default_factory=list)
    count: int = 0
    sum: int = 0
    min: int = 0
    max: int = 0


@dataclass
class HistogramFloat64Row:
    """The values of one row of a float64 histogram."""

    values: list[int] = field(default_factory=list)
    count: int = 0
    sum: float = 0.0
    min: float = 0.0
    max: float = 0.0


def _record_into(row, value, buckets, add) -> None:
    row.sum = add(row.sum, value)
    if row.min > value or row.count == 0:
        row.min = value
    if row.max < value or row.count == 0:
        row.max = value
    row.count += 1
    for i, bound in enumerate(buckets):
        if value <= bound:
            row.values[i] += 1


class _HistogramData(Data):
    rows: list
    end_time: datetime | None
    _row_type: type

    def _modify(self, at: datetime | None, lm: LabelMap, update: Callable) -> Data:
        index, inserted, self._groups = _get_group(lm, self._groups, self.info.keys)
        rows = list(self.rows)
        if inserted:
            row = self._row_type()
            rows.insert(index, row)
        else:
            row = replace(rows[index])
        size = len(self.info.buckets)
        row.values = (list(row.values) + [0] * size)[:size]
        update(row)
        rows[index] = row
        self.rows = rows
        self.end_time = at
        return copy.copy(self)


@dataclass
class HistogramInt64Data(_HistogramData):
    """Data for int64 histogram metrics."""

    info: HistogramInt64
    rows: list[HistogramInt64Row] = field(default_factory=list)
    end_time: datetime | None = None
    _groups: list[tuple[Label, ...]] = field(default_factory=list, init=False, repr=False)
    _key: Int64 | None = field(default=None, init=False, repr=False)
    _row_type = HistogramInt64Row

    def _record(self, at: datetime | None, lm: LabelMap, lbl: Label) -> Data:
        assert self._key is not None
        value = self._key.from_label(lbl)
        return self._modify(
            at,
            lm,
            lambda row: _record_into(
                row, value, self.info.buckets, lambda a, b: _wrap_int64(a + b)
            ),
        )


@dataclass
class HistogramFloat64Data(_HistogramData):
    """Data for float64 histogram metrics."""

    info: HistogramFloat64
    rows: list[HistogramFloat64Row] = field(default_factory=list)
    end_time: datetime | None = None
    _groups: list[tuple[Label, ...]] = field(default_factory=list, init=False, repr=False)
    _key: Float64 | None = field(default=None, init=False, repr=False)
    _row_type = HistogramFloat64Row

    def _record(self, at: datetime | None, lm: LabelMap, lbl: Label) -> Data:
        assert self._key is not None
        value = self._key.from_label(lbl)
        return self._modify(
            at,
            lm,
            lambda row: _record_into(row, value, self.info.buckets, lambda a, b: a + b),
        )


_Subscriber = Callable[[datetime | None, LabelMap, Label], Data]


class Config:
    """The set of metrics computed from metric events."""

    def __init__(self) -> None:
        self._subscribers: dict[Key, list[_Subscriber]] = {}

    def _subscribe(self, key: Key, subscriber: _Subscriber) -> None:
        self._subscribers.setdefault(key, []).append(subscriber)

    def exporter(self, output: Exporter) -> Exporter:
        """Wrap ``output`` so metric events carry their computed data.

        The data is attached to the label map under :data:`ENTRIES`.
        """
        lock = threading.Lock()

        def process(ctx: Context, ev: Event, lm: LabelMap) -> Context:
            if not is_metric(ev):
                return output(ctx, ev, lm)
            with lock:
                metrics: list[Data] = []
                for lbl in ev:
                    if not lbl.valid():
                        continue
                    for subscriber in self._subscribers.get(lbl.key, ()):
                        metrics.append(subscriber(ev.at, lm, lbl))
                lm = merge_maps(new_map(ENTRIES.of(metrics)), lm)
                return output(ctx, ev, lm)

        return process