# gosimports

A small, dependency-free library for structured event telemetry, plus a
concurrent directory walker.

## What it provides

- **Labels and keys** (`gosimports.label`, `gosimports.keys`): typed keys
  (`Int`, `Int8` … `Int64`, `UInt` … `UInt64`, `Float32`, `Float64`, `String`,
  `Boolean`, `Error`, `Tag`, `Value`) that build `Label` values with `of` (or
  `new` for a `Tag`) and read them back with `from_label`. `new_map` and
  `merge_maps` build `LabelMap`s that look labels up by key. Integer keys raise
  `OverflowError` for values outside their width.
- **Events** (`gosimports.core`, `gosimports.event`): `log`, `error`,
  `metric`, `label` and `start` build events and hand them to the single global
  exporter installed with `set_exporter`. `start` returns a new `Context` and a
  function that ends the span. `core.background()` is the empty root context.
- **Exporters** (`gosimports.export`): `log_writer` prints log events to any
  object with a `write` method. `spans` keeps a tree of `Span`s in the context,
  reachable with `get_span`. `labels` carries labels from label and start
  events forward through the context.
- **Metrics** (`gosimports.metric`): `Scalar.sum_int64`,
  `HistogramInt64.record` and `HistogramFloat64.record` subscribe to keys in a
  `Config`. `Config.exporter` turns metric events into data rows. It attaches
  the rows to the label map under `metric.ENTRIES`.
- **Wire messages** (`gosimports.wire`): dataclasses for the OpenCensus agent
  trace and metrics requests. `to_json` converts them to plain Python values
  and leaves out zero-valued fields. `marshal` encodes them as compact JSON text.
- **Directory walking** (`gosimports.fastwalk`): `walk(root, walk_fn)` visits
  a tree on several threads and reports each entry's `FileType`. The callback
  steers the walk by raising `SkipDir`, `SkipFiles` or `TraverseLink`.

## Installation

```
pip install .
```

## Example: logging events

```python
import sys
from gosimports import core, event, export, keys

event.set_exporter(export.log_writer(sys.stdout, False))

an_int = keys.Int("myInt", "an integer")
a_string = keys.String("myString", "a string")

ctx = core.background()
event.log(ctx, "my event", an_int.of(6))
event.error(ctx, "error event", RuntimeError("an error"), a_string.of("some string value"))
```

Each line starts with a `YYYY/MM/DD HH:MM:SS` timestamp. After it comes:

```
my event
	myInt=6
error event: an error
	myString="some string value"
```

## Example: spans

```python
from gosimports import core, event, export

event.set_exporter(export.spans(lambda ctx, ev, lm: ctx))

ctx, done = event.start(core.background(), "work")
try:
    span = export.get_span(ctx)
    print(span.name, span.id.span_id)
finally:
    done()
```

## Example: metrics

```python
from gosimports import core, event, keys, metric

bytes_in = keys.Int64("bytes_in", "number of bytes in")
config = metric.Config()
metric.HistogramInt64("bytes_in", "bytes read", buckets=[0, 10, 100]).record(config, bytes_in)

collected = []

def sink(ctx, ev, lm):
    collected.extend(metric.ENTRIES.get(lm) or [])
    return ctx

event.set_exporter(config.exporter(sink))
event.metric(core.background(), bytes_in.of(42))

row = collected[-1].rows[0]
print(row.count, row.sum, row.values)   # 1 42 [0, 0, 1]
```

## Example: encoding wire messages

```python
from gosimports import wire

print(wire.marshal(wire.Point(value=wire.PointInt64Value(5))))   # {"int64Value":5}
```

## Example: walking a directory

```python
from gosimports import fastwalk

def visit(path, typ):
    if typ == fastwalk.FileType.DIR and path.endswith("vendor"):
        raise fastwalk.SkipDir()
    print(path)

fastwalk.walk("some/dir", visit)
```

The callback may run on several threads at once, so it must be thread-safe.

## What it does not do

The package does not send telemetry anywhere. `gosimports.wire` builds and
encodes agent requests. No exporter here gathers spans and metrics into those
requests or posts them over the network. Wiring `marshal` output to an HTTP
client is up to the caller.

## Running the tests

```
pip install .[test]
pytest
```