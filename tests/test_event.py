import pytest

from gosimports import core, event, keys

COUNT = keys.Int("count", "")
NAME = keys.String("name", "")


@pytest.fixture
def seen():
    store = []

    def record(ctx, ev, lm):
        store.append(ev)
        return ctx.with_value("delivered", len(store))

    event.set_exporter(record)
    yield store
    event.set_exporter(None)


def test_log_event(seen):
    event.log(core.background(), "hello", COUNT.of(4))
    (ev,) = seen
    assert event.is_log(ev)
    assert not event.is_error(ev)
    assert not event.is_metric(ev)
    assert keys.MSG.from_label(ev.label(0)) == "hello"
    assert COUNT.from_label(ev.label(3)) == 4


def test_error_event(seen):
    problem = RuntimeError("boom")
    event.error(core.background(), "failed", problem, NAME.of("x"))
    (ev,) = seen
    assert event.is_error(ev)
    assert event.is_log(ev)
    assert keys.ERR.from_label(ev.label(1)) is problem
    assert NAME.from_label(ev.find(NAME)) == "x"


def test_metric_event(seen):
    event.metric(core.background(), COUNT.of(9))
    (ev,) = seen
    assert event.is_metric(ev)
    assert not event.is_log(ev)
    assert COUNT.from_label(ev.find(COUNT)) == 9


def test_label_returns_exporter_context(seen):
    ctx = event.label(core.background(), NAME.of("n"))
    assert ctx.value("delivered") == 1
    assert event.is_label(seen[0])
    assert not event.is_start(seen[0])


def test_label_without_exporter_returns_same_context():
    event.set_exporter(None)
    ctx = core.background().with_value("k", "v")
    assert event.label(ctx, NAME.of("n")) is ctx


def test_start_and_end(seen):
    ctx, done = event.start(core.background(), "span", COUNT.of(1))
    assert ctx.value("delivered") == 1
    done()
    begin, end = seen
    assert event.is_start(begin)
    assert keys.START.from_label(begin.label(0)) == "span"
    assert COUNT.from_label(begin.find(COUNT)) == 1
    assert event.is_end(end)
    assert not event.is_start(end)


def test_is_detach():
    ev = core.make_event([keys.DETACH.new()], None)
    assert event.is_detach(ev)
    assert not event.is_end(ev)