import pytest
from prometheus_client import REGISTRY, CollectorRegistry

from instrumental import InstrumentKind, InstrumentRegistry, Namespace
from instrumental.metrics import get_registry, isolated_registry, reset_registry, set_registry


def test_constructors_register_into_wrapped_registry():
    cr = CollectorRegistry()
    reg = InstrumentRegistry(cr)
    c = reg.new_counter('jobs', 'jobs done')
    g = reg.new_gauge('depth', 'queue depth', ['queue'])
    h = reg.new_histogram('latency', 'latency', buckets=[0.5, 1.0])
    s = reg.new_summary('size', 'payload size', preset_labels={'codec': 'json'})

    assert c.kind is InstrumentKind.COUNTER
    assert g.labels == ('queue',)
    assert h.kind is InstrumentKind.HISTOGRAM
    assert s.labels == ('codec',)
    assert set(reg.instruments()) == {'jobs', 'depth', 'latency', 'size'}
    c.inc()
    assert cr.get_sample_value('jobs_total') == 1.0


def test_create_dispatches_on_kind(registry):
    inst = registry.create('summary', 'rpc_seconds', 'rpc time')
    assert inst.kind is InstrumentKind.SUMMARY


def test_duplicate_registration_raises(registry):
    registry.new_counter('jobs', 'jobs done')
    with pytest.raises(ValueError):
        registry.new_gauge('jobs', 'jobs again')
    assert registry.instruments()['jobs'].kind is InstrumentKind.COUNTER


def test_snapshot_contains_values(registry):
    ns = Namespace(registry)
    ns.counter('hits')
    for _ in range(3):
        ns.hits.inc()
    text = registry.snapshot().decode('utf-8')
    assert 'hits_total 3.0' in text


def test_unregister_and_clear(registry):
    a = registry.new_counter('a', 'a')
    registry.new_counter('b', 'b')
    registry.unregister(a)
    assert set(registry.instruments()) == {'b'}
    assert registry.clear() == 1
    assert registry.instruments() == {}
    # names are free again
    registry.new_counter('a', 'a')
    registry.new_counter('b', 'b')


def test_default_registry_wraps_global_registry():
    reg = InstrumentRegistry()
    assert reg.collector_registry is REGISTRY


def test_isolated_registry_restores_previous():
    outer = get_registry()
    with isolated_registry() as reg:
        assert get_registry() is reg
        assert reg is not outer
        assert reg.collector_registry is not REGISTRY
    assert get_registry() is outer


def test_set_registry_returns_previous():
    mine = InstrumentRegistry(CollectorRegistry())
    previous = set_registry(mine)
    try:
        assert get_registry() is mine
    finally:
        set_registry(previous)


def test_reset_registry_unregisters_default_instruments():
    with isolated_registry() as reg:
        Namespace().counter('resettable')
        assert reset_registry() == 1
        assert reg.instruments() == {}
        Namespace().counter('resettable')
