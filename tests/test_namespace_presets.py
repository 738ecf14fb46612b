import pytest

from instrumental import MissingBlockError, PresetsArgumentError


def test_presets_apply_only_inside_block(ns):
    ns.with_presets({'label': 'label'}, lambda s: s.counter('counter1', 'a_counter'))
    ns.counter('counter2', 'b_counter')

    c1 = ns.counter1
    assert len(c1.labels) == 1
    assert c1.preset_labels['label'] == 'label'

    c2 = ns.counter2
    assert len(c2.labels) == 0
    assert dict(ns.presets) == {}


def test_presets_block_returns_body_result(ns):
    result = ns.with_presets({'region': 'eu'}, lambda s: s.gauge('queue_depth'))
    assert result is ns.queue_depth
    result.set(3)
    assert result.get() == 3.0


def test_nested_presets_override_same_key(ns):
    def outer(s):
        s.counter('a')
        s.with_presets({'env': 'staging', 'zone': 'b'}, lambda t: t.counter('b'))
    ns.with_presets({'env': 'prod'}, outer)
    assert dict(ns.a.preset_labels) == {'env': 'prod'}
    assert dict(ns.b.preset_labels) == {'env': 'staging', 'zone': 'b'}
    assert ns.b.labels == ('env', 'zone')


def test_presets_restored_when_body_raises(ns):
    def boom(s):
        s.counter('inside')
        raise RuntimeError('boom')
    with pytest.raises(RuntimeError):
        ns.with_presets({'label': 'x'}, boom)
    after = ns.counter('after')
    assert after.labels == ()
    assert 'inside' in ns


def test_instrument_presets_win_over_scope_presets(ns):
    ns.with_presets({'tier': 'scope', 'env': 'prod'},
                    lambda s: s.counter('c', labels=['tier'], preset_labels={'tier': 'explicit'}))
    assert dict(ns.c.preset_labels) == {'tier': 'explicit', 'env': 'prod'}
    assert ns.c.labels == ('tier', 'env')


def test_scope_presets_extend_runtime_labels(ns):
    ns.with_presets({'service': 'api'},
                    lambda s: s.counter('calls', labels=['method']))
    calls = ns.calls
    assert calls.labels == ('method', 'service')
    calls.inc(labels={'method': 'get'})
    assert calls.get({'method': 'get'}) == 1.0


@pytest.mark.parametrize('labels', [None, {}])
def test_with_presets_requires_labels(ns, labels):
    with pytest.raises(PresetsArgumentError):
        ns.with_presets(labels, lambda s: None)
    with pytest.raises(ValueError):
        ns.with_presets(labels, lambda s: None)


def test_with_presets_requires_body(ns):
    with pytest.raises(MissingBlockError):
        ns.with_presets({'a': 'b'})
    with pytest.raises(TypeError):
        ns.with_presets({'a': 'b'}, 'not callable')
