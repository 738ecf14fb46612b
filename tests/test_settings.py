import logging

import pytest

from instrumental import ConfigError
from instrumental.config.settings import MetricsSettings, get_settings


def test_defaults():
    s = MetricsSettings.from_env({})
    assert s.host == '0.0.0.0'
    assert s.port == 9108
    assert s.pushgateway == 'localhost:9091'
    assert s.push_interval == 10.0
    assert s.push_timeout == 30.0
    assert s.http_metrics_prefix == 'http_server'


def test_env_overrides():
    s = MetricsSettings.from_env({
        'INSTRUMENTAL_METRICS_HOST': '127.0.0.1',
        'INSTRUMENTAL_METRICS_PORT': '9200',
        'INSTRUMENTAL_PUSHGATEWAY': 'http://gw:9091',
        'INSTRUMENTAL_PUSH_INTERVAL': '2.5',
        'OTHER': 'ignored',
    })
    assert (s.host, s.port, s.pushgateway, s.push_interval) == ('127.0.0.1', 9200, 'http://gw:9091', 2.5)
    assert s._env_snapshot == {
        'INSTRUMENTAL_METRICS_HOST': '127.0.0.1',
        'INSTRUMENTAL_METRICS_PORT': '9200',
        'INSTRUMENTAL_PUSHGATEWAY': 'http://gw:9091',
        'INSTRUMENTAL_PUSH_INTERVAL': '2.5',
    }


@pytest.mark.parametrize('env', [
    {'INSTRUMENTAL_METRICS_PORT': 'abc'},
    {'INSTRUMENTAL_PUSH_INTERVAL': 'soon'},
    {'INSTRUMENTAL_PUSH_TIMEOUT': '-1'},
])
def test_malformed_values_raise(env):
    with pytest.raises(ConfigError):
        MetricsSettings.from_env(env)


def test_cached_until_reload(settings_env, monkeypatch):
    first = settings_env(INSTRUMENTAL_METRICS_PORT='9300')
    assert first.port == 9300
    monkeypatch.setenv('INSTRUMENTAL_METRICS_PORT', '9400')
    assert get_settings() is first
    assert get_settings(force_reload=True).port == 9400


def test_settings_log(caplog):
    with caplog.at_level(logging.INFO, logger='instrumental.config.settings'):
        MetricsSettings.from_env({'INSTRUMENTAL_SETTINGS_LOG': 'yes'})
    assert any('metrics.settings.init' in r.getMessage() for r in caplog.records)
