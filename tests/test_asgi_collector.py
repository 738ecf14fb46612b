import asyncio

from fastapi import FastAPI
from fastapi.testclient import TestClient

from instrumental.metrics import Namespace, RequestCollectorMiddleware, exporter_app
from instrumental.metrics.asgi import strip_ids_from_path


def _app(registry, **kwargs):
    app = FastAPI()

    @app.get('/')
    def root():
        return {'ok': True}

    @app.get('/boom')
    def boom():
        raise RuntimeError('boom')

    @app.get('/users/{user_id}')
    def user(user_id: str):
        return {'id': user_id}

    app.add_middleware(RequestCollectorMiddleware, registry=registry, **kwargs)
    app.mount('/metrics', exporter_app(registry))
    return app


def test_collector_counts_and_times_requests(registry):
    client = TestClient(_app(registry))
    assert client.get('/').status_code == 200
    assert client.get('/').status_code == 200

    instruments = registry.instruments()
    requests = instruments['http_server_requests_total']
    duration = instruments['http_server_request_duration_seconds']
    assert requests.get({'code': '200', 'method': 'get', 'path': '/'}) == 2
    assert duration.get({'method': 'get', 'path': '/'})['count'] == 2


def test_collector_records_unhandled_errors_as_500(registry):
    client = TestClient(_app(registry), raise_server_exceptions=False)
    assert client.get('/boom').status_code == 500
    requests = registry.instruments()['http_server_requests_total']
    assert requests.get({'code': '500', 'method': 'get', 'path': '/boom'}) == 1


def test_collector_custom_prefix(registry):
    client = TestClient(_app(registry, metrics_prefix='web'))
    client.get('/')
    assert 'web_requests_total' in registry.instruments()


def test_collector_prefix_from_settings(registry, settings_env):
    settings_env(INSTRUMENTAL_HTTP_METRICS_PREFIX='frontend')
    client = TestClient(_app(registry))
    client.get('/')
    assert 'frontend_request_duration_seconds' in registry.instruments()


def test_exporter_serves_registry(registry):
    Namespace(registry).counter('visits').inc()
    client = TestClient(_app(registry))
    client.get('/')
    resp = client.get('/metrics/')
    assert resp.status_code == 200
    assert 'visits_total 1.0' in resp.text
    assert 'http_server_requests_total{code="200",method="get",path="/"} 1.0' in resp.text


def test_non_http_scopes_pass_through(registry):
    seen = []

    async def inner(scope, receive, send):
        seen.append(scope['type'])

    mw = RequestCollectorMiddleware(inner, registry=registry)
    asyncio.run(mw({'type': 'lifespan'}, None, None))
    assert seen == ['lifespan']
    assert mw.metrics.requests_total.get({'code': '200', 'method': 'get', 'path': '/'}) is None


def test_collector_collapses_ids_in_path(registry):
    client = TestClient(_app(registry))
    for i in range(3):
        assert client.get(f'/users/{i}').status_code == 200
    client.get('/users/6f1c2b3a-9d4e-4f5a-8b7c-0123456789ab')

    requests = registry.instruments()['http_server_requests_total']
    assert requests.get({'code': '200', 'method': 'get', 'path': '/users/:id'}) == 3
    assert requests.get({'code': '200', 'method': 'get', 'path': '/users/:uuid'}) == 1
    paths = {s.labels['path'] for m in requests.collector.collect() for s in m.samples}
    assert paths == {'/users/:id', '/users/:uuid'}


def test_strip_ids_from_path():
    assert strip_ids_from_path('/') == '/'
    assert strip_ids_from_path('/orders/42/items/7') == '/orders/:id/items/:id'
    assert strip_ids_from_path('/v2/orders') == '/v2/orders'
    assert strip_ids_from_path('/docs/6F1C2B3A-9D4E-4F5A-8B7C-0123456789AB/') == '/docs/:uuid/'
