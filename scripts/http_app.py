#!/usr/bin/env python3
"""Example: FastAPI service exposing /metrics and timing its own handler.

Run:
    uvicorn scripts.http_app:app --port 8000
    curl localhost:8000/ && curl localhost:8000/metrics/
"""
from __future__ import annotations

from fastapi import FastAPI, Request

from instrumental.metrics import Namespace, RequestCollectorMiddleware, exporter_app
from instrumental.utils.logging_utils import setup_logging

setup_logging('INFO')

metrics = Namespace()
metrics.histogram('request_duration', 'Request duration',
                  options_provider=lambda: {'labels': ['path', 'method'], 'buckets': [0.1, 0.2]})

app = FastAPI()
app.add_middleware(RequestCollectorMiddleware)
app.mount('/metrics', exporter_app())


@app.get('/')
async def index(request: Request):
    labels = {'path': request.url.path, 'method': request.method.lower()}
    with metrics.request_duration.measure(labels):
        return {'status': 'OK'}
