#!/usr/bin/env python3
"""Example: batch job pushing progress to a Pushgateway.

Run a gateway first (docker run -p 9091:9091 prom/pushgateway), then:
    python scripts/push_job.py --gateway http://localhost:9091
"""
from __future__ import annotations

import argparse
import logging
import time

from instrumental.metrics import Namespace
from instrumental.utils.logging_utils import setup_logging

logger = logging.getLogger(__name__)

metrics = Namespace()
metrics.counter('done_stuff', 'how much stuff was done')


def do_stuff(gateway: str) -> None:
    metrics.done_stuff.inc()
    metrics.push('example', gateway=gateway)


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument('--gateway', default='http://localhost:9091')
    parser.add_argument('--rounds', type=int, default=10)
    args = parser.parse_args()
    setup_logging('INFO')

    for i in range(args.rounds):
        do_stuff(args.gateway)
        logger.info("push_job round=%d done_stuff=%s", i + 1, metrics.done_stuff.get())
        time.sleep(1)
    return 0


if __name__ == '__main__':
    raise SystemExit(main())
