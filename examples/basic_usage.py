"""
Ship application logs to a Redis list.

Run a local server first (``docker run -p 6379:6379 redis``), then:

    LOGSPOOL_REDIS__KEY=demo:logs python examples/basic_usage.py
    redis-cli LRANGE demo:logs 0 -1
"""

from __future__ import annotations

import logging

from logspool import JsonLinesFormatter, LogspoolHandler, Settings, runtime


def with_logging_handler() -> None:
    handler = LogspoolHandler(Settings(appender={"period_ms": 200}))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    log = logging.getLogger("demo")
    log.addHandler(handler)
    log.setLevel(logging.INFO)

    for i in range(5):
        log.info("request %d served", i)

    # Final flush and disconnect
    handler.close()


def with_appender() -> None:
    formatter = JsonLinesFormatter(static_fields={"service": "demo"})
    with runtime(formatter=formatter) as appender:
        for i in range(5):
            appender.submit({"level": "INFO", "message": "job done", "job": i})
        print("pending before close:", appender.pending())


if __name__ == "__main__":
    with_logging_handler()
    with_appender()
