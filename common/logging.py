"""Logging helpers with request correlation."""

from __future__ import annotations

import logging
import os
import time
import uuid

from flask import Flask, g, request

BASE_LOGGER = "energy_converter"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _configure_base() -> logging.Logger:
    base = logging.getLogger(BASE_LOGGER)
    if not base.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        base.addHandler(handler)
        base.setLevel(os.environ.get("ENERGY_CONVERTER_LOG_LEVEL", "INFO").upper())
    return base


def get_logger(name: str = BASE_LOGGER) -> logging.Logger:
    """Return ``name`` as a child of the package logger, configuring it once."""

    base = _configure_base()
    if name == BASE_LOGGER:
        return base
    if name.startswith(BASE_LOGGER + "."):
        return logging.getLogger(name)
    return base.getChild(name)


def install_request_logging(app: Flask) -> None:
    logger = get_logger("http")

    @app.before_request
    def _begin_request() -> None:
        g.request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        g.request_started = time.perf_counter()

    @app.after_request
    def _after_request(response):
        duration_ms = 0.0
        if hasattr(g, "request_started"):
            duration_ms = (time.perf_counter() - g.request_started) * 1000
        logger.info(
            "%s %s -> %s in %.2f ms [%s]",
            request.method,
            request.path,
            response.status_code,
            duration_ms,
            getattr(g, "request_id", "-"),
        )
        response.headers.setdefault("X-Request-ID", getattr(g, "request_id", ""))
        return response

    @app.teardown_request
    def _teardown_request(exc):  # pragma: no cover - flask hooks
        if exc is not None:
            logger.error(
                "request error on %s %s [%s]",
                request.method,
                request.path,
                getattr(g, "request_id", "-"),
                exc_info=exc,
            )


__all__ = ["BASE_LOGGER", "get_logger", "install_request_logging"]
