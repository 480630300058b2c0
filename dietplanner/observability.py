# dietplanner/observability.py
# Cross-cutting concerns: JSON logging, request IDs, latency logging, error JSON for /api/*

import sys
import time
import logging
from uuid import uuid4
from typing import Any, Dict, List

from flask import g, request, jsonify
from pythonjsonlogger import jsonlogger
from werkzeug.exceptions import HTTPException, InternalServerError
from pydantic import ValidationError as PydanticValidationError

from .errors import AppError, DatabaseError, UpstreamUnavailableError


def _json_formatter() -> logging.Formatter:
    return jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s "
        "%(request_id)s %(method)s %(path)s %(status)s %(latency_ms)s "
        "%(remote_ip)s %(user_agent)s %(event)s %(model)s "
        "%(prompt_tokens)s %(completion_tokens)s %(total_tokens)s"
    )


def init_logging(app) -> None:
    """JSON logs on stdout for app.logger and the dietplanner.* service loggers."""
    if app.config.get("_OBS_LOGGING_INIT", False):
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(_json_formatter())
    for logger in (app.logger, logging.getLogger("dietplanner")):
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    app.config["_OBS_LOGGING_INIT"] = True


def register_request_id(app) -> None:
    if app.config.get("_OBS_REQID_INIT", False):
        return

    @app.before_request
    def _before_request():
        g.request_id = request.headers.get("X-Request-ID") or str(uuid4())
        g._start_time = time.monotonic()

    @app.after_request
    def _after_request(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "")
        return resp

    app.config["_OBS_REQID_INIT"] = True


def register_latency_logging(app) -> None:
    if app.config.get("_OBS_LATENCY_INIT", False):
        return

    @app.after_request
    def _access_log(resp):
        start = getattr(g, "_start_time", None)
        latency_ms = int((time.monotonic() - start) * 1000) if start else None
        record: Dict[str, Any] = {
            "request_id": getattr(g, "request_id", None),
            "method": request.method,
            "path": request.path,
            "status": resp.status_code,
            "latency_ms": latency_ms,
            "remote_ip": request.headers.get("X-Forwarded-For", request.remote_addr),
            "user_agent": request.user_agent.string if request.user_agent else None,
            "event": "http.access",
        }
        app.logger.info("http.access", extra=record)
        return resp

    app.config["_OBS_LATENCY_INIT"] = True


def validation_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    """
    Pydantic v2 can include Exception instances in error 'ctx', which Flask's
    JSON encoder cannot serialize. Convert any BaseException values to strings.
    """
    details = []
    for err in exc.errors(include_url=False):
        err = dict(err)
        ctx = err.get("ctx")
        if isinstance(ctx, dict):
            err["ctx"] = {k: (str(v) if isinstance(v, BaseException) else v) for k, v in ctx.items()}
        if "input" in err and not isinstance(err["input"], (str, int, float, bool, type(None), list, dict)):
            err["input"] = str(err["input"])
        err["loc"] = [str(part) for part in err.get("loc", ())]
        details.append(err)
    return details


def error_payload(message: str, code: int, details: Any = None) -> Dict[str, Any]:
    """Unified error body for every JSON surface."""
    payload: Dict[str, Any] = {
        "error": message,
        "code": code,
        "request_id": getattr(g, "request_id", None),
    }
    if details is not None:
        payload["details"] = details
    return payload


def register_error_handlers(app) -> None:
    if app.config.get("_OBS_ERRORS_INIT", False):
        return

    @app.errorhandler(AppError)
    def _app_error(e: AppError):
        details = getattr(e, "details", None)
        if isinstance(e, (UpstreamUnavailableError, DatabaseError)):
            # internal detail stays in the logs
            message = e.public_message
            log_extra = {
                "event": "http.error",
                "error": e.message,
                "upstream_status": getattr(e, "upstream_status", None),
                "original_error": repr(getattr(e, "original_error", None)),
            }
            payload = error_payload(message, e.status_code, details=e.message if isinstance(e, DatabaseError) else None)
            app.logger.error("http.error", extra={**log_extra, "request_id": payload["request_id"]})
        else:
            payload = error_payload(e.message, e.status_code, details=details)
            app.logger.warning("http.error", extra={"event": "http.error", **payload})
        return jsonify(payload), e.status_code

    @app.errorhandler(PydanticValidationError)
    def _validation_error(e: PydanticValidationError):
        payload = error_payload("Validation error", 400, details=validation_details(e))
        app.logger.warning("http.error", extra={"event": "http.error", "request_id": payload["request_id"]})
        return jsonify(payload), 400

    @app.errorhandler(HTTPException)
    def _http_exception(e: HTTPException):
        if not request.path.startswith("/api"):
            return e
        payload = error_payload(e.description or e.name, e.code)
        app.logger.warning("http.error", extra={"event": "http.error", **payload})
        return jsonify(payload), e.code

    @app.errorhandler(Exception)
    def _unhandled_exception(e: Exception):
        if not request.path.startswith("/api"):
            return InternalServerError()
        payload = error_payload("Internal Server Error", 500)
        app.logger.error("http.exception", exc_info=True, extra={"event": "http.exception", **payload})
        return jsonify(payload), 500

    app.config["_OBS_ERRORS_INIT"] = True
