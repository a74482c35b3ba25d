"""Energy converter API with standardized responses."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any, Callable, Literal

from flask import Blueprint, Response, current_app, request

from common.errors import NotFoundAppError, ValidationAppError, ensure_app_error
from common.logging import get_logger
from common.responses import fail, ok
from common.validation import SchemaModel, ValidationError, parse_model

from ..core import (
    DEFAULT_PRECISION,
    BadInputError,
    ConversionError,
    DisabledFieldError,
    EnergyController,
    InvalidUnitError,
    convert_all,
    count_significant_digits,
    list_units,
    parse_number,
)
from .sessions import SessionNotFoundError, get_store

logger = get_logger("energy_converter.api")


class ConvertPayload(SchemaModel):
    value: float | int | str
    unit: str
    precision: int | None = None


class DigitsPayload(SchemaModel):
    text: str = ""


class SessionPayload(SchemaModel):
    precision: int | None = None


class FieldPayload(SchemaModel):
    unit: str
    text: str = ""
    side: Literal["single", "A", "B", "D"] = "single"


class PrecisionPayload(SchemaModel):
    text: str | None = None
    step: Literal[-1, 1] | None = None


api_bp = Blueprint("energy_converter_api", __name__, url_prefix="/api/energy_converter")


def _plugin_settings() -> dict[str, Any]:
    return dict(current_app.config.get("PLUGIN_SETTINGS", {}).get("energy_converter", {}) or {})


def _default_precision() -> int:
    try:
        return int(_plugin_settings().get("default_precision", DEFAULT_PRECISION))
    except (TypeError, ValueError):
        return DEFAULT_PRECISION


def _invalid(exc: ValidationError) -> Response:
    return fail(
        ValidationAppError(
            message=str(exc),
            code="energy.invalid_request",
            details=getattr(exc, "details", None),
        )
    )


def _handle(callable_: Callable[[], Any]) -> Response:
    try:
        result = callable_()
        if isinstance(result, tuple):
            payload, status = result
            return ok(payload, status=status)
        return ok(result)
    except ValidationError as exc:
        return _invalid(exc)
    except SessionNotFoundError as exc:
        return fail(NotFoundAppError(message=exc.args[0], code="energy.session_not_found"))
    except DisabledFieldError as exc:
        return fail(ValidationAppError(message=str(exc), code="energy.field_disabled"))
    except InvalidUnitError as exc:
        return fail(ValidationAppError(message=str(exc), code="energy.invalid_unit"))
    except (BadInputError, ConversionError) as exc:
        return fail(ValidationAppError(message=str(exc), code="energy.invalid_input"))
    except Exception as exc:  # pragma: no cover
        logger.exception("energy converter request failed")
        error = ensure_app_error(exc, fallback_code="energy.internal")
        return fail(error, status=error.status_code)


def _session_view(session_id: str, controller: EnergyController, **extra: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {"session_id": session_id}
    payload.update(controller.snapshot())
    payload.update(extra)
    return payload


@api_bp.get("/units")
def units_endpoint() -> Response:
    return ok({"units": list_units()})


@api_bp.post("/convert")
def convert_endpoint() -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(ConvertPayload, request.get_json(silent=True))
        precision = payload.precision if payload.precision is not None else _default_precision()
        return convert_all(payload.value, payload.unit, precision=precision)

    return _handle(_call)


@api_bp.post("/significant_digits")
def significant_digits_endpoint() -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(DigitsPayload, request.get_json(silent=True))
        return {"text": payload.text, "significant_digits": count_significant_digits(payload.text)}

    return _handle(_call)


@api_bp.post("/sessions")
def create_session() -> Response:
    def _call() -> tuple[dict[str, Any], int]:
        payload = parse_model(SessionPayload, request.get_json(silent=True))
        precision = payload.precision if payload.precision is not None else _default_precision()
        store = get_store()
        store.configure(_plugin_settings())
        session = store.create(EnergyController(precision=precision))
        return _session_view(session.session_id, session.controller), 201

    return _handle(_call)


@api_bp.get("/sessions/<session_id>")
def get_session(session_id: str) -> Response:
    def _call() -> dict[str, Any]:
        session = get_store().get(session_id)
        with session.lock:
            return _session_view(session_id, session.controller)

    return _handle(_call)


@api_bp.delete("/sessions/<session_id>")
def delete_session(session_id: str) -> Response:
    def _call() -> dict[str, Any]:
        if not get_store().delete(session_id):
            raise SessionNotFoundError("Session expired or not found")
        return {"session_id": session_id, "deleted": True}

    return _handle(_call)


@api_bp.post("/sessions/<session_id>/fields")
def edit_field(session_id: str) -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(FieldPayload, request.get_json(silent=True))
        session = get_store().get(session_id)
        with session.lock:
            updates = session.controller.on_field_edit(payload.unit, payload.text, payload.side)
            accepted = not payload.text or parse_number(payload.text) is not None
            return _session_view(
                session_id,
                session.controller,
                accepted=accepted,
                updates=[asdict(update) for update in updates],
            )

    return _handle(_call)


@api_bp.post("/sessions/<session_id>/precision")
def edit_precision(session_id: str) -> Response:
    def _call() -> dict[str, Any]:
        payload = parse_model(PrecisionPayload, request.get_json(silent=True))
        if (payload.text is None) == (payload.step is None):
            raise ValidationError("Provide exactly one of 'text' or 'step'.")
        session = get_store().get(session_id)
        with session.lock:
            controller = session.controller
            if payload.step is not None:
                updates = controller.on_precision_step(payload.step)
                accepted = True
            else:
                updates = controller.on_precision_edit(payload.text)
                accepted = parse_number(payload.text) is not None
            return _session_view(
                session_id,
                controller,
                accepted=accepted,
                updates=[asdict(update) for update in updates],
            )

    return _handle(_call)


@api_bp.post("/sessions/<session_id>/mode")
def toggle_mode(session_id: str) -> Response:
    def _call() -> dict[str, Any]:
        session = get_store().get(session_id)
        with session.lock:
            updates = session.controller.on_mode_toggle()
            return _session_view(
                session_id,
                session.controller,
                updates=[asdict(update) for update in updates],
            )

    return _handle(_call)


@api_bp.get("/sessions/<session_id>/copy/<unit>")
def copy_text(session_id: str, unit: str) -> Response:
    def _call() -> dict[str, Any]:
        session = get_store().get(session_id)
        with session.lock:
            controller = session.controller
            return {"unit": unit, "mode": controller.mode, "text": controller.get_copy_text(unit)}

    return _handle(_call)


blueprints = [api_bp]


__all__ = [
    "blueprints",
    "units_endpoint",
    "convert_endpoint",
    "significant_digits_endpoint",
    "create_session",
    "get_session",
    "delete_session",
    "edit_field",
    "edit_precision",
    "toggle_mode",
    "copy_text",
]
