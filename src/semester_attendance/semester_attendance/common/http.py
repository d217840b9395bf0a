from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Any

from flask import jsonify, request

from ..core.enums import RecordOutcome
from ..core.exceptions import NotFoundError, StorageError, ValidationError

logger = logging.getLogger(__name__)


def to_payload(value: Any) -> Any:
    """Turn dataclasses, enums and dates into JSON-ready values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_payload(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [to_payload(v) for v in value]
    return value


def ok(data: Any = None, status: int = 200):
    return jsonify({"success": True, "data": to_payload(data)}), status


def fail(message: str, status: int, *, code: str | None = None):
    body = {"success": False, "message": message}
    if code:
        body["code"] = code
    return jsonify(body), status


def outcome(result, *, created: bool = False):
    """Map a typed result (``ok``/``conflict``) to 200/201, 404 or 409."""
    if getattr(result, "outcome", None) == RecordOutcome.COURSE_NOT_FOUND:
        return fail("Course not found", 404, code=to_payload(result.outcome))
    if not result.ok:
        conflict = getattr(result, "conflict", None) or getattr(result, "outcome", None)
        return fail("Request conflicts with existing data", 409, code=to_payload(conflict))
    return ok(result, 201 if created else 200)


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def json_errors(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except ValidationError as e:
            return fail(str(e), 400)
        except NotFoundError as e:
            return fail(str(e), 404)
        except StorageError:
            logger.exception("Storage failure in %s", view.__name__)
            return fail("Could not save your changes, please try again", 503)
        except (KeyError, TypeError, ValueError) as e:
            return fail(f"Invalid request: {e}", 400)

    return wrapper
