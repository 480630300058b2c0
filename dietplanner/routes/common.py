# dietplanner/routes/common.py
# Small request/response helpers shared by the API blueprints.

from __future__ import annotations

import uuid
from typing import Type, TypeVar

from flask import Response, request
from pydantic import BaseModel

from ..errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def parse_body(model: Type[M]) -> M:
    """Validate the JSON body; malformed JSON and schema errors both end up as 400."""
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Invalid JSON body")
    return model.model_validate(data)


def parse_query(model: Type[M]) -> M:
    return model.model_validate(request.args.to_dict())


def parse_uuid(value: str, what: str = "ID") -> str:
    try:
        return str(uuid.UUID(value))
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid {what} format", details=[{"loc": ["id"], "msg": "must be a UUID"}])


def file_response(name: str, data: bytes, mime: str) -> Response:
    headers = {
        "Content-Type": mime,
        "Content-Disposition": f'attachment; filename="{name}"',
    }
    return Response(data, headers=headers)
