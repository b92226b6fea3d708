"""Shared validation utilities for inbound requests"""

import json
import logging
from typing import Any, Optional, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

from ..errors import BadRequestError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

CONTENT_TYPE_MESSAGE = "Content-Type must be application/json"
INVALID_JSON_MESSAGE = "Invalid JSON format"
NOT_AN_OBJECT_MESSAGE = "Request body must be a valid JSON object"


def validate_content_type(request: Request) -> None:
    """Require a content-type header containing application/json"""
    content_type = request.headers.get("content-type")
    if not content_type or "application/json" not in content_type:
        raise BadRequestError(CONTENT_TYPE_MESSAGE)


async def read_json_object(request: Request, allow_empty: bool = False) -> dict:
    """
    Parse the request body and require a JSON object.

    Args:
        request: Incoming request
        allow_empty: Treat an empty body as ``{}`` instead of rejecting it

    Raises:
        BadRequestError: If the body is not valid JSON or not an object
    """
    raw = await request.body()
    if not raw.strip():
        if allow_empty:
            return {}
        raise BadRequestError(NOT_AN_OBJECT_MESSAGE)

    try:
        body = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"⚠️ JSON parse error for {request.url.path}: {e}")
        raise BadRequestError(INVALID_JSON_MESSAGE) from e

    if not isinstance(body, dict):
        raise BadRequestError(NOT_AN_OBJECT_MESSAGE)
    return body


async def json_body(request: Request) -> dict:
    """FastAPI dependency gating every JSON endpoint"""
    validate_content_type(request)
    return await read_json_object(request)


async def optional_json_body(request: Request) -> dict:
    """Same gate as ``json_body`` but an empty body is accepted as ``{}``"""
    validate_content_type(request)
    return await read_json_object(request, allow_empty=True)


def parse_model(model: type[ModelT], data: Any, message: str) -> ModelT:
    """Validate ``data`` against ``model`` and report failures with a fixed message"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"⚠️ {model.__name__} validation failed: {e.errors()}")
        raise BadRequestError(message) from e


def missing_fields(data: dict, fields: list[str]) -> list[str]:
    """Return the required fields that are absent or empty"""
    return [field for field in fields if data.get(field) in (None, "")]


def normalize_list_param(value: Optional[list[str]]) -> Optional[list[str]]:
    """Collapse a repeatable query parameter to None when nothing was sent"""
    if not value:
        return None
    return [v for v in value if v] or None
