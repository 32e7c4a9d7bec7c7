"""
Request validation helpers shared by the CMS routers
"""
import json
from typing import Any, Dict, List, Type, TypeVar

from fastapi import Request
from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)


class ValidationFailed(Exception):
    """Raised when a request does not match its schema; rendered as HTTP 400."""

    def __init__(self, message: str, issues: List[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.issues = issues or []


class NotFound(Exception):
    """Raised when a requested row does not exist; rendered as HTTP 404."""

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.message = f"{entity} not found"


def format_issues(error: ValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into {path, message, code} issues."""
    return [
        {
            "path": [part for part in err["loc"] if part != "__root__"],
            "message": err["msg"],
            "code": err["type"],
        }
        for err in error.errors()
    ]


def parse_model(model: Type[T], data: Any, message: str) -> T:
    try:
        return model.model_validate(data if data is not None else {})
    except ValidationError as e:
        raise ValidationFailed(message, format_issues(e))


def parse_query(model: Type[T], request: Request, message: str = "Invalid query parameters") -> T:
    return parse_model(model, dict(request.query_params), message)


async def read_json_body(request: Request, message: str = "Invalid body payload") -> Any:
    """Read a JSON body; an empty body reads as {}."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationFailed(message, [{"path": [], "message": "Body must be valid JSON", "code": "json_invalid"}])


async def parse_body(model: Type[T], request: Request, message: str = "Invalid body payload") -> T:
    return parse_model(model, await read_json_body(request, message), message)


def parse_id(raw: str, entity: str) -> int:
    """Numeric path id, or a 400 naming the entity."""
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{entity} id must be numeric")
