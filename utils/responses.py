from typing import Any, Dict, List, Optional, Type

from fastapi.responses import JSONResponse
from pydantic import BaseModel


def serialize(schema: Type[BaseModel], obj) -> Dict[str, Any]:
    """ORM row -> JSON-ready dict through its output schema."""
    return schema.model_validate(obj).model_dump(mode="json")


def serialize_many(schema: Type[BaseModel], rows) -> List[Dict[str, Any]]:
    return [serialize(schema, row) for row in rows]


def data_response(data=None, status=200, **extra):
    """Single-resource envelope: {"data": ...}."""
    content = {"data": data}
    content.update(extra)
    return JSONResponse(status_code=status, content=content)


def page_response(data: List[Any], meta: BaseModel, status=200):
    """List envelope: {"data": [...], "meta": {page, pageSize, total, totalPages}}."""
    return JSONResponse(status_code=status, content={"data": data, "meta": meta.model_dump(by_alias=True)})


def error_response(message, status=400, issues: Optional[List[Dict[str, Any]]] = None):
    content = {"message": message}
    if issues is not None:
        content["issues"] = issues
    return JSONResponse(status_code=status, content=content)


def site_error_response(error, status=400, **extra):
    """Public website envelope: {"success": false, "error": ...}."""
    content = {"success": False, "error": error}
    content.update(extra)
    return JSONResponse(status_code=status, content=content)
