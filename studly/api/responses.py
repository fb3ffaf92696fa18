from typing import Any, Dict, Optional

from studly.schemas.base import Pagination


def envelope(data: Any = None, message: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message:
        body["message"] = message
    body.update(extra)
    return body


def paginated(data: Any, total: int, limit: int, offset: int) -> Dict[str, Any]:
    pagination = Pagination(total=total, limit=limit, offset=offset, has_more=offset + limit < total)
    return envelope(data, pagination=pagination.model_dump(by_alias=True))


def failure(error: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error}
    body.update(extra)
    return body
