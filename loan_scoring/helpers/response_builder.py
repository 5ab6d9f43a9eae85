from typing import Any, Dict, Optional

from pydantic import BaseModel


def build_error_response(message: Any, field: Optional[str] = None) -> Dict[str, Any]:
    """Error body shared by every endpoint: ``{"message": ..., "field"?: ...}``."""
    body = {"message": str(message) if message is not None else "Error"}
    if field:
        body["field"] = field
    return body


def build_replay_response(model: BaseModel) -> Dict[str, Any]:
    """JSON-safe wire form of a response model, as stored for idempotent replays."""
    return model.model_dump(mode="json", by_alias=True)
