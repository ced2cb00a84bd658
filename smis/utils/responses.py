from typing import Any, Optional


def success_response(data: Any = None, message: Optional[str] = None, **extra) -> dict:
    """Standard envelope for successful responses"""
    body = {"success": True, "data": data}
    if message:
        body["message"] = message
    body.update(extra)
    return body
