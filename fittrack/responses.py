from dataclasses import dataclass, field
from typing import Any, Dict

from fastapi.responses import JSONResponse

from .db import to_json


STATUS_CODES = {
    200: "OK",
    201: "CREATED",
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    409: "CONFLICT",
    410: "TOKEN_EXPIRED",
    500: "SERVER_ERROR",
}


@dataclass
class Result:
    """Outcome of a service operation: status, message and payload fields."""
    status: int
    message: str
    data: Dict[str, Any] = field(default_factory=dict)


def ok(message: str, status: int = 200, **data: Any) -> Result:
    return Result(status=status, message=message, data=data)


def fail(status: int, message: str, **data: Any) -> Result:
    return Result(status=status, message=message, data=data)


class ApiError(Exception):
    """Raised at the HTTP boundary (auth dependencies) and rendered as an envelope."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(message)
        self.status = status
        self.message = message


def envelope(status: int, message: str, **data: Any) -> Dict[str, Any]:
    body = {"status": status, "message": message}
    body.update(to_json(data))
    body["status_code"] = STATUS_CODES.get(status, "SERVER_ERROR")
    return body


def respond(result: Result) -> JSONResponse:
    http_status = result.status if result.status in STATUS_CODES else 500
    return JSONResponse(
        status_code=http_status,
        content=envelope(result.status, result.message, **result.data),
    )
