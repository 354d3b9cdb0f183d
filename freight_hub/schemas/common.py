from typing import Any

from pydantic import BaseModel


class ApiResponse(BaseModel):
    success: bool = True
    data: Any = None
    timestamp: str


class ConnectionTestResponse(BaseModel):
    success: bool
    message: str | None = None
    error: str | None = None
    timestamp: str
