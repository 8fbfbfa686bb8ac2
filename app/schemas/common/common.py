# app/schemas/common/common.py
from pydantic import BaseModel
from typing import Any, Dict, Optional

__all__ = ["ErrorResponse", "HealthResponse"]

class ErrorResponse(BaseModel):
    success: bool = False
    data: Optional[Any] = None
    error: str
    code: str

class HealthResponse(BaseModel):
    message: str
    status: str
    service: str
    version: str
    timestamp: str
    database: Dict[str, Any]
