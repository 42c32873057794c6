"""Shared Pydantic schemas for Scanara-Engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "scanara-engine"


class ErrorResponse(BaseModel):
    error: str
    message: str = ""
