"""Shared Pydantic schemas for baas-engine."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    service: str = "baas-engine"


class FieldError(BaseModel):
    field: str
    messages: list[str]


class ErrorResponse(BaseModel):
    error: str
    code: str
    detail: str = ""
    validation_errors: list[FieldError] = []
