"""Pydantic schemas for import endpoints."""

from pydantic import BaseModel


class RowErrorResponse(BaseModel):
    row: int
    messages: list[str]

    model_config = {"from_attributes": True}


class ImportResultResponse(BaseModel):
    entity: str
    imported: int
    skipped: int
    errors: list[RowErrorResponse] = []
