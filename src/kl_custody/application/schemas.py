"""Pydantic request schemas for kl_custody.

Range and signature checks are domain rules (RecordValidationError); these
schemas only enforce shape.
"""

from pydantic import BaseModel, Field


class RegisterKitRequest(BaseModel):
    kit_id: str = Field(..., min_length=1, max_length=128)
    type: str = Field(..., min_length=1, max_length=64)
    origin: str = Field(..., min_length=1, max_length=255)
    temperature: float
    location: str = Field(..., min_length=1, max_length=255)


class UpdateLocationRequest(BaseModel):
    new_location: str = Field(..., min_length=1, max_length=255)
    temperature: float | None = None
    notes: str | None = Field(default=None, max_length=1000)
