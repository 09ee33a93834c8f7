"""Pydantic schemas for landlord endpoints."""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from retailhub.landlord.service import decode_json_list


class PackageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    features: list[str] = []
    is_free_trial: bool = False
    role_permission_values: str = ""
    permission_ids: list[int] = []
    monthly_fee: float = Field(default=0.0, ge=0)
    yearly_fee: float = Field(default=0.0, ge=0)


class PackageResponse(BaseModel):
    id: int
    name: str
    features: list[str]
    is_free_trial: bool
    role_permission_values: str
    monthly_fee: float
    yearly_fee: float
    created_at: datetime

    model_config = {"from_attributes": True}

    @field_validator("features", mode="before")
    @classmethod
    def _decode_features(cls, value):
        return decode_json_list(value) if isinstance(value, str) else value


class TenantResponse(BaseModel):
    id: str
    package_id: Optional[int] = None
    subscription_type: Optional[str] = None
    expiry_date: Optional[date] = None
    email: Optional[str] = None
    company_name: Optional[str] = None
    phone_number: Optional[str] = None
    modules: Optional[str] = None
    domains: list[str] = []
    created_at: datetime
