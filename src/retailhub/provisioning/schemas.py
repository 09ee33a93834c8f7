"""Pydantic schemas for tenant provisioning and plan changes."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

SUBDOMAIN_PATTERN = r"^[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?$"


class TenantCreateRequest(BaseModel):
    """A purchase or sign-up to turn into a running tenant."""

    package_id: int
    subscription_type: str = Field(default="monthly", pattern="^(monthly|yearly)$")
    tenant: str = Field(..., min_length=1, max_length=63, pattern=SUBDOMAIN_PATTERN)
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=255)
    phone_number: str = ""
    company_name: str = ""
    price: float = Field(default=0.0, ge=0)
    payment_method: Optional[str] = None


class ProvisioningResult(BaseModel):
    """Outcome of a provisioning run.

    `message` is the user-facing text; it only differs when the welcome
    mail could not be sent.
    """

    tenant_id: str
    message: str
    domain: str
    expiry_date: date
    modules: Optional[str] = None
    subdomain_registered: Optional[bool] = None
    mail_sent: bool = False


class ChangePlanRequest(BaseModel):
    package_id: int
    permission_ids: list[int] = Field(default_factory=list)
    abandoned_permission_ids: list[int] = Field(default_factory=list)
    modules: Optional[str] = None
    expiry_date: Optional[date] = None
    subscription_type: Optional[str] = Field(default=None, pattern="^(monthly|yearly)$")


class SubdomainResult(BaseModel):
    tenant_id: str
    deleted: bool
