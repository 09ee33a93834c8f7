"""SQLAlchemy models for the landlord (central) database."""

from datetime import date

from sqlalchemy import JSON, Boolean, Date, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from retailhub.common.models import LandlordBase, TimestampMixin


class TenantModel(LandlordBase, TimestampMixin):
    __tablename__ = "tenants"

    # The subdomain doubles as the primary key.
    id: Mapped[str] = mapped_column(String(63), primary_key=True)
    package_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    subscription_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    modules: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # Internal values, e.g. the control panel's domain id.
    data: Mapped[dict] = mapped_column(JSON, default=dict)

    domains: Mapped[list["DomainModel"]] = relationship(
        back_populates="tenant", cascade="all, delete-orphan"
    )

    def get_internal(self, key: str):
        return (self.data or {}).get(key)

    def set_internal(self, key: str, value) -> None:
        # Reassign so the JSON column is flagged dirty.
        self.data = {**(self.data or {}), key: value}


class DomainModel(LandlordBase, TimestampMixin):
    __tablename__ = "domains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    tenant_id: Mapped[str] = mapped_column(
        String(63), ForeignKey("tenants.id"), nullable=False, index=True
    )

    tenant: Mapped["TenantModel"] = relationship(back_populates="domains")


class PackageModel(LandlordBase, TimestampMixin):
    __tablename__ = "packages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_free_trial: Mapped[bool] = mapped_column(Boolean, default=False)
    monthly_fee: Mapped[float] = mapped_column(Float, default=0.0)
    yearly_fee: Mapped[float] = mapped_column(Float, default=0.0)
    # JSON-encoded list of feature names, stored as text.
    features: Mapped[str] = mapped_column(Text, default="[]")
    # "(permission,role),(permission,role)" with names or numeric ids.
    role_permission_values: Mapped[str] = mapped_column(Text, default="")
    # JSON-encoded list of permission ids granted by the package.
    permission_ids: Mapped[str] = mapped_column(Text, default="[]")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class TenantPaymentModel(LandlordBase, TimestampMixin):
    __tablename__ = "tenant_payments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[str] = mapped_column(
        String(63), ForeignKey("tenants.id"), nullable=False, index=True
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    paid_by: Mapped[str] = mapped_column(String(50), nullable=False)


class LandlordGeneralSettingModel(LandlordBase, TimestampMixin):
    __tablename__ = "landlord_general_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_title: Mapped[str] = mapped_column(String(255), default="")
    site_logo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    developed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    free_trial_limit: Mapped[int] = mapped_column(Integer, default=0)


class LandlordMailSettingModel(LandlordBase, TimestampMixin):
    __tablename__ = "landlord_mail_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver: Mapped[str] = mapped_column(String(20), default="smtp")
    host: Mapped[str] = mapped_column(String(255), default="")
    port: Mapped[int] = mapped_column(Integer, default=587)
    from_address: Mapped[str] = mapped_column(String(255), default="")
    from_name: Mapped[str] = mapped_column(String(255), default="")
    username: Mapped[str] = mapped_column(String(255), default="")
    password: Mapped[str] = mapped_column(String(255), default="")
    encryption: Mapped[str | None] = mapped_column(String(10), default="tls")
    api_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
