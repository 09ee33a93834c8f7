"""SQLAlchemy models for a tenant's own settings rows."""

from datetime import date

from sqlalchemy import Boolean, Date, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from retailhub.common.models import TenantBase, TimestampMixin


class GeneralSettingModel(TenantBase, TimestampMixin):
    __tablename__ = "general_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    site_title: Mapped[str] = mapped_column(String(255), default="")
    site_logo: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_rtl: Mapped[bool] = mapped_column(Boolean, default=False)
    currency: Mapped[str] = mapped_column(String(10), default="1")
    currency_position: Mapped[str] = mapped_column(String(10), default="prefix")
    package_id: Mapped[int] = mapped_column(Integer, default=0)
    subscription_type: Mapped[str] = mapped_column(String(20), default="monthly")
    staff_access: Mapped[str] = mapped_column(String(20), default="own")
    without_stock: Mapped[str] = mapped_column(String(5), default="no")
    date_format: Mapped[str] = mapped_column(String(20), default="d/m/Y")
    developed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invoice_format: Mapped[str] = mapped_column(String(20), default="standard")
    decimal: Mapped[int] = mapped_column(Integer, default=2)
    theme: Mapped[str] = mapped_column(String(50), default="default.css")
    modules: Mapped[str | None] = mapped_column(String(255), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    storage_provider: Mapped[str] = mapped_column(String(20), default="public")
    aws_access_key_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    aws_secret_access_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    aws_default_region: Mapped[str | None] = mapped_column(String(50), nullable=True)
    aws_bucket: Mapped[str | None] = mapped_column(String(255), nullable=True)
    aws_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    aws_endpoint: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ftp_host: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ftp_username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ftp_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ftp_port: Mapped[int | None] = mapped_column(Integer, nullable=True)
    ftp_root: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sftp_host: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sftp_username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sftp_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sftp_private_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    sftp_port: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sftp_root: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cloudinary_cloud_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cloudinary_api_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    cloudinary_api_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)

    google_client_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_client_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_redirect_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    google_login_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    facebook_client_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    facebook_client_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)
    facebook_redirect_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    facebook_login_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    github_client_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    github_client_secret: Mapped[str | None] = mapped_column(String(255), nullable=True)
    github_redirect_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    github_login_enabled: Mapped[bool] = mapped_column(Boolean, default=True)


class MailSettingModel(TenantBase, TimestampMixin):
    __tablename__ = "mail_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    driver: Mapped[str] = mapped_column(String(20), default="smtp")
    host: Mapped[str] = mapped_column(String(255), default="127.0.0.1")
    port: Mapped[int] = mapped_column(Integer, default=2525)
    from_address: Mapped[str] = mapped_column(String(255), default="")
    from_name: Mapped[str] = mapped_column(String(255), default="")
    username: Mapped[str] = mapped_column(String(255), default="")
    password: Mapped[str] = mapped_column(String(255), default="")
    encryption: Mapped[str | None] = mapped_column(String(10), default="tls")
    api_key: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=True)


class PosSettingModel(TenantBase, TimestampMixin):
    __tablename__ = "pos_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(Integer, default=1)
    warehouse_id: Mapped[int] = mapped_column(Integer, default=1)
    biller_id: Mapped[int] = mapped_column(Integer, default=1)
    product_number: Mapped[int] = mapped_column(Integer, default=2)
    keyboard_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_table: Mapped[bool] = mapped_column(Boolean, default=False)
    send_sms: Mapped[bool] = mapped_column(Boolean, default=False)
    payment_options: Mapped[str] = mapped_column(
        String(255), default="cash,card,cheque,gift_card,deposit,paypal"
    )
    invoice_option: Mapped[str] = mapped_column(String(20), default="thermal")
    thermal_invoice_size: Mapped[str] = mapped_column(String(10), default="80")
