"""Input bag and baseline rows for seeding a tenant database."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from retailhub.access.service import RolePermissionPair


@dataclass
class TenantSeedData:
    """Everything the seeder needs to know about the tenant being created.

    `password` is already hashed. `settings_overrides` carries optional
    storage and OAuth columns of the tenant's general settings row.
    """

    site_title: str = "RetailHub"
    site_logo: str | None = None
    package_id: int = 0
    subscription_type: str = "monthly"
    developed_by: str | None = None
    modules: str | None = None
    expiry_date: date | None = None
    name: str = "admin"
    email: str = "admin@example.com"
    password: str = ""
    phone: str | None = None
    company_name: str | None = None
    package_permissions_role: list[RolePermissionPair] = field(default_factory=list)
    user_roles: list[str | int] = field(default_factory=list)
    user_permissions: list[str | int] = field(default_factory=list)
    settings_overrides: dict[str, Any] = field(default_factory=dict)


DEFAULT_ACCOUNT = {
    "account_no": "019912229",
    "name": "Sales Account",
    "note": "This is the default account.",
    "is_default": True,
    "type": "Bank Account",
}

DEFAULT_BILLER = {
    "name": "Test Biller",
    "company_name": "Test Company",
    "email": "test@example.com",
    "phone_number": "12312",
    "address": "Test address",
    "city": "Test City",
}

DEFAULT_WAREHOUSE = {"name": "Test Shop", "phone": "9991111", "address": "Test address"}

DEFAULT_BRANDS = [
    {"name": "Apple", "slug": "apple",
     "short_description": "Apple designs and sells smartphones, tablets, and computers."},
    {"name": "Samsung", "slug": "samsung",
     "short_description": "Samsung designs and sells smartphones, tablets, and computers."},
    {"name": "Huawei", "slug": "huawei",
     "short_description": "Huawei designs and sells smartphones, tablets, and computers."},
]

# (name, parent name)
DEFAULT_CATEGORIES = [
    ("Smartphone & Gadgets", None),
    ("Phone Accessories", "Smartphone & Gadgets"),
    ("Phone Cases", "Smartphone & Gadgets"),
    ("Laptops & Computers", None),
    ("Keyboards", "Laptops & Computers"),
    ("Monitors", "Laptops & Computers"),
    ("Smartwatches", None),
    ("Sport Watches", "Smartwatches"),
]

DEFAULT_UNIT = {"code": "Pc", "name": "piece", "operator": "*", "operation_value": 1.0}

DEFAULT_TAX = {"name": "VAT 10%", "rate": 10.0}

DEFAULT_CUSTOMER_GROUP = {"name": "General", "percentage": 0.0}

DEFAULT_CUSTOMER = {
    "name": "John Doe",
    "company_name": "Test Company",
    "email": "john@example.com",
    "phone_number": "231312",
    "address": "Test address",
}

DEFAULT_SUPPLIER = {
    "name": "John Doe",
    "company_name": "Test Company",
    "email": "john@example.com",
    "phone_number": "231312",
    "address": "Test address",
}

# (code, name, brand, category, cost, price)
DEFAULT_PRODUCTS = [
    ("72782608", "Zenbook 14 OLED Laptop", "Samsung", "Laptops & Computers", 900.0, 1100.0),
    ("17492839", "iPhone 15 Silicone Case", "Apple", "Phone Cases", 8.0, 20.0),
    ("31188420", "Galaxy Watch Sport Band", "Samsung", "Sport Watches", 12.0, 25.0),
]

# Storefront icons for the top-level categories.
ECOMMERCE_CATEGORY_ICONS = {
    "Smartphone & Gadgets": "20240117121500.png",
    "Laptops & Computers": "20240117121330.png",
    "Smartwatches": "20240117121400.png",
}
