"""Permission catalog seeded into every tenant database."""

ROLE_ADMIN = "Admin"
ROLE_OWNER = "Owner"
ROLE_STAFF = "staff"
ROLE_CUSTOMER = "Customer"

DEFAULT_ROLES = (
    (ROLE_ADMIN, "Admin can access all data..."),
    (ROLE_OWNER, "Owner of shop..."),
    (ROLE_STAFF, "Staff has specific access..."),
    (ROLE_CUSTOMER, None),
)


def _crud(resource: str, *extra: str) -> list[str]:
    actions = ("index", "create", "update", "delete") + extra
    return [f"{resource}-{action}" for action in actions]


PERMISSIONS: list[str] = [
    *_crud("taxes", "import", "export"),
    *_crud("units", "import", "export"),
    *_crud("products", "import"),
    *_crud("purchases"),
    *_crud("sales"),
    *_crud("quotes"),
    *_crud("transfers"),
    *_crud("returns"),
    *_crud("customers"),
    *_crud("suppliers"),
    "product-report", "purchase-report", "sale-report", "customer-report",
    "due-report",
    *_crud("users"),
    "profit-loss", "best-seller", "daily-sale", "monthly-sale", "daily-purchase",
    "monthly-purchase", "payment-report", "warehouse-stock-report",
    "product-qty-alert", "supplier-report",
    *_crud("expenses"),
    "general_setting", "mail_setting", "pos_setting", "hrm_setting",
    *_crud("purchase-return"),
    "account-index", "balance-sheet", "account-statement",
    "department", "attendance", "payroll",
    *_crud("employees"),
    "user-report", "stock_count", "adjustment", "sms_setting", "create_sms",
    "print_barcode", "empty_database", "customer_group", "gift_card", "coupon",
    "holiday", "warehouse-report", "warehouse",
    *_crud("brands", "import", "export"),
    *_crud("billers"),
    "money-transfer", "delivery", "send_notification", "today_sale",
    "today_profit", "currency", "backup_database", "reward_point_setting",
    "revenue_profit_summary", "cash_flow", "monthly_summary", "yearly_report",
    "discount_plan", "discount", "product-expiry-report",
    *_crud("purchase-payment"),
    *_crud("sale-payment"),
    "all_notification", "sale-report-chart", "dso-report", "product_history",
    "supplier-due-report", "custom_field",
    *_crud("incomes"),
    "packing_slip_challan", "biller-report", "payment_gateway_setting",
    "barcode_setting", "language_setting", "addons", "account-selection",
    "invoice_setting", "invoice_create_edit_delete", "handle_discount",
    "purchases-import", "sales-import", "customers-import", "billers-import",
    "suppliers-import",
    *_crud("categories", "import", "export"),
    "role_permission", "cart-product-update", "transfers-import",
    "change_sale_date", "sidebar_product", "sidebar_purchase", "sidebar_sale",
    "sidebar_quotation", "sidebar_transfer", "sidebar_expense", "sidebar_income",
    "sidebar_accounting", "sidebar_hrm", "sidebar_people", "sidebar_reports",
    "sidebar_settings", "sale_export", "product_export", "purchase_export",
    "designations", "shift", "overtime", "leave-type", "leave", "hrm-panel",
    "sale-agents",
]

# Granted to Admin on every new tenant; packages add the rest.
BASIC_ADMIN_PERMISSIONS: list[str] = [
    *_crud("units", "import", "export"),
    *_crud("taxes", "import", "export"),
    *_crud("brands", "import", "export"),
    *_crud("categories", "import", "export"),
    *_crud("products", "import", "export"),
    *_crud("purchases", "import", "export"),
    *_crud("sales", "import", "export"),
    *_crud("customers", "import", "export"),
    *_crud("suppliers", "import", "export"),
    *_crud("users"),
    "general_setting", "mail_setting", "pos_setting", "sms_setting",
    "create_sms", "print_barcode", "empty_database", "customer_group",
    "gift_card", "coupon", "warehouse", "billers-index", "billers-create",
    "billers-delete", "money-transfer", "category", "delivery",
    "send_notification", "today_sale", "today_profit", "currency",
    "revenue_profit_summary", "cash_flow", "monthly_summary", "yearly_report",
    "discount_plan", "discount",
    *_crud("purchase-payment"),
    *_crud("sale-payment"),
    "all_notification", "product_history", "custom_field",
    *_crud("incomes"),
    "packing_slip_challan", "payment_gateway_setting", "barcode_setting",
    "language_setting", "account-selection", "invoice_setting",
    "invoice_create_edit_delete", "handle_discount", "billers-import",
    "role_permission", "cart-product-update",
]

# Checked in order; first matching marker wins.
MODULE_MARKERS: list[tuple[str, tuple[str, ...]]] = [
    ("reports", ("-report", "report", "summary", "profit-loss", "best-seller",
                 "daily-", "monthly-", "balance-sheet", "cash_flow",
                 "product-qty-alert", "account-statement")),
    ("settings", ("_setting", "setting", "empty_database", "backup_database",
                  "role_permission", "custom_field", "language")),
    ("sidebar", ("sidebar_",)),
    ("hrm", ("employees", "department", "attendance", "payroll", "holiday",
             "designations", "shift", "overtime", "leave", "hrm", "sale-agents")),
    ("purchases", ("purchase",)),
    ("sales", ("sale", "quotes", "returns", "delivery", "gift_card", "coupon",
               "discount", "packing_slip", "invoice", "cart-product")),
    ("products", ("products", "product", "categories", "category", "brands",
                  "units", "taxes", "print_barcode", "stock_count", "adjustment")),
    ("people", ("customers", "customer_group", "suppliers", "billers", "users")),
    ("accounting", ("account", "money-transfer", "expenses", "incomes")),
    ("transfers", ("transfers",)),
]
