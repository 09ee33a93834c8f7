"""Per-entity importers and the entity registry."""

import logging
import re
import secrets
import string
from datetime import date, datetime, time
from typing import Optional

from pydantic import AliasChoices, Field
from sqlalchemy import select

from retailhub.access.models import DEFAULT_GUARD, PermissionModel
from retailhub.access.service import PermissionService
from retailhub.catalog.models import (
    BrandModel,
    CategoryModel,
    ProductModel,
    ProductVariantModel,
    ProductWarehouseModel,
    UnitModel,
    VariantModel,
    WarehouseModel,
)
from retailhub.common.exceptions import UnknownImportError
from retailhub.common.text import slugify
from retailhub.geo.models import CityModel, CountryModel, CurrencyModel, StateModel
from retailhub.hrm.models import (
    AttendanceModel,
    DepartmentModel,
    DesignationModel,
    EmployeeModel,
    HolidayModel,
    HrmSettingModel,
    LeaveTypeModel,
    OvertimeModel,
    PayrollModel,
    ShiftModel,
)
from retailhub.imports.base import (
    Clock,
    Day,
    Flag,
    ImportDescriptor,
    Importer,
    ImportRow,
    Integer,
    Number,
    Reference,
    RowSkipped,
    Text,
    upsert_one,
)
from retailhub.people.models import (
    DISCOUNT_PLAN_GENERIC,
    AccountModel,
    BillerModel,
    CustomerGroupModel,
    CustomerModel,
    DepositModel,
    DiscountPlanCustomerModel,
    DiscountPlanModel,
    SupplierModel,
)

logger = logging.getLogger(__name__)

PRODUCT_TYPES = ("standard", "combo", "digital", "service")
DEFAULT_PROFIT_MARGIN = 25.0
DEPOSIT_NOTE = "Initial deposit from import"
ATTENDANCE_STATUSES = ("present", "late", "absent")
OVERTIME_STATUSES = ("Pending", "Approved", "Rejected")
DEFAULT_CHECKIN = "08:00:00"
_VARIANT_GROUP = re.compile(r"([^,\[\]]+)\[([^\]]*)\]")


def _alias(*names: str):
    return Field(default=None, validation_alias=AliasChoices(*names))


def _by_id(model, target: str, on_missing: str = "skip") -> Reference:
    return Reference(model, target, lookup="id", on_missing=on_missing)


def _geo_references(on_missing: str = "null") -> dict[str, Reference]:
    """Country, state and city by name; each level is scoped to the one above."""
    return {
        "country": Reference(CountryModel, "country_id", on_missing=on_missing),
        "state": Reference(
            StateModel, "state_id", on_missing=on_missing, scope={"country_id": "country_id"}
        ),
        "city": Reference(
            CityModel, "city_id", on_missing=on_missing, scope={"state_id": "state_id"}
        ),
    }


def _slug_defaults(name: str) -> dict:
    return {"slug": slugify(name)}


def _non_negative(row, *columns: str) -> None:
    negative = [f"{c}: must be at least 0" for c in columns if (getattr(row, c) or 0) < 0]
    if negative:
        raise RowSkipped(*negative)


# ── Geography ──


class CountryRow(ImportRow):
    iso2: Text = None
    name: Text = None
    iso3: Text = None
    phone_code: Text = None
    region: Text = None
    subregion: Text = None
    native: Text = None
    latitude: Number = None
    longitude: Number = None
    emoji: Text = None
    status: Flag = None


class CountriesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="countries",
        model=CountryModel,
        natural_key="iso2",
        schema=CountryRow,
        required=("iso2", "name"),
    )

    async def to_values(self, ctx, row: CountryRow, refs):
        return {
            "iso2": row.iso2,
            "name": row.name,
            "iso3": row.iso3,
            "phone_code": row.phone_code,
            "region": row.region,
            "subregion": row.subregion,
            "native": row.native,
            "latitude": row.latitude,
            "longitude": row.longitude,
            "emoji": row.emoji,
            "status": True if row.status is None else row.status,
        }


class StateRow(ImportRow):
    name: Text = None
    country_code: Text = None
    state_code: Text = None
    type: Text = None
    latitude: Number = None
    longitude: Number = None


class StatesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="states",
        model=StateModel,
        natural_key="name",
        schema=StateRow,
        required=("name", "country_code"),
        dependencies={
            "country_code": Reference(
                CountryModel, "country_id", lookup="iso2", on_missing="skip"
            ),
        },
    )

    async def to_values(self, ctx, row: StateRow, refs):
        return {
            "name": row.name,
            "country_id": refs["country_id"],
            "country_code": row.country_code,
            "state_code": row.state_code,
            "type": row.type,
            "latitude": row.latitude,
            "longitude": row.longitude,
        }


class CityRow(ImportRow):
    name: Text = None
    country_code: Text = None
    state_code: Text = None
    latitude: Number = None
    longitude: Number = None


class CitiesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="cities",
        model=CityModel,
        natural_key="name",
        schema=CityRow,
        required=("name", "country_code", "state_code"),
        dependencies={
            "country_code": Reference(
                CountryModel, "country_id", lookup="iso2", on_missing="skip"
            ),
            "state_code": Reference(
                StateModel,
                "state_id",
                lookup="state_code",
                on_missing="skip",
                scope={"country_id": "country_id"},
            ),
        },
    )

    async def to_values(self, ctx, row: CityRow, refs):
        return {
            "name": row.name,
            "country_id": refs["country_id"],
            "state_id": refs["state_id"],
            "country_code": row.country_code,
            "state_code": row.state_code,
            "latitude": row.latitude,
            "longitude": row.longitude,
        }


class CurrencyRow(ImportRow):
    code: Text = None
    name: Text = None
    country_code: Text = None
    symbol: Text = None
    symbol_native: Text = None
    precision: Integer = None
    symbol_first: Flag = None
    decimal_mark: Text = None
    thousands_separator: Text = None


class CurrenciesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="currencies",
        model=CurrencyModel,
        natural_key="code",
        schema=CurrencyRow,
        required=("code", "name", "country_code"),
        dependencies={
            "country_code": Reference(
                CountryModel, "country_id", lookup="iso2", on_missing="skip"
            ),
        },
    )

    async def to_values(self, ctx, row: CurrencyRow, refs):
        return {
            "code": row.code,
            "name": row.name,
            "country_id": refs["country_id"],
            "symbol": row.symbol,
            "symbol_native": row.symbol_native,
            "precision": 2 if row.precision is None else row.precision,
            "symbol_first": True if row.symbol_first is None else row.symbol_first,
            "decimal_mark": row.decimal_mark or ".",
            "thousands_separator": row.thousands_separator or ",",
        }


# ── Units ──


class UnitRow(ImportRow):
    code: Text = None
    name: Text = None
    base_unit: Text = _alias("base_unit", "baseunit")
    operator: Text = None
    operation_value: Number = _alias("operation_value", "operationvalue")


class UnitsImporter(Importer):
    """Units are written row by row so a base unit defined earlier in the
    same file resolves for the rows after it."""

    descriptor = ImportDescriptor(
        entity="units",
        model=UnitModel,
        natural_key="code",
        schema=UnitRow,
        required=("code", "name"),
        mode="each_row",
        dependencies={"base_unit": Reference(UnitModel, "base_unit", lookup="code")},
    )

    async def to_values(self, ctx, row: UnitRow, refs):
        base_unit_id = refs["base_unit"]
        if base_unit_id is None:
            operator, operation_value = None, None
        else:
            operator = row.operator or "*"
            operation_value = row.operation_value if row.operation_value else 1.0
        return {
            "code": row.code,
            "name": row.name,
            "base_unit": base_unit_id,
            "operator": operator,
            "operation_value": operation_value,
            "is_active": True,
        }


# ── HRM ──


class EmployeeRow(ImportRow):
    staff_id: Text = None
    name: Text = None
    email: Text = None
    phone_number: Text = None
    department_id: Integer = None
    designation_id: Integer = None
    shift_id: Integer = None
    basic_salary: Number = None
    address: Text = None
    country_id: Integer = None
    state_id: Integer = None
    city_id: Integer = None
    is_active: Flag = None
    is_sale_agent: Flag = None
    sale_commission_percent: Number = None
    image_url: Text = None


class EmployeesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="employees",
        model=EmployeeModel,
        natural_key="staff_id",
        schema=EmployeeRow,
        required=("staff_id", "name", "department_id", "designation_id", "shift_id"),
        chunk_size=100,
        dependencies={
            "department_id": _by_id(DepartmentModel, "department_id"),
            "designation_id": _by_id(DesignationModel, "designation_id"),
            "shift_id": _by_id(ShiftModel, "shift_id"),
        },
    )

    async def to_values(self, ctx, row: EmployeeRow, refs):
        return {
            "staff_id": row.staff_id,
            "name": row.name,
            "email": row.email,
            "phone_number": row.phone_number,
            **refs,
            "basic_salary": row.basic_salary or 0.0,
            "address": row.address,
            "country_id": row.country_id,
            "state_id": row.state_id,
            "city_id": row.city_id,
            "is_active": True if row.is_active is None else row.is_active,
            "is_sale_agent": bool(row.is_sale_agent),
            "sale_commission_percent": row.sale_commission_percent,
            "image_url": row.image_url,
        }


class SaleAgentsImporter(Importer):
    """Employees flagged as sale agents; staff id, designation and shift are optional."""

    descriptor = ImportDescriptor(
        entity="sale_agents",
        model=EmployeeModel,
        natural_key="staff_id",
        schema=EmployeeRow,
        required=("name", "department_id"),
        mode="each_row",
        chunk_size=500,
        key_required=False,
        dependencies={
            "department_id": _by_id(DepartmentModel, "department_id"),
            "designation_id": _by_id(DesignationModel, "designation_id", on_missing="null"),
            "shift_id": _by_id(ShiftModel, "shift_id", on_missing="null"),
        },
    )

    async def to_values(self, ctx, row: EmployeeRow, refs):
        return {
            "staff_id": row.staff_id,
            "name": row.name,
            "email": row.email,
            "phone_number": row.phone_number,
            **refs,
            "basic_salary": row.basic_salary or 0.0,
            "address": row.address,
            "is_active": True if row.is_active is None else row.is_active,
            "is_sale_agent": True,
            "sale_commission_percent": row.sale_commission_percent,
        }


class ShiftRow(ImportRow):
    name: Text = None
    start_time: Clock = None
    end_time: Clock = None
    grace_in: Integer = None
    grace_out: Integer = None
    is_active: Flag = None


class ShiftsImporter(Importer):
    descriptor = ImportDescriptor(
        entity="shifts",
        model=ShiftModel,
        natural_key="name",
        schema=ShiftRow,
        required=("name", "start_time", "end_time"),
        chunk_size=100,
    )

    async def to_values(self, ctx, row: ShiftRow, refs):
        _non_negative(row, "grace_in", "grace_out")
        return {
            "name": row.name,
            "start_time": row.start_time.strftime("%H:%M"),
            "end_time": row.end_time.strftime("%H:%M"),
            "grace_in": row.grace_in or 0,
            "grace_out": row.grace_out or 0,
            "is_active": True if row.is_active is None else row.is_active,
        }


class LeaveTypeRow(ImportRow):
    name: Text = None
    annual_quota: Number = None
    encashable: Flag = None
    carry_forward_limit: Number = None
    is_active: Flag = None


class LeaveTypesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="leave_types",
        model=LeaveTypeModel,
        natural_key="name",
        schema=LeaveTypeRow,
        required=("name", "annual_quota", "encashable", "carry_forward_limit"),
        chunk_size=100,
    )

    async def to_values(self, ctx, row: LeaveTypeRow, refs):
        _non_negative(row, "annual_quota", "carry_forward_limit")
        return {
            "name": row.name,
            "annual_quota": row.annual_quota,
            "encashable": row.encashable,
            "carry_forward_limit": row.carry_forward_limit,
            "is_active": True if row.is_active is None else row.is_active,
        }


class HolidayRow(ImportRow):
    from_date: Day = None
    to_date: Day = None
    note: Text = None
    recurring: Flag = None
    region: Text = None
    is_approved: Flag = None


class HolidaysImporter(Importer):
    """Holidays have no natural key; every row is a new record for the acting user."""

    descriptor = ImportDescriptor(
        entity="holidays",
        model=HolidayModel,
        natural_key=None,
        schema=HolidayRow,
        required=("from_date", "to_date"),
        mode="each_row",
        chunk_size=100,
        key_required=False,
    )

    async def to_values(self, ctx, row: HolidayRow, refs):
        if row.to_date < row.from_date:
            raise RowSkipped("to_date: must be on or after from_date")
        return {
            "user_id": ctx.user_id,
            "from_date": row.from_date,
            "to_date": row.to_date,
            "note": row.note,
            "recurring": bool(row.recurring),
            "region": row.region,
            "is_approved": bool(row.is_approved),
        }


class AttendanceRow(ImportRow):
    date: Day = None
    employee_id: Integer = None
    checkin: Clock = None
    checkout: Clock = None
    status: Text = None
    note: Text = None


def attendance_status(status: Optional[str], checkin: time, expected: time) -> str:
    """The given status, or present/late from the check-in time when blank."""
    if status:
        return status.lower()
    return "present" if checkin <= expected else "late"


class AttendancesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="attendances",
        model=AttendanceModel,
        natural_key=None,
        schema=AttendanceRow,
        required=("date", "employee_id", "checkin"),
        mode="each_row",
        chunk_size=100,
        key_required=False,
        dependencies={"employee_id": _by_id(EmployeeModel, "employee_id")},
    )

    async def prepare(self, ctx):
        checkin = (
            await ctx.session.execute(
                select(HrmSettingModel.checkin).order_by(HrmSettingModel.id.desc()).limit(1)
            )
        ).scalar_one_or_none()
        ctx.lookups["expected_checkin"] = datetime.strptime(
            checkin or DEFAULT_CHECKIN, "%H:%M:%S"
        ).time()

    async def to_values(self, ctx, row: AttendanceRow, refs):
        if row.status and row.status.lower() not in ATTENDANCE_STATUSES:
            raise RowSkipped(f"status: must be one of {', '.join(ATTENDANCE_STATUSES)}")
        return {
            "date": row.date,
            "employee_id": refs["employee_id"],
            "user_id": ctx.user_id,
            "checkin": row.checkin.strftime("%H:%M:%S"),
            "checkout": row.checkout.strftime("%H:%M:%S") if row.checkout else None,
            "status": attendance_status(
                row.status, row.checkin, ctx.lookups["expected_checkin"]
            ),
            "note": row.note,
        }


class OvertimeRow(ImportRow):
    employee_id: Integer = None
    date: Day = None
    hours: Number = None
    status: Text = None


def overtime_amount(monthly_salary: float, hours: float) -> float:
    """Hourly rate from a 30-day month of 8-hour days, times `hours`."""
    return monthly_salary / 30 / 8 * hours


class OvertimesImporter(Importer):
    descriptor = ImportDescriptor(
        entity="overtimes",
        model=OvertimeModel,
        natural_key=None,
        schema=OvertimeRow,
        required=("employee_id", "date", "hours"),
        mode="each_row",
        chunk_size=100,
        key_required=False,
        dependencies={"employee_id": _by_id(EmployeeModel, "employee_id")},
    )

    async def to_values(self, ctx, row: OvertimeRow, refs):
        _non_negative(row, "hours")
        if row.status and row.status not in OVERTIME_STATUSES:
            raise RowSkipped(f"status: must be one of {', '.join(OVERTIME_STATUSES)}")
        employee = await ctx.session.get(EmployeeModel, refs["employee_id"])
        return {
            "employee_id": employee.id,
            "date": row.date,
            "hours": row.hours,
            "amount": overtime_amount(employee.basic_salary or 0.0, row.hours),
            "status": row.status or "Pending",
            "approved_by": ctx.user_id,
        }


class PayrollRow(ImportRow):
    reference_no: Text = None
    employee_id: Integer = None
    account_id: Integer = None
    amount: Number = None
    paying_method: Text = None
    note: Text = None
    status: Text = None
    month: Text = None


def payroll_reference(today: date) -> str:
    """`PR-YYYYMMDD-xxxxx` with a random alphanumeric suffix."""
    alphabet = string.ascii_letters + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(5))
    return f"PR-{today:%Y%m%d}-{suffix}"


class PayrollsImporter(Importer):
    """Payrolls upsert on reference number; rows without one get a generated reference."""

    descriptor = ImportDescriptor(
        entity="payrolls",
        model=PayrollModel,
        natural_key="reference_no",
        schema=PayrollRow,
        required=("employee_id", "account_id", "amount", "paying_method", "month"),
        chunk_size=100,
        key_required=False,
        dependencies={
            "employee_id": _by_id(EmployeeModel, "employee_id"),
            "account_id": _by_id(AccountModel, "account_id"),
        },
    )

    async def to_values(self, ctx, row: PayrollRow, refs):
        _non_negative(row, "amount")
        return {
            "reference_no": row.reference_no or payroll_reference(date.today()),
            **refs,
            "user_id": ctx.user_id,
            "amount": row.amount,
            "paying_method": row.paying_method,
            "note": row.note,
            "status": row.status or "draft",
            "month": row.month,
        }


# ── Access ──


class PermissionRow(ImportRow):
    name: Text = None
    guard_name: Text = None
    module: Text = None


class PermissionsImporter(Importer):
    """Permissions are unique per (name, guard); the module is derived
    from the name unless the sheet gives one."""

    descriptor = ImportDescriptor(
        entity="permissions",
        model=PermissionModel,
        natural_key="name",
        schema=PermissionRow,
        mode="each_row",
        chunk_size=100,
    )

    async def handle_row(self, ctx, row: PermissionRow, refs):
        service = PermissionService(guard=row.guard_name or DEFAULT_GUARD)
        await service.ensure_permissions(ctx.session, [row.name])
        if row.module:
            permission = (
                await ctx.session.execute(
                    select(PermissionModel).where(
                        PermissionModel.name == row.name,
                        PermissionModel.guard_name == service.guard,
                    )
                )
            ).scalar_one()
            permission.module = row.module
            await ctx.session.flush()


# ── People ──


class CustomerRow(ImportRow):
    name: Text = None
    customer_group: Text = _alias("customer_group", "customergroup")
    company_name: Text = _alias("company_name", "companyname")
    email: Text = None
    phone_number: Text = _alias("phone_number", "phonenumber")
    address: Text = None
    country: Text = None
    state: Text = None
    city: Text = None
    postal_code: Text = _alias("postal_code", "postalcode")
    deposit: Number = None


class CustomersImporter(Importer):
    """Customers upsert on phone number; rows without one are always new.

    Every active generic discount plan is attached to each imported
    customer, and a positive deposit is recorded against the acting user.
    """

    descriptor = ImportDescriptor(
        entity="customers",
        model=CustomerModel,
        natural_key="phone_number",
        schema=CustomerRow,
        required=("name",),
        mode="each_row",
        key_required=False,
        dependencies={
            "customer_group": Reference(
                CustomerGroupModel, "customer_group_id", where={"is_active": True}
            ),
            **_geo_references(),
        },
    )

    async def prepare(self, ctx):
        plans = await ctx.session.execute(
            select(DiscountPlanModel.id).where(
                DiscountPlanModel.is_active.is_(True),
                DiscountPlanModel.type == DISCOUNT_PLAN_GENERIC,
            )
        )
        ctx.lookups["generic_plans"] = list(plans.scalars().all())

    async def to_values(self, ctx, row: CustomerRow, refs):
        return {
            "customer_group_id": refs["customer_group_id"],
            "name": row.name,
            "company_name": row.company_name,
            "email": row.email,
            "phone_number": row.phone_number,
            "address": row.address,
            "country_id": refs["country_id"],
            "state_id": refs["state_id"],
            "city_id": refs["city_id"],
            "postal_code": row.postal_code,
            "deposit": row.deposit or 0.0,
            "is_active": True,
        }

    async def handle_row(self, ctx, row: CustomerRow, refs):
        session = ctx.session
        customer = await upsert_one(
            session, CustomerModel, "phone_number", await self.to_values(ctx, row, refs)
        )

        if ctx.lookups["generic_plans"]:
            linked = await session.execute(
                select(DiscountPlanCustomerModel.discount_plan_id).where(
                    DiscountPlanCustomerModel.customer_id == customer.id
                )
            )
            already = set(linked.scalars().all())
            for plan_id in ctx.lookups["generic_plans"]:
                if plan_id not in already:
                    session.add(
                        DiscountPlanCustomerModel(discount_plan_id=plan_id, customer_id=customer.id)
                    )

        if customer.deposit > 0 and ctx.user_id is not None:
            session.add(
                DepositModel(
                    customer_id=customer.id,
                    user_id=ctx.user_id,
                    amount=customer.deposit,
                    note=DEPOSIT_NOTE,
                )
            )
        await session.flush()


class SupplierRow(ImportRow):
    company_name: Text = _alias("company_name", "companyname")
    name: Text = None
    vat_number: Text = _alias("vat_number", "vatnumber")
    email: Text = None
    phone_number: Text = _alias("phone_number", "phonenumber")
    address: Text = None
    country_id: Integer = None
    state_id: Integer = None
    city_id: Integer = None
    country: Text = None
    state: Text = None
    city: Text = None
    postal_code: Text = _alias("postal_code", "postalcode")


class SuppliersImporter(Importer):
    descriptor = ImportDescriptor(
        entity="suppliers",
        model=SupplierModel,
        natural_key="company_name",
        schema=SupplierRow,
        mode="each_row",
        dependencies=_geo_references(),
    )

    async def to_values(self, ctx, row: SupplierRow, refs):
        # Explicit id columns win over names.
        return {
            "company_name": row.company_name,
            "name": row.name or row.company_name,
            "vat_number": row.vat_number,
            "email": row.email,
            "phone_number": row.phone_number,
            "address": row.address,
            "country_id": row.country_id or refs["country_id"],
            "state_id": row.state_id or refs["state_id"],
            "city_id": row.city_id or refs["city_id"],
            "postal_code": row.postal_code,
            "is_active": True,
        }


class BillerRow(ImportRow):
    company_name: Text = _alias("company_name", "companyname")
    name: Text = None
    vat_number: Text = _alias("vat_number", "vatnumber")
    email: Text = None
    phone_number: Text = _alias("phone_number", "phonenumber")
    address: Text = None
    city: Text = None
    state: Text = None
    postal_code: Text = _alias("postal_code", "postalcode")
    country: Text = None


class BillersImporter(Importer):
    descriptor = ImportDescriptor(
        entity="billers",
        model=BillerModel,
        natural_key="company_name",
        schema=BillerRow,
        mode="each_row",
    )

    async def to_values(self, ctx, row: BillerRow, refs):
        return {
            "company_name": row.company_name,
            "name": row.name or row.company_name,
            "vat_number": row.vat_number,
            "email": row.email,
            "phone_number": row.phone_number,
            "address": row.address,
            "city": row.city,
            "state": row.state,
            "postal_code": row.postal_code,
            "country": row.country,
            "is_active": True,
        }


# ── Products ──


class ProductRow(ImportRow):
    code: Text = None
    name: Text = None
    type: Text = None
    brand: Text = None
    category: Text = None
    unit_code: Text = _alias("unit_code", "unitcode")
    cost: Number = None
    price: Number = None
    profit_margin: Number = _alias("profit_margin", "profitmargin")
    product_details: Text = _alias("product_details", "productdetails")
    variant_name: Text = _alias("variant_name", "variantname")
    variant_value: Text = _alias("variant_value", "variantvalue")
    item_code: Text = _alias("item_code", "itemcode")
    additional_cost: Text = _alias("additional_cost", "additionalcost")
    additional_price: Text = _alias("additional_price", "additionalprice")


def product_pricing(
    cost: Optional[float], price: Optional[float], margin: Optional[float]
) -> tuple[float, float, float]:
    """(cost, price, profit_margin) with the import defaults applied.

    A given price wins and fixes the margin; otherwise the price is derived
    from the margin, which defaults to 25%.
    """
    cost = cost or 0.0
    if price is not None:
        margin = (price - cost) / cost * 100 if cost > 0 else DEFAULT_PROFIT_MARGIN
        return cost, price, margin
    if margin is not None:
        return cost, cost * (1 + margin / 100), margin
    return cost, cost * (1 + DEFAULT_PROFIT_MARGIN / 100), DEFAULT_PROFIT_MARGIN


def parse_variant_value(raw: str) -> tuple[list[str], list[str]]:
    """`Size[S/M/L],Color[Red/Blue]` -> (["Size", "Color"], ["S,M,L", "Red,Blue"])."""
    options, values = [], []
    for option, choices in _VARIANT_GROUP.findall(raw):
        options.append(option.strip())
        values.append(choices.replace("/", ","))
    return options, values


def _split(raw: Optional[str]) -> list[str]:
    return [item.strip() for item in raw.split(",")] if raw else []


def _float_at(items: list[str], index: int) -> float:
    try:
        return float(items[index])
    except (IndexError, ValueError):
        return 0.0


class ProductsImporter(Importer):
    """Products with their brand, category, variants and warehouse rows.

    Brands and categories are created on first sight; an unknown unit code
    skips the row.
    """

    descriptor = ImportDescriptor(
        entity="products",
        model=ProductModel,
        natural_key="code",
        schema=ProductRow,
        required=("code", "name", "category", "unit_code"),
        mode="each_row",
        dependencies={
            "brand": Reference(
                BrandModel,
                "brand_id",
                on_missing="create",
                where={"is_active": True},
                ignore=("N/A",),
                defaults=_slug_defaults,
            ),
            "category": Reference(
                CategoryModel,
                "category_id",
                on_missing="create",
                where={"is_active": True},
                defaults=_slug_defaults,
            ),
            "unit_code": Reference(UnitModel, "unit_id", lookup="code", on_missing="skip"),
        },
    )

    async def prepare(self, ctx):
        warehouses = await ctx.session.execute(
            select(WarehouseModel.id).where(WarehouseModel.is_active.is_(True))
        )
        ctx.lookups["warehouses"] = list(warehouses.scalars().all())

    async def to_values(self, ctx, row: ProductRow, refs):
        unit_id = refs["unit_id"]
        product_type = (row.type or "standard").lower()
        cost, price, margin = product_pricing(row.cost, row.price, row.profit_margin)
        return {
            "code": row.code,
            "name": row.name,
            "type": product_type if product_type in PRODUCT_TYPES else "standard",
            "barcode_symbology": "C128",
            "brand_id": refs["brand_id"],
            "category_id": refs["category_id"],
            "unit_id": unit_id,
            "purchase_unit_id": unit_id,
            "sale_unit_id": unit_id,
            "cost": cost,
            "price": price,
            "profit_margin": margin,
            "tax_method": 1,
            "qty": 0.0,
            "product_details": row.product_details,
            "is_active": True,
        }

    async def handle_row(self, ctx, row: ProductRow, refs):
        session = ctx.session
        product = await upsert_one(
            session, ProductModel, "code", await self.to_values(ctx, row, refs)
        )
        if not product.slug:
            product.slug = slugify(row.name)

        options, values = parse_variant_value(row.variant_value or "")
        names = _split(row.variant_name)
        if options and names:
            product.variant_option = options
            product.variant_value = values
            product.is_variant = True
            await session.flush()
            await self._add_variants(ctx, product, row, names)
        else:
            await session.flush()
            await self._add_warehouse_rows(ctx, product.id, None)

    async def _add_variants(self, ctx, product, row: ProductRow, names: list[str]):
        session = ctx.session
        item_codes = _split(row.item_code)
        costs = _split(row.additional_cost)
        prices = _split(row.additional_price)
        for index, name in enumerate(names):
            variant = (
                await session.execute(select(VariantModel).where(VariantModel.name == name))
            ).scalar_one_or_none()
            if variant is None:
                variant = VariantModel(name=name)
                session.add(variant)
                await session.flush()

            exists = (
                await session.execute(
                    select(ProductVariantModel.id).where(
                        ProductVariantModel.product_id == product.id,
                        ProductVariantModel.variant_id == variant.id,
                    )
                )
            ).scalar_one_or_none()
            if exists is None:
                item_code = item_codes[index] if index < len(item_codes) and item_codes[index] else None
                session.add(
                    ProductVariantModel(
                        product_id=product.id,
                        variant_id=variant.id,
                        position=index + 1,
                        item_code=item_code or f"{variant.name}-{product.code}",
                        additional_cost=_float_at(costs, index),
                        additional_price=_float_at(prices, index),
                        qty=0.0,
                    )
                )
            await self._add_warehouse_rows(ctx, product.id, variant.id)

    async def _add_warehouse_rows(self, ctx, product_id: int, variant_id: Optional[int]):
        session = ctx.session
        existing = await session.execute(
            select(ProductWarehouseModel.warehouse_id).where(
                ProductWarehouseModel.product_id == product_id,
                ProductWarehouseModel.variant_id.is_(None)
                if variant_id is None
                else ProductWarehouseModel.variant_id == variant_id,
            )
        )
        present = set(existing.scalars().all())
        for warehouse_id in ctx.lookups["warehouses"]:
            if warehouse_id not in present:
                session.add(
                    ProductWarehouseModel(
                        product_id=product_id,
                        variant_id=variant_id,
                        warehouse_id=warehouse_id,
                        qty=0.0,
                    )
                )
        await session.flush()


IMPORTERS: dict[str, type[Importer]] = {
    cls.descriptor.entity: cls
    for cls in (
        CountriesImporter,
        StatesImporter,
        CitiesImporter,
        CurrenciesImporter,
        UnitsImporter,
        EmployeesImporter,
        SaleAgentsImporter,
        ShiftsImporter,
        LeaveTypesImporter,
        HolidaysImporter,
        AttendancesImporter,
        OvertimesImporter,
        PayrollsImporter,
        PermissionsImporter,
        CustomersImporter,
        SuppliersImporter,
        BillersImporter,
        ProductsImporter,
    )
}


def get_importer(entity: str) -> Importer:
    try:
        return IMPORTERS[entity]()
    except KeyError:
        raise UnknownImportError(f"No importer for '{entity}'") from None
