"""Tests for the per-entity importers."""

from dataclasses import replace
from datetime import date, time

import pytest
from sqlalchemy import select

from retailhub.access.models import PermissionModel, UserModel
from retailhub.access.service import resolve_module
from retailhub.catalog.models import (
    BrandModel,
    CategoryModel,
    ProductModel,
    ProductVariantModel,
    ProductWarehouseModel,
    UnitModel,
    WarehouseModel,
)
from retailhub.common.database import DatabaseManager
from retailhub.common.exceptions import UnknownImportError
from retailhub.common.models import TenantBase
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
from retailhub.imports.base import ImportPipeline
from retailhub.imports.importers import (
    DEPOSIT_NOTE,
    IMPORTERS,
    CustomersImporter,
    attendance_status,
    get_importer,
    overtime_amount,
    parse_variant_value,
    payroll_reference,
    product_pricing,
)
from retailhub.people.models import (
    DISCOUNT_PLAN_LIMITED,
    AccountModel,
    BillerModel,
    CustomerGroupModel,
    CustomerModel,
    DepositModel,
    DiscountPlanCustomerModel,
    DiscountPlanModel,
    SupplierModel,
)


@pytest.fixture
async def db():
    manager = DatabaseManager("sqlite+aiosqlite://", TenantBase)
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
async def geo(db):
    async with db.get_session() as session:
        us = CountryModel(iso2="US", name="United States")
        session.add(us)
        await session.flush()
        ca = StateModel(name="California", country_id=us.id, country_code="US", state_code="CA")
        session.add(ca)
        await session.flush()
        session.add(CityModel(
            name="Los Angeles", country_id=us.id, state_id=ca.id,
            country_code="US", state_code="CA",
        ))
        return {"country": us.id, "state": ca.id}


async def run(db, entity: str, rows: list[dict], user_id=None):
    async with db.get_session() as session:
        return await ImportPipeline(get_importer(entity)).run(session, rows, user_id=user_id)


async def fetch_all(db, model):
    async with db.get_session() as session:
        return (await session.execute(select(model).order_by(model.id))).scalars().all()


class TestRegistry:
    def test_known_entities(self):
        assert set(IMPORTERS) == {
            "countries", "states", "cities", "currencies", "units",
            "employees", "sale_agents", "shifts", "leave_types", "holidays",
            "attendances", "overtimes", "payrolls", "permissions",
            "customers", "suppliers", "billers", "products",
        }

    def test_unknown_entity(self):
        with pytest.raises(UnknownImportError):
            get_importer("planets")


class TestGeography:
    async def test_state_with_unknown_country_skipped(self, db, geo):
        result = await run(db, "states", [
            {"name": "Nevada", "country_code": "US", "state_code": "NV"},
            {"name": "Atlantis", "country_code": "XX", "state_code": "AT"},
        ])
        assert result.imported == 1
        assert result.errors[0].row == 3
        assert "XX" in result.errors[0].messages[0]

    async def test_city_resolves_state_within_country(self, db, geo):
        result = await run(db, "cities", [
            {"name": "San Diego", "country_code": "US", "state_code": "CA"},
            {"name": "Lost City", "country_code": "ZZ", "state_code": "CA"},
            {"name": "Reno", "country_code": "US", "state_code": "NV"},
        ])
        assert (result.imported, result.skipped) == (1, 2)
        cities = {c.name: c for c in await fetch_all(db, CityModel)}
        assert cities["San Diego"].state_id == geo["state"]
        assert "Lost City" not in cities

    async def test_currency_defaults(self, db, geo):
        result = await run(db, "currencies", [
            {"code": "USD", "name": "US Dollar", "country_code": "US", "symbol": "$"},
            {"code": "XXX", "name": "Nothing", "country_code": "QQ"},
        ])
        assert (result.imported, result.skipped) == (1, 1)
        currency = (await fetch_all(db, CurrencyModel))[0]
        assert currency.country_id == geo["country"]
        assert currency.precision == 2
        assert currency.symbol_first is True
        assert (currency.decimal_mark, currency.thousands_separator) == (".", ",")


class TestUnits:
    async def test_base_unit_defined_earlier_in_file(self, db):
        result = await run(db, "units", [
            {"code": "pc", "name": "Piece"},
            {"code": "dz", "name": "Dozen", "baseunit": "pc", "operationvalue": "12"},
            {"code": "bx", "name": "Box", "base_unit": "crate"},
        ])
        assert result.imported == 3
        units = {u.code: u for u in await fetch_all(db, UnitModel)}
        assert units["pc"].base_unit is None
        assert units["pc"].operator is None
        assert units["pc"].operation_value is None
        assert units["dz"].base_unit == units["pc"].id
        assert units["dz"].operator == "*"
        assert units["dz"].operation_value == 12.0
        # Unknown base unit leaves the conversion empty
        assert units["bx"].base_unit is None
        assert units["bx"].operation_value is None


class TestEmployees:
    async def test_unknown_references_skip_row(self, db):
        async with db.get_session() as session:
            for model in (DepartmentModel, DesignationModel, ShiftModel):
                session.add(model(name="Default"))
        result = await run(db, "employees", [
            {"staff_id": "E1", "name": "Ann", "department_id": "1",
             "designation_id": "1", "shift_id": "1"},
            {"staff_id": "E2", "name": "Bob", "department_id": "9",
             "designation_id": "1", "shift_id": "7"},
        ])
        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].messages == [
            "department_id: '9' not found in departments",
            "shift_id: '7' not found in shifts",
        ]
        employees = await fetch_all(db, EmployeeModel)
        assert [e.staff_id for e in employees] == ["E1"]
        assert employees[0].is_active is True


class TestCustomers:
    @pytest.fixture
    async def prepared(self, db, geo):
        async with db.get_session() as session:
            session.add(CustomerGroupModel(name="Retail"))
            generic = DiscountPlanModel(name="Everyone")
            session.add(generic)
            session.add(DiscountPlanModel(name="VIP", type=DISCOUNT_PLAN_LIMITED))
            user = UserModel(name="Admin", username="admin", email="a@example.com", password="x")
            session.add(user)
            await session.flush()
            return {"plan": generic.id, "user": user.id}

    async def test_group_geo_plans_and_deposit(self, db, prepared, geo):
        result = await run(db, "customers", [
            {"name": "Walk In", "customergroup": "Retail", "phonenumber": "555",
             "country": "United States", "state": "California", "city": "Los Angeles",
             "deposit": "100"},
        ], user_id=prepared["user"])
        assert result.imported == 1

        customer = (await fetch_all(db, CustomerModel))[0]
        assert customer.customer_group_id is not None
        assert customer.country_id == geo["country"]
        assert customer.state_id == geo["state"]
        assert customer.city_id is not None

        links = await fetch_all(db, DiscountPlanCustomerModel)
        assert [link.discount_plan_id for link in links] == [prepared["plan"]]

        deposits = await fetch_all(db, DepositModel)
        assert len(deposits) == 1
        assert deposits[0].amount == 100.0
        assert deposits[0].user_id == prepared["user"]
        assert deposits[0].note == DEPOSIT_NOTE

    async def test_unknown_group_leaves_reference_empty(self, db, prepared):
        result = await run(db, "customers", [{"name": "Jo", "customer_group": "Wholesale"}])
        assert result.imported == 1
        customer = (await fetch_all(db, CustomerModel))[0]
        assert customer.customer_group_id is None
        assert customer.country_id is None

    async def test_no_deposit_without_user(self, db, prepared):
        await run(db, "customers", [{"name": "Jo", "deposit": "50"}])
        assert await fetch_all(db, DepositModel) == []

    async def test_phone_number_upserts(self, db, prepared):
        await run(db, "customers", [{"name": "Jo", "phone_number": "555"}])
        await run(db, "customers", [
            {"name": "Joanna", "phone_number": "555"},
            {"name": "No Phone"},
            {"name": "No Phone"},
        ])
        customers = await fetch_all(db, CustomerModel)
        assert [c.name for c in customers] == ["Joanna", "No Phone", "No Phone"]
        # Plans are not attached twice on re-import
        links = await fetch_all(db, DiscountPlanCustomerModel)
        assert len(links) == 3

    async def test_group_policy_set_by_descriptor(self, db, prepared):
        dependencies = CustomersImporter.descriptor.dependencies

        class MemberCustomersImporter(CustomersImporter):
            descriptor = replace(
                CustomersImporter.descriptor,
                dependencies={
                    **dependencies,
                    "customer_group": replace(
                        dependencies["customer_group"], on_missing="skip"
                    ),
                },
            )

        async with db.get_session() as session:
            result = await ImportPipeline(MemberCustomersImporter()).run(session, [
                {"name": "Jo", "customer_group": "Wholesale"},
                {"name": "Al", "customer_group": "Retail"},
            ])
        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].messages == [
            "customer_group: 'Wholesale' not found in customer_groups"
        ]
        assert [c.name for c in await fetch_all(db, CustomerModel)] == ["Al"]


class TestSuppliersAndBillers:
    async def test_supplier_geo_by_name(self, db, geo):
        result = await run(db, "suppliers", [
            {"companyname": "Acme Supply", "country": "United States", "state": "California"},
        ])
        assert result.imported == 1
        supplier = (await fetch_all(db, SupplierModel))[0]
        assert supplier.name == "Acme Supply"
        assert supplier.country_id == geo["country"]
        assert supplier.state_id == geo["state"]
        assert supplier.city_id is None

    async def test_biller_requires_company(self, db):
        result = await run(db, "billers", [
            {"company_name": "Front Desk", "name": "Main"},
            {"name": "Nameless"},
        ])
        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].messages == ["company_name: field required"]
        assert [b.company_name for b in await fetch_all(db, BillerModel)] == ["Front Desk"]


class TestProducts:
    @pytest.fixture
    async def catalog(self, db):
        async with db.get_session() as session:
            session.add(UnitModel(code="pc", name="Piece"))
            session.add(WarehouseModel(name="Main"))
            session.add(WarehouseModel(name="Annex"))
            session.add(WarehouseModel(name="Closed", is_active=False))

    async def test_simple_product(self, db, catalog):
        result = await run(db, "products", [
            {"code": "1001", "name": "Blue Mug", "brand": "Acme", "category": "Kitchen",
             "unitcode": "pc", "cost": "10"},
        ])
        assert result.imported == 1
        product = (await fetch_all(db, ProductModel))[0]
        assert product.slug == "blue-mug"
        assert product.type == "standard"
        assert product.price == pytest.approx(12.5)
        assert product.profit_margin == 25.0
        assert [b.name for b in await fetch_all(db, BrandModel)] == ["Acme"]
        assert [c.name for c in await fetch_all(db, CategoryModel)] == ["Kitchen"]
        rows = await fetch_all(db, ProductWarehouseModel)
        assert len(rows) == 2
        assert all(r.variant_id is None for r in rows)

    async def test_brand_not_applicable(self, db, catalog):
        await run(db, "products", [
            {"code": "1", "name": "Thing", "brand": "N/A", "category": "Misc", "unit_code": "pc"},
        ])
        assert await fetch_all(db, BrandModel) == []
        assert (await fetch_all(db, ProductModel))[0].brand_id is None

    async def test_unknown_unit_skips_row(self, db, catalog):
        result = await run(db, "products", [
            {"code": "1", "name": "Thing", "category": "Misc", "unit_code": "kg"},
        ])
        assert result.skipped == 1
        assert "kg" in result.errors[0].messages[0]
        assert await fetch_all(db, ProductModel) == []

    async def test_variants(self, db, catalog):
        await run(db, "products", [
            {"code": "T1", "name": "Tee", "category": "Apparel", "unit_code": "pc",
             "variant_name": "S, M", "variant_value": "Size[S/M]",
             "item_code": "TEE-S", "additional_price": "0,2.5"},
        ])
        product = (await fetch_all(db, ProductModel))[0]
        assert product.is_variant is True
        assert product.variant_option == ["Size"]
        assert product.variant_value == ["S,M"]
        variants = await fetch_all(db, ProductVariantModel)
        assert [v.item_code for v in variants] == ["TEE-S", "M-T1"]
        assert [v.additional_price for v in variants] == [0.0, 2.5]
        assert [v.position for v in variants] == [1, 2]
        # One row per variant per active warehouse
        assert len(await fetch_all(db, ProductWarehouseModel)) == 4

    async def test_reimport_does_not_duplicate(self, db, catalog):
        row = {"code": "1", "name": "Thing", "category": "Misc", "unit_code": "pc"}
        await run(db, "products", [row])
        await run(db, "products", [{**row, "name": "Thing 2", "price": "9"}])
        products = await fetch_all(db, ProductModel)
        assert len(products) == 1
        assert products[0].name == "Thing 2"
        assert products[0].price == 9.0
        assert len(await fetch_all(db, ProductWarehouseModel)) == 2
        assert len(await fetch_all(db, CategoryModel)) == 1


class TestHrm:
    @pytest.fixture
    async def staff(self, db):
        async with db.get_session() as session:
            department = DepartmentModel(name="Sales")
            designation = DesignationModel(name="Clerk")
            shift = ShiftModel(name="Day")
            session.add_all([department, designation, shift])
            session.add(HrmSettingModel(checkin="09:00:00"))
            session.add(AccountModel(account_no="1001", name="Payroll"))
            user = UserModel(name="Admin", username="admin", email="hr@example.com", password="x")
            session.add(user)
            await session.flush()
            employee = EmployeeModel(
                staff_id="E1", name="Ann", department_id=department.id,
                designation_id=designation.id, shift_id=shift.id, basic_salary=3000.0,
            )
            session.add(employee)
            await session.flush()
            return {"department": department.id, "employee": employee.id, "user": user.id}

    async def test_shift_times_and_grace_defaults(self, db):
        result = await run(db, "shifts", [
            {"name": "Morning", "start_time": "9:00 am", "end_time": "17:30"},
            {"name": "Night", "start_time": "22:00", "end_time": "06:00", "grace_in": "-5"},
            {"name": "Broken", "start_time": "later", "end_time": "06:00"},
        ])
        assert (result.imported, result.skipped) == (1, 2)
        assert result.errors[0].messages == ["grace_in: must be at least 0"]
        assert result.errors[1].messages[0].startswith("start_time:")
        shift = (await fetch_all(db, ShiftModel))[0]
        assert (shift.start_time, shift.end_time) == ("09:00", "17:30")
        assert (shift.grace_in, shift.grace_out) == (0, 0)
        assert shift.is_active is True

    async def test_shift_reimport_updates_by_name(self, db):
        await run(db, "shifts", [{"name": "Day", "start_time": "08:00", "end_time": "16:00"}])
        await run(db, "shifts", [
            {"name": "Day", "start_time": "08:30", "end_time": "16:30", "grace_in": "10"},
        ])
        shifts = await fetch_all(db, ShiftModel)
        assert len(shifts) == 1
        assert (shifts[0].start_time, shifts[0].grace_in) == ("08:30", 10)

    async def test_leave_types(self, db):
        result = await run(db, "leave_types", [
            {"name": "Annual", "annual_quota": "20", "encashable": "true",
             "carry_forward_limit": "5"},
            {"name": "Sick", "annual_quota": "10", "carry_forward_limit": "0"},
        ])
        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].messages == ["encashable: field required"]
        leave = (await fetch_all(db, LeaveTypeModel))[0]
        assert (leave.annual_quota, leave.encashable, leave.carry_forward_limit) == (20.0, True, 5.0)

    async def test_holidays_inserted_for_acting_user(self, db, staff):
        result = await run(db, "holidays", [
            {"from_date": "2026-12-24", "to_date": "2026-12-26", "note": "Winter"},
            {"from_date": "2026-12-24", "to_date": "2026-12-26", "note": "Winter"},
            {"from_date": "2026-05-02", "to_date": "2026-05-01"},
        ], user_id=staff["user"])
        assert (result.imported, result.skipped) == (2, 1)
        assert result.errors[0].messages == ["to_date: must be on or after from_date"]
        holidays = await fetch_all(db, HolidayModel)
        assert holidays[0].from_date == date(2026, 12, 24)
        assert holidays[0].user_id == staff["user"]
        assert holidays[0].recurring is False

    async def test_attendance_status_from_checkin(self, db, staff):
        employee = str(staff["employee"])
        result = await run(db, "attendances", [
            {"date": "2026-03-02", "employee_id": employee, "checkin": "08:55"},
            {"date": "2026-03-03", "employee_id": employee, "checkin": "09:20",
             "checkout": "17:00"},
            {"date": "2026-03-04", "employee_id": employee, "checkin": "10:00",
             "status": "Absent"},
            {"date": "2026-03-05", "employee_id": employee, "checkin": "09:00",
             "status": "holiday"},
            {"date": "2026-03-05", "employee_id": "999", "checkin": "09:00"},
        ])
        assert (result.imported, result.skipped) == (3, 2)
        assert result.errors[0].messages == ["status: must be one of present, late, absent"]
        assert result.errors[1].messages == ["employee_id: '999' not found in employees"]
        rows = await fetch_all(db, AttendanceModel)
        assert [a.status for a in rows] == ["present", "late", "absent"]
        assert rows[1].checkin == "09:20:00"
        assert rows[1].checkout == "17:00:00"

    async def test_overtime_amount_from_salary(self, db, staff):
        result = await run(db, "overtimes", [
            {"employee_id": str(staff["employee"]), "date": "2026-03-02", "hours": "4"},
        ], user_id=staff["user"])
        assert result.imported == 1
        overtime = (await fetch_all(db, OvertimeModel))[0]
        assert overtime.amount == pytest.approx(50.0)
        assert overtime.status == "Pending"
        assert overtime.approved_by == staff["user"]

    async def test_payroll_reference_generated(self, db, staff):
        row = {"employee_id": str(staff["employee"]), "account_id": "1", "amount": "2500",
               "paying_method": "Bank", "month": "2026-03"}
        result = await run(db, "payrolls", [
            row,
            {**row, "reference_no": "PR-FIXED"},
            {**row, "account_id": "42"},
        ])
        assert (result.imported, result.skipped) == (2, 1)
        assert result.errors[0].messages == ["account_id: '42' not found in accounts"]
        payrolls = await fetch_all(db, PayrollModel)
        assert payrolls[0].reference_no.startswith("PR-")
        assert payrolls[1].reference_no == "PR-FIXED"
        assert payrolls[0].status == "draft"

    async def test_sale_agents(self, db, staff):
        result = await run(db, "sale_agents", [
            {"name": "Rep One", "department_id": str(staff["department"]),
             "designation_id": "77", "sale_commission_percent": "2.5"},
            {"name": "Rep Two"},
        ])
        assert (result.imported, result.skipped) == (1, 1)
        assert result.errors[0].messages == ["department_id: field required"]
        agent = (await fetch_all(db, EmployeeModel))[-1]
        assert agent.is_sale_agent is True
        assert agent.staff_id is None
        assert agent.designation_id is None
        assert agent.sale_commission_percent == 2.5


class TestPermissions:
    async def test_permissions_unique_per_guard(self, db):
        result = await run(db, "permissions", [
            {"name": "reports-export"},
            {"name": "reports-export", "module": "analytics"},
            {"name": "reports-export", "guard_name": "api"},
        ])
        assert result.imported == 3
        permissions = await fetch_all(db, PermissionModel)
        assert [(p.name, p.guard_name) for p in permissions] == [
            ("reports-export", "web"), ("reports-export", "api"),
        ]
        assert permissions[0].module == "analytics"
        assert permissions[1].module == resolve_module("reports-export")


class TestHelpers:
    def test_pricing_from_price(self):
        assert product_pricing(80.0, 100.0, None) == (80.0, 100.0, 25.0)

    def test_pricing_from_margin(self):
        cost, price, margin = product_pricing(100.0, None, 40.0)
        assert price == pytest.approx(140.0)
        assert margin == 40.0

    def test_pricing_zero_cost_with_price(self):
        assert product_pricing(None, 5.0, None) == (0.0, 5.0, 25.0)

    def test_parse_variant_value(self):
        assert parse_variant_value("Size[S/M/L],Color[Red/Blue]") == (
            ["Size", "Color"], ["S,M,L", "Red,Blue"],
        )
        assert parse_variant_value("") == ([], [])

    def test_attendance_status(self):
        assert attendance_status(None, time(8, 59), time(9, 0)) == "present"
        assert attendance_status(None, time(9, 1), time(9, 0)) == "late"
        assert attendance_status("Absent", time(8, 0), time(9, 0)) == "absent"

    def test_overtime_amount(self):
        assert overtime_amount(2400.0, 1.0) == pytest.approx(10.0)

    def test_payroll_reference(self):
        reference = payroll_reference(date(2026, 3, 1))
        assert reference.startswith("PR-20260301-")
        assert len(reference) == len("PR-20260301-") + 5
