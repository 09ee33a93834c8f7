"""Baseline data for a freshly created tenant database.

Every table step is a no-op when its table already holds a row, so the
seeder can be re-run against an existing tenant without duplicating data.
Permissions and role grants are the exception: they insert only what is
missing, which lets a plan change add new grants on re-run.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from retailhub.access.models import RoleModel, UserModel
from retailhub.access.permissions import (
    BASIC_ADMIN_PERMISSIONS,
    DEFAULT_ROLES,
    PERMISSIONS,
    ROLE_ADMIN,
)
from retailhub.access.service import PermissionService
from retailhub.catalog.models import (
    BrandModel,
    CategoryModel,
    ProductModel,
    ProductWarehouseModel,
    TaxModel,
    UnitModel,
    WarehouseModel,
)
from retailhub.common.text import slugify
from retailhub.people.models import (
    AccountModel,
    BillerModel,
    CustomerGroupModel,
    CustomerModel,
    SupplierModel,
)
from retailhub.seeding import data as seed
from retailhub.seeding.data import TenantSeedData
from retailhub.settings.models import GeneralSettingModel, MailSettingModel, PosSettingModel

logger = logging.getLogger(__name__)

SLUG_CHUNK_SIZE = 100


async def table_is_empty(session: AsyncSession, model) -> bool:
    count = await session.scalar(select(func.count()).select_from(model))
    return not count


class TenantDatabaseSeeder:
    """Populates a tenant database with its base records and admin user."""

    def __init__(self, permissions: PermissionService | None = None):
        self.permissions = permissions or PermissionService()

    async def run(self, session: AsyncSession, data: TenantSeedData) -> list[str]:
        """Seed every table in dependency order. Returns the steps that wrote rows."""
        steps = [
            ("general_settings", self.seed_general_settings),
            ("roles", self.seed_roles),
            ("permissions", self.seed_permissions),
            ("role_has_permissions", self.seed_role_permissions),
            ("accounts", self.seed_accounts),
            ("billers", self.seed_billers),
            ("warehouses", self.seed_warehouses),
            ("users", self.seed_users),
            ("brands", self.seed_brands),
            ("categories", self.seed_categories),
            ("units", self.seed_units),
            ("taxes", self.seed_taxes),
            ("customer_groups", self.seed_customer_groups),
            ("customers", self.seed_customers),
            ("suppliers", self.seed_suppliers),
            ("pos_settings", self.seed_pos_settings),
            ("products", self.seed_products),
            ("mail_settings", self.seed_mail_settings),
        ]
        written = []
        for name, step in steps:
            if await step(session, data):
                written.append(name)
        await session.flush()
        logger.info("Tenant database seeded", extra={"steps": written})
        return written

    async def seed_general_settings(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, GeneralSettingModel):
            return False
        setting = GeneralSettingModel(
            site_title=data.site_title,
            site_logo=data.site_logo,
            package_id=data.package_id,
            subscription_type=data.subscription_type,
            developed_by=data.developed_by,
            modules=data.modules,
            expiry_date=data.expiry_date,
            company_name=data.company_name,
        )
        for key, value in data.settings_overrides.items():
            if hasattr(GeneralSettingModel, key):
                setattr(setting, key, value)
            else:
                logger.warning("Ignoring unknown general setting %r", key)
        session.add(setting)
        await session.flush()
        return True

    async def seed_roles(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, RoleModel):
            return False
        return await self.permissions.ensure_roles(session, DEFAULT_ROLES) > 0

    async def seed_permissions(self, session: AsyncSession, data: TenantSeedData) -> bool:
        return await self.permissions.ensure_permissions(session, PERMISSIONS) > 0

    async def seed_role_permissions(self, session: AsyncSession, data: TenantSeedData) -> bool:
        mappings = [(name, ROLE_ADMIN) for name in BASIC_ADMIN_PERMISSIONS]
        mappings.extend(data.package_permissions_role)
        return await self.permissions.grant(session, mappings) > 0

    async def seed_accounts(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, AccountModel):
            return False
        session.add(AccountModel(**seed.DEFAULT_ACCOUNT))
        await session.flush()
        return True

    async def seed_billers(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, BillerModel):
            return False
        session.add(BillerModel(**seed.DEFAULT_BILLER))
        await session.flush()
        return True

    async def seed_warehouses(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, WarehouseModel):
            return False
        session.add(WarehouseModel(**seed.DEFAULT_WAREHOUSE))
        await session.flush()
        return True

    async def seed_users(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, UserModel):
            return False
        admin_role_id = (await self.permissions.role_ids(session)).get(ROLE_ADMIN)
        if admin_role_id is None:
            logger.error("Admin role missing; admin user not created")
            return False

        user = UserModel(
            name=data.name,
            username=data.name,
            email=data.email,
            password=data.password,
            phone=data.phone,
            company_name=data.company_name,
            role_id=admin_role_id,
            email_verified_at=datetime.now(timezone.utc),
        )
        session.add(user)
        await session.flush()

        all_permissions = list(await self.permissions.permission_ids(session))
        await self.permissions.assign_roles_and_permissions(
            session,
            user.id,
            roles=data.user_roles or [ROLE_ADMIN],
            permissions=all_permissions + list(data.user_permissions),
        )
        return True

    async def seed_brands(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, BrandModel):
            return False
        session.add_all(BrandModel(**row) for row in seed.DEFAULT_BRANDS)
        await session.flush()
        return True

    async def seed_categories(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, CategoryModel):
            return False
        created: dict[str, CategoryModel] = {}
        for name, parent in seed.DEFAULT_CATEGORIES:
            category = CategoryModel(
                name=name,
                parent_id=created[parent].id if parent else None,
            )
            session.add(category)
            await session.flush()
            created[name] = category
        return True

    async def seed_units(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, UnitModel):
            return False
        session.add(UnitModel(**seed.DEFAULT_UNIT))
        await session.flush()
        return True

    async def seed_taxes(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, TaxModel):
            return False
        session.add(TaxModel(**seed.DEFAULT_TAX))
        await session.flush()
        return True

    async def seed_customer_groups(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, CustomerGroupModel):
            return False
        session.add(CustomerGroupModel(**seed.DEFAULT_CUSTOMER_GROUP))
        await session.flush()
        return True

    async def seed_customers(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, CustomerModel):
            return False
        group_id = await session.scalar(select(func.min(CustomerGroupModel.id)))
        session.add(CustomerModel(customer_group_id=group_id, **seed.DEFAULT_CUSTOMER))
        await session.flush()
        return True

    async def seed_suppliers(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, SupplierModel):
            return False
        session.add(SupplierModel(**seed.DEFAULT_SUPPLIER))
        await session.flush()
        return True

    async def seed_pos_settings(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, PosSettingModel):
            return False
        session.add(
            PosSettingModel(
                customer_id=await session.scalar(select(func.min(CustomerModel.id))) or 1,
                warehouse_id=await session.scalar(select(func.min(WarehouseModel.id))) or 1,
                biller_id=await session.scalar(select(func.min(BillerModel.id))) or 1,
            )
        )
        await session.flush()
        return True

    async def seed_products(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, ProductModel):
            return False
        unit_id = await session.scalar(select(UnitModel.id).where(UnitModel.code == "Pc"))
        tax_id = await session.scalar(select(func.min(TaxModel.id)))
        warehouse_id = await session.scalar(select(func.min(WarehouseModel.id)))
        if unit_id is None:
            logger.warning("No base unit seeded; skipping sample products")
            return False
        brands = dict((await session.execute(select(BrandModel.name, BrandModel.id))).all())
        categories = dict(
            (await session.execute(select(CategoryModel.name, CategoryModel.id))).all()
        )

        for code, name, brand, category, cost, price in seed.DEFAULT_PRODUCTS:
            product = ProductModel(
                code=code,
                name=name,
                brand_id=brands.get(brand),
                category_id=categories[category],
                unit_id=unit_id,
                purchase_unit_id=unit_id,
                sale_unit_id=unit_id,
                cost=cost,
                price=price,
                profit_margin=round((price - cost) / cost * 100, 2),
                qty=10.0 if warehouse_id else 0.0,
                tax_id=tax_id,
            )
            session.add(product)
            await session.flush()
            if warehouse_id is not None:
                session.add(
                    ProductWarehouseModel(
                        product_id=product.id, warehouse_id=warehouse_id, qty=10.0, price=price
                    )
                )
        await session.flush()
        return True

    async def seed_mail_settings(self, session: AsyncSession, data: TenantSeedData) -> bool:
        if not await table_is_empty(session, MailSettingModel):
            return False
        session.add(
            MailSettingModel(
                driver="smtp",
                host="127.0.0.1",
                port=2525,
                from_address=data.email,
                from_name=data.site_title,
                encryption="tls",
                is_default=True,
            )
        )
        await session.flush()
        return True


async def normalize_slugs(session: AsyncSession, chunk_size: int = SLUG_CHUNK_SIZE) -> int:
    """Fill missing brand, category and product slugs, `chunk_size` rows at a time."""
    filled = 0
    for model in (BrandModel, CategoryModel, ProductModel):
        last_id = 0
        while True:
            result = await session.execute(
                select(model)
                .where(model.slug.is_(None), model.id > last_id)
                .order_by(model.id)
                .limit(chunk_size)
            )
            rows = list(result.scalars().all())
            if not rows:
                break
            for row in rows:
                row.slug = slugify(row.name)
            filled += len(rows)
            last_id = rows[-1].id
            await session.flush()
    return filled


class EcommerceSeeder:
    """Storefront setup: category icons and every product marked online."""

    async def run(self, session: AsyncSession) -> None:
        for name, icon in seed.ECOMMERCE_CATEGORY_ICONS.items():
            await session.execute(
                update(CategoryModel).where(CategoryModel.name == name).values(icon=icon)
            )
        await session.execute(update(ProductModel).values(is_online=True))
        await session.flush()
