"""TenantProvisioner: package -> tenant row -> seeded database -> subdomain -> mail."""

import logging
import shutil
from datetime import date, timedelta
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from retailhub.access.permissions import ROLE_ADMIN
from retailhub.access.service import PermissionService, parse_permission_pairs
from retailhub.common.config import RetailHubSettings
from retailhub.common.database import TenantDatabases
from retailhub.common.exceptions import ConfigurationMissingError, TenantNotFoundError
from retailhub.common.security import hash_password
from retailhub.landlord.models import PackageModel, TenantModel
from retailhub.landlord.service import PackageService, TenantService, decode_json_list
from retailhub.provisioning.mail import WelcomeMailer, WelcomeMessage
from retailhub.provisioning.registrar import (
    SubdomainRegistrar,
    add_subdomain,
    delete_subdomain,
)
from retailhub.provisioning.schemas import ProvisioningResult, TenantCreateRequest
from retailhub.seeding.data import TenantSeedData
from retailhub.seeding.seeder import EcommerceSeeder, TenantDatabaseSeeder, normalize_slugs
from retailhub.settings.models import GeneralSettingModel
from retailhub.settings.resolver import (
    GeneralSettings,
    MailConfig,
    SettingsResolver,
    tenant_general_setting,
)

logger = logging.getLogger(__name__)

MODULE_NAMES = ("manufacturing", "ecommerce", "woocommerce")
SUBSCRIPTION_DAYS = {"monthly": 30, "yearly": 365}

MESSAGE_CREATED = "Client created successfully."
MESSAGE_CREATED_NO_MAIL = (
    "Client created successfully. Please setup your mail setting to send mail."
)


def expiry_days(is_free_trial: bool, subscription_type: str, free_trial_limit: int) -> int:
    """Days of access: the trial length for free trials, else 30 or 365."""
    if is_free_trial:
        return free_trial_limit
    return SUBSCRIPTION_DAYS.get(subscription_type, 30)


def package_features(package: PackageModel) -> list[str]:
    """Decode a package's JSON feature list; malformed data yields []."""
    return [str(f) for f in decode_json_list(package.features, f"package {package.id}")]


def extract_modules(features: list[str]) -> Optional[str]:
    """Comma-joined add-on modules present in `features`, or None."""
    modules = [name for name in MODULE_NAMES if name in features]
    return ",".join(modules) if modules else None


def has_module(modules: Optional[str], name: str) -> bool:
    return bool(modules) and name in modules.split(",")


class TenantProvisioner:
    """Orchestrates tenant creation, plan changes and subdomain removal."""

    def __init__(
        self,
        settings: RetailHubSettings,
        tenant_dbs: TenantDatabases,
        registrar: SubdomainRegistrar,
        resolver: Optional[SettingsResolver] = None,
        tenant_service: Optional[TenantService] = None,
        package_service: Optional[PackageService] = None,
        seeder: Optional[TenantDatabaseSeeder] = None,
        mailer_factory: Callable[[MailConfig], WelcomeMailer] = WelcomeMailer,
        today: Callable[[], date] = date.today,
    ):
        self.settings = settings
        self.tenant_dbs = tenant_dbs
        self.registrar = registrar
        self.resolver = resolver or SettingsResolver()
        self.tenants = tenant_service or TenantService()
        self.packages = package_service or PackageService()
        self.seeder = seeder or TenantDatabaseSeeder()
        self.mailer_factory = mailer_factory
        self.today = today

    async def create_tenant(
        self, session: AsyncSession, request: TenantCreateRequest
    ) -> ProvisioningResult:
        """Provision a tenant end to end.

        Missing platform settings or an unknown package raise
        ConfigurationMissingError before anything is written. Subdomain
        and mail failures are logged and only change the result.
        """
        general = await self.resolver.general_settings(session)
        if general is None:
            raise ConfigurationMissingError("General settings not found. Cannot create tenant.")

        package = await self.packages.get_package(session, request.package_id)
        if package is None:
            raise ConfigurationMissingError(f"Package with ID {request.package_id} not found.")

        features = package_features(package)
        modules = extract_modules(features)
        days = expiry_days(
            bool(package.is_free_trial), request.subscription_type, general.free_trial_limit
        )
        expiry_date = self.today() + timedelta(days=days)

        tenant = await self.tenants.create_tenant(
            session, request.tenant, self.settings.central_domain
        )
        domain = (await self.tenants.get_domains(session, tenant.id))[0]

        if request.payment_method:
            await self.tenants.record_payment(
                session, tenant.id, float(request.price), request.payment_method
            )

        seed_data = TenantSeedData(
            site_title=general.site_title,
            site_logo=general.site_logo,
            package_id=package.id,
            subscription_type=request.subscription_type,
            developed_by=general.developed_by,
            modules=modules,
            expiry_date=expiry_date,
            name=request.name,
            email=str(request.email),
            password=hash_password(request.password),
            phone=request.phone_number,
            company_name=request.company_name,
            package_permissions_role=parse_permission_pairs(package.role_permission_values),
        )
        async with self.tenant_dbs.session(tenant.id) as tenant_session:
            await self.seeder.run(tenant_session, seed_data)

        self.copy_logo(general.site_logo)

        if has_module(modules, "ecommerce"):
            await self.setup_ecommerce(tenant.id, general.site_logo)

        registered = None
        if not self.settings.wildcard_subdomain:
            registered = await add_subdomain(self.registrar, tenant)
            if not registered:
                logger.warning("Subdomain registration failed", extra={"tenant_id": tenant.id})

        await self.tenants.update_tenant(
            session,
            tenant.id,
            package_id=package.id,
            subscription_type=request.subscription_type,
            company_name=request.company_name,
            phone_number=request.phone_number,
            email=str(request.email),
            expiry_date=expiry_date,
            modules=modules,
        )

        mail_sent = await self.send_welcome_email(session, request, general)
        logger.info(
            "Tenant provisioned",
            extra={"tenant_id": tenant.id, "package_id": package.id, "mail_sent": mail_sent},
        )
        return ProvisioningResult(
            tenant_id=tenant.id,
            message=MESSAGE_CREATED if mail_sent else MESSAGE_CREATED_NO_MAIL,
            domain=domain,
            expiry_date=expiry_date,
            modules=modules,
            subdomain_registered=registered,
            mail_sent=mail_sent,
        )

    def _public(self, *parts: str) -> Path:
        return Path(self.settings.public_path, *parts)

    def _copy_asset(self, source: Path, target: Path) -> bool:
        if not source.is_file():
            logger.warning("Asset %s not found; skipping copy", source)
            return False
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
            return True
        except OSError:
            logger.exception("Failed to copy %s to %s", source, target)
            return False

    def copy_logo(self, site_logo: Optional[str]) -> bool:
        """Copy the platform logo into the public logo directory."""
        if not site_logo:
            return False
        return self._copy_asset(
            self._public("landlord", "images", "logo", site_logo),
            self._public("logo", site_logo),
        )

    async def setup_ecommerce(self, tenant_id: str, site_logo: Optional[str]) -> None:
        async with self.tenant_dbs.session(tenant_id) as tenant_session:
            await EcommerceSeeder().run(tenant_session)
            await normalize_slugs(tenant_session)
        if site_logo:
            self._copy_asset(
                self._public("logo", site_logo),
                self._public("frontend", "images", site_logo),
            )

    async def send_welcome_email(
        self,
        session: AsyncSession,
        request: TenantCreateRequest,
        general: GeneralSettings,
    ) -> bool:
        config = await self.resolver.mail_config(session)
        if config is None:
            logger.warning("No mail settings; welcome mail not sent")
            return False
        message = WelcomeMessage(
            email=str(request.email),
            name=request.name,
            password=request.password,
            subdomain=request.tenant,
            company_name=request.company_name,
            superadmin_company_name=general.site_title,
            superadmin_email=general.email or "",
        )
        try:
            return await self.mailer_factory(config).send_welcome(message)
        except Exception:
            logger.exception("Failed to send welcome email", extra={"email": message.email})
            return False

    async def change_plan(
        self,
        session: AsyncSession,
        tenant_id: str,
        package_id: int,
        permission_ids: Optional[list[int]] = None,
        abandoned_permission_ids: Optional[list[int]] = None,
        modules: Optional[str] = None,
        expiry_date: Optional[date] = None,
        subscription_type: Optional[str] = None,
    ) -> TenantModel:
        """Move a tenant to another package.

        Abandoned permission ids lose every role grant; new ids are granted
        to Admin. Expiry and subscription type only change when both are
        given. The seeder is re-run so tables added since provisioning get
        their base rows.
        """
        tenant = await self.tenants.get_by_id(session, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant '{tenant_id}' not found")
        package = await self.packages.get_package(session, package_id)
        if package is None:
            raise ConfigurationMissingError(f"Package with ID {package_id} not found.")
        if modules is None:
            modules = extract_modules(package_features(package))
        change_term = expiry_date is not None and subscription_type is not None

        permissions = PermissionService()
        async with self.tenant_dbs.session(tenant_id) as tenant_session:
            await permissions.revoke(tenant_session, abandoned_permission_ids or [])
            if permission_ids:
                admin_id = (await permissions.role_ids(tenant_session)).get(ROLE_ADMIN)
                if admin_id is not None:
                    await permissions.grant_ids_to_role(tenant_session, permission_ids, admin_id)
                else:
                    logger.error("Admin role missing", extra={"tenant_id": tenant_id})

            setting = await tenant_general_setting(tenant_session)
            if setting is None:
                raise ConfigurationMissingError("General settings not found in tenant database.")
            setting.package_id = package_id
            setting.modules = modules
            if change_term:
                setting.expiry_date = expiry_date
                setting.subscription_type = subscription_type
            await tenant_session.flush()

            await self.seeder.run(tenant_session, self._reseed_data(setting, package))
            site_logo = setting.site_logo

        if has_module(modules, "ecommerce"):
            await self.setup_ecommerce(tenant_id, site_logo)

        updates = {"package_id": package_id, "modules": modules}
        if change_term:
            updates.update(expiry_date=expiry_date, subscription_type=subscription_type)
        await self.tenants.update_tenant(session, tenant_id, **updates)
        logger.info("Tenant plan changed", extra={"tenant_id": tenant_id, "package_id": package_id})
        return tenant

    def _reseed_data(self, setting: GeneralSettingModel, package: PackageModel) -> TenantSeedData:
        return TenantSeedData(
            site_title=setting.site_title,
            site_logo=setting.site_logo,
            package_id=package.id,
            subscription_type=setting.subscription_type,
            modules=setting.modules,
            expiry_date=setting.expiry_date,
            package_permissions_role=parse_permission_pairs(package.role_permission_values),
        )

    async def reseed_tenant(self, session: AsyncSession, tenant_id: str) -> list[str]:
        """Re-run the seeder on an existing tenant; returns the steps that wrote rows."""
        tenant = await self.tenants.get_by_id(session, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant '{tenant_id}' not found")
        package = await self.packages.get_package(session, tenant.package_id or 0)
        if package is None:
            raise ConfigurationMissingError(f"Package with ID {tenant.package_id} not found.")
        async with self.tenant_dbs.session(tenant_id) as tenant_session:
            setting = await tenant_general_setting(tenant_session)
            if setting is None:
                raise ConfigurationMissingError("General settings not found in tenant database.")
            return await self.seeder.run(tenant_session, self._reseed_data(setting, package))

    async def remove_tenant_subdomain(self, session: AsyncSession, tenant_id: str) -> bool:
        tenant = await self.tenants.get_by_id(session, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant '{tenant_id}' not found")
        return await delete_subdomain(self.registrar, tenant)
