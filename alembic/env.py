"""Alembic environment configuration for RetailHub.

Landlord and tenant tables live in separate databases, so migrations are
run once per target: `alembic -x target=landlord upgrade head` for the
central database, `-x target=tenant -x sqlalchemy.url=...` for each tenant.
"""

import sys
from pathlib import Path
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

# Ensure src/ is on sys.path for editable installs
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from retailhub.common.models import LandlordBase, TenantBase

# Import all models so they register with their metadata
import retailhub.landlord.models  # noqa: F401
import retailhub.access.models  # noqa: F401
import retailhub.settings.models  # noqa: F401
import retailhub.catalog.models  # noqa: F401
import retailhub.people.models  # noqa: F401
import retailhub.geo.models  # noqa: F401
import retailhub.hrm.models  # noqa: F401

config = context.config
x_args = context.get_x_argument(as_dictionary=True)

# Allow CLI override: alembic -x sqlalchemy.url=... upgrade head
cmd_url = x_args.get("sqlalchemy.url")
if cmd_url:
    config.set_main_option("sqlalchemy.url", cmd_url)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target = x_args.get("target", "landlord")
if target not in ("landlord", "tenant"):
    raise ValueError(f"Unknown migration target '{target}'; use landlord or tenant")
target_metadata = (TenantBase if target == "tenant" else LandlordBase).metadata


def run_migrations_offline() -> None:
    url = config.get_main_option("sqlalchemy.url")
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
