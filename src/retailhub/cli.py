"""Typer CLI for RetailHub."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(name="retailhub", help="RetailHub: tenant provisioning and bulk imports")
console = Console()


async def _landlord_db():
    from retailhub.common.config import get_settings
    from retailhub.common.logging import setup_logging
    from retailhub.deps import get_db

    setup_logging(get_settings().log_level)
    db = get_db()
    await db.init()
    await db.create_all()
    return db


async def _shutdown():
    from retailhub.deps import get_db, get_tenant_dbs

    await get_tenant_dbs().close()
    await get_db().close()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind host"),
    port: int = typer.Option(8080, help="Bind port"),
):
    """Start the RetailHub API server."""
    import uvicorn
    from retailhub.app import create_app
    from retailhub.common.config import get_settings
    from retailhub.common.logging import setup_logging

    setup_logging(get_settings().log_level)
    console.print(f"[bold green]Starting RetailHub on {host}:{port}[/bold green]")
    uvicorn.run(create_app(), host=host, port=port)


@app.command()
def provision(
    tenant: str = typer.Argument(..., help="Subdomain / tenant id"),
    package_id: int = typer.Option(..., help="Package to subscribe to"),
    name: str = typer.Option(..., help="Admin user name"),
    email: str = typer.Option(..., help="Admin email"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
    subscription_type: str = typer.Option("monthly", help="monthly or yearly"),
    company_name: str = typer.Option("", help="Company name"),
    phone_number: str = typer.Option("", help="Phone number"),
    price: float = typer.Option(0.0, help="Amount paid"),
    payment_method: Optional[str] = typer.Option(None, help="Records a payment when set"),
):
    """Provision a tenant: database, seed data, subdomain and welcome mail."""
    from pydantic import ValidationError

    from retailhub.common.exceptions import RetailHubError
    from retailhub.deps import get_provisioner
    from retailhub.provisioning.schemas import TenantCreateRequest

    try:
        request = TenantCreateRequest(
            package_id=package_id,
            subscription_type=subscription_type,
            tenant=tenant,
            name=name,
            email=email,
            password=password,
            phone_number=phone_number,
            company_name=company_name,
            price=price,
            payment_method=payment_method,
        )
    except ValidationError as e:
        console.print(f"[bold red]Invalid input:[/bold red] {e}")
        raise typer.Exit(2)

    async def _run():
        db = await _landlord_db()
        try:
            async with db.get_session() as session:
                return await get_provisioner().create_tenant(session, request)
        finally:
            await _shutdown()

    try:
        result = asyncio.run(_run())
    except RetailHubError as e:
        console.print(f"[bold red]{e.code}:[/bold red] {e.message}")
        raise typer.Exit(1)

    console.print(f"[bold green]{result.message}[/bold green]")
    console.print(f"  Domain: {result.domain}")
    console.print(f"  Expires: {result.expiry_date.isoformat()}")
    if result.modules:
        console.print(f"  Modules: {result.modules}")
    if result.subdomain_registered is False:
        console.print("[yellow]  Subdomain registration failed; see logs[/yellow]")


@app.command()
def seed(
    tenant: str = typer.Argument(..., help="Tenant id"),
):
    """Re-run the baseline seeder on an existing tenant database."""
    from retailhub.common.exceptions import RetailHubError
    from retailhub.deps import get_provisioner

    async def _run():
        db = await _landlord_db()
        try:
            async with db.get_session() as session:
                return await get_provisioner().reseed_tenant(session, tenant)
        finally:
            await _shutdown()

    try:
        steps = asyncio.run(_run())
    except RetailHubError as e:
        console.print(f"[bold red]{e.code}:[/bold red] {e.message}")
        raise typer.Exit(1)

    if steps:
        console.print(f"[bold green]Seeded:[/bold green] {', '.join(steps)}")
    else:
        console.print("Nothing to seed; every table already has rows")


@app.command(name="import")
def import_file(
    tenant: str = typer.Argument(..., help="Tenant id"),
    entity: str = typer.Argument(..., help="Entity to import, e.g. countries, products, shifts"),
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="CSV or XLSX file"),
    user_id: Optional[int] = typer.Option(None, help="Acting tenant user (for deposits)"),
):
    """Import a spreadsheet into a tenant database."""
    from retailhub.common.config import get_settings
    from retailhub.common.exceptions import RetailHubError, TenantNotFoundError
    from retailhub.deps import get_tenant_dbs, get_tenant_service
    from retailhub.imports.base import ImportPipeline, read_rows
    from retailhub.imports.importers import get_importer

    async def _run():
        db = await _landlord_db()
        try:
            async with db.get_session() as session:
                if await get_tenant_service().get_by_id(session, tenant) is None:
                    raise TenantNotFoundError(f"Tenant '{tenant}' not found")
            settings = get_settings()
            pipeline = ImportPipeline(get_importer(entity), chunk_size=settings.import_chunk_size)
            with path.open("rb") as fh:
                content = fh.read(settings.import_max_bytes + 1)
            rows = read_rows(path.name, content, settings.import_max_bytes)
            async with get_tenant_dbs().session(tenant) as session:
                return await pipeline.run(session, rows, user_id=user_id)
        finally:
            await _shutdown()

    try:
        result = asyncio.run(_run())
    except RetailHubError as e:
        console.print(f"[bold red]{e.code}:[/bold red] {e.message}")
        raise typer.Exit(1)

    console.print(
        f"[bold green]Imported {result.imported}[/bold green], skipped {result.skipped}"
    )
    if result.errors:
        table = Table("Row", "Problems")
        for error in result.errors:
            table.add_row(str(error.row), "; ".join(error.messages))
        console.print(table)


@app.command()
def health(
    url: str = typer.Option("http://localhost:8080", help="Server URL"),
):
    """Check RetailHub server health."""
    import httpx

    try:
        resp = httpx.get(f"{url}/health", timeout=5)
        data = resp.json()
        console.print(f"[bold green]{data['status']}[/bold green] — v{data['version']}")
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
