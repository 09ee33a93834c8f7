"""FastAPI application factory for RetailHub."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from retailhub.common.config import get_settings
from retailhub.common.schemas import HealthResponse


def create_app() -> FastAPI:
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        from retailhub.deps import get_db, get_tenant_dbs
        db = get_db()
        await db.init()
        await db.create_all()
        yield
        # Shutdown
        await get_tenant_dbs().close()
        await db.close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    # Mount routers
    from retailhub.landlord.router import router as package_router
    from retailhub.provisioning.router import router as tenant_router
    from retailhub.imports.router import router as import_router

    prefix = settings.api_prefix
    app.include_router(package_router, prefix=prefix)
    app.include_router(tenant_router, prefix=prefix)
    app.include_router(import_router, prefix=prefix)

    return app
