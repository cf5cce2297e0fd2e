import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pos_edge.api.v1.routes_branches import router as branches_router
from pos_edge.api.v1.routes_cart import router as cart_router
from pos_edge.api.v1.routes_checkout import router as checkout_router
from pos_edge.api.v1.routes_products import router as products_router
from pos_edge.api.v1.routes_reports import router as reports_router
from pos_edge.backend.auth import AuthService, InMemoryAuthService
from pos_edge.backend.data_service import SqlDataService
from pos_edge.core.config import Settings, settings as default_settings
from pos_edge.core.errors import BackendError, BusinessError, CheckoutFailedError, NotFoundError
from pos_edge.core.logging import configure_logging
from pos_edge.db.base import create_schema, make_engine, make_session_factory
from pos_edge.domain.accounts.service import BranchMemory
from pos_edge.domain.terminal import Terminal

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, auth: Optional[AuthService] = None) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL)
        engine = make_engine(settings.DB_URL)
        if settings.AUTO_CREATE_SCHEMA:
            await create_schema(engine)

        data = SqlDataService(make_session_factory(engine))
        terminal = Terminal(data, auth or InMemoryAuthService(), settings, BranchMemory(settings.STATE_DIR))
        await terminal.start()
        app.state.terminal = terminal
        logger.info("Terminal ready on branch %s", terminal.active_branch_id)
        try:
            yield
        finally:
            await terminal.close()
            await engine.dispose()

    app = FastAPI(title="POS edge", lifespan=lifespan)

    app.include_router(branches_router)
    app.include_router(products_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(reports_router)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(CheckoutFailedError)
    async def checkout_failed_handler(request: Request, exc: CheckoutFailedError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.exception_handler(BackendError)
    async def backend_error_handler(request: Request, exc: BackendError):
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()


def run() -> None:
    import uvicorn

    uvicorn.run("pos_edge.main:app", host="127.0.0.1", port=8000)
