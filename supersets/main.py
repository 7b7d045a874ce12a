import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .settings import get_settings
from .db import get_session, init_db
from .errors import CatalogError, NotFoundError, SetValidationError, SuperSetsError, WorkoutStateError
from .services.catalog import seed_catalog_if_needed, seed_splits_if_needed
from .services.body import get_or_create_profile
from .services.progress import router as progress_router
from .services.tracking import router as tracking_router

logging.basicConfig(
    level=getattr(logging, get_settings().log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Super Sets")

app.include_router(progress_router, prefix="/api")
app.include_router(tracking_router, prefix="/api")

ERROR_STATUS = {
    NotFoundError: 404,
    WorkoutStateError: 409,
    SetValidationError: 422,
    CatalogError: 422,
}


@app.exception_handler(SuperSetsError)
async def service_error(request: Request, exc: SuperSetsError) -> JSONResponse:
    status = ERROR_STATUS.get(type(exc), 400)
    return JSONResponse(status_code=status, content={"detail": str(exc)})


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.on_event("startup")
async def on_startup() -> None:
    await init_db()
    async with get_session() as session:
        await seed_catalog_if_needed(session)
        await seed_splits_if_needed(session)
        await get_or_create_profile(session)
    logger.info("startup: database ready")
