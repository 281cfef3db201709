from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from storefront import config
from storefront.api.admin import router as admin_router
from storefront.api.routes import router as api_router
from storefront.db import Base, engine
from storefront.errors import StorefrontError
from storefront.services import IngestFailure
from storefront.utils import logger
import storefront.models  # noqa: F401 ensure models are imported so tables are known

# create FastAPI instance
app = FastAPI(title="storefront")
app.include_router(api_router)
app.include_router(admin_router)

# serve the local bucket when photos are not stored in Supabase
if not config.supabase_credentials() and config.storage_public_base_url().startswith("/"):
    app.mount(
        config.storage_public_base_url(),
        StaticFiles(directory=config.storage_root(), check_dir=False),
        name="storage",
    )


@app.exception_handler(StorefrontError)
def storefront_error(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc), "hint": exc.hint}, status_code=exc.status_code)


@app.exception_handler(IngestFailure)
def ingest_failure(request: Request, exc: IngestFailure):
    status = getattr(exc.error, "status_code", 500)
    return JSONResponse(exc.as_response(), status_code=status)


@app.on_event("startup")
def on_startup_create_tables():
    # Ensure database tables are created on startup
    try:
        Base.metadata.create_all(bind=engine)
    except Exception:
        # migrations may own the schema; keep serving with whatever exists
        logger.exception("Could not create tables on startup")
