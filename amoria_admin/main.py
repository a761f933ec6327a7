# amoria_admin/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from amoria_admin.config import ALLOWED_ORIGINS
from amoria_admin.errors import error_response
from amoria_admin.logging_config import setup_logging
from amoria_admin.middleware import RequestIDMiddleware
from amoria_admin.routes.admin import router as admin_router
from amoria_admin.routes.auth import router as auth_router
from amoria_admin.routes.contact_messages import router as contact_messages_router
from amoria_admin.routes.documents import router as documents_router
from amoria_admin.routes.health import router as health_router
from amoria_admin.routes.metrics import router as metrics_router
from amoria_admin.routes.overview import router as overview_router
from amoria_admin.routes.support import router as support_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Amoria Admin API",
    description="Back-office API for the Amoria marketplace admin console",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials="*" not in ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)


def jsonable_errors(exc: RequestValidationError) -> list:
    return [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()]


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Answer malformed bodies and query values with the usual 400 envelope."""
    logger.info("request_validation_failed", path=request.url.path, errors=len(exc.errors()))
    return error_response(400, "Invalid request", details=jsonable_errors(exc))


# Register routers
app.include_router(health_router, tags=["Health"])
app.include_router(metrics_router, tags=["Metrics"])
app.include_router(contact_messages_router, prefix="/api", tags=["Contact messages"])
app.include_router(support_router, prefix="/api", tags=["Support"])
app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(overview_router, prefix="/api", tags=["Overview"])
app.include_router(documents_router, prefix="/api", tags=["Documents"])
app.include_router(admin_router, prefix="/api/admin", tags=["Admin"])


@app.on_event("startup")
def startup_event() -> None:
    logger.info("api_starting", allowed_origins=ALLOWED_ORIGINS)
