"""Main FastAPI application for the FitCoach backend."""
import logging

from fastapi import FastAPI, Request

from fitcoach.api.routes.conversation import router as conversation_router
from fitcoach.api.routes.plans import router as plans_router
from fitcoach.api.routes.routines import router as routines_router
from fitcoach.api.routes.scheduler import router as scheduler_router
from fitcoach.api.routes.whatsapp import router as whatsapp_router
from fitcoach.core.config import settings
from fitcoach.core.logging import configure_logging
from fitcoach.core.middleware import RequestIDMiddleware
from fitcoach.observability.client import init_opik
from fitcoach.observability.tracing import trace
from fitcoach.services.scheduler_factory import get_report_scheduler

configure_logging(log_level=settings.log_level)

logger = logging.getLogger(__name__)

app = FastAPI(title=settings.app_name, version="0.1.0")
app.add_middleware(RequestIDMiddleware)
app.include_router(plans_router)
app.include_router(conversation_router)
app.include_router(routines_router)
app.include_router(scheduler_router)
app.include_router(whatsapp_router)


@app.on_event("startup")
async def startup() -> None:
    """Initialize observability and start the report scheduler."""
    init_opik()
    if settings.scheduler_enabled:
        get_report_scheduler().start()
    else:
        logger.warning("Report scheduler disabled via config; schedules will not fire")


@app.on_event("shutdown")
async def shutdown() -> None:
    get_report_scheduler().shutdown(wait=settings.scheduler_shutdown_wait)


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can check the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {"status": "ok"}
