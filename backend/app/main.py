import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.v1.api import api_router
from app.core.config import get_settings
from app.core.logging import configure_logging
from app.services.case_generator import CaseGenerator
from app.services.case_store import CaseStore
from app.services.errors import CaseServiceError, ErrorKind
from app.services.fault_injector import RandomFaultInjector
from app.services.review_service import CaseReviewService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format, service=settings.app_name)

    generator = CaseGenerator(sla_hours=settings.sla_hours, seed=settings.data_seed)
    store = CaseStore(generator, list_size=settings.case_count)
    store.initialize()
    fault_injector = RandomFaultInjector(
        min_latency=settings.min_latency_seconds,
        max_latency=settings.max_latency_seconds,
        failure_rate=settings.failure_rate,
    )
    if settings.failure_rate > 0:
        logger.warning(
            "Fault injection enabled",
            extra={
                "failure_rate": settings.failure_rate,
                "min_latency_ms": settings.min_latency_ms,
                "max_latency_ms": settings.max_latency_ms,
            },
        )
    app.state.case_store = store
    app.state.review_service = CaseReviewService(store, fault_injector)
    logger.info("Case review service initialized")
    yield


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    @app.exception_handler(CaseServiceError)
    async def case_service_error_handler(request: Request, exc: CaseServiceError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.kind.value, "detail": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        detail = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"error": ErrorKind.INVALID_REQUEST.value, "detail": detail},
        )

    @app.middleware("http")
    async def request_logger(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
            },
        )
        return response

    app.include_router(api_router, prefix=settings.api_prefix)
    return app


app = create_app()
