import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from booking_core.api.v1.bookings import router as bookings_router
from booking_core.api.v1.schemas import ErrorBodySchema, ErrorResponseSchema
from booking_core.application.exceptions import BookingError
from booking_core.core.config import settings
from booking_core.core.logging import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Simulated Bookings API", version="1.0.0")

app.include_router(bookings_router, prefix="/api/v1", tags=["bookings"])


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    logger.info("Booking request rejected", extra={"code": exc.code, "error": exc.message})
    body = ErrorResponseSchema(error=ErrorBodySchema(code=exc.code, message=exc.message))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
