import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from booking_engine.api.appointments import router as appointments_router
from booking_engine.api.promotions import router as promotions_router
from booking_engine.application.exceptions import InvariantViolation
from booking_engine.core.config import settings


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in (
            "appointment_id",
            "shop_id",
            "service_id",
            "customer_id",
            "holder_id",
            "date",
            "slot",
            "status",
            "actor",
            "reason",
            "step",
            "coupon_code",
            "transaction_id",
            "status_code",
            "count",
            "error",
        ):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


handler = logging.StreamHandler()
handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

root = logging.getLogger()
root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
root.handlers.clear()
root.addHandler(handler)

logger = logging.getLogger(__name__)

app = FastAPI(title="Shop Booking Engine", version="1.0.0")

app.include_router(appointments_router, tags=["appointments"])
app.include_router(promotions_router, tags=["promotions"])


@app.exception_handler(HTTPException)
async def http_error(request: Request, exc: HTTPException) -> JSONResponse:
    body = exc.detail if isinstance(exc.detail, dict) else {"message": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)


@app.exception_handler(InvariantViolation)
async def invariant_violation(request: Request, exc: InvariantViolation) -> JSONResponse:
    logger.error("Stored data failed an integrity check", extra={"error": str(exc)})
    return JSONResponse(status_code=500, content={"message": "Internal error", "kind": "InvariantViolation"})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
