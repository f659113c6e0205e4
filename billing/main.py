import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from billing.api.auth import router as auth_router
from billing.api.clients import router as clients_router
from billing.api.dashboard import router as dashboard_router
from billing.api.invoices import router as invoices_router
from billing.api.items import router as items_router
from billing.config import log_level
from billing.errors import (
    BillingError,
    ConflictError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)

logging.basicConfig(
    level=log_level(),
    format="%(asctime)s [%(levelname)s] %(message)s",
)

app = FastAPI(
    title="Billing API",
    version="0.1.0",
)

_STATUS_BY_ERROR = {
    NotFoundError: 404,
    ConflictError: 409,
    InvalidCredentialsError: 401,
    ValidationError: 422,
}


@app.exception_handler(BillingError)
async def handle_billing_error(request: Request, exc: BillingError) -> JSONResponse:
    status_code = _STATUS_BY_ERROR.get(type(exc), 400)
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


@app.get("/health")
def health_check():
    return {"status": "ok"}

app.include_router(auth_router)
app.include_router(clients_router)
app.include_router(items_router)
app.include_router(invoices_router)
app.include_router(dashboard_router)
