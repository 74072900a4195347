import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from database import check_connection
from config import CORS_ORIGINS, COUNTED_PAYMENT_STATUSES, LOG_LEVEL
from models.payment import PaymentStatus
from routers import (
    customers_router,
    email_router,
    invoices_router,
    payments_router,
    products_router,
    reports_router,
)
from services import (
    BillingError,
    ConflictError,
    DependencyWriteError,
    DispatchError,
    InvoicePdfRenderer,
    NotFoundError,
    PartialSuccessError,
    PermissionDeniedError,
    RenderError,
    TransientError,
    ValidationError,
)
from utils.blob_storage import AzureBlobStore
from utils.email import BrevoTransport, EmailTransport

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("billing")

# Most specific first; the first isinstance match wins
ERROR_STATUS = [
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (PermissionDeniedError, 403),
    (TransientError, 503),
    (DependencyWriteError, 500),
    (PartialSuccessError, 500),
    (DispatchError, 502),
    (RenderError, 500),
]


def status_for(exc: BillingError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


async def billing_error_handler(request: Request, exc: BillingError):
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.context)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_app(
    email_transport: Optional[EmailTransport] = None,
    pdf_renderer=None,
    blob_store=None,
) -> FastAPI:
    """Build the API with its long-lived collaborators on app.state."""
    app = FastAPI(title="Netspire Billing API")

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.email_transport = email_transport or BrevoTransport()
    app.state.pdf_renderer = pdf_renderer or InvoicePdfRenderer()
    app.state.blob_store = blob_store if blob_store is not None else AzureBlobStore.from_settings()
    app.state.counted_payment_statuses = frozenset(PaymentStatus(s) for s in COUNTED_PAYMENT_STATUSES)

    app.add_exception_handler(BillingError, billing_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.include_router(customers_router)
    app.include_router(products_router)
    app.include_router(invoices_router)
    app.include_router(payments_router)
    app.include_router(email_router)
    app.include_router(reports_router)

    @app.get("/api/health")
    def health():
        return {"status": "ok", "database": check_connection()}

    return app


app = create_app()

if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
