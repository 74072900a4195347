# routers/email.py
"""
Transactional email endpoint.

The raw JSON body is validated here rather than by FastAPI so missing
fields come back as a 400 with a plain message.
"""
import logging

from fastapi import APIRouter, Body, Depends, HTTPException, status
from pydantic import ValidationError as PydanticValidationError

from dependencies import CurrentUser, get_dispatcher, require_capability
from models import Invoice
from schemas.email import EmailMessage, SendEmailRequest
from services import BillingError, DispatchError, InvoiceDispatcher
from services.permissions import EDIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/email", tags=["email"])


def _first_error(exc: PydanticValidationError) -> str:
     error = exc.errors()[0]
     if error["type"] == "missing":
          return "Missing required fields: from, to, subject"
     field = ".".join(str(part) for part in error.get("loc", ()))
     message = error["msg"].replace("Value error, ", "")
     return f"{field}: {message}" if field else message


@router.post("/send", summary="Send an email")
def send_email(
     payload: dict = Body(...),
     dispatcher: InvoiceDispatcher = Depends(get_dispatcher),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     """
     Send an email through the configured transport.

     Body: **from**, **to** (string or list), **subject**, **text** and/or
     **html**, optional **attachments** (`filename` plus `contentBase64` or
     `url`). With **invoice** (an invoice id) and **generatePdf** the
     invoice PDF is attached.
     """
     try:
          request = SendEmailRequest.model_validate(payload)
     except PydanticValidationError as exc:
          raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=_first_error(exc))

     message = EmailMessage.model_validate(request.model_dump(by_alias=True, include=set(EmailMessage.model_fields)))
     if request.invoice_id is not None and request.generate_pdf:
          try:
               invoice = dispatcher.repo.get(Invoice, request.invoice_id)
               pdf = dispatcher.render_pdf(invoice.id)
          except BillingError as exc:
               logger.warning("Sending email without PDF of invoice %s: %s", request.invoice_id, exc, exc_info=True)
          else:
               message.attachments.append(dispatcher.pdf_attachment(invoice, pdf))

     result = dispatcher.transport.send(message)
     if not result.ok:
          raise DispatchError(result.error or "Failed to send email", step="send_email")
     return {"id": result.id}
