"""
Pydantic schemas for outbound email.

EmailMessage is the tagged request every email transport accepts; the
send-email endpoint validates raw request bodies against SendEmailRequest.
"""
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class EmailAttachment(BaseModel):
     """File attached either inline (base64) or by URL the transport fetches."""
     filename: str = Field(..., min_length=1)
     content_base64: Optional[str] = Field(None, alias="contentBase64")
     content_type: Optional[str] = Field(None, alias="contentType")
     url: Optional[str] = None

     model_config = ConfigDict(populate_by_name=True)

     @property
     def has_payload(self) -> bool:
          return bool(self.content_base64 or self.url)


class EmailMessage(BaseModel):
     """Validated outbound email. `to` accepts a single address or a list."""
     from_address: str = Field(..., alias="from", min_length=1)
     to: List[str]
     subject: str = Field(..., min_length=1)
     text: Optional[str] = None
     html: Optional[str] = None
     attachments: List[EmailAttachment] = Field(default_factory=list)

     model_config = ConfigDict(
          populate_by_name=True,
          json_schema_extra={
               "example": {
                    "from": "Netspire Billing <billing@netspire.com>",
                    "to": "customer@example.com",
                    "subject": "Invoice INV-001",
                    "text": "Please find your invoice attached.",
               }
          }
     )

     @field_validator("to", mode="before")
     @classmethod
     def _listify_recipients(cls, value: Union[str, List[str], None]):
          if isinstance(value, str):
               value = [value]
          recipients = [v.strip() for v in (value or []) if isinstance(v, str) and v.strip()]
          if not recipients:
               raise ValueError("at least one recipient is required")
          return recipients

     @model_validator(mode="after")
     def _require_body(self):
          if not self.text and not self.html:
               raise ValueError("Either text or html content is required")
          return self


class SendEmailRequest(EmailMessage):
     """Send-email endpoint body; may ask for an invoice PDF to be attached."""
     invoice_id: Optional[int] = Field(None, alias="invoice", gt=0)
     generate_pdf: bool = Field(False, alias="generatePdf")


class SendResult(BaseModel):
     """Outcome of a transport call: a message id, or an error."""
     id: Optional[str] = None
     error: Optional[str] = None

     @property
     def ok(self) -> bool:
          return self.error is None
