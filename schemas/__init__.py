# schemas/__init__.py
from .customer import CustomerCreate, CustomerUpdate, CustomerResponse
from .product import ProductCreate, ProductUpdate, ProductResponse
from .invoice import (
     InvoiceItemIn,
     InvoiceCreate,
     InvoiceUpdate,
     InvoiceItemResponse,
     InvoiceResponse,
     InvoiceListResponse,
     SendInvoiceRequest,
     ReconcileResponse,
)
from .payment import PaymentCreate, PaymentUpdate, PaymentResponse
from .email import EmailAttachment, EmailMessage, SendEmailRequest, SendResult
from .audit import AuditLogResponse

__all__ = [
     "CustomerCreate",
     "CustomerUpdate",
     "CustomerResponse",
     "ProductCreate",
     "ProductUpdate",
     "ProductResponse",
     "InvoiceItemIn",
     "InvoiceCreate",
     "InvoiceUpdate",
     "InvoiceItemResponse",
     "InvoiceResponse",
     "InvoiceListResponse",
     "SendInvoiceRequest",
     "ReconcileResponse",
     "PaymentCreate",
     "PaymentUpdate",
     "PaymentResponse",
     "EmailAttachment",
     "EmailMessage",
     "SendEmailRequest",
     "SendResult",
     "AuditLogResponse",
]
