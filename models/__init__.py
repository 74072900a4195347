from .base import Base
from .customer import Customer, CustomerStatus
from .product import Product, ProductCategory
from .invoice import Invoice, InvoiceItem, InvoiceStatus
from .payment import Payment, PaymentMethod, PaymentStatus
from .email_template import EmailTemplate, EmailTemplateType
from .audit_log import AuditLog, AuditAction

__all__ = [
     "Base",
     "Customer",
     "CustomerStatus",
     "Product",
     "ProductCategory",
     "Invoice",
     "InvoiceItem",
     "InvoiceStatus",
     "Payment",
     "PaymentMethod",
     "PaymentStatus",
     "EmailTemplate",
     "EmailTemplateType",
     "AuditLog",
     "AuditAction",
]
