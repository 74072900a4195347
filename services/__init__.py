# services/__init__.py
from .errors import (
     BillingError,
     ValidationError,
     InvalidStatusTransitionError,
     NotFoundError,
     ConflictError,
     RepositoryError,
     TransientError,
     PermissionDeniedError,
     DependencyWriteError,
     PartialSuccessError,
     ReconciliationError,
     DispatchError,
     RenderError,
)
from .repository import Repository, SqlAlchemyRepository
from .invoice_service import InvoiceService
from .payment_service import PaymentService, ReconciliationResult
from .dispatch_service import InvoiceDispatcher
from .pdf_service import InvoicePdfRenderer
from .permissions import Permissions, permissions_for_groups

__all__ = [
     "BillingError",
     "ValidationError",
     "InvalidStatusTransitionError",
     "NotFoundError",
     "ConflictError",
     "RepositoryError",
     "TransientError",
     "PermissionDeniedError",
     "DependencyWriteError",
     "PartialSuccessError",
     "ReconciliationError",
     "DispatchError",
     "RenderError",
     "Repository",
     "SqlAlchemyRepository",
     "InvoiceService",
     "PaymentService",
     "ReconciliationResult",
     "InvoiceDispatcher",
     "InvoicePdfRenderer",
     "Permissions",
     "permissions_for_groups",
]
