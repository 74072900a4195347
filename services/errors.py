# services/errors.py
"""
Error taxonomy for the billing core.

Every error carries a human readable message plus a context dict (entity,
entity id, failed step, ...) so the API layer can log it and build a useful
response without parsing strings.
"""
from typing import Any, Dict, Optional


class BillingError(Exception):
     """Base class for all billing errors."""

     def __init__(self, message: str, **context: Any):
          super().__init__(message)
          self.message = message
          self.context: Dict[str, Any] = {k: v for k, v in context.items() if v is not None}

     def to_dict(self) -> Dict[str, Any]:
          return {"detail": self.message, "context": self.context}


class ValidationError(BillingError):
     """Bad input. Never retried; surfaced verbatim to the caller."""


class InvalidStatusTransitionError(ValidationError):
     """Requested invoice status change is not allowed from the current status."""


class NotFoundError(BillingError):
     """Referenced entity does not exist."""

     def __init__(self, entity: str, entity_id: Any, message: Optional[str] = None):
          super().__init__(message or f"{entity} with ID {entity_id} not found", entity=entity, entity_id=entity_id)


class ConflictError(BillingError):
     """Write based on a stale version of the record."""


class RepositoryError(BillingError):
     """Failure reported by the persistence adapter."""


class TransientError(RepositoryError):
     """Adapter failure that may succeed when retried."""


class PermissionDeniedError(RepositoryError):
     """Adapter refused the operation. Not retryable."""


class DependencyWriteError(BillingError):
     """
     A multi-row write committed its parent row but failed on a dependent row.

     context carries the invoice id, the failing step and the steps that had
     already completed so the damage can be repaired.
     """


class PartialSuccessError(BillingError):
     """A multi-step operation completed some externally visible steps but not all."""


class ReconciliationError(PartialSuccessError):
     """Payment was stored but the invoice status could not be reconciled."""


class DispatchError(BillingError):
     """Email transport refused or failed. No invoice state was changed."""


class RenderError(BillingError):
     """PDF rendering failed."""
