# routers/__init__.py
from .customers import router as customers_router
from .products import router as products_router
from .invoices import router as invoices_router
from .payments import router as payments_router
from .email import router as email_router
from .reports import router as reports_router

__all__ = [
     "customers_router",
     "products_router",
     "invoices_router",
     "payments_router",
     "email_router",
     "reports_router",
]
