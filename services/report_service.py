# services/report_service.py
"""Dashboard and customer summaries, computed on read."""
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Optional

from models import Customer, Invoice, Payment
from models.invoice import InvoiceStatus
from models.payment import PaymentStatus
from .calculator import ZERO, round2
from .invoice_status import effective_status
from .repository import Repository


def _paid_by_invoice(repo: Repository, counted_statuses) -> Dict[int, Decimal]:
     paid: Dict[int, Decimal] = {}
     for payment in repo.list(Payment):
          if PaymentStatus(payment.status) in counted_statuses:
               paid[payment.invoice_id] = paid.get(payment.invoice_id, ZERO) + Decimal(payment.amount)
     return paid


def _summarize(invoices, paid_by_invoice: Dict[int, Decimal], today: date) -> Dict[str, Any]:
     counts = {s.value: 0 for s in InvoiceStatus}
     billed = collected = outstanding = ZERO
     overdue = []
     for invoice in invoices:
          status = effective_status(invoice, today)
          counts[status.value] += 1
          if status == InvoiceStatus.CANCELLED:
               continue
          total = Decimal(invoice.total)
          paid = paid_by_invoice.get(invoice.id, ZERO)
          billed += total
          collected += paid
          if status != InvoiceStatus.PAID:
               balance = max(total - paid, ZERO)
               outstanding += balance
               if status == InvoiceStatus.OVERDUE:
                    overdue.append({
                         "id": invoice.id,
                         "invoice_number": invoice.invoice_number,
                         "customer_id": invoice.customer_id,
                         "due_date": invoice.due_date,
                         "balance": round2(balance),
                         "days_overdue": (today - invoice.due_date).days,
                    })
     overdue.sort(key=lambda row: row["due_date"])
     return {
          "invoice_count": len(invoices),
          "status_counts": counts,
          "total_billed": round2(billed),
          "total_collected": round2(collected),
          "total_outstanding": round2(outstanding),
          "overdue_invoices": overdue,
     }


def dashboard_summary(repo: Repository, counted_statuses, today: Optional[date] = None) -> Dict[str, Any]:
     today = today or date.today()
     summary = _summarize(repo.list(Invoice), _paid_by_invoice(repo, counted_statuses), today)
     summary["customer_count"] = len(repo.list(Customer))
     return summary


def customer_summary(repo: Repository, customer_id: int, counted_statuses, today: Optional[date] = None) -> Dict[str, Any]:
     today = today or date.today()
     customer = repo.get(Customer, customer_id)
     summary = _summarize(
          repo.list(Invoice, customer_id=customer_id),
          _paid_by_invoice(repo, counted_statuses),
          today,
     )
     summary["customer_id"] = customer.id
     summary["customer_name"] = customer.name
     return summary
