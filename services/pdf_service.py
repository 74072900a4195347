# services/pdf_service.py
"""
Invoice PDF rendering with fpdf2.

The layout is a single branded page: company header, invoice details,
bill-to block, item table and totals. Core fonts only cover latin-1, so
text is downgraded before it is drawn.
"""
import logging
from decimal import Decimal
from typing import Iterable, List, Optional

from fpdf import FPDF

from config import COMPANY_ADDRESS, COMPANY_NAME
from models import Customer, Invoice, InvoiceItem
from .errors import RenderError

logger = logging.getLogger(__name__)


def _latin1(value) -> str:
     return str(value if value is not None else "").encode("latin-1", "replace").decode("latin-1")


def _money(value) -> str:
     return f"${Decimal(value or 0):,.2f}"


def _rate(value) -> str:
     """Unit rates keep sub-cent digits; everything else prints as cents."""
     rate = Decimal(value or 0)
     if rate == rate.quantize(Decimal("0.01")):
          return _money(rate)
     return f"${rate.normalize():,f}"


def _qty(value) -> str:
     return f"{Decimal(value or 0).normalize():f}"


class InvoicePdfRenderer:
     def __init__(self, company_name: str = COMPANY_NAME, company_lines: Optional[List[str]] = None):
          self.company_name = company_name
          self.company_lines = list(COMPANY_ADDRESS if company_lines is None else company_lines)

     def render(self, invoice: Invoice, customer: Customer, items: Iterable[InvoiceItem]) -> bytes:
          """Return the invoice as PDF bytes; any layout failure becomes RenderError."""
          try:
               return self._render(invoice, customer, list(items))
          except Exception as exc:
               logger.error("Rendering invoice %s failed: %s", invoice.id, exc)
               raise RenderError(
                    f"Could not render PDF for invoice {invoice.invoice_number}",
                    entity="Invoice", entity_id=invoice.id,
               ) from exc

     def _render(self, invoice: Invoice, customer: Customer, items: List[InvoiceItem]) -> bytes:
          pdf = FPDF()
          pdf.add_page()
          pdf.set_auto_page_break(auto=True, margin=15)

          # Header
          pdf.set_font("Helvetica", "B", 22)
          pdf.cell(0, 10, _latin1(self.company_name.upper()), new_x="LMARGIN", new_y="NEXT", align="C")
          pdf.set_font("Helvetica", "", 10)
          for line in self.company_lines:
               pdf.cell(0, 5, _latin1(line), new_x="LMARGIN", new_y="NEXT", align="C")
          pdf.ln(4)

          pdf.set_font("Helvetica", "B", 16)
          pdf.cell(0, 10, "INVOICE", new_x="LMARGIN", new_y="NEXT", align="C")
          pdf.ln(2)

          # Invoice details
          pdf.set_fill_color(240, 240, 240)
          pdf.set_font("Helvetica", "B", 11)
          pdf.cell(0, 7, "  Invoice Details", new_x="LMARGIN", new_y="NEXT", fill=True)
          pdf.set_font("Helvetica", "", 10)
          pdf.cell(95, 6, _latin1(f"  Invoice #: {invoice.invoice_number}"), new_x="RIGHT")
          pdf.cell(95, 6, f"Issue Date: {invoice.issue_date}", new_x="LMARGIN", new_y="NEXT")
          pdf.cell(95, 6, f"  Status: {str(getattr(invoice.status, 'value', invoice.status)).upper()}", new_x="RIGHT")
          pdf.cell(95, 6, f"Due Date: {invoice.due_date}", new_x="LMARGIN", new_y="NEXT")
          pdf.ln(4)

          # Bill to
          pdf.set_font("Helvetica", "B", 11)
          pdf.cell(0, 7, "  Bill To", new_x="LMARGIN", new_y="NEXT", fill=True)
          pdf.set_font("Helvetica", "", 10)
          address = customer.billing_address or customer.address
          for line in [customer.name, customer.email, customer.phone, address]:
               if line:
                    pdf.cell(0, 6, _latin1(f"  {line}"), new_x="LMARGIN", new_y="NEXT")
          pdf.ln(4)

          # Items
          pdf.set_font("Helvetica", "B", 9)
          pdf.cell(90, 6, "  Description", border="B")
          pdf.cell(25, 6, "Qty", border="B", align="C")
          pdf.cell(35, 6, "Rate", border="B", align="R")
          pdf.cell(40, 6, "Amount", border="B", align="R", new_x="LMARGIN", new_y="NEXT")
          pdf.set_font("Helvetica", "", 9)
          for item in items:
               description = _latin1(item.description)
               if len(description) > 48:
                    description = description[:45] + "..."
               pdf.cell(90, 5, f"  {description}")
               pdf.cell(25, 5, _qty(item.quantity), align="C")
               pdf.cell(35, 5, _rate(item.rate), align="R")
               pdf.cell(40, 5, _money(item.amount), align="R", new_x="LMARGIN", new_y="NEXT")
          pdf.ln(4)

          # Totals
          pdf.set_font("Helvetica", "", 10)
          rows = [("Subtotal", invoice.subtotal), ("Tax", invoice.tax_amount)]
          if invoice.discount_amount:
               rows.append(("Discount", -Decimal(invoice.discount_amount)))
          for label, value in rows:
               pdf.cell(120, 6, f"  {label}:", new_x="RIGHT")
               pdf.cell(70, 6, _money(value), align="R", new_x="LMARGIN", new_y="NEXT")
          pdf.set_font("Helvetica", "B", 12)
          pdf.cell(120, 8, "  Total Due:", new_x="RIGHT")
          pdf.cell(70, 8, _money(invoice.total), align="R", new_x="LMARGIN", new_y="NEXT")

          for heading, body in (("Notes", invoice.notes), ("Terms", invoice.terms)):
               if body:
                    pdf.ln(4)
                    pdf.set_font("Helvetica", "B", 10)
                    pdf.cell(0, 6, heading, new_x="LMARGIN", new_y="NEXT")
                    pdf.set_font("Helvetica", "", 9)
                    pdf.multi_cell(0, 5, _latin1(body))

          return bytes(pdf.output())
