"""
Pydantic schemas for Invoice API request/response validation.

Item amounts and invoice totals are never accepted from callers; they are
computed by the invoice service.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict

from models.invoice import InvoiceStatus


class InvoiceItemIn(BaseModel):
     """A line item as submitted by the caller."""
     product_id: Optional[int] = Field(None, gt=0, description="Catalog product; its description and price fill gaps")
     description: Optional[str] = Field(None, max_length=500)
     quantity: Decimal = Field(Decimal("1"), gt=0)
     rate: Optional[Decimal] = Field(None, ge=0, description="Unit price; defaults to the product price")
     tax_rate: Decimal = Field(Decimal("0"), ge=0, le=1)

     model_config = ConfigDict(extra="ignore")


class InvoiceCreate(BaseModel):
     """Schema for creating a new (draft) invoice."""
     invoice_number: str = Field(..., min_length=1, max_length=50)
     customer_id: int = Field(..., gt=0, description="Customer ID (must exist)")
     issue_date: date
     due_date: date
     tax_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     discount_amount: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None
     terms: Optional[str] = None
     items: List[InvoiceItemIn] = Field(..., min_length=1)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoice_number": "INV-2026-001",
                    "customer_id": 1,
                    "issue_date": "2026-10-01",
                    "due_date": "2026-10-31",
                    "tax_amount": 20.76,
                    "items": [
                         {"description": "Web Development", "quantity": 2, "rate": 150.00},
                    ],
               }
          }
     )

     def header(self) -> dict:
          return self.model_dump(exclude={"items"})


class InvoiceUpdate(BaseModel):
     """Partial header update; `items`, when present, replaces every item."""
     invoice_number: Optional[str] = Field(None, min_length=1, max_length=50)
     customer_id: Optional[int] = Field(None, gt=0)
     issue_date: Optional[date] = None
     due_date: Optional[date] = None
     tax_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     discount_amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     notes: Optional[str] = None
     terms: Optional[str] = None
     items: Optional[List[InvoiceItemIn]] = Field(None, min_length=1)
     expected_version: Optional[int] = Field(None, ge=1, description="Reject the update unless the invoice is still at this version")

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "due_date": "2026-11-15",
                    "expected_version": 1,
               }
          }
     )

     def header(self) -> dict:
          return self.model_dump(exclude_unset=True, exclude={"items", "expected_version"})


class InvoiceItemResponse(BaseModel):
     id: int
     product_id: Optional[int] = None
     description: str
     quantity: Decimal
     rate: Decimal
     amount: Decimal
     tax_rate: Decimal

     model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
     """Schema for invoice response. `status` is the effective status (overdue derived on read)."""
     id: int
     invoice_number: str
     customer_id: int
     issue_date: date
     due_date: date
     status: InvoiceStatus
     stored_status: InvoiceStatus
     subtotal: Decimal
     tax_amount: Decimal
     discount_amount: Decimal
     total: Decimal
     notes: Optional[str] = None
     terms: Optional[str] = None
     pdf_url: Optional[str] = None
     sent_at: Optional[datetime] = None
     viewed_at: Optional[datetime] = None
     version: int
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None
     items: List[InvoiceItemResponse] = []

     # Optional related data
     customer_name: Optional[str] = None
     customer_email: Optional[str] = None

     model_config = ConfigDict(from_attributes=True)


class InvoiceListResponse(BaseModel):
     """Schema for paginated invoice list response."""
     invoices: List[InvoiceResponse]
     total: int
     page: int
     page_size: int


class SendInvoiceRequest(BaseModel):
     """Optional overrides for the invoice email."""
     subject: Optional[str] = Field(None, min_length=1)
     text: Optional[str] = None
     html: Optional[str] = None
     generate_pdf: bool = True

     def overrides(self) -> dict:
          return self.model_dump(exclude_none=True, exclude={"generate_pdf"})


class ReconcileResponse(BaseModel):
     invoice: InvoiceResponse
     total_paid: Decimal
     balance: Decimal
     transitioned: bool
