"""
Pydantic schemas for Payment API request/response validation.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models.invoice import InvoiceStatus
from models.payment import PaymentMethod, PaymentStatus


class PaymentCreate(BaseModel):
     """Request body for recording a payment against an invoice."""

     invoice_id: int = Field(..., gt=0, description="Invoice the payment applies to")
     amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
     payment_date: date
     method: PaymentMethod
     status: PaymentStatus = PaymentStatus.COMPLETED
     reference: Optional[str] = Field(None, max_length=255, description="Cheque number, transfer id, ...")
     notes: Optional[str] = None
     processing_fee: Decimal = Field(Decimal("0"), ge=0, max_digits=12, decimal_places=2)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "invoice_id": 1,
                    "amount": 320.76,
                    "payment_date": "2026-10-20",
                    "method": "bank_transfer",
                    "reference": "TRX-0042",
               }
          }
     )


class PaymentUpdate(BaseModel):
     amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
     payment_date: Optional[date] = None
     method: Optional[PaymentMethod] = None
     status: Optional[PaymentStatus] = None
     reference: Optional[str] = Field(None, max_length=255)
     notes: Optional[str] = None
     processing_fee: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)


class PaymentResponse(BaseModel):
     id: int
     invoice_id: int
     amount: Decimal
     payment_date: date
     method: PaymentMethod
     status: PaymentStatus
     reference: Optional[str] = None
     notes: Optional[str] = None
     processing_fee: Decimal
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     # Invoice state after reconciliation
     invoice_status: Optional[InvoiceStatus] = None

     model_config = ConfigDict(from_attributes=True)
