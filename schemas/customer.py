"""
Pydantic schemas for Customer API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models.customer import CustomerStatus


class CustomerCreate(BaseModel):
     """Schema for creating a customer."""
     name: str = Field(..., min_length=1, max_length=255)
     email: str = Field(..., min_length=3, max_length=255)
     phone: Optional[str] = Field(None, max_length=50)
     tax_id: Optional[str] = Field(None, max_length=100)
     address: Optional[str] = None
     billing_address: Optional[str] = None
     shipping_address: Optional[str] = None
     payment_terms: Optional[int] = Field(None, ge=0, description="Payment terms in days")
     credit_limit: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     status: CustomerStatus = CustomerStatus.ACTIVE

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Acme Corp",
                    "email": "billing@acme.example",
                    "phone": "(555) 010-2000",
                    "payment_terms": 30,
               }
          }
     )


class CustomerUpdate(BaseModel):
     name: Optional[str] = Field(None, min_length=1, max_length=255)
     email: Optional[str] = Field(None, min_length=3, max_length=255)
     phone: Optional[str] = Field(None, max_length=50)
     tax_id: Optional[str] = Field(None, max_length=100)
     address: Optional[str] = None
     billing_address: Optional[str] = None
     shipping_address: Optional[str] = None
     payment_terms: Optional[int] = Field(None, ge=0)
     credit_limit: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     status: Optional[CustomerStatus] = None


class CustomerResponse(BaseModel):
     id: int
     name: str
     email: str
     phone: Optional[str] = None
     tax_id: Optional[str] = None
     address: Optional[str] = None
     billing_address: Optional[str] = None
     shipping_address: Optional[str] = None
     payment_terms: Optional[int] = None
     credit_limit: Optional[Decimal] = None
     status: CustomerStatus
     total_billed: Decimal
     total_paid: Decimal
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)
