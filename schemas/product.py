"""
Pydantic schemas for Product API request/response validation.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict

from models.product import ProductCategory


class ProductCreate(BaseModel):
     """Schema for creating a catalog product."""
     name: str = Field(..., min_length=1, max_length=255)
     description: Optional[str] = None
     price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
     category: ProductCategory = ProductCategory.SERVICES
     tax_rate: Decimal = Field(Decimal("0.08"), ge=0, le=1, description="Fraction, e.g. 0.08 for 8%")
     is_active: bool = True
     unit: str = Field("each", max_length=50)
     sku: Optional[str] = Field(None, max_length=100)

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "name": "Web Development",
                    "description": "Hourly web development services",
                    "price": 125.00,
                    "category": "services",
                    "unit": "hour",
               }
          }
     )


class ProductUpdate(BaseModel):
     name: Optional[str] = Field(None, min_length=1, max_length=255)
     description: Optional[str] = None
     price: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
     category: Optional[ProductCategory] = None
     tax_rate: Optional[Decimal] = Field(None, ge=0, le=1)
     is_active: Optional[bool] = None
     unit: Optional[str] = Field(None, max_length=50)
     sku: Optional[str] = Field(None, max_length=100)


class ProductResponse(BaseModel):
     id: int
     name: str
     description: Optional[str] = None
     price: Decimal
     category: Optional[ProductCategory] = None
     tax_rate: Decimal
     is_active: bool
     unit: str
     sku: Optional[str] = None
     created_at: Optional[datetime] = None
     updated_at: Optional[datetime] = None

     model_config = ConfigDict(from_attributes=True)
