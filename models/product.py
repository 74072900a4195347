# models/product.py
import enum
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, Enum
from .base import Base, TimestampMixin, enum_values


class ProductCategory(str, enum.Enum):
     SERVICES = "services"
     PRODUCTS = "products"
     SUBSCRIPTION = "subscription"
     ONE_TIME = "one-time"


class Product(TimestampMixin, Base):
     """
     Product model - catalog entry that invoice lines can be built from.

     Invoice items copy price and description at creation time; later
     catalog edits never reach existing invoices.
     """
     __tablename__ = "products"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     description = Column(Text, nullable=True)
     price = Column(Numeric(12, 2), nullable=False)
     category = Column(
          Enum(ProductCategory, name="product_category", values_callable=enum_values),
          nullable=True,
     )
     tax_rate = Column(Numeric(6, 4), default=0.08, nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)
     unit = Column(String(50), default="each", nullable=False)  # hours, each, monthly
     sku = Column(String(100), nullable=True)

     def __repr__(self):
          return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
