# services/product_service.py
import logging
from typing import Any, Dict, List, Mapping, Optional

from models import InvoiceItem, Product
from models.product import ProductCategory
from .calculator import to_decimal, to_money
from .errors import ValidationError
from .repository import Repository

logger = logging.getLogger(__name__)

PRODUCT_FIELDS = ("name", "description", "price", "category", "tax_rate", "is_active", "unit", "sku")


def _clean(fields: Mapping[str, Any], partial: bool) -> Dict[str, Any]:
     unknown = set(fields) - set(PRODUCT_FIELDS)
     if unknown:
          raise ValidationError(f"Unknown product field(s): {', '.join(sorted(unknown))}")
     values = dict(fields)
     if "name" in values or not partial:
          name = (values.get("name") or "").strip()
          if not name:
               raise ValidationError("Product name is required", field="name")
          values["name"] = name
     if "price" in values or not partial:
          if values.get("price") is None:
               raise ValidationError("Product price is required", field="price")
          values["price"] = to_money(values["price"], "price")
          if values["price"] < 0:
               raise ValidationError("Product price must not be negative", field="price")
     if values.get("tax_rate") is not None:
          rate = to_decimal(values["tax_rate"], "tax_rate")
          if rate < 0 or rate > 1:
               raise ValidationError("tax_rate must be a fraction between 0 and 1", field="tax_rate")
          values["tax_rate"] = rate
     if values.get("category") is not None:
          try:
               values["category"] = ProductCategory(values["category"])
          except ValueError:
               raise ValidationError(f"Unknown product category {values['category']!r}", field="category")
     return values


def list_products(repo: Repository, active_only: bool = False) -> List[Product]:
     if active_only:
          return repo.list(Product, is_active=True)
     return repo.list(Product)


def get_product(repo: Repository, product_id: int) -> Product:
     return repo.get(Product, product_id)


def create_product(repo: Repository, fields: Mapping[str, Any]) -> Product:
     product = repo.create(Product, _clean(fields, partial=False))
     logger.info("Created product %s (%s)", product.id, product.name)
     return product


def update_product(repo: Repository, product_id: int, fields: Mapping[str, Any]) -> Product:
     return repo.update(Product, product_id, _clean(fields, partial=True))


def delete_product(repo: Repository, product_id: int) -> None:
     """Products referenced by invoice items are kept; deactivate them instead."""
     repo.get(Product, product_id)
     if repo.list(InvoiceItem, product_id=product_id):
          raise ValidationError(
               f"Product {product_id} is used on invoices; set is_active to false instead",
               entity="Product", entity_id=product_id,
          )
     repo.delete(Product, product_id)
     logger.info("Deleted product %s", product_id)
