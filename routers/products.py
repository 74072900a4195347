# routers/products.py
from typing import List

from fastapi import APIRouter, Depends, Query, Response, status

from dependencies import CurrentUser, get_current_user, get_repository, require_capability
from models.audit_log import AuditAction
from schemas.product import ProductCreate, ProductUpdate, ProductResponse
from services import product_service
from services.audit_service import record_event
from services.permissions import CREATE, DELETE, EDIT
from services.repository import Repository

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("", response_model=List[ProductResponse], summary="List catalog products")
def list_products(
     active_only: bool = Query(False, description="Hide deactivated products"),
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(get_current_user),
):
     return product_service.list_products(repo, active_only)


@router.post(
     "",
     response_model=ProductResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a product"
)
def create_product(
     body: ProductCreate,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(CREATE)),
):
     product = product_service.create_product(repo, body.model_dump())
     record_event(repo, "Product", product.id, AuditAction.CREATED, user.id, {"name": product.name, "price": product.price})
     return product


@router.get("/{product_id}", response_model=ProductResponse, summary="Get product by ID")
def get_product(
     product_id: int,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(get_current_user),
):
     return product_service.get_product(repo, product_id)


@router.put("/{product_id}", response_model=ProductResponse, summary="Update a product")
def update_product(
     product_id: int,
     body: ProductUpdate,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     """Price changes do not touch existing invoice items; they keep their snapshot."""
     changes = body.model_dump(exclude_unset=True)
     product = product_service.update_product(repo, product_id, changes)
     record_event(repo, "Product", product_id, AuditAction.UPDATED, user.id, changes)
     return product


@router.delete(
     "/{product_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete an unused product"
)
def delete_product(
     product_id: int,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(DELETE)),
):
     product_service.delete_product(repo, product_id)
     record_event(repo, "Product", product_id, AuditAction.DELETED, user.id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)
