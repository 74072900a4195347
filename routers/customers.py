# routers/customers.py
"""
Customer API routes.

Customers that have invoices cannot be deleted; set their status to
inactive instead.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status

from dependencies import (
     CurrentUser,
     get_counted_statuses,
     get_current_user,
     get_repository,
     require_capability,
)
from models.audit_log import AuditAction
from models.customer import CustomerStatus
from schemas.customer import CustomerCreate, CustomerUpdate, CustomerResponse
from services import customer_service
from services.audit_service import record_event
from services.permissions import CREATE, DELETE, EDIT, VIEW_REPORTS
from services.report_service import customer_summary
from services.repository import Repository

router = APIRouter(prefix="/api/customers", tags=["customers"])


@router.get("", response_model=List[CustomerResponse], summary="List customers")
def list_customers(
     status: Optional[CustomerStatus] = Query(None, description="Filter by customer status"),
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(get_current_user),
):
     return customer_service.list_customers(repo, status)


@router.post(
     "",
     response_model=CustomerResponse,
     status_code=status.HTTP_201_CREATED,
     summary="Create a customer"
)
def create_customer(
     body: CustomerCreate,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(CREATE)),
):
     customer = customer_service.create_customer(repo, body.model_dump())
     record_event(repo, "Customer", customer.id, AuditAction.CREATED, user.id, {"name": customer.name})
     return customer


@router.get("/{customer_id}", response_model=CustomerResponse, summary="Get customer by ID")
def get_customer(
     customer_id: int,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(get_current_user),
):
     return customer_service.get_customer(repo, customer_id)


@router.put("/{customer_id}", response_model=CustomerResponse, summary="Update a customer")
def update_customer(
     customer_id: int,
     body: CustomerUpdate,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(EDIT)),
):
     changes = body.model_dump(exclude_unset=True)
     customer = customer_service.update_customer(repo, customer_id, changes)
     record_event(repo, "Customer", customer_id, AuditAction.UPDATED, user.id, changes)
     return customer


@router.delete(
     "/{customer_id}",
     status_code=status.HTTP_204_NO_CONTENT,
     summary="Delete a customer without invoices"
)
def delete_customer(
     customer_id: int,
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_capability(DELETE)),
):
     customer_service.delete_customer(repo, customer_id)
     record_event(repo, "Customer", customer_id, AuditAction.DELETED, user.id)
     return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{customer_id}/summary", summary="Billing summary for one customer")
def get_customer_summary(
     customer_id: int,
     repo: Repository = Depends(get_repository),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(VIEW_REPORTS)),
):
     return customer_summary(repo, customer_id, counted_statuses)
