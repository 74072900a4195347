# routers/reports.py
"""
Reporting, audit log and caller-permission routes.
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from dependencies import (
     CurrentUser,
     get_counted_statuses,
     get_current_user,
     get_repository,
     require_admin,
     require_capability,
)
from schemas.audit import AuditLogResponse
from services.audit_service import list_events
from services.permissions import VIEW_REPORTS
from services.report_service import dashboard_summary
from services.repository import Repository

router = APIRouter(prefix="/api", tags=["reports"])


@router.get("/reports/dashboard", summary="Revenue, outstanding balance and overdue invoices")
def get_dashboard(
     repo: Repository = Depends(get_repository),
     counted_statuses=Depends(get_counted_statuses),
     user: CurrentUser = Depends(require_capability(VIEW_REPORTS)),
):
     return dashboard_summary(repo, counted_statuses)


@router.get("/audit", response_model=List[AuditLogResponse], summary="Audit log, newest first")
def get_audit_log(
     entity_type: Optional[str] = Query(None, description="Invoice, Payment, Customer, Product"),
     entity_id: Optional[str] = Query(None),
     limit: int = Query(100, ge=1, le=1000),
     repo: Repository = Depends(get_repository),
     user: CurrentUser = Depends(require_admin),
):
     return list_events(repo, entity_type=entity_type, entity_id=entity_id, limit=limit)


@router.get("/me/permissions", summary="Capabilities of the calling user")
def get_my_permissions(user: CurrentUser = Depends(get_current_user)):
     return {"user_id": user.id, "email": user.email, **user.permissions.to_dict()}
