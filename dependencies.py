# dependencies.py
"""
FastAPI dependencies shared by the routers.

Collaborators that live for the whole process (email transport, PDF
renderer, blob store) are created in main.py and kept on app.state; a fresh
repository and services are built per request around its session.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from database import get_session
from services import (
     InvoiceDispatcher,
     InvoiceService,
     PaymentService,
     Permissions,
     SqlAlchemyRepository,
     permissions_for_groups,
)
from utils.auth import groups_from_claims, verify_token


@dataclass
class CurrentUser:
     id: str
     email: Optional[str]
     permissions: Permissions


def get_repository(db: Session = Depends(get_session)) -> SqlAlchemyRepository:
     return SqlAlchemyRepository(db)


def get_counted_statuses(request: Request):
     return request.app.state.counted_payment_statuses


def get_invoice_service(repo: SqlAlchemyRepository = Depends(get_repository)) -> InvoiceService:
     return InvoiceService(repo)


def get_payment_service(
     request: Request,
     repo: SqlAlchemyRepository = Depends(get_repository),
) -> PaymentService:
     return PaymentService(repo, request.app.state.counted_payment_statuses)


def get_dispatcher(
     request: Request,
     repo: SqlAlchemyRepository = Depends(get_repository),
) -> InvoiceDispatcher:
     state = request.app.state
     return InvoiceDispatcher(
          repo,
          state.email_transport,
          renderer=state.pdf_renderer,
          blob_store=state.blob_store,
     )


def get_current_user(token: dict = Depends(verify_token)) -> CurrentUser:
     user_id = token.get("sub") or token.get("id")
     if not user_id:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token has no subject")
     return CurrentUser(
          id=str(user_id),
          email=token.get("email"),
          permissions=permissions_for_groups(groups_from_claims(token)),
     )


def require_capability(capability: str):
     """Dependency factory: the caller must hold `capability`."""

     def checker(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
          if capability not in user.permissions.capabilities:
               raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"You do not have permission to {capability.replace('_', ' ')}",
               )
          return user

     return checker


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
     if not user.permissions.is_admin:
          raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator access required")
     return user
