# services/permissions.py
"""
Permission gate: turns identity-provider group memberships into the
capabilities the HTTP layer checks. The billing core itself never looks at
roles.
"""
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional

ADMIN = "admin"
BILLING = "billing"
VIEWER = "viewer"

CREATE = "create"
EDIT = "edit"
DELETE = "delete"
VIEW_REPORTS = "view_reports"


@dataclass(frozen=True)
class Permissions:
     groups: FrozenSet[str] = field(default_factory=frozenset)

     @property
     def is_admin(self) -> bool:
          return ADMIN in self.groups

     @property
     def is_billing(self) -> bool:
          return BILLING in self.groups

     @property
     def is_viewer(self) -> bool:
          return VIEWER in self.groups

     @property
     def can_create(self) -> bool:
          return self.is_admin or self.is_billing

     @property
     def can_edit(self) -> bool:
          return self.is_admin or self.is_billing

     @property
     def can_delete(self) -> bool:
          return self.is_admin

     @property
     def can_view_reports(self) -> bool:
          return self.is_admin or self.is_billing

     @property
     def capabilities(self) -> FrozenSet[str]:
          granted = {
               CREATE: self.can_create,
               EDIT: self.can_edit,
               DELETE: self.can_delete,
               VIEW_REPORTS: self.can_view_reports,
          }
          return frozenset(name for name, allowed in granted.items() if allowed)

     def to_dict(self) -> dict:
          return {
               "groups": sorted(self.groups),
               "capabilities": sorted(self.capabilities),
               "is_admin": self.is_admin,
               "is_billing": self.is_billing,
               "is_viewer": self.is_viewer,
          }


def permissions_for_groups(groups: Optional[Iterable[str]]) -> Permissions:
     """Group names are matched case-insensitively; unknown groups grant nothing."""
     return Permissions(frozenset(g.strip().lower() for g in (groups or []) if g and g.strip()))
