"""
Role based access rules for appointment operations.

A single decision table replaces per-endpoint role comparisons. Each row maps
an operation to the roles allowed to perform it and whether the permission
covers any appointment or only the actor's own.
"""

import logging
from enum import Enum
from typing import Dict, Optional

from petcare.core.exceptions import ForbiddenError, NotFoundError

from .entities import Actor, Role

logger = logging.getLogger(__name__)


class Operation(str, Enum):
    CREATE = "create"
    VIEW = "view"
    LIST_MY = "list_my"
    LIST_ALL = "list_all"
    LIST_PENDING = "list_pending"
    SUMMARY_REPORT = "summary_report"
    LIST_ASSIGNED = "list_assigned"
    LIST_APPROVED = "list_approved"
    TRANSITION_STATUS = "transition_status"


class Scope(str, Enum):
    ANY = "any"
    OWN = "own"


_ADMIN_ONLY = {Role.ADMIN: Scope.ANY}

PERMISSIONS: Dict[Operation, Dict[Role, Scope]] = {
    Operation.CREATE: {Role.OWNER: Scope.OWN, Role.ADMIN: Scope.ANY},
    Operation.VIEW: {Role.OWNER: Scope.OWN, Role.VET: Scope.ANY, Role.ADMIN: Scope.ANY},
    Operation.LIST_MY: {Role.OWNER: Scope.ANY, Role.ADMIN: Scope.ANY},
    Operation.LIST_ALL: _ADMIN_ONLY,
    Operation.LIST_PENDING: _ADMIN_ONLY,
    Operation.SUMMARY_REPORT: _ADMIN_ONLY,
    Operation.LIST_ASSIGNED: {Role.VET: Scope.ANY, Role.ADMIN: Scope.ANY},
    Operation.LIST_APPROVED: {Role.VET: Scope.ANY, Role.ADMIN: Scope.ANY},
    Operation.TRANSITION_STATUS: _ADMIN_ONLY,
}


class AccessPolicy:
    """Pure decision function over (actor, operation, resource owner).

    ``owner_user_id`` is the owner of the appointment being read, or the
    owner an appointment is being booked for. It only matters for rows
    whose scope is ``OWN``.
    """

    def __init__(self, permissions: Optional[Dict[Operation, Dict[Role, Scope]]] = None):
        self.permissions = permissions or PERMISSIONS

    def can(
        self,
        actor: Optional[Actor],
        operation: Operation,
        owner_user_id: Optional[str] = None,
    ) -> bool:
        if actor is None or actor.role is None:
            return False

        scope = self.permissions.get(operation, {}).get(actor.role)
        if scope is None:
            return False
        if scope == Scope.OWN:
            return owner_user_id is not None and str(owner_user_id) == str(actor.user_id)
        return True

    def ensure(
        self,
        actor: Optional[Actor],
        operation: Operation,
        owner_user_id: Optional[str] = None,
        hide_as_not_found: bool = False,
    ) -> None:
        """Raise ForbiddenError (or NotFoundError when hiding) unless permitted."""
        if self.can(actor, operation, owner_user_id):
            return

        logger.info(
            "Access denied",
            extra={
                "context": {
                    "operation": operation.value,
                    "user_id": getattr(actor, "user_id", None),
                    "role": getattr(getattr(actor, "role", None), "value", None),
                    "owner_user_id": owner_user_id,
                }
            },
        )
        if hide_as_not_found:
            raise NotFoundError()
        raise ForbiddenError()
