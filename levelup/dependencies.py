"""
Caller resolution and permission dependencies.

The authentication gateway in front of this service forwards the caller as
trusted headers. Routes declare the operation they perform and receive a
``Capability`` from ``require_capability``; services never look at raw roles.
"""
import logging
from typing import Callable, Optional

from fastapi import Depends, Header

from levelup.core.config import settings
from levelup.core.exceptions import AuthenticationError
from levelup.core.permissions import Capability, Identity, Operation, Role, authorize

logger = logging.getLogger(__name__)


def get_current_identity(
    x_user_id: Optional[str] = Header(default=None, alias=settings.user_id_header),
    x_user_role: Optional[str] = Header(default=None, alias=settings.user_role_header),
    x_user_department: Optional[str] = Header(default=None, alias=settings.user_department_header),
) -> Identity:
    if not x_user_id or not x_user_role:
        logger.warning("Authentication failed: missing identity headers")
        raise AuthenticationError("Missing caller identity headers")
    try:
        user_id = int(x_user_id)
    except ValueError:
        logger.warning(f"Authentication failed: malformed user id {x_user_id!r}")
        raise AuthenticationError("Malformed caller id")
    try:
        role = Role(x_user_role.strip().lower())
    except ValueError:
        logger.warning(f"Authentication failed: unknown role {x_user_role!r}")
        raise AuthenticationError(f"Unknown role '{x_user_role}'")
    return Identity(user_id=user_id, role=role, department=(x_user_department or "").strip())


def require_capability(operation: Operation) -> Callable:
    """
    Dependency factory that checks the caller against the permission matrix.

    Usage:
        @router.post("/auto-select")
        def auto_select(capability: Capability = Depends(require_capability(Operation.AUTO_SELECT))):
            ...
    """
    def capability_checker(identity: Identity = Depends(get_current_identity)) -> Capability:
        return authorize(identity, operation)
    return capability_checker
