from typing import Any, Optional

from levelup.core.permissions import Capability
from levelup.models.audit_log import AuditLog
from levelup.services.base import BaseService


class AuditService(BaseService):
    def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: Optional[int],
        capability: Optional[Capability],
        details: dict,
    ) -> AuditLog:
        """
        Append an audit entry to the current session.

        Not committed here: the entry lands in the same transaction as the change
        it describes, so a rolled-back change leaves no trace.
        """
        def sanitize(obj: Any):
            if hasattr(obj, "model_dump"):
                return obj.model_dump(mode="json")
            if isinstance(obj, dict):
                return {k: sanitize(v) for k, v in obj.items()}
            if isinstance(obj, (list, tuple, set)):
                return [sanitize(i) for i in obj]
            if hasattr(obj, "isoformat"):
                return obj.isoformat()
            if hasattr(obj, "value") and isinstance(getattr(obj, "value"), str):
                return obj.value
            return obj

        identity = capability.identity if capability else None
        entry = AuditLog(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=identity.user_id if identity else None,
            user_role=identity.role.value if identity else "system",
            details=sanitize(details),
        )
        self.db.add(entry)
        return entry
