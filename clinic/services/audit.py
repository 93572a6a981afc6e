import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from clinic.models import AuditEvent

Person = get_user_model()
logger = logging.getLogger(__name__)


def log_action(*, person: Optional[Person], action: str, object_type: Optional[str]=None, object_id: Optional[Any]=None, detail: Optional[Dict[str, Any]]=None) -> Optional[AuditEvent]:
    """Write an audit event; failures are logged and swallowed."""
    try:
        return AuditEvent.objects.create(
            person=person if getattr(person, 'pk', None) else None,
            action=action,
            object_type=object_type,
            object_id=str(object_id) if object_id is not None else None,
            detail=detail or {},
        )
    except Exception:
        logger.exception("audit write failed for action=%s object=%s:%s", action, object_type, object_id)
        return None
