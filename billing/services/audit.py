import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model
from django.db import transaction

from billing.models import Activity

User = get_user_model()
logger = logging.getLogger(__name__)


def record_activity(*, user: Optional[User], activity_type: str, title: str, description: str = '',
                    entity_type: Optional[str] = None, entity_id: Optional[Any] = None,
                    metadata: Optional[Dict[str, Any]] = None) -> Optional[Activity]:
    """Write an activity entry; failures are logged and never raised."""
    try:
        # Savepoint so a failed insert leaves the caller's transaction usable
        with transaction.atomic():
            return Activity.objects.create(
                user=user if getattr(user, 'pk', None) else None,
                activity_type=activity_type,
                title=title,
                description=description,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                metadata=metadata or {},
            )
    except Exception:
        logger.warning("failed to record activity %s for %s:%s", activity_type, entity_type, entity_id, exc_info=True)
        return None
