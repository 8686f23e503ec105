import logging
from typing import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from timeflow.models.notification import Notification
from timeflow.services.records import NotificationPayload

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Persists anomaly notifications for owners/admins.

    A failed insert is logged and reported as ``False``; it never fails the
    analytics run that produced the payloads.
    """

    def __init__(self, db: Session):
        self.db = db

    def dispatch(self, payloads: Sequence[NotificationPayload]) -> bool:
        if not payloads:
            return True
        try:
            self.db.add_all([Notification(**p.to_dict()) for p in payloads])
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating {len(payloads)} anomaly notifications: {e}", exc_info=True)
            return False
        logger.info(f"Created {len(payloads)} anomaly notifications")
        return True
