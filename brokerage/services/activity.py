"""
Activity Log Service

Writes audit entries for zone and assignment changes. Logging an entry is
fire-and-forget: a failed insert is rolled back to a savepoint and reported
through the logger so the surrounding operation can still commit.
"""

import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from brokerage.models import Activity

logger = logging.getLogger(__name__)


class ActivityLog:
    """Append-only audit sink bound to a session."""

    def __init__(self, session):
        self.session = session

    def record(self, type, description, related_id=None, related_type=None, metadata=None):
        """Append an entry. Returns the Activity, or None if it could not be written."""
        try:
            with self.session.begin_nested():
                activity = Activity(
                    type=type,
                    description=description[:255],
                    related_id=str(related_id) if related_id is not None else None,
                    related_type=related_type,
                    metadata_json=json.dumps(metadata) if metadata else None,
                )
                self.session.add(activity)
        except SQLAlchemyError:
            logger.exception('Could not record %s activity for %s %s', type, related_type, related_id)
            return None
        return activity

