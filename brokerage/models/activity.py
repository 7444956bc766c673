"""
Activity Model

Append-only audit trail of zone and assignment changes.
"""

import json

from brokerage.extensions import db


ZONE_CREATED = 'ZONE_CREATED'
ZONE_UPDATED = 'ZONE_UPDATED'
ZONE_DELETED = 'ZONE_DELETED'
ZONES_RESWEPT = 'ZONES_RESWEPT'
PROPERTY_ASSIGNED = 'PROPERTY_ASSIGNED'
PROPERTY_LOCATED = 'PROPERTY_LOCATED'


class Activity(db.Model):
    """Audit log entry"""
    __tablename__ = 'activities'

    id = db.Column(db.Integer, primary_key=True)
    type = db.Column(db.String(40), nullable=False, index=True)
    description = db.Column(db.String(255), nullable=False)
    related_id = db.Column(db.String(64))
    related_type = db.Column(db.String(40))
    # "metadata" is reserved on declarative models
    metadata_json = db.Column('metadata', db.Text)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp(), index=True)

    @property
    def details(self):
        return json.loads(self.metadata_json) if self.metadata_json else {}

    def __repr__(self):
        return f'<Activity {self.type} {self.related_type}:{self.related_id}>'
