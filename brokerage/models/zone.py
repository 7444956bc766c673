"""
Zone Model
"""

import json

from brokerage.extensions import db
from brokerage.services.geometry import LatLng


class Zone(db.Model):
    """Zone model: a named polygon used to group properties"""
    __tablename__ = 'zones'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(255))
    color = db.Column(db.String(20), nullable=False, default='#FF0000')
    # JSON list of {"lat": ..., "lng": ...} vertices
    coordinates_json = db.Column('coordinates', db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())

    @property
    def polygon(self):
        """Vertices as a list of LatLng."""
        return [LatLng(float(v['lat']), float(v['lng']))
                for v in json.loads(self.coordinates_json or '[]')]

    @polygon.setter
    def polygon(self, vertices):
        self.coordinates_json = json.dumps([{'lat': v.lat, 'lng': v.lng} for v in vertices])

    @property
    def coordinates(self):
        return [{'lat': v.lat, 'lng': v.lng} for v in self.polygon]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'color': self.color,
            'coordinates': self.coordinates,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Zone {self.name}>'
