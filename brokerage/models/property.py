"""
Property Model

Only the columns the zone engine reads or writes are mapped here.
"""

from brokerage.extensions import db


class Property(db.Model):
    """A listed property; geocoded ones can be assigned to a zone"""
    __tablename__ = 'properties'

    id = db.Column(db.Integer, primary_key=True)
    address = db.Column(db.String(255), nullable=False)
    population = db.Column(db.String(100))
    latitude = db.Column(db.Float, index=True)
    longitude = db.Column(db.Float, index=True)
    zone_id = db.Column(db.Integer, db.ForeignKey('zones.id', ondelete='SET NULL'),
                        nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, default=db.func.current_timestamp(),
                           onupdate=db.func.current_timestamp())

    @property
    def is_located(self):
        return self.latitude is not None and self.longitude is not None

    def to_dict(self):
        return {
            'id': self.id,
            'address': self.address,
            'population': self.population,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'zone_id': self.zone_id,
        }

    def __repr__(self):
        return f'<Property {self.id} {self.address}>'
