"""
Persistence ports used by the zone engine.

Both repositories wrap an explicit SQLAlchemy session. They flush but never
commit; transaction boundaries belong to the engine.
"""

from brokerage.models import Zone, Property


def _paginate(query, batch_size):
    """Yield lists of at most batch_size rows using keyset pagination on id."""
    if batch_size < 1:
        raise ValueError('batch_size must be at least 1')
    last_id = None
    while True:
        page = query if last_id is None else query.filter(Property.id > last_id)
        batch = page.order_by(Property.id).limit(batch_size).all()
        if not batch:
            return
        yield batch
        if len(batch) < batch_size:
            return
        last_id = batch[-1].id


class ZoneRepository:
    """CRUD for zone records."""

    def __init__(self, session):
        self.session = session

    def add(self, name, polygon, description=None, color=None):
        zone = Zone(name=name, description=description, color=color)
        zone.polygon = polygon
        self.session.add(zone)
        self.session.flush()
        return zone

    def get(self, zone_id):
        return self.session.get(Zone, zone_id)

    def list(self, newest_first=True):
        query = self.session.query(Zone)
        if newest_first:
            return query.order_by(Zone.created_at.desc(), Zone.id.desc()).all()
        return query.order_by(Zone.id).all()

    def update(self, zone, **changes):
        for field, value in changes.items():
            setattr(zone, field, value)
        self.session.flush()
        return zone

    def delete(self, zone):
        self.session.delete(zone)
        self.session.flush()


class PropertyLocator:
    """Coordinate lookups and bulk zone updates on property records."""

    def __init__(self, session):
        self.session = session

    def _located(self):
        return self.session.query(Property).filter(
            Property.latitude.isnot(None),
            Property.longitude.isnot(None),
        )

    def get(self, property_id):
        return self.session.get(Property, property_id)

    def find_candidates(self, bbox, batch_size=50):
        """Yield batches of geocoded properties inside bbox (inclusive)."""
        query = self._located().filter(
            Property.latitude.between(bbox.min_lat, bbox.max_lat),
            Property.longitude.between(bbox.min_lng, bbox.max_lng),
        )
        return _paginate(query, batch_size)

    def iter_located(self, batch_size=50):
        """Yield batches of every property with coordinates."""
        return _paginate(self._located(), batch_size)

    def in_zone(self, zone_id):
        return (self.session.query(Property)
                .filter(Property.zone_id == zone_id)
                .order_by(Property.created_at.desc(), Property.id.desc())
                .all())

    def batch_set_zone(self, property_ids, zone_id):
        """Set zone_id on all given properties in one UPDATE. Returns row count."""
        property_ids = list(property_ids)
        if not property_ids:
            return 0
        return (self.session.query(Property)
                .filter(Property.id.in_(property_ids))
                .update({Property.zone_id: zone_id}, synchronize_session='fetch'))

    def clear_zone(self, zone_id, keep_ids=()):
        """Detach every property from zone_id except keep_ids. Returns row count."""
        query = self.session.query(Property).filter(Property.zone_id == zone_id)
        keep_ids = list(keep_ids)
        if keep_ids:
            query = query.filter(Property.id.notin_(keep_ids))
        return query.update({Property.zone_id: None}, synchronize_session='fetch')
