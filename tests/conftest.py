import pytest

from brokerage import create_app
from brokerage.config import TestConfig
from brokerage.extensions import db
from brokerage.models import Property
from brokerage.services.geometry import LatLng
from brokerage.services.zones import ZoneAssignmentEngine


CENTRO = [
    {'lat': 39.40, 'lng': -0.41},
    {'lat': 39.40, 'lng': -0.39},
    {'lat': 39.42, 'lng': -0.39},
    {'lat': 39.42, 'lng': -0.41},
]


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def engine(app):
    return ZoneAssignmentEngine(db.session)


@pytest.fixture()
def make_property(app):
    def _make(address='Calle Mayor 1', latitude=None, longitude=None, zone_id=None):
        prop = Property(address=address, latitude=latitude, longitude=longitude, zone_id=zone_id)
        db.session.add(prop)
        db.session.commit()
        return prop.id
    return _make


class FakeGeocoder:
    """Stands in for NominatimGeocoder with a fixed address book."""

    def __init__(self, results):
        self.results = results
        self.calls = []

    def geocode(self, address):
        self.calls.append(address)
        result = self.results.get(address)
        return LatLng(*result) if result is not None else None
