import pytest
from sqlalchemy.exc import SQLAlchemyError

from brokerage.extensions import db
from brokerage.models import Property, Zone

from brokerage import create_app
from brokerage.config import TestConfig
from brokerage.services import get_zone_engine
from brokerage.services.geometry import BoundingBox

from tests.conftest import CENTRO


class FakeResponse:
    status_code = 200

    def __init__(self, payload):
        self.payload = payload

    def json(self):
        return self.payload


def zone_of(property_id):
    return db.session.get(Property, property_id).zone_id


def test_create_zone_assigns_properties(client, make_property):
    a = make_property('A', 39.41, -0.40)
    b = make_property('B', 39.50, -0.40)

    r = client.post('/api/zones', json={'name': 'Centro', 'color': '#3366FF', 'coordinates': CENTRO})
    assert r.status_code == 201
    data = r.get_json()
    assert data['name'] == 'Centro'
    assert data['color'] == '#3366FF'
    assert data['coordinates'] == CENTRO
    for key in ('id', 'description', 'created_at', 'updated_at'):
        assert key in data

    assert zone_of(a) == data['id']
    assert zone_of(b) is None

    r = client.get(f"/api/zones/{data['id']}/properties")
    assert r.status_code == 200
    assert [p['id'] for p in r.get_json()] == [a]


def test_create_zone_validation(client):
    r = client.post('/api/zones', json={'coordinates': CENTRO})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Zone name is required.'

    r = client.post('/api/zones', json={'name': 'Line', 'coordinates': CENTRO[:2]})
    assert r.status_code == 400

    r = client.post('/api/zones', data='not json', content_type='text/plain')
    assert r.status_code == 400

    assert Zone.query.count() == 0


def test_list_and_get_zones(client):
    client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO})

    r = client.get('/api/zones')
    assert r.status_code == 200
    zones = r.get_json()
    assert [z['name'] for z in zones] == ['Centro']

    r = client.get(f"/api/zones/{zones[0]['id']}")
    assert r.status_code == 200
    assert r.get_json()['name'] == 'Centro'

    r = client.get('/api/zones/999')
    assert r.status_code == 404


def test_update_zone_with_resweep(client, make_property):
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']
    inside = make_property('A', 39.41, -0.40)
    far = make_property('Far', 39.51, -0.40)

    moved = [{'lat': 39.50, 'lng': -0.41}, {'lat': 39.50, 'lng': -0.39},
             {'lat': 39.52, 'lng': -0.39}, {'lat': 39.52, 'lng': -0.41}]

    r = client.put(f'/api/zones/{zone_id}', json={'name': 'Norte', 'coordinates': moved})
    assert r.status_code == 200
    assert r.get_json()['name'] == 'Norte'
    assert 'sweep' not in r.get_json()
    assert zone_of(far) is None

    r = client.post(f'/api/zones/{zone_id}/sweep')
    assert r.status_code == 200
    assert r.get_json()['assigned'] == 1
    assert zone_of(far) == zone_id
    assert zone_of(inside) is None

    r = client.put(f'/api/zones/{zone_id}?resweep=1', json={'coordinates': CENTRO})
    assert r.status_code == 200
    assert r.get_json()['sweep'] == {'zone_id': zone_id, 'candidates': 1, 'assigned': 1, 'retracted': 1}
    assert zone_of(inside) == zone_id
    assert zone_of(far) is None


def test_update_missing_zone(client):
    r = client.put('/api/zones/42', json={'name': 'Ghost'})
    assert r.status_code == 404


def test_delete_zone(client, make_property):
    prop = make_property('A', 39.41, -0.40)
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']

    r = client.delete(f'/api/zones/{zone_id}')
    assert r.status_code == 200
    assert r.get_json() == {'deleted': zone_id}
    assert zone_of(prop) is None

    r = client.delete(f'/api/zones/{zone_id}')
    assert r.status_code == 404


def test_assign_property(client, make_property):
    prop = make_property('A', 39.60, -0.40)
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']

    r = client.put(f'/api/properties/{prop}/zone', json={'zone_id': zone_id})
    assert r.status_code == 200
    assert r.get_json()['zone_id'] == zone_id

    r = client.put(f'/api/properties/{prop}/zone', json={'zone_id': None})
    assert r.status_code == 200
    assert zone_of(prop) is None

    r = client.put(f'/api/properties/{prop}/zone', json={'zone_id': zone_id + 1})
    assert r.status_code == 404

    r = client.put(f'/api/properties/{prop + 1}/zone', json={'zone_id': zone_id})
    assert r.status_code == 404

    r = client.put(f'/api/properties/{prop}/zone', json={})
    assert r.status_code == 400

    r = client.put(f'/api/properties/{prop}/zone', json={'zone_id': 'Centro'})
    assert r.status_code == 400


def test_sweep_all(client, make_property):
    prop = make_property('A', 39.41, -0.40)
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']
    client.put(f'/api/properties/{prop}/zone', json={'zone_id': None})

    r = client.post('/api/zones/sweep')
    assert r.status_code == 200
    assert r.get_json()['assigned'] == 1
    assert zone_of(prop) == zone_id


def test_locate_property(client, make_property, monkeypatch):
    prop = make_property('Calle Mayor 1')
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']

    def fake_get(url, params=None, headers=None, timeout=None):
        assert url == 'http://geocoder.test/search'
        return FakeResponse([{'lat': '39.41', 'lon': '-0.40'}])

    monkeypatch.setattr('brokerage.services.geocoding.requests.get', fake_get)

    r = client.post(f'/api/properties/{prop}/locate')
    assert r.status_code == 200
    data = r.get_json()
    assert (data['latitude'], data['longitude']) == (39.41, -0.40)
    assert data['zone_id'] == zone_id


def test_persistence_failure_is_reported(client, make_property, monkeypatch):
    make_property('A', 39.41, -0.40)

    def fail(self, *args, **kwargs):
        raise SQLAlchemyError('database is locked')

    monkeypatch.setattr('brokerage.services.repositories.PropertyLocator.batch_set_zone', fail)

    r = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO})
    assert r.status_code == 500
    assert r.get_json() == {'error': 'Could not save the zone.'}
    assert Zone.query.count() == 0


MOVED = [{'lat': 39.50, 'lng': -0.41}, {'lat': 39.50, 'lng': -0.39},
         {'lat': 39.52, 'lng': -0.39}, {'lat': 39.52, 'lng': -0.41}]


def test_zone_name_must_be_a_string(client):
    r = client.post('/api/zones', json={'name': 5, 'coordinates': CENTRO})
    assert r.status_code == 400
    assert r.get_json()['error'] == 'Zone name is required.'

    zone_id = client.post('/api/zones', json={'name': ' Centro ', 'coordinates': CENTRO}).get_json()['id']
    for name in (5, ['Centro'], None, '  '):
        r = client.put(f'/api/zones/{zone_id}', json={'name': name})
        assert r.status_code == 400

    assert client.get(f'/api/zones/{zone_id}').get_json()['name'] == 'Centro'


def test_update_zone_clears_description(client):
    zone_id = client.post('/api/zones', json={
        'name': 'Centro', 'description': 'old', 'coordinates': CENTRO,
    }).get_json()['id']

    r = client.put(f'/api/zones/{zone_id}', json={'color': '#00FF00'})
    assert r.get_json()['description'] == 'old'

    r = client.put(f'/api/zones/{zone_id}', json={'description': None})
    assert r.status_code == 200
    assert r.get_json()['description'] is None
    assert r.get_json()['color'] == '#00FF00'


def test_sweep_retract_must_be_boolean(client, make_property):
    prop = make_property('A', 39.41, -0.40)
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']
    client.put(f'/api/zones/{zone_id}', json={'coordinates': MOVED})

    for retract in ('false', 0, None):
        r = client.post(f'/api/zones/{zone_id}/sweep', json={'retract': retract})
        assert r.status_code == 400
        assert zone_of(prop) == zone_id

    r = client.post(f'/api/zones/{zone_id}/sweep', json={'retract': False})
    assert r.status_code == 200
    assert r.get_json()['retracted'] == 0
    assert zone_of(prop) == zone_id

    r = client.post(f'/api/zones/{zone_id}/sweep', json={'retract': True})
    assert r.get_json()['retracted'] == 1
    assert zone_of(prop) is None


def test_update_with_resweep_rolls_back_together(client, make_property, monkeypatch):
    prop = make_property('A', 39.41, -0.40)
    zone_id = client.post('/api/zones', json={'name': 'Centro', 'coordinates': CENTRO}).get_json()['id']

    def fail(self, *args, **kwargs):
        raise SQLAlchemyError('database is locked')

    monkeypatch.setattr('brokerage.services.repositories.PropertyLocator.clear_zone', fail)

    r = client.put(f'/api/zones/{zone_id}?resweep=1', json={'name': 'Norte', 'coordinates': MOVED})
    assert r.status_code == 500
    assert r.get_json() == {'error': 'Could not save the zone.'}

    zone = db.session.get(Zone, zone_id)
    assert zone.name == 'Centro'
    assert zone.coordinates == CENTRO
    assert zone_of(prop) == zone_id


def test_bad_geocoding_bounds_fail_at_startup():
    class BadBounds(TestConfig):
        GEOCODING_BOUNDS = 'somewhere in Valencia'

    with pytest.raises(ValueError):
        create_app(BadBounds)


def test_geocoder_is_built_once(app):
    class Bounded(TestConfig):
        GEOCODING_BOUNDS = '39.2,39.6,-0.6,-0.2'

    bounded = create_app(Bounded)
    assert bounded.extensions['geocoder'].bounds == BoundingBox(39.2, 39.6, -0.6, -0.2)

    geocoder = app.extensions['geocoder']
    assert get_zone_engine().geocoder is geocoder
    assert get_zone_engine().geocoder is geocoder
