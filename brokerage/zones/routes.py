"""
Zone Routes

Thin JSON layer over ZoneAssignmentEngine. Engine errors are translated to
HTTP responses by the blueprint error handlers at the bottom of the module.
"""

import logging

from flask import jsonify, request

from brokerage.exceptions import (
    EngineConfigurationError,
    EntityNotFoundError,
    InvalidPolygon,
    PersistenceFailure,
)
from brokerage.services import get_zone_engine
from brokerage.zones import zones_bp

logger = logging.getLogger(__name__)

ZONE_FIELDS = ('name', 'description', 'color', 'coordinates')


def _payload():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _bad_request(message):
    return jsonify({'error': message}), 400


def _is_name(value):
    return isinstance(value, str) and bool(value.strip())


@zones_bp.route('/zones', methods=['GET'])
def list_zones():
    zones = get_zone_engine().list_zones()
    return jsonify([z.to_dict() for z in zones])


@zones_bp.route('/zones', methods=['POST'])
def create_zone():
    """Create a zone and sweep geocoded properties into it."""
    data = _payload()
    name = data.get('name')
    if not _is_name(name):
        return _bad_request('Zone name is required.')

    zone = get_zone_engine().create_zone(
        name=name.strip(),
        coordinates=data.get('coordinates'),
        description=data.get('description'),
        color=data.get('color'),
    )
    return jsonify(zone.to_dict()), 201


@zones_bp.route('/zones/<int:zone_id>', methods=['GET'])
def get_zone(zone_id):
    return jsonify(get_zone_engine().get_zone(zone_id).to_dict())


@zones_bp.route('/zones/<int:zone_id>', methods=['PUT'])
def update_zone(zone_id):
    """Update a zone. {"description": null} clears the description.

    With ?resweep=1 the edit and a retracting re-sweep are committed in one
    transaction, and the sweep counts are returned under "sweep".
    """
    data = _payload()
    changes = {field: data[field] for field in ZONE_FIELDS if field in data}
    if 'name' in changes:
        if not _is_name(changes['name']):
            return _bad_request('Zone name is required.')
        changes['name'] = changes['name'].strip()

    engine = get_zone_engine()
    if request.args.get('resweep', type=int):
        zone, result = engine.update_and_resweep_zone(zone_id, **changes)
        return jsonify(dict(zone.to_dict(), sweep=result._asdict()))
    return jsonify(engine.update_zone(zone_id, **changes).to_dict())


@zones_bp.route('/zones/<int:zone_id>', methods=['DELETE'])
def delete_zone(zone_id):
    if not get_zone_engine().delete_zone(zone_id):
        return jsonify({'error': f'Zone {zone_id} does not exist'}), 404
    return jsonify({'deleted': zone_id})


@zones_bp.route('/zones/<int:zone_id>/sweep', methods=['POST'])
def sweep_zone(zone_id):
    """Re-sweep one zone. {"retract": false} keeps properties now outside it."""
    retract = _payload().get('retract', True)
    if not isinstance(retract, bool):
        return _bad_request('retract must be true or false.')
    result = get_zone_engine().resweep_zone(zone_id, retract=retract)
    return jsonify(result._asdict())


@zones_bp.route('/zones/sweep', methods=['POST'])
def sweep_all_zones():
    return jsonify(get_zone_engine().resweep_all()._asdict())


@zones_bp.route('/zones/<int:zone_id>/properties', methods=['GET'])
def zone_properties(zone_id):
    properties = get_zone_engine().get_properties_in_zone(zone_id)
    return jsonify([p.to_dict() for p in properties])


@zones_bp.route('/properties/<int:property_id>/zone', methods=['PUT'])
def assign_property(property_id):
    """Manually assign a property to a zone; {"zone_id": null} clears it."""
    data = _payload()
    if 'zone_id' not in data:
        return _bad_request('zone_id is required.')
    zone_id = data['zone_id']
    if zone_id is not None and (isinstance(zone_id, bool) or not isinstance(zone_id, int)):
        return _bad_request('zone_id must be an integer or null.')

    prop = get_zone_engine().assign_property_to_zone(property_id, zone_id)
    return jsonify(prop.to_dict())


@zones_bp.route('/properties/<int:property_id>/locate', methods=['POST'])
def locate_property(property_id):
    """Geocode a property's address and assign it to the containing zone."""
    prop = get_zone_engine().locate_property(property_id)
    return jsonify(prop.to_dict())


@zones_bp.errorhandler(InvalidPolygon)
def handle_invalid_polygon(error):
    return _bad_request(str(error))


@zones_bp.errorhandler(EntityNotFoundError)
def handle_not_found(error):
    return jsonify({'error': str(error)}), 404


@zones_bp.errorhandler(PersistenceFailure)
def handle_persistence_failure(error):
    return jsonify({'error': str(error)}), 500


@zones_bp.errorhandler(EngineConfigurationError)
def handle_configuration_error(error):
    logger.error('Engine misconfigured: %s', error)
    return jsonify({'error': 'Service unavailable.'}), 503
