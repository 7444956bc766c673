"""
Zone Assignment Engine

Creates, edits and deletes zones and keeps property → zone links in sync
with zone polygons. A sweep narrows candidates with the polygon's bounding
box in the database, then applies the exact ray-casting test in Python.

Each write operation runs in a single transaction: any database error rolls
back the whole operation (zone row and property updates together) and is
raised as PersistenceFailure. Nothing is retried.

Concurrent sweeps over overlapping polygons are last-write-wins on
Property.zone_id; there is no locking across the read-filter-update steps.
"""

import logging
from collections import namedtuple
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from brokerage.exceptions import (
    EngineConfigurationError,
    PersistenceFailure,
    PropertyNotFound,
    ZoneNotFound,
)
from brokerage.models import activity as activity_types
from brokerage.services.activity import ActivityLog
from brokerage.services.geometry import (
    LatLng,
    find_zone_for_coordinates,
    get_bounding_box,
    is_point_in_polygon,
    validate_polygon,
)
from brokerage.services.repositories import PropertyLocator, ZoneRepository

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_ZONE_COLOR = '#FF0000'

SAVE_ZONE_FAILED = 'Could not save the zone.'
DELETE_ZONE_FAILED = 'Could not delete the zone.'
ASSIGN_FAILED = 'Could not assign properties.'

_UNSET = object()

SweepResult = namedtuple('SweepResult', ['zone_id', 'candidates', 'assigned', 'retracted'])


class ZoneAssignmentEngine:
    """Zone CRUD plus polygon sweeps over geocoded properties.

    Collaborators are injected; anything not given is built on `session`.
    """

    def __init__(self, session, zones=None, properties=None, activity_log=None,
                 geocoder=None, batch_size=DEFAULT_BATCH_SIZE, default_color=DEFAULT_ZONE_COLOR):
        if batch_size < 1:
            raise ValueError('batch_size must be at least 1')
        self.session = session
        self.zones = zones or ZoneRepository(session)
        self.properties = properties or PropertyLocator(session)
        self.activity_log = activity_log or ActivityLog(session)
        self.geocoder = geocoder
        self.batch_size = batch_size
        self.default_color = default_color

    @contextmanager
    def _transaction(self, failure_message):
        try:
            yield
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception(failure_message)
            raise PersistenceFailure(failure_message) from exc
        except Exception:
            self.session.rollback()
            raise

    def _get_zone(self, zone_id):
        zone = self.zones.get(zone_id)
        if zone is None:
            raise ZoneNotFound(zone_id)
        return zone

    def _get_property(self, property_id):
        prop = self.properties.get(property_id)
        if prop is None:
            raise PropertyNotFound(property_id)
        return prop

    # -- reads -------------------------------------------------------------

    def list_zones(self):
        """All zones, newest first."""
        return self.zones.list()

    def get_zone(self, zone_id):
        return self._get_zone(zone_id)

    def get_properties_in_zone(self, zone_id):
        self._get_zone(zone_id)
        return self.properties.in_zone(zone_id)

    # -- sweeps ------------------------------------------------------------

    def _matching_ids(self, polygon):
        """Ids of geocoded properties strictly inside polygon, and the candidate count."""
        bbox = get_bounding_box(polygon)
        matched = []
        candidates = 0
        for batch in self.properties.find_candidates(bbox, self.batch_size):
            candidates += len(batch)
            matched.extend(
                prop.id for prop in batch
                if is_point_in_polygon(LatLng(prop.latitude, prop.longitude), polygon)
            )
        return matched, candidates

    def _sweep(self, zone, polygon, retract=False):
        matched, candidates = self._matching_ids(polygon)
        if matched:
            self.properties.batch_set_zone(matched, zone.id)
        retracted = self.properties.clear_zone(zone.id, keep_ids=matched) if retract else 0
        logger.info('Zone %s sweep: %d candidates, %d assigned, %d retracted',
                    zone.id, candidates, len(matched), retracted)
        return SweepResult(zone.id, candidates, len(matched), retracted)

    def _resweep(self, zone, retract):
        result = self._sweep(zone, zone.polygon, retract=retract)
        self.activity_log.record(
            activity_types.ZONES_RESWEPT,
            f'Zone "{zone.name}" re-swept',
            related_id=zone.id,
            related_type='zone',
            metadata=result._asdict(),
        )
        return result

    def resweep_zone(self, zone_id, retract=True):
        """Re-run the sweep for an existing zone.

        With `retract`, properties linked to the zone that no longer fall
        inside its polygon are detached.
        """
        with self._transaction(ASSIGN_FAILED):
            zone = self._get_zone(zone_id)
            result = self._resweep(zone, retract)
        return result

    def resweep_all(self):
        """Reassign every geocoded property to the first zone containing it.

        Zones are tried oldest first. Properties outside every zone are
        detached.
        """
        with self._transaction(ASSIGN_FAILED):
            zones = self.zones.list(newest_first=False)
            changes = {}
            checked = 0
            for batch in self.properties.iter_located(self.batch_size):
                for prop in batch:
                    checked += 1
                    zone = find_zone_for_coordinates(LatLng(prop.latitude, prop.longitude), zones)
                    target = zone.id if zone is not None else None
                    if prop.zone_id != target:
                        changes.setdefault(target, []).append(prop.id)

            assigned = retracted = 0
            for zone_id, property_ids in changes.items():
                self.properties.batch_set_zone(property_ids, zone_id)
                if zone_id is None:
                    retracted += len(property_ids)
                else:
                    assigned += len(property_ids)

            result = SweepResult(None, checked, assigned, retracted)
            self.activity_log.record(
                activity_types.ZONES_RESWEPT,
                f'All zones re-swept: {assigned} assigned, {retracted} detached',
                related_type='zone',
                metadata=result._asdict(),
            )
        logger.info('Full re-sweep over %d zones: %d properties checked, %d assigned, %d detached',
                    len(zones), checked, assigned, retracted)
        return result

    # -- writes ------------------------------------------------------------

    def create_zone(self, name, coordinates, description=None, color=None):
        """Persist a zone and assign every geocoded property inside it.

        The polygon is validated before anything is written.
        """
        polygon = validate_polygon(coordinates)
        with self._transaction(SAVE_ZONE_FAILED):
            zone = self.zones.add(
                name=name,
                polygon=polygon,
                description=description,
                color=color or self.default_color,
            )
            self.activity_log.record(
                activity_types.ZONE_CREATED,
                f'Zone "{name}" created',
                related_id=zone.id,
                related_type='zone',
                metadata={'vertices': len(polygon)},
            )
            self._sweep(zone, polygon)
        return zone

    def _apply_update(self, zone, changes):
        self.zones.update(zone, **changes)
        self.activity_log.record(
            activity_types.ZONE_UPDATED,
            f'Zone "{zone.name}" updated',
            related_id=zone.id,
            related_type='zone',
            metadata={'fields': sorted('coordinates' if f == 'polygon' else f for f in changes)},
        )

    def _zone_changes(self, name, description, color, coordinates):
        changes = {}
        if coordinates is not None:
            changes['polygon'] = validate_polygon(coordinates)
        if name is not None:
            changes['name'] = name
        if description is not _UNSET:
            changes['description'] = description
        if color is not None:
            changes['color'] = color
        return changes

    def update_zone(self, zone_id, name=None, description=_UNSET, color=None, coordinates=None):
        """Apply the given changes to a zone.

        `name`, `color` and `coordinates` are left alone when None; an
        explicit `description=None` clears the description. Property links
        are left as they are; call resweep_zone after a polygon edit, or use
        update_and_resweep_zone.
        """
        changes = self._zone_changes(name, description, color, coordinates)
        with self._transaction(SAVE_ZONE_FAILED):
            zone = self._get_zone(zone_id)
            self._apply_update(zone, changes)
        return zone

    def update_and_resweep_zone(self, zone_id, retract=True, name=None, description=_UNSET,
                                color=None, coordinates=None):
        """update_zone followed by resweep_zone, committed together.

        A failing sweep rolls the edit back as well.
        """
        changes = self._zone_changes(name, description, color, coordinates)
        with self._transaction(SAVE_ZONE_FAILED):
            zone = self._get_zone(zone_id)
            self._apply_update(zone, changes)
            result = self._resweep(zone, retract)
        return zone, result

    def delete_zone(self, zone_id):
        """Delete a zone and detach its properties. False if it did not exist."""
        with self._transaction(DELETE_ZONE_FAILED):
            zone = self.zones.get(zone_id)
            if zone is None:
                return False
            name = zone.name
            released = self.properties.clear_zone(zone.id)
            self.zones.delete(zone)
            self.activity_log.record(
                activity_types.ZONE_DELETED,
                f'Zone "{name}" deleted',
                related_id=zone_id,
                related_type='zone',
                metadata={'released_properties': released},
            )
        return True

    def assign_property_to_zone(self, property_id, zone_id):
        """Manually set (or, with None, clear) a property's zone."""
        with self._transaction(ASSIGN_FAILED):
            if zone_id is not None:
                self._get_zone(zone_id)
            prop = self._get_property(property_id)
            previous = prop.zone_id
            prop.zone_id = zone_id
            self.session.flush()
            self.activity_log.record(
                activity_types.PROPERTY_ASSIGNED,
                f'Property "{prop.address}" assigned to zone {zone_id}'
                if zone_id is not None else f'Property "{prop.address}" removed from its zone',
                related_id=prop.id,
                related_type='property',
                metadata={'from_zone': previous, 'to_zone': zone_id},
            )
        return prop

    def locate_property(self, property_id):
        """Geocode a property's address and place it in its zone.

        When the address cannot be resolved the property is returned
        unchanged.
        """
        if self.geocoder is None:
            raise EngineConfigurationError('No geocoder configured')

        prop = self._get_property(property_id)
        point = self.geocoder.geocode(prop.address)
        if point is None:
            logger.warning('Could not geocode property %s (%r)', prop.id, prop.address)
            return prop

        with self._transaction(ASSIGN_FAILED):
            zone = find_zone_for_coordinates(point, self.zones.list(newest_first=False))
            prop.latitude = point.lat
            prop.longitude = point.lng
            prop.zone_id = zone.id if zone is not None else None
            self.session.flush()
            self.activity_log.record(
                activity_types.PROPERTY_LOCATED,
                f'Property "{prop.address}" located',
                related_id=prop.id,
                related_type='property',
                metadata={'lat': point.lat, 'lng': point.lng, 'zone_id': prop.zone_id},
            )
        return prop
