"""
Services Package

Exports all services for easy importing.
"""

from brokerage.services.geometry import (
    LatLng,
    BoundingBox,
    is_point_in_polygon,
    get_bounding_box,
    validate_polygon,
    find_zone_for_coordinates,
)
from brokerage.services.geocoding import NominatimGeocoder


def get_zone_engine():
    """Build a ZoneAssignmentEngine bound to the current app's session, config
    and the geocoder created by the application factory."""
    from flask import current_app
    from brokerage.extensions import db
    from brokerage.services.zones import ZoneAssignmentEngine

    config = current_app.config
    return ZoneAssignmentEngine(
        db.session,
        geocoder=current_app.extensions.get('geocoder'),
        batch_size=config.get('ZONE_SWEEP_BATCH_SIZE', 50),
        default_color=config.get('DEFAULT_ZONE_COLOR', '#FF0000'),
    )


__all__ = [
    'LatLng',
    'BoundingBox',
    'is_point_in_polygon',
    'get_bounding_box',
    'validate_polygon',
    'find_zone_for_coordinates',
    'NominatimGeocoder',
    'get_zone_engine',
]
