"""
Geometry Services

Point-in-polygon and bounding-box helpers for zone polygons. Coordinates
are plain latitude/longitude degrees; no projection is applied, which is
accurate enough at neighbourhood scale.
"""

import math
from collections import namedtuple
from collections.abc import Mapping

from brokerage.exceptions import InvalidPolygon


LatLng = namedtuple('LatLng', ['lat', 'lng'])
BoundingBox = namedtuple('BoundingBox', ['min_lat', 'max_lat', 'min_lng', 'max_lng'])

MIN_POLYGON_VERTICES = 3


def to_latlng(value):
    """Coerce a LatLng, a {'lat', 'lng'} mapping or a (lat, lng) pair."""
    if isinstance(value, LatLng):
        return value
    try:
        if isinstance(value, Mapping):
            lat, lng = value['lat'], value['lng']
        else:
            lat, lng = value
        point = LatLng(float(lat), float(lng))
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidPolygon(f'Invalid coordinate: {value!r}') from exc
    if not (math.isfinite(point.lat) and math.isfinite(point.lng)):
        raise InvalidPolygon(f'Coordinate is not finite: {value!r}')
    return point


def validate_polygon(coordinates):
    """Return the coordinates as a list of LatLng.

    Raises InvalidPolygon when the sequence holds fewer than three vertices
    or any vertex is malformed.
    """
    if coordinates is None or isinstance(coordinates, (str, bytes, Mapping)):
        raise InvalidPolygon('Polygon coordinates must be a sequence of points')
    polygon = [to_latlng(vertex) for vertex in coordinates]
    if len(polygon) < MIN_POLYGON_VERTICES:
        raise InvalidPolygon(
            f'A polygon needs at least {MIN_POLYGON_VERTICES} vertices, got {len(polygon)}'
        )
    return polygon


def is_point_in_polygon(point, polygon):
    """Ray-casting (even-odd) containment test.

    A ray is cast from the point towards increasing longitude; each polygon
    edge it crosses toggles the result. The polygon is treated as closed, so
    the last vertex connects back to the first. Points lying exactly on an
    edge may be classified either way.
    """
    point = to_latlng(point)
    vertices = [to_latlng(v) for v in polygon]
    y, x = point.lat, point.lng
    inside = False

    j = len(vertices) - 1
    for i in range(len(vertices)):
        yi, xi = vertices[i]
        yj, xj = vertices[j]
        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def get_bounding_box(coordinates):
    """Smallest axis-aligned box enclosing all coordinates."""
    points = [to_latlng(c) for c in coordinates]
    if not points:
        raise InvalidPolygon('Cannot compute the bounding box of an empty polygon')

    min_lat = max_lat = points[0].lat
    min_lng = max_lng = points[0].lng
    for p in points[1:]:
        min_lat = min(min_lat, p.lat)
        max_lat = max(max_lat, p.lat)
        min_lng = min(min_lng, p.lng)
        max_lng = max(max_lng, p.lng)

    return BoundingBox(min_lat, max_lat, min_lng, max_lng)


def box_contains(box, point):
    """Inclusive bounding-box membership."""
    return (box.min_lat <= point.lat <= box.max_lat
            and box.min_lng <= point.lng <= box.max_lng)


def find_zone_for_coordinates(point, zones):
    """Return the first zone whose polygon contains the point, or None.

    `zones` is an iterable of objects exposing a `polygon` attribute.
    """
    point = to_latlng(point)
    for zone in zones:
        if is_point_in_polygon(point, zone.polygon):
            return zone
    return None


def parse_bounds(value):
    """Parse "min_lat,max_lat,min_lng,max_lng" into a BoundingBox, or None."""
    if not value:
        return None
    try:
        parts = [float(p) for p in str(value).split(',')]
    except ValueError as exc:
        raise ValueError(f'Invalid bounds: {value!r}') from exc
    if len(parts) != 4:
        raise ValueError(f'Bounds need four values, got {len(parts)}')
    return BoundingBox(*parts)
