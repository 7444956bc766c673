"""
Geocoding Service

Resolves property addresses to coordinates through a Nominatim
(OpenStreetMap) search endpoint.
"""

import logging

import requests

from brokerage.services.geometry import LatLng, box_contains, parse_bounds

logger = logging.getLogger(__name__)


class NominatimGeocoder:
    """Address → LatLng lookups against a Nominatim-compatible API.

    Args:
        url: search endpoint
        user_agent: sent on every request, Nominatim rejects anonymous clients
        address_suffix: appended to each address (postcode, town, country)
        timeout: request timeout in seconds
        bounds: optional BoundingBox; results outside it are discarded
    """

    def __init__(self, url, user_agent, address_suffix='', timeout=6, bounds=None):
        self.url = url
        self.user_agent = user_agent
        self.address_suffix = address_suffix
        self.timeout = timeout
        self.bounds = bounds

    @classmethod
    def from_config(cls, config):
        return cls(
            url=config['GEOCODING_URL'],
            user_agent=config['GEOCODING_USER_AGENT'],
            address_suffix=config.get('GEOCODING_ADDRESS_SUFFIX') or '',
            timeout=config.get('GEOCODING_TIMEOUT', 6),
            bounds=parse_bounds(config.get('GEOCODING_BOUNDS')),
        )

    def geocode(self, address):
        """Return the best match for the address, or None when there is none."""
        if not address or not address.strip():
            return None

        query = address.strip()
        if self.address_suffix:
            query = f'{query}, {self.address_suffix}'

        params = {'format': 'json', 'q': query, 'limit': 1}
        headers = {'User-Agent': self.user_agent, 'Accept': 'application/json'}

        try:
            resp = requests.get(self.url, params=params, headers=headers, timeout=self.timeout)
            if resp.status_code != 200:
                logger.warning('Geocoder returned HTTP %s for %r', resp.status_code, query)
                return None
            results = resp.json()
        except requests.exceptions.Timeout:
            logger.warning('Geocoding timed out for %r', query)
            return None
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning('Geocoding failed for %r: %s', query, e)
            return None

        if not results:
            logger.info('No geocoding result for %r', query)
            return None

        try:
            point = LatLng(float(results[0]['lat']), float(results[0]['lon']))
        except (KeyError, TypeError, ValueError):
            logger.warning('Malformed geocoding result for %r: %r', query, results[0])
            return None

        if self.bounds is not None and not box_contains(self.bounds, point):
            logger.info('Geocoded %r outside configured bounds: %s, %s', query, point.lat, point.lng)
            return None

        return point
