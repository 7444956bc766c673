"""
Exception hierarchy for the zone-assignment engine.
"""


class BrokerageError(Exception):
    """Base exception for all brokerage errors."""


class InvalidPolygon(BrokerageError, ValueError):
    """Raised when a zone polygon is empty, degenerate or malformed."""


class EntityNotFoundError(BrokerageError, LookupError):
    """Raised when a referenced record does not exist."""


class ZoneNotFound(EntityNotFoundError):
    """Raised when a zone id does not resolve to an existing zone."""

    def __init__(self, zone_id):
        super().__init__(f'Zone {zone_id} does not exist')
        self.zone_id = zone_id


class PropertyNotFound(EntityNotFoundError):
    """Raised when a property id does not resolve to an existing property."""

    def __init__(self, property_id):
        super().__init__(f'Property {property_id} does not exist')
        self.property_id = property_id


class PersistenceFailure(BrokerageError):
    """Raised when the database rejects a zone or assignment write."""


class EngineConfigurationError(BrokerageError):
    """Raised when an operation needs a collaborator that was not provided."""
