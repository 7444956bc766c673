"""
Models Package

Exports all models for easy importing.
"""

from brokerage.models.zone import Zone
from brokerage.models.property import Property
from brokerage.models.activity import Activity

__all__ = ['Zone', 'Property', 'Activity']
