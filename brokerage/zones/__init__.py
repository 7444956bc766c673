"""
Zones Blueprint

JSON endpoints for zone management and property → zone assignment.
"""

from flask import Blueprint

zones_bp = Blueprint('zones', __name__)

from brokerage.zones import routes  # noqa: E402, F401
