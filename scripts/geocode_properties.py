"""Geocode properties that have no coordinates yet and place them in zones.

Nominatim's usage policy allows one request per second, so lookups are
spaced out.
"""
import sys
import os
import time

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brokerage import create_app
from brokerage.models import Property
from brokerage.services import get_zone_engine

app = create_app()

with app.app_context():
    engine = get_zone_engine()
    pending = [p.id for p in Property.query.filter(
        (Property.latitude.is_(None)) | (Property.longitude.is_(None))).all()]
    print(f'{len(pending)} properties to geocode')

    located = 0
    for i, property_id in enumerate(pending, start=1):
        prop = engine.locate_property(property_id)
        if prop.is_located:
            located += 1
        if i % 10 == 0:
            print(f'Processed {i} properties ({located} located)')
        time.sleep(1)

    print(f'Done: {located} located, {len(pending) - located} not found')
