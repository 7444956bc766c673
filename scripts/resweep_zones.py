"""Reassign every geocoded property to the zone whose polygon contains it."""
import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from brokerage import create_app
from brokerage.services import get_zone_engine

app = create_app()

with app.app_context():
    result = get_zone_engine().resweep_all()
    print(f'{result.candidates} properties checked, '
          f'{result.assigned} assigned, {result.retracted} detached')
