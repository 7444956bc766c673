"""
Run the zone API locally.

Serves the /api zone and property endpoints against DATABASE_URL (SQLite
under instance/ when unset). GEOCODING_URL and GEOCODING_BOUNDS configure
address lookup for POST /api/properties/<id>/locate.
"""

from brokerage import create_app

app = create_app()

if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=5000)
