"""
Configuration settings for the brokerage zone service
"""
import os


class Config:
    """Flask application configuration"""

    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-12345'

    # Database configuration
    basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance', 'brokerage.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Zone sweeps read candidate properties in chunks of this size
    ZONE_SWEEP_BATCH_SIZE = int(os.environ.get('ZONE_SWEEP_BATCH_SIZE') or 50)
    DEFAULT_ZONE_COLOR = '#FF0000'

    # Nominatim (OpenStreetMap) geocoding
    GEOCODING_URL = os.environ.get('GEOCODING_URL') or 'https://nominatim.openstreetmap.org/search'
    GEOCODING_USER_AGENT = os.environ.get('GEOCODING_USER_AGENT') or 'Brokerage-CRM/1.0'
    GEOCODING_ADDRESS_SUFFIX = os.environ.get('GEOCODING_ADDRESS_SUFFIX') or ''
    GEOCODING_TIMEOUT = float(os.environ.get('GEOCODING_TIMEOUT') or 6)
    # "min_lat,max_lat,min_lng,max_lng"; results outside are discarded
    GEOCODING_BOUNDS = os.environ.get('GEOCODING_BOUNDS')

    LOG_LEVEL = os.environ.get('LOG_LEVEL') or 'INFO'


class TestConfig(Config):
    """Testing configuration"""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    GEOCODING_URL = 'http://geocoder.test/search'
    GEOCODING_BOUNDS = None
    LOG_LEVEL = 'DEBUG'
