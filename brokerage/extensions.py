"""
Flask Extensions
"""

from flask_sqlalchemy import SQLAlchemy

# Database instance
db = SQLAlchemy()
