"""
Onboarding Request Service
Shared SQLAlchemy handle.

Every model module imports ``db`` from here so the Flask app factory can
bind one engine via ``db.init_app(app)``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
