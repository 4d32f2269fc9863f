"""
Flask-Migrate / Alembic and WSGI entry point.

Usage:
    flask db upgrade                 # apply migrations
    gunicorn wsgi:app                # serve
"""

from app import create_app

app = create_app()
