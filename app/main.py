"""
WSGI entry point. Importing this module builds the application from the
default configuration; tests and tools should call ``create_app`` instead.
"""

from app.factory import create_app

app = create_app()
