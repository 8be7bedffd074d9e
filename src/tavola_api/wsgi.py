"""WSGI entry point for the Tavola API."""

from tavola_api.app import create_app

app = create_app()
