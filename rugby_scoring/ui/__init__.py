"""
UI package for the Rugby Scoring application.

This package contains the Flask web server exposing the JSON API.
"""
from .web_app import create_app, run_web_app, WebAppState

__all__ = ["create_app", "run_web_app", "WebAppState"]
