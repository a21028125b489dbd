"""
Vademecum API Module

FastAPI routes for the medication knowledge engine.
"""

from vademecum.api.routes import get_engine, router

__all__ = ["get_engine", "router"]
