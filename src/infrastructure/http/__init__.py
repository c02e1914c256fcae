"""HTTP binding for the elevation service."""

from .app import create_app

__all__ = ["create_app"]
