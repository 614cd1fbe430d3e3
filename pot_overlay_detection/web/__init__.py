"""HTTP status interface for the pot overlay detection system."""

from .app import OverlayStatusWebApp, create_app

__all__ = ['OverlayStatusWebApp', 'create_app']
