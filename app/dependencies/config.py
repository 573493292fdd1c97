"""
FastAPI dependency returning application settings.

Routes depend on :func:`get_app_settings` rather than calling
``get_settings`` directly so tests can swap in adjusted copies through
``app.dependency_overrides``.
"""

from app.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    return get_settings()


__all__ = ["get_app_settings"]
