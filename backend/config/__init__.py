"""Business Backend Configuration."""

from backend.config.settings import BusinessSettings, get_business_settings

__all__ = ["BusinessSettings", "get_business_settings"]
