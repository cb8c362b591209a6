"""API routers package."""

from bankboeker.routers import bank_automation

__all__ = ["bank_automation"]
