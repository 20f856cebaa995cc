"""Authenticated REST client for the SpecManager service"""

from .client import ApiClient

__all__ = ["ApiClient"]
