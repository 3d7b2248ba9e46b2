"""Transport: aiohttp HTTP adapter"""

from .http_app import create_app

__all__ = ["create_app"]
