"""Catalog domain - Public search of open slots"""

from .router import router

__all__ = ["router"]
