"""Payments domain - Dodo Payments checkout and webhook reconciliation"""

from .router import router

__all__ = ["router"]
