"""
Shared engine instances for the API routers.

Created lazily on first use; tests swap them out through FastAPI's
dependency_overrides.
"""
from typing import Optional

from ..config.settings import get_settings
from ..currency.normalizer import CurrencyNormalizer
from ..engine import ResolutionEngine

_engine: Optional[ResolutionEngine] = None
_normalizer: Optional[CurrencyNormalizer] = None


def get_engine() -> ResolutionEngine:
    """Get the global resolution engine."""
    global _engine
    if _engine is None:
        _engine = ResolutionEngine(settings=get_settings())
    return _engine


def get_normalizer() -> CurrencyNormalizer:
    """Get the global currency normalizer (shares its rate cache across requests)."""
    global _normalizer
    if _normalizer is None:
        _normalizer = CurrencyNormalizer(settings=get_settings())
    return _normalizer
