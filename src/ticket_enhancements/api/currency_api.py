"""
Currency API - display currencies and markup conversion.
"""
from fastapi import APIRouter, Depends, Query
from typing import Optional

from ..currency.normalizer import CurrencyNormalizer
from ..engine import ResolutionEngine
from .state import get_engine, get_normalizer

router = APIRouter(tags=["currency"])


@router.get("/currencies")
async def get_currencies(engine: ResolutionEngine = Depends(get_engine)):
    """Active currencies and the default display currency."""
    return {
        "success": True,
        "data": engine.store.active_currencies(),
        "default": engine.store.default_currency(),
    }


@router.get("/currency/convert")
async def convert_amount(
    amount: float,
    from_currency: str = Query("USD"),
    to_currency: Optional[str] = None,
    engine: ResolutionEngine = Depends(get_engine),
    normalizer: CurrencyNormalizer = Depends(get_normalizer),
):
    """
    Convert an amount between currencies.

    Never fails on rate lookups: has_conversion=false means the original
    amount was returned unconverted. Without to_currency the default
    display currency is used.
    """
    if not to_currency:
        default = engine.store.default_currency()
        to_currency = default['code'] if default else from_currency
    result = normalizer.convert(amount, from_currency, to_currency)
    return {"success": True, "data": result.to_dict()}
