"""
Ticket Enhancements Package

Resolves the markup and hospitality overlays applied on top of upstream
ticket prices. Rules are configured at sport → tournament → team → event →
ticket scope, with the legacy per-ticket tables taking precedence.
"""

__version__ = "1.0.0"
