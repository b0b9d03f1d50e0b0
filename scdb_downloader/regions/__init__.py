"""
Region Module

Single source of truth for the country codes and regional presets accepted
by the SCDB download form.

Components:
- CountryResolver: Country normalization and region expansion
"""

from .country_resolver import CountryResolver

__all__ = [
    "CountryResolver",
]
