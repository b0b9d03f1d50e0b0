"""
Country Resolver - Single Source of Truth for SCDB Country/Region Data

SCDB identifies countries by the codes its download form accepts. These are
mostly international vehicle registration codes ("D", "NL", "USA", "RUS"),
not ISO 3166, and a few are site-specific ("ES2", "GBZ").

This module provides:
1. The master list of country codes accepted by the download form
2. Regional presets matching the ones offered by the web interface
3. Expansion of mixed region/country token lists into form values
"""

from __future__ import annotations

from types import MappingProxyType
from typing import FrozenSet, Iterable, List, Mapping, Optional, Tuple

from ..exceptions import UnresolvableTokenError


class CountryResolver:
    """
    Resolves region names and country codes to SCDB country codes.

    All data is class-level and read-only; every method is a pure lookup.
    """

    # ==========================================================================
    # Master Country List
    # ==========================================================================

    # Order matches the download form and is relied upon by callers.
    ALL_COUNTRIES: Tuple[str, ...] = (
        "AFG", "DZ", "AND", "RA", "ARM", "AUS", "A", "AZ", "BRN", "BY", "B", "BZ", "BIH",
        "BR", "BG", "CDN", "RCH", "CO", "HR", "CY", "CZ", "DK", "EC", "ET", "ES2", "EST",
        "FJI", "FI", "FR", "GF", "GE", "D", "GBZ", "GR", "GP", "GT", "GUY", "HN", "HK",
        "H", "IS", "IND", "IR", "IRQ", "IRL", "IL", "I", "J", "JOR", "KZ", "KWT", "KS",
        "LAO", "LV", "RL", "LI", "LT", "L", "MO", "MAL", "M", "MQ", "MS", "MEX", "MD",
        "MGL", "MA", "NAM", "NL", "NZ", "MK", "NO", "OM", "PK", "PA", "PY", "PE", "RP",
        "PL", "P", "Q", "RO", "RUS", "RWA", "RE", "RSM", "KSA", "SRB", "SGP", "SK", "SLO",
        "ZA", "ROK", "ES", "SE", "CH", "RCT", "T", "TT", "TN", "TR", "UA", "UAE", "GB",
        "USA", "ROU", "UZ", "VN", "Z", "ZW",
    )

    _COUNTRY_SET: FrozenSet[str] = frozenset(ALL_COUNTRIES)

    # ==========================================================================
    # Regional Presets (as offered by the web interface)
    # ==========================================================================

    # NL is deliberately absent from "europe"; it is reached via
    # "benelux" or "westeurope".
    REGION_MEMBERS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
        "africa": ("AFG", "DZ", "ET", "MA", "NAM", "ZA", "RWA", "TN", "Z", "ZW"),
        "asia": (
            "ARM", "AZ", "BRN", "HK", "IND", "IR", "IRQ", "IL", "J", "JOR", "KZ", "KWT",
            "KS", "LAO", "MAL", "MO", "MGL", "OM", "PK", "RP", "SGP", "ROK", "RCT", "T",
            "UAE", "UZ", "VN",
        ),
        "europe": (
            "AND", "A", "BY", "B", "BIH", "BG", "HR", "CY", "CZ", "DK", "EST", "FI", "FR",
            "GE", "D", "GBZ", "GR", "H", "IS", "IRL", "I", "LV", "RL", "LI", "LT", "L", "M",
            "MK", "NO", "PL", "P", "RO", "RUS", "RSM", "SRB", "SK", "SLO", "ES", "SE", "CH",
            "TR", "UA", "GB",
        ),
        "northamerica": ("CDN", "USA", "MEX", "GT", "HN", "BZ", "PA", "TT"),
        "southamerica": ("RA", "BR", "RCH", "CO", "EC", "GUY", "PY", "PE", "ROU"),
        "oceania": ("AUS", "FJI", "NZ"),
        # Germany, Austria, Switzerland
        "dach": ("D", "A", "CH"),
        # Belgium, Netherlands, Luxembourg
        "benelux": ("B", "NL", "L"),
        "westeurope": ("B", "NL", "L", "FR", "D", "A", "CH", "I", "ES", "P", "GB", "IRL"),
        "easteurope": (
            "PL", "CZ", "SK", "H", "RO", "BG", "HR", "SLO", "EST", "LV", "LT", "BY", "UA",
            "RUS",
        ),
        "scandinavia": ("SE", "NO", "DK", "FI", "IS"),
    })

    # ==========================================================================
    # Public Methods
    # ==========================================================================

    @classmethod
    def all_country_codes(cls) -> List[str]:
        """Return every country code, in download-form order."""
        return list(cls.ALL_COUNTRIES)

    @classmethod
    def region_names(cls) -> List[str]:
        """Return the names of all regional presets."""
        return list(cls.REGION_MEMBERS)

    @classmethod
    def expand_region(cls, region: str) -> Optional[List[str]]:
        """
        Expand a region name to its member country codes.

        Args:
            region: Region name in any case (e.g., "dach", "Benelux")

        Returns:
            Member codes in preset order, or None if not a recognized region
        """
        members = cls.REGION_MEMBERS.get(region.lower())
        return list(members) if members is not None else None

    @classmethod
    def normalize(cls, country: str) -> Optional[str]:
        """
        Normalize a country code to its canonical (uppercase) form.

        Surrounding whitespace is not removed; " NL" is not a country code.

        Returns:
            The canonical code or None if not found
        """
        code = country.upper()
        return code if code in cls._COUNTRY_SET else None

    @classmethod
    def is_region(cls, text: str) -> bool:
        """Check if text is a recognized region name."""
        return text.lower() in cls.REGION_MEMBERS

    @classmethod
    def expand(cls, tokens: Iterable[str]) -> List[str]:
        """
        Expand a list of region names and country codes to country codes.

        Region names are looked up first, then country codes, both
        case-insensitively. Region members are inserted at the position of
        the region token and the result keeps only the first occurrence of
        each code.

        Args:
            tokens: Region names and/or country codes (e.g., ["dach", "FR"])

        Returns:
            Deduplicated list of country codes (e.g., ["D", "A", "CH", "FR"])

        Raises:
            UnresolvableTokenError: If any token is neither a region nor a
                country code. Nothing is returned in that case.
        """
        result: List[str] = []
        for token in tokens:
            if cls.is_region(token):
                result.extend(cls.expand_region(token))
                continue

            code = cls.normalize(token)
            if code is None:
                raise UnresolvableTokenError(token)
            result.append(code)

        return cls.deduplicate(result)

    @staticmethod
    def deduplicate(items: Iterable[str]) -> List[str]:
        """Remove repeated codes, keeping the first occurrence of each."""
        seen = set()
        unique: List[str] = []
        for item in items:
            if item not in seen:
                seen.add(item)
                unique.append(item)
        return unique
