"""Static table mapping short codes found in document features to canonical names."""

from collections.abc import Mapping
from types import MappingProxyType

ABBREVIATIONS: Mapping[str, str] = MappingProxyType(
    {
        "NY": "New York",
        "CA": "California",
        "TX": "Texas",
        "FL": "Florida",
        "IL": "Illinois",
    }
)


def expand_abbreviation(
    value: str, abbreviations: Mapping[str, str] = ABBREVIATIONS
) -> str:
    """
    Return the canonical name for ``value``, or ``value`` itself if it is unknown.

    Lookups are exact and case-sensitive.
    """
    return abbreviations.get(value, value)
