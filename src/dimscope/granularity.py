"""Parsing of compact time granularity tokens like "5_MINUTES" or "HOURS"."""

import re

from dimscope.errors import InvalidGranularityError
from dimscope.models.semantic_model import TimeGranularity, TimeUnit

# ascii digits with an optional sign, no whitespace or underscores
_SIZE = re.compile(r"[+-]?[0-9]+")


def parse_granularity(token: str) -> TimeGranularity:
    """Parse a granularity token into a TimeGranularity.

    "<size>_<UNIT>" or just "<UNIT>" (size 1). the unit is matched by enum
    name, case-sensitively, so "5_MINUTES" works and "5_minutes" doesn't.

    Raises:
        InvalidGranularityError: the size isn't a positive integer or the
            unit isn't a known TimeUnit name.
    """
    if "_" in token:
        size_part, _, unit_part = token.partition("_")
        if not _SIZE.fullmatch(size_part):
            raise InvalidGranularityError(token, f"'{size_part}' is not an integer")
        size = int(size_part)
    else:
        size, unit_part = 1, token

    if size <= 0:
        raise InvalidGranularityError(token, "size must be positive")

    try:
        unit = TimeUnit[unit_part]
    except KeyError:
        raise InvalidGranularityError(token, f"unknown time unit '{unit_part}'") from None

    return TimeGranularity(size=size, unit=unit)
