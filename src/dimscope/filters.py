"""Normalization of user-supplied filter JSON into a FilterMap."""

from collections.abc import Collection

from loguru import logger

from dimscope.codec import DEFAULT_CODEC, DecodeError, JsonCodec
from dimscope.models.query import FilterMap


def normalize_filters(filter_json: str | None, codec: JsonCodec = DEFAULT_CODEC) -> FilterMap:
    """Turn a filter payload into a dimension -> trimmed values mapping.

    the payload is a JSON object of string arrays, e.g.
    `{"country": ["US", " CA "]}` -> `{"country": ["US", "CA"]}`.

    this never raises: a payload that doesn't decode is logged and treated as
    "no filter".
    """
    filters: FilterMap = {}
    if filter_json is None:
        return filters

    decoded = codec.decode_string_list_map(filter_json)
    if isinstance(decoded, DecodeError):
        logger.error("Error parsing filter json: {} message: {}", filter_json, decoded.message)
        return filters

    for dimension, values in decoded.items():
        filters.setdefault(dimension, []).extend(value.strip() for value in values)
    return filters


def restrict_filters(filters: FilterMap, dimensions: Collection[str]) -> FilterMap:
    """Drop filter keys that aren't dimensions of the collection (logged)."""
    unknown = [dimension for dimension in filters if dimension not in dimensions]
    if unknown:
        logger.warning("Ignoring filters on unknown dimensions: {}", ", ".join(unknown))
    return {dimension: values for dimension, values in filters.items() if dimension in dimensions}
