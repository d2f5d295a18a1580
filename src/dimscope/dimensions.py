"""Dimension listing and group-by selection for a collection."""

from collections.abc import Mapping, Sequence

from dimscope.interfaces import SchemaSource


def list_dimensions(schema_source: SchemaSource, collection: str) -> list[str]:
    """All dimension names of a collection, sorted.

    schema lookup errors propagate - there is nothing sensible to show
    without a schema.
    """
    schema = schema_source.get_collection_schema(collection)
    return sorted(schema.dimension_names())


def select_group_by_dimensions(
    all_dimensions: Sequence[str], filters: Mapping[str, Sequence[str]] | None
) -> list[str]:
    """Dimensions not already pinned by a filter, in catalog order.

    with no filter map at all every dimension is eligible. an empty filter
    map gives the same answer, just through the set difference.
    """
    if filters is None:
        return list(all_dimensions)
    return [dimension for dimension in all_dimensions if dimension not in filters]


def dimensions_to_group_by(
    schema_source: SchemaSource,
    collection: str,
    filters: Mapping[str, Sequence[str]] | None,
) -> list[str]:
    """Sorted dimensions of a collection minus the filtered ones."""
    return select_group_by_dimensions(list_dimensions(schema_source, collection), filters)
