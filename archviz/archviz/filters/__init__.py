"""Filter primitives and the cascading filter collection."""

from .collection import FilterCollection, FilterCollectionBuilder, build_filter_collection
from .filter import Filter, FilterGroup, FilterPrecondition

__all__ = [
    "Filter",
    "FilterCollection",
    "FilterCollectionBuilder",
    "FilterGroup",
    "FilterPrecondition",
    "build_filter_collection",
]
