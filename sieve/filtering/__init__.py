"""
Request-driven query filtering for sieve models.

This module maps request parameters onto methods of a per-model filter
class, threading a QueryBuilder through each call.
"""

from .model_filter import ModelFilter, clean_input, filter_methods
from .filterable import Filterable, Page
from .registry import FILTERS, FilterRegistry, register_filter

__all__ = [
    "ModelFilter",
    "clean_input",
    "filter_methods",
    "Filterable",
    "Page",
    "FILTERS",
    "FilterRegistry",
    "register_filter",
]
