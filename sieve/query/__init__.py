"""
Query building module for sieve.

This module provides the chainable QueryBuilder that filters thread their
calls through, and SQL rendering of its filter tree.
"""

from .builder import (
    QueryBuilder,
    build_where_clause_and_params,
    build_select,
    SelectBuildResult,
)

__all__ = [
    "QueryBuilder",
    "build_where_clause_and_params",
    "build_select",
    "SelectBuildResult",
]
