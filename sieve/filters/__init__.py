"""
Filter models for the sieve query builder.

This module provides the expression tree that query builders accumulate
and render into parameterised WHERE clauses.
"""

from .models import (
    Operator,
    LogicalOperator,
    SQL_OPERATORS,
    operator_from_sql,
    FilterExpression,
    FilterCollection,
)

__all__ = [
    "Operator",
    "LogicalOperator",
    "SQL_OPERATORS",
    "operator_from_sql",
    "FilterExpression",
    "FilterCollection",
]
