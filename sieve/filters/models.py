from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Union

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Operator(str, Enum):
    EQ = "EQ"
    NE = "NE"
    LK = "LK"
    SW = "SW"
    EW = "EW"
    GT = "GT"
    GTE = "GTE"
    LT = "LT"
    LTE = "LTE"
    IN = "IN"
    NIN = "NIN"
    NULL = "NULL"
    NNULL = "NNULL"
    BTW = "BTW"
    LIKE = "LIKE"
    NLIKE = "NLIKE"


class LogicalOperator(str, Enum):
    AND = "And"
    OR = "Or"


# Builder-facing spellings of the scalar comparison operators.
SQL_OPERATORS: Dict[str, Operator] = {
    "=": Operator.EQ,
    "==": Operator.EQ,
    "!=": Operator.NE,
    "<>": Operator.NE,
    ">": Operator.GT,
    ">=": Operator.GTE,
    "<": Operator.LT,
    "<=": Operator.LTE,
    "like": Operator.LIKE,
    "not like": Operator.NLIKE,
}


def operator_from_sql(op: str) -> Operator:
    try:
        return SQL_OPERATORS[op.strip().lower()]
    except KeyError:
        raise ValueError(f"Unsupported operator: {op}") from None


# ---------------------------------------------------------------------------
# Core filter models
# ---------------------------------------------------------------------------

@dataclass
class FilterExpression:
    """
    Basic component of a filter: a property (column), an operator, and a value.
    `boolean` is how the expression joins the one before it.
    """
    property_name: str
    operator: Operator = Operator.EQ
    value: Any = ""
    boolean: LogicalOperator = LogicalOperator.AND


@dataclass
class FilterCollection:
    """
    Ordered, possibly nested group of FilterExpressions. Rendered left to
    right, each item joined to its predecessor by its own `boolean`.
    """
    boolean: LogicalOperator = LogicalOperator.AND
    items: List[Union["FilterCollection", FilterExpression]] = field(default_factory=list)

    def add(self, item: Union["FilterCollection", FilterExpression]) -> None:
        self.items.append(item)


__all__ = [
    "Operator",
    "LogicalOperator",
    "SQL_OPERATORS",
    "operator_from_sql",
    "FilterExpression",
    "FilterCollection",
]
