from __future__ import annotations
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union
import re

from ..filters import (
    FilterCollection,
    FilterExpression,
    LogicalOperator,
    Operator,
    operator_from_sql,
)

Params = Union[List[Any], Dict[str, Any]]

_UNQUOTED_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")
_DOTTED_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)*$")
_MISSING = object()


def _check_identifier(name: str) -> str:
    """
    Reject anything that is not a plain (optionally dotted) identifier.
    Column names can come from request input, so they never reach SQL unchecked.
    """
    s = str(name).strip()
    if not _DOTTED_IDENT_RE.match(s):
        raise ValueError(f"Invalid identifier: {name!r}")
    return s

def _quote_identifier(name: str, *, quote_identifiers: bool) -> str:
    """
    Quote an identifier if needed. Doubles internal quotes.
    """
    if not quote_identifiers and _UNQUOTED_IDENT_RE.match(name):
        return name
    escaped = name.replace('"', '""')
    return f'"{escaped}"'

def _quote_dotted_identifier(name: str, *, quote_identifiers: bool) -> str:
    """
    Quote a possibly dotted identifier (e.g., db.schema.table).
    """
    parts = [p.strip() for p in name.split(".")]
    return ".".join(_quote_identifier(p, quote_identifiers=quote_identifiers) for p in parts)

def _escape_like(value: str) -> str:
    """
    Escape \\, %, _ in LIKE patterns. We'll use ESCAPE '\\' in SQL.
    """
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%").replace("_", "\\_")
    return value

class _ParamSink:
    """
    Collects params and returns the correct placeholder per paramstyle.
      - 'qmark'    -> ?, params is a list
      - 'pyformat' -> %(p1)s, params is a dict
    """
    def __init__(self, paramstyle: str = "qmark"):
        if paramstyle not in {"qmark", "pyformat"}:
            raise ValueError("paramstyle must be 'qmark' or 'pyformat'")
        self.paramstyle = paramstyle
        self.prefix = "p"
        self.next_idx = 1
        self.params_list: List[Any] = []
        self.params_dict: Dict[str, Any] = {}

    def add(self, value: Any) -> str:
        if self.paramstyle == "qmark":
            self.params_list.append(value)
            return "?"
        else:
            name = f"{self.prefix}{self.next_idx}"
            self.next_idx += 1
            self.params_dict[name] = value
            return f"%({name})s"

    def bundle(self) -> Params:
        return self.params_list if self.paramstyle == "qmark" else self.params_dict

def _format_like_pattern(val: Any, op: Operator) -> str:
    lit = _escape_like(str(val))
    if op == Operator.LK:
        return f"%{lit}%"
    if op == Operator.SW:
        return f"{lit}%"
    return f"%{lit}"

def _normalize_in_values(raw: Union[str, Sequence[Any]]) -> List[Any]:
    """
    Accepts either a comma-delimited string or a sequence; returns a list.
    """
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip() != ""]
    return list(raw)

def _build_expr_sql(
    e: FilterExpression,
    sink: _ParamSink,
    *,
    use_ilike: bool,
    quote_identifiers: bool,
) -> str:
    col = _quote_dotted_identifier(e.property_name, quote_identifiers=quote_identifiers)
    op  = e.operator
    like_kw = "ILIKE" if use_ilike else "LIKE"

    # Escaped contains / begins-with / ends-with
    if op in (Operator.LK, Operator.SW, Operator.EW):
        ph = sink.add(_format_like_pattern(e.value, op))
        return f"{col} {like_kw} {ph} ESCAPE '\\'"

    # Caller-supplied pattern, wildcards are kept
    if op in (Operator.LIKE, Operator.NLIKE):
        neg = "NOT " if op == Operator.NLIKE else ""
        return f"{col} {neg}{like_kw} {sink.add(e.value)}"

    # IN / NOT IN
    if op in (Operator.IN, Operator.NIN):
        vals = _normalize_in_values(e.value)
        if not vals:
            # IN () is always false; NOT IN () is always true
            return "1=0" if op == Operator.IN else "1=1"
        phs = ", ".join(sink.add(v) for v in vals)
        neg = "NOT " if op == Operator.NIN else ""
        return f"{col} {neg}IN ({phs})"

    if op == Operator.NULL:  return f"{col} IS NULL"
    if op == Operator.NNULL: return f"{col} IS NOT NULL"

    if op == Operator.BTW:
        low, high = e.value
        return f"{col} BETWEEN {sink.add(low)} AND {sink.add(high)}"

    # Scalar compares
    rhs = sink.add(e.value)
    if op == Operator.EQ:  return f"{col} = {rhs}"
    if op == Operator.NE:  return f"{col} <> {rhs}"
    if op == Operator.GT:  return f"{col} > {rhs}"
    if op == Operator.GTE: return f"{col} >= {rhs}"
    if op == Operator.LT:  return f"{col} < {rhs}"
    if op == Operator.LTE: return f"{col} <= {rhs}"

    raise ValueError(f"Unsupported operator: {op}")

def _combine(parts: List[Tuple[LogicalOperator, str]]) -> str:
    if not parts:
        return ""
    out = parts[0][1]
    for logical, sql in parts[1:]:
        joiner = " AND " if logical == LogicalOperator.AND else " OR "
        out += joiner + sql
    return out

def build_where_clause_and_params(
    root: FilterCollection,
    *,
    paramstyle: str = "qmark",        # 'qmark' -> ?,  'pyformat' -> %(p1)s
    use_ilike: bool = False,
    quote_identifiers: bool = False,
) -> Tuple[str, Params]:
    """
    Returns (predicate, params). The predicate is '' when the collection
    holds no conditions, so callers decide whether to emit WHERE at all.
    """
    sink = _ParamSink(paramstyle)

    def walk(node: FilterCollection) -> str:
        parts: List[Tuple[LogicalOperator, str]] = []
        for item in node.items:
            if isinstance(item, FilterCollection):
                child = walk(item)
                if child:
                    parts.append((item.boolean, f"({child})"))
            else:
                parts.append((item.boolean, _build_expr_sql(
                    item, sink, use_ilike=use_ilike, quote_identifiers=quote_identifiers,
                )))
        return _combine(parts)

    return walk(root).strip(), sink.bundle()

# -----------------------------------------------------------------------------
# SELECT builder
# -----------------------------------------------------------------------------
def _normalize_columns(columns: Iterable[str], *, quote_identifiers: bool) -> str:
    """
    Turn a list of column names/expressions into a SELECT list.
    - If empty -> '*'
    - '*' is passed through as-is.
    - Dotted identifiers are quoted segment-by-segment when quoting enabled.
    - If a column looks like an expression (contains space or '(' or ')'),
      it is passed through (trusted input).
    """
    cols = list(columns or [])
    if not cols:
        return "*"

    out: List[str] = []
    for c in cols:
        s = c.strip()
        if s == "*":
            out.append("*")
        elif any(tok in s for tok in (" ", "(", ")")):
            out.append(s)  # treat as expression
        else:
            out.append(_quote_dotted_identifier(_check_identifier(s), quote_identifiers=quote_identifiers))
    return ", ".join(out)

def _parse_sort_item(item: str) -> Tuple[str, str]:
    """
    Accepts:
      - '-age'            -> ('age','DESC')
      - 'age'             -> ('age','ASC')
      - 'age DESC'        -> ('age','DESC')
      - 'age:desc'        -> ('age','DESC')
    """
    s = item.strip()
    if not s:
        return ("", "ASC")

    if s.startswith("-"):
        return (s[1:].strip(), "DESC")

    if ":" in s and s.count(":") == 1:
        col, dir_ = s.split(":")
        d = dir_.strip().upper()
        return (col.strip(), "DESC" if d in ("DESC", "D") else "ASC")

    parts = s.split()
    if len(parts) == 2 and parts[1].upper() in ("ASC", "DESC"):
        return (parts[0].strip(), parts[1].upper())

    return (s, "ASC")

def _logical(boolean: Union[str, LogicalOperator]) -> LogicalOperator:
    if isinstance(boolean, LogicalOperator):
        return boolean
    b = str(boolean).strip().lower()
    if b == "and":
        return LogicalOperator.AND
    if b == "or":
        return LogicalOperator.OR
    raise ValueError(f"boolean must be 'and' or 'or', got {boolean!r}")

def _non_negative(name: str, n: Any) -> int:
    value = int(n)
    if value < 0:
        raise ValueError(f"{name} must be >= 0")
    return value


class QueryBuilder:
    """
    Chainable SELECT builder over a single table.

    Every chaining method mutates the builder and returns it, so calls can be
    threaded through filter methods the same way an ORM query is. Nothing is
    executed here; `to_sql()` renders `(sql, params)` for whatever driver the
    caller owns.
    """

    def __init__(self, table: str, *, quote_identifiers: bool = False, use_ilike: bool = False):
        self.table = _check_identifier(table)
        self.quote_identifiers = quote_identifiers
        self.use_ilike = use_ilike
        self.columns: List[str] = []
        self.wheres = FilterCollection()
        self.orders: List[Tuple[str, str]] = []
        self.limit_value: Optional[int] = None
        self.offset_value: Optional[int] = None
        self.is_distinct = False

    def __repr__(self) -> str:
        return f"<QueryBuilder {self.to_sql()[0]!r}>"

    # -- select ---------------------------------------------------------------

    def select(self, *columns: str) -> "QueryBuilder":
        self.columns = [c for c in columns if c]
        return self

    def distinct(self) -> "QueryBuilder":
        self.is_distinct = True
        return self

    # -- where ----------------------------------------------------------------

    def _push(self, column: str, op: Operator, value: Any, boolean: Union[str, LogicalOperator]) -> "QueryBuilder":
        self.wheres.add(FilterExpression(
            property_name=_check_identifier(column),
            operator=op,
            value=value,
            boolean=_logical(boolean),
        ))
        return self

    def where(self, column: Union[str, Callable[["QueryBuilder"], Any]], operator: Any = _MISSING,
              value: Any = _MISSING, boolean: Union[str, LogicalOperator] = "and") -> "QueryBuilder":
        """
        where("age", 18)          -> age = 18
        where("age", ">=", 18)    -> age >= 18
        where(lambda q: ...)      -> nested group
        """
        if callable(column):
            return self.where_group(column, boolean)
        if operator is _MISSING:
            raise TypeError("where() needs a value")
        if value is _MISSING:
            operator, value = "=", operator
        op = operator_from_sql(str(operator))
        if value is None and op in (Operator.EQ, Operator.NE):
            return self._push(column, Operator.NULL if op == Operator.EQ else Operator.NNULL, None, boolean)
        return self._push(column, op, value, boolean)

    def or_where(self, column: Union[str, Callable[["QueryBuilder"], Any]], operator: Any = _MISSING,
                 value: Any = _MISSING) -> "QueryBuilder":
        return self.where(column, operator, value, boolean="or")

    def where_in(self, column: str, values: Union[str, Sequence[Any]], boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.IN, _normalize_in_values(values), boolean)

    def where_not_in(self, column: str, values: Union[str, Sequence[Any]], boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.NIN, _normalize_in_values(values), boolean)

    def or_where_in(self, column: str, values: Union[str, Sequence[Any]]) -> "QueryBuilder":
        return self.where_in(column, values, boolean="or")

    def where_null(self, column: str, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.NULL, None, boolean)

    def where_not_null(self, column: str, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.NNULL, None, boolean)

    def where_between(self, column: str, low: Any, high: Any, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.BTW, (low, high), boolean)

    def where_like(self, column: str, value: Any, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.LK, value, boolean)

    def where_begins_with(self, column: str, value: Any, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.SW, value, boolean)

    def where_ends_with(self, column: str, value: Any, boolean: str = "and") -> "QueryBuilder":
        return self._push(column, Operator.EW, value, boolean)

    def where_group(self, callback: Callable[["QueryBuilder"], Any], boolean: Union[str, LogicalOperator] = "and") -> "QueryBuilder":
        sub = QueryBuilder(self.table, quote_identifiers=self.quote_identifiers, use_ilike=self.use_ilike)
        callback(sub)
        self.wheres.add(FilterCollection(boolean=_logical(boolean), items=sub.wheres.items))
        return self

    # -- order / paging -------------------------------------------------------

    def order_by(self, column: str, direction: str = "asc") -> "QueryBuilder":
        d = str(direction).strip().lower()
        if d not in ("asc", "desc"):
            raise ValueError(f"Order direction must be 'asc' or 'desc', got {direction!r}")
        self.orders.append((_check_identifier(column), d.upper()))
        return self

    def order_by_desc(self, column: str) -> "QueryBuilder":
        return self.order_by(column, "desc")

    def latest(self, column: str = "created_at") -> "QueryBuilder":
        return self.order_by(column, "desc")

    def oldest(self, column: str = "created_at") -> "QueryBuilder":
        return self.order_by(column, "asc")

    def sort(self, *items: str) -> "QueryBuilder":
        """Order by sort specs: '-age', 'age', 'age DESC', 'age:desc'. Comma lists are split."""
        for item in items:
            for part in str(item).split(","):
                col, direction = _parse_sort_item(part)
                if col:
                    self.order_by(col, direction)
        return self

    def limit(self, n: int) -> "QueryBuilder":
        self.limit_value = _non_negative("limit", n)
        return self

    def offset(self, n: int) -> "QueryBuilder":
        self.offset_value = _non_negative("offset", n)
        return self

    def for_page(self, page: int, per_page: int) -> "QueryBuilder":
        page = max(int(page), 1)
        per_page = _non_negative("per_page", per_page)
        return self.limit(per_page).offset((page - 1) * per_page)

    # -- rendering ------------------------------------------------------------

    def clone(self) -> "QueryBuilder":
        return deepcopy(self)

    def _from_name(self) -> str:
        return _quote_dotted_identifier(self.table, quote_identifiers=self.quote_identifiers)

    def _where(self, paramstyle: str) -> Tuple[str, Params]:
        return build_where_clause_and_params(
            self.wheres,
            paramstyle=paramstyle,
            use_ilike=self.use_ilike,
            quote_identifiers=self.quote_identifiers,
        )

    def to_sql(self, paramstyle: str = "qmark") -> Tuple[str, Params]:
        select_list = _normalize_columns(self.columns, quote_identifiers=self.quote_identifiers)
        distinct_kw = "DISTINCT " if self.is_distinct else ""
        where_body, params = self._where(paramstyle)

        sql = f"SELECT {distinct_kw}{select_list} FROM {self._from_name()}"
        if where_body:
            sql += f" WHERE {where_body}"
        if self.orders:
            rendered = [
                f"{_quote_dotted_identifier(col, quote_identifiers=self.quote_identifiers)} {d}"
                for col, d in self.orders
            ]
            sql += " ORDER BY " + ", ".join(rendered)
        if self.limit_value is not None:
            sql += f" LIMIT {self.limit_value}"
        if self.offset_value:
            sql += f" OFFSET {self.offset_value}"
        return sql, params

    def to_count_sql(self, paramstyle: str = "qmark") -> Tuple[str, Params]:
        where_body, params = self._where(paramstyle)
        sql = f"SELECT COUNT(*) FROM {self._from_name()}"
        if where_body:
            sql += f" WHERE {where_body}"
        return sql, params


@dataclass
class SelectBuildResult:
    sql: str
    params: Params
    count_sql: Optional[str] = None
    count_params: Optional[Params] = None


def build_select(query: QueryBuilder, *, paramstyle: str = "qmark", include_count: bool = False) -> SelectBuildResult:
    sql, params = query.to_sql(paramstyle)
    count_sql = None
    count_params = None
    if include_count:
        count_sql, count_params = query.to_count_sql(paramstyle)
    return SelectBuildResult(sql=sql, params=params, count_sql=count_sql, count_params=count_params)

# -----------------------------------------------------------------------------
# Public exports
# -----------------------------------------------------------------------------
__all__ = [
    "QueryBuilder",
    "build_where_clause_and_params",
    "build_select",
    "SelectBuildResult",
]
