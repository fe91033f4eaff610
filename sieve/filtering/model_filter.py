from __future__ import annotations
import logging
from typing import Any, ClassVar, Dict, Iterable, List, Mapping, Optional

from ..naming import strip_id_suffix, to_snake
from ..query import QueryBuilder

log = logging.getLogger("filter")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def clean_input(params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Drop keys whose value is '' or None. Lists lose their empty items and are
    dropped when nothing is left.
    """
    out: Dict[str, Any] = {}
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            items = [v for v in value if not _is_empty(v)]
            if items:
                out[key] = items
        elif not _is_empty(value):
            out[key] = value
    return out


class ModelFilter:
    """
    Companion filter for a model.

    Every input key is mapped to a method on the subclass and, when one
    exists, the method is called with the value. Methods work on
    `self.query`; returning a QueryBuilder replaces it, returning None keeps
    it::

        @register_filter
        class PostFilter(ModelFilter):
            def title(self, value):
                return self.where_like("title", value)

            def author(self, value):          # ?authorId=7 / ?author_id=7
                return self.query.where("author_id", value)

    Key to method: drop a trailing `_id`/`Id` (when `drop_id`), then
    snake_case. `publishedAfter` -> `published_after`.
    """

    drop_id: ClassVar[bool] = True
    remove_empty_input: ClassVar[bool] = True
    blacklist: ClassVar[Iterable[str]] = ()

    def __init__(self, query: QueryBuilder, params: Optional[Mapping[str, Any]] = None):
        self.query = query
        params = dict(params or {})
        self._input = clean_input(params) if self.remove_empty_input else params
        self._blacklist = set(self.blacklist)

    def handle(self) -> QueryBuilder:
        setup = getattr(self, "setup", None)
        if callable(setup):
            self._thread(setup())

        for key, value in self._input.items():
            method = self.get_filter_method(key)
            if not self.method_is_callable(method):
                log.debug("%s: no filter method for %r", type(self).__name__, key)
                continue
            self._thread(getattr(self, method)(value))
        return self.query

    def _thread(self, result: Any) -> None:
        if isinstance(result, QueryBuilder):
            self.query = result

    def get_filter_method(self, key: str) -> str:
        name = str(key)
        if name.startswith("_"):
            return name
        name = to_snake(name)
        if self.drop_id:
            name = strip_id_suffix(name)
        return name

    def method_is_callable(self, method: str) -> bool:
        if not method or method.startswith("_"):
            return False
        if method in RESERVED or method in self._blacklist:
            return False
        return callable(getattr(self, method, None))

    def blacklist_method(self, method: str) -> "ModelFilter":
        self._blacklist.add(method)
        return self

    def whitelist_method(self, method: str) -> "ModelFilter":
        self._blacklist.discard(method)
        return self

    def input(self, key: Optional[str] = None, default: Any = None) -> Any:
        if key is None:
            return dict(self._input)
        return self._input.get(key, default)

    # Shorthands over the current query.

    def where_like(self, column: str, value: Any) -> QueryBuilder:
        return self.query.where_like(column, value)

    def where_begins_with(self, column: str, value: Any) -> QueryBuilder:
        return self.query.where_begins_with(column, value)

    def where_ends_with(self, column: str, value: Any) -> QueryBuilder:
        return self.query.where_ends_with(column, value)


# Base-class API never doubles as a filter method.
RESERVED = frozenset(
    {name for name in dir(ModelFilter) if not name.startswith("_")} | {"setup", "query"}
)


def filter_methods(filter_cls: type) -> List[str]:
    """Public methods of a filter class that input keys can reach."""
    blocked = RESERVED | set(getattr(filter_cls, "blacklist", ()))
    return sorted(
        name for name in dir(filter_cls)
        if not name.startswith("_") and name not in blocked and callable(getattr(filter_cls, name))
    )
