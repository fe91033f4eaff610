from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Mapping, Optional, Type

from ..config import DEFAULT_PAGE_SIZE
from ..query import QueryBuilder, build_select
from ..query.builder import Params
from .model_filter import ModelFilter
from .registry import FILTERS


@dataclass
class Page:
    sql: str
    params: Params
    page: int
    per_page: int
    count_sql: Optional[str] = None
    count_params: Optional[Params] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sql": self.sql,
            "params": self.params,
            "countSql": self.count_sql,
            "countParams": self.count_params,
            "page": self.page,
            "perPage": self.per_page,
        }


class Filterable:
    """
    Mixin for models: `Post.filter(request_params)` runs the post's filter
    class over a fresh query and returns the resulting builder.

    The filter class is the `filter_class` argument, else `model_filter`,
    else whatever is registered as '<ModelName>Filter'.
    """

    model_filter: ClassVar[Optional[Type[ModelFilter]]] = None
    per_page: ClassVar[int] = DEFAULT_PAGE_SIZE

    @classmethod
    def get_model_filter(cls, filter_class: Optional[Type[ModelFilter]] = None) -> Type[ModelFilter]:
        if filter_class is not None:
            return filter_class
        if cls.model_filter is not None:
            return cls.model_filter
        return FILTERS.resolve(f"{cls.__name__}Filter")

    @classmethod
    def filter(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        filter_class: Optional[Type[ModelFilter]] = None,
        query: Optional[QueryBuilder] = None,
    ) -> QueryBuilder:
        filter_cls = cls.get_model_filter(filter_class)
        base = query if query is not None else cls.query()
        return filter_cls(base, params).handle()

    @classmethod
    def paginate_filter(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        page: int = 1,
        per_page: Optional[int] = None,
        filter_class: Optional[Type[ModelFilter]] = None,
        paramstyle: str = "qmark",
    ) -> Page:
        page = max(int(page), 1)
        per_page = int(per_page or cls.per_page)
        q = cls.filter(params, filter_class).for_page(page, per_page)
        res = build_select(q, paramstyle=paramstyle, include_count=True)
        return Page(sql=res.sql, params=res.params, page=page, per_page=per_page,
                    count_sql=res.count_sql, count_params=res.count_params)

    @classmethod
    def simple_paginate_filter(
        cls,
        params: Optional[Mapping[str, Any]] = None,
        page: int = 1,
        per_page: Optional[int] = None,
        filter_class: Optional[Type[ModelFilter]] = None,
        paramstyle: str = "qmark",
    ) -> Page:
        # one extra row tells the caller whether a next page exists
        page = max(int(page), 1)
        per_page = int(per_page or cls.per_page)
        q = cls.filter(params, filter_class)
        q.limit(per_page + 1).offset((page - 1) * per_page)
        res = build_select(q, paramstyle=paramstyle)
        return Page(sql=res.sql, params=res.params, page=page, per_page=per_page)
