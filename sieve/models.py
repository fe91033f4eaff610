from typing import ClassVar

from .config import QUOTE_IDENTIFIERS, USE_ILIKE
from .query import QueryBuilder


class Model:
    """
    Table-backed model. Subclasses name their table; `query()` hands out a
    fresh builder over it.
    """

    __table__: ClassVar[str] = ""

    @classmethod
    def query(cls) -> QueryBuilder:
        if not cls.__table__:
            raise TypeError(f"{cls.__name__} does not define __table__")
        return QueryBuilder(cls.__table__, quote_identifiers=QUOTE_IDENTIFIERS, use_ilike=USE_ILIKE)
