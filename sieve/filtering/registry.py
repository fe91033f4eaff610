import logging
from typing import Dict, Type, TYPE_CHECKING

if TYPE_CHECKING:
    from .model_filter import ModelFilter

log = logging.getLogger("filter")


class FilterRegistry:
    """Name -> ModelFilter subclass. Models find their filter here by '<Model>Filter'."""

    def __init__(self):
        self.filters: Dict[str, Type["ModelFilter"]] = {}

    def register(self, filter_cls: Type["ModelFilter"]) -> Type["ModelFilter"]:
        name = filter_cls.__name__
        existing = self.filters.get(name)
        if existing is not None and existing is not filter_cls:
            log.warning("Replacing registered filter %s (%s -> %s)",
                        name, existing.__module__, filter_cls.__module__)
        self.filters[name] = filter_cls
        return filter_cls

    def resolve(self, name: str) -> Type["ModelFilter"]:
        try:
            return self.filters[name]
        except KeyError:
            raise LookupError(f"No filter registered as {name}") from None

    def __contains__(self, name: str) -> bool:
        return name in self.filters


FILTERS = FilterRegistry()


def register_filter(filter_cls):
    """Class decorator: make a ModelFilter discoverable by its class name."""
    return FILTERS.register(filter_cls)
