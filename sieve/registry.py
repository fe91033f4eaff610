import importlib
import json
import logging
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

import yaml
from jsonschema import Draft7Validator

from .config import ENTITIES_FILE, GLOBAL_MAX_PAGE_SIZE
from .errors import ConfigError
from .filtering import Filterable, ModelFilter
from .validation import ValidatesInput, rules_for

log = logging.getLogger("registry")

_RULE_EXPR = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}},
    ]
}

ENTITIES_SCHEMA: t.Dict[str, t.Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "Entities",
    "type": "object",
    "required": ["entities"],
    "properties": {
        "entities": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "additionalProperties": False,
                "required": ["model"],
                "properties": {
                    "model": {"type": "string", "pattern": r"^[\w.]+:\w+$"},
                    "filter": {"type": "string", "pattern": r"^[\w.]+:\w+$"},
                    "maxPageSize": {"type": "integer", "minimum": 1},
                    "rules": {
                        "type": "object",
                        "properties": {
                            "create": {"type": "object", "additionalProperties": _RULE_EXPR},
                            "update": {"type": "object", "additionalProperties": _RULE_EXPR},
                        },
                        "additionalProperties": _RULE_EXPR,
                    },
                    "messages": {"type": "object", "additionalProperties": {"type": "string"}},
                    "attributes": {"type": "object", "additionalProperties": {"type": "string"}},
                },
            },
        },
    },
}


class EntityMeta(t.TypedDict, total=False):
    model: str
    filter: str
    maxPageSize: int
    rules: t.Dict[str, t.Any]
    messages: t.Dict[str, str]
    attributes: t.Dict[str, str]


@dataclass
class Entity:
    name: str
    model: t.Type[Filterable]
    filter_class: t.Type[ModelFilter]
    max_page_size: int = GLOBAL_MAX_PAGE_SIZE
    rules: t.Dict[str, t.Any] = field(default_factory=dict)
    messages: t.Dict[str, str] = field(default_factory=dict)
    attributes: t.Dict[str, str] = field(default_factory=dict)

    def rules_for(self, context: str) -> t.Dict[str, t.Any]:
        return rules_for(self.rules, context)

    def cap_page_size(self, per_page: int) -> int:
        if per_page <= 0:
            return min(self.model.per_page, self.max_page_size)
        return min(per_page, self.max_page_size)


def import_string(path: str) -> t.Any:
    """'package.module:Name' -> the object."""
    module_name, _, attr = path.partition(":")
    if not module_name or not attr:
        raise ConfigError(f"Expected 'module:Name', got {path!r}")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Cannot import {module_name}: {e}") from e
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigError(f"{module_name} has no attribute {attr}") from None


class Registry:
    def __init__(self, path: t.Optional[Path] = None):
        self.path = Path(path) if path is not None else ENTITIES_FILE
        self.entities_cfg: t.Dict[str, EntityMeta] = {}
        self.entities: t.Dict[str, Entity] = {}
        self.loaded = False

    def load(self) -> None:
        if not self.path.exists():
            raise ConfigError(f"Entities file not found: {self.path}")
        with self.path.open("r", encoding="utf-8") as f:
            if self.path.suffix.lower() in (".yaml", ".yml"):
                cfg = yaml.safe_load(f) or {}
            else:
                cfg = json.load(f)

        errors = sorted(Draft7Validator(ENTITIES_SCHEMA).iter_errors(cfg), key=lambda e: [str(p) for p in e.path])
        if errors:
            e = errors[0]
            where = ".".join(map(str, e.path)) or "<root>"
            raise ConfigError(f"Bad entities file {self.path} at {where}: {e.message}")

        self.entities_cfg = dict(cfg["entities"])
        self.entities = {}
        self.loaded = True
        log.info("Loaded %d entities from %s", len(self.entities_cfg), self.path)

    def _resolve(self, name: str, meta: EntityMeta) -> Entity:
        model = import_string(meta["model"])
        if not (isinstance(model, type) and issubclass(model, Filterable)):
            raise ConfigError(f"Model for {name} is not Filterable: {meta['model']}")
        if "filter" in meta:
            filter_class = import_string(meta["filter"])
        else:
            try:
                filter_class = model.get_model_filter()
            except LookupError as e:
                raise ConfigError(f"No filter for {name}: {e}") from e
        if not (isinstance(filter_class, type) and issubclass(filter_class, ModelFilter)):
            raise ConfigError(f"Filter for {name} is not a ModelFilter")

        # the file wins; otherwise fall back to the model's own rule table
        rules = meta.get("rules")
        messages = meta.get("messages")
        attributes = meta.get("attributes")
        if issubclass(model, ValidatesInput):
            rules = model.rules if rules is None else rules
            messages = model.messages if messages is None else messages
            attributes = model.attributes if attributes is None else attributes

        return Entity(
            name=name,
            model=model,
            filter_class=filter_class,
            max_page_size=int(meta.get("maxPageSize", GLOBAL_MAX_PAGE_SIZE)),
            rules=dict(rules or {}),
            messages=dict(messages or {}),
            attributes=dict(attributes or {}),
        )

    def ensure_entity(self, name: str) -> Entity:
        if not self.loaded:
            self.load()
        if name not in self.entities_cfg:
            raise KeyError(f"Unknown entity: {name}")
        cached = self.entities.get(name)
        if cached is not None:
            return cached
        entity = self._resolve(name, self.entities_cfg[name])
        self.entities[name] = entity
        return entity

    def names(self) -> t.List[str]:
        if not self.loaded:
            self.load()
        return list(self.entities_cfg.keys())

    def refresh_all(self) -> t.Dict[str, str]:
        """Re-read the entities file and re-resolve every entity."""
        self.load()
        summaries: t.Dict[str, str] = {}
        for name in self.entities_cfg:
            try:
                entity = self.ensure_entity(name)
                summaries[name] = f"ok ({len(entity.rules)} rules)"
            except ConfigError as e:
                log.warning("Entity %s failed to resolve: %s", name, e)
                summaries[name] = f"error: {e}"
        return summaries
