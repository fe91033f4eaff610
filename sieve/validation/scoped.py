from typing import Any, ClassVar, Dict, Mapping, Optional

from .validator import RuleExpr, Validator

CONTEXTS = ("create", "update")


def rules_for(rules: Mapping[str, Any], context: str = "create") -> Dict[str, RuleExpr]:
    """
    Resolve a rule table for one context.

    Top-level entries apply to every context; a nested 'create' or 'update'
    table is merged over them:

        {
            "title": "required|max:120",
            "update": {"title": "sometimes|max:120"},
        }
    """
    if context not in CONTEXTS:
        raise ValueError(f"Unknown validation context: {context!r} (expected one of {CONTEXTS})")
    shared = {k: v for k, v in rules.items() if k not in CONTEXTS}
    scoped = rules.get(context) or {}
    if not isinstance(scoped, Mapping):
        raise ValueError(f"Rules for {context!r} must be a mapping")
    return {**shared, **scoped}


class ValidatesInput:
    """
    Mixin for models that carry their own rule table.

        class Post(ValidatesInput, Model):
            rules = {"title": "required|string|max:120"}
            messages = {"title.required": "A post needs a title."}

        Post.validate_input(payload, context="update")
    """

    rules: ClassVar[Mapping[str, Any]] = {}
    messages: ClassVar[Mapping[str, str]] = {}
    attributes: ClassVar[Mapping[str, str]] = {}

    @classmethod
    def rules_for(cls, context: str = "create") -> Dict[str, RuleExpr]:
        return rules_for(cls.rules, context)

    @classmethod
    def validator(cls, data: Optional[Mapping[str, Any]], context: str = "create") -> Validator:
        return Validator(data, cls.rules_for(context), cls.messages, cls.attributes)

    @classmethod
    def validate_input(cls, data: Optional[Mapping[str, Any]], context: str = "create") -> Dict[str, Any]:
        return cls.validator(data, context).validate()
