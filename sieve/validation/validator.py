from __future__ import annotations
import logging
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from ..errors import ValidationException
from ..naming import to_words
from .rules import (
    MARKERS,
    NUMERIC_RULES,
    Check,
    Rule,
    get_rule,
    is_empty,
    parse_rules,
    register_rule,
    _is_number,
)

log = logging.getLogger("validation")

RuleExpr = Union[str, Sequence[str]]
_MISSING = object()


class ErrorBag:
    """Failure messages keyed by field, in the order they were found."""

    def __init__(self):
        self.messages: Dict[str, List[str]] = {}

    def add(self, field: str, message: str) -> None:
        self.messages.setdefault(field, []).append(message)

    def has(self, field: str) -> bool:
        return bool(self.messages.get(field))

    def get(self, field: str) -> List[str]:
        return list(self.messages.get(field, []))

    def first(self, field: Optional[str] = None) -> Optional[str]:
        if field is not None:
            found = self.messages.get(field)
            return found[0] if found else None
        for found in self.messages.values():
            if found:
                return found[0]
        return None

    def all(self) -> List[str]:
        return [m for found in self.messages.values() for m in found]

    def to_dict(self) -> Dict[str, List[str]]:
        return {k: list(v) for k, v in self.messages.items()}

    def __len__(self) -> int:
        return sum(len(v) for v in self.messages.values())

    def __bool__(self) -> bool:
        return len(self) > 0

    def __iter__(self) -> Iterator[str]:
        return iter(self.messages)

    def __repr__(self) -> str:
        return f"ErrorBag({self.messages!r})"


class Validator:
    """
    Applies a rule table to a mapping of input.

        v = Validator(
            {"title": "", "email": "nope"},
            {"title": "required|max:120", "email": "required|email"},
            messages={"title.required": "Give the post a title."},
            attributes={"email": "e-mail address"},
        )
        v.fails()          # True
        v.errors().first() # 'Give the post a title.'
        v.validate()       # raises ValidationException

    Rules that are not implicit (see rules.py) are skipped when the field is
    missing or ''; `nullable` also lets None through. `sometimes` skips a
    field that is not in the input at all, and `bail` stops a field at its
    first failure. Dotted field names ('author.email') read nested mappings.
    """

    def __init__(
        self,
        data: Optional[Mapping[str, Any]],
        rules: Mapping[str, RuleExpr],
        messages: Optional[Mapping[str, str]] = None,
        attributes: Optional[Mapping[str, str]] = None,
    ):
        self.data: Dict[str, Any] = dict(data or {})
        self.rules: Dict[str, List[Tuple[str, List[str]]]] = {
            field: parse_rules(expr) for field, expr in rules.items()
        }
        self.custom_messages: Dict[str, str] = dict(messages or {})
        self.custom_attributes: Dict[str, str] = dict(attributes or {})
        self._errors: Optional[ErrorBag] = None

    @staticmethod
    def extend(name: str, check: Check, message: str = "The :attribute is invalid.", *, implicit: bool = False) -> Rule:
        """Register a custom rule usable by every validator."""
        return register_rule(name, check, message, implicit=implicit)

    # -- input access ---------------------------------------------------------

    def _lookup(self, field: str) -> Any:
        if field in self.data:
            return self.data[field]
        node: Any = self.data
        for part in field.split("."):
            if isinstance(node, Mapping) and part in node:
                node = node[part]
            else:
                return _MISSING
        return node

    def has(self, field: str) -> bool:
        return self._lookup(field) is not _MISSING

    def get(self, field: str, default: Any = None) -> Any:
        value = self._lookup(field)
        return default if value is _MISSING else value

    def rule_names(self, field: str) -> List[str]:
        return [name for name, _ in self.rules.get(field, [])]

    def size_of(self, field: str, value: Any) -> Optional[float]:
        """Number for numeric fields, length for strings and collections."""
        if _is_number(value) and (
            not isinstance(value, str) or NUMERIC_RULES.intersection(self.rule_names(field))
        ):
            return float(value)
        if isinstance(value, (str, list, tuple, dict, set)):
            return len(value)
        return None

    def _size_type(self, field: str, value: Any) -> str:
        if isinstance(value, (list, tuple, dict, set)):
            return "array"
        if NUMERIC_RULES.intersection(self.rule_names(field)) or (
            _is_number(value) and not isinstance(value, str)
        ):
            return "numeric"
        return "string"

    # -- running --------------------------------------------------------------

    def _validatable(self, field: str, rule: Rule, names: List[str]) -> bool:
        if rule.implicit:
            return True
        if not self.has(field):
            return False
        value = self.get(field)
        if value is None:
            # without nullable, None still has to satisfy type rules
            return "nullable" not in names
        return not (isinstance(value, str) and value == "")

    def _run(self) -> ErrorBag:
        errors = ErrorBag()
        for field, rules in self.rules.items():
            names = [name for name, _ in rules]
            if "sometimes" in names and not self.has(field):
                continue
            value = self.get(field)
            for name, params in rules:
                if name in MARKERS:
                    continue
                rule = get_rule(name)
                if not self._validatable(field, rule, names):
                    continue
                if rule.check(self, field, value, params):
                    continue
                errors.add(field, self._message(field, rule, params, value))
                if "bail" in names or rule.implicit:
                    break
        if errors:
            log.debug("Validation failed for %s", ", ".join(errors))
        return errors

    def passes(self) -> bool:
        if self._errors is None:
            self._errors = self._run()
        return not self._errors

    def fails(self) -> bool:
        return not self.passes()

    def errors(self) -> ErrorBag:
        self.passes()
        return self._errors

    def validated(self) -> Dict[str, Any]:
        """Input restricted to the fields that have rules and are present."""
        return {field: self.get(field) for field in self.rules if self.has(field)}

    def validate(self) -> Dict[str, Any]:
        if self.fails():
            raise ValidationException(self._errors.first() or "The given data was invalid.",
                                      self._errors.to_dict())
        return self.validated()

    # -- messages -------------------------------------------------------------

    def display_name(self, field: str) -> str:
        if field in self.custom_attributes:
            return self.custom_attributes[field]
        return to_words(field)

    def _message(self, field: str, rule: Rule, params: List[str], value: Any) -> str:
        template = (
            self.custom_messages.get(f"{field}.{rule.name}")
            or self.custom_messages.get(rule.name)
        )
        if template is None:
            template = rule.message
            if isinstance(template, dict):
                template = template[self._size_type(field, value)]

        replacements: Dict[str, str] = {"attribute": self.display_name(field)}
        if not is_empty(value) and not isinstance(value, (list, tuple, dict, set)):
            replacements["input"] = str(value)
        for placeholder, param in zip(rule.placeholders, params):
            if placeholder == "other" and rule.names_fields:
                param = self.display_name(param)
            replacements[placeholder] = param
        if rule.lists_values:
            shown = [self.display_name(p) if rule.names_fields else p for p in params]
            replacements["values"] = ", ".join(shown)

        # longest first so ':values' is not eaten by ':value'. Replacement runs
        # over the whole message, so an :input value containing ':max' is rewritten too.
        for key in sorted(replacements, key=len, reverse=True):
            template = template.replace(f":{key}", replacements[key])
        return template
