"""
Validation module for sieve.

This module provides rule-string validation of request input: named rules,
message and attribute overrides, and create/update scoped rule tables.
"""

from .rules import RULES, Rule, parse_rules, register_rule
from .validator import ErrorBag, Validator
from .scoped import CONTEXTS, ValidatesInput, rules_for
from ..errors import ValidationException

__all__ = [
    "RULES",
    "Rule",
    "parse_rules",
    "register_rule",
    "ErrorBag",
    "Validator",
    "CONTEXTS",
    "ValidatesInput",
    "rules_for",
    "ValidationException",
]
