"""
sieve: rule-string validation and request-driven query filtering.

- query/: chainable QueryBuilder rendering parameterised SQL
- filtering/: ModelFilter companions and the Filterable model mixin
- validation/: Validator, rule table and create/update scoped rules
- registry.py: YAML entity registry used by the FastAPI service in main.py
"""

from .errors import ConfigError, ValidationException
from .filtering import Filterable, ModelFilter, register_filter
from .models import Model
from .query import QueryBuilder
from .validation import ValidatesInput, Validator

__version__ = "1.0.0"

__all__ = [
    "ConfigError",
    "ValidationException",
    "Filterable",
    "ModelFilter",
    "register_filter",
    "Model",
    "QueryBuilder",
    "ValidatesInput",
    "Validator",
]
