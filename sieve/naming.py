import re

_word_sep_re = re.compile(r'[^0-9A-Za-z]+')


def to_snake(name: str) -> str:
    """
    Convert camelCase / kebab-case / dotted names to snake_case.
    Example: 'developmentAreaId' -> 'development_area_id'
    """
    s = _word_sep_re.sub('_', str(name)).strip('_')
    # Insert an underscore before any uppercase letter that follows a lowercase letter
    s = re.sub('(.)([A-Z][a-z]+)', r'\1_\2', s)
    # Insert an underscore before any uppercase letter that follows a lowercase letter or digit
    s = re.sub('([a-z0-9])([A-Z])', r'\1_\2', s).lower()
    return re.sub('_+', '_', s)


def strip_id_suffix(name: str) -> str:
    """'company_id' / 'companyId' -> 'company'. A bare 'id' is left alone."""
    if len(name) > 3 and name.endswith("_id"):
        return name[:-3]
    if len(name) > 2 and name.endswith("Id") and not name[-3].isupper():
        return name[:-2]
    return name


def to_words(name: str) -> str:
    """Human form of a field name: 'first_name' -> 'first name'."""
    return to_snake(name).replace('_', ' ')
