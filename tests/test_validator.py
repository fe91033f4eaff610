"""
Tests for rule-string validation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from sieve.errors import ValidationException
from sieve.validation import RULES, ErrorBag, Validator, parse_rules


def first_error(data, rules, **kw):
    return Validator(data, rules, **kw).errors().first()


def test_parse_rules():
    assert parse_rules("required|max:255|in:a, b") == [
        ("required", []), ("max", ["255"]), ("in", ["a", "b"]),
    ]
    assert parse_rules(["required", "regex:^(a|b),c$"]) == [
        ("required", []), ("regex", ["^(a|b),c$"]),
    ]


def test_required_message():
    assert first_error({"title": ""}, {"title": "required"}) == "The title field is required."
    assert first_error({}, {"first_name": "required"}) == "The first name field is required."


def test_passes_and_fails():
    v = Validator({"title": "Hello"}, {"title": "required|string|max:10"})
    assert v.passes()
    assert not v.fails()
    assert len(v.errors()) == 0


def test_attribute_override():
    msg = first_error({}, {"first_name": "required"}, attributes={"first_name": "given name"})
    assert msg == "The given name field is required."


def test_message_overrides_field_rule_before_rule():
    rules = {"title": "required", "body": "required"}
    messages = {"title.required": "Title please.", "required": ":attribute is missing"}
    errors = Validator({}, rules, messages=messages).errors()
    assert errors.get("title") == ["Title please."]
    assert errors.get("body") == ["body is missing"]


def test_custom_message_placeholders():
    msg = first_error(
        {"code": "abcdef"}, {"code": "max:3"},
        messages={"code.max": ":attribute ':input' is longer than :max"},
    )
    assert msg == "code 'abcdef' is longer than 3"


def test_size_messages_depend_on_type():
    assert first_error({"title": "abcdef"}, {"title": "string|max:5"}) == \
        "The title may not be greater than 5 characters."
    assert first_error({"age": "12"}, {"age": "numeric|max:10"}) == \
        "The age may not be greater than 10."
    assert first_error({"tags": [1, 2, 3]}, {"tags": "array|max:2"}) == \
        "The tags may not have more than 2 items."
    assert first_error({"name": "A"}, {"name": "between:2,80"}) == \
        "The name must be between 2 and 80 characters."
    assert first_error({"pin": "123"}, {"pin": "size:4"}) == "The pin must be 4 characters."


def test_numeric_strings_compare_as_numbers():
    assert Validator({"age": "9"}, {"age": "integer|min:10"}).fails()
    assert Validator({"age": "10"}, {"age": "integer|min:10"}).passes()
    # without a numeric rule a string is measured by length
    assert Validator({"age": "10"}, {"age": "min:3"}).fails()


def test_optional_fields_skip_non_implicit_rules():
    assert Validator({}, {"email": "email"}).passes()
    assert Validator({"email": ""}, {"email": "email"}).passes()


def test_nullable():
    assert Validator({"published_at": None}, {"published_at": "nullable|date"}).passes()
    assert first_error({"published_at": None}, {"published_at": "date"}) == \
        "The published at is not a valid date."
    assert Validator({"title": None}, {"title": "nullable|required"}).fails()


def test_sometimes():
    assert Validator({}, {"title": "sometimes|required"}).passes()
    assert Validator({"title": ""}, {"title": "sometimes|required"}).fails()


def test_bail_stops_at_first_failure():
    assert len(Validator({"code": "ab"}, {"code": "bail|integer|min:3"}).errors()) == 1
    errors = Validator({"code": "ab"}, {"code": "integer|min:3"}).errors()
    assert errors.get("code") == ["The code must be an integer.", "The code must be at least 3."]


def test_failed_required_stops_the_field():
    assert Validator({}, {"title": "required|string|min:3"}).errors().get("title") == [
        "The title field is required.",
    ]


def test_in_and_not_in():
    assert first_error({"status": "gone"}, {"status": "in:draft,published"}) == "The selected status is invalid."
    assert Validator({"status": ["draft", "published"]}, {"status": "in:draft,published"}).passes()
    assert Validator({"role": "root"}, {"role": "not_in:root,admin"}).fails()


def test_confirmed_same_different():
    assert first_error({"password": "a", "password_confirmation": "b"}, {"password": "confirmed"}) == \
        "The password confirmation does not match."
    assert first_error({"new": "x", "old": "x"}, {"new": "different:old"}) == \
        "The new and old must be different."
    assert first_error({"a": "x", "b": "y"}, {"a": "same:b"}, attributes={"b": "bee"}) == \
        "The a and bee must match."


def test_conditional_required():
    assert first_error({"street": "Main"}, {"city": "required_with:street"}) == \
        "The city field is required when street is present."
    assert Validator({}, {"city": "required_with:street"}).passes()

    assert Validator({}, {"email": "required_without:phone"}).fails()
    assert Validator({"phone": "555"}, {"email": "required_without:phone"}).passes()

    assert first_error({"status": "rejected"}, {"reason": "required_if:status,rejected"}) == \
        "The reason field is required when status is rejected."
    assert Validator({"status": "ok"}, {"reason": "required_if:status,rejected"}).passes()


def test_present():
    assert first_error({}, {"note": "present"}) == "The note field must be present."
    assert Validator({"note": ""}, {"note": "present"}).passes()
    assert Validator({"note": "x"}, {"note": "present"}).passes()


def test_filled():
    assert Validator({}, {"note": "filled"}).passes()
    assert first_error({"note": ""}, {"note": "filled"}) == "The note field must have a value."
    assert Validator({"note": "x"}, {"note": "filled"}).passes()


def test_required_treats_whitespace_as_empty():
    assert first_error({"title": "   "}, {"title": "required"}) == "The title field is required."


@pytest.mark.parametrize("rule, good, bad", [
    ("string", "x", 5),
    ("integer", "-12", "1.5"),
    ("numeric", "1.5e3", "abc"),
    ("boolean", "true", "maybe"),
    ("array", [1], "x"),
    ("email", "a@b.io", "a@b"),
    ("url", "https://example.com/x", "example.com"),
    ("uuid", "12345678-1234-5678-1234-567812345678", "1234"),
    ("json", '{"a": 1}', "{a:1}"),
    ("date", "2024-02-29", "2023-02-29"),
    ("alpha", "abc", "ab1"),
    ("alpha_num", "ab1", "ab-1"),
    ("alpha_dash", "ab-1_c", "ab 1"),
    ("digits:4", "1234", "123a"),
    ("digits_between:2,3", "123", "1"),
    ("starts_with:ab,cd", "cdx", "xab"),
    ("ends_with:.py", "main.py", "main.rs"),
    ("regex:^[A-Z]{3}$", "ABC", "AB"),
    ("not_regex:^\\d+$", "a1", "11"),
    ("accepted", "yes", "no"),
])
def test_type_rules(rule, good, bad):
    assert Validator({"f": good}, {"f": rule}).passes()
    assert Validator({"f": bad}, {"f": rule}).fails()


def test_list_form_keeps_pipes_in_regex():
    rules = {"code": ["required", "regex:^(ab|cd)$"]}
    assert Validator({"code": "ab"}, rules).passes()
    assert Validator({"code": "ef"}, rules).fails()


def test_before_and_after():
    assert Validator({"start": "2024-01-01"}, {"start": "before:2024-06-01"}).passes()
    assert first_error({"start": "2024-07-01"}, {"start": "before:2024-06-01"}) == \
        "The start must be a date before 2024-06-01."
    data = {"start": "2024-01-01", "end": "2023-12-31"}
    assert Validator(data, {"end": "after:start"}).fails()
    assert Validator({"end": "2024-01-01T10:00:00Z"}, {"end": "after:2024-01-01"}).passes()


def test_before_and_after_with_aware_datetimes():
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    assert Validator({"start": start}, {"start": "after:2024-01-01"}).passes()
    assert Validator({"start": start}, {"start": "before:2024-01-01"}).fails()

    # 01:00 at +02:00 is still 2023 in UTC
    early = datetime(2024, 1, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
    assert Validator({"start": early}, {"start": "before:2024-01-01"}).passes()

    deadline = datetime(2024, 3, 1, tzinfo=timezone.utc)
    assert Validator({"a": "2024-01-01", "b": deadline}, {"a": "before:b"}).passes()
    assert Validator({"a": "2024-06-01", "b": deadline}, {"a": "before:b"}).fails()


def test_nested_fields():
    data = {"author": {"email": "bad"}}
    assert first_error(data, {"author.email": "required|email"}) == \
        "The author email must be a valid email address."
    assert Validator({"author": {}}, {"author.email": "required"}).fails()


def test_unknown_rule_raises():
    with pytest.raises(ValueError):
        Validator({"a": 1}, {"a": "shiny"}).passes()


@pytest.mark.parametrize("rule", [
    "min", "max", "size", "between:1", "digits", "digits_between:2",
    "regex", "same", "different", "before", "after",
])
def test_rule_missing_parameters_raises(rule):
    with pytest.raises(ValueError):
        Validator({"a": "x", "b": "y"}, {"a": rule}).passes()


def test_extend_registers_a_rule():
    Validator.extend("even", lambda v, attribute, value, params: int(value) % 2 == 0,
                     "The :attribute must be even.")
    try:
        assert first_error({"n": "3"}, {"n": "even"}) == "The n must be even."
        assert Validator({"n": 4}, {"n": "even"}).passes()
    finally:
        RULES.pop("even", None)


def test_validate_raises_with_first_message_and_all_errors():
    rules = {"title": "required", "email": "required|email", "age": "integer"}
    with pytest.raises(ValidationException) as exc:
        Validator({"email": "x", "age": "5"}, rules).validate()
    assert exc.value.message == "The title field is required."
    assert str(exc.value) == "The title field is required."
    assert exc.value.errors == {
        "title": ["The title field is required."],
        "email": ["The email must be a valid email address."],
    }
    assert exc.value.to_dict()["message"] == "The title field is required."


def test_validate_returns_only_ruled_fields():
    data = {"title": "Hi", "extra": "dropped"}
    assert Validator(data, {"title": "required", "body": "string"}).validate() == {"title": "Hi"}


def test_error_bag():
    bag = ErrorBag()
    assert not bag
    bag.add("a", "one")
    bag.add("a", "two")
    bag.add("b", "three")
    assert bag.has("a") and not bag.has("c")
    assert bag.first() == "one"
    assert bag.first("b") == "three"
    assert bag.first("c") is None
    assert bag.all() == ["one", "two", "three"]
    assert list(bag) == ["a", "b"]
    assert len(bag) == 3


def test_input_placeholder_values_are_substituted_too():
    msg = first_error({"code": "a:max"}, {"code": "max:3"}, messages={"code.max": "Got :input"})
    assert msg == "Got a3"
