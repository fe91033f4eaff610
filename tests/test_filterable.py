"""
Tests for the Filterable model mixin and the sample Post/User filters.
"""

import pytest

from sieve.demo import Post, PostFilter, User
from sieve.filtering import FILTERS, Filterable, ModelFilter, register_filter
from sieve.models import Model


class Invoice(Filterable, Model):
    __table__ = "invoices"
    per_page = 10


@register_filter
class InvoiceFilter(ModelFilter):
    def customer(self, value):
        return self.query.where("customer_id", value)

    def paid(self, value):
        return self.query.where_not_null("paid_at") if value in ("1", "true", True) else self.query.where_null("paid_at")


class OverdueInvoiceFilter(ModelFilter):
    def days(self, value):
        return self.query.where("days_overdue", ">=", int(value))


class Orphan(Filterable, Model):
    __table__ = "orphans"


def test_filter_class_found_by_model_name():
    assert "InvoiceFilter" in FILTERS
    sql, params = Invoice.filter({"customerId": 9, "paid": "true"}).to_sql()
    assert sql == "SELECT * FROM invoices WHERE customer_id = ? AND paid_at IS NOT NULL"
    assert params == [9]


def test_explicit_filter_class_wins():
    sql, params = Invoice.filter({"days": "30", "customerId": 9}, OverdueInvoiceFilter).to_sql()
    assert sql == "SELECT * FROM invoices WHERE days_overdue >= ?"
    assert params == [30]


def test_model_filter_attribute():
    class Overdue(Invoice):
        model_filter = OverdueInvoiceFilter

    assert Overdue.get_model_filter() is OverdueInvoiceFilter


def test_missing_filter_class():
    with pytest.raises(LookupError):
        Orphan.filter({"a": 1})


def test_filter_onto_existing_query():
    base = Invoice.query().where("tenant_id", 1)
    sql, _ = Invoice.filter({"customerId": 2}, query=base).to_sql()
    assert sql == "SELECT * FROM invoices WHERE tenant_id = ? AND customer_id = ?"


def test_model_without_table():
    class Nameless(Filterable, Model):
        pass

    with pytest.raises(TypeError):
        Nameless.query()


def test_paginate_filter():
    page = Invoice.paginate_filter({"customerId": 9}, page=3)
    assert page.per_page == 10
    assert page.sql == "SELECT * FROM invoices WHERE customer_id = ? LIMIT 10 OFFSET 20"
    assert page.params == [9]
    assert page.count_sql == "SELECT COUNT(*) FROM invoices WHERE customer_id = ?"
    assert page.count_params == [9]
    assert page.to_dict()["perPage"] == 10


def test_simple_paginate_filter_fetches_one_extra_row():
    page = Invoice.simple_paginate_filter({}, page=2, per_page=5)
    assert page.sql == "SELECT * FROM invoices LIMIT 6 OFFSET 5"
    assert page.count_sql is None


def test_post_filter_hides_archived_by_default():
    sql, params = Post.filter({"title": "hello"}).to_sql()
    assert sql == "SELECT * FROM posts WHERE status <> ? AND title LIKE ? ESCAPE '\\'"
    assert params == ["archived", "%hello%"]


def test_post_filter_full_request():
    params = {"authorId": "7", "status": ["draft", "published"], "sort": "-published_at"}
    sql, values = Post.filter(params).to_sql()
    assert sql == "SELECT * FROM posts WHERE author_id = ? AND status IN (?, ?) ORDER BY published_at DESC"
    assert values == ["7", "draft", "published"]


def test_post_search_groups_alternatives():
    sql, values = Post.filter({"search": "py", "status": "draft"}).to_sql()
    assert sql == (
        "SELECT * FROM posts WHERE (title LIKE ? ESCAPE '\\' OR body LIKE ? ESCAPE '\\')"
        " AND status IN (?)"
    )
    assert values == ["%py%", "%py%", "draft"]


def test_post_filter_is_registered_under_model_name():
    assert Post.get_model_filter() is PostFilter


def test_user_filter_never_filters_on_password():
    sql, values = User.filter({"password": "x", "name": "Al"}).to_sql()
    assert sql == "SELECT * FROM users WHERE name LIKE ? ESCAPE '\\'"
    assert values == ["Al%"]
