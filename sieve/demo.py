"""
Sample models and filters wired into the default entities file.
"""

from .filtering import Filterable, ModelFilter, register_filter
from .models import Model
from .validation import ValidatesInput


class Post(Filterable, ValidatesInput, Model):
    __table__ = "posts"

    rules = {
        "title": "required|string|max:120",
        "body": "required|string",
        "status": "in:draft,published,archived",
        "author_id": "required|integer",
        "published_at": "nullable|date",
        "update": {
            "title": "sometimes|required|string|max:120",
            "body": "sometimes|required|string",
            "author_id": "sometimes|integer",
        },
    }
    messages = {"title.required": "A post needs a title."}
    attributes = {"author_id": "author"}


class User(Filterable, ValidatesInput, Model):
    __table__ = "users"
    per_page = 25

    rules = {
        "name": "required|string|between:2,80",
        "email": "required|email|max:255",
        "password": "required|string|min:8|confirmed",
        "role": "in:admin,editor,reader",
        "update": {
            "name": "sometimes|string|between:2,80",
            "email": "sometimes|email|max:255",
            "password": "sometimes|string|min:8|confirmed",
        },
    }


@register_filter
class PostFilter(ModelFilter):
    def setup(self):
        if not self.input("status"):
            return self.query.where("status", "!=", "archived")

    def title(self, value):
        return self.where_like("title", value)

    def author(self, value):
        if isinstance(value, list):
            return self.query.where_in("author_id", value)
        return self.query.where("author_id", value)

    def status(self, value):
        return self.query.where_in("status", value if isinstance(value, list) else [value])

    def published_after(self, value):
        return self.query.where("published_at", ">=", value)

    def published_before(self, value):
        return self.query.where("published_at", "<", value)

    def search(self, value):
        return self.query.where_group(
            lambda q: q.where_like("title", value).where_like("body", value, boolean="or")
        )

    def sort(self, value):
        return self.query.sort(*(value if isinstance(value, list) else [value]))


@register_filter
class UserFilter(ModelFilter):
    blacklist = ("password",)

    def name(self, value):
        return self.where_begins_with("name", value)

    def email(self, value):
        return self.query.where("email", value)

    def role(self, value):
        return self.query.where_in("role", value if isinstance(value, list) else [value])

    def password(self, value):
        return self.query.where("password", value)

    def sort(self, value):
        return self.query.sort(*(value if isinstance(value, list) else [value]))
