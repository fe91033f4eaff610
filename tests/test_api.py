"""
Tests for the FastAPI service.
"""


def test_health(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True, "entities": ["posts", "users"]}


def test_list_entities(client):
    response = client.get("/entities")
    assert response.status_code == 200
    entities = {e["entity"]: e for e in response.json()["entities"]}

    posts = entities["posts"]
    assert posts["table"] == "posts"
    assert posts["filter"] == "PostFilter"
    assert "author" in posts["filterMethods"]
    assert "setup" not in posts["filterMethods"]
    assert posts["rules"]["update"]["title"] == "sometimes|required|string|max:120"

    assert "password" not in entities["users"]["filterMethods"]


def test_query_maps_params_to_filter_methods(client):
    response = client.get(
        "/entities/posts/query",
        params=[
            ("authorId", "7"),
            ("status[]", "draft"),
            ("status[]", "published"),
            ("sort", "-published_at"),
            ("perPage", "500"),
        ],
    )
    assert response.status_code == 200
    body = response.json()
    assert body["perPage"] == 50
    assert body["page"] == 1
    assert body["sql"] == (
        "SELECT * FROM posts WHERE author_id = %(p1)s AND status IN (%(p2)s, %(p3)s)"
        " ORDER BY published_at DESC LIMIT 50"
    )
    assert body["params"] == {"p1": "7", "p2": "draft", "p3": "published"}
    assert body["countSql"] == (
        "SELECT COUNT(*) FROM posts WHERE author_id = %(p1)s AND status IN (%(p2)s, %(p3)s)"
    )
    assert body["input"] == {"authorId": "7", "status": ["draft", "published"], "sort": "-published_at"}


def test_query_repeated_keys_become_lists(client):
    response = client.get("/entities/posts/query?status=draft&status=published&page=2&perPage=10")
    body = response.json()
    assert body["input"] == {"status": ["draft", "published"]}
    assert body["sql"].endswith("LIMIT 10 OFFSET 10")


def test_query_accepts_snake_case_per_page(client):
    body = client.get("/entities/posts/query?per_page=10&page=3").json()
    assert body["perPage"] == 10
    assert body["input"] == {}
    assert body["sql"].endswith("LIMIT 10 OFFSET 20")


def test_query_empty_params_are_ignored(client):
    body = client.get("/entities/users/query?name=&role=").json()
    assert body["sql"] == "SELECT * FROM users LIMIT 25"
    assert body["perPage"] == 25


def test_query_unknown_entity(client):
    assert client.get("/entities/comments/query").status_code == 404


def test_query_bad_sort_column(client):
    response = client.get("/entities/posts/query", params={"sort": "title;drop table posts"})
    assert response.status_code == 400
    assert "Invalid identifier" in response.json()["detail"]


def test_validate_failure_is_422(client):
    response = client.post("/entities/posts/validate", json={"body": "text"})
    assert response.status_code == 422
    body = response.json()
    assert body["message"] == "A post needs a title."
    assert set(body["errors"]) == {"title", "author_id"}
    assert body["errors"]["author_id"] == ["The author field is required."]


def test_validate_uses_file_messages(client):
    payload = {"name": "Al", "email": "nope", "password": "secret12", "password_confirmation": "secret12"}
    response = client.post("/entities/users/validate", json=payload)
    assert response.status_code == 422
    assert response.json()["message"] == "That doesn't look like an e-mail address."


def test_validate_success(client):
    response = client.post("/entities/users/validate?context=update", json={"name": "Bob", "extra": 1})
    assert response.status_code == 200
    assert response.json() == {
        "valid": True, "entity": "users", "context": "update", "data": {"name": "Bob"},
    }


def test_validate_unknown_context_and_entity(client):
    assert client.post("/entities/users/validate?context=delete", json={}).status_code == 400
    assert client.post("/entities/comments/validate", json={}).status_code == 404


def test_reload(client):
    response = client.post("/reload")
    assert response.status_code == 200
    assert response.json()["reloaded"]["posts"].startswith("ok")
