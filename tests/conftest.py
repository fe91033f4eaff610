import textwrap

import pytest
from fastapi.testclient import TestClient

from sieve import main
from sieve.registry import Registry


@pytest.fixture
def write_entities(tmp_path):
    """Write an entities YAML file and return its path."""
    def _write(body: str, name: str = "entities.yaml"):
        path = tmp_path / name
        path.write_text(textwrap.dedent(body), encoding="utf-8")
        return path
    return _write


@pytest.fixture
def client(monkeypatch):
    """Test client over the packaged entities file."""
    monkeypatch.setattr(main, "REG", Registry())
    with TestClient(main.app) as c:
        yield c
