import pytest

from app.domain import Host


@pytest.fixture
def alice():
    return Host(id="a", name="Alice", email="alice@example.com", credential="token-a")


@pytest.fixture
def bob():
    return Host(id="b", name="Bob", email="bob@example.com", credential="token-b")


@pytest.fixture
def charlie():
    return Host(id="c", name="Charlie", email="charlie@example.com", credential="token-c")


@pytest.fixture
def offline():
    return Host(id="x", name="Xavier", email="xavier@example.com")
