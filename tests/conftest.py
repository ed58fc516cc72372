import pytest

from onemanvan.app import create_app, db
from onemanvan.app.schema_registry import SchemaRegistry
from onemanvan.app.value_store import FieldValueStore
from onemanvan.config import TestConfig

@pytest.fixture
def app():
    app = create_app(TestConfig)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def app_context(app):
    with app.app_context():
        yield
        db.session.remove()

@pytest.fixture
def registry(app_context):
    return SchemaRegistry()

@pytest.fixture
def store(app_context):
    return FieldValueStore()
