"""
Shared fixtures for the blog API tests.

The app runs against an in-memory mongomock client swapped in for the
Flask-PyMongo connection, so no MongoDB server is needed.
"""
import mongomock
import pytest

from blog_backend.app import create_app
from blog_backend.auth import access_token_for
from blog_backend.db import ensure_indexes
from blog_backend.extensions import mongo, bcrypt
from blog_backend.mongo_models import Category, Post, User

PASSWORD = "secret123"


@pytest.fixture
def app(tmp_path):
    """Create an app wired to a fresh in-memory database."""
    app = create_app({
        "TESTING": True,
        "SECRET_KEY": "test-secret",
        "JWT_SECRET_KEY": "test-jwt-secret",
        "MONGO_URI": "mongodb://localhost:27017/blog_test",
        "MONGO_DBNAME": "blog_test",
        "BCRYPT_LOG_ROUNDS": 4,
        "UPLOAD_FOLDER": str(tmp_path / "uploads"),
    })
    mongo.cx = mongomock.MongoClient()
    mongo.db = mongo.cx["blog_test"]
    ensure_indexes(mongo.db)
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db(app):
    return mongo.db


def make_user(app, username, email, role="user", password=PASSWORD):
    """Insert a user and return ``(document, auth headers)``."""
    with app.app_context():
        hashed = bcrypt.generate_password_hash(password).decode("utf-8")
        doc = User(username=username, email=email, password=hashed, role=role).to_dict()
        mongo.db.users.insert_one(doc)
        token = access_token_for(doc)
    return doc, {"Authorization": f"Bearer {token}"}


def make_post(db, author, category, **overrides):
    fields = {
        "title": "Test Post",
        "content": "This is a test post body.",
        "status": "published",
    }
    fields.update(overrides)
    doc = Post(author=author["_id"], category=category["_id"], **fields).to_dict()
    db.posts.insert_one(doc)
    return doc


@pytest.fixture
def user(app):
    """A regular account; yields ``(document, headers)``."""
    return make_user(app, "alice", "alice@example.com")


@pytest.fixture
def other_user(app):
    return make_user(app, "bob", "bob@example.com")


@pytest.fixture
def admin(app):
    return make_user(app, "admin", "admin@example.com", role="admin")


@pytest.fixture
def category(db):
    """Create a test category."""
    doc = Category(name="Technology", description="Tech posts").to_dict()
    db.categories.insert_one(doc)
    return doc


@pytest.fixture
def post(db, user, category):
    """A published post owned by ``user``."""
    return make_post(db, user[0], category)
