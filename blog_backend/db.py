import datetime
import math

from bson.objectid import ObjectId
from flask import current_app
from pymongo import ASCENDING, DESCENDING

from blog_backend.errors import NotFoundError
from blog_backend.extensions import mongo

# Projection that keeps the password hash out of every user read.
USER_PUBLIC_PROJECTION = {'password': 0}


# --- Helper to get MongoDB ---
def get_mongo_db():
    """Returns the MongoDB database object."""
    db_name = current_app.config.get("MONGO_DBNAME", "blog_db")
    if mongo.cx is None:
        raise ConnectionError("MongoDB is not configured or connected.")
    return mongo.cx[db_name]


def to_object_id(value, resource='Resource'):
    """Parse ``value`` as an ObjectId; malformed ids read as missing documents."""
    if isinstance(value, ObjectId):
        return value
    if not value or not ObjectId.is_valid(str(value)):
        raise NotFoundError(f'{resource} not found')
    return ObjectId(str(value))


def ensure_indexes(db):
    db.users.create_index('email', unique=True)
    db.users.create_index('username', unique=True)
    db.categories.create_index('slug', unique=True)
    db.posts.create_index([('status', ASCENDING), ('created_at', DESCENDING)])
    db.posts.create_index('author')
    db.posts.create_index('category')


def populate(docs, field, collection, fields):
    """
    Replace the reference stored under ``field`` in each of ``docs`` with the
    referenced document, limited to ``fields``. References that no longer
    resolve become ``None``.
    """
    ids = {doc[field] for doc in docs if isinstance(doc.get(field), ObjectId)}
    found = {}
    if ids:
        projection = {name: 1 for name in fields}
        found = {
            ref['_id']: ref
            for ref in collection.find({'_id': {'$in': list(ids)}}, projection)
        }
    for doc in docs:
        ref = doc.get(field)
        doc[field] = found.get(ref) if isinstance(ref, ObjectId) else None
    return docs


def serialize_document(value):
    """Make a Mongo document JSON-safe: ObjectIds to str, datetimes to ISO 8601."""
    if isinstance(value, dict):
        return {key: serialize_document(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_document(item) for item in value]
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime.datetime):
        return value.isoformat()
    return value


def pagination_meta(page, limit, total):
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        'current': page,
        'total': total_pages,
        'has_next': page < total_pages,
        'has_prev': page > 1,
    }
