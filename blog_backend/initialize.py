import os

from flask import current_app

from blog_backend.db import ensure_indexes, get_mongo_db
from blog_backend.extensions import bcrypt
from blog_backend.mongo_models import Category, User, utcnow

DEFAULT_CATEGORIES = [
    ('Technology', 'Software, hardware and the web'),
    ('Travel', 'Places, trips and stories from the road'),
    ('Food', 'Recipes and restaurants'),
    ('Lifestyle', 'Everyday life, health and habits'),
]


def seed_categories(db_mongo):
    created = 0
    for name, description in DEFAULT_CATEGORIES:
        category = Category(name=name, description=description)
        if not db_mongo.categories.find_one({'slug': category.slug}):
            db_mongo.categories.insert_one(category.to_dict())
            current_app.logger.info(f"Category '{name}' created.")
            created += 1
    return created


def ensure_admin(db_mongo):
    """Create the admin account from the environment, or promote an existing account with that email."""
    admin_email = os.environ.get('ADMIN_EMAIL', 'admin@example.com').lower()
    admin_user = db_mongo.users.find_one({'email': admin_email})

    if admin_user:
        if admin_user.get('role') != 'admin':
            db_mongo.users.update_one({'_id': admin_user['_id']},
                                      {'$set': {'role': 'admin', 'updated_at': utcnow()}})
            current_app.logger.info(f"Existing account {admin_email} promoted to admin.")
        return admin_user['_id']

    admin_password = os.environ.get('ADMIN_PASSWORD')
    if not admin_password:
        raise ValueError("ADMIN_PASSWORD environment variable is not set.")

    admin = User(
        username=os.environ.get('ADMIN_USERNAME', 'admin'),
        email=admin_email,
        password=bcrypt.generate_password_hash(admin_password).decode('utf-8'),
        role='admin',
    )
    db_mongo.users.insert_one(admin.to_dict())
    current_app.logger.info(f"Admin account {admin_email} created.")
    return admin._id


def initialize_database():
    """Create indexes, default categories and the admin account. Safe to run repeatedly."""
    db_mongo = get_mongo_db()
    ensure_indexes(db_mongo)
    seed_categories(db_mongo)
    ensure_admin(db_mongo)
