from flask import Blueprint, request, jsonify, g, current_app
from pymongo.errors import DuplicateKeyError

from blog_backend.auth import roles_required
from blog_backend.db import get_mongo_db, to_object_id, serialize_document
from blog_backend.errors import ConflictError, NotFoundError, ValidationError
from blog_backend.mongo_models import Category
from blog_backend.schemas import parse_body, CategoryCreateRequest

categories_bp = Blueprint('categories_api', __name__)


@categories_bp.route('', methods=['GET'])
def get_categories():
    categories = list(get_mongo_db().categories.find({}).sort('name', 1))
    return jsonify({
        'success': True,
        'count': len(categories),
        'data': serialize_document(categories),
    }), 200


@categories_bp.route('', methods=['POST'])
@roles_required('admin')
def create_category():
    payload = parse_body(CategoryCreateRequest, request.get_json(silent=True))
    category = Category(name=payload.name, description=payload.description)
    if not category.slug:
        raise ValidationError('name: must contain letters or digits')

    db_mongo = get_mongo_db()
    if db_mongo.categories.find_one({'slug': category.slug}):
        raise ConflictError('Category already exists')
    try:
        db_mongo.categories.insert_one(category.to_dict())
    except DuplicateKeyError:
        raise ConflictError('Category already exists')

    current_app.logger.info(f"Category '{category.slug}' created by user {g.user_id}")
    return jsonify({'success': True, 'data': serialize_document(category.to_dict())}), 201


@categories_bp.route('/<category_id>', methods=['DELETE'])
@roles_required('admin')
def delete_category(category_id):
    db_mongo = get_mongo_db()
    category_oid = to_object_id(category_id, 'Category')
    if not db_mongo.categories.find_one({'_id': category_oid}, {'_id': 1}):
        raise NotFoundError('Category not found')

    in_use = db_mongo.posts.count_documents({'category': category_oid})
    if in_use:
        raise ConflictError(f'Category is used by {in_use} post(s)')

    db_mongo.categories.delete_one({'_id': category_oid})
    current_app.logger.info(f"Category {category_oid} deleted by user {g.user_id}")
    return jsonify({'success': True, 'data': {}}), 200
