import os
import re

from bson.objectid import ObjectId
from flask import Blueprint, request, jsonify, g, current_app
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from blog_backend.auth import token_required, optional_identity, is_owner_or_admin
from blog_backend.db import get_mongo_db, to_object_id, populate, serialize_document, pagination_meta
from blog_backend.errors import ForbiddenError, NotFoundError
from blog_backend.mongo_models import Comment, Post, make_excerpt, utcnow
from blog_backend.schemas import (parse_body, PostListQuery, PostCreateRequest, PostUpdateRequest,
                                  CommentCreateRequest)
from blog_backend.uploads import save_featured_image, delete_featured_image

posts_bp = Blueprint('posts_api', __name__)

LIST_AUTHOR_FIELDS = ('username', 'email')
DETAIL_AUTHOR_FIELDS = ('username', 'email', 'avatar')
COMMENT_AUTHOR_FIELDS = ('username', 'avatar')
CATEGORY_FIELDS = ('name', 'slug')


@posts_bp.record_once
def record(state):
    upload_folder = state.app.config['UPLOAD_FOLDER']
    if not os.path.exists(upload_folder):
        os.makedirs(upload_folder)
        state.app.logger.info(f"UPLOAD_FOLDER created: {upload_folder}")


# --- Helpers ---

def _request_payload():
    """Post bodies arrive as JSON or as multipart form data (with an image)."""
    if request.is_json:
        return request.get_json(silent=True)
    return request.form.to_dict()


def _uploaded_image():
    image = request.files.get('featured_image') or request.files.get('featuredImage')
    if image is None or not image.filename:
        return None
    return image


def _find_post(db_mongo, post_id, projection=None):
    post = db_mongo.posts.find_one({'_id': to_object_id(post_id, 'Post')}, projection)
    if not post:
        raise NotFoundError('Post not found')
    return post


def _find_category(db_mongo, category_ref):
    category = db_mongo.categories.find_one({'_id': to_object_id(category_ref, 'Category')})
    if not category:
        raise NotFoundError('Category not found')
    return category


def _populate_posts(db_mongo, posts, author_fields=LIST_AUTHOR_FIELDS):
    populate(posts, 'author', db_mongo.users, author_fields)
    populate(posts, 'category', db_mongo.categories, CATEGORY_FIELDS)
    return posts


def _populated_comments(db_mongo, post_oid):
    post = db_mongo.posts.find_one({'_id': post_oid}, {'comments': 1})
    if not post:
        raise NotFoundError('Post not found')
    return populate(post.get('comments', []), 'author', db_mongo.users, COMMENT_AUTHOR_FIELDS)


def build_post_filter(db_mongo, query):
    """Mongo filter for a PostListQuery; only published posts unless a status is given."""
    mongo_filter = {'status': query.status or 'published'}

    if query.search:
        pattern = {'$regex': re.escape(query.search), '$options': 'i'}
        mongo_filter['$or'] = [{'title': pattern}, {'content': pattern}]

    if query.category:
        if ObjectId.is_valid(query.category):
            mongo_filter['category'] = ObjectId(query.category)
        else:
            category = db_mongo.categories.find_one({'slug': query.category.lower()}, {'_id': 1})
            mongo_filter['category'] = category['_id'] if category else None

    return mongo_filter


# --- Posts ---

@posts_bp.route('', methods=['GET'])
def get_posts():
    query = parse_body(PostListQuery, request.args.to_dict())
    db_mongo = get_mongo_db()

    mongo_filter = build_post_filter(db_mongo, query)
    total = db_mongo.posts.count_documents(mongo_filter)

    cursor = db_mongo.posts.find(mongo_filter)\
        .sort([('created_at', -1), ('_id', -1)])\
        .skip((query.page - 1) * query.limit)\
        .limit(query.limit)
    posts = _populate_posts(db_mongo, list(cursor))

    return jsonify({
        'success': True,
        'count': len(posts),
        'total': total,
        'pagination': pagination_meta(query.page, query.limit, total),
        'data': serialize_document(posts),
    }), 200


@posts_bp.route('/<post_id>', methods=['GET'])
def get_post(post_id):
    identity = optional_identity()
    db_mongo = get_mongo_db()

    # Single atomic increment, so concurrent reads never lose a view.
    post = db_mongo.posts.find_one_and_update(
        {'_id': to_object_id(post_id, 'Post')},
        {'$inc': {'views': 1}},
        return_document=ReturnDocument.AFTER,
    )
    if not post:
        raise NotFoundError('Post not found')

    is_liked = bool(identity) and any(str(liker) == identity for liker in post.get('likes', []))

    _populate_posts(db_mongo, [post], DETAIL_AUTHOR_FIELDS)
    populate(post.get('comments', []), 'author', db_mongo.users, COMMENT_AUTHOR_FIELDS)

    data = serialize_document(post)
    data['is_liked'] = is_liked
    return jsonify({'success': True, 'data': data}), 200


@posts_bp.route('', methods=['POST'])
@token_required
def create_post():
    payload = parse_body(PostCreateRequest, _request_payload())
    db_mongo = get_mongo_db()
    category = _find_category(db_mongo, payload.category)

    image = _uploaded_image()
    featured_image = save_featured_image(image) if image else None

    new_post = Post(
        title=payload.title,
        content=payload.content,
        excerpt=payload.excerpt,
        author=g.user_id,
        category=category['_id'],
        tags=payload.tags,
        status=payload.status,
        featured_image=featured_image,
    )
    try:
        db_mongo.posts.insert_one(new_post.to_dict())
    except PyMongoError:
        delete_featured_image(featured_image)
        raise
    current_app.logger.info(f"Post {new_post._id} created by user {g.user_id}")

    post = db_mongo.posts.find_one({'_id': new_post._id})
    _populate_posts(db_mongo, [post])
    return jsonify({'success': True, 'data': serialize_document(post)}), 201


@posts_bp.route('/<post_id>', methods=['PUT'])
@token_required
def update_post(post_id):
    db_mongo = get_mongo_db()
    post = _find_post(db_mongo, post_id)

    if not is_owner_or_admin(post.get('author'), g.user_id, g.user_role):
        raise ForbiddenError('Not authorized to update this post')

    payload = parse_body(PostUpdateRequest, _request_payload())
    changes = payload.changes()

    if 'category' in changes:
        changes['category'] = _find_category(db_mongo, changes['category'])['_id']
    if 'excerpt' in changes and not changes['excerpt']:
        changes['excerpt'] = make_excerpt(changes.get('content', post.get('content', '')))

    image = _uploaded_image()
    if image:
        changes['featured_image'] = save_featured_image(image)

    changes['updated_at'] = utcnow()
    try:
        db_mongo.posts.update_one({'_id': post['_id']}, {'$set': changes})
    except PyMongoError:
        delete_featured_image(changes.get('featured_image'))
        raise

    if image:
        delete_featured_image(post.get('featured_image'))

    updated = db_mongo.posts.find_one({'_id': post['_id']})
    if not updated:
        raise NotFoundError('Post not found')
    _populate_posts(db_mongo, [updated])
    return jsonify({'success': True, 'data': serialize_document(updated)}), 200


@posts_bp.route('/<post_id>', methods=['DELETE'])
@token_required
def delete_post(post_id):
    db_mongo = get_mongo_db()
    post = _find_post(db_mongo, post_id, {'author': 1, 'featured_image': 1})

    if not is_owner_or_admin(post.get('author'), g.user_id, g.user_role):
        raise ForbiddenError('Not authorized to delete this post')

    db_mongo.posts.delete_one({'_id': post['_id']})
    delete_featured_image(post.get('featured_image'))
    current_app.logger.info(f"Post {post['_id']} deleted by user {g.user_id}")
    return jsonify({'success': True, 'data': {}}), 200


# --- Comments ---

@posts_bp.route('/<post_id>/comments', methods=['POST'])
@token_required
def add_comment(post_id):
    db_mongo = get_mongo_db()
    post = _find_post(db_mongo, post_id, {'_id': 1})
    payload = parse_body(CommentCreateRequest, request.get_json(silent=True))

    comment = Comment(author=g.user_id, content=payload.content)
    result = db_mongo.posts.update_one({'_id': post['_id']}, {'$push': {'comments': comment.to_dict()}})
    if result.matched_count == 0:
        raise NotFoundError('Post not found')

    comments = _populated_comments(db_mongo, post['_id'])
    return jsonify({'success': True, 'data': serialize_document(comments)}), 201


@posts_bp.route('/<post_id>/comments/<comment_id>', methods=['DELETE'])
@token_required
def delete_comment(post_id, comment_id):
    db_mongo = get_mongo_db()
    post = _find_post(db_mongo, post_id, {'comments': 1})

    comment_oid = to_object_id(comment_id, 'Comment')
    comment = next((c for c in post.get('comments', []) if c.get('_id') == comment_oid), None)
    if not comment:
        raise NotFoundError('Comment not found')

    if not is_owner_or_admin(comment.get('author'), g.user_id, g.user_role):
        raise ForbiddenError('Not authorized to delete this comment')

    db_mongo.posts.update_one({'_id': post['_id']}, {'$pull': {'comments': {'_id': comment_oid}}})
    return jsonify({'success': True, 'data': {}}), 200


# --- Likes ---

@posts_bp.route('/<post_id>/like', methods=['POST'])
@token_required
def toggle_like(post_id):
    db_mongo = get_mongo_db()
    post = _find_post(db_mongo, post_id, {'_id': 1})
    user_id = g.user_id

    # The $ne guard makes the push a no-op when the caller already likes the post,
    # so the set never holds a user twice even under concurrent toggles.
    added = db_mongo.posts.update_one(
        {'_id': post['_id'], 'likes': {'$ne': user_id}},
        {'$push': {'likes': user_id}},
    )
    is_liked = added.matched_count == 1
    if not is_liked:
        db_mongo.posts.update_one({'_id': post['_id']}, {'$pull': {'likes': user_id}})

    post = _find_post(db_mongo, post['_id'], {'likes': 1})
    return jsonify({
        'success': True,
        'data': {'likes': len(post.get('likes', [])), 'is_liked': is_liked},
    }), 200
