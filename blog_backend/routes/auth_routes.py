from flask import Blueprint, request, jsonify, g, current_app
from flask_jwt_extended import get_jwt_identity, jwt_required
from pymongo.errors import DuplicateKeyError

from blog_backend.auth import token_required, issue_tokens, load_user, access_token_for
from blog_backend.db import get_mongo_db, serialize_document, USER_PUBLIC_PROJECTION
from blog_backend.errors import AuthError, ConflictError, ValidationError
from blog_backend.extensions import bcrypt
from blog_backend.mongo_models import User, utcnow
from blog_backend.schemas import parse_body, RegisterRequest, LoginRequest, ProfileUpdateRequest

auth_bp = Blueprint('auth_api', __name__)


def _token_response(user, status_code):
    tokens = issue_tokens(user)
    return jsonify({
        'success': True,
        'data': {
            'token': tokens['token'],
            'refresh_token': tokens['refresh_token'],
            'user': User.public_profile(user),
        },
    }), status_code


# --- Registration / login ---

@auth_bp.route('/register', methods=['POST'])
def register():
    payload = parse_body(RegisterRequest, request.get_json(silent=True))
    db_mongo = get_mongo_db()

    existing = db_mongo.users.find_one({'$or': [{'email': payload.email}, {'username': payload.username}]})
    if existing:
        raise ConflictError('User already exists')

    hashed_password = bcrypt.generate_password_hash(payload.password).decode('utf-8')
    new_user = User(username=payload.username, email=payload.email, password=hashed_password)
    user_doc = new_user.to_dict()
    try:
        db_mongo.users.insert_one(user_doc)
    except DuplicateKeyError:
        raise ConflictError('User already exists')

    current_app.logger.info(f"Registered user {payload.username} ({new_user._id})")
    return _token_response(user_doc, 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    payload = parse_body(LoginRequest, request.get_json(silent=True))

    user = get_mongo_db().users.find_one({'email': payload.email})
    # Unknown email and wrong password must be indistinguishable.
    if not user or not bcrypt.check_password_hash(user['password'], payload.password):
        raise AuthError('Invalid credentials')

    return _token_response(user, 200)


@auth_bp.route('/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh():
    user = load_user(get_jwt_identity())
    if not user:
        raise AuthError('Token is invalid or user not found')

    return jsonify({'success': True, 'data': {'token': access_token_for(user)}}), 200


# --- Current user ---

@auth_bp.route('/me', methods=['GET'])
@token_required
def get_current_user():
    return jsonify({'success': True, 'data': serialize_document(g.current_user)}), 200


@auth_bp.route('/profile', methods=['PUT'])
@token_required
def update_profile():
    payload = parse_body(ProfileUpdateRequest, request.get_json(silent=True))
    changes = payload.changes()
    if not changes:
        raise ValidationError('Provide a username or email to update')

    db_mongo = get_mongo_db()
    taken = db_mongo.users.find_one({
        '_id': {'$ne': g.user_id},
        '$or': [{key: value} for key, value in changes.items()],
    })
    if taken:
        raise ConflictError('Username or email already in use')

    changes['updated_at'] = utcnow()
    try:
        db_mongo.users.update_one({'_id': g.user_id}, {'$set': changes})
    except DuplicateKeyError:
        raise ConflictError('Username or email already in use')

    user = db_mongo.users.find_one({'_id': g.user_id}, USER_PUBLIC_PROJECTION)
    return jsonify({'success': True, 'data': serialize_document(user)}), 200
