# blog_backend/auth.py
from functools import wraps

from bson.objectid import ObjectId
from flask import g, current_app
from flask_jwt_extended import (create_access_token, create_refresh_token, get_jwt_identity,
                                verify_jwt_in_request)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from blog_backend.db import get_mongo_db, USER_PUBLIC_PROJECTION
from blog_backend.errors import AuthError, ForbiddenError, error_envelope
from blog_backend.extensions import jwt


# --- Token error responses (missing / malformed / expired) ---

@jwt.unauthorized_loader
def missing_token_callback(reason):
    return error_envelope('Not authorized to access this route', 401)


@jwt.invalid_token_loader
def invalid_token_callback(reason):
    current_app.logger.warning(f"Rejected invalid token: {reason}")
    return error_envelope('Token is invalid or malformed', 401)


@jwt.expired_token_loader
def expired_token_callback(jwt_header, jwt_payload):
    return error_envelope('Token has expired', 401)


def access_token_for(user):
    claims = {'role': user.get('role', 'user'), 'username': user.get('username')}
    return create_access_token(identity=str(user['_id']), additional_claims=claims)


def issue_tokens(user):
    """Access and refresh tokens for a user document."""
    return {
        'token': access_token_for(user),
        'refresh_token': create_refresh_token(identity=str(user['_id'])),
    }


def load_user(identity):
    if not identity or not ObjectId.is_valid(str(identity)):
        return None
    return get_mongo_db().users.find_one({'_id': ObjectId(str(identity))}, USER_PUBLIC_PROJECTION)


def _bind_current_user(user):
    g.current_user = user
    g.user_id = user['_id']
    g.user_role = user.get('role', 'user')


def token_required(fn):
    """Require a valid access token and expose the caller on ``g``."""
    @wraps(fn)
    def decorated(*args, **kwargs):
        verify_jwt_in_request()
        user = load_user(get_jwt_identity())
        if not user:
            raise AuthError('Token is invalid or user not found')
        _bind_current_user(user)
        return fn(*args, **kwargs)
    return decorated


def roles_required(*required_roles):
    def wrapper(fn):
        @wraps(fn)
        @token_required
        def decorated(*args, **kwargs):
            if g.user_role not in required_roles:
                raise ForbiddenError(f"User role '{g.user_role}' is not authorized to access this route")
            return fn(*args, **kwargs)
        return decorated
    return wrapper


def optional_identity():
    """The caller's user id as a string when a valid token was sent, else None.

    A stale or malformed token is treated like no token at all.
    """
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as e:
        current_app.logger.info(f"Ignoring unusable token on public route: {e}")
        return None
    return get_jwt_identity()


def is_owner_or_admin(owner_id, caller_id, caller_role):
    """Ownership check shared by post, comment, and like mutations."""
    if caller_role == 'admin':
        return True
    if owner_id is None or caller_id is None:
        return False
    return str(owner_id) == str(caller_id)
