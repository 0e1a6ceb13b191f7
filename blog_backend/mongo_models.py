import datetime
import re

from bson.objectid import ObjectId

USER_ROLES = ('user', 'admin')
POST_STATUSES = ('draft', 'published')
EXCERPT_LENGTH = 200


def utcnow():
    return datetime.datetime.now(datetime.timezone.utc)


def slugify(value):
    """Lower-case ``value`` and join its words with hyphens."""
    value = re.sub(r'[^\w\s-]', '', value.lower()).strip()
    return re.sub(r'[\s_-]+', '-', value).strip('-')


def make_excerpt(content, length=EXCERPT_LENGTH):
    """Cut ``content`` at a word boundary so the excerpt fits ``length``."""
    text = ' '.join(content.split())
    if len(text) <= length:
        return text
    cut = text[:length - 3].rsplit(' ', 1)[0]
    return cut + '...'


class User:
    def __init__(self, username, email, password, role='user', avatar=None, _id=None):
        self._id = _id or ObjectId()
        self.username = username
        self.email = email
        self.password = password  # bcrypt hash, never the raw password
        self.role = role if role in USER_ROLES else 'user'
        self.avatar = avatar
        self.created_at = utcnow()
        self.updated_at = self.created_at

    def to_dict(self):
        return {
            '_id': self._id,
            'username': self.username,
            'email': self.email,
            'password': self.password,
            'role': self.role,
            'avatar': self.avatar,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @staticmethod
    def public_profile(doc):
        """Fields of a user document that are safe to hand back to a client."""
        return {
            'id': str(doc['_id']),
            'username': doc.get('username'),
            'email': doc.get('email'),
            'role': doc.get('role', 'user'),
            'avatar': doc.get('avatar'),
        }


class Category:
    def __init__(self, name, description=None, _id=None):
        self._id = _id or ObjectId()
        self.name = name
        self.slug = slugify(name)
        self.description = description
        self.created_at = utcnow()

    def to_dict(self):
        return {
            '_id': self._id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'created_at': self.created_at,
        }


class Comment:
    def __init__(self, author, content, _id=None):
        self._id = _id or ObjectId()
        self.author = author
        self.content = content
        self.created_at = utcnow()

    def to_dict(self):
        return {
            '_id': self._id,
            'author': self.author,
            'content': self.content,
            'created_at': self.created_at,
        }


class Post:
    def __init__(self, title, content, author, category, excerpt=None, tags=None,
                 status='draft', featured_image=None, _id=None):
        self._id = _id or ObjectId()
        self.title = title
        self.content = content
        self.excerpt = excerpt or make_excerpt(content)
        self.featured_image = featured_image
        self.author = author
        self.category = category
        self.tags = list(tags or [])
        self.status = status if status in POST_STATUSES else 'draft'
        self.views = 0
        self.comments = []
        self.likes = []
        self.created_at = utcnow()
        self.updated_at = self.created_at

    def to_dict(self):
        return {
            '_id': self._id,
            'title': self.title,
            'content': self.content,
            'excerpt': self.excerpt,
            'featured_image': self.featured_image,
            'author': self.author,
            'category': self.category,
            'tags': self.tags,
            'status': self.status,
            'views': self.views,
            'comments': self.comments,
            'likes': self.likes,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
