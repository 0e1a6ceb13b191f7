"""
Request schemas for the blog API.

Each endpoint that accepts input parses it through one of these models, so
route handlers only ever see validated, typed values. Unknown fields are
ignored, which keeps server-owned fields (author, views, likes, comments)
out of reach of request bodies.
"""

import json
from typing import Annotated, List, Literal, Optional

from pydantic import (BaseModel, ConfigDict, EmailStr, Field, StringConstraints,
                      ValidationError as PydanticValidationError, field_validator)

from blog_backend.errors import ValidationError


class RequestSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra='ignore')


def parse_body(schema, data):
    """Validate ``data`` against ``schema``; the first problem becomes a ValidationError."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(format_first_error(e))


def format_first_error(exc):
    error = exc.errors()[0]
    location = '.'.join(str(part) for part in error.get('loc', ()))
    message = error.get('msg', 'Invalid value')
    return f'{location}: {message}' if location else message


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def parse_tags(value):
    """Accept a list, a JSON array string, or a comma-separated string; drop blanks and repeats."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith('['):
            try:
                value = json.loads(text)
            except ValueError:
                raise ValueError('tags must be a list of strings')
        else:
            value = text.split(',')
    if not isinstance(value, (list, tuple)):
        raise ValueError('tags must be a list of strings')

    tags = []
    for tag in value:
        if not isinstance(tag, str):
            raise ValueError('tags must be a list of strings')
        tag = tag.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags


# --- Auth ---

class RegisterRequest(RequestSchema):
    username: str = Field(..., min_length=3, max_length=30, pattern=r'^[A-Za-z0-9_]+$')
    email: EmailStr
    password: Annotated[str, StringConstraints(strip_whitespace=False, min_length=6, max_length=128)]

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class LoginRequest(RequestSchema):
    email: str = Field(..., min_length=1)
    password: Annotated[str, StringConstraints(strip_whitespace=False, min_length=1)]

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class ProfileUpdateRequest(RequestSchema):
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=r'^[A-Za-z0-9_]+$')
    email: Optional[EmailStr] = None

    @field_validator('username', 'email', mode='before')
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower() if value else value

    def changes(self):
        return {key: value for key, value in self.model_dump().items() if value is not None}


# --- Posts ---

class PostListQuery(RequestSchema):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    search: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = None
    status: Optional[Literal['draft', 'published']] = None

    @field_validator('search', 'category', 'status', mode='before')
    @classmethod
    def blank_is_missing(cls, value):
        return _blank_to_none(value)

    @field_validator('page', mode='before')
    @classmethod
    def default_page(cls, value):
        return 1 if _blank_to_none(value) is None else value

    @field_validator('limit', mode='before')
    @classmethod
    def default_limit(cls, value):
        return 10 if _blank_to_none(value) is None else value


class PostCreateRequest(RequestSchema):
    title: str = Field(..., min_length=3, max_length=100)
    content: str = Field(..., min_length=10)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    status: Literal['draft', 'published'] = 'draft'

    @field_validator('excerpt', mode='before')
    @classmethod
    def blank_excerpt(cls, value):
        return _blank_to_none(value)

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, value):
        return parse_tags(value)


class PostUpdateRequest(RequestSchema):
    title: Optional[str] = Field(None, min_length=3, max_length=100)
    content: Optional[str] = Field(None, min_length=10)
    excerpt: Optional[str] = Field(None, max_length=200)
    category: Optional[str] = Field(None, min_length=1)
    tags: Optional[List[str]] = None
    status: Optional[Literal['draft', 'published']] = None

    @field_validator('tags', mode='before')
    @classmethod
    def split_tags(cls, value):
        return parse_tags(value)

    def changes(self):
        """Fields the caller actually sent, minus explicit nulls on required fields."""
        changes = self.model_dump(exclude_unset=True)
        for key in ('title', 'content', 'category', 'status', 'tags'):
            if key in changes and changes[key] is None:
                del changes[key]
        return changes


class CommentCreateRequest(RequestSchema):
    content: str = Field(..., min_length=1, max_length=1000)


# --- Categories ---

class CategoryCreateRequest(RequestSchema):
    name: str = Field(..., min_length=2, max_length=50)
    description: Optional[str] = Field(None, max_length=200)
