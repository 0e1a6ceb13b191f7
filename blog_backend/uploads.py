import os
import uuid

from flask import current_app
from werkzeug.utils import secure_filename

from blog_backend.errors import ValidationError

ALLOWED_IMAGE_EXTENSIONS = {'png', 'jpg', 'jpeg', 'gif', 'webp'}
UPLOAD_URL_PREFIX = '/uploads/'


def allowed_image(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_IMAGE_EXTENSIONS


def save_featured_image(file_storage):
    """Store an uploaded image under a unique name and return its URL path."""
    filename = secure_filename(file_storage.filename or '')
    if not filename or not allowed_image(filename):
        raise ValidationError('Please upload an image file (png, jpg, jpeg, gif, webp)')
    if file_storage.mimetype and not file_storage.mimetype.startswith('image/'):
        raise ValidationError('Please upload an image file (png, jpg, jpeg, gif, webp)')

    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    stored_name = f"{uuid.uuid4().hex}_{filename}"
    file_storage.save(os.path.join(upload_folder, stored_name))
    current_app.logger.info(f"Stored featured image {stored_name}")
    return UPLOAD_URL_PREFIX + stored_name


def delete_featured_image(reference):
    """Remove a previously stored image; references outside the upload folder are left alone."""
    if not reference or not reference.startswith(UPLOAD_URL_PREFIX):
        return False
    stored_name = secure_filename(reference[len(UPLOAD_URL_PREFIX):])
    path = os.path.join(current_app.config['UPLOAD_FOLDER'], stored_name)
    if not os.path.exists(path):
        return False
    try:
        os.remove(path)
    except OSError as e:
        current_app.logger.warning(f"Could not remove featured image {path}: {e}")
        return False
    return True
