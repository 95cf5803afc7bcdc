"""
Image upload handling: validation, per-category placement, naming and deletion.
"""

import logging
import os
import re
import time

from werkzeug.utils import secure_filename

from config import (
    ALLOWED_EXTENSIONS,
    ALLOWED_MIMETYPES,
    DEFAULT_UPLOAD_CATEGORY,
    PUBLIC_UPLOAD_PREFIX,
    UPLOAD_CATEGORIES,
)
from errors import FileTooLargeError, InvalidFileTypeError, InvalidPathError, NotFoundError

logger = logging.getLogger(__name__)


def normalize_category(category):
    """Unknown or missing categories go to misc"""
    return category if category in UPLOAD_CATEGORIES else DEFAULT_UPLOAD_CATEGORY


def split_extension(filename):
    base, ext = os.path.splitext(filename or '')
    return base, ext.lstrip('.')


def slugify(value):
    """Lowercase, URL-safe slug for a file base name"""
    value = (value or '').strip().lower()
    value = re.sub(r'[^a-z0-9]+', '-', value)
    return value.strip('-') or 'image'


def allowed_file(filename, mimetype):
    """Both the extension and the declared content type must be an image type"""
    _, ext = split_extension(filename)
    mimetype = (mimetype or '').split(';')[0].strip().lower()
    return ext.lower() in ALLOWED_EXTENSIONS and mimetype in ALLOWED_MIMETYPES


def stream_size(stream):
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class UploadHandler:
    def __init__(self, upload_root, max_bytes):
        self.upload_root = upload_root
        self.max_bytes = max_bytes

    def timestamp(self):
        return int(time.time() * 1000)

    def generate_filename(self, original_filename, dest_dir=None):
        """<slug>-<millis>.<ext>, with a counter appended if dest_dir already has that name"""
        base, ext = split_extension(os.path.basename(original_filename))
        # secure_filename drops anything odd left in the extension
        ext = secure_filename(ext)
        stem = f"{slugify(base)}-{self.timestamp()}"
        filename = f"{stem}.{ext}"
        counter = 1
        while dest_dir and os.path.exists(os.path.join(dest_dir, filename)):
            filename = f"{stem}-{counter}.{ext}"
            counter += 1
        return filename

    def save(self, file, category=None):
        """
        Store an uploaded werkzeug FileStorage and return its public path.

        Raises FileTooLargeError or InvalidFileTypeError without writing anything.
        """
        category = normalize_category(category)
        size = stream_size(file.stream)
        if size > self.max_bytes:
            raise FileTooLargeError(
                f"file too large (max {self.max_bytes // (1024 * 1024)}MB)"
            )
        if not allowed_file(file.filename, file.mimetype):
            raise InvalidFileTypeError()

        dest_dir = os.path.join(self.upload_root, category)
        os.makedirs(dest_dir, exist_ok=True)

        filename = self.generate_filename(file.filename, dest_dir)
        file.save(os.path.join(dest_dir, filename))

        public_path = f"{PUBLIC_UPLOAD_PREFIX}{category}/{filename}"
        logger.info(f"Uploaded {public_path} ({size} bytes)")
        return public_path

    def resolve(self, public_path):
        """Map a /uploads/... public path to a file inside the upload root"""
        if not isinstance(public_path, str) or not public_path.startswith(PUBLIC_UPLOAD_PREFIX):
            raise InvalidPathError()
        relative = public_path[len(PUBLIC_UPLOAD_PREFIX):]
        root = os.path.realpath(self.upload_root)
        target = os.path.realpath(os.path.join(root, *relative.split('/')))
        if not target.startswith(root + os.sep):
            raise InvalidPathError()
        return target

    def delete(self, public_path):
        target = self.resolve(public_path)
        if not os.path.isfile(target):
            raise NotFoundError('file not found')
        os.remove(target)
        logger.info(f"Deleted {public_path}")
        return True

    def delete_quietly(self, public_path):
        """Remove an image a record no longer points to; missing files are only logged"""
        if not public_path or not str(public_path).startswith(PUBLIC_UPLOAD_PREFIX):
            return False
        try:
            return self.delete(public_path)
        except (InvalidPathError, NotFoundError) as e:
            logger.warning(f"Could not delete old image {public_path}: {e.message}")
            return False
