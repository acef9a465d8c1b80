"""Attachment storage in a local bucket directory.

Objects are addressed by a relative path inside the bucket. Public URLs are
served by the app; signed URLs carry an itsdangerous token that expires.
"""
import os
import time
import uuid

from flask import current_app, url_for
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from errors import AuthorizationError, DependencyError, NotFoundError, ValidationError


def file_type_category(content_type):
    if content_type.startswith('image/'):
        return 'image'
    if content_type.startswith('video/'):
        return 'video'
    return 'document'


def validate_upload(file_size, content_type, max_size, allowed_types):
    if file_size > max_size:
        raise ValidationError.for_field('file', f'File size exceeds {max_size // (1024 * 1024)}MB limit')
    if content_type not in allowed_types:
        raise ValidationError.for_field('file', 'File type not allowed')


def object_path(filename, issue_id=None):
    filename = secure_filename(filename or '')
    extension = filename.rsplit('.', 1)[1].lower() if '.' in filename else 'bin'
    folder = secure_filename(issue_id) if issue_id else 'general'
    return f'{folder}/{uuid.uuid4()}.{extension}'


class ObjectStorage:
    def __init__(self, root, bucket, secret_key, expires_in=3600):
        self.base_dir = os.path.join(root, bucket)
        self.bucket = bucket
        self.expires_in = expires_in
        self.serializer = URLSafeTimedSerializer(secret_key, salt='citizen-signed-file')

    def _full_path(self, path):
        full_path = safe_join(self.base_dir, path)
        if full_path is None:
            raise ValidationError.for_field('path', 'Invalid file path')
        return full_path

    def exists(self, path):
        return os.path.isfile(self._full_path(path))

    def upload(self, path, data, content_type):
        full_path = self._full_path(path)
        try:
            os.makedirs(os.path.dirname(full_path), exist_ok=True)
            # 'x' fails if the object appeared since the name was chosen
            with open(full_path, 'xb') as f:
                f.write(data)
        except FileExistsError as e:
            raise DependencyError(f'Object {path} already exists in {self.bucket}') from e
        except OSError as e:
            raise DependencyError(f'Failed to store {path} ({content_type}): {e}') from e
        return path

    def delete(self, path):
        full_path = self._full_path(path)
        try:
            if os.path.exists(full_path):
                os.remove(full_path)
        except OSError as e:
            raise DependencyError(f'Failed to delete {path}: {e}') from e

    def open_path(self, path):
        full_path = self._full_path(path)
        if not os.path.isfile(full_path):
            raise NotFoundError('File not found')
        return full_path

    def public_url(self, path):
        return url_for('site.serve_file', path=path, _external=True)

    def create_signed_token(self, path, expires_in=None):
        if not self.exists(path):
            raise NotFoundError('File not found')
        return self.serializer.dumps({'path': path, 'expires_in': expires_in or self.expires_in})

    def create_signed_url(self, path, expires_in=None):
        token = self.create_signed_token(path, expires_in)
        return url_for('site.serve_signed_file', token=token, _external=True)

    def resolve_signed_token(self, token):
        try:
            payload, signed_at = self.serializer.loads(token, return_timestamp=True)
        except SignatureExpired as e:
            raise AuthorizationError('Signed URL has expired') from e
        except BadSignature as e:
            raise AuthorizationError('Invalid signed URL') from e

        if time.time() - signed_at.timestamp() > payload['expires_in']:
            raise AuthorizationError('Signed URL has expired')
        return payload['path']


def get_storage():
    return current_app.extensions['storage']
