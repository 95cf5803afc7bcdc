"""
Errors raised by the content store, upload handler and session gate.
Each one carries the HTTP status and the short message returned to the client.
"""


class ContentError(Exception):
    status_code = 500
    message = 'internal error'

    def __init__(self, message=None):
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class InvalidNameError(ContentError):
    status_code = 400
    message = 'invalid file'


class SerializationError(ContentError):
    status_code = 400
    message = 'content is not JSON serializable'


class LimitExceededError(ContentError):
    status_code = 400
    message = 'collection limit exceeded'


class FileTooLargeError(ContentError):
    status_code = 413
    message = 'file too large'


class InvalidFileTypeError(ContentError):
    status_code = 400
    message = 'Only image files (jpeg, jpg, png, webp, gif) are allowed'


class InvalidPathError(ContentError):
    status_code = 400
    message = 'invalid file path'


class NotFoundError(ContentError):
    status_code = 404
    message = 'not found'


class UnauthorizedError(ContentError):
    status_code = 401
    message = 'unauthorized'


class ForbiddenError(ContentError):
    status_code = 403
    message = 'Admin access required'


class ValidationError(ContentError):
    status_code = 400
    message = 'invalid record'


class ConflictError(ContentError):
    """The collection changed since the caller last read it"""
    status_code = 409
    message = 'collection was modified by another session'


class MalformedDataError(ContentError):
    status_code = 500
    message = 'malformed collection data'
