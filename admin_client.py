"""
Client helpers for the dev content API: load/save collections, upload and
delete images, and keep a drag-and-drop order pending until the server has
acknowledged it.
"""

import logging

import requests

from ordering import apply_positions, move

logger = logging.getLogger(__name__)


class DevApiError(Exception):
    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DevApiClient:
    def __init__(self, base_url, token, session=None, timeout=30):
        self.base_url = base_url.rstrip('/')
        self.token = token or ''
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self):
        return {'x-admin-token': self.token}

    def _check(self, response, default_message):
        if response.ok:
            return response.json()
        try:
            body = response.json()
            message = body.get('error') or body.get('message') or default_message
        except ValueError:
            message = 'Unknown error'
        logger.error(f"Dev API error {response.status_code}: {message}")
        raise DevApiError(message, response.status_code)

    def load_json(self, filename):
        """Read a collection the way the public site does, as a static file"""
        response = self.session.get(f"{self.base_url}/data/{filename}", timeout=self.timeout)
        if not response.ok:
            raise DevApiError(f"Failed to load {filename}", response.status_code)
        return response.json()

    def save_json(self, filename, data, version=None):
        payload = {'file': filename, 'content': data}
        if version is not None:
            payload['version'] = version
        response = self.session.post(
            f"{self.base_url}/dev/save-json",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._check(response, 'Failed to save data')

    def upload_image(self, fileobj, filename, category='misc', mimetype=None):
        """Upload one image and return its public path"""
        files = {'file': (filename, fileobj, mimetype) if mimetype else (filename, fileobj)}
        response = self.session.post(
            f"{self.base_url}/dev/upload",
            params={'category': category},
            files=files,
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._check(response, 'Failed to upload image')['publicPath']

    def delete_upload(self, path):
        response = self.session.delete(
            f"{self.base_url}/dev/upload",
            json={'path': path},
            headers=self._headers(),
            timeout=self.timeout,
        )
        return self._check(response, 'Failed to delete image')


class PendingOrder:
    """
    Local reorder state for a list editor.

    Moves only touch the pending list. The server list is replaced by the
    pending one after a successful save; a failed save keeps the pending
    list so the user can retry.
    """

    def __init__(self, records):
        self.server_records = list(records)
        self.pending = None

    @property
    def records(self):
        return self.pending if self.pending is not None else self.server_records

    @property
    def is_dirty(self):
        return self.pending is not None

    def move(self, from_index, to_index):
        self.pending = move(self.records, from_index, to_index)
        return self.pending

    def discard(self):
        self.pending = None

    def commit(self, client, filename, version=None):
        if self.pending is None:
            return None
        positioned = apply_positions(self.pending)
        result = client.save_json(filename, positioned, version=version)
        self.server_records = positioned
        self.pending = None
        return result
