"""
Content store: durable read/modify/write of named JSON collections.

ContentStore is the interface the rest of the app talks to; JsonFileStore keeps
each collection as one pretty-printed JSON array under a data directory.
A database-backed store can implement the same four methods.
"""

import hashlib
import json
import logging
import os
import tempfile
import threading

from config import COLLECTIONS
from errors import (
    ConflictError,
    InvalidNameError,
    LimitExceededError,
    MalformedDataError,
    NotFoundError,
    SerializationError,
)
from ordering import declares_display_order, sort_records

logger = logging.getLogger(__name__)

COLLECTION_SUFFIX = '.json'


def check_collection_name(name):
    """Reject anything that is not a bare '<name>.json' file name"""
    if (not isinstance(name, str)
            or not name.endswith(COLLECTION_SUFFIX)
            or name == COLLECTION_SUFFIX
            or '..' in name
            or '/' in name
            or '\\' in name
            or '\x00' in name):
        raise InvalidNameError()
    return name


def roundtrip(content):
    """Serialize and parse content once, rejecting cycles and non-JSON values"""
    try:
        return json.loads(json.dumps(content, allow_nan=False))
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"content is not JSON serializable: {e}")


def prepare_collection(name, records):
    """Apply ordering policy and cardinality cap for a collection about to be written"""
    collection = COLLECTIONS.get(name, {})
    if not all(isinstance(r, dict) for r in records):
        raise SerializationError('content must be an array of objects')
    if collection.get('ordered') or declares_display_order(records):
        records = sort_records(records, collection.get('sort_key'))

    max_items = collection.get('max_items')
    if max_items is not None and len(records) > max_items:
        resource = collection.get('resource', name)
        raise LimitExceededError(
            f"{resource.capitalize()} are limited to a maximum of {max_items} items. "
            f"Please remove some {resource} before adding new ones."
        )
    return records


class ContentStore:
    """Interface for collection persistence"""

    def load(self, name):
        raise NotImplementedError

    def save(self, name, records, expected_version=None):
        raise NotImplementedError

    def version(self, name):
        raise NotImplementedError

    def exists(self, name):
        raise NotImplementedError

    def load_or_empty(self, name):
        try:
            return self.load(name)
        except NotFoundError:
            return []


class JsonFileStore(ContentStore):
    """One JSON file per collection inside data_dir"""

    def __init__(self, data_dir):
        self.data_dir = data_dir
        self._locks = {}
        self._locks_lock = threading.Lock()

    def _path(self, name):
        return os.path.join(self.data_dir, check_collection_name(name))

    def _lock(self, path):
        with self._locks_lock:
            if path not in self._locks:
                self._locks[path] = threading.Lock()
            return self._locks[path]

    def initialize(self, names=None):
        """Create the data directory and an empty array for each missing collection"""
        os.makedirs(self.data_dir, exist_ok=True)
        for name in names if names is not None else COLLECTIONS:
            path = self._path(name)
            if not os.path.exists(path):
                with open(path, 'w', encoding='utf-8') as f:
                    json.dump([], f, indent=2)
                logger.info(f"Created empty collection {name}")

    def exists(self, name):
        return os.path.exists(self._path(name))

    def load(self, name):
        path = self._path(name)
        if not os.path.exists(path):
            raise NotFoundError(f"collection {name} not found")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to read JSON from {path}: {e}")
            raise MalformedDataError(f"{name} is not valid JSON")
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise MalformedDataError(f"{name} does not contain a JSON array of objects")
        return data

    def version(self, name):
        path = self._path(name)
        if not os.path.exists(path):
            return None
        with open(path, 'rb') as f:
            return hashlib.sha256(f.read()).hexdigest()

    def save(self, name, records, expected_version=None):
        """
        Replace the whole collection file.

        Checks run in order (name, serializability, ordering and cap, version)
        and all of them happen before the file is touched, so a rejected save
        leaves the previous content in place. Returns the number of records written.
        """
        path = self._path(name)
        records = roundtrip(records)
        if not isinstance(records, list):
            raise SerializationError('content must be a JSON array')
        records = prepare_collection(name, records)

        with self._lock(path):
            if expected_version is not None and expected_version != self.version(name):
                raise ConflictError()
            self._write(path, records)

        logger.info(f"Saved {name} ({len(records)} items)")
        return len(records)

    def _write(self, path, records):
        os.makedirs(self.data_dir, exist_ok=True)
        # Write to temp file first, then atomic replace
        fd, temp_path = tempfile.mkstemp(suffix='.json', dir=self.data_dir)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2, ensure_ascii=False)
            os.replace(temp_path, path)
        except Exception:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise
