"""
Record lifecycle for the admin API, on top of any ContentStore.

Records get a generated id on create, partial updates are merged onto the
stored record, and deletes rewrite the whole collection without the record.
"""

import logging
import time
import uuid

from config import COLLECTIONS, RESOURCES
from errors import NotFoundError, ValidationError
from ordering import reorder_by_ids, sort_records
from validators import validate_record

logger = logging.getLogger(__name__)

# Defaults applied to new records, per collection
RECORD_DEFAULTS = {
    'members.json': {'role': '', 'memberClassId': None, 'image': '', 'isActive': True},
    'memberClasses.json': {'description': ''},
    'programs.json': {'subtitle': '', 'description': '', 'image': ''},
    'news.json': {'content': '', 'image': '', 'isPublished': False, 'publishDate': None},
    'heroImages.json': {'title': '', 'description': '', 'isActive': True},
}


def generate_id():
    """Millisecond timestamp plus a random suffix"""
    return f"{int(time.time() * 1000)}{uuid.uuid4().hex[:9]}"


def _fields(data):
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('invalid request')
    return data


def collection_for(resource):
    filename = RESOURCES.get(resource)
    if filename is None:
        raise NotFoundError(f"unknown collection {resource}")
    return filename


class CollectionRepository:
    def __init__(self, store, uploads=None):
        self.store = store
        self.uploads = uploads

    def _member_classes(self, filename):
        if filename != 'members.json':
            return ()
        return self.store.load_or_empty('memberClasses.json')

    def _validate(self, filename, record):
        return validate_record(filename, record, self._member_classes(filename))

    def _find(self, records, record_id):
        for index, record in enumerate(records):
            if record.get('id') == record_id:
                return index
        raise NotFoundError('record not found')

    def _release_image(self, filename, records, public_path):
        """Delete an uploaded image once no remaining record points to it"""
        image_field = COLLECTIONS[filename]['image_field']
        if not self.uploads or not image_field or not public_path:
            return False
        if any(r.get(image_field) == public_path for r in records):
            logger.info(f"Keeping {public_path}, still referenced in {filename}")
            return False
        return self.uploads.delete_quietly(public_path)

    def list(self, resource):
        filename = collection_for(resource)
        records = self.store.load_or_empty(filename)
        collection = COLLECTIONS[filename]
        if collection['ordered']:
            return sort_records(records, collection['sort_key'])
        return records

    def get(self, resource, record_id):
        records = self.store.load_or_empty(collection_for(resource))
        return records[self._find(records, record_id)]

    def create(self, resource, data):
        filename = collection_for(resource)
        record = dict(RECORD_DEFAULTS.get(filename, {}))
        record.update(_fields(data))
        record['id'] = generate_id()
        record.setdefault('displayOrder', 0)
        record = self._validate(filename, record)

        records = self.store.load_or_empty(filename)
        records.append(record)
        self.store.save(filename, records)
        logger.info(f"Created {resource} record {record['id']}")
        return record

    def update(self, resource, record_id, data):
        filename = collection_for(resource)
        data = _fields(data)
        records = self.store.load_or_empty(filename)
        index = self._find(records, record_id)
        previous = records[index]

        updated = dict(previous)
        updated.update({k: v for k, v in data.items() if k != 'id'})
        updated = self._validate(filename, updated)
        records[index] = updated
        self.store.save(filename, records)

        image_field = COLLECTIONS[filename]['image_field']
        if image_field and previous.get(image_field) != updated.get(image_field):
            self._release_image(filename, records, previous.get(image_field))
        logger.info(f"Updated {resource} record {record_id}")
        return updated

    def delete(self, resource, record_id):
        filename = collection_for(resource)
        records = self.store.load_or_empty(filename)
        index = self._find(records, record_id)
        removed = records.pop(index)
        self.store.save(filename, records)

        image_field = COLLECTIONS[filename]['image_field']
        if image_field:
            self._release_image(filename, records, removed.get(image_field))
        logger.info(f"Deleted {resource} record {record_id}")
        return removed

    def reorder(self, resource, ids):
        """Persist a drag-and-drop order: displayOrder becomes each record's position"""
        filename = collection_for(resource)
        collection = COLLECTIONS[filename]
        current = self.store.load_or_empty(filename)
        if collection['ordered']:
            current = sort_records(current, collection['sort_key'])
        records = reorder_by_ids(current, ids)
        self.store.save(filename, records)
        logger.info(f"Reordered {resource} ({len(records)} items)")
        return records
