"""Per-entity checks run before a record is written by the admin API"""

from config import ACTIVE_MEMBER_CLASS
from errors import ValidationError


def _require(record, *fields):
    for field in fields:
        value = record.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationError(f"{field} is required")


def coerce_display_order(value):
    """Same as the admin form: anything that is not an integer becomes 0"""
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def is_active_member_class(member_class_id, member_classes):
    if not member_class_id:
        return False
    member_class = next((c for c in member_classes if c.get('id') == member_class_id), None)
    return bool(member_class) and member_class.get('name') == ACTIVE_MEMBER_CLASS


def validate_member(record, member_classes=()):
    _require(record, 'name')
    if is_active_member_class(record.get('memberClassId'), member_classes):
        # Active members are listed without a role
        record['role'] = ''
    else:
        _require(record, 'role')
    return record


def validate_member_class(record, member_classes=()):
    _require(record, 'name')
    return record


def validate_program(record, member_classes=()):
    _require(record, 'title')
    return record


def validate_news(record, member_classes=()):
    _require(record, 'title', 'category', 'description')
    return record


def validate_hero_image(record, member_classes=()):
    _require(record, 'imageUrl', 'altText')
    return record


VALIDATORS = {
    'members.json': validate_member,
    'memberClasses.json': validate_member_class,
    'programs.json': validate_program,
    'news.json': validate_news,
    'heroImages.json': validate_hero_image,
}


def validate_record(filename, record, member_classes=()):
    """Validate one record of a registered collection, normalizing displayOrder"""
    if not isinstance(record, dict):
        raise ValidationError('record must be an object')
    if 'displayOrder' in record:
        record['displayOrder'] = coerce_display_order(record['displayOrder'])
    validator = VALIDATORS.get(filename)
    if validator is None:
        return record
    return validator(record, member_classes)
