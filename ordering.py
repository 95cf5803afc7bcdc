"""
Ordering policy for collections that carry a displayOrder field.

Records are sorted by displayOrder ascending; ties are broken by a per-entity
text key (name for members and classes, title for programs, news and hero
images). Drag-and-drop reordering rewrites displayOrder to the 0-based
position in the new sequence.
"""

import unicodedata

from validators import coerce_display_order


def _strip_accents(value):
    decomposed = unicodedata.normalize('NFKD', value)
    return ''.join(c for c in decomposed if not unicodedata.combining(c))


def collation_key(value):
    """
    Locale-style comparison key: letters first compare without case or accents,
    then with accents, then lowercase sorts before uppercase ("alice" < "Bob",
    "bob" < "Bob").
    """
    value = value if isinstance(value, str) else ('' if value is None else str(value))
    folded = value.casefold()
    return (_strip_accents(folded), folded, value.swapcase())


def _text(record, secondary_key):
    if secondary_key:
        return record.get(secondary_key) or ''
    return record.get('name') or record.get('title') or ''


def sort_key(record, secondary_key=None):
    return (coerce_display_order(record.get('displayOrder')),
            collation_key(_text(record, secondary_key)))


def sort_records(records, secondary_key=None):
    """Stable sort by displayOrder, then by the secondary text key"""
    return sorted(records, key=lambda r: sort_key(r, secondary_key))


def declares_display_order(records):
    return any(isinstance(r, dict) and 'displayOrder' in r for r in records)


def apply_positions(records):
    """Return copies of records whose displayOrder is their index in the sequence"""
    positioned = []
    for index, record in enumerate(records):
        updated = dict(record)
        updated['displayOrder'] = index
        positioned.append(updated)
    return positioned


def move(records, from_index, to_index):
    """Move one record, the way a drag-and-drop list does"""
    items = list(records)
    if not 0 <= from_index < len(items):
        raise IndexError(f"from_index {from_index} out of range")
    to_index = max(0, min(to_index, len(items) - 1))
    item = items.pop(from_index)
    items.insert(to_index, item)
    return items


def reorder_by_ids(records, ids):
    """
    Put records listed in ids first (in that order), keep the others after them
    in their current relative order, then renumber every displayOrder.
    Unknown ids are ignored.
    """
    by_id = {r.get('id'): r for r in records}
    seen = set()
    ordered = []
    for record_id in ids:
        if record_id in by_id and record_id not in seen:
            ordered.append(by_id[record_id])
            seen.add(record_id)
    ordered.extend(r for r in records if r.get('id') not in seen)
    return apply_positions(ordered)
