"""
Unit tests for record validation
"""
import pytest

from errors import ValidationError
from validators import coerce_display_order, validate_record

MEMBER_CLASSES = [
    {'id': 'officers', 'name': 'Officers'},
    {'id': 'active', 'name': 'Active Member'},
]


class TestMemberValidation:

    def test_valid_member(self):
        record = {'name': 'Alice', 'role': 'President', 'memberClassId': 'officers'}

        assert validate_record('members.json', record, MEMBER_CLASSES) is record

    def test_name_required(self):
        with pytest.raises(ValidationError) as exc:
            validate_record('members.json', {'name': '  ', 'role': 'Treasurer'}, MEMBER_CLASSES)

        assert exc.value.message == 'name is required'

    def test_role_required_outside_active_member_class(self):
        record = {'name': 'Bob', 'role': '', 'memberClassId': 'officers'}

        with pytest.raises(ValidationError) as exc:
            validate_record('members.json', record, MEMBER_CLASSES)

        assert exc.value.message == 'role is required'

    def test_role_not_required_for_active_member(self):
        record = {'name': 'Cara', 'memberClassId': 'active'}

        result = validate_record('members.json', record, MEMBER_CLASSES)

        assert result['role'] == ''

    def test_active_member_role_is_cleared(self):
        record = {'name': 'Cara', 'role': 'Volunteer', 'memberClassId': 'active'}

        result = validate_record('members.json', record, MEMBER_CLASSES)

        assert result['role'] == ''

    def test_unknown_class_requires_role(self):
        record = {'name': 'Dee', 'memberClassId': 'missing'}

        with pytest.raises(ValidationError):
            validate_record('members.json', record, MEMBER_CLASSES)


class TestOtherEntities:

    def test_member_class_name_required(self):
        with pytest.raises(ValidationError):
            validate_record('memberClasses.json', {'description': 'x'})

    def test_program_title_required(self):
        with pytest.raises(ValidationError):
            validate_record('programs.json', {'subtitle': 'x'})

    @pytest.mark.parametrize('missing', ['title', 'category', 'description'])
    def test_news_required_fields(self, missing):
        record = {'title': 'Gala', 'category': 'Events', 'description': 'Annual gala'}
        record[missing] = ''

        with pytest.raises(ValidationError) as exc:
            validate_record('news.json', record)

        assert exc.value.message == f'{missing} is required'

    def test_hero_image_needs_url_and_alt_text(self):
        with pytest.raises(ValidationError):
            validate_record('heroImages.json', {'imageUrl': '/uploads/hero/a.png'})

        record = {'imageUrl': '/uploads/hero/a.png', 'altText': 'Students at the fair'}
        assert validate_record('heroImages.json', record) is record

    def test_unregistered_collection_passes(self):
        assert validate_record('other.json', {'anything': 1}) == {'anything': 1}

    def test_record_must_be_object(self):
        with pytest.raises(ValidationError):
            validate_record('programs.json', ['not', 'a', 'dict'])


class TestDisplayOrderCoercion:

    @pytest.mark.parametrize('value, expected', [
        (3, 3),
        ('7', 7),
        ('', 0),
        (None, 0),
        ('abc', 0),
        (True, 0),
    ])
    def test_coerce(self, value, expected):
        assert coerce_display_order(value) == expected

    def test_validate_normalizes_display_order(self):
        record = {'title': 'Outreach', 'displayOrder': '2'}

        assert validate_record('programs.json', record)['displayOrder'] == 2
