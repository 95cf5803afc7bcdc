"""
Unit tests for the upload handler
"""
import os
import re
from io import BytesIO

import pytest
from werkzeug.datastructures import FileStorage

from errors import FileTooLargeError, InvalidFileTypeError, InvalidPathError, NotFoundError
from uploads import UploadHandler, allowed_file, normalize_category, slugify

MB = 1024 * 1024


@pytest.fixture
def handler(tmp_path):
    return UploadHandler(str(tmp_path / 'uploads'), 5 * MB)


def _file(size, filename='Team Photo.png', content_type='image/png'):
    return FileStorage(stream=BytesIO(b'\x89' * size), filename=filename, content_type=content_type)


class TestHelpers:

    @pytest.mark.parametrize('value, expected', [
        ('Team Photo', 'team-photo'),
        ('  Spring__Gala 2024!! ', 'spring-gala-2024'),
        ('***', 'image'),
        ('', 'image'),
    ])
    def test_slugify(self, value, expected):
        assert slugify(value) == expected

    @pytest.mark.parametrize('category, expected', [
        ('members', 'members'),
        ('hero', 'hero'),
        ('avatars', 'misc'),
        (None, 'misc'),
    ])
    def test_normalize_category(self, category, expected):
        assert normalize_category(category) == expected

    def test_allowed_file_needs_extension_and_mimetype(self):
        assert allowed_file('a.jpg', 'image/jpeg')
        assert allowed_file('a.WEBP', 'image/webp')
        assert not allowed_file('a.png', 'application/octet-stream')
        assert not allowed_file('a.exe', 'image/png')
        assert not allowed_file('png', 'image/png')


class TestSave:

    def test_saves_into_category_folder(self, handler, tmp_path):
        public_path = handler.save(_file(4 * MB), 'members')

        assert re.fullmatch(r'/uploads/members/team-photo-\d+\.png', public_path)
        saved = tmp_path / 'uploads' / 'members' / public_path.rsplit('/', 1)[1]
        assert saved.stat().st_size == 4 * MB

    def test_unknown_category_goes_to_misc(self, handler):
        public_path = handler.save(_file(10), 'avatars')

        assert public_path.startswith('/uploads/misc/')

    def test_rejects_file_over_ceiling(self, handler, tmp_path):
        with pytest.raises(FileTooLargeError):
            handler.save(_file(6 * MB), 'news')

        assert not (tmp_path / 'uploads' / 'news').exists()

    def test_accepts_file_at_ceiling(self, handler):
        assert handler.save(_file(5 * MB), 'news').startswith('/uploads/news/')

    def test_rejects_renamed_executable(self, handler, tmp_path):
        """Extension passes but the content type does not"""
        upload = _file(100, filename='setup.png', content_type='application/x-msdownload')

        with pytest.raises(InvalidFileTypeError):
            handler.save(upload, 'misc')

        assert not (tmp_path / 'uploads' / 'misc').exists()

    def test_rejects_image_mimetype_with_bad_extension(self, handler):
        with pytest.raises(InvalidFileTypeError):
            handler.save(_file(100, filename='setup.exe', content_type='image/png'), 'misc')

    def test_same_name_uploads_do_not_collide(self, handler, monkeypatch):
        timestamps = iter([1700000000500, 1700000001250])
        monkeypatch.setattr(handler, 'timestamp', lambda: next(timestamps))

        first = handler.save(_file(10), 'news')
        second = handler.save(_file(10), 'news')

        assert first == '/uploads/news/team-photo-1700000000500.png'
        assert second == '/uploads/news/team-photo-1700000001250.png'

    def test_same_millisecond_uploads_get_distinct_names(self, handler, tmp_path, monkeypatch):
        monkeypatch.setattr(handler, 'timestamp', lambda: 1700000000500)

        first = handler.save(_file(10), 'news')
        second = handler.save(_file(20), 'news')

        assert first == '/uploads/news/team-photo-1700000000500.png'
        assert second == '/uploads/news/team-photo-1700000000500-1.png'
        news_dir = tmp_path / 'uploads' / 'news'
        assert (news_dir / 'team-photo-1700000000500.png').stat().st_size == 10
        assert (news_dir / 'team-photo-1700000000500-1.png').stat().st_size == 20


class TestDelete:

    def test_deletes_uploaded_file(self, handler, tmp_path):
        public_path = handler.save(_file(10), 'hero')
        target = tmp_path / 'uploads' / 'hero' / public_path.rsplit('/', 1)[1]

        assert handler.delete(public_path) is True
        assert not target.exists()

    def test_missing_file(self, handler):
        with pytest.raises(NotFoundError):
            handler.delete('/uploads/hero/nothing-here.png')

    @pytest.mark.parametrize('path', [
        '/data/members.json',
        'uploads/hero/a.png',
        '/uploads/../data/members.json',
        '/uploads/',
        None,
    ])
    def test_rejects_paths_outside_uploads(self, handler, tmp_path, path):
        outside = tmp_path / 'data' / 'members.json'
        outside.parent.mkdir()
        outside.write_text('[]')

        with pytest.raises(InvalidPathError):
            handler.delete(path)

        assert outside.exists()

    def test_delete_quietly_ignores_missing_and_foreign_paths(self, handler):
        assert handler.delete_quietly('/uploads/news/gone.png') is False
        assert handler.delete_quietly('https://example.com/a.png') is False
        assert handler.delete_quietly('') is False

    def test_upload_root_created_on_demand(self, handler):
        assert not os.path.exists(handler.upload_root)

        handler.save(_file(10), 'programs')

        assert os.path.isdir(os.path.join(handler.upload_root, 'programs'))
