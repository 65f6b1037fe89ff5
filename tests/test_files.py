from pathlib import Path

import pytest

from upload_shared.errors import DeleteFailed
from upload_shared.files import (
    delete_file,
    has_webp_ext,
    replace_url_basename,
    unique_filename,
    unique_webp_target,
)


class TestUniqueFilename:

    def test_free_name_is_kept(self, tmp_path):
        assert unique_filename(tmp_path, "photo.webp") == "photo.webp"

    def test_collision_gets_numeric_suffix(self, tmp_path):
        (tmp_path / "photo.webp").write_bytes(b"x")
        assert unique_filename(tmp_path, "photo.webp") == "photo-1.webp"

    def test_skips_taken_suffixes(self, tmp_path):
        (tmp_path / "photo.webp").write_bytes(b"x")
        (tmp_path / "photo-1.webp").write_bytes(b"x")
        assert unique_filename(tmp_path, "photo.webp") == "photo-2.webp"

    def test_name_is_used_as_given(self, tmp_path):
        assert unique_filename(tmp_path, "my photo.webp") == "my photo.webp"
        assert unique_filename(tmp_path, "café.webp") == "café.webp"

    def test_non_ascii_stem_keeps_extension(self, tmp_path):
        assert unique_filename(tmp_path, "фото.webp") == "фото.webp"
        (tmp_path / "фото.webp").write_bytes(b"x")
        assert unique_filename(tmp_path, "фото.webp") == "фото-1.webp"

    def test_webp_target_is_a_sibling(self, tmp_path):
        original = tmp_path / "2024" / "cat.png"
        original.parent.mkdir()
        original.write_bytes(b"x")
        assert unique_webp_target(original) == tmp_path / "2024" / "cat.webp"


@pytest.mark.parametrize("name,expected", [
    ("a.webp", True),
    ("a.WEBP", True),
    ("a.webp.jpg", False),
    ("webp", False),
])
def test_has_webp_ext(name, expected):
    assert has_webp_ext(name) is expected


class TestReplaceUrlBasename:

    def test_plain_url(self):
        url = "https://example.com/uploads/2024/cat.png"
        assert replace_url_basename(url, "cat.webp") == "https://example.com/uploads/2024/cat.webp"

    def test_query_and_fragment_untouched(self):
        url = "https://example.com/up/cat.png?ver=2&x=y.png#top"
        assert replace_url_basename(url, "cat-1.webp") == "https://example.com/up/cat-1.webp?ver=2&x=y.png#top"

    def test_slashes_in_query_untouched(self):
        url = "http://cdn.example.com:8080/a/b.jpg?next=/c/d.jpg"
        assert replace_url_basename(url, "b.webp") == "http://cdn.example.com:8080/a/b.webp?next=/c/d.jpg"

    def test_relative_url(self):
        assert replace_url_basename("/uploads/cat.png", "cat.webp") == "/uploads/cat.webp"

    def test_bare_name(self):
        assert replace_url_basename("cat.png", "cat.webp") == "cat.webp"


class TestDeleteFile:

    def test_removes_file(self, tmp_path):
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x")
        delete_file(path)
        assert not path.exists()

    def test_missing_file_is_fine(self, tmp_path):
        delete_file(tmp_path / "missing.jpg")

    def test_failure_raises_delete_failed(self, tmp_path, monkeypatch):
        path = tmp_path / "a.jpg"
        path.write_bytes(b"x")

        def deny(self, missing_ok=False):
            raise PermissionError("read-only")

        monkeypatch.setattr(Path, "unlink", deny)
        with pytest.raises(DeleteFailed):
            delete_file(path)
