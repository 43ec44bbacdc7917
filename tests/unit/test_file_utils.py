"""
Unit Tests: File Utilities
==========================
Tests for capture naming, content type detection and local writes.
No external API calls - runs fast.
"""

import os
from datetime import datetime

import pytest


class TestGenerateCaptureName:
    """Tests for generate_capture_name function."""

    @pytest.mark.unit
    def test_formats_timestamp(self):
        """Should name captures after the capture time."""
        from sharpcrop.utils import generate_capture_name

        name = generate_capture_name("png", datetime(2024, 5, 1, 13, 37, 5))

        assert name == "2024_05_01_13_37_05.png"

    @pytest.mark.unit
    def test_normalizes_extension(self):
        """Should accept a leading dot and upper case."""
        from sharpcrop.utils import generate_capture_name

        name = generate_capture_name(".MP4", datetime(2024, 1, 2, 3, 4, 5))

        assert name == "2024_01_02_03_04_05.mp4"

    @pytest.mark.unit
    def test_defaults_to_now(self):
        """Should use the current time when none is given."""
        from sharpcrop.utils import generate_capture_name

        name = generate_capture_name("gif")

        assert name.startswith(str(datetime.now().year))
        assert name.endswith(".gif")


class TestGetContentType:
    """Tests for get_content_type_for_file function."""

    @pytest.mark.unit
    def test_image_types(self):
        """Should return correct MIME for capture formats."""
        from sharpcrop.utils import get_content_type_for_file

        assert get_content_type_for_file("a.png") == "image/png"
        assert get_content_type_for_file("a.JPG") == "image/jpeg"
        assert get_content_type_for_file("a.gif") == "image/gif"
        assert get_content_type_for_file("a.mp4") == "video/mp4"

    @pytest.mark.unit
    def test_unknown_type(self):
        """Should return octet-stream for unknown types."""
        from sharpcrop.utils import get_content_type_for_file

        assert get_content_type_for_file("a.xyz") == "application/octet-stream"
        assert get_content_type_for_file("noext") == "application/octet-stream"


class TestGetFileExtension:
    """Tests for get_file_extension function."""

    @pytest.mark.unit
    def test_returns_lowercase_extension(self):
        from sharpcrop.utils import get_file_extension

        assert get_file_extension("/tmp/Capture.PNG") == ".png"

    @pytest.mark.unit
    def test_no_extension(self):
        from sharpcrop.utils import get_file_extension

        assert get_file_extension("capture") == ""


class TestSanitizeFilename:
    """Tests for sanitize_filename function."""

    @pytest.mark.unit
    def test_keeps_capture_names(self):
        """Should leave generated names untouched."""
        from sharpcrop.utils import sanitize_filename

        assert sanitize_filename("2024_05_01_13_37_05.png") == "2024_05_01_13_37_05.png"

    @pytest.mark.unit
    def test_drops_directories(self):
        """Should keep only the last path component."""
        from sharpcrop.utils import sanitize_filename

        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\Users\\me\\shot.png") == "shot.png"

    @pytest.mark.unit
    def test_replaces_unsafe_characters(self):
        """Should replace characters invalid on common filesystems."""
        from sharpcrop.utils import sanitize_filename

        assert sanitize_filename('shot<1>:"?.png') == "shot_1____.png"

    @pytest.mark.unit
    def test_invalid_input(self):
        """Should return empty string for unusable names."""
        from sharpcrop.utils import sanitize_filename

        assert sanitize_filename("") == ""
        assert sanitize_filename(None) == ""
        assert sanitize_filename("..") == ""


class TestWriteLocalFile:
    """Tests for write_local_file function."""

    @pytest.mark.unit
    def test_writes_exact_bytes(self, tmp_path, sample_image_bytes):
        """Should write the bytes unchanged and return the absolute path."""
        from sharpcrop.utils import write_local_file

        path = write_local_file(str(tmp_path), "shot.png", sample_image_bytes)

        assert path == os.path.abspath(tmp_path / "shot.png")
        assert (tmp_path / "shot.png").read_bytes() == sample_image_bytes

    @pytest.mark.unit
    def test_creates_missing_folder(self, tmp_path):
        """Should create the target folder."""
        from sharpcrop.utils import write_local_file

        write_local_file(str(tmp_path / "a" / "b"), "shot.png", b"x")

        assert (tmp_path / "a" / "b" / "shot.png").exists()

    @pytest.mark.unit
    def test_raises_local_io_error(self, tmp_path):
        """Should raise LocalIOError when the folder cannot be created."""
        from sharpcrop.errors import LocalIOError
        from sharpcrop.utils import write_local_file

        blocker = tmp_path / "file"
        blocker.write_bytes(b"")

        with pytest.raises(LocalIOError):
            write_local_file(str(blocker), "shot.png", b"x")

    @pytest.mark.unit
    def test_rejects_empty_name(self, tmp_path):
        """Should refuse names that sanitize to nothing."""
        from sharpcrop.errors import LocalIOError
        from sharpcrop.utils import write_local_file

        with pytest.raises(LocalIOError):
            write_local_file(str(tmp_path), "..", b"x")
