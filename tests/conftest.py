"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path


@pytest.fixture
def temp_documents_dir(tmp_path: Path) -> Path:
    """Create a temporary directory structure with test documents.

    Structure:
        temp_dir/
            notes.txt
            pan.png
            nested/
                aadhaar.JPG
                readme.md
                deeper/
                    passport.pdf
            empty/
    """
    (tmp_path / "notes.txt").write_text("not a document")
    (tmp_path / "pan.png").write_bytes(b"fake png content")

    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "aadhaar.JPG").write_bytes(b"fake jpg content")
    (nested / "readme.md").write_text("not a document")

    deeper = nested / "deeper"
    deeper.mkdir()
    (deeper / "passport.pdf").write_bytes(b"fake pdf content")

    (tmp_path / "empty").mkdir()

    return tmp_path


@pytest.fixture
def app_id() -> str:
    """Return a fake App ID for testing."""
    return "test-app-id-123"


@pytest.fixture
def app_key() -> str:
    """Return a fake App Key for testing."""
    return "test-app-key-456"
