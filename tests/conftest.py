"""
Shared test fixtures for the Recuvia test suite.

External services are never contacted: Supabase is a MagicMock and the CLIP
model is replaced by a stub producing fixed-size vectors.
"""

import io
from unittest.mock import MagicMock

import pytest
from PIL import Image

from recuvia.models.item_models import AuthenticatedUser
from recuvia.services.processing_status import ProcessingStatusStore

VECTOR_DIMENSION = 512


class StubEmbedder:
    """Stands in for EmbeddingService and records every call."""

    def __init__(self, dimension: int = VECTOR_DIMENSION, output_size: int = None):
        self.dimension = dimension
        self.output_size = output_size or dimension
        self.image_calls = 0
        self.text_calls = 0

    def embed_image(self, image_bytes: bytes) -> list:
        self.image_calls += 1
        return [0.01] * self.output_size

    def embed_text(self, text: str) -> list:
        self.text_calls += 1
        return [0.02] * self.output_size


@pytest.fixture
def png_bytes() -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def embedder() -> StubEmbedder:
    return StubEmbedder()


@pytest.fixture
def status_store() -> ProcessingStatusStore:
    return ProcessingStatusStore(max_entries=100)


@pytest.fixture
def mock_supabase() -> MagicMock:
    """Mock of SupabaseClient with successful defaults."""
    mock = MagicMock()
    mock.upload_image.return_value = None
    mock.get_public_url.side_effect = lambda client, name: f"https://project.supabase.co/storage/v1/object/public/item-images/{name}"
    mock.insert_item.side_effect = lambda client, row: dict(row)
    mock.get_item.return_value = None
    mock.list_items.return_value = []
    mock.match_items.return_value = []
    return mock


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id="user-1",
        email="owner@example.com",
        access_token="access",
        refresh_token="refresh",
        client=MagicMock(name="user_supabase_client"),
    )


@pytest.fixture
def other_user() -> AuthenticatedUser:
    return AuthenticatedUser(
        id="user-2",
        email="someone@example.com",
        client=MagicMock(name="other_supabase_client"),
    )


@pytest.fixture
def sample_rows() -> list:
    """Rows as returned by the match_items database function."""
    return [
        {"id": "a", "title": "Blue umbrella", "description": "", "location": "Library",
         "url": "https://x/a.jpg", "submitter_id": "user-1", "similarity": 0.91, "embedding": [0.1] * 4},
        {"id": "b", "title": "Black wallet", "description": "Leather", "location": "Gym",
         "url": "https://x/b.jpg", "submitter_id": "user-2", "similarity": 0.42},
        {"id": "c", "title": "Keys", "description": None, "location": "Cafeteria",
         "url": "https://x/c.jpg", "submitter_id": "user-3", "similarity": 0.77},
        {"id": "d", "title": "Water bottle", "description": "", "location": "Lab",
         "url": "https://x/d.jpg", "submitter_id": "user-3", "similarity": 0.15},
    ]
