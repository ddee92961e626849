"""
Shared pytest fixtures.

Every test gets a fully populated SearchConfig via the `search_config`
fixture, and the Google Cloud environment variables are cleared so a
developer's real .env never leaks into a test run.
"""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ── Make the project root importable without installing the package ────────────
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import SearchConfig  # noqa: E402

# Smallest valid JPEG header; only the bytes matter
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Clear Google Cloud settings from both os.environ and the config module."""
    import config
    for name in (
        "GOOGLE_CLOUD_API_KEY",
        "GOOGLE_CLOUD_PROJECT",
        "GOOGLE_CLOUD_REGION",
        "GOOGLE_CLOUD_VISION_PRODUCT_SET",
        "GOOGLE_CLOUD_VISION_PRODUCT_CATEGORY",
    ):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.setattr(config, name, None)
    yield


@pytest.fixture
def search_config() -> SearchConfig:
    return SearchConfig(
        api_key="test_vision_key",
        project="test-project",
        region="us-west1",
        product_set="test_set",
        product_category="homegoods-v2",
        api_url="https://vision.test/v1/images:annotate",
        timeout_seconds=5,
        max_connections=2,
    )


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES
