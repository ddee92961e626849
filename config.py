"""
Central configuration — reads from .env file.

Every value below can be set as an environment variable or in a .env file
next to this module. The Google Cloud values are build-time constants in the
mobile app this client serves; here they are bundled into a SearchConfig that
is handed to ProductSearchClient explicitly, so tests and the CLI can run
several configurations side by side.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields

from dotenv import load_dotenv

load_dotenv()

# ── Google Cloud Vision ───────────────────────────────────────────────────────
# API key with the Cloud Vision API enabled
# https://console.cloud.google.com/apis/credentials
GOOGLE_CLOUD_API_KEY: str | None = os.getenv("GOOGLE_CLOUD_API_KEY")

# Project / region / product set that hold your reference images, e.g.
#   GOOGLE_CLOUD_PROJECT=my-shop   GOOGLE_CLOUD_REGION=us-west1
#   GOOGLE_CLOUD_VISION_PRODUCT_SET=summer_catalog
GOOGLE_CLOUD_PROJECT: str | None            = os.getenv("GOOGLE_CLOUD_PROJECT")
GOOGLE_CLOUD_REGION: str | None             = os.getenv("GOOGLE_CLOUD_REGION")
GOOGLE_CLOUD_VISION_PRODUCT_SET: str | None = os.getenv("GOOGLE_CLOUD_VISION_PRODUCT_SET")

# One of: homegoods-v2, apparel-v2, toys-v2, packagedgoods-v1, general-v1
GOOGLE_CLOUD_VISION_PRODUCT_CATEGORY: str | None = os.getenv("GOOGLE_CLOUD_VISION_PRODUCT_CATEGORY")

# ── Transport ─────────────────────────────────────────────────────────────────
VISION_API_URL: str           = os.getenv("VISION_API_URL", "https://vision.googleapis.com/v1/images:annotate")
VISION_TIMEOUT_SECONDS: float = float(os.getenv("VISION_TIMEOUT_SECONDS", "30"))
# Upper bound on concurrent HTTP calls to the Vision API
VISION_MAX_CONNECTIONS: int   = int(os.getenv("VISION_MAX_CONNECTIONS", "4"))

# ── Search behaviour ──────────────────────────────────────────────────────────
MAX_RESULTS: int       = 5
PLACEHOLDER_COUNT: int = 8


@dataclass(frozen=True)
class SearchConfig:
    """
    Everything one ProductSearchClient needs to talk to Cloud Vision.

    Required: api_key, project, region, product_set, product_category.
    The transport fields default to the module-level values above.
    """
    api_key: str
    project: str
    region: str
    product_set: str
    product_category: str
    api_url: str = VISION_API_URL
    timeout_seconds: float = VISION_TIMEOUT_SECONDS
    max_connections: int = VISION_MAX_CONNECTIONS

    REQUIRED = ("api_key", "project", "region", "product_set", "product_category")

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Build a config from this module's attributes (i.e. env / .env)."""
        return cls(
            api_key          = GOOGLE_CLOUD_API_KEY or "",
            project          = GOOGLE_CLOUD_PROJECT or "",
            region           = GOOGLE_CLOUD_REGION or "",
            product_set      = GOOGLE_CLOUD_VISION_PRODUCT_SET or "",
            product_category = GOOGLE_CLOUD_VISION_PRODUCT_CATEGORY or "",
            api_url          = VISION_API_URL,
            timeout_seconds  = VISION_TIMEOUT_SECONDS,
            max_connections  = VISION_MAX_CONNECTIONS,
        )

    def missing_fields(self) -> list[str]:
        return [f.name for f in fields(self) if f.name in self.REQUIRED and not getattr(self, f.name)]

    def validate(self) -> "SearchConfig":
        """Raise ValueError naming every required field that is empty."""
        missing = self.missing_fields()
        if missing:
            raise ValueError(
                "Product search is not configured. Missing: " + ", ".join(missing)
            )
        return self
