"""
detected_object.py — the canonical home of DetectedObjectInfo.

Object detection happens upstream (camera pipeline / caller); this module only
describes what the search client receives from it.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class DetectedObjectInfo:
    """A detected object handed to product search."""
    object_index: int
    image_data: Optional[bytes]             # JPEG bytes of the cropped object, None if unavailable

    @classmethod
    def from_file(cls, path: str | Path, object_index: int = 0) -> "DetectedObjectInfo":
        return cls(object_index=object_index, image_data=Path(path).read_bytes())
