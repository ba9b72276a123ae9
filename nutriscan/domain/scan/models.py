"""
Scan capture domain models.

Scan modes, their upload descriptors, image references and the
upload state machine states.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from nutriscan.domain.shared.errors import ValidationError


class ScanMode(str, Enum):
    """Client-selected capture strategy."""

    LABEL = "label"  # Nutrition label, single photo
    FOOD = "food"  # Photo of the food itself, single photo
    ENHANCED = "enhanced"  # 1-3 photos analysed together


class UploadState(str, Enum):
    """Lifecycle of a pending scan."""

    IDLE = "Idle"  # No images staged
    READY = "Ready"  # 1..max images staged
    UPLOADING = "Uploading"  # Request in flight
    SUCCEEDED = "Succeeded"  # Result available, images cleared
    FAILED = "Failed"  # Error available, images kept for retry


@dataclass(frozen=True)
class ScanModeDescriptor:
    """How a scan mode maps onto the backend.

    Attributes:
        field: Multipart field name (repeated when max_images > 1)
        endpoint: Path below the API base URL
        max_images: Images accepted; single-image modes replace
        part_name: Filename template, {index} is 1-based
    """

    field: str
    endpoint: str
    max_images: int
    part_name: str

    @property
    def replaces(self) -> bool:
        return self.max_images == 1

    def filename(self, index: int, extension: str) -> str:
        return f"{self.part_name.format(index=index + 1)}.{extension}"


MODE_DESCRIPTORS: dict[ScanMode, ScanModeDescriptor] = {
    ScanMode.ENHANCED: ScanModeDescriptor(
        field="images",
        endpoint="/scan/enhanced",
        max_images=3,
        part_name="food-image-{index}",
    ),
    ScanMode.LABEL: ScanModeDescriptor(
        field="image",
        endpoint="/scan/analyze",
        max_images=1,
        part_name="nutrition-label",
    ),
    ScanMode.FOOD: ScanModeDescriptor(
        field="image",
        endpoint="/scan/food-photo",
        max_images=1,
        part_name="nutrition-label",
    ),
}


def descriptor_for(mode: ScanMode) -> ScanModeDescriptor:
    """Return the upload descriptor of a mode."""
    return MODE_DESCRIPTORS[ScanMode(mode)]


@dataclass(frozen=True)
class ImageRef:
    """
    Reference to a captured image.

    Either a path on disk (read lazily at upload time) or
    in-memory bytes with the URI used only for naming.

    Example:
        >>> ref = ImageRef.from_bytes(b"...", extension="png")
        >>> ref.extension
        'png'
    """

    uri: str
    data: Optional[bytes] = None

    @property
    def extension(self) -> str:
        """File extension taken from the URI, "jpg" when absent."""
        name = self.uri.rsplit("/", 1)[-1]
        if "." not in name:
            return "jpg"
        ext = name.rsplit(".", 1)[-1].lower()
        return ext or "jpg"

    @property
    def content_type(self) -> str:
        return f"image/{self.extension}"

    def read_bytes(self) -> bytes:
        """Image content.

        Raises:
            ValidationError: If the file cannot be read
        """
        if self.data is not None:
            return self.data
        try:
            return Path(self.uri).read_bytes()
        except OSError as e:
            raise ValidationError(f"Cannot read image {self.uri}: {e}") from e

    @classmethod
    def from_path(cls, path: str | Path) -> ImageRef:
        """Reference an image file.

        Raises:
            ValidationError: If the path is not an existing file
        """
        p = Path(path).expanduser()
        if not p.is_file():
            raise ValidationError(f"Image not found: {p}")
        return cls(uri=str(p))

    @classmethod
    def from_bytes(cls, data: bytes, extension: str = "jpg", name: str = "capture") -> ImageRef:
        if not data:
            raise ValidationError("Image is empty")
        return cls(uri=f"{name}.{extension}", data=data)
