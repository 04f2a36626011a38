"""
Data Types - Image artifacts flowing through node graphs.

The graph engine itself never inspects artifacts; nodes may produce any
Python object. Compositing, however, understands exactly one type:

- ImageData: 8-bit RGBA pixels plus metadata
- ImageMetadata: provenance information attached to an image
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence, TypeAlias

import numpy as np
from numpy.typing import NDArray


# Type alias for opaque node parameter values (anything JSON can hold)
ParameterValue: TypeAlias = str | int | float | bool | list | dict | None

# An RGBA colour with 8-bit channels
Color: TypeAlias = tuple[int, int, int, int]


@dataclass
class ImageMetadata:
    """Metadata associated with an image."""

    source_path: Path | None = None
    custom: dict[str, Any] = field(default_factory=dict)

    def copy(self) -> ImageMetadata:
        """Create a shallow copy of this metadata."""
        return ImageMetadata(
            source_path=self.source_path,
            custom=self.custom.copy(),
        )


@dataclass
class ImageData:
    """
    Container for image data flowing through the node graph.

    Pixels are stored as a numpy array in HWC format with four uint8
    channels (straight, non-premultiplied RGBA).

    Attributes:
        pixels: numpy array of shape (H, W, 4), dtype uint8
        metadata: Optional metadata about the image
    """
    pixels: NDArray[np.uint8]
    metadata: ImageMetadata = field(default_factory=ImageMetadata)

    def __post_init__(self) -> None:
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) RGBA pixels, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")

    @classmethod
    def from_numpy(
        cls,
        array: NDArray,
        metadata: ImageMetadata | None = None,
    ) -> ImageData:
        """
        Create ImageData from a numpy array.

        Handles various input formats:
        - float [0, 1] -> uint8 [0, 255] (rounded, clamped)
        - HW (grayscale) -> RGBA
        - HWC with 3 channels -> RGBA with opaque alpha
        """
        arr = np.asarray(array)

        if arr.dtype != np.uint8:
            arr = to_uint8(arr.astype(np.float64))
        else:
            arr = arr.copy()

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3:
            raise ValueError(f"Unsupported array shape: {arr.shape}")
        if arr.shape[2] == 1:
            arr = np.concatenate([arr, arr, arr], axis=-1)
        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)

        return cls(pixels=arr, metadata=metadata or ImageMetadata())

    @classmethod
    def from_pil(cls, image, metadata: ImageMetadata | None = None) -> ImageData:
        """Create ImageData from a PIL Image."""
        from PIL import Image

        if not isinstance(image, Image.Image):
            raise TypeError(f"Expected PIL Image, got {type(image)}")

        if image.mode != "RGBA":
            image = image.convert("RGBA")

        arr = np.array(image, dtype=np.uint8)
        return cls(pixels=arr, metadata=metadata or ImageMetadata())

    @classmethod
    def from_file(cls, path: str | Path, metadata: ImageMetadata | None = None) -> ImageData:
        """
        Create ImageData by loading an image from a file.

        Args:
            path: Path to the image file
            metadata: Optional metadata (source_path will be set automatically)

        Returns:
            ImageData with the loaded image
        """
        from PIL import Image

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Image file not found: {path}")

        with Image.open(path) as image:
            image.load()
            meta = metadata or ImageMetadata()
            meta.source_path = path
            return cls.from_pil(image, meta)

    @classmethod
    def empty(cls, width: int, height: int) -> ImageData:
        """Create a fully transparent image of the given size."""
        return cls(pixels=np.zeros((height, width, 4), dtype=np.uint8))

    @classmethod
    def solid(cls, width: int, height: int, color: Sequence[int]) -> ImageData:
        """Create an image filled with a single RGBA colour."""
        rgba = tuple(color) + (255,) * (4 - len(color))
        arr = np.empty((height, width, 4), dtype=np.uint8)
        arr[...] = np.asarray(rgba, dtype=np.uint8)
        return cls(pixels=arr)

    @property
    def width(self) -> int:
        """Image width in pixels."""
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        """Image height in pixels."""
        return self.pixels.shape[0]

    @property
    def size(self) -> tuple[int, int]:
        """Image size as (width, height)."""
        return (self.width, self.height)

    def pixel(self, x: int, y: int) -> Color:
        """Return the RGBA value at (x, y)."""
        r, g, b, a = (int(v) for v in self.pixels[y, x])
        return (r, g, b, a)

    def to_float(self) -> NDArray[np.float64]:
        """Pixels as floats in [0, 1]."""
        return self.pixels.astype(np.float64) / 255.0

    def to_pil(self):
        """Convert to PIL Image (RGBA)."""
        from PIL import Image

        return Image.fromarray(np.ascontiguousarray(self.pixels))

    def save(self, path: str | Path) -> Path:
        """Write the image to disk; format follows the file suffix."""
        path = Path(path)
        self.to_pil().save(path)
        return path

    def copy(self) -> ImageData:
        """Create a copy of this image."""
        return ImageData(
            pixels=self.pixels.copy(),
            metadata=self.metadata.copy(),
        )


def to_uint8(values: NDArray) -> NDArray[np.uint8]:
    """Convert floats in [0, 1] to 8-bit channels, rounding half up and clamping."""
    scaled = np.floor(np.asarray(values, dtype=np.float64) * 255.0 + 0.5)
    return np.clip(scaled, 0, 255).astype(np.uint8)
