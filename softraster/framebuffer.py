from typing import Sequence, Tuple

import numpy as np
from PIL import Image

# "Nothing drawn yet": every real depth is nearer (larger).
DEPTH_SENTINEL = -np.inf

_CHANNELS = (1, 3, 4)


def new_depth_buffer(width: int, height: int) -> np.ndarray:
    """Depth buffer indexed [y, x], filled with DEPTH_SENTINEL."""
    return np.full((height, width), DEPTH_SENTINEL, dtype=np.float64)


class FrameBuffer:
    """
    Pixel buffer handed to the rasterizer and written out through Pillow.

    data:
      - numpy array, shape (H, W, C), dtype=uint8
      - IMPORTANT: index order is [y, x, channel]
      - row 0 is the bottom of the picture while rendering; call
        flip_vertically() before encoding
    """
    def __init__(self, width: int, height: int, channels: int = 3):
        if channels not in _CHANNELS:
            raise ValueError(f"unsupported channel count {channels}")
        self.data = np.zeros((height, width, channels), dtype=np.uint8)

    @classmethod
    def from_array(cls, data: np.ndarray) -> "FrameBuffer":
        if data.ndim == 2:
            data = data[:, :, None]
        fb = cls(data.shape[1], data.shape[0], data.shape[2])
        fb.data[...] = data
        return fb

    @property
    def width(self) -> int:
        return self.data.shape[1]

    @property
    def height(self) -> int:
        return self.data.shape[0]

    @property
    def channels(self) -> int:
        return self.data.shape[2]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get(self, x: int, y: int) -> Tuple[int, ...]:
        """Pixel color, or all-zero outside the canvas."""
        if not self.in_bounds(x, y):
            return (0,) * self.channels
        return tuple(int(c) for c in self.data[y, x])

    def set(self, x: int, y: int, color: Sequence[int]) -> bool:
        """Write one pixel; out-of-canvas writes are ignored."""
        if not self.in_bounds(x, y):
            return False
        self.data[y, x, :] = tuple(color)[:self.channels]
        return True

    def fill(self, color: Sequence[int]):
        self.data[:, :, :] = tuple(color)[:self.channels]

    def flip_vertically(self):
        self.data = np.ascontiguousarray(self.data[::-1])

    def to_image(self) -> Image.Image:
        data = self.data[:, :, 0] if self.channels == 1 else self.data
        return Image.fromarray(data)

    def encode_to_file(self, path):
        """Encode with Pillow; the format follows the file extension (.tga, .png, ...)."""
        self.to_image().save(path)
