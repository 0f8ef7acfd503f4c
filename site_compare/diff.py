# File: site_compare/diff.py
"""site_compare.diff: regions of visually different pixels between two screenshots.

Both images are downscaled by one shared factor onto a single canvas,
compared pixel by pixel, and the differing pixels are grouped into
4-connected components. Each component large enough to matter becomes a
:class:`DiffBox` expressed in fractions of the canvas, so the same boxes can
be drawn over either image.
"""

from __future__ import annotations

import io
import math
from dataclasses import asdict, dataclass
from typing import Dict, List, Tuple

import numpy as np
from PIL import Image

from site_compare.logger import logger

__all__ = ["DiffBox", "PairDiff", "compare_images", "diff_images", "canvas_size", "difference_mask", "find_components"]

MAX_DIMENSION = 600
PIXEL_THRESHOLD = 30
MIN_BOX_SIZE = 5

# (min_x, min_y, max_x, max_y), inclusive
Bounds = Tuple[int, int, int, int]


@dataclass(frozen=True, slots=True)
class DiffBox:
    """Rectangle relative to the comparison canvas; every field is in [0, 1]."""

    left: float
    top: float
    width: float
    height: float

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


def _round(value: float) -> int:
    # half-up, as opposed to round()'s half-to-even
    return math.floor(value + 0.5)


def _decode(data: bytes) -> Image.Image:
    with Image.open(io.BytesIO(data)) as img:
        return img.convert("RGBA")


def canvas_size(
    size1: Tuple[int, int], size2: Tuple[int, int], max_dimension: int = MAX_DIMENSION
) -> Tuple[float, int, int]:
    """Return the shared scale factor and the canvas width and height."""
    (w1, h1), (w2, h2) = size1, size2
    scale = min(1.0, max_dimension / max(w1, h1), max_dimension / max(w2, h2))
    width = max(1, _round(max(w1, w2) * scale))
    height = max(1, _round(max(h1, h2) * scale))
    return scale, width, height


def _resample(img: Image.Image, scale: float) -> Image.Image:
    size = (max(1, _round(img.width * scale)), max(1, _round(img.height * scale)))
    if size == img.size:
        return img
    return img.resize(size, Image.Resampling.BILINEAR)


def difference_mask(buffer_a: np.ndarray, buffer_b: np.ndarray, threshold: int = PIXEL_THRESHOLD) -> np.ndarray:
    """Boolean mask of pixels whose summed absolute RGB delta exceeds *threshold*.

    Alpha is ignored.
    """
    rgb_a = buffer_a[..., :3].astype(np.int16)
    rgb_b = buffer_b[..., :3].astype(np.int16)
    delta = np.abs(rgb_a - rgb_b).sum(axis=2)
    return delta > threshold


def find_components(mask: np.ndarray) -> List[Bounds]:
    """Bounding rectangles of the 4-connected components of *mask*.

    Flood fill uses an explicit stack so large regions cannot exhaust the
    call stack.
    """
    height, width = mask.shape
    cells = mask.tolist()
    seen = [bytearray(width) for _ in range(height)]
    components: List[Bounds] = []

    ys, xs = np.nonzero(mask)
    for y0, x0 in zip(ys.tolist(), xs.tolist()):
        if seen[y0][x0]:
            continue
        seen[y0][x0] = 1
        min_x = max_x = x0
        min_y = max_y = y0
        stack = [(x0, y0)]
        while stack:
            x, y = stack.pop()
            if x < min_x:
                min_x = x
            elif x > max_x:
                max_x = x
            if y < min_y:
                min_y = y
            elif y > max_y:
                max_y = y
            for nx, ny in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
                if 0 <= nx < width and 0 <= ny < height and cells[ny][nx] and not seen[ny][nx]:
                    seen[ny][nx] = 1
                    stack.append((nx, ny))
        components.append((min_x, min_y, max_x, max_y))
    return components


@dataclass(frozen=True, slots=True)
class PairDiff:
    """Sizes of two compared screenshots and the boxes of the regions that differ.

    The boxes are fractions of the canvas, which spans the larger width and
    the larger height of the two images.
    """

    size1: Tuple[int, int]
    size2: Tuple[int, int]
    boxes: List[DiffBox]

    @property
    def canvas(self) -> Tuple[int, int]:
        return max(self.size1[0], self.size2[0]), max(self.size1[1], self.size2[1])


def compare_images(
    image1: bytes,
    image2: bytes,
    *,
    max_dimension: int = MAX_DIMENSION,
    threshold: int = PIXEL_THRESHOLD,
    min_box_size: int = MIN_BOX_SIZE,
) -> PairDiff:
    """Compare two encoded images; see :class:`PairDiff`."""
    img1 = _decode(image1)
    img2 = _decode(image2)
    scale, cw, ch = canvas_size(img1.size, img2.size, max_dimension)

    # image 2 is drawn over image 1 on the same canvas, as a browser canvas would
    canvas = Image.new("RGBA", (cw, ch), (0, 0, 0, 0))
    canvas.alpha_composite(_resample(img1, scale))
    buffer_a = np.array(canvas)
    canvas.alpha_composite(_resample(img2, scale))
    buffer_b = np.array(canvas)

    mask = difference_mask(buffer_a, buffer_b, threshold)
    components = find_components(mask)

    boxes: List[DiffBox] = []
    for min_x, min_y, max_x, max_y in components:
        box_w = max_x - min_x + 1
        box_h = max_y - min_y + 1
        if box_w < min_box_size or box_h < min_box_size:
            continue
        boxes.append(DiffBox(left=min_x / cw, top=min_y / ch, width=box_w / cw, height=box_h / ch))

    logger.debug(
        "Diff on %dx%d canvas (scale %.3f): %d differing pixels, %d components, %d boxes",
        cw, ch, scale, int(mask.sum()), len(components), len(boxes),
    )
    return PairDiff(size1=img1.size, size2=img2.size, boxes=boxes)


def diff_images(
    image1: bytes,
    image2: bytes,
    *,
    max_dimension: int = MAX_DIMENSION,
    threshold: int = PIXEL_THRESHOLD,
    min_box_size: int = MIN_BOX_SIZE,
) -> List[DiffBox]:
    """Compare two encoded images and return the boxes of the regions that differ."""
    return compare_images(
        image1, image2, max_dimension=max_dimension, threshold=threshold, min_box_size=min_box_size
    ).boxes
