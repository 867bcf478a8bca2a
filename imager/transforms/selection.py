"""Choose a pre-rendered watermark size for an image."""

from __future__ import annotations

import math

CATALOG_SIZES: tuple[int, ...] = (16, 32, 64, 128, 256)
DEFAULT_WATERMARK_SIZE = 16
MIN_SELECTED_SIZE = 32
MAX_EDGE_EXPONENT = 8


def select_watermark_size(width: int, height: int) -> int:
    """Return the catalog size tag for an image of ``width`` x ``height``.

    The tag is half the largest power of two that fits in the longer edge,
    capped at ``2 ** MAX_EDGE_EXPONENT`` and never smaller than
    ``MIN_SELECTED_SIZE``.
    """

    if width < 1 or height < 1:
        raise ValueError(f"Image bounds must be positive, got {width}x{height}")

    max_edge = float(max(width, height))
    edge_log = int(math.floor(math.log2(max_edge))) - 1
    exponent = min(MAX_EDGE_EXPONENT, max(0, edge_log))
    return max(MIN_SELECTED_SIZE, 2**exponent)
