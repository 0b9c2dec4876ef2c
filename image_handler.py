"""
Image handling for YgoProxy2Pdf.
"""

import io
import math
from collections import Counter
from typing import Tuple

from PIL import Image, UnidentifiedImageError

from card_processing import RGB
from config import (TEXTBOX_X_RATIO, TEXTBOX_WIDTH_RATIO, TEXTBOX_Y_RATIO, TEXTBOX_HEIGHT_RATIO, TEXTBOX_Y_RATIO_MONSTER,
                    TEXTBOX_HEIGHT_RATIO_MONSTER, NEAR_BLACK_MAX, DEFAULT_BG_COLOR)

class SamplingUnsupportedError(Exception):
    """The object handed to the sampler has no readable pixels."""

def decode_image(data: bytes) -> Image.Image:
    """Decodes raw image bytes (webp, jpeg, png, ...) into a fully loaded PIL image."""
    try:
        img = Image.open(io.BytesIO(data)); img.load()
        return img
    except (UnidentifiedImageError, OSError) as e:
        raise ValueError(f"Could not decode image data ({len(data)} bytes): {e}") from e

def compute_effect_area_rect(image_width: int, image_height: int, is_monster: bool) -> Tuple[int, int, int, int]:
    """Pixel rect (x, y, w, h) of the printed effect text on a card image."""
    x = math.floor(image_width * TEXTBOX_X_RATIO)
    w = math.floor(image_width * TEXTBOX_WIDTH_RATIO)
    y = math.floor(image_height * (TEXTBOX_Y_RATIO_MONSTER if is_monster else TEXTBOX_Y_RATIO))
    h = math.floor(image_height * (TEXTBOX_HEIGHT_RATIO_MONSTER if is_monster else TEXTBOX_HEIGHT_RATIO))
    return x, y, w, h

def sample_effect_background_color(image: Image.Image, is_monster: bool, debug: bool = False) -> RGB:
    """
    Most frequent colour on the border of the effect text box, ignoring near-black rule lines.
    Only the border is read since the interior holds the printed text. Falls back to DEFAULT_BG_COLOR.
    """
    if not isinstance(image, Image.Image):
        raise SamplingUnsupportedError(f"Cannot sample pixels from {type(image).__name__}")
    rx, ry, rw, rh = compute_effect_area_rect(image.width, image.height, is_monster)
    if rw <= 0 or rh <= 0: return RGB(*DEFAULT_BG_COLOR)
    region = image.crop((rx, ry, rx + rw, ry + rh)).convert("RGB")
    pixels = region.load()
    counts: Counter = Counter()
    for py in range(rh):
        # Interior rows contribute only their first and last pixel
        columns = range(rw) if py == 0 or py == rh - 1 else sorted({0, rw - 1})
        for px in columns:
            r, g, b = pixels[px, py]
            if max(r, g, b) < NEAR_BLACK_MAX: continue
            counts[(r, g, b)] += 1
    if not counts:
        if debug: print(f"DEBUG: No usable border pixels in {rw}x{rh} effect box, using fallback colour")
        return RGB(*DEFAULT_BG_COLOR)
    (r, g, b), n = counts.most_common(1)[0]
    if debug: print(f"DEBUG: Effect box background rgb({r}, {g}, {b}) from {n} border pixels")
    return RGB(r, g, b)
