"""
Grid layout for YgoProxy2Pdf.
"""

import math
from typing import List, NamedTuple

from config import (CARD_WIDTH_MM, CARD_HEIGHT_MM, PAGE_WIDTH_MM, PAGE_HEIGHT_MM, CARDS_PER_ROW, CARDS_PER_COLUMN,
                    CARDS_PER_PAGE, MIN_PAGE_MARGIN_MM)

GRID_WIDTH_MM = CARD_WIDTH_MM * CARDS_PER_ROW
GRID_HEIGHT_MM = CARD_HEIGHT_MM * CARDS_PER_COLUMN

BASE_MARGIN_X_MM = math.floor((PAGE_WIDTH_MM - GRID_WIDTH_MM) / 2)
BASE_MARGIN_Y_MM = math.floor((PAGE_HEIGHT_MM - GRID_HEIGHT_MM) / 2)

# Top-left corner of the middle cell; every other cell is offset from it
CENTER_X_MM = BASE_MARGIN_X_MM + CARD_WIDTH_MM
CENTER_Y_MM = BASE_MARGIN_Y_MM + CARD_HEIGHT_MM

class CardSlot(NamedTuple):
    page: int
    x: float
    y: float

def compute_max_spacing_mm() -> int:
    """Largest spacing that keeps the outer cards MIN_PAGE_MARGIN_MM away from the page edge."""
    spacing_max_x = (PAGE_WIDTH_MM - GRID_WIDTH_MM) / 2 - MIN_PAGE_MARGIN_MM
    spacing_max_y = (PAGE_HEIGHT_MM - GRID_HEIGHT_MM) / 2 - MIN_PAGE_MARGIN_MM
    return max(0, math.floor(min(spacing_max_x, spacing_max_y)))

def clamp_spacing_mm(spacing_mm: float) -> float:
    return min(max(0.0, float(spacing_mm)), float(compute_max_spacing_mm()))

def compute_card_positions(count: int, spacing_mm: float) -> List[CardSlot]:
    """
    Maps each card index to its page and top-left corner (mm, origin at the page's top-left).
    Cards fill a centred 3x3 grid row by row; spacing widens the pitch around the middle cell.
    """
    if count < 0: raise ValueError(f"Card count must not be negative, got {count}")
    positions: List[CardSlot] = []
    for i in range(count):
        page = i // CARDS_PER_PAGE; index_in_page = i % CARDS_PER_PAGE
        row = index_in_page // CARDS_PER_ROW; col = index_in_page % CARDS_PER_ROW
        x = CENTER_X_MM + (col - 1) * (CARD_WIDTH_MM + spacing_mm)
        y = CENTER_Y_MM + (row - 1) * (CARD_HEIGHT_MM + spacing_mm)
        positions.append(CardSlot(page=page, x=x, y=y))
    return positions

def count_pages(count: int) -> int:
    return (count + CARDS_PER_PAGE - 1) // CARDS_PER_PAGE
