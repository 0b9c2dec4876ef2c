"""
PDF generation for YgoProxy2Pdf.
"""

import io
import os
import threading
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Sequence, Tuple

from PIL import Image
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from card_processing import RGB, EffectText, CardError, PreparedCard, BatchProgress, make_prepare_task, is_monster, is_pendulum, describe_error
from concurrency_utils import run_with_concurrency
from config import (CARD_WIDTH_MM, CARD_HEIGHT_MM, PAGE_SIZE_PT, MM_TO_PT, DEFAULT_SPACING_MM, DEFAULT_CONCURRENCY,
                    DEFAULT_MIN_DELAY_MS, DEFAULT_CID_FONT_NAME, DEFAULT_FONT_SIZE, MM_PER_POINT, TEXT_HORIZONTAL_PADDING_MM, ASCENT_RATIO,
                    TEXTBOX_X_RATIO, TEXTBOX_WIDTH_RATIO, TEXTBOX_Y_RATIO, TEXTBOX_HEIGHT_RATIO, TEXTBOX_Y_RATIO_MONSTER,
                    TEXTBOX_HEIGHT_RATIO_MONSTER, PENDULUM_TEXTBOX_X_RATIO, PENDULUM_TEXTBOX_WIDTH_RATIO,
                    PENDULUM_TEXTBOX_Y_RATIO, PENDULUM_TEXTBOX_HEIGHT_RATIO, PENDULUM_MONSTER_TEXTBOX_X_RATIO,
                    PENDULUM_MONSTER_TEXTBOX_WIDTH_RATIO, PENDULUM_MONSTER_TEXTBOX_Y_RATIO,
                    PENDULUM_MONSTER_TEXTBOX_HEIGHT_RATIO)
from layout_utils import CardSlot, compute_card_positions, clamp_spacing_mm, count_pages
from text_layout import layout_text_with_constraints, split_pendulum_desc

BLANK_SLOT_COLOR = RGB(255, 255, 255)
TEXT_COLOR = RGB(0, 0, 0)

class FontAssetError(Exception):
    """The overlay font could not be loaded, so no effect text can be rendered."""

class OverlayFont(NamedTuple):
    name: str
    source: str

# Fonts registered with reportlab live for the whole process; keep one handle per source
_overlay_fonts: Dict[str, OverlayFont] = {}
_overlay_fonts_lock = threading.Lock()

def load_overlay_font(font_path: Optional[str] = None, debug: bool = False) -> OverlayFont:
    """
    Registers the overlay font on first use and returns the cached handle afterwards.
    Uses the TrueType file at font_path if given, else reportlab's built-in CJK CID font.
    """
    source = font_path or DEFAULT_CID_FONT_NAME
    with _overlay_fonts_lock:
        cached = _overlay_fonts.get(source)
        if cached: return cached
        try:
            if font_path:
                if not os.path.isfile(font_path): raise FileNotFoundError(f"No such file: '{font_path}'")
                name = os.path.splitext(os.path.basename(font_path))[0]
                pdfmetrics.registerFont(TTFont(name, font_path))
            else:
                name = DEFAULT_CID_FONT_NAME
                pdfmetrics.registerFont(UnicodeCIDFont(name))
        except Exception as e:
            raise FontAssetError(f"Could not load overlay font '{source}': {e}") from e
        font = OverlayFont(name=name, source=source)
        _overlay_fonts[source] = font
        if debug: print(f"DEBUG: Registered overlay font '{name}' from {source}")
        return font

class PdfSink:
    """
    Drawing surface over a reportlab canvas, addressed in millimetres from the page's top-left corner.
    """
    def __init__(self, output_path_or_buffer: Optional[Any] = None, pagesize: Tuple[float, float] = PAGE_SIZE_PT):
        self.buffer = output_path_or_buffer if output_path_or_buffer is not None else io.BytesIO()
        self.page_width_pt, self.page_height_pt = pagesize
        self.canvas = canvas.Canvas(self.buffer, pagesize=pagesize)
        self.font_name = "Helvetica"; self.font_size = 8.0
        self.text_color = TEXT_COLOR
        self.page_count = 1
        self.canvas.setFont(self.font_name, self.font_size)

    def _y_pt(self, y_mm: float) -> float:
        return self.page_height_pt - y_mm * MM_TO_PT

    def add_page(self):
        self.canvas.showPage(); self.page_count += 1
        # showPage() resets the graphics state
        self.canvas.setFont(self.font_name, self.font_size)

    def draw_image(self, image: Image.Image, x: float, y: float, w: float, h: float):
        reader = ImageReader(image.convert("RGB"))
        self.canvas.drawImage(reader, x * MM_TO_PT, self._y_pt(y + h), width=w * MM_TO_PT, height=h * MM_TO_PT)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: RGB):
        self.canvas.setFillColorRGB(color.r / 255, color.g / 255, color.b / 255)
        self.canvas.rect(x * MM_TO_PT, self._y_pt(y + h), w * MM_TO_PT, h * MM_TO_PT, fill=1, stroke=0)

    def set_font(self, name: str, size: float):
        self.font_name = name; self.font_size = size
        self.canvas.setFont(name, size)

    def set_font_size(self, size: float):
        self.set_font(self.font_name, size)

    def get_text_width(self, text: str) -> float:
        return pdfmetrics.stringWidth(text, self.font_name, self.font_size) / MM_TO_PT

    def set_text_color(self, color: RGB):
        self.text_color = color

    def draw_text(self, text: str, x: float, baseline_y: float):
        # Text is painted with the fill colour in reportlab
        self.canvas.setFillColorRGB(self.text_color.r / 255, self.text_color.g / 255, self.text_color.b / 255)
        self.canvas.drawString(x * MM_TO_PT, self._y_pt(baseline_y), text)

    def output(self) -> bytes:
        self.canvas.save()
        if isinstance(self.buffer, io.BytesIO): return self.buffer.getvalue()
        with open(self.buffer, "rb") as f: return f.read()

class SheetResult(NamedTuple):
    document: Any
    errors: List[CardError]
    page_count: int

def card_box(slot: CardSlot, x_ratio: float, y_ratio: float, w_ratio: float, h_ratio: float) -> Tuple[float, float, float, float]:
    return (slot.x + CARD_WIDTH_MM * x_ratio, slot.y + CARD_HEIGHT_MM * y_ratio, CARD_WIDTH_MM * w_ratio, CARD_HEIGHT_MM * h_ratio)

def render_text_in_rect(sink: Any, font: OverlayFont, raw_text: str, x: float, y: float, w: float, h: float):
    """Reflows raw_text into the box and draws it line by line, first line's top on the box top."""
    sink.set_font(font.name, DEFAULT_FONT_SIZE)
    lines, font_size = layout_text_with_constraints(sink, raw_text, w, h)
    sink.set_font_size(font_size)
    line_height = font_size * MM_PER_POINT
    text_left_x = x + TEXT_HORIZONTAL_PADDING_MM / 2
    baseline_y = y + line_height * ASCENT_RATIO
    for line in lines:
        sink.draw_text(line, text_left_x, baseline_y)
        baseline_y += line_height

def draw_effect_overlay(sink: Any, font: OverlayFont, effect_text: EffectText, background_color: RGB, slot: CardSlot, debug: bool = False):
    """Paints over the printed effect box(es) of one card and renders the reflowed effect text there."""
    sink.set_text_color(TEXT_COLOR)
    if is_pendulum(effect_text.types):
        pendulum_text, monster_text = split_pendulum_desc(effect_text.desc)
        pendulum_box = card_box(slot, PENDULUM_TEXTBOX_X_RATIO, PENDULUM_TEXTBOX_Y_RATIO, PENDULUM_TEXTBOX_WIDTH_RATIO, PENDULUM_TEXTBOX_HEIGHT_RATIO)
        monster_box = card_box(slot, PENDULUM_MONSTER_TEXTBOX_X_RATIO, PENDULUM_MONSTER_TEXTBOX_Y_RATIO, PENDULUM_MONSTER_TEXTBOX_WIDTH_RATIO, PENDULUM_MONSTER_TEXTBOX_HEIGHT_RATIO)
        sink.fill_rect(*pendulum_box, background_color); sink.fill_rect(*monster_box, background_color)
        if debug: print(f"DEBUG:   Pendulum overlay, {len(pendulum_text)} + {len(monster_text)} chars")
        if pendulum_text: render_text_in_rect(sink, font, pendulum_text, *pendulum_box)
        if monster_text: render_text_in_rect(sink, font, monster_text, *monster_box)
        return
    monster = is_monster(effect_text.types)
    box = card_box(slot, TEXTBOX_X_RATIO, TEXTBOX_Y_RATIO_MONSTER if monster else TEXTBOX_Y_RATIO,
                   TEXTBOX_WIDTH_RATIO, TEXTBOX_HEIGHT_RATIO_MONSTER if monster else TEXTBOX_HEIGHT_RATIO)
    sink.fill_rect(*box, background_color)
    render_text_in_rect(sink, font, effect_text.desc, *box)

def generate_sheet(
    card_ids: Sequence[int],
    fetch_image: Callable[[int], Any],
    overlay_effects: bool = False,
    fetch_card_text: Optional[Callable[[int], EffectText]] = None,
    sample_bg_color: Optional[Callable[[Any, bool], RGB]] = None,
    spacing_mm: float = DEFAULT_SPACING_MM,
    on_progress: Optional[Callable[[int, int], None]] = None,
    concurrency: int = DEFAULT_CONCURRENCY,
    min_delay_seconds: float = DEFAULT_MIN_DELAY_MS / 1000,
    font_path: Optional[str] = None,
    sink: Optional[Any] = None,
    debug: bool = False
) -> SheetResult:
    """
    Lays out, fetches and draws a proxy sheet for card_ids, in that order.

    Per-card failures end up in SheetResult.errors and leave a blank slot or a card without overlay;
    only a missing overlay font (FontAssetError) or an unusable text box aborts the whole sheet.
    """
    print("\n--- Generating Proxy Sheet ---")
    total = len(card_ids)
    clamped_spacing_mm = clamp_spacing_mm(spacing_mm)
    if clamped_spacing_mm != spacing_mm: print(f"Warning: Card spacing {spacing_mm}mm is out of range, using {clamped_spacing_mm}mm.")
    positions = compute_card_positions(total, clamped_spacing_mm)
    print(f"  Cards: {total}, Pages: {count_pages(total)}, Spacing: {clamped_spacing_mm}mm, Overlay effects: {'on' if overlay_effects else 'off'}")

    if sink is None: sink = PdfSink()
    overlay_font: Optional[OverlayFont] = None
    if overlay_effects:
        overlay_font = load_overlay_font(font_path, debug)
        if not (fetch_card_text and sample_bg_color):
            print("Warning: Overlay requested without a text fetcher and colour sampler; cards are drawn as-is.")

    progress = BatchProgress(total, on_progress)
    tasks = [make_prepare_task(card_id, fetch_image, progress, overlay_effects, fetch_card_text, sample_bg_color, debug) for card_id in card_ids]
    prepared: List[PreparedCard] = run_with_concurrency(tasks, concurrency, min_delay_seconds)

    current_page = 0
    for index, (slot, card) in enumerate(zip(positions, prepared)):
        if slot.page > current_page:
            sink.add_page(); current_page = slot.page
        if debug: print(f"DEBUG: Card {index + 1}/{total} (id {card.card_id}) on page {slot.page + 1} at ({slot.x:.1f}, {slot.y:.1f})mm")
        image_drawn = False
        if card.image is not None:
            try:
                sink.draw_image(card.image, slot.x, slot.y, CARD_WIDTH_MM, CARD_HEIGHT_MM); image_drawn = True
            except Exception as e:
                print(f"  Warning: Could not draw image for card {card.card_id}: {describe_error(e)}")
                progress.add_error(card.card_id, describe_error(e))
        if not image_drawn:
            sink.fill_rect(slot.x, slot.y, CARD_WIDTH_MM, CARD_HEIGHT_MM, BLANK_SLOT_COLOR); continue
        if overlay_font and card.effect_text is not None and card.background_color is not None:
            draw_effect_overlay(sink, overlay_font, card.effect_text, card.background_color, slot, debug)

    errors = list(progress.errors)
    document = sink.output()
    print(f"Proxy sheet complete: {total} card(s) on {sink.page_count} page(s), {len(errors)} error(s).")
    return SheetResult(document=document, errors=errors, page_count=sink.page_count)
