import io

import pytest
from PIL import Image

from config import MM_PER_POINT, PUNCTUATION

class RecordingSink:
    """Drawing sink that records every call. Non-ASCII glyphs are one em wide, ASCII half an em."""
    def __init__(self):
        self.ops = []
        self.page_count = 1
        self.font_name = "Helvetica"
        self.font_size = 8.0
        self.text_color = None

    @property
    def page(self):
        return self.page_count - 1

    def add_page(self):
        self.page_count += 1
        self.ops.append(("add_page",))

    def draw_image(self, image, x, y, w, h):
        self.ops.append(("image", self.page, x, y, w, h))

    def fill_rect(self, x, y, w, h, color):
        self.ops.append(("fill", self.page, x, y, w, h, tuple(color)))

    def set_font(self, name, size):
        self.font_name = name
        self.font_size = size

    def set_font_size(self, size):
        self.font_size = size

    def get_text_width(self, text):
        ems = sum(0.5 if ord(ch) < 0x80 else 1.0 for ch in text)
        return ems * self.font_size * MM_PER_POINT

    def set_text_color(self, color):
        self.text_color = color

    def draw_text(self, text, x, baseline_y):
        self.ops.append(("text", self.page, text, x, baseline_y))

    def output(self):
        return list(self.ops)

    def of_kind(self, kind):
        return [op for op in self.ops if op[0] == kind]

@pytest.fixture
def sink():
    return RecordingSink()

@pytest.fixture
def mm_measurer():
    """A measurer where every glyph is exactly 1mm wide at the current size."""
    m = RecordingSink()
    m.get_text_width = lambda text: float(len(text))
    return m

def make_card_image(color=(200, 180, 150), size=(648, 948)):
    return Image.new("RGB", size, color)

def image_to_png_bytes(image):
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()

def assert_reflow_rules(lines):
    bullets = "●•①②③④⑤⑥⑦⑧⑨⑩"
    for i, line in enumerate(lines):
        trimmed = line.rstrip()
        if trimmed:
            assert trimmed[-1] not in bullets, f"line {i} ends with a list marker: {line!r}"
            assert not (trimmed[-1] in ":：" and len(trimmed) >= 2 and trimmed[-2] in bullets), f"line {i} ends with marker and colon: {line!r}"
        if i == 0:
            continue
        stripped = line.lstrip()
        if stripped and stripped[0] not in bullets:
            assert stripped[0] not in PUNCTUATION, f"line {i} starts with punctuation: {line!r}"

def assert_lines_fit(measurer, lines, max_width):
    # One overflowing punctuation mark may hang past the edge
    for line in lines:
        body = line[:-1] if line and line[-1] in PUNCTUATION else line
        assert measurer.get_text_width(body) <= max_width + 0.1, f"line too wide: {line!r}"
