"""
Configuration constants for YgoProxy2Pdf.
"""

from typing import Dict, Set, Tuple
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm

# --- Page and card geometry (millimetres) ---
CARD_WIDTH_MM = 59
CARD_HEIGHT_MM = 86
PAGE_WIDTH_MM = 210
PAGE_HEIGHT_MM = 297
PAGE_SIZE_PT: Tuple[float, float] = A4
CARDS_PER_ROW = 3
CARDS_PER_COLUMN = 3
CARDS_PER_PAGE = CARDS_PER_ROW * CARDS_PER_COLUMN
DEFAULT_SPACING_MM = 0
MIN_PAGE_MARGIN_MM = 5
MM_TO_PT = mm

# --- Effect text box ratios, relative to the card image ---
TEXTBOX_X_RATIO = 50 / 648
TEXTBOX_WIDTH_RATIO = 548 / 648
TEXTBOX_Y_RATIO = (712 + 2) / 948
TEXTBOX_HEIGHT_RATIO = (888 - 712) / 948
TEXTBOX_Y_RATIO_MONSTER = (738 + 1) / 948
TEXTBOX_HEIGHT_RATIO_MONSTER = (857 - 738) / 948

# Upper (pendulum scale) box of a pendulum card
PENDULUM_TEXTBOX_X_RATIO = 105 / 680
PENDULUM_TEXTBOX_WIDTH_RATIO = (573 - 105) / 680
PENDULUM_TEXTBOX_Y_RATIO = (622 + 2) / 986
PENDULUM_TEXTBOX_HEIGHT_RATIO = (727 - 622) / 986

# Lower (monster effect) box of a pendulum card
PENDULUM_MONSTER_TEXTBOX_X_RATIO = 51 / 680
PENDULUM_MONSTER_TEXTBOX_WIDTH_RATIO = (626 - 51) / 680
PENDULUM_MONSTER_TEXTBOX_Y_RATIO = (764 + 3) / 986
PENDULUM_MONSTER_TEXTBOX_HEIGHT_RATIO = (890 - 764) / 986

# --- Background sampling ---
NEAR_BLACK_MAX = 40
DEFAULT_BG_COLOR: Tuple[int, int, int] = (240, 230, 220)

# --- Overlay text ---
MM_PER_POINT = 25.4 / 72
DEFAULT_FONT_SIZE = 8.0
MIN_FONT_SIZE = 4.0
FONT_SIZE_STEP = 0.25
TEXT_HORIZONTAL_PADDING_MM = 1
# Baseline offset of the first line, as a fraction of the font size
ASCENT_RATIO = 0.8
DEFAULT_CID_FONT_NAME = "STSong-Light"

LIST_BULLETS: Set[str] = {"●", "•", "①", "②", "③", "④", "⑤", "⑥", "⑦", "⑧", "⑨", "⑩"}
PUNCTUATION: Set[str] = {"，", "。", "．", "、", "！", "？", "：", "；", ",", ".", "!", "?", ":", ";"}

# Substrings of the card type line
MONSTER_TYPE_MARKER = "怪兽"
PENDULUM_TYPE_MARKER = "灵摆"
PENDULUM_EFFECT_LABEL = "【灵摆效果】"
MONSTER_EFFECT_LABEL = "【怪兽效果】"

# --- Fetching ---
DEFAULT_CONCURRENCY = 4
DEFAULT_MIN_DELAY_MS = 100
MAX_CACHE_SIZE = 100
TEXT_REQUEST_TIMEOUT = 15
IMAGE_REQUEST_TIMEOUT = 30

CARD_API_BASE = "https://ygocdb.com/api/v0"
CARD_IMAGE_URL_TEMPLATES: Dict[str, str] = {
    "zh": "https://cdn.233.momobako.com/ygoimg/ygopro/{card_id}.webp",
    "sc": "https://cdn.233.momobako.com/ygoimg/sc/{card_id}.webp",
    "jp": "https://cdn.233.momobako.com/ygoimg/jp/{card_id}.webp",
    "en": "https://cdn.233.momobako.com/ygoimg/en/{card_id}.webp",
}
DEFAULT_LANGUAGE = "zh"
# Effect text comes from a Simplified Chinese database, so only these image sets match it
OVERLAY_LANGUAGES: Set[str] = {"zh"}

# --- YDK deck files ---
YDK_EXTENSION = ".ydk"
YDK_MAX_LINES = 120
SECTION_MAIN = "#main"
SECTION_EXTRA = "#extra"
SECTION_SIDE = "!side"
