"""
Effect text reflow for YgoProxy2Pdf.

Wraps a card description into a fixed box: the text is normalized once, then wrapped at decreasing
font sizes until the line count fits the box height. Two typographic rules are enforced on every
candidate wrap, each by feeding the affected text back through the wrapper rather than patching lines:

  * a line never ends with a list marker (circled digit or bullet), optionally followed by a colon;
  * a line other than the first never starts with plain punctuation.

Wrapped lines remember whether they end a paragraph, so re-wrapping a suffix re-joins soft breaks
without a separator and only paragraph breaks with a newline.
"""

import re
from typing import List, NamedTuple, Optional, Protocol, Sequence, Tuple

from config import (LIST_BULLETS, PUNCTUATION, MM_PER_POINT, DEFAULT_FONT_SIZE, MIN_FONT_SIZE, FONT_SIZE_STEP,
                    TEXT_HORIZONTAL_PADDING_MM, PENDULUM_EFFECT_LABEL, MONSTER_EFFECT_LABEL)

FULLWIDTH_OFFSET = 0xFEE0
KATAKANA_MIDDLE_DOT = "・"
INTERPUNCT = "·"

# Editorial notes such as "（注：...)" up to the next whitespace run
NOTE_ANNOTATION_RE = re.compile(r"（注：.*?[\n\s]+")
# Paragraph break between a full stop and the next circled-number clause
BREAK_BEFORE_CIRCLED_RE = re.compile(r"(?<=。)[\n\s]+(?=[①②③④⑤⑥⑦⑧⑨⑩])")
# Paragraph break before a bullet whose clause still ends in a full stop on that line
BREAK_BEFORE_BULLET_RE = re.compile(r"[\n\s]+(?=[●•])(?=.+。)")

PENDULUM_SECTION_RE = re.compile(re.escape(PENDULUM_EFFECT_LABEL) + r"(.*?)(?=" + re.escape(MONSTER_EFFECT_LABEL) + r"|\Z)", re.S)
MONSTER_SECTION_RE = re.compile(re.escape(MONSTER_EFFECT_LABEL) + r"(.*)", re.S)

class TextMeasurer(Protocol):
    def set_font_size(self, size: float) -> None: ...
    def get_text_width(self, text: str) -> float: ...

class WrappedLine(NamedTuple):
    text: str
    paragraph_end: bool

class WrapResult(NamedTuple):
    lines: List[str]
    font_size: float

def format_card_desc(raw: str) -> str:
    """Normalizes raw effect text to the density and conventions of the overlay font."""
    desc = "".join(chr(ord(ch) + FULLWIDTH_OFFSET) if 0x20 < ord(ch) < 0x7F else ch for ch in raw)
    desc = desc.replace(KATAKANA_MIDDLE_DOT, INTERPUNCT)
    desc = desc.replace("\r\n", "\n")
    desc = NOTE_ANNOTATION_RE.sub("", desc)
    desc = BREAK_BEFORE_CIRCLED_RE.sub("", desc)
    desc = BREAK_BEFORE_BULLET_RE.sub("", desc)
    return desc

def split_pendulum_desc(desc: str) -> Tuple[str, str]:
    """
    Splits a pendulum card description into its (pendulum, monster) sections.
    Without either label the whole text is the monster section.
    """
    normalized = desc.replace("\r\n", "\n")
    pendulum_match = PENDULUM_SECTION_RE.search(normalized)
    monster_match = MONSTER_SECTION_RE.search(normalized)
    pendulum = pendulum_match.group(1).strip() if pendulum_match else ""
    monster = monster_match.group(1).strip() if monster_match else ""
    if not pendulum and not monster: return "", normalized.strip()
    return pendulum, monster

def join_wrapped_lines(lines: Sequence[WrappedLine]) -> str:
    parts: List[str] = []
    for i, line in enumerate(lines):
        parts.append(line.text)
        if line.paragraph_end and i < len(lines) - 1: parts.append("\n")
    return "".join(parts)

def split_text_to_lines(measurer: TextMeasurer, text: str, max_width: float) -> List[WrappedLine]:
    """Greedy per-character wrap of each paragraph. Punctuation that overflows stays on the current line."""
    lines: List[WrappedLine] = []
    for segment in text.split("\n"):
        if not segment.strip():
            lines.append(WrappedLine("", True)); continue
        line = ""
        for ch in segment:
            candidate = line + ch
            if line and measurer.get_text_width(candidate) > max_width:
                if ch in PUNCTUATION: lines.append(WrappedLine(candidate, False)); line = ""
                else: lines.append(WrappedLine(line, False)); line = ch
            else:
                line = candidate
        if line: lines.append(WrappedLine(line, True))
        else: lines[-1] = WrappedLine(lines[-1].text, True)
    return lines

def _find_list_tail(lines: Sequence[WrappedLine]) -> Optional[Tuple[int, int]]:
    """Returns (line index, marker start) of the first line ending in a bare or colon-suffixed marker."""
    for i, line in enumerate(lines):
        trimmed = line.text.rstrip()
        if not trimmed: continue
        last_char = trimmed[-1]
        if last_char in LIST_BULLETS: return i, len(trimmed) - 1
        if last_char in (":", "：") and len(trimmed) >= 2 and trimmed[-2] in LIST_BULLETS: return i, len(trimmed) - 2
    return None

def apply_list_tail_rule(measurer: TextMeasurer, lines: List[WrappedLine], max_width: float) -> List[WrappedLine]:
    result = list(lines)
    for _ in range(len(result) * 2):
        found = _find_list_tail(result)
        if found is None: break
        i, marker_start = found
        trimmed = result[i].text.rstrip()
        prefix = trimmed[:marker_start].rstrip(); marker = trimmed[marker_start:]
        tail_text = join_wrapped_lines([WrappedLine(marker, result[i].paragraph_end)] + result[i + 1:])
        rewrapped = result[:i]
        if prefix: rewrapped.append(WrappedLine(prefix, False))
        rewrapped.extend(split_text_to_lines(measurer, tail_text, max_width))
        result = rewrapped
    return result

def _find_leading_punctuation(lines: Sequence[WrappedLine]) -> Optional[int]:
    for i in range(1, len(lines)):
        stripped = lines[i].text.lstrip()
        if not stripped: continue
        first_char = stripped[0]
        if first_char in LIST_BULLETS: continue
        if first_char in PUNCTUATION: return i
    return None

def apply_leading_punctuation_rule(measurer: TextMeasurer, lines: List[WrappedLine], max_width: float) -> List[WrappedLine]:
    result = list(lines)
    for _ in range(len(result) * 2):
        i = _find_leading_punctuation(result)
        if i is None: break
        merged_text = join_wrapped_lines(result[i - 1:])
        result = result[:i - 1] + split_text_to_lines(measurer, merged_text, max_width)
    return result

def wrap_at_font_size(measurer: TextMeasurer, desc: str, max_width: float, font_size: float) -> List[WrappedLine]:
    measurer.set_font_size(font_size)
    lines = split_text_to_lines(measurer, desc, max_width)
    lines = apply_list_tail_rule(measurer, lines, max_width)
    return apply_leading_punctuation_rule(measurer, lines, max_width)

def layout_text_with_constraints(measurer: TextMeasurer, raw_text: str, w: float, h: float) -> WrapResult:
    """
    Finds the largest font size (stepping down from DEFAULT_FONT_SIZE) whose wrapped lines fit a w x h mm box.
    If none fits, the MIN_FONT_SIZE layout is returned and may overflow the box.
    """
    max_width = w - TEXT_HORIZONTAL_PADDING_MM
    if max_width <= 0 or h <= 0:
        raise ValueError(f"Text box {w:.2f}mm x {h:.2f}mm leaves no room for text.")
    desc = format_card_desc(raw_text)
    font_size = DEFAULT_FONT_SIZE
    while True:
        lines = wrap_at_font_size(measurer, desc, max_width, font_size)
        fits = len(lines) * font_size * MM_PER_POINT <= h
        if fits or font_size - FONT_SIZE_STEP < MIN_FONT_SIZE:
            return WrapResult([line.text for line in lines], font_size)
        font_size -= FONT_SIZE_STEP
