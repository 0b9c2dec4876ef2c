"""
Parsing utilities for YgoProxy2Pdf.
"""

import json
import os
import re
from typing import Dict, List, NamedTuple, Optional, Sequence

from config import YDK_EXTENSION, YDK_MAX_LINES, SECTION_MAIN, SECTION_EXTRA, SECTION_SIDE

# Only canonical integers ("89631139", not "089631139", "-0" or "8.9e7") count as card ids
CARD_ID_RE = re.compile(r"^(?:0|-?[1-9][0-9]*)$")
# Largest id that survives a round trip through a JSON number
MAX_CARD_ID = 2 ** 53 - 1

class SectionDeck(NamedTuple):
    main: List[int]
    extra: List[int]
    side: List[int]

def parse_ydk(text: str, filename: Optional[str] = None) -> SectionDeck:
    """
    Parses YDK deck text into its main / extra / side sections.
    Lines before the first section marker and lines that are not card ids are ignored.
    """
    if filename and not filename.lower().endswith(YDK_EXTENSION):
        raise ValueError(f"Deck file '{filename}' must have a {YDK_EXTENSION} extension.")
    lines = re.split(r"\r?\n", text)
    if len(lines) > YDK_MAX_LINES:
        raise ValueError(f"YDK content must not exceed {YDK_MAX_LINES} lines (got {len(lines)}).")

    deck = SectionDeck(main=[], extra=[], side=[])
    sections = {SECTION_MAIN: deck.main, SECTION_EXTRA: deck.extra, SECTION_SIDE: deck.side}
    current: Optional[List[int]] = None
    for line in lines:
        trimmed = line.strip()
        if not trimmed: continue
        if trimmed in sections:
            current = sections[trimmed]; continue
        if current is None: continue
        if CARD_ID_RE.match(trimmed) and abs(int(trimmed)) <= MAX_CARD_ID: current.append(int(trimmed))
    return deck

def section_deck_to_card_ids(deck: SectionDeck) -> List[int]:
    """Main, extra and side deck ids in file order, duplicates kept."""
    return [*deck.main, *deck.extra, *deck.side]

def normalize_card_ids(card_ids: Sequence[int], id_changelog: Dict[str, int]) -> List[int]:
    """Replaces retired card ids with their current ones."""
    return [id_changelog.get(str(card_id), card_id) for card_id in card_ids]

def load_id_changelog(json_path: str, debug: bool = False) -> Dict[str, int]:
    """
    Load the old-id -> new-id table from a JSON object file.
    A missing or unreadable file yields an empty table so ids pass through unchanged.
    """
    if not os.path.exists(json_path):
        print(f"Warning: ID changelog '{json_path}' not found. Card ids are used as-is.")
        return {}
    try:
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        changelog = {str(k): int(v) for k, v in data.items()}
    except (json.JSONDecodeError, IOError, AttributeError, TypeError, ValueError) as e:
        print(f"Warning: Failed to load ID changelog from {json_path}: {e}")
        return {}
    if debug: print(f"DEBUG: Loaded {len(changelog)} id changes from {json_path}")
    return changelog

def parse_dimension_to_mm(dim_str: str) -> float:
    """Parses '3', '3mm', '0.5cm' or '0.1in' into millimetres; bare numbers are millimetres."""
    dim_str = dim_str.lower().strip(); val_str = ""; unit_str = ""
    for char in dim_str:
        if char.isdigit() or char == '.': val_str += char
        else: unit_str += char
    unit_str = unit_str.strip()
    if not val_str: raise ValueError(f"No numeric value in dimension: '{dim_str}'")
    try: value = float(val_str)
    except ValueError: raise ValueError(f"Invalid number in dimension: '{dim_str}'")
    if unit_str in ("", "mm"): return value
    elif unit_str == "cm": return value * 10
    elif unit_str == "in" or unit_str == "\"": return value * 25.4
    else: raise ValueError(f"Unknown unit '{unit_str}' in '{dim_str}'. Use mm, cm, in.")
