"""
Main logic for YgoProxy2Pdf.
"""

import argparse
import os
import sys
from typing import List, Optional

from config import (CARD_IMAGE_URL_TEMPLATES, DEFAULT_LANGUAGE, OVERLAY_LANGUAGES, DEFAULT_CONCURRENCY, DEFAULT_MIN_DELAY_MS,
                    DEFAULT_SPACING_MM)
from image_handler import sample_effect_background_color
from layout_utils import compute_max_spacing_mm
from output_utils import build_output_filename, write_pdf_file, print_error_summary, write_failed_cards_file
from parsing_utils import parse_ydk, section_deck_to_card_ids, normalize_card_ids, load_id_changelog, parse_dimension_to_mm
from pdf_generator import FontAssetError, generate_sheet
from web_utils import cached_fetch_card_image, cached_fetch_card_text, fetch_id_changelog

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lay out Yu-Gi-Oh! card images from a YDK deck list on printable A4 PDF pages.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter #type: ignore
    )
    # --- Input ---
    input_group = parser.add_argument_group('Input Options')
    input_group.add_argument("ydk_file", type=str, help="Path to the .ydk deck list.")
    input_group.add_argument("--id-changelog", type=str, default=None, help="JSON object (file path or http(s) URL) mapping retired card ids to current ones.")

    # --- Card Source ---
    source_group = parser.add_argument_group('Card Source Options')
    source_group.add_argument("--lang", type=str, default=DEFAULT_LANGUAGE, choices=list(CARD_IMAGE_URL_TEMPLATES), help="Card image language.")
    source_group.add_argument("--no-overlay", action="store_true", help="Do not overlay effect text on the card images. Overlay is only available for 'zh' images.")
    source_group.add_argument("--font-path", type=str, default=None, help="TrueType font for overlay text (e.g. simkai.ttf). Defaults to the built-in STSong-Light CJK font.")

    # --- Page & Layout ---
    layout_group = parser.add_argument_group('Page and Layout Options')
    layout_group.add_argument("--card-spacing", type=str, default=f"{DEFAULT_SPACING_MM}mm", help=f"Gap between cards (e.g. '2mm', '0.1in'). Clamped to 0-{compute_max_spacing_mm()}mm.")

    # --- Network ---
    network_group = parser.add_argument_group('Network Options')
    network_group.add_argument("--concurrency", type=int, default=DEFAULT_CONCURRENCY, help="Number of cards fetched in parallel.")
    network_group.add_argument("--min-delay-ms", type=int, default=DEFAULT_MIN_DELAY_MS, help="Minimum time between the start of two card fetches.")

    # --- Output & General ---
    general_group = parser.add_argument_group('General Options')
    general_group.add_argument("--output-file", type=str, default=None, help="Output PDF path. Defaults to <deck>-<lang>-<timestamp>.pdf next to the deck list.")
    general_group.add_argument("--debug", action="store_true", help="Enable detailed debug messages.")
    return parser

def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.concurrency < 1: parser.error("--concurrency must be at least 1.")
    if args.min_delay_ms < 0: parser.error("--min-delay-ms must not be negative.")
    try:
        spacing_mm = parse_dimension_to_mm(args.card_spacing)
    except ValueError as e:
        parser.error(f"Invalid --card-spacing: {e}")

    # --- Read deck ---
    if not os.path.isfile(args.ydk_file):
        print(f"Error: Deck list file '{args.ydk_file}' not found."); return 1
    try:
        with open(args.ydk_file, 'r', encoding='utf-8') as f: ydk_text = f.read()
        deck = parse_ydk(ydk_text, os.path.basename(args.ydk_file))
    except (IOError, UnicodeDecodeError, ValueError) as e:
        print(f"Error: {e}"); return 1
    card_ids = section_deck_to_card_ids(deck)
    print("--- Deck List ---")
    print(f"Main: {len(deck.main)}, Extra: {len(deck.extra)}, Side: {len(deck.side)}")
    if not card_ids:
        print("Error: No card ids found in the deck list."); return 1
    if args.debug: print(f"DEBUG: First card ids: {card_ids[:5]}")

    if args.id_changelog:
        if args.id_changelog.startswith(("http://", "https://")): changelog = fetch_id_changelog(args.id_changelog, args.debug)
        else: changelog = load_id_changelog(args.id_changelog, args.debug)
        remapped = normalize_card_ids(card_ids, changelog)
        changed = sum(1 for old, new in zip(card_ids, remapped) if old != new)
        if changed: print(f"Remapped {changed} retired card id(s).")
        card_ids = remapped

    overlay_effects = not args.no_overlay and args.lang in OVERLAY_LANGUAGES
    if not args.no_overlay and not overlay_effects:
        print(f"Warning: Effect text overlay is not available for '{args.lang}' images; printed text may be slightly blurry.")

    lang = args.lang; debug = args.debug
    def on_progress(done: int, total: int):
        percent = round(done / total * 100) if total > 0 else 0
        print(f"  Fetching... {done}/{total} ({percent}%){' with effect overlay' if overlay_effects else ''}")

    try:
        result = generate_sheet(
            card_ids,
            fetch_image=lambda card_id: cached_fetch_card_image(card_id, lang, debug),
            overlay_effects=overlay_effects,
            fetch_card_text=(lambda card_id: cached_fetch_card_text(card_id, debug)) if overlay_effects else None,
            sample_bg_color=(lambda image, monster: sample_effect_background_color(image, monster, debug)) if overlay_effects else None,
            spacing_mm=spacing_mm,
            on_progress=on_progress,
            concurrency=args.concurrency,
            min_delay_seconds=args.min_delay_ms / 1000,
            font_path=args.font_path,
            debug=debug
        )
    except (FontAssetError, ValueError) as e:
        print(f"Error: {e}"); return 1

    output_path = args.output_file or build_output_filename(args.ydk_file, lang)
    if not output_path.lower().endswith(".pdf"): output_path += ".pdf"
    if not write_pdf_file(output_path, result.document): return 1

    if result.errors:
        print(f"Warning: {len(result.errors)} problem(s) while fetching cards; affected slots are blank or lack overlay text.")
        print_error_summary(result.errors)
        write_failed_cards_file(output_path, result.errors)
    return 0

if __name__ == "__main__":
    sys.exit(main())
