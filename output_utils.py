"""
Output utilities for YgoProxy2Pdf.
"""

import os
import re
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from card_processing import CardError

YDK_SUFFIX_RE = re.compile(r"\.ydk$", re.IGNORECASE)

def build_output_filename(ydk_path: Optional[str], lang: str, now: Optional[datetime] = None) -> str:
    """'<deck stem>-<lang>-<YYYY-MM-DD-HHMMSS>.pdf', next to the deck file; 'proxy' stands in for a missing deck name."""
    now = now or datetime.now()
    stem = YDK_SUFFIX_RE.sub("", os.path.basename(ydk_path)) if ydk_path else "proxy"
    filename = f"{stem}-{lang}-{now.strftime('%Y-%m-%d-%H%M%S')}.pdf"
    deck_dir = os.path.dirname(ydk_path) if ydk_path else ""
    return os.path.join(deck_dir, filename) if deck_dir else filename

def write_pdf_file(output_path: str, pdf_bytes: bytes) -> bool:
    output_dir = os.path.dirname(output_path)
    try:
        if output_dir and not os.path.exists(output_dir): os.makedirs(output_dir, exist_ok=True)
        with open(output_path, 'wb') as f: f.write(pdf_bytes)
        print(f"PDF saved to: {output_path} ({len(pdf_bytes)} bytes)")
        return True
    except IOError as e:
        print(f"Error writing PDF file '{output_path}': {e}"); return False

def group_errors_by_card(errors: List[CardError]) -> Dict[int, List[str]]:
    grouped: Dict[int, List[str]] = defaultdict(list)
    for error in errors: grouped[error.card_id].append(error.message)
    return grouped

def print_error_summary(errors: List[CardError]):
    """Prints which cards failed and why."""
    if not errors:
        return

    grouped = group_errors_by_card(errors)
    print(f"\n--- {len(grouped)} Card(s) With Errors ---")
    for card_id, messages in grouped.items():
        print(f"{card_id}:")
        for message in messages:
            print(f"  - {message}")
    print("-----------------------------")

def write_failed_cards_file(output_pdf_path: str, errors: List[CardError]) -> Optional[str]:
    if not errors: return None
    base, _ = os.path.splitext(output_pdf_path)
    failed_filepath = f"{base}_failed.txt"
    try:
        with open(failed_filepath, 'w', encoding='utf-8') as f:
            for card_id, messages in group_errors_by_card(errors).items(): f.write(f"{card_id}\t{'; '.join(messages)}\n")
        print(f"List of failed cards saved to: {failed_filepath}")
        return failed_filepath
    except IOError as e:
        print(f"Error writing failed cards file '{failed_filepath}': {e}"); return None
