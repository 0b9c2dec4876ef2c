"""
Card data and per-card preparation for YgoProxy2Pdf.
"""

import threading
from typing import Any, Callable, List, NamedTuple, Optional

from config import MONSTER_TYPE_MARKER, PENDULUM_TYPE_MARKER

class RGB(NamedTuple):
    r: int
    g: int
    b: int

class EffectText(NamedTuple):
    types: str
    desc: str

class CardError(NamedTuple):
    card_id: int
    message: str

class PreparedCard(NamedTuple):
    card_id: int
    image: Optional[Any]
    effect_text: Optional[EffectText] = None
    background_color: Optional[RGB] = None

def is_monster(types: str) -> bool:
    return MONSTER_TYPE_MARKER in types

def is_pendulum(types: str) -> bool:
    return PENDULUM_TYPE_MARKER in types

def describe_error(e: BaseException) -> str:
    return str(e) or type(e).__name__

class BatchProgress:
    """Error list and completion counter shared by all preparation tasks of one batch."""
    def __init__(self, total: int, on_progress: Optional[Callable[[int, int], None]] = None):
        self.total = total
        self.done = 0
        self.errors: List[CardError] = []
        self.on_progress = on_progress
        self.lock = threading.Lock()

    def add_error(self, card_id: int, message: str):
        with self.lock: self.errors.append(CardError(card_id, message))

    def mark_done(self):
        with self.lock:
            self.done += 1; done = self.done
        if self.on_progress: self.on_progress(done, self.total)

def make_prepare_task(
    card_id: int,
    fetch_image: Callable[[int], Any],
    progress: BatchProgress,
    overlay_effects: bool = False,
    fetch_card_text: Optional[Callable[[int], EffectText]] = None,
    sample_bg_color: Optional[Callable[[Any, bool], RGB]] = None,
    debug: bool = False
) -> Callable[[], PreparedCard]:
    """
    Builds the unit that fetches one card's image and, for overlays, its effect text and background colour.
    A failing stage is recorded against the card and only drops what depends on it.
    """
    def prepare() -> PreparedCard:
        try:
            image = fetch_image(card_id)
        except Exception as e:
            print(f"  Warning: Could not fetch image for card {card_id}: {describe_error(e)}")
            progress.add_error(card_id, describe_error(e)); progress.mark_done()
            return PreparedCard(card_id, None)

        effect_text: Optional[EffectText] = None; background_color: Optional[RGB] = None
        if overlay_effects and fetch_card_text and sample_bg_color:
            try:
                effect_text = fetch_card_text(card_id)
            except Exception as e:
                print(f"  Warning: Could not fetch effect text for card {card_id}: {describe_error(e)}")
                progress.add_error(card_id, describe_error(e))
            if effect_text is not None:
                try:
                    background_color = sample_bg_color(image, is_monster(effect_text.types))
                except Exception as e:
                    print(f"  Warning: Could not sample background colour for card {card_id}: {describe_error(e)}")
                    progress.add_error(card_id, describe_error(e)); effect_text = None
            if debug and effect_text is not None:
                print(f"DEBUG: Card {card_id} types '{effect_text.types}', background {tuple(background_color)}")

        progress.mark_done()
        return PreparedCard(card_id, image, effect_text, background_color)
    return prepare
