"""
Web utilities for YgoProxy2Pdf.
"""

import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Any, Callable, Dict, Hashable

import requests

from card_processing import EffectText
from config import (CARD_API_BASE, CARD_IMAGE_URL_TEMPLATES, DEFAULT_LANGUAGE, MAX_CACHE_SIZE, TEXT_REQUEST_TIMEOUT,
                    IMAGE_REQUEST_TIMEOUT)
from image_handler import decode_image

class FetchError(Exception):
    """A card image or card text could not be retrieved."""

def get_card_image_url(card_id: int, lang: str = DEFAULT_LANGUAGE) -> str:
    if lang not in CARD_IMAGE_URL_TEMPLATES:
        raise ValueError(f"Unsupported card language: '{lang}'. Supported: {', '.join(CARD_IMAGE_URL_TEMPLATES)}")
    return CARD_IMAGE_URL_TEMPLATES[lang].format(card_id=card_id)

def fetch_card_image(card_id: int, lang: str = DEFAULT_LANGUAGE, debug: bool = False):
    """Downloads and decodes the card image for card_id. Raises FetchError on any failure."""
    url = get_card_image_url(card_id, lang)
    if debug: print(f"DEBUG: Downloading image for card {card_id} from {url}")
    try:
        r = requests.get(url, timeout=IMAGE_REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to load image for card {card_id}: {e}") from e
    if r.status_code != 200:
        raise FetchError(f"Failed to load image for card {card_id} (status {r.status_code})")
    try:
        return decode_image(r.content)
    except ValueError as e:
        raise FetchError(f"Failed to decode image for card {card_id}: {e}") from e

def fetch_card_text(card_id: int, debug: bool = False) -> EffectText:
    """Fetches the type line and effect description of card_id from the card database."""
    url = f"{CARD_API_BASE}/card/{card_id}"
    if debug: print(f"DEBUG: Fetching card text for {card_id} from {url}")
    try:
        r = requests.get(url, timeout=TEXT_REQUEST_TIMEOUT)
    except requests.exceptions.RequestException as e:
        raise FetchError(f"Failed to fetch card {card_id}: {e}") from e
    if r.status_code != 200:
        raise FetchError(f"Failed to fetch card {card_id} (status {r.status_code})")
    try:
        data = r.json()
    except ValueError as e:
        raise FetchError(f"Invalid response for card {card_id}: {e}") from e
    text = data.get("text") or {}
    types = text.get("types") or ""
    desc = text.get("desc") or f"(No effect text found for card {card_id})"
    return EffectText(types=types, desc=desc)

class BoundedCache:
    """
    Thread-safe cache that evicts the oldest entry once max_size entries are stored.
    Concurrent requests for a key that is still loading share that one fetch.
    """
    def __init__(self, max_size: int = MAX_CACHE_SIZE):
        self.max_size = max_size
        self.entries: "OrderedDict[Hashable, Any]" = OrderedDict()
        self.in_flight: Dict[Hashable, Future] = {}
        self.lock = threading.Lock()

    def get_or_fetch(self, key: Hashable, fetch: Callable[[], Any]) -> Any:
        with self.lock:
            if key in self.entries: return self.entries[key]
            pending = self.in_flight.get(key)
            is_owner = pending is None
            if is_owner: pending = self.in_flight[key] = Future()
        if not is_owner: return pending.result()

        # Fetch outside the lock so other keys can load in parallel; failures are not cached
        try:
            value = fetch()
        except Exception as e:
            with self.lock: del self.in_flight[key]
            pending.set_exception(e); raise
        with self.lock:
            del self.in_flight[key]
            if len(self.entries) >= self.max_size: self.entries.popitem(last=False)
            self.entries[key] = value
        pending.set_result(value)
        return value

    def __len__(self) -> int:
        return len(self.entries)

    def clear(self):
        with self.lock: self.entries.clear()

_image_cache = BoundedCache()
_text_cache = BoundedCache()

def cached_fetch_card_image(card_id: int, lang: str = DEFAULT_LANGUAGE, debug: bool = False):
    return _image_cache.get_or_fetch((lang, card_id), lambda: fetch_card_image(card_id, lang, debug))

def cached_fetch_card_text(card_id: int, debug: bool = False) -> EffectText:
    return _text_cache.get_or_fetch(card_id, lambda: fetch_card_text(card_id, debug))

def clear_caches():
    _image_cache.clear(); _text_cache.clear()

def fetch_id_changelog(url: str, debug: bool = False) -> Dict[str, int]:
    """Downloads the old-id -> new-id table. Any failure yields an empty table."""
    if debug: print(f"DEBUG: Fetching ID changelog from {url}")
    try:
        r = requests.get(url, timeout=TEXT_REQUEST_TIMEOUT)
        if r.status_code != 200:
            print(f"Warning: Received status {r.status_code} for ID changelog {url}. Card ids are used as-is.")
            return {}
        data = r.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        print(f"Warning: Could not fetch ID changelog {url}: {e}. Card ids are used as-is.")
        return {}
    try:
        return {str(k): int(v) for k, v in data.items()}
    except (AttributeError, TypeError, ValueError):
        print(f"Warning: ID changelog {url} is not an object of card ids. Card ids are used as-is.")
        return {}
