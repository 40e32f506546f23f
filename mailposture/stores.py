"""
Expiring in-memory stores for the HTTP layer

Captcha challenges and per-client rate-limit counters live in a TTLStore
owned by the Flask app. Entries are evicted once their expiry passes.
"""

import random
import secrets
import threading
import time
import uuid
from typing import Any, Callable, Dict, Optional, Tuple

CAPTCHA_ALPHABET = 'ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789'
CAPTCHA_COLORS = ['#FF6B6B', '#4ECDC4', '#45B7D1', '#96CEB4', '#FFEAA7', '#DDA0DD', '#98D8C8']


class TTLStore:
    """Key/value store where every entry carries its own expiry time"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: Any, ttl: float):
        with self._lock:
            self._entries[key] = (value, self.clock() + ttl)

    def get(self, key: str) -> Optional[Any]:
        """Value for `key`, or None if absent or expired"""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires = entry
            if self.clock() > expires:
                del self._entries[key]
                return None
            return value

    def increment(self, key: str, ttl: float) -> int:
        """
        Add one to the counter at `key` and return the new count.

        A missing or expired counter restarts at 1 with a fresh `ttl`; a live
        one keeps its original expiry.
        """
        with self._lock:
            now = self.clock()
            entry = self._entries.get(key)
            if entry is None or now > entry[1]:
                self._entries[key] = (1, now + ttl)
                return 1
            count, expires = entry
            self._entries[key] = (count + 1, expires)
            return count + 1

    def pop(self, key: str) -> Optional[Tuple[Any, float]]:
        """Remove and return (value, expiry) regardless of expiry"""
        with self._lock:
            return self._entries.pop(key, None)

    def evict_expired(self) -> int:
        now = self.clock()
        with self._lock:
            expired = [key for key, (_, expires) in self._entries.items() if expires < now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self):
        with self._lock:
            return len(self._entries)


class RateLimiter:
    """Fixed-window request counter per client"""

    def __init__(self, store: TTLStore, limit: int = 10, window: float = 60):
        self.store = store
        self.limit = limit
        self.window = window

    @classmethod
    def from_config(cls, config: dict, store: TTLStore) -> 'RateLimiter':
        rate_cfg = config.get('api', {}).get('rate_limit', {})
        return cls(store, limit=rate_cfg.get('limit', 10), window=rate_cfg.get('window', 60))

    def allow(self, client: str) -> bool:
        """Count one request for `client`; False once the window's limit is used up"""
        return self.store.increment(f"rate:{client}", self.window) <= self.limit


def generate_captcha_text(length: int = 5) -> str:
    return ''.join(secrets.choice(CAPTCHA_ALPHABET) for _ in range(length))


def generate_captcha_svg(text: str) -> str:
    color = random.choice(CAPTCHA_COLORS)
    rotation = random.uniform(-5, 5)
    noise = ''.join(
        f'<circle cx="{random.uniform(0, 120):.1f}" cy="{random.uniform(0, 40):.1f}" r="1" '
        f'fill="{color}" opacity="0.3"/>'
        for _ in range(20)
    )
    return (
        '<svg width="120" height="40" xmlns="http://www.w3.org/2000/svg">'
        '<rect width="120" height="40" fill="#f8f9fa" stroke="#dee2e6" stroke-width="1"/>'
        '<text x="60" y="25" font-family="Arial, sans-serif" font-size="18" font-weight="bold" '
        f'text-anchor="middle" fill="{color}" transform="rotate({rotation:.1f} 60 20)">{text}</text>'
        f'{noise}</svg>'
    )


class CaptchaService:
    """Issues single-use text captchas keyed by a random probe id"""

    def __init__(self, store: TTLStore, ttl: float = 300, length: int = 5):
        self.store = store
        self.ttl = ttl
        self.length = length

    @classmethod
    def from_config(cls, config: dict, store: TTLStore) -> 'CaptchaService':
        captcha_cfg = config.get('api', {}).get('captcha', {})
        return cls(store, ttl=captcha_cfg.get('ttl', 300), length=captcha_cfg.get('length', 5))

    def create(self) -> Dict[str, str]:
        text = generate_captcha_text(self.length)
        probe = str(uuid.uuid4())
        self.store.set(f"captcha:{probe}", text.lower(), self.ttl)
        self.store.evict_expired()
        return {'data': generate_captcha_svg(text), 'probe': probe}

    def verify(self, captcha_text: Optional[str], probe: Optional[str]) -> Tuple[bool, Optional[str]]:
        """Check an answer; the challenge is consumed whatever the outcome"""
        if not captcha_text or not probe:
            return False, 'Missing captcha data'

        entry = self.store.pop(f"captcha:{probe}")
        if entry is None:
            return False, 'Invalid or expired captcha'

        expected, expires = entry
        if self.store.clock() > expires:
            return False, 'Captcha expired'

        if expected != captcha_text.strip().lower():
            return False, 'Incorrect captcha'
        return True, None
