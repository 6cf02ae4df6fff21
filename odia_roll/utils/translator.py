"""
Odia to English translation with a memoizing, rate-limited cache.

Backends:
- "google": public Google Translate endpoint via requests
- "ai": any OpenAI-compatible chat completion API (openai SDK)
- "none": never calls out; every lookup degrades to transliteration

The cache is an explicit object (no module-level state). The clock and the
sleep function are injectable so tests can simulate time.
"""

from __future__ import annotations

import json
import re
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Dict, Iterable, Optional

import requests

try:
    from openai import OpenAI
    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False

from ..config import Config, get_config
from ..exceptions import ConfigurationError, DataPersistenceError, TranslationError
from ..logger import get_logger
from ..models.processing_stats import TranslationUsage
from .script import is_odia, capitalize_words


logger = get_logger(__name__)


_NORMALIZE_STRIP_RE = re.compile(r"[^\w\s\u0B00-\u0B7F-]")
_WS_RE = re.compile(r"\s+")

# Static per-glyph transliteration used when translation fails
ODIA_ROMAN_MAP = {
    "କ": "ka", "ଖ": "kha", "ଗ": "ga", "ଘ": "gha", "ଙ": "nga",
    "ଚ": "cha", "ଛ": "chha", "ଜ": "ja", "ଝ": "jha", "ଞ": "nya",
    "ଟ": "ta", "ଠ": "tha", "ଡ": "da", "ଢ": "dha", "ଣ": "na",
    "ତ": "ta", "ଥ": "tha", "ଦ": "da", "ଧ": "dha", "ନ": "na",
    "ପ": "pa", "ଫ": "pha", "ବ": "ba", "ଭ": "bha", "ମ": "ma",
    "ଯ": "ya", "ୟ": "ya", "ର": "ra", "ଲ": "la", "ଳ": "la",
    "ଶ": "sha", "ଷ": "sha", "ସ": "sa", "ହ": "ha", "ୱ": "wa",
    "ା": "a", "ି": "i", "ୀ": "i", "ୁ": "u", "ୂ": "u", "ୃ": "ru",
    "େ": "e", "ୈ": "ai", "ୋ": "o", "ୌ": "au",
    "ଂ": "m", "ଃ": "h", "ଁ": "n", "୍": "", "଼": "",
    "ଅ": "a", "ଆ": "a", "ଇ": "i", "ଈ": "i", "ଉ": "u", "ଊ": "u",
    "ଋ": "ru", "ଏ": "e", "ଐ": "ai", "ଓ": "o", "ଔ": "au",
    "\u200c": "", "\u200d": "",
}


def normalize_text(text: str) -> str:
    """Trim, collapse whitespace and drop punctuation outside the Odia block."""
    text = _WS_RE.sub(" ", (text or "").strip())
    return _NORMALIZE_STRIP_RE.sub("", text)


_CONSONANTS = frozenset("କଖଗଘଙଚଛଜଝଞଟଠଡଢଣତଥଦଧନପଫବଭମଯୟରଲଳଶଷସହୱ")
# Vowel signs and the virama replace a consonant's inherent "a"
_DEPENDENT_SIGNS = frozenset("ାିୀୁୂୃେୈୋୌ୍")
_NUKTA = "଼"


def romanize(text: str) -> str:
    """Deterministic Latin approximation of Odia text, title-cased per word."""
    parts = []
    after_consonant = False
    for ch in text:
        if ch == _NUKTA:
            continue
        if ch in _DEPENDENT_SIGNS and after_consonant and parts[-1].endswith("a"):
            parts[-1] = parts[-1][:-1]
        parts.append(ODIA_ROMAN_MAP.get(ch, ch))
        after_consonant = ch in _CONSONANTS
    return capitalize_words("".join(parts))


class TranslationBackend(ABC):
    """One external translation service."""

    name: str = "base"

    @abstractmethod
    def translate(self, text: str, source: str, target: str) -> str:
        """
        Translate text.

        Raises:
            TranslationError: on any failure (network, quota, empty reply)
        """


class NullTranslateBackend(TranslationBackend):
    """Translation disabled: every call fails so the cache transliterates."""

    name = "none"

    def translate(self, text: str, source: str, target: str) -> str:
        raise TranslationError("Translation disabled", engine=self.name, text=text)


class GoogleTranslateBackend(TranslationBackend):
    """Unauthenticated Google Translate web endpoint."""

    name = "google"

    def __init__(
        self,
        url: str = "https://translate.googleapis.com/translate_a/single",
        timeout_sec: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout_sec = timeout_sec
        self.session = session or requests.Session()

    def translate(self, text: str, source: str, target: str) -> str:
        params = {"client": "gtx", "sl": source, "tl": target, "dt": "t", "q": text}
        try:
            resp = self.session.get(self.url, params=params, timeout=self.timeout_sec)
            resp.raise_for_status()
            data = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise TranslationError(f"Google translate request failed: {e}", engine=self.name, text=text) from e

        try:
            translated = "".join(segment[0] for segment in data[0] if segment and segment[0])
        except (TypeError, IndexError, KeyError) as e:
            raise TranslationError("Unexpected Google translate response", engine=self.name, text=text) from e

        translated = translated.strip()
        if not translated:
            raise TranslationError("Empty translation", engine=self.name, text=text)
        return translated


class AITranslateBackend(TranslationBackend):
    """Translation through an OpenAI-compatible chat completion API."""

    name = "ai"

    PROMPT = (
        "Translate the following Odia text to English. If it is a person's name "
        "or a place name, transliterate it into Latin letters instead. "
        "Reply with the result only, no quotes or explanations.\n\n{text}"
    )

    def __init__(self, api_key: str, model: str, base_url: str = "", timeout_sec: float = 60.0):
        if not OPENAI_AVAILABLE:
            raise ConfigurationError("openai package is required for the ai translation engine")
        if not api_key:
            raise ConfigurationError("AI_API_KEY is required for the ai translation engine", config_key="AI_API_KEY")
        self.model = model
        self.client = OpenAI(
            api_key=api_key,
            base_url=base_url if base_url else None,
            timeout=timeout_sec,
        )

    def translate(self, text: str, source: str, target: str) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self.PROMPT.format(text=text)}],
                temperature=0,
                max_tokens=200,
            )
        except Exception as e:
            # openai raises a wide hierarchy (APIError, httpx errors); all are non-fatal here
            raise TranslationError(f"AI translation failed: {e}", engine=self.name, text=text) from e

        content = (response.choices[0].message.content or "").strip().strip('"').strip()
        if not content:
            raise TranslationError("Empty AI translation", engine=self.name, text=text)
        return content.splitlines()[0].strip()


def create_backend(config: Optional[Config] = None) -> TranslationBackend:
    """Build the translation backend named by TRANSLATION_ENGINE."""
    config = config or get_config()
    engine = config.translation.engine

    if engine == "google":
        return GoogleTranslateBackend(
            url=config.translation.google_url,
            timeout_sec=config.translation.timeout_sec,
        )
    if engine == "ai":
        if not config.ai.is_configured:
            raise ConfigurationError("AI_API_KEY is required for the ai translation engine", config_key="AI_API_KEY")
        return AITranslateBackend(
            api_key=config.ai.api_key,
            model=config.ai.model,
            base_url=config.ai.get_normalized_base_url(),
            timeout_sec=config.ai.timeout_sec,
        )
    if engine in ("none", "off", ""):
        return NullTranslateBackend()

    raise ConfigurationError(f"Unknown translation engine: {engine}", config_key="TRANSLATION_ENGINE")


class TranslationCache:
    """
    Memoizing Odia to English translator.

    Lookup order:
    1. empty text -> ""
    2. cached normalized text -> cached value
    3. no Odia codepoints, or normalized length < 3 -> normalized text
    4. rate gate, then exactly one backend call; success is cached

    A failed call degrades to transliteration and is not cached, so a later
    successful call can replace it.
    """

    def __init__(
        self,
        backend: TranslationBackend,
        min_interval_sec: float = 0.3,
        source: str = "or",
        target: str = "en",
        max_concurrent: int = 5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        usage: Optional[TranslationUsage] = None,
    ):
        self.backend = backend
        self.min_interval_sec = min_interval_sec
        self.source = source
        self.target = target
        self.max_concurrent = max(1, max_concurrent)
        self._clock = clock
        self._sleep = sleep
        self.usage = usage or TranslationUsage(engine=backend.name)

        self._cache: Dict[str, str] = {}
        self._gate = threading.Lock()
        self._last_request: Optional[float] = None

    @classmethod
    def from_config(
        cls,
        config: Optional[Config] = None,
        backend: Optional[TranslationBackend] = None,
    ) -> "TranslationCache":
        config = config or get_config()
        return cls(
            backend=backend or create_backend(config),
            min_interval_sec=config.translation.min_interval_sec,
            source=config.translation.source_language,
            target=config.translation.target_language,
            max_concurrent=config.translation.max_concurrent,
        )

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, text: str) -> bool:
        return normalize_text(text) in self._cache

    def translate_to_english(self, text: str) -> str:
        if not text or not text.strip():
            return ""

        key = normalize_text(text)
        cached = self._cache.get(key)
        if cached is not None:
            self.usage.add("hits")
            return cached

        if not is_odia(key) or len(key) < 3:
            self.usage.add("skipped")
            return key

        self.usage.add("misses")
        with self._gate:
            # Another thread may have translated the same text while we waited
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            self._wait_for_gate()
            try:
                self.usage.add("external_calls")
                logger.debug(f"Translating: {key[:40]}")
                result = self.backend.translate(key, self.source, self.target)
            except TranslationError as e:
                self.usage.add("failures")
                logger.warning(f"Translation failed, using transliteration: {e.message}")
                return romanize(key)
            finally:
                self._last_request = self._clock()

            self._cache[key] = result
            return result

    def _wait_for_gate(self) -> None:
        if self._last_request is None or self.min_interval_sec <= 0:
            return
        wait = self._last_request + self.min_interval_sec - self._clock()
        if wait > 0:
            self._sleep(wait)

    def translate_batch(self, texts: Iterable[str]) -> Dict[str, str]:
        """
        Translate many texts, at most max_concurrent in flight.

        Every backend call still passes the single rate gate.

        Returns:
            Mapping of each distinct input text to its translation
        """
        unique = list(dict.fromkeys(t for t in texts if t))
        if not unique:
            return {}
        if len(unique) == 1 or self.max_concurrent == 1:
            return {t: self.translate_to_english(t) for t in unique}

        with ThreadPoolExecutor(max_workers=min(self.max_concurrent, len(unique))) as executor:
            results = list(executor.map(self.translate_to_english, unique))
        return dict(zip(unique, results))

    @staticmethod
    def romanize(text: str) -> str:
        return romanize(normalize_text(text))

    def clear(self) -> None:
        self._cache.clear()
        logger.info("Translation cache cleared")

    def save(self, path: Path) -> int:
        """Write the cache as a JSON list of [source, translation] pairs."""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(list(self._cache.items()), f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise DataPersistenceError(f"Could not save translation cache: {e}", file_path=str(path), operation="save") from e
        logger.info(f"Translation cache saved: {len(self._cache)} entries")
        return len(self._cache)

    def load(self, path: Path) -> int:
        """
        Replace the cache with the pairs stored at path.

        A missing file leaves the cache empty and returns 0.
        """
        path = Path(path)
        if not path.exists():
            logger.info(f"No translation cache at {path}, starting fresh")
            self._cache = {}
            return 0

        try:
            with open(path, "r", encoding="utf-8") as f:
                pairs = json.load(f)
            self._cache = {str(k): str(v) for k, v in pairs}
        except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
            raise DataPersistenceError(f"Invalid translation cache file: {e}", file_path=str(path), operation="load") from e

        logger.info(f"Translation cache loaded: {len(self._cache)} entries")
        return len(self._cache)
