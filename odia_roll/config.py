"""
Centralized configuration management.

Configuration is loaded from:
1. Environment variables
2. .env file (if present)
3. Default values

Usage:
    from odia_roll.config import get_config
    config = get_config()
    print(config.translation.engine)  # "google" unless TRANSLATION_ENGINE is set
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


def _load_dotenv(dotenv_path: Optional[Path] = None) -> None:
    """
    Minimal .env loader (no external dependency).

    Supports KEY=VALUE, ignores blank lines and comments (#).
    Does not override existing environment variables.
    """
    if dotenv_path is None:
        dotenv_path = Path(__file__).resolve().parent.parent / ".env"

    if not dotenv_path.exists() or not dotenv_path.is_file():
        return

    for raw_line in dotenv_path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if not key:
            continue
        # Only set if not already in environment
        if os.getenv(key) in (None, ""):
            os.environ[key] = value


# Load .env on module import
_load_dotenv()


def _get_bool_env(key: str, default: bool = False) -> bool:
    """Get boolean from environment variable."""
    value = os.getenv(key, "").strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    return default


def _get_int_env(key: str, default: int) -> int:
    """Get integer from environment variable."""
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float_env(key: str, default: Optional[float] = None) -> Optional[float]:
    """Get float from environment variable."""
    value = os.getenv(key, "").strip()
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass
class OCRConfig:
    """OCR (Tesseract) configuration for the two recognition workers."""
    page_languages: str = field(default_factory=lambda: os.getenv("OCR_PAGE_LANGUAGES", "eng+ori"))
    block_languages: str = field(default_factory=lambda: os.getenv("OCR_BLOCK_LANGUAGES", "ori"))
    tesseract_path: str = field(default_factory=lambda: os.getenv("TESSERACT_PATH", ""))

    # Words below this confidence are dropped (-1 = keep everything Tesseract reports)
    min_word_conf: int = field(default_factory=lambda: _get_int_env("OCR_MIN_WORD_CONF", -1))


@dataclass
class DetectionConfig:
    """Block detection geometry (pixels unless noted)."""
    # Anchor strategy
    row_tolerance: int = 30
    block_height: int = 150
    margin: int = 10
    relaxed_factor: float = 0.8
    pair_factor: float = 0.9

    # Structural strategy
    structural_gap: int = 40
    structural_confidence: float = 75.0

    # Grid strategy
    grid_columns: int = 3
    grid_margin_frac: float = 0.02
    grid_row_height: int = 200
    grid_confidence: float = 70.0

    # Page preprocessing
    binarize_threshold: int = 128
    page_sharpen_sigma: float = 0.8
    block_sharpen_sigma: float = 1.0


@dataclass
class AIConfig:
    """AI/LLM configuration (used by the "ai" translation engine)."""
    provider: str = field(default_factory=lambda: os.getenv("AI_PROVIDER", "Groq"))
    api_key: str = field(default_factory=lambda: os.getenv("AI_API_KEY", ""))
    model: str = field(default_factory=lambda: os.getenv("AI_MODEL", "meta-llama/llama-4-maverick-17b-128e-instruct"))
    base_url: str = field(default_factory=lambda: os.getenv("AI_BASE_URL", "https://api.groq.com/openai/v1/chat/completions"))
    timeout_sec: int = field(default_factory=lambda: _get_int_env("AI_TIMEOUT_SEC", 60))

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def get_normalized_base_url(self) -> str:
        """
        Get normalized base_url for OpenAI SDK.

        The OpenAI SDK expects a *base* URL without the endpoint.
        """
        u = (self.base_url or "").strip()
        if not u:
            if self.provider.lower() == "gemini":
                return "https://generativelanguage.googleapis.com/v1beta/openai/"
            return ""  # OpenAI SDK will use default

        u = u.rstrip("/")
        if u.endswith("/chat/completions"):
            u = u[: -len("/chat/completions")]

        return u.rstrip("/") + "/"


@dataclass
class TranslationConfig:
    """Odia → English translation settings."""
    engine: str = field(default_factory=lambda: os.getenv("TRANSLATION_ENGINE", "google").strip().lower())
    source_language: str = "or"
    target_language: str = "en"
    min_interval_ms: int = field(default_factory=lambda: _get_int_env("TRANSLATION_MIN_INTERVAL_MS", 300))
    max_concurrent: int = field(default_factory=lambda: _get_int_env("MAX_CONCURRENT_TRANSLATIONS", 5))
    timeout_sec: float = field(default_factory=lambda: _get_float_env("TRANSLATION_TIMEOUT_SEC", 10.0) or 10.0)
    google_url: str = field(
        default_factory=lambda: os.getenv(
            "TRANSLATION_GOOGLE_URL", "https://translate.googleapis.com/translate_a/single"
        )
    )
    cache_path: str = field(default_factory=lambda: os.getenv("TRANSLATION_CACHE_PATH", ""))

    @property
    def min_interval_sec(self) -> float:
        return max(0, self.min_interval_ms) / 1000.0


@dataclass
class ValidationConfig:
    """Record validation bounds."""
    min_age: int = 18
    max_age: int = 120
    min_name_length: int = 3


@dataclass
class Config:
    """
    Main application configuration.

    All settings are loaded from environment variables with sensible defaults.
    Set DEBUG=1 in environment to enable debug mode.
    """

    # Base directory (project root)
    base_dir: Path = field(default_factory=lambda: Path(__file__).resolve().parent.parent)

    # Directory paths
    output_dir: Path = field(default=None)
    logs_dir: Path = field(default=None)

    # Debug mode (enables verbose logging and block crop dumps)
    debug: bool = field(default_factory=lambda: _get_bool_env("DEBUG", False))
    log_to_file: bool = field(default_factory=lambda: _get_bool_env("LOG_TO_FILE", True))

    # Sub-configurations
    ocr: OCRConfig = field(default_factory=OCRConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    translation: TranslationConfig = field(default_factory=TranslationConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)

    def __post_init__(self):
        """Resolve paths after initialization."""
        if self.output_dir is None:
            self.output_dir = self.base_dir / os.getenv("OUTPUT_DIR", "output")
        if self.logs_dir is None:
            self.logs_dir = self.base_dir / os.getenv("LOG_DIR", "logs")

    @property
    def save_block_crops(self) -> bool:
        """Whether to keep the normalized block crops on disk."""
        return self.debug or _get_bool_env("SAVE_BLOCK_CROPS", False)

    def get_crops_dir(self, document_name: str) -> Path:
        """Get block crops directory for a document."""
        return self.output_dir / document_name / "blocks"


# Global config instance (lazily initialized)
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
