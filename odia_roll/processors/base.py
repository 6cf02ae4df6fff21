"""
Base processor class and processing context.

Provides common functionality for all pipeline components including
logging, timing, error handling, and configuration access.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Any, List

from ..config import Config
from ..logger import get_logger
from ..models import ExtractionStats, PageResult, Roll
from ..utils.timing import Timer


@dataclass
class ProcessingContext:
    """
    Shared context passed between pipeline components.

    Contains:
    - Configuration
    - Paths
    - Accumulated statistics
    - Per-run state (pages processed so far, the assembled roll)
    """

    config: Config
    document_name: str = "roll"
    image_paths: List[Path] = field(default_factory=list)
    output_dir: Optional[Path] = None
    crops_dir: Optional[Path] = None
    save_crops: bool = False

    # Processing statistics
    stats: ExtractionStats = field(default_factory=ExtractionStats)

    # Page tracking
    current_page: Optional[int] = None
    total_pages: int = 0

    pages: List[PageResult] = field(default_factory=list)
    roll: Optional[Roll] = None

    def setup_paths(self, document_name: Optional[str] = None) -> None:
        """
        Initialize output paths for a document.

        Directories are created lazily by whoever writes into them.
        """
        if document_name:
            self.document_name = document_name
        self.output_dir = self.config.output_dir / self.document_name
        self.crops_dir = self.config.get_crops_dir(self.document_name)
        self.save_crops = self.save_crops or self.config.save_block_crops


class BaseComponent:
    """
    Common plumbing for pipeline components.

    Provides:
    - Consistent logging
    - Configuration access
    """

    # Component name for logging (override in subclass)
    name: str = "BaseComponent"

    def __init__(self, context: ProcessingContext):
        self.context = context
        self.config = context.config
        self.logger = get_logger(self.name)

    @property
    def debug_mode(self) -> bool:
        """Check if debug mode is enabled."""
        return self.config.debug

    def log_debug(self, message: str, **kwargs: Any) -> None:
        """Log debug message (only in debug mode)."""
        if self.debug_mode:
            extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
            self.logger.debug(f"{message} {extra}".strip())

    def log_info(self, message: str, **kwargs: Any) -> None:
        extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
        self.logger.info(f"{message} {extra}".strip())

    def log_warning(self, message: str, **kwargs: Any) -> None:
        extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
        self.logger.warning(f"{message} {extra}".strip())

    def log_error(self, message: str, error: Optional[Exception] = None) -> None:
        if error:
            self.logger.error(f"{message}: {error}", exc_info=self.debug_mode)
        else:
            self.logger.error(message)


class BaseProcessor(BaseComponent, ABC):
    """
    Abstract base class for document-level processors.

    Adds validate/process/run on top of BaseComponent.
    """

    name: str = "BaseProcessor"

    def __init__(self, context: ProcessingContext):
        super().__init__(context)
        self._timer = Timer()

    @abstractmethod
    def process(self) -> bool:
        """
        Execute the processor's main task.

        Returns:
            True if processing succeeded, False otherwise
        """

    def validate(self) -> bool:
        """
        Validate that processor can run.

        Override in subclass to check prerequisites.
        """
        return True

    def run(self) -> bool:
        """
        Run processor with timing and error handling.

        Returns:
            True if processing succeeded
        """
        self.log_info(f"Starting {self.name}")
        self._timer = Timer()

        try:
            if not self.validate():
                self.log_error("Validation failed")
                return False

            result = self.process()

            elapsed = self._timer.elapsed
            self.log_info(f"Completed {self.name}", duration=f"{elapsed:.2f}s")

            return result

        except Exception as e:
            elapsed = self._timer.elapsed
            self.log_error(f"Failed after {elapsed:.2f}s", error=e)
            self.context.stats.fail(str(e))
            return False

    def save_debug_info(self, name: str, data: Any) -> Optional[Path]:
        """
        Save debug information to file.

        Only saves if debug mode is enabled.
        """
        if not self.debug_mode or not self.context.output_dir:
            return None

        debug_dir = self.context.output_dir / "debug"
        debug_dir.mkdir(parents=True, exist_ok=True)

        debug_path = debug_dir / f"{name}.json"

        if isinstance(data, (dict, list)):
            debug_path.write_text(
                json.dumps(data, ensure_ascii=False, indent=2),
                encoding="utf-8",
                errors="replace"
            )
        else:
            debug_path.write_text(str(data), encoding="utf-8", errors="replace")

        self.log_debug(f"Saved debug info to {debug_path}")
        return debug_path
