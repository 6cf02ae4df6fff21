# main.py

import argparse
import json
import sys
import time
from pathlib import Path

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)

from odia_roll.config import get_config
from odia_roll.exceptions import OdiaRollError
from odia_roll.logger import get_logger
from odia_roll.processors import ProcessingContext, RollProcessor
from odia_roll.utils.translator import TranslationCache

console = Console(force_terminal=True)
logger = get_logger("odia_roll")


def get_progress():
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        TimeElapsedColumn(),
        TimeRemainingColumn(),
        console=console,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(description="Odia electoral roll extraction")

    parser.add_argument("pages", nargs="+", type=Path, help="Rasterized page images, in page order")
    parser.add_argument("--output", type=Path, default=Path("roll.json"), help="Roll JSON output path")
    parser.add_argument("--cache", type=Path, help="Translation cache file (loaded and saved)")
    parser.add_argument("--save-crops", action="store_true", help="Keep normalized block crops")
    parser.add_argument("--name", help="Document name for output folders (default: output file stem)")

    args = parser.parse_args(argv)
    config = get_config()

    logger.info(f"🗳️ Roll extraction started: {len(args.pages)} page(s)")

    context = ProcessingContext(config=config, image_paths=list(args.pages), save_crops=args.save_crops)
    context.setup_paths(args.name or args.output.stem)

    cache_path = args.cache or (Path(config.translation.cache_path) if config.translation.cache_path else None)

    try:
        translator = TranslationCache.from_config(config)
        if cache_path:
            translator.load(cache_path)
        processor = RollProcessor(context, translator=translator)
    except OdiaRollError as e:
        logger.error(f"❌ Setup failed: {e}")
        return 1

    missing = [p for p in args.pages if not p.exists()]
    if missing:
        logger.error(f"❌ Page images not found: {', '.join(str(p) for p in missing)}")
        return 1

    start_time = time.perf_counter()
    context.stats.start()

    try:
        with get_progress() as progress:
            roll = processor.process_images(args.pages, progress=progress)
    except OdiaRollError as e:
        context.stats.fail(str(e))
        logger.error(f"❌ Roll extraction failed: {e}")
        return 1
    context.stats.complete()

    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(roll.to_dict(), f, ensure_ascii=False, indent=2)
    logger.info(f"✅ Roll written: {args.output} ({roll.total_records} records)")

    if cache_path:
        try:
            translator.save(cache_path)
        except OdiaRollError as e:
            logger.warning(f"Translation cache not saved: {e}")

    console.print(context.stats.summary_str())

    elapsed = time.perf_counter() - start_time
    logger.info(f"🎉 Completed in {elapsed:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())
