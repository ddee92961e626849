"""
main.py — command-line entry point.

Searches the configured Cloud Vision product set for each image given on the
command line and prints the matches:

  python main.py crop1.jpg crop2.jpg
  python main.py --verbose crop.jpg

Configuration comes from the environment / .env (see config.py).
All images are searched concurrently through one ProductSearchClient.
"""
import argparse
import asyncio
import logging
import sys

from config import SearchConfig
from detected_object import DetectedObjectInfo
from product_search import ProductSearchClient
from search_backends.base import ProductMatch

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def format_matches(label: str, matches: list[ProductMatch]) -> str:
    lines = [f"── {label} ({len(matches)} matches)"]
    for i, match in enumerate(matches, 1):
        lines.append(f"  {i}. {match.title}  [{match.score}]")
        if match.image_url:
            lines.append(f"     {match.image_url}")
    return "\n".join(lines)


def _load(path: str, index: int) -> DetectedObjectInfo:
    try:
        return DetectedObjectInfo.from_file(path, object_index=index)
    except OSError as exc:
        # Searched anyway: a missing image yields placeholders like any other failure
        logger.warning("Could not read %s: %s", path, exc)
        return DetectedObjectInfo(object_index=index, image_data=None)


async def run(paths: list[str]) -> int:
    try:
        search_config = SearchConfig.from_env().validate()
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    objects = [_load(path, i) for i, path in enumerate(paths)]
    async with ProductSearchClient(search_config) as client:
        results = await asyncio.gather(*[client.search(obj) for obj in objects])

    for path, matches in zip(paths, results):
        print(format_matches(path, matches))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find similar products with Cloud Vision Product Search.")
    parser.add_argument("images", nargs="+", help="JPEG files of cropped objects")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)
    return asyncio.run(run(args.images))


if __name__ == "__main__":
    sys.exit(main())
