"""Command-line interface for ReviewFeed."""

import argparse
import logging
import sys
from concurrent.futures import wait

from .core.config import settings
from .core.constants import FileConstants
from .core.models import PaginationState, ReviewItem
from .services.image_cache import ImageCache
from .services.image_source import decode_image
from .services.reviews_provider import FileReviewsProvider, HttpReviewsProvider
from .services.reviews_store import ReviewsStore
from .utils.data_prep import export_to_json, prepare_export

logger = logging.getLogger(__name__)


def setup_logging():
    """Setup logging configuration."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format=FileConstants.LOG_FORMAT
    )


def _format_row(index: int, item: ReviewItem) -> str:
    if not item.is_valid:
        return f"{index:4d}. <invalid review>"
    first_line = item.text.splitlines()[0] if item.text else ""
    if len(first_line) > 80:
        first_line = first_line[:77] + "..."
    photos = f" [{len(item.photo_urls)} photos]" if item.photo_urls else ""
    return f"{index:4d}. {item.user_name} ({item.rating}/5, {item.created}){photos}: {first_line}"


def _make_data_source(args):
    if args.url:
        return HttpReviewsProvider(args.url)
    path = args.path or settings.reviews_file or FileConstants.DEFAULT_REVIEWS_FILE
    return FileReviewsProvider(path, simulate_latency=args.latency or None)


def cmd_browse(args):
    """Page through reviews the way the list screen does."""
    data_source = _make_data_source(args)
    printed = 0

    def print_new_rows(state: PaginationState):
        nonlocal printed
        for item in state.items[printed:]:
            printed += 1
            print(_format_row(printed, item))
        if state.last_error is not None:
            print(f"Loading failed: {state.last_error}")

    with ReviewsStore(data_source, page_size=args.page_size) as store:
        store.subscribe(print_new_rows)
        pages = 0
        while args.pages is None or pages < args.pages:
            if not store.load_next_page():
                break
            store.wait_idle()
            pages += 1
            if store.state.last_error is not None:
                break
        state = store.state

    print(f"\nLoaded {len(state.items)} of {state.total_count} reviews in {pages} page(s)"
          f"{'' if state.has_more else ' (end of list)'}")

    if args.out:
        export_to_json(prepare_export(state), args.out)
        print(f"Reviews exported to {args.out}")

    if state.last_error is not None:
        sys.exit(1)


def cmd_image(args):
    """Load images concurrently through the cache."""
    decoder = decode_image if args.decode else None
    with ImageCache(decoder=decoder) as cache:
        requests_by_url = {url: cache.fetch(url) for url in args.urls}
        wait(requests_by_url.values())

    failed = 0
    for url, request in requests_by_url.items():
        error = request.exception()
        if error is not None:
            failed += 1
            print(f"FAILED {url}: {error}")
            continue
        image = request.result()
        if args.decode:
            print(f"OK     {url}: {image.width}x{image.height} {image.mode}")
        else:
            print(f"OK     {url}: {len(image)} bytes")

    if failed:
        sys.exit(1)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="ReviewFeed - paginated reviews and image cache")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # Browse command
    browse_parser = subparsers.add_parser('browse', help='Page through reviews')
    browse_parser.add_argument('path', nargs='?', help='Reviews JSON file')
    browse_parser.add_argument('--url', help='HTTP endpoint serving review pages')
    browse_parser.add_argument('--pages', type=int, help='Stop after this many pages')
    browse_parser.add_argument('--page-size', type=int, default=None, help='Reviews per page')
    browse_parser.add_argument('--latency', action='store_true', help='Simulate network latency')
    browse_parser.add_argument('--out', help='Export loaded reviews to a JSON file')

    # Image command
    image_parser = subparsers.add_parser('image', help='Fetch images through the cache')
    image_parser.add_argument('urls', nargs='+', help='Image URLs')
    image_parser.add_argument('--decode', action='store_true', help='Decode images with Pillow')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    setup_logging()

    try:
        if args.command == 'browse':
            cmd_browse(args)
        elif args.command == 'image':
            cmd_image(args)
    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
    except Exception as e:
        logger.error(f"Command failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
