"""Basic usage examples for ReviewFeed."""

from concurrent.futures import wait
from pathlib import Path

from reviewfeed import ImageCache, ReviewsStore
from reviewfeed.services import FileImageSource, FileReviewsProvider

REVIEWS_FILE = Path(__file__).parent / "getReviews.response.json"


def example_paging():
    """Example: page through reviews like a scrolling list."""
    print("📜 Paging through reviews")

    with ReviewsStore(FileReviewsProvider(REVIEWS_FILE), page_size=3) as store:
        store.subscribe(lambda state: print(f"  state: {len(state.items)}/{state.total_count} loaded, has_more={state.has_more}"))

        # Each scroll tick may ask for a page; the store ignores calls while loading
        content_height = 0.0
        while store.state.has_more:
            store.on_scroll(target_offset_y=content_height, viewport_height=800, content_height=content_height)
            store.wait_idle()
            content_height = len(store.state.items) * 120.0

        first = store.state.items[0]
        store.show_more(first.id)
        print(f"  expanded '{first.user_name}': max_lines={store.state.items[0].max_lines}")

        for item in store.state.items:
            marker = "✅" if item.is_valid else "⚠️"
            print(f"  {marker} {item.user_name.strip() or '<invalid>'} {item.rating}/5 photos={len(item.photo_urls)}")


def example_image_cache():
    """Example: many cells asking for the same avatar at once."""
    print("\n🖼️ Loading one avatar for several cells")

    avatar = REVIEWS_FILE.with_name("avatar.bin")
    avatar.write_bytes(b"\x89PNG fake avatar")
    url = avatar.as_uri()

    with ImageCache(source=FileImageSource()) as cache:
        requests = [
            cache.fetch(url, callback=lambda image, cell=cell: print(f"  cell {cell}: {len(image)} bytes"))
            for cell in range(3)
        ]
        # A cell scrolled away before its avatar arrived
        cache.cancel(requests[2])
        wait(requests)
        print(f"  cached: {url in cache}")
    avatar.unlink()


if __name__ == "__main__":
    print("🚀 ReviewFeed Examples")
    print("=" * 50)

    try:
        example_paging()
        example_image_cache()
        print("\n✅ All examples completed successfully!")
    except Exception as e:
        print(f"\n❌ Error: {e}")
        import traceback
        traceback.print_exc()
