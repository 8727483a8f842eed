"""Main entry point for ReviewFeed."""

from reviewfeed.cli import main

if __name__ == "__main__":
    main()
