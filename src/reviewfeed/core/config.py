"""Configuration management for ReviewFeed."""

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings."""

    # Logging
    log_level: str = Field("INFO", description="Logging level")

    # Pagination
    page_size: int = Field(20, description="Number of reviews requested per page")
    max_photos: int = Field(5, description="Photo URLs kept per review")
    prefetch_screens: float = Field(2.5, description="Viewport heights left before the next page is requested")
    default_max_lines: int = Field(3, description="Lines of review text shown before 'show more'")

    # Data sources
    reviews_file: str = Field("", description="Path to a reviews JSON document")
    reviews_url: str = Field("", description="HTTP endpoint serving review pages")
    simulate_latency: bool = Field(False, description="Delay file-backed pages like a slow network")
    request_timeout: float = Field(10.0, description="Timeout for HTTP requests in seconds")

    # Retries
    max_retries: int = Field(3, description="Maximum retry attempts")
    retry_delay: float = Field(1.0, description="Base retry delay in seconds")
    retry_backoff: float = Field(2.0, description="Retry backoff multiplier")

    # Workers
    store_workers: int = Field(2, description="Threads used for page fetches")
    image_workers: int = Field(8, description="Threads used for image loads")

    class Config:
        env_prefix = "REVIEWFEED_"
        env_file = ".env"
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()
