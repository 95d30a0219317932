"""Application configuration from environment variables."""
import os
from typing import Optional

from pydantic_settings import BaseSettings


APP_NAME = "tyflocentrum-push"
APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # HTTP server bind address and port
    host: str = "127.0.0.1"
    port: int = 9070

    # Directory holding the state file (created with 0750 on startup)
    data_dir: str = "/var/lib/tyflocentrum-push"

    # State file path (optional - defaults to <DATA_DIR>/state.json)
    state_path: Optional[str] = None

    # Content polling
    poll_enabled: bool = True
    poll_interval_seconds: int = 300
    poll_per_page: int = 20
    fetch_timeout_seconds: float = 20.0

    # Shared secret for webhook events - empty means webhooks are locked
    webhook_secret: str = ""

    # WordPress posts endpoints of the two content sources
    tyflopodcast_wp: str = "https://tyflopodcast.net/wp-json/wp/v2/posts"
    tyfloswiat_wp: str = "https://tyfloswiat.pl/wp-json/wp/v2/posts"

    # Salt mixed into token fingerprints written to the log
    token_log_salt: str = ""

    log_level: str = "INFO"

    class Config:
        env_prefix = ""
        case_sensitive = False


settings = Settings()


def get_state_path(config: Optional[Settings] = None) -> str:
    """Get the state file path.

    Priority:
    1. STATE_PATH environment variable
    2. state.json in DATA_DIR
    """
    config = config or settings
    if config.state_path:
        return config.state_path
    return os.path.join(config.data_dir, "state.json")


def get_webhook_secret(config: Optional[Settings] = None) -> str:
    """Get the webhook secret with surrounding whitespace removed."""
    config = config or settings
    return (config.webhook_secret or "").strip()
