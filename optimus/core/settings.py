from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_RELEASE_FEED_URL = (
    "https://api.github.com/repos/AutoScots/optimusprime/releases/latest"
)


def _normalise_feed_url(url: str) -> str:
    """Strip whitespace and trailing slashes from the release feed URL.

    The feed is fetched verbatim, so ``.../releases/latest/`` and
    ``.../releases/latest`` must resolve to the same request.
    """
    return url.strip().rstrip("/")


class Settings(BaseSettings):
    """Process-level settings loaded from environment variables.

    These sit underneath the per-project ``submission.yml``: the YAML file
    always wins, environment values only fill gaps (e.g. an API key kept
    out of the file so it is never committed).

    Recognised variables
    ────────────────────
    • OPTIMUS_API_KEY           fallback API key
    • OPTIMUS_CONFIG_PATH       config file location (default submission.yml)
    • OPTIMUS_DEBUG             verbose console logging
    • OPTIMUS_RELEASE_FEED_URL  release feed queried by ``optimus update``
    • OPTIMUS_CHECK_TIMEOUT     timeout for /check and /competitions, seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="OPTIMUS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    api_key: str = ""
    config_path: str = "submission.yml"

    # Release feed: GitHub "latest release" JSON
    release_feed_url: str = DEFAULT_RELEASE_FEED_URL

    @field_validator("release_feed_url", mode="before")
    @classmethod
    def normalise_release_feed_url(cls, v: str) -> str:
        return _normalise_feed_url(v)

    check_timeout: float = 10.0

    debug: bool = False


def get_settings() -> Settings:
    return Settings()
