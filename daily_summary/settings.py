"""Environment-backed configuration for the daily summary."""
from __future__ import annotations

from datetime import tzinfo
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()

DEFAULT_TICKET_REGEX = r"[A-Za-z]+-\d+"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_PR_LIMIT = 20
DEFAULT_OUTPUT_DIR = "output"
MISSING_GITHUB_AUTH_MESSAGE = "Missing GitHub API credentials."
MISSING_LINEAR_KEY_MESSAGE = "Missing Linear API key (set LINEAR_API_KEY)."
MISSING_OPENAI_KEY_MESSAGE = "Missing OpenAI API key (set OPENAI_API_KEY or pass --skip-llm)."


class Settings(BaseSettings):
    """Environment-backed settings for the summary run."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    github_token: str | None = Field(default=None, alias="GITHUB_TOKEN")
    gh_token: str | None = Field(default=None, alias="GH_TOKEN")
    linear_api_key: str | None = Field(default=None, alias="LINEAR_API_KEY")

    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    openai_model: str = Field(default=DEFAULT_OPENAI_MODEL, alias="OPENAI_MODEL")

    summary_ticket_regex: str = Field(
        default=DEFAULT_TICKET_REGEX,
        alias="SUMMARY_TICKET_REGEX",
    )
    summary_pr_limit: int = Field(default=DEFAULT_PR_LIMIT, alias="SUMMARY_PR_LIMIT")
    summary_output_dir: str = Field(
        default=DEFAULT_OUTPUT_DIR,
        alias="SUMMARY_OUTPUT_DIR",
    )
    summary_timezone: str | None = Field(default=None, alias="SUMMARY_TIMEZONE")

    def resolve_github_token(self) -> str:
        """Return the first configured GitHub token or exit."""
        token = self.github_token or self.gh_token
        if not token:
            raise SystemExit(MISSING_GITHUB_AUTH_MESSAGE)
        return token

    def resolve_linear_api_key(self) -> str:
        """Return the Linear API key or exit."""
        if not self.linear_api_key:
            raise SystemExit(MISSING_LINEAR_KEY_MESSAGE)
        return self.linear_api_key

    def resolve_timezone(self) -> tzinfo | None:
        """Return the configured zone, or None for the system local zone."""
        if not self.summary_timezone:
            return None
        return ZoneInfo(self.summary_timezone)


def get_settings() -> Settings:
    """Load settings from environment variables."""
    # env sources are only merged in __init__, not in model_validate
    return Settings()
