from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_trailing_slash(url: str) -> str:
    return url.rstrip("/")


class Settings(BaseSettings):
    """Settings loaded from environment variables (and an optional .env).

    The GitHub token is only required by the ``github`` command. It is read
    here once at startup and handed to ``GitHubClient`` explicitly; nothing
    below the CLI looks at the process environment.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub: personal access token or fine-grained token with
    # contents:write and pull_requests:write on the target repo.
    github_token: str = ""
    github_api_url: str = "https://api.github.com"

    # npm registry serving the release metadata and tarballs
    npm_registry_url: str = "https://registry.npmjs.org"

    # Upstream formula repo used for the "already published" check
    homebrew_core_repo: str = "homebrew/homebrew-core"

    # Per-request timeout for every HTTP call (registry, tarball, GitHub)
    request_timeout_seconds: float = 30.0

    # brew install --build-from-source can be slow
    validation_timeout_seconds: int = 1800

    # Pull request target
    base_branch: str = "main"
    formula_dir: str = "Formula"

    debug: bool = False

    @field_validator("github_api_url", "npm_registry_url", mode="before")
    @classmethod
    def normalise_url(cls, v: str) -> str:
        return _strip_trailing_slash(v)


def get_settings() -> Settings:
    return Settings()
