"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from environment variables prefixed with AL_."""

    # Database
    database_url: str = ""

    # Catalog APIs
    github_token: str = ""
    github_api_url: str = "https://api.github.com"
    huggingface_token: str = ""
    huggingface_api_url: str = "https://huggingface.co/api"
    user_agent: str = "ArtifactLens/1.0"
    http_timeout: float = 15.0

    # Batch pacing
    github_entity_delay_s: float = 1.0
    huggingface_entity_delay_s: float = 2.0
    github_rate_limit_floor: int = 10
    huggingface_rate_limit_floor: int = 5
    max_batch_limit: int = 20

    # Matching heuristics
    similarity_threshold: float = 0.8
    stale_after_days: int = 365
    stale_popularity_floor: int = 100
    stale_secondary_floor: int = 5
    private_popularity_floor: int = 5
    confidence_popularity_bonus: int = 1000
    confidence_secondary_bonus: int = 10
    github_high_tier_count: int = 2
    huggingface_high_tier_count: int = 3

    model_config = {"env_file": ".env", "env_prefix": "AL_"}


def get_settings() -> Settings:
    """Return a cached Settings instance."""
    return Settings()
