from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Action Dispatch Service"
    environment: str = "dev"
    log_level: str = "INFO"
    api_key: str | None = None
    store_backend: str = "mongo"  # "mongo" | "memory"
    agent_mode: str = "graph"  # "graph" | "completions"

    # Mongo
    mongo_uri: str = "mongodb://localhost:27017/"
    mongo_db: str = "actions"

    # LLM
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"

    # Providers
    provider_timeout: float = 30.0
    github_api_url: str = "https://api.github.com"
    gmail_api_url: str = "https://gmail.googleapis.com"
    slack_api_url: str = "https://slack.com/api"
    hackernews_api_url: str = "https://hn.algolia.com/api/v1"

    # Client / CLI
    service_url: str = "http://localhost:8000/api"

    def provider_base_urls(self) -> dict[str, str]:
        return {
            "github": self.github_api_url,
            "gmail": self.gmail_api_url,
            "slack": self.slack_api_url,
            "hackernews": self.hackernews_api_url,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
