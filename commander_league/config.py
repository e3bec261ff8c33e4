from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env")

    app_name: str = "Commander League"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/commander_league"

    scryfall_api_url: str = "https://api.scryfall.com"
    scryfall_user_agent: str = "CommanderLeague/1.0"
    scryfall_timeout: float = 10.0

    # Scryfall asks for 50-100ms between requests; going faster risks a ban
    scryfall_rate_limit_delay: float = 0.1

    # Number of newest versions always kept by retention pruning
    version_keep_recent_count: int = 5

    default_currency: str = "EUR"

    points_per_win: int = 3
    points_per_game: int = 1


settings = Settings()


# =============================================================================
# SEASON REGISTRATION LIMITS
# =============================================================================

MIN_REGISTERED_DECKS = 1
MAX_REGISTERED_DECKS = 3
