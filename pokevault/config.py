from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="POKEVAULT_")

    app_name: str = "PokeVault"
    debug: bool = False
    log_level: str = "INFO"

    database_url: str = "postgresql+asyncpg://localhost:5432/pokevault"

    pokemon_tcg_api_url: str = "https://api.pokemontcg.io/v2"
    pokemon_tcg_api_key: str = ""

    # Condition recorded when a copy is added without an explicit one
    default_condition: str = "near_mint"


settings = Settings()


# =============================================================================
# CATALOG SYNC LIMITS
# =============================================================================

# Page size requested from the Pokemon TCG API (the API caps it at 250)
DEFAULT_SYNC_PAGE_SIZE = 250

HTTP_TIMEOUT_SECONDS = 30.0
