from typing import Optional
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PostgresSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    host: str = Field(default="localhost", alias="POSTGRES_HOST")
    port: int = Field(default=5432, alias="POSTGRES_DB_PORT")
    db_name: str = Field(default="flashpages", alias="POSTGRES_DB_NAME")
    user: str = Field(default="postgres", alias="POSTGRES_DB_USER")
    password: str = Field(default="postgres", alias="POSTGRES_DB_PASSWORD")
    # Full SQLAlchemy URL; takes precedence over the individual fields
    url_override: Optional[str] = Field(default=None, alias="DATABASE_URL")

    @computed_field
    def connection_string(self) -> str:
        if self.url_override:
            return self.url_override
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.db_name}"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    issuer: str = Field(default="https://auth.example.com", alias="JWT_ISSUER")
    application_id: str = Field(default="flashpages", alias="JWT_APPLICATION_ID")
    algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    name: str = Field(default="flashpages", alias="APP_NAME")
    version: str = Field(default="v1", alias="API_VERSION")
    port: int = Field(default=9000, alias="APP_PORT")
    mode: str = Field(default="prod", alias="MODE")
    jwt_secret: str = Field(alias="JWT_SECRET")
    # JSON list in the environment, e.g. CORS_ORIGINS='["https://flashpages.app"]'
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    @computed_field
    def is_production(self) -> bool:
        return self.mode not in ("dev", "test")

    @computed_field
    def is_testing(self) -> bool:
        return self.mode == "test"


class AnalyzerSettings(BaseSettings):
    """Heuristic constants for difficulty inference and deck sizing."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    beginner_below: float = Field(default=12.0, alias="ANALYZER_BEGINNER_BELOW")
    intermediate_below: float = Field(
        default=18.0, alias="ANALYZER_INTERMEDIATE_BELOW"
    )
    sentence_weight: float = Field(default=0.6, alias="ANALYZER_SENTENCE_WEIGHT")
    word_length_weight: float = Field(
        default=2.0, alias="ANALYZER_WORD_LENGTH_WEIGHT"
    )
    words_per_card: int = Field(default=120, alias="ANALYZER_WORDS_PER_CARD")
    section_cap: int = Field(default=12, alias="ANALYZER_SECTION_CAP")
    min_cards: int = Field(default=6, alias="ANALYZER_MIN_CARDS")
    max_cards: int = Field(default=24, alias="ANALYZER_MAX_CARDS")
    hint_words: int = Field(default=12, alias="ANALYZER_HINT_WORDS")


class ImportSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )
    max_chars: int = Field(default=120_000, alias="SOURCE_MAX_CHARS")
    user_agent: str = Field(
        default="Mozilla/5.0 (compatible; FlashPagesBot/1.0; +https://flashpages.app)",
        alias="IMPORT_USER_AGENT",
    )
    timeout_seconds: float = Field(default=15.0, alias="IMPORT_TIMEOUT_SECONDS")
    max_redirects: int = Field(default=5, alias="IMPORT_MAX_REDIRECTS")
    # Loopback, private and link-local targets are refused unless enabled
    allow_private_hosts: bool = Field(default=False, alias="IMPORT_ALLOW_PRIVATE_HOSTS")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=lambda: AppSettings())
    postgres: PostgresSettings = Field(default_factory=lambda: PostgresSettings())
    jwt: JWTSettings = Field(default_factory=lambda: JWTSettings())
    analyzer: AnalyzerSettings = Field(default_factory=lambda: AnalyzerSettings())
    importer: ImportSettings = Field(default_factory=lambda: ImportSettings())

    groq_api_key: Optional[str] = Field(default=None, alias="GROQ_API_KEY")
    gemini_api_key: Optional[str] = Field(default=None, alias="GEMINI_API_KEY")
    openrouter_api_key: Optional[str] = Field(default=None, alias="OPENROUTER_API_KEY")

    # Model provider selection: "groq", "google" or "openrouter"
    model_provider: str = Field(default="groq", alias="MODEL_PROVIDER")
    groq_model: str = Field(default="llama-3.3-70b-versatile", alias="GROQ_MODEL")
    gemini_model: str = Field(default="gemini-2.0-flash", alias="GEMINI_MODEL")
    openrouter_model: str = Field(
        default="meta-llama/llama-3.3-70b-instruct", alias="OPENROUTER_MODEL"
    )

    generation_temperature: float = Field(default=0.7, alias="GENERATION_TEMPERATURE")
    generation_timeout_seconds: float = Field(
        default=60.0, alias="GENERATION_TIMEOUT_SECONDS"
    )
    generation_max_attempts: int = Field(default=1, alias="GENERATION_MAX_ATTEMPTS")


settings = Settings()
