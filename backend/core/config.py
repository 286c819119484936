from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

load_dotenv()


class Settings(BaseSettings):
    # API Settings
    API_TITLE: str = "LoadLab"
    API_DESCRIPTION: str = "Synthetic load endpoints for autoscaling drills"
    ENVIRONMENT: str = "development"

    # Server Settings
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    HOSTNAME: str = "local"  # reported as instance_id
    WORKERS: int = 2
    SHUTDOWN_TIMEOUT_SECONDS: int = 10

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="allow"
    )

    # Env settings for logging customization
    ENV_MODE: str = "LOCAL"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: str = ""
    STATS_LOG_INTERVAL_SECONDS: int = 30

    # CPU task settings
    CPU_GRACE_PERIOD_SECONDS: float = 5.0
    DEFAULT_CPU_SECONDS: int = 1

    # Delay settings
    DEFAULT_DELAY_MS: int = 100

    # Memory stress settings
    DEFAULT_MEMORY_MB: int = 100
    MEMORY_CHUNK_MB: int = 1
    MEMORY_YIELD_EVERY_CHUNKS: int = 10
    MEMORY_STEP_PAUSE_MS: int = 1

    # Forced collection is only served when explicitly exposed
    EXPOSE_GC: bool = True


settings = Settings()
