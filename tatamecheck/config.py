from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    APP_NAME: str = "TatameCheck"
    APP_VERSION: str = "1.0.0"
    LOG_LEVEL: str = "INFO"

    SECRET_KEY: str = "dev-secret-key-change-me"
    DATABASE_URL: str = "sqlite:///tatamecheck.db"
    SQL_ECHO: bool = False

    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60
    AUTH_COOKIE_NAME: str = "access_token"
    SESSION_COOKIE_SAMESITE: str = "Lax"
    SESSION_COOKIE_SECURE: bool = False

    DEFAULT_FENCE_RADIUS_METERS: float = 100.0
    # Check-ins without GPS or outside the fence are kept for manual validation
    ALLOW_UNVERIFIED_CHECKIN: bool = True
    DEFAULT_PASSWORD: str = "ChangeMe123!"


settings = Settings()
