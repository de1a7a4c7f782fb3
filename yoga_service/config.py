from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./yoga.db"
    REDIS_URL: str = "redis://localhost:6379/0"
    SECRET_KEY: str = "dev-secret-yoga"
    JWT_ALGORITHM: str = "HS256"
    TOKEN_TTL_HOURS: int = 24
    LOG_LEVEL: str = "INFO"
    CACHE_TTL: int = 300  # 5 minutes
    PAYMENT_SECRET: str = "sk_test_dummy"
    PAYMENT_CURRENCY: str = "usd"
    CORS_ORIGINS: list[str] = ["http://localhost:5173"]
    RATE_LIMIT_PER_MINUTE: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
