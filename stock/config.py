from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "Wine Stock"
    DATABASE_URL: str = "sqlite:///./stock.db"

    LOG_LEVEL: str = "INFO"

    # Sales may drive on-hand quantity below zero unless this is disabled
    ALLOW_NEGATIVE_STOCK: bool = True

    LOW_STOCK_THRESHOLD: int = 5
    DEFAULT_PAGE_SIZE: int = 100

    model_config = {"env_file": ".env"}


settings = Settings()
