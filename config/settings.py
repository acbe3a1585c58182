from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Slippage / impact guard
    DEFAULT_SLIPPAGE_BPS: int = 50  # 0.5%
    CHUNK_MARGIN_BPS: int = 9800  # chunks sized at 98% of the on-chain impact cap

    # Ledger call shape: "deadline" deployments take an expiry argument on buy/sell
    TRADE_CALL_SHAPE: Literal["deadline", "legacy"] = "deadline"
    TRADE_DEADLINE_SECONDS: int = 300
    CONFIRMATION_TIMEOUT_SECONDS: float = 120.0
    CHUNK_PAUSE_SECONDS: float = 0.15

    # Solver
    SOLVER_MAX_ITERATIONS: int = 128

    # App
    APP_NAME: str = "LMSR Trade Engine"
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False  # Safe default for production; set DEBUG=True in .env for local dev


settings = Settings()
