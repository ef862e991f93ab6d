from typing import List

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from cryptodash.constants import DEFAULT_SYMBOLS


class Settings(BaseSettings):
    # Public market data (CoinGecko REST)
    coingecko_base_url: str = "https://api.coingecko.com/api/v3"
    http_timeout: float = 10.0
    price_cache_ttl: int = 30  # seconds

    # Streaming feed (Binance combined ticker streams)
    binance_ws_url: str = "wss://stream.binance.com:9443"
    default_symbols: List[str] = list(DEFAULT_SYMBOLS)
    reconnect_attempts: int = 5
    reconnect_interval: float = 3.0  # seconds between reconnect attempts

    # Simulated execution
    initial_balance: float = 50000.0
    default_market_price: float = 44250.0  # Used when no tick has been seen for a symbol
    fill_delay_min: float = 0.5
    fill_delay_max: float = 2.5
    evaluate_order_triggers: bool = False  # Limit/stop orders stay pending unless enabled

    # Indicator parameters
    price_history_size: int = 200
    rsi_period: int = 14
    sma_period: int = 20
    ema_period: int = 20
    macd_fast_period: int = 12
    macd_slow_period: int = 26
    macd_signal_period: int = 9

    @field_validator("reconnect_interval", "http_timeout")
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        """Intervals and timeouts must be strictly positive"""
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("reconnect_attempts")
    @classmethod
    def non_negative_attempts(cls, v: int) -> int:
        if v < 0:
            raise ValueError("reconnect_attempts cannot be negative")
        return v

    @model_validator(mode="after")
    def check_fill_delay_range(self) -> "Settings":
        if self.fill_delay_min < 0 or self.fill_delay_max < self.fill_delay_min:
            raise ValueError("fill delay range must satisfy 0 <= fill_delay_min <= fill_delay_max")
        return self

    class Config:
        env_file = ".env"
        env_prefix = "CRYPTODASH_"
        case_sensitive = False


settings = Settings()
