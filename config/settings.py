"""Application settings loaded from environment variables."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "LEAD_INSIGHTS_"}

    # Market sizing placeholders (not measured from data)
    total_addressable_market: int = 10000
    estimated_avg_sales_cycle_days: float = 30.0
    estimated_market_share_pct: float = 15.0

    # Recommendation / alert thresholds
    conversion_benchmark_pct: float = 15.0  # below this -> "Conversion Optimization"
    low_pipeline_threshold: int = 20  # open pipeline below this -> "Lead Generation"
    trend_threshold_pct: float = 5.0  # |growth| above this -> up / down

    # Logging
    log_level: str = "INFO"


settings = Settings()
