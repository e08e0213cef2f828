from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Price bounds (display clamp + hard protocol ceiling)
    PRICE_CAP: float = Field(default=0.99, gt=0.0, lt=1.0)
    MIN_PRICE: float = Field(default=0.01, gt=0.0, lt=1.0)

    # Virtual liquidity offset, USDC base units (50,000 USDC)
    DEFAULT_VIRTUAL_LIQUIDITY: int = Field(default=50_000 * 10**6, ge=0)

    # Fees in basis points (100 = 1%)
    PROTOCOL_FEE_BPS: int = Field(default=100, ge=0, le=10_000)  # settlement, on profit only
    SELL_FEE_BPS: int = Field(default=100, gt=0, le=10_000)  # redemption spread on sells, never zero

    # App
    APP_NAME: str = "Prediction Market AMM"
    DEBUG: bool = False

    @model_validator(mode="after")
    def _check_price_bounds(self) -> "Settings":
        if self.MIN_PRICE >= self.PRICE_CAP:
            raise ValueError(
                f"MIN_PRICE ({self.MIN_PRICE}) must be below PRICE_CAP ({self.PRICE_CAP})"
            )
        return self


settings = Settings()
