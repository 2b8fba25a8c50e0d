from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    APP_NAME: str = "quotecheck"

    # ROT/RUT: statutory caps per person and year (kr)
    ROT_CAP: float = 50000.00
    RUT_CAP: float = 75000.00
    DEDUCTION_PERCENTAGE: int = 50
    DEDUCTION_TOLERANCE: float = 10.00  # kr, rounding slack when validating a claimed amount

    # Line items: drafted totals are rounded to whole kronor
    LINE_TOTAL_TOLERANCE: float = 1.00

    # Delta engine
    DELTA_THRESHOLD_PCT: float = 20.0
    DELTA_MAX_ITEM_WARNINGS: int = 3

    class Config:
        env_file = ".env"

    @property
    def deduction_caps(self) -> dict:
        return {"rot": self.ROT_CAP, "rut": self.RUT_CAP}


settings = Settings()
