from enum import Enum

from pydantic_settings import BaseSettings


class CommitMode(str, Enum):
    BEST_EFFORT = "best_effort"
    STRICT = "strict"


class StockDecrementMode(str, Enum):
    READ_MODIFY_WRITE = "read_modify_write"
    ATOMIC = "atomic"


class Settings(BaseSettings):
    DB_URL: str = "sqlite+aiosqlite:///./pos_edge.db"
    AUTO_CREATE_SCHEMA: bool = True

    # best_effort keeps a sale whose line items or stock writes failed,
    # strict compensates and reports the checkout as failed
    COMMIT_MODE: CommitMode = CommitMode.BEST_EFFORT
    STOCK_DECREMENT_MODE: StockDecrementMode = StockDecrementMode.READ_MODIFY_WRITE
    PAYMENT_METHOD: str = "Cash"

    LOG_LEVEL: str = "INFO"
    STATE_DIR: str = ".pos_edge"

    class Config:
        env_file = ".env"


settings = Settings()
