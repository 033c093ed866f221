import os
from dotenv import load_dotenv
load_dotenv()

class Settings:
    APP_NAME = os.getenv("APP_NAME", "matka-api")
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    TZ = os.getenv("TZ", "Asia/Kolkata")

    DATABASE_URL = os.getenv("DATABASE_URL") or (
        f"mysql+aiomysql://{os.getenv('MYSQL_USER','root')}:{os.getenv('MYSQL_PASSWORD','123456')}"
        f"@{os.getenv('MYSQL_HOST','127.0.0.1')}:{os.getenv('MYSQL_PORT','3306')}/{os.getenv('MYSQL_DB','matka')}?charset=utf8mb4"
    )
    REDIS_URL = os.getenv("REDIS_URL") or (
        f"redis://{os.getenv('REDIS_HOST','127.0.0.1')}:{os.getenv('REDIS_PORT','6379')}/{os.getenv('REDIS_DB','0')}"
    )

    JWT_SECRET = os.getenv("JWT_SECRET", "change_me")
    JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "43200"))

    BET_CANCEL_WINDOW_SECONDS = int(os.getenv("BET_CANCEL_WINDOW_SECONDS", "300"))

    SETTLE_BATCH_LIMIT = int(os.getenv("SETTLE_BATCH_LIMIT", "200"))
    SETTLE_RETRY_SECONDS = int(os.getenv("SETTLE_RETRY_SECONDS", "60"))
    SETTLE_RETRY_LOOKBACK_DAYS = int(os.getenv("SETTLE_RETRY_LOOKBACK_DAYS", "3"))

    RESULT_HISTORY_LIMIT = int(os.getenv("RESULT_HISTORY_LIMIT", "200"))

settings = Settings()
