import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ewm.db")

# Redis configuration
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
LOCK_TIMEOUT = int(os.getenv("LOCK_TIMEOUT", "10"))
LOCK_BLOCKING_TIMEOUT = int(os.getenv("LOCK_BLOCKING_TIMEOUT", "5"))

# Stats service
STATS_SERVER_URL = os.getenv("STATS_SERVER_URL", "http://localhost:9090")
STATS_TIMEOUT = float(os.getenv("STATS_TIMEOUT", "2"))
APP_NAME = os.getenv("APP_NAME", "ewm-main-service")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_redis_url():
    return REDIS_URL


def get_database_url():
    return DATABASE_URL
