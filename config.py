import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


class Config:
    # --- Flask Core ---
    SECRET_KEY = os.getenv('SECRET_KEY', 'fallback-secret-key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///hackerspace.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    TESTING = False

    # --- JWT Authentication (Cookie-Based) ---
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret")
    JWT_TOKEN_LOCATION = ["cookies", "headers"]
    JWT_COOKIE_SECURE = _env_bool("JWT_COOKIE_SECURE", False)
    JWT_ACCESS_COOKIE_PATH = "/"
    JWT_COOKIE_CSRF_PROTECT = False
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)

    # --- Membership policy ---
    # proration and suspension thresholds are independent, keep them apart
    PRORATION_GRACE_DAYS = int(os.getenv("PRORATION_GRACE_DAYS", "14"))
    PRORATION_PERIOD_DAYS = int(os.getenv("PRORATION_PERIOD_DAYS", "30"))
    SUSPENSION_GRACE_DAYS = int(os.getenv("SUSPENSION_GRACE_DAYS", "15"))
    NEVER_PAID_GRACE_MONTHS = int(os.getenv("NEVER_PAID_GRACE_MONTHS", "1"))

    # --- bePaid (ERIP bills) ---
    BILLING_ENABLED = _env_bool("BILLING_ENABLED", True)
    BILLING_CURRENCY = "BYN"
    BILLING_DESCRIPTION = "Членский взнос"
    BEPAID_BASE_URL = os.getenv("BEPAID_BASE_URL", "https://api.bepaid.by")
    BEPAID_SHOP_ID = os.getenv("BEPAID_SHOP_ID")
    BEPAID_SECRET = os.getenv("BEPAID_SECRET")
    BEPAID_SERVICE_NO = os.getenv("BEPAID_SERVICE_NO")
    BEPAID_NOTIFICATION_URL = os.getenv(
        "BEPAID_NOTIFICATION_URL",
        "https://hackerspace.by/api/payments/bepaid/notify",
    )
    BEPAID_TIMEOUT = int(os.getenv("BEPAID_TIMEOUT", "10"))

    # --- Telegram notifier ---
    TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
    TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
    TELEGRAM_TIMEOUT = int(os.getenv("TELEGRAM_TIMEOUT", "10"))

    # --- Background suspension sweep ---
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", True)
    SUSPENSION_SWEEP_HOURS = int(os.getenv("SUSPENSION_SWEEP_HOURS", "6"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BILLING_ENABLED = False
    SCHEDULER_ENABLED = False
    JWT_SECRET_KEY = "test-jwt-secret"
    TELEGRAM_BOT_TOKEN = "test-token"
