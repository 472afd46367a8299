import os
from decimal import Decimal


class Config:
    # Secret key for sessions / JWT
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret")

    # Database connection; None lets the app factory fall back to the instance folder
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # JWT Configuration
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", SECRET_KEY)

    # Billing
    DEFAULT_DAILY_LATE_FEE = Decimal(os.environ.get("DEFAULT_DAILY_LATE_FEE", "120"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    JSON_SORT_KEYS = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    JWT_SECRET_KEY = "testing-secret-key-with-enough-length"
    DEFAULT_DAILY_LATE_FEE = Decimal("120")
