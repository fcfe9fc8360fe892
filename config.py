"""Configuration module for the POS ledger application."""
import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    DEBUG = os.getenv('FLASK_DEBUG', '0') == '1'
    ENV = os.getenv('FLASK_ENV', 'development')
    TESTING = False

    # Logging
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()

    # Database - Priority: DATABASE_URL > DB_* (PostgreSQL) > local SQLite file
    DATABASE_URL = os.getenv('DATABASE_URL')

    if not DATABASE_URL:
        DB_HOST = os.getenv('DB_HOST') or os.getenv('POSTGRES_HOST')
        if DB_HOST:
            DB_PORT = os.getenv('DB_PORT') or os.getenv('POSTGRES_PORT', '5432')
            DB_NAME = os.getenv('DB_NAME') or os.getenv('POSTGRES_DB', 'pos')
            DB_USER = os.getenv('DB_USER') or os.getenv('POSTGRES_USER', 'pos')
            DB_PASSWORD = os.getenv('DB_PASSWORD') or os.getenv('POSTGRES_PASSWORD', 'pos')

            DATABASE_URL = (
                f"postgresql://{DB_USER}:{DB_PASSWORD}"
                f"@{DB_HOST}:{DB_PORT}/{DB_NAME}"
            )
        else:
            DATABASE_URL = f"sqlite:///{os.getenv('SQLITE_PATH', 'pos_ledger.db')}"

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_ECHO = os.getenv('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # Stock: default minimum threshold for new variants
    LOW_STOCK_THRESHOLD = int(os.getenv('LOW_STOCK_THRESHOLD', '5'))

    # Reports
    TOP_VARIANTS_LIMIT = int(os.getenv('TOP_VARIANTS_LIMIT', '10'))


class TestConfig(Config):
    """Configuration used by the test-suite (in-memory SQLite)."""

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_ECHO = False
    LOG_LEVEL = 'WARNING'
