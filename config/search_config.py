"""
Configuration settings for the blog search backend.
"""

import os
from pathlib import Path

# Base directories
BASE_DIR = Path(__file__).parent.parent
CONFIG_DIR = BASE_DIR / "config"

# Data directory - use environment variable in production, local path in development
DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))

# Database path - support environment variable override for production
DATABASE_PATH = os.getenv("DATABASE_PATH", str(DATA_DIR / "blog.db"))


# SEARCH CONFIGURATION
#
# Ranking is a fixed ordering over three signals, highest priority first:
#   tag match count > stemmed text rank > fuzzy title similarity > date
#
# An article qualifies for a search when the term is empty, or its text rank
# is positive, or its fuzzy title similarity exceeds the threshold.

SEARCH_CONFIG = {
    # Results per page; offset = (page - 1) * page_size
    "page_size": 12,

    # Trigram similarity a title must exceed to qualify on fuzziness alone
    "fuzzy_threshold": 0.2,

    # Snowball stemmer language for the searchable text
    "language": "english",

    # Title is repeated N times in the searchable text
    "title_weight": 3,

    # BM25 term frequency saturation and length normalization
    "k1": 1.5,
    "b": 0.75,
}


# RECOMMENDATION CONFIGURATION

RECOMMEND_CONFIG = {
    # Number of similar articles shown under an article
    "similar_limit": 3,

    # Each shared tag is worth this many units of text rank
    "shared_tag_weight": 2,
}


# SIDE PANEL CONFIGURATION

SIDEBAR_CONFIG = {
    "recent_limit": 3,
}


# CONCURRENCY CONFIGURATION

CONCURRENCY_CONFIG = {
    "search_thread_pool_size": 4,
}


# LOGGING CONFIGURATION

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))

LOG_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "json": {
            "class": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        },
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": LOG_LEVEL,
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        },
        "api": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "api.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "formatter": "json",
            "level": LOG_LEVEL
        },
        "search": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "search.log"),
            "maxBytes": 10485760,
            "backupCount": 5,
            "formatter": "json",
            "level": LOG_LEVEL
        },
        "errors": {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": str(LOG_DIR / "errors.log"),
            "maxBytes": 10485760,
            "backupCount": 5,
            "formatter": "json",
            "level": "ERROR"
        }
    },
    "loggers": {
        "api": {
            "handlers": ["console", "api", "errors"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "search": {
            "handlers": ["console", "search", "errors"],
            "level": LOG_LEVEL,
            "propagate": False
        },
        "": {  # Root logger
            "handlers": ["console", "errors"],
            "level": LOG_LEVEL
        }
    }
}


def configure_logging():
    """Create the log directory and apply LOG_CONFIG."""
    import logging.config

    LOG_DIR.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(LOG_CONFIG)


# API CONFIGURATION

API_CONFIG = {
    "host": os.getenv("API_HOST", "0.0.0.0"),
    "port": int(os.getenv("API_PORT", "8000")),
    "reload": os.getenv("RELOAD", "false").lower() == "true",
    "log_level": LOG_LEVEL.lower(),

    # Comma separated browser origins allowed to call the API
    "cors_origins": [
        origin.strip()
        for origin in os.getenv(
            "CORS_ORIGINS", "http://localhost:5173,http://localhost:3000"
        ).split(",")
        if origin.strip()
    ],
}


# ENVIRONMENT

DEBUG = os.getenv("DEBUG", "false").lower() == "true"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
