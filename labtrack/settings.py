"""
Django settings for the labtrack project.

Provenance engine for labware and samples: operations, actions and work
recorded against a relational store (SQLite locally, PostgreSQL in production).
"""

from pathlib import Path
from decouple import config


# ===============================================================
# Base paths
# ===============================================================
BASE_DIR = Path(__file__).resolve().parent.parent


# ===============================================================
# Security
# ===============================================================
SECRET_KEY = config("SECRET_KEY", default="insecure-key-change-me")
DEBUG = config("DEBUG", default=False, cast=bool)

ALLOWED_HOSTS = [
    h.strip()
    for h in str(config("ALLOWED_HOSTS", default="127.0.0.1,localhost")).split(",")
    if h.strip()
]


# ===============================================================
# Installed apps
# ===============================================================
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "provenance.apps.ProvenanceConfig",
]


# ===============================================================
# Database
# ===============================================================
# Row locks (select_for_update) only take effect on PostgreSQL.
# SQLite serialises writers at the database level instead.
DJANGO_ENV = config("DJANGO_ENV", default="dev").lower()

if DJANGO_ENV == "production":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": config("DB_NAME", default="labtrack_db"),
            "USER": config("DB_USER", default="labtrack_user"),
            "PASSWORD": config("DB_PASSWORD", default="StrongPasswordHere"),
            "HOST": config("DB_HOST", default="127.0.0.1"),
            "PORT": config("DB_PORT", default="5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ===============================================================
# Internationalization
# ===============================================================
LANGUAGE_CODE = "en-gb"
TIME_ZONE = config("TIME_ZONE", default="Europe/London")
USE_I18N = True
USE_TZ = True


# ===============================================================
# Provenance engine
# ===============================================================
PROVENANCE_AUDIT_OPERATIONS = config("PROVENANCE_AUDIT_OPERATIONS", default=True, cast=bool)

PROVENANCE_OPERATION_TYPES = {
    "clean_out": config("PROVENANCE_OP_CLEAN_OUT", default="Clean out"),
    "reactivate": config("PROVENANCE_OP_REACTIVATE", default="Reactivate"),
    "unrelease": config("PROVENANCE_OP_UNRELEASE", default="Unrelease"),
    "section": config("PROVENANCE_OP_SECTION", default="Section"),
}


# ===============================================================
# Logging
# ===============================================================
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s %(levelname)s %(name)s: %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "standard",
        },
    },
    "loggers": {
        "provenance": {
            "handlers": ["console"],
            "level": config("PROVENANCE_LOG_LEVEL", default="INFO"),
            "propagate": False,
        },
    },
}
