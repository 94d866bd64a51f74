import sys
from pathlib import Path

from lifelog_cache.config import settings as app_settings

SYNC_ROOT = Path(__file__).resolve().parent

if str(SYNC_ROOT) not in sys.path:
    sys.path.insert(0, str(SYNC_ROOT))

DATABASE_PATH = Path(app_settings.cache.database_path).expanduser()
DATABASE_PATH.parent.mkdir(parents=True, exist_ok=True)

SECRET_KEY = "lifelog-cache-has-no-web-surface"
DEBUG = bool(app_settings.debug)
USE_TZ = True
TIME_ZONE = "UTC"

INSTALLED_APPS = [
    "lifelog_data.apps.LifelogDataConfig",
]

MIDDLEWARE: list[str] = []
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": str(DATABASE_PATH),
        "OPTIONS": {
            # Seconds to wait on a locked database.
            "timeout": 20,
            "init_command": "PRAGMA journal_mode=WAL;",
        },
    }
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "standard"},
    },
    "root": {"handlers": ["console"], "level": "DEBUG" if DEBUG else "INFO"},
}
