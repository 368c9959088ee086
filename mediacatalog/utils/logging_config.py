"""
Logging setup for the media catalog.

Loggers are grouped into categories by package prefix. Each category has
its own level, persisted in the config table so a noisy subsystem can be
quieted (or turned up for a bug report) without touching the others.
"""
import logging
from typing import Dict, Optional
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler

LOG_FILE_NAME = "media_catalog.log"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class LoggerCategory:
    """Subsystems that can be tuned independently"""
    CORE = "core"                  # Context wiring, policy, events
    STORE = "store"                # Collection reads and writes
    PREVIEW = "preview"            # Preview derivation and release
    UPLOAD = "upload"              # Draft sessions and commits
    CATALOG = "catalog"            # Loading, selection, deletes
    DATABASE = "database"          # SQLite medium
    UI = "ui"                      # Qt models


DEFAULT_LOG_LEVELS = {
    LoggerCategory.CORE: logging.INFO,
    LoggerCategory.STORE: logging.INFO,
    LoggerCategory.PREVIEW: logging.WARNING,
    LoggerCategory.UPLOAD: logging.INFO,
    LoggerCategory.CATALOG: logging.INFO,
    LoggerCategory.DATABASE: logging.WARNING,
    LoggerCategory.UI: logging.WARNING,
}


# Package prefixes owned by each category. Children inherit the level.
CATEGORY_PREFIXES = {
    LoggerCategory.CORE: ('mediacatalog.core.context', 'mediacatalog.core.policy',
                          'mediacatalog.core.events'),
    LoggerCategory.STORE: ('mediacatalog.core.store',),
    LoggerCategory.PREVIEW: ('mediacatalog.core.previews',),
    LoggerCategory.UPLOAD: ('mediacatalog.core.upload_session',),
    LoggerCategory.CATALOG: ('mediacatalog.core.catalog',),
    LoggerCategory.DATABASE: ('mediacatalog.core.database',),
    LoggerCategory.UI: ('mediacatalog.ui',),
}


def category_for(logger_name: str) -> Optional[str]:
    """Category owning ``logger_name``, or None for loggers outside the catalog."""
    for category, prefixes in CATEGORY_PREFIXES.items():
        for prefix in prefixes:
            if logger_name == prefix or logger_name.startswith(prefix + '.'):
                return category
    return None


def _config_key(category: str) -> str:
    return f'log_level_{category}'


class LoggingManager:
    """Per-category levels plus the file and console handlers"""

    def __init__(self, log_dir: Optional[Path] = None, db_manager=None):
        """
        Args:
            log_dir: Directory for the rotating log file
            db_manager: DatabaseManager used to persist category levels
        """
        self.log_dir = log_dir or (Path.home() / ".media-catalog" / "logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.db_manager = db_manager
        self._category_levels: Dict[str, int] = dict(DEFAULT_LOG_LEVELS)
        if self.db_manager:
            self._read_saved_levels()

    def _read_saved_levels(self):
        for category, default_level in DEFAULT_LOG_LEVELS.items():
            saved = self.db_manager.get_config(_config_key(category))
            if saved is None:
                continue
            level = logging.getLevelName(saved)
            if isinstance(level, int):
                self._category_levels[category] = level
            else:
                logging.getLogger(__name__).warning(
                    f"Ignoring unknown log level {saved!r} for {category}"
                )

    def get_category_level(self, category: str) -> int:
        return self._category_levels.get(category, logging.INFO)

    def set_category_level(self, category: str, level: int):
        """Change a category's level now and remember it for the next run"""
        self._category_levels[category] = level
        if self.db_manager:
            self.db_manager.set_config(_config_key(category), logging.getLevelName(level))
        self._apply(category, level)

    def _apply(self, category: str, level: int):
        for prefix in CATEGORY_PREFIXES.get(category, ()):
            logging.getLogger(prefix).setLevel(level)

    def setup_logging(self, root_level: int = logging.INFO):
        """
        Install a midnight-rotating file handler and a console handler on
        the root logger, replacing whatever was there.

        Args:
            root_level: Level for loggers outside the catalog's categories
        """
        formatter = logging.Formatter(LOG_FORMAT)

        file_handler = TimedRotatingFileHandler(
            self.log_dir / LOG_FILE_NAME,
            when="midnight",
            backupCount=7,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)

        console = logging.StreamHandler()
        console.setFormatter(formatter)

        root = logging.getLogger()
        root.setLevel(root_level)
        for handler in list(root.handlers):
            root.removeHandler(handler)
        root.addHandler(file_handler)
        root.addHandler(console)

        for category, level in self._category_levels.items():
            self._apply(category, level)

        # qasync logs every loop iteration at DEBUG
        logging.getLogger('qasync').setLevel(logging.WARNING)
        logging.getLogger('asyncio').setLevel(logging.WARNING)

    def get_all_levels(self) -> Dict[str, int]:
        return dict(self._category_levels)


_logging_manager: Optional[LoggingManager] = None


def get_logging_manager(db_manager=None, log_dir: Optional[Path] = None) -> LoggingManager:
    """Process-wide LoggingManager, created on first use"""
    global _logging_manager
    if _logging_manager is None:
        _logging_manager = LoggingManager(log_dir=log_dir, db_manager=db_manager)
    return _logging_manager


def setup_logging(db_manager=None, log_dir: Optional[Path] = None, root_level: int = logging.INFO):
    manager = get_logging_manager(db_manager, log_dir=log_dir)
    manager.setup_logging(root_level=root_level)
    return manager
