"""Crypt event logging for RPGM Crypt.

Events are dropped unless console output is switched on. The command line
switches it on with ``-v``, which also lowers the threshold to DEBUG so
key detection and header previews show up.
"""

import sys
import time
from typing import Optional, Dict, Any


class CryptLogger:
    """Singleton logger for encryption and decryption events."""

    LEVELS = {
        'ERROR': 0,    # Failed files
        'WARNING': 1,  # Skipped files, unreadable key sources
        'INFO': 2,     # File steps
        'DEBUG': 3     # Key heuristics, hex previews
    }

    _instance = None

    @classmethod
    def get_instance(cls) -> 'CryptLogger':
        if cls._instance is None:
            cls._instance = CryptLogger()
        return cls._instance

    def __init__(self, level: str = 'INFO', enabled: bool = False):
        self.level_threshold = self.LEVELS[level]
        self.enabled = enabled
        self._start_time = time.time()

    def set_level(self, level: str):
        """Set the lowest level that is printed.

        Raises:
            KeyError: If level is not one of LEVELS
        """
        self.level_threshold = self.LEVELS[level]

    def enable(self, enabled: bool = True):
        self.enabled = enabled

    def verbose(self):
        """Print everything, down to DEBUG."""
        self.enable(True)
        self.set_level('DEBUG')

    def is_enabled_for(self, level: str) -> bool:
        return self.enabled and self.LEVELS.get(level, 1) <= self.level_threshold

    def log(self, level: str, message: str, context: Optional[Dict[str, Any]] = None):
        """Print an event to stderr if its level passes the threshold.

        Args:
            level: Log level ('ERROR', 'WARNING', 'INFO', 'DEBUG')
            message: Log message
            context: Optional dict of values shown as ``name=value``
        """
        if not self.is_enabled_for(level):
            return

        elapsed = time.time() - self._start_time
        ctx_str = ""
        if context:
            ctx_str = " | " + ", ".join(f"{k}={v}" for k, v in context.items())
        print(f"[CRYPT:{level}] {elapsed:.3f}s {message}{ctx_str}", file=sys.stderr)


def crypt_log(level: str, message: str, context: Optional[Dict[str, Any]] = None):
    """Log a crypt event using the singleton logger."""
    CryptLogger.get_instance().log(level, message, context)
