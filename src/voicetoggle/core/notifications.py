"""User-visible status, warning and error messages."""

from enum import Enum, auto
from typing import Protocol

from ..utils.logger import get_logger

logger = get_logger(__name__)


class Severity(Enum):
    STATUS = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()


class Notifier(Protocol):
    def notify(self, message: str, severity: Severity = Severity.INFO) -> None: ...


class LogNotifier:
    """Sends notifications to the application log."""

    _LEVELS = {
        Severity.STATUS: "info",
        Severity.INFO: "info",
        Severity.WARNING: "warning",
        Severity.ERROR: "error",
    }

    def __init__(self, name: str = "voicetoggle.notify"):
        self._logger = get_logger(name)

    def notify(self, message: str, severity: Severity = Severity.INFO) -> None:
        getattr(self._logger, self._LEVELS[severity])(message)
