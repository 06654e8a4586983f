#
# Copyright (c) 2024, Daily
#
# SPDX-License-Identifier: BSD 2-Clause License
#

"""User-facing notifications ("toasts") raised by the editor session."""

from dataclasses import dataclass
from typing import List, Literal, Protocol

from loguru import logger

Level = Literal["success", "warning", "error"]


class Notifier(Protocol):
    """Receiver for the outcome of each editor action."""

    def success(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...


class LoggingNotifier:
    """Notifier that only writes to the log."""

    def success(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str) -> None:
        logger.error(message)


@dataclass
class Notification:
    level: Level
    message: str


class RecordingNotifier(LoggingNotifier):
    """Notifier that keeps every message for a UI to drain."""

    def __init__(self):
        self.notifications: List[Notification] = []

    def success(self, message: str) -> None:
        super().success(message)
        self.notifications.append(Notification("success", message))

    def warning(self, message: str) -> None:
        super().warning(message)
        self.notifications.append(Notification("warning", message))

    def error(self, message: str) -> None:
        super().error(message)
        self.notifications.append(Notification("error", message))

    def drain(self) -> List[Notification]:
        notifications, self.notifications = self.notifications, []
        return notifications

    def messages(self, level: Level) -> List[str]:
        return [n.message for n in self.notifications if n.level == level]
