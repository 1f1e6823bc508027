"""
Workflow messages shown to the people driving the assessment flow.

Every failure caught at an initiating action is turned into a
Notification instead of propagating to the caller.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict
from uuid import uuid4


class WorkflowStage(str, Enum):
    """Stages of the recruiter's create-and-send dialog."""
    SETUP = "setup"
    QUESTIONS_READY = "questions_ready"
    TEST_CREATED = "test_created"
    SENT = "sent"


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass
class Notification:
    """
    A dismissable user-facing message.

    Attributes:
        level: success or error
        title: Short headline
        message: Detail text (candidate address, error text, counts)
    """
    level: NotificationLevel
    title: str
    message: str = ""
    notification_id: str = field(default_factory=lambda: uuid4().hex)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_error(self) -> bool:
        return self.level == NotificationLevel.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notification_id": self.notification_id,
            "level": self.level.value,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
