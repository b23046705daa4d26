"""Outbound notifications. Delivery never affects the request that caused it."""
import abc
import enum
import logging
import smtplib
from email.message import EmailMessage
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks

from tasktracker.core.config import Settings

logger = logging.getLogger("tasktracker.notifications")


class NotificationKind(str, enum.Enum):
    WELCOME = "welcome"
    TASK_ASSIGNED = "task_assigned"


class NotificationSink(abc.ABC):
    @abc.abstractmethod
    def notify(self, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        pass


class NullNotificationSink(NotificationSink):
    def notify(self, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        logger.debug("Email disabled, dropping %s notification", kind.value)


def render_email(kind: NotificationKind, payload: Dict[str, Any]):
    """Return ``(subject, html)`` for a notification."""
    if kind == NotificationKind.WELCOME:
        return (
            "Welcome to Task Management System",
            f"<h1>Welcome {payload['username']}!</h1>"
            "<p>Thank you for registering.</p>"
            "<p>You can now login and manage your tasks.</p>",
        )
    if kind == NotificationKind.TASK_ASSIGNED:
        return (
            "New Task Assigned",
            "<h2>You have a new task!</h2>"
            f"<p><strong>Task:</strong> {payload['task_title']}</p>"
            f"<p><strong>Assigned by:</strong> {payload['assigner']}</p>"
            "<p>Please login to see details.</p>",
        )
    raise ValueError(f"Unknown notification kind: {kind}")


class SmtpNotificationSink(NotificationSink):
    def __init__(self, settings: Settings):
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.user = settings.EMAIL_USER
        self.password = settings.EMAIL_PASSWORD
        self.sender = settings.EMAIL_FROM

    def notify(self, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        subject, html = render_email(kind, payload)
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = payload["email"]
        message["Subject"] = subject
        message.set_content(html, subtype="html")

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                smtp.starttls()
                if self.user:
                    smtp.login(self.user, self.password or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("Email error (%s to %s): %s", kind.value, payload["email"], exc)
            return
        logger.info("%s email sent to %s", kind.value, payload["email"])


def build_notification_sink(settings: Settings) -> NotificationSink:
    if settings.email_enabled:
        return SmtpNotificationSink(settings)
    return NullNotificationSink()


class Notifier:
    """Schedules notifications to run after the response has been sent."""

    def __init__(self, sink: NotificationSink, background_tasks: Optional[BackgroundTasks] = None):
        self.sink = sink
        self.background_tasks = background_tasks

    def send(self, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        if self.background_tasks is None:
            self._deliver(kind, payload)
        else:
            self.background_tasks.add_task(self._deliver, kind, payload)

    def _deliver(self, kind: NotificationKind, payload: Dict[str, Any]) -> None:
        try:
            self.sink.notify(kind, payload)
        except Exception:
            logger.exception("Notification %s failed", kind.value)
