"""
Notification Port.

Booking and cancellation tell participants what happened through a
``NotificationPort``. Delivery is best effort: the ``NotificationDispatcher``
runs the port (optionally on a worker thread), logs any failure and never
lets it reach the caller of the Booking Service.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from utils.emailer import send_email

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Contact:
    name: str
    email: str


@dataclass(frozen=True)
class InterviewSummary:
    interview_id: int
    title: str
    start_time: datetime
    end_time: datetime
    candidate_name: str
    interviewer_name: str
    video_link: Optional[str] = None
    description: Optional[str] = None


def contact_for(user) -> Optional[Contact]:
    if user is None:
        return None
    return Contact(name=user.name, email=user.email)


def summarize(interview) -> InterviewSummary:
    return InterviewSummary(
        interview_id=interview.id,
        title=interview.title,
        start_time=interview.start_time,
        end_time=interview.end_time,
        candidate_name=interview.candidate.name if interview.candidate else "",
        interviewer_name=interview.interviewer.name if interview.interviewer else "",
        video_link=interview.video_link,
        description=interview.description,
    )


class NotificationError(Exception):
    pass


class NotificationPort:
    """Outbound interface for participant notifications."""

    def notify_booked(self, candidate_contact: Contact, interviewer_contact: Contact,
                      summary: InterviewSummary) -> None:
        raise NotImplementedError

    def notify_cancelled(self, candidate_contact: Contact, summary: InterviewSummary,
                         reason: Optional[str] = None,
                         interviewer_contact: Optional[Contact] = None) -> None:
        raise NotImplementedError


def _when(summary: InterviewSummary) -> str:
    return (f"{summary.start_time:%A, %d %B %Y %H:%M} - {summary.end_time:%H:%M} UTC")


class EmailNotificationPort(NotificationPort):
    def __init__(self, smtp_settings: dict):
        self.smtp_settings = smtp_settings

    def _send(self, to_email: str, subject: str, body: str) -> None:
        ok, err = send_email(to_email, subject, body, settings=self.smtp_settings)
        if not ok:
            raise NotificationError(f"email to {to_email} not sent: {err}")

    def notify_booked(self, candidate_contact, interviewer_contact, summary):
        lines = [
            f"Hi {candidate_contact.name},",
            "",
            f"Your interview \"{summary.title}\" with {summary.interviewer_name} is scheduled.",
            f"When: {_when(summary)}",
        ]
        if summary.video_link:
            lines.append(f"Video link: {summary.video_link}")
        self._send(candidate_contact.email, f"Interview Scheduled: {summary.title}", "\n".join(lines))

        body = "\n".join([
            f"Hi {interviewer_contact.name},",
            "",
            f"{summary.candidate_name} booked \"{summary.title}\".",
            f"When: {_when(summary)}",
        ])
        self._send(interviewer_contact.email, f"New Interview Scheduled: {summary.title}", body)

    def notify_cancelled(self, candidate_contact, summary, reason=None, interviewer_contact=None):
        lines = [
            f"Hi {candidate_contact.name},",
            "",
            f"The interview \"{summary.title}\" planned for {_when(summary)} was cancelled.",
        ]
        if reason:
            lines.append(f"Reason: {reason}")
        subject = f"Interview Cancelled: {summary.title}"
        self._send(candidate_contact.email, subject, "\n".join(lines))

        if interviewer_contact is not None:
            self._send(interviewer_contact.email, subject, "\n".join(
                [f"Hi {interviewer_contact.name},", ""] + lines[2:]
            ))


class RecordingNotificationPort(NotificationPort):
    """Keeps calls in memory; used by tests and when SMTP is not configured."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, tuple]] = []

    def notify_booked(self, candidate_contact, interviewer_contact, summary):
        if self.fail:
            raise NotificationError("notifier down")
        self.sent.append(("booked", (candidate_contact, interviewer_contact, summary)))

    def notify_cancelled(self, candidate_contact, summary, reason=None, interviewer_contact=None):
        if self.fail:
            raise NotificationError("notifier down")
        self.sent.append(("cancelled", (candidate_contact, summary, reason, interviewer_contact)))


class NotificationDispatcher:
    """Best-effort, failure-is-logged-not-propagated wrapper around a port."""

    def __init__(self, port: NotificationPort, run_async: bool = False, workers: int = 2):
        self.port = port
        self._executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="notify") if run_async else None

    def booked(self, candidate_contact, interviewer_contact, summary) -> None:
        self._dispatch("booked", self.port.notify_booked,
                       candidate_contact, interviewer_contact, summary)

    def cancelled(self, candidate_contact, summary, reason=None, interviewer_contact=None) -> None:
        self._dispatch("cancelled", self.port.notify_cancelled,
                       candidate_contact, summary, reason, interviewer_contact)

    def _dispatch(self, kind, fn, *args) -> None:
        if self._executor is None:
            self._run(kind, fn, *args)
            return
        try:
            self._executor.submit(self._run, kind, fn, *args)
        except RuntimeError as exc:
            # executor shut down during interpreter exit
            logger.warning("notification %s dropped: %s", kind, exc)

    @staticmethod
    def _run(kind, fn, *args) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("notification %s failed", kind)

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
