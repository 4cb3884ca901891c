from datetime import datetime

import pytest

from services import notifications
from services.notifications import (
    Contact, EmailNotificationPort, InterviewSummary, NotificationDispatcher,
    NotificationError, RecordingNotificationPort,
)
from services.video import make_video_link_generator

CANDIDATE = Contact(name="Jane Doe", email="jane@example.com")
INTERVIEWER = Contact(name="John Smith", email="john@example.com")
SUMMARY = InterviewSummary(
    interview_id=1,
    title="Backend Developer Interview",
    start_time=datetime(2025, 1, 10, 9, 0),
    end_time=datetime(2025, 1, 10, 9, 45),
    candidate_name="Jane Doe",
    interviewer_name="John Smith",
    video_link="https://meet.jit.si/InterviewSync-abc",
)


@pytest.fixture
def outbox(monkeypatch):
    mails = []

    def fake_send(to_email, subject, body, settings=None):
        mails.append((to_email, subject, body))
        return True, None

    monkeypatch.setattr(notifications, "send_email", fake_send)
    return mails


class TestEmailNotificationPort:
    def test_booked_mails_both_participants(self, outbox):
        EmailNotificationPort({}).notify_booked(CANDIDATE, INTERVIEWER, SUMMARY)
        assert [to for to, _, _ in outbox] == ["jane@example.com", "john@example.com"]
        assert outbox[0][1] == "Interview Scheduled: Backend Developer Interview"
        assert "https://meet.jit.si/InterviewSync-abc" in outbox[0][2]
        assert "Friday, 10 January 2025 09:00 - 09:45 UTC" in outbox[0][2]

    def test_cancelled_includes_reason(self, outbox):
        EmailNotificationPort({}).notify_cancelled(CANDIDATE, SUMMARY, reason="Interviewer ill")
        assert len(outbox) == 1
        assert "Reason: Interviewer ill" in outbox[0][2]

    def test_send_failure_raises(self, monkeypatch):
        monkeypatch.setattr(notifications, "send_email", lambda *a, **k: (False, "refused"))
        with pytest.raises(NotificationError):
            EmailNotificationPort({}).notify_booked(CANDIDATE, INTERVIEWER, SUMMARY)


class TestDispatcher:
    def test_failures_are_logged_not_raised(self, caplog):
        dispatcher = NotificationDispatcher(RecordingNotificationPort(fail=True))
        dispatcher.booked(CANDIDATE, INTERVIEWER, SUMMARY)
        assert "notification booked failed" in caplog.text

    def test_async_delivery(self):
        port = RecordingNotificationPort()
        dispatcher = NotificationDispatcher(port, run_async=True, workers=1)
        dispatcher.cancelled(CANDIDATE, SUMMARY, "no show", INTERVIEWER)
        dispatcher.shutdown()
        assert port.sent == [("cancelled", (CANDIDATE, SUMMARY, "no show", INTERVIEWER))]


def test_video_links_are_unique():
    generate = make_video_link_generator("https://video.example.com/")
    first, second = generate(), generate()
    assert first.startswith("https://video.example.com/InterviewSync-")
    assert first != second


def test_seed_demo_command(app):
    from models.slot import Slot
    from models.user import User

    runner = app.test_cli_runner()
    result = runner.invoke(args=["seed-demo", "--days", "7"])
    assert "Seeded" in result.output
    assert User.query.filter_by(role="interviewer").count() == 3
    assert Slot.query.count() > 0

    # re-running creates nothing new
    result = runner.invoke(args=["seed-demo", "--days", "7"])
    assert "Seeded 0 slots" in result.output
