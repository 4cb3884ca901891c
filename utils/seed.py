from datetime import datetime, timedelta

import click

from models import db
from models.slot import Slot
from models.user import ADMIN, INTERVIEWER, User
from security.password import hash_password
from utils.timeutil import utcnow

DEMO_INTERVIEWERS = [
    ("John Smith", "john.smith@company.com"),
    ("Sarah Johnson", "sarah.johnson@company.com"),
    ("Mike Davis", "mike.davis@company.com"),
]

# 45-minute slots on weekdays, UTC
DEMO_SLOT_HOURS = [(9, 0), (10, 0), (11, 0), (14, 0), (15, 0), (16, 0)]
DEMO_SLOT_MINUTES = 45


def _get_or_create_user(email, name, role, password):
    user = User.query.filter_by(email=email).first()
    if user is None:
        user = User(email=email, name=name, role=role, password_hash=hash_password(password))
        db.session.add(user)
        db.session.flush()
    return user


def seed_demo(days: int = 7):
    """Admin, three interviewers and a week of weekday slots. Safe to re-run."""
    _get_or_create_user("admin@interviewsync.com", "System Administrator", ADMIN, "admin12345")
    interviewers = [
        _get_or_create_user(email, name, INTERVIEWER, "interviewer123")
        for name, email in DEMO_INTERVIEWERS
    ]

    today = utcnow().date()
    created = 0
    for offset in range(1, days + 1):
        day = today + timedelta(days=offset)
        if day.weekday() >= 5:
            continue
        for interviewer in interviewers:
            for hour, minute in DEMO_SLOT_HOURS:
                start = datetime(day.year, day.month, day.day, hour, minute)
                end = start + timedelta(minutes=DEMO_SLOT_MINUTES)
                exists = Slot.query.filter(
                    Slot.interviewer_id == interviewer.id,
                    Slot.start_time < end,
                    Slot.end_time > start,
                ).first()
                if exists:
                    continue
                db.session.add(Slot(interviewer_id=interviewer.id, start_time=start, end_time=end))
                created += 1
    db.session.commit()
    return created


def register_cli(app):
    @app.cli.command("make-admin")
    @click.argument("email")
    def make_admin(email):
        """Promote a user to admin by email (bootstrap)."""
        user = User.query.filter_by(email=email.strip().lower()).first()
        if not user:
            click.echo("User not found")
            return

        if user.role != ADMIN:
            user.role = ADMIN
            db.session.commit()

        click.echo(f"{user.email} promoted to admin")

    @app.cli.command("seed-demo")
    @click.option("--days", default=7, show_default=True, help="How many days ahead to fill.")
    def seed_demo_command(days):
        """Create demo users and interview slots."""
        created = seed_demo(days)
        click.echo(f"Seeded {created} slots")
