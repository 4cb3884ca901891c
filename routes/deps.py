from flask import current_app

from models import db
from services.booking_service import BookingService
from services.slot_service import SlotService


def booking_service() -> BookingService:
    ext = current_app.extensions
    return BookingService(
        db.session,
        policy=ext["authorization_policy"],
        notifier=ext["notification_dispatcher"],
        video_link_generator=ext["video_link_generator"],
    )


def slot_service() -> SlotService:
    return SlotService(db.session, policy=current_app.extensions["authorization_policy"])
