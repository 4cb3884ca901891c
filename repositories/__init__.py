from .base import paginate, storage_errors, transaction
from .slot_repository import SlotRepository
from .interview_repository import InterviewRepository
