from .db import db
from .user import User
from .auth_session import AuthSession
from .audit_log import AuditLog
from .slot import Slot
from .interview import Interview
