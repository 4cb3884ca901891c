from models.db import db
from utils.timeutil import utcnow

CANDIDATE = "candidate"
INTERVIEWER = "interviewer"
ADMIN = "admin"
ROLES = (CANDIDATE, INTERVIEWER, ADMIN)


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120), nullable=False)

    # one of ROLES; admins are promoted through the CLI, never self-registered
    role = db.Column(db.String(20), nullable=False, default=CANDIDATE, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def summary(self):
        return {"id": self.id, "name": self.name, "email": self.email}
