# models.py
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import func

db = SQLAlchemy()

TITLE_LENGTH = 60


class Conversation(db.Model):
    __tablename__ = "conversations"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(120), index=True)
    title = db.Column(db.String(255), nullable=False)
    messages = db.Column(db.JSON, nullable=False, default=list)  # [{role, content}]
    model_used = db.Column(db.String(120))
    total_tokens = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, server_default=func.now())
    updated_at = db.Column(db.DateTime, server_default=func.now(), onupdate=func.now(), index=True)

    def summary(self):
        return {
            "id": self.id,
            "title": self.title,
            "model_used": self.model_used,
            "message_count": len(self.messages or []),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def to_dict(self):
        return dict(self.summary(),
                    user_id=self.user_id,
                    messages=self.messages or [],
                    total_tokens=self.total_tokens,
                    created_at=self.created_at.isoformat() if self.created_at else None)


class UsageEvent(db.Model):
    __tablename__ = "usage_events"
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(120), index=True)
    action = db.Column(db.String(50), nullable=False, index=True)  # chat|quiz|image|translate|vision
    feature = db.Column(db.String(120))
    details = db.Column(db.JSON)
    session_id = db.Column(db.String(120))
    created_at = db.Column(db.DateTime, server_default=func.now(), index=True)


def default_title(messages) -> str:
    for msg in messages or []:
        if msg.get('role') == 'user' and isinstance(msg.get('content'), str) and msg['content'].strip():
            return msg['content'].strip()[:TITLE_LENGTH]
    return "New conversation"


def valid_messages(messages) -> bool:
    if not isinstance(messages, list):
        return False
    return all(isinstance(m, dict) and isinstance(m.get('role'), str) and isinstance(m.get('content'), str)
               for m in messages)
