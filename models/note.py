# models/note.py
from sqlalchemy import Column, BigInteger, String, Text, DateTime
from sqlalchemy.sql import func

from .base import Base, utcnow


class Note(Base):
    __tablename__ = "notes"

    id = Column(BigInteger, primary_key=True, index=True)
    sender = Column(String(length=32), nullable=False)
    message = Column(Text, nullable=False)
    # No FK constraint: the tree is rebuilt at read time and tolerates dangling parents
    parent_id = Column(BigInteger, nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<Note id={self.id} sender={self.sender} parent={self.parent_id}>"
