# models/memory.py
from sqlalchemy import Column, BigInteger, String, Text, Date, DateTime
from sqlalchemy.sql import func

from .base import Base, utcnow


class Memory(Base):
    __tablename__ = "memories"

    id = Column(BigInteger, primary_key=True, index=True)
    photo_url = Column(String(length=1024), nullable=False)
    caption = Column(String(length=255), nullable=False)
    description = Column(Text, nullable=True)
    memory_date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Memory id={self.id} date={self.memory_date}>"
