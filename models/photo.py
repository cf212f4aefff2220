# models/photo.py
from sqlalchemy import Column, BigInteger, String, Text, DateTime
from sqlalchemy.sql import func

from .base import Base, utcnow


class Photo(Base):
    __tablename__ = "photos"

    id = Column(BigInteger, primary_key=True, index=True)
    # Public URL of the stored object
    file_path = Column(String(length=1024), nullable=False)
    file_name = Column(String(length=255), nullable=False)
    caption = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Photo id={self.id} name={self.file_name}>"
