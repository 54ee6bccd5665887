"""
Person model - bride, groom, witnesses, family and guests
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from datetime import datetime
from jourj.database import Base


class Person(Base):
    __tablename__ = "people"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=True)  # "bride", "groom", "best-man", ...
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
