"""
Task model - assignable to-do items without a fixed time slot
"""
from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey
from datetime import datetime
from jourj.database import Base


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String, nullable=False, default="medium")
    status = Column(String, nullable=False, default="pending")

    # Either a person or a vendor owns the task
    assigned_person_id = Column(Integer, ForeignKey("people.id"), nullable=True)
    assigned_vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True)

    duration_minutes = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
