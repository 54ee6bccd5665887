"""
Document model - contracts, invoices, playlists and photos attached to an event.
Files either live in local storage (source="manual") or on Google Drive.
"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from datetime import datetime

from jourj.database import Base


class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=True, index=True)

    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)

    # File metadata
    mime_type = Column(String, nullable=True)
    file_size = Column(Integer, nullable=True)
    file_path = Column(String, nullable=True)
    file_url = Column(String, nullable=True)
    google_drive_url = Column(String, nullable=True)
    source = Column(String, nullable=False, default="manual")  # "google_drive", "manual", ...

    # Person ids allowed to see this document in their personal space
    assigned_to = Column(JSON, nullable=False, default=list)

    uploaded_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
