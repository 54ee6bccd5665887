from jourj.models.user import User
from jourj.models.event import Event
from jourj.models.person import Person
from jourj.models.vendor import Vendor
from jourj.models.task import Task
from jourj.models.timeline_item import TimelineItem
from jourj.models.document import Document

__all__ = [
    "User",
    "Event",
    "Person",
    "Vendor",
    "Task",
    "TimelineItem",
    "Document",
]
