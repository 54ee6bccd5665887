"""
Document presentation - category colours, type icons, size labels and stats
"""
import enum
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel


class DocumentCategory(str, enum.Enum):
    PLANNING = "Planning"
    MUSIC = "Musique"
    CONTRACTS = "Contrats"
    LEGAL = "Légal"
    PHOTOS = "Photos"
    INVOICES = "Factures"
    LISTS = "Listes"
    COMMUNICATIONS = "Communications"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Optional[str]) -> "DocumentCategory":
        for category in cls:
            if category.value == value:
                return category
        return cls.OTHER

    @property
    def color(self) -> str:
        return CATEGORY_COLORS[self]

    @property
    def is_quick_access(self) -> bool:
        return self in (DocumentCategory.PLANNING, DocumentCategory.LEGAL, DocumentCategory.CONTRACTS)


CATEGORY_COLORS = {
    DocumentCategory.PLANNING: "bg-purple-100 text-purple-800",
    DocumentCategory.MUSIC: "bg-blue-100 text-blue-800",
    DocumentCategory.CONTRACTS: "bg-green-100 text-green-800",
    DocumentCategory.LEGAL: "bg-red-100 text-red-800",
    DocumentCategory.PHOTOS: "bg-yellow-100 text-yellow-800",
    DocumentCategory.INVOICES: "bg-orange-100 text-orange-800",
    DocumentCategory.LISTS: "bg-indigo-100 text-indigo-800",
    DocumentCategory.COMMUNICATIONS: "bg-pink-100 text-pink-800",
    DocumentCategory.OTHER: "bg-gray-100 text-gray-800",
}


class FileKind(str, enum.Enum):
    PDF = "pdf"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    TEXT = "text"
    WORD = "word"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    GENERIC = "generic"

    @property
    def icon(self) -> str:
        return FILE_ICONS[self]


FILE_ICONS = {
    FileKind.PDF: "📄",
    FileKind.IMAGE: "🖼️",
    FileKind.AUDIO: "🎵",
    FileKind.VIDEO: "🎥",
    FileKind.ARCHIVE: "📦",
    FileKind.TEXT: "📝",
    FileKind.WORD: "📝",
    FileKind.SPREADSHEET: "📊",
    FileKind.PRESENTATION: "📈",
    FileKind.GENERIC: "📄",
}

# Checked in order; first fragment contained in the MIME type wins
MIME_FRAGMENTS = [
    ("application/pdf", FileKind.PDF),
    ("image/", FileKind.IMAGE),
    ("audio/", FileKind.AUDIO),
    ("video/", FileKind.VIDEO),
    ("application/zip", FileKind.ARCHIVE),
    ("text/", FileKind.TEXT),
    ("presentation", FileKind.PRESENTATION),
    ("powerpoint", FileKind.PRESENTATION),
    ("sheet", FileKind.SPREADSHEET),
    ("excel", FileKind.SPREADSHEET),
    ("word", FileKind.WORD),
    ("document", FileKind.WORD),
]

SOURCE_LABELS = {
    "google_drive": "Google Drive",
    "manual": "Manuel",
}

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def file_kind(mime_type: Optional[str]) -> FileKind:
    if not mime_type:
        return FileKind.GENERIC
    for fragment, kind in MIME_FRAGMENTS:
        if fragment in mime_type:
            return kind
    return FileKind.GENERIC


def type_icon(mime_type: Optional[str]) -> str:
    return file_kind(mime_type).icon


def category_color(category: Optional[str]) -> str:
    return DocumentCategory.parse(category).color


def source_label(source: Optional[str]) -> str:
    if not source:
        return SOURCE_LABELS["manual"]
    return SOURCE_LABELS.get(source, source)


def format_file_size(size: Optional[int]) -> str:
    """1536 -> "1.5 KB". Unknown and empty sizes both read "0 Bytes"."""
    if not size or size <= 0:
        return "0 Bytes"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    rounded = round(value, 2)
    if rounded >= 1024 and unit < len(SIZE_UNITS) - 1:
        rounded = round(rounded / 1024, 2)
        unit += 1
    text = f"{rounded:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[unit]}"


def view_url(document: Any) -> Optional[str]:
    return document.google_drive_url or document.file_url


class DocumentView(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    category: Optional[str] = None
    category_color: str
    icon: str
    kind: str
    size_label: str
    source: str
    source_label: str
    is_quick_access: bool
    view_url: Optional[str] = None
    download_url: Optional[str] = None
    uploaded_by: Optional[str] = None
    assigned_to: List[int] = []
    vendor_id: Optional[int] = None
    created_at: Optional[datetime] = None


def present_document(document: Any) -> DocumentView:
    category = DocumentCategory.parse(document.category)
    kind = file_kind(document.mime_type)
    return DocumentView(
        id=document.id,
        name=document.name,
        description=document.description,
        category=document.category,
        category_color=category.color,
        icon=kind.icon,
        kind=kind.value,
        size_label=format_file_size(document.file_size),
        source=document.source or "manual",
        source_label=source_label(document.source),
        is_quick_access=category.is_quick_access,
        view_url=view_url(document),
        download_url=document.file_url,
        uploaded_by=document.uploaded_by,
        assigned_to=list(document.assigned_to or []),
        vendor_id=document.vendor_id,
        created_at=document.created_at,
    )


def split_quick_access(documents: Iterable[Any]) -> Dict[str, List[Any]]:
    """Planning, legal and contract documents go in the quick-access block"""
    quick, others = [], []
    for doc in documents:
        (quick if DocumentCategory.parse(doc.category).is_quick_access else others).append(doc)
    return {"quick_access": quick, "others": others}


def personal_documents(documents: Iterable[Any], person_id: int) -> List[Any]:
    return [doc for doc in documents if doc.assigned_to and person_id in doc.assigned_to]


def document_stats(documents: Iterable[Any]) -> Dict[str, int]:
    documents = list(documents)
    return {
        "total_documents": len(documents),
        "total_size": sum(doc.file_size or 0 for doc in documents),
        "categories_count": len({doc.category for doc in documents if doc.category}),
        "google_drive_count": sum(1 for doc in documents if doc.source == "google_drive"),
        "manual_count": sum(1 for doc in documents if doc.source == "manual"),
    }
