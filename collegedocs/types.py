from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentType(str, Enum):
    circular = 'circular'
    notice = 'notice'
    timetable = 'timetable'
    daily_timetable = 'daily-timetable'


class DocumentStatus(str, Enum):
    draft = 'draft'
    published = 'published'
    archived = 'archived'


class ExportFormat(str, Enum):
    txt = 'txt'
    pdf = 'pdf'
    html = 'html'
    png = 'png'


class CollegeSettings(BaseModel):
    college_name: str = "VIGNAN'S INSTITUTE OF ENGINEERING FOR WOMEN"
    college_short_name: str = 'VIEW'
    affiliation: str = 'Approved by AICTE & Affiliated to JNTU-GV, Vizianagaram'
    accreditation: str = 'Accredited by NBA for UG Programmes of EEE, ECE, CSE & IT | NAAC A+'
    certifications: str = 'ISO 9001:2015, ISO 14001:2015, ISO 45001:2018 Certified Institution'
    address: str = ''
    phone: str = ''
    email: str = ''
    website: str = ''
    logo_url: str = '/default-logo.png'
    updated_at: datetime = Field(default_factory=utcnow)


class GeneratedDocument(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    owner_id: str
    title: str
    document_type: DocumentType
    content: str

    metadata: dict[str, Any] = Field(default_factory=dict)
    version: int = 1
    parent_id: UUID | None = None
    status: DocumentStatus = DocumentStatus.draft

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
