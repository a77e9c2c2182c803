from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, Field, model_validator

from .types import DocumentType


class RequestValidationError(ValueError):
    pass


_INJECTION_PATTERNS = [
    re.compile(r'\[SYSTEM\]', re.IGNORECASE),
    re.compile(r'\[USER\]', re.IGNORECASE),
    re.compile(r'\[ASSISTANT\]', re.IGNORECASE),
    re.compile(r'ignore previous instructions', re.IGNORECASE),
    re.compile(r'disregard all', re.IGNORECASE),
]


def sanitize_for_prompt(text: str) -> str:
    for pattern in _INJECTION_PATTERNS:
        text = pattern.sub('', text)
    return text.strip()


def clip_text(value: Any, max_length: int = 500) -> str:
    if not isinstance(value, str):
        return ''
    return value[:max_length].strip()


def clip_list(value: Any, max_items: int = 50, item_max_length: int = 200) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item[:item_max_length].strip() for item in value[:max_items] if isinstance(item, str)]


def clamp_int(value: Any, low: int, high: int, default: int) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value != value:
        return default
    return int(min(max(value, low), high))


def _clean_fields(data: Any, limits: dict[str, tuple[int, bool]]) -> dict[str, Any]:
    """Clip each text field to its limit, sanitizing the free-form ones."""
    if isinstance(data, BaseModel):
        data = data.model_dump()
    elif not isinstance(data, dict):
        data = {}
    cleaned = dict(data)
    for name, (max_length, sanitize) in limits.items():
        value = clip_text(data.get(name), max_length)
        cleaned[name] = sanitize_for_prompt(value) if sanitize else value
    return cleaned


def _clip_mapping(value: Any, *, max_items: int = 10) -> dict[str, str]:
    if not isinstance(value, dict):
        return {}
    result: dict[str, str] = {}
    for key, item in list(value.items())[:max_items]:
        if isinstance(item, str):
            result[clip_text(str(key), 20)] = sanitize_for_prompt(clip_text(item, 100))
    return result


class ExamEntry(BaseModel):
    date: str = ''
    day: str = ''
    subject: str = ''
    time: str = ''
    duration: str = ''

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        return _clean_fields(data, {
            'date': (50, False),
            'day': (20, False),
            'subject': (100, True),
            'time': (50, False),
            'duration': (50, False),
        })


class BreakSlot(BaseModel):
    after_period: int = 1
    duration: str = ''
    name: str = ''

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        cleaned = _clean_fields(data, {'duration': (50, False), 'name': (50, True)})
        cleaned['after_period'] = clamp_int(cleaned.get('after_period'), 1, 12, 1)
        return cleaned


class FacultyAssignment(BaseModel):
    subject: str = ''
    faculty: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        cleaned = _clean_fields(data, {'subject': (100, True)})
        cleaned['faculty'] = _clip_mapping(cleaned.get('faculty'))
        return cleaned


class ClassPeriod(BaseModel):
    period_number: int = 1
    subject: str = ''
    faculty: str = ''
    classroom: str = ''

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        cleaned = _clean_fields(data, {
            'subject': (100, True),
            'faculty': (100, True),
            'classroom': (50, False),
        })
        cleaned['period_number'] = clamp_int(cleaned.get('period_number'), 1, 12, 1)
        return cleaned


class DaySchedule(BaseModel):
    day: str = ''
    periods: list[ClassPeriod] = Field(default_factory=list)

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        cleaned = _clean_fields(data, {'day': (20, False)})
        cleaned['periods'] = _object_list(cleaned.get('periods'), 12)
        return cleaned


_REQUEST_TEXT_LIMITS = {
    'title': (200, True),
    'event_name': (200, True),
    'event_date': (50, False),
    'document_date': (50, False),
    'department': (200, True),
    'venue': (200, True),
    'instructions': (2000, True),
    'additional_notes': (1000, True),
    'exam_name': (200, True),
    'semester': (50, False),
    'academic_year': (50, False),
    'semester_start_date': (50, False),
    'period_duration': (50, False),
}


def _object_list(value: Any, max_items: int) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [
        item.model_dump() if isinstance(item, BaseModel) else item if isinstance(item, dict) else {}
        for item in value[:max_items]
    ]


class GenerationRequest(BaseModel):
    """Everything the generator is told about one document.

    Input is clipped rather than rejected: long text is truncated, numbers are
    clamped into range and list lengths are capped. Only an unknown document
    type or an empty title is an error.
    """

    document_type: DocumentType
    title: str
    event_name: str = ''
    event_date: str = ''
    document_date: str = ''
    department: str = ''
    venue: str = ''
    instructions: str = ''
    additional_notes: str = ''
    exam_name: str = ''
    semester: str = ''
    entries: list[ExamEntry] = Field(default_factory=list)
    academic_year: str = ''
    semester_start_date: str = ''
    number_of_periods: int = 6
    period_duration: str = ''
    subjects: list[str] = Field(default_factory=list)
    faculty: list[str] = Field(default_factory=list)
    classrooms: list[str] = Field(default_factory=list)
    number_of_sections: int = 1
    section_names: list[str] = Field(default_factory=list)
    faculty_subject_mapping: list[FacultyAssignment] = Field(default_factory=list)
    breaks: list[BreakSlot] = Field(default_factory=list)
    day_schedules: list[DaySchedule] = Field(default_factory=list)
    class_coordinators: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode='before')
    @classmethod
    def _clip(cls, data: Any) -> dict[str, Any]:
        cleaned = _clean_fields(data, _REQUEST_TEXT_LIMITS)
        cleaned['number_of_periods'] = clamp_int(cleaned.get('number_of_periods'), 1, 12, 6)
        cleaned['number_of_sections'] = clamp_int(cleaned.get('number_of_sections'), 1, 10, 1)
        cleaned['subjects'] = clip_list(cleaned.get('subjects'), 20, 100)
        cleaned['faculty'] = clip_list(cleaned.get('faculty'), 50, 100)
        cleaned['classrooms'] = clip_list(cleaned.get('classrooms'), 20, 50)
        cleaned['section_names'] = clip_list(cleaned.get('section_names'), 10, 50)
        cleaned['entries'] = _object_list(cleaned.get('entries'), 30)
        cleaned['breaks'] = _object_list(cleaned.get('breaks'), 10)
        cleaned['faculty_subject_mapping'] = _object_list(cleaned.get('faculty_subject_mapping'), 20)
        cleaned['day_schedules'] = _object_list(cleaned.get('day_schedules'), 7)
        cleaned['class_coordinators'] = _clip_mapping(cleaned.get('class_coordinators'))
        return cleaned


def parse_request(raw: Any) -> GenerationRequest:
    if not isinstance(raw, dict):
        raise RequestValidationError('Invalid request body')
    valid_types = [item.value for item in DocumentType]
    raw_type = raw.get('document_type')
    if isinstance(raw_type, DocumentType):
        raw_type = raw_type.value
    if raw_type not in valid_types:
        raise RequestValidationError(f'Invalid document type. Must be one of: {", ".join(valid_types)}')
    request = GenerationRequest.model_validate({**raw, 'document_type': raw_type})
    if not request.title:
        raise RequestValidationError('Title is required and must not be empty')
    return request


_BASE_PROMPT = """You are an expert academic document generator. Generate formal, professional academic documents.

CRITICAL FORMATTING RULES:
1. DO NOT include any college header or institution details - it will be added separately
2. DO NOT use markdown symbols like **, *, #, ---, or any other markdown
3. Use UPPERCASE for headings and important text
4. Format dates as DD.MM.YYYY (e.g., 23.01.2026)
5. For TABLES: Use this EXACT structured format that can be parsed:
   [TABLE]
   HEADER1 | HEADER2 | HEADER3
   value1 | value2 | value3
   [/TABLE]
6. DO NOT use ASCII borders like +---+---+ or |----|

Use proper academic language and formal conventions."""

_FOOTER_RULE = """Use this EXACT format with [FOOTER_ROW] tags, all on one line:
   [FOOTER_ROW]
   Copy to: All Deans / All HODs / Staff | Read in all Class Rooms | {signatory}
   [/FOOTER_ROW]
   This creates a LEFT aligned copy list, a CENTER aligned note and a RIGHT aligned signatory."""

_CIRCULAR_PROMPT = """Generate an official college circular with this EXACT structure (NO college header):

1. Reference Number and Date:
   Ref.No.: {short_name}/Principal/Cir/[YEAR]/[NUMBER]
   Date: [DOCUMENT_DATE in DD.MM.YYYY format]
2. TITLE: CIRCULAR (centered, uppercase)
3. BODY: Start with "This is to inform all the Staff and Students that..."
   mentioning the event, venue, time and instructions in flowing paragraphs.
4. EVENT DETAILS as a table:
   [TABLE]
   EVENT DETAILS | INFORMATION
   Event Name | [Name of Event]
   Date | [Event Date]
   Time | [Event Time]
   Venue | [Venue]
   [/TABLE]
5. NOTES section with numbered reminders.
6. GREETING (centered): HAPPY [EVENT NAME]
7. FOOTER: {footer}

Place the Date IMMEDIATELY below the Reference Number."""

_NOTICE_PROMPT = """Generate an official college notice with this EXACT structure (NO college header):

1. Reference Number and Date:
   Ref.No.: {short_name}/[Department]/Notice/[YEAR]/[NUMBER]
   Date: [DOCUMENT_DATE in DD.MM.YYYY format]
2. TITLE: NOTICE (centered, uppercase)
3. SUBJECT LINE: Sub: [Subject of Notice]
4. BODY: Clear, concise announcement starting with formal address
5. KEY DETAILS as a [TABLE]...[/TABLE] block if applicable
6. DATES/DEADLINES clearly stated
7. FOOTER: {footer}

Place the Date IMMEDIATELY below the Reference Number."""

_TIMETABLE_PROMPT = """Generate a formatted examination timetable (NO college header):

1. TITLE: EXAMINATION TIMETABLE FOR [EXAM NAME] (centered, uppercase)
2. INFO LINES: Department, Semester, w.e.f Date
3. EXAMINATION SCHEDULE TABLE:
   [TABLE]
   DATE | DAY | SUBJECT | TIME | DURATION
   [Date1] | [Day1] | [Subject1] | [Time1] | [Duration1]
   [/TABLE]
4. IMPORTANT INSTRUCTIONS (numbered)
5. FOOTER:
   Controller of Examinations
   Date: [Document Date in DD.MM.YYYY]

NO ASCII table borders. Use [TABLE]...[/TABLE] format only."""

_DAILY_TIMETABLE_PROMPT = """Generate a SINGLE-PAGE academic timetable (NO college header).
ALL content MUST fit on ONE A4 page: compact tables, subject abbreviations (3-5 chars) in cells.

1. TITLE (centered, uppercase): TIME TABLE FOR THE ACADEMIC YEAR [YEAR] (SEM-[N])
2. ACADEMIC INFO: w.e.f Date and Department, one line each
3. For EACH section, one below another:
   Class: [Year]-[Branch]-[Section] - Coordinator: [Coordinator Name]
   [TABLE]
   DAY | 9:10-10:00 | 10:00-10:50 | BREAK | 11:10-12:00 | 12:00-12:50 | LUNCH | 1:40-2:30 | 2:30-3:20 | 3:20-4:10
   MON | [Abbr] | [Abbr] | BREAK | [Abbr] | [Abbr] | LUNCH | [Abbr] | [Abbr] | [Abbr]
   [/TABLE]
   Use 3-letter day abbreviations (MON to SAT).
4. FACULTY MAPPING TABLE:
   [TABLE]
   COURSE NAME | SEC-A | SEC-B | SEC-C
   [Subject Full Name] | [Faculty] | [Faculty] | [Faculty]
   [/TABLE]
5. FOOTER (right-aligned): Date: [Document Date in DD.MM.YYYY]

NO signature blocks. Uppercase for the main title only.
No faculty member may be in two sections during the same period."""


def build_system_prompt(document_type: DocumentType, short_name: str = '') -> str:
    short_name = sanitize_for_prompt(clip_text(short_name, 50)) or 'VIEW'
    if document_type == DocumentType.circular:
        body = _CIRCULAR_PROMPT.format(short_name=short_name, footer=_FOOTER_RULE.format(signatory='PRINCIPAL'))
    elif document_type == DocumentType.notice:
        body = _NOTICE_PROMPT.format(short_name=short_name, footer=_FOOTER_RULE.format(signatory='HOD / Coordinator'))
    elif document_type == DocumentType.timetable:
        body = _TIMETABLE_PROMPT
    elif document_type == DocumentType.daily_timetable:
        body = _DAILY_TIMETABLE_PROMPT
    else:
        return _BASE_PROMPT
    return f'{_BASE_PROMPT}\n\n{body}'


def _daily_timetable_lines(request: GenerationRequest) -> list[str]:
    lines = [
        f'Academic Year: {request.academic_year}',
        f'Semester Start Date (w.e.f): {request.semester_start_date}',
        f'Department: {request.department}',
        f'Semester: {request.semester}',
        f'Number of Periods: {request.number_of_periods}',
        f'Period Duration: {request.period_duration}',
        f'Number of Sections: {request.number_of_sections}',
    ]
    coordinators = {k: v for k, v in request.class_coordinators.items() if v}
    if coordinators:
        lines.append('')
        lines.append('CLASS COORDINATORS (one per section):')
        lines.extend(f'  {section}: {name}' for section, name in coordinators.items())
    if request.section_names:
        lines.append(f'Section Names: {", ".join(request.section_names)}')
    if request.subjects:
        lines.append(f'Subjects: {", ".join(s for s in request.subjects if s)}')
    if request.faculty:
        lines.append(f'Faculty Members: {", ".join(f for f in request.faculty if f)}')
    if request.classrooms:
        lines.append(f'Classrooms: {", ".join(c for c in request.classrooms if c)}')

    if request.faculty_subject_mapping:
        lines.append('')
        lines.append('FACULTY-SUBJECT MAPPING (use this exactly):')
        for mapping in request.faculty_subject_mapping:
            assignments = ', '.join(f'{section}: {name}' for section, name in mapping.faculty.items() if name)
            if assignments:
                lines.append(f'  {mapping.subject} -> {assignments}')
        lines.append('Ensure no faculty member is assigned to two different sections during the same period.')

    if request.breaks:
        lines.append('')
        lines.append('Break Schedule:')
        lines.extend(f'- {b.name}: After Period {b.after_period} ({b.duration})' for b in request.breaks)

    if any(p.subject for schedule in request.day_schedules for p in schedule.periods):
        lines.append('')
        lines.append('Pre-assigned Schedule:')
        for schedule in request.day_schedules:
            filled = [p for p in schedule.periods if p.subject]
            if not filled:
                continue
            lines.append(f'{schedule.day}:')
            lines.extend(
                f'  Period {p.period_number}: {p.subject} - {p.faculty} ({p.classroom})' for p in filled
            )
        lines.append('Complete any empty slots while ensuring no faculty conflicts.')
    else:
        lines.append('')
        lines.append('Auto-generate an optimal timetable ensuring:')
        lines.append('1. Each subject gets adequate periods per week')
        lines.append('2. NO faculty member teaches two different sections at the same time')
        lines.append('3. Subjects are distributed evenly across the week')
        lines.append('4. Practical/lab sessions (if any) get consecutive periods')

    if request.instructions:
        lines.append('')
        lines.append('Additional Instructions/Notes:')
        lines.append(request.instructions)

    sections = ', '.join(request.section_names) or 'SEC-A'
    lines.append('')
    lines.append(f'GENERATE one timetable per section ({sections}) plus a faculty mapping table.')
    lines.append(f'End with ONLY the document date: {request.document_date or "today"}')
    return lines


def _exam_timetable_lines(request: GenerationRequest) -> list[str]:
    lines = [
        f'Examination Name: {request.exam_name or request.event_name}',
        f'Department: {request.department}',
        f'Semester: {request.semester}',
    ]
    if request.venue:
        lines.append(f'Venue: {request.venue}')
    if request.entries:
        lines.append('')
        lines.append('Examination Schedule:')
        for index, entry in enumerate(request.entries, start=1):
            lines.append(
                f'{index}. Date: {entry.date or "TBD"}, Day: {entry.day or "TBD"}, Subject: {entry.subject}, '
                f'Time: {entry.time}, Duration: {entry.duration}'
            )
    lines.append('')
    lines.append('Instructions/Rules:')
    lines.append(request.instructions)
    lines.append(f'Document Date for footer: {request.document_date or "today"}')
    return lines


def _announcement_lines(request: GenerationRequest) -> list[str]:
    lines: list[str] = []
    for label, value in (
        ('Event Name', request.event_name),
        ('Event Date', request.event_date),
        ('Department', request.department),
        ('Venue', request.venue),
    ):
        if value:
            lines.append(f'{label}: {value}')
    if request.instructions:
        lines.append('Instructions/Guidelines:')
        lines.append(request.instructions)
    if request.additional_notes:
        lines.append(f'Additional Notes: {request.additional_notes}')
    lines.append(f'Place the Date IMMEDIATELY below the Reference Number using: {request.document_date or "today"}')
    return lines


def build_user_prompt(request: GenerationRequest) -> str:
    kind = 'daily class timetable' if request.document_type == DocumentType.daily_timetable else request.document_type.value
    lines = [
        f'Generate a formal {kind} document with the following details:',
        '',
        f'Title: {request.title}',
    ]
    if request.document_date:
        lines.append(f'Document Date (USE THIS for the date in the document): {request.document_date}')

    if request.document_type == DocumentType.daily_timetable:
        lines.extend(_daily_timetable_lines(request))
    elif request.document_type == DocumentType.timetable:
        lines.extend(_exam_timetable_lines(request))
    else:
        lines.extend(_announcement_lines(request))

    lines.append('')
    lines.append('Use [TABLE]...[/TABLE] for tabular data. NO markdown symbols. NO ASCII borders.')
    lines.append('Generate a complete, formal document ready for distribution. NO college header needed.')
    return '\n'.join(lines)
