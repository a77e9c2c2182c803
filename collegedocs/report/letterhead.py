from __future__ import annotations

import base64
from dataclasses import dataclass

from collegedocs.types import CollegeSettings


DEFAULT_NAME = "VIGNAN'S INSTITUTE OF ENGINEERING FOR WOMEN"
DEFAULT_AFFILIATION = '(Approved by AICTE & Affiliated to JNTU-GV, Vizianagaram) Estd. 2008'
DEFAULT_ACCREDITATION = 'Accredited by NBA for UG Programmes of EEE, ECE, CSE & IT | NAAC A+'
DEFAULT_CERTIFICATIONS = 'ISO 9001:2015, ISO 14001:2015, ISO 45001:2018 Certified Institution'
DEFAULT_LOGO_URL = '/default-logo.png'


def _or_default(value: str | None, default: str) -> str:
    text = str(value or '').strip()
    return text or default


@dataclass(frozen=True)
class Letterhead:
    """Institution branding printed above every rendered document."""

    name: str = DEFAULT_NAME
    affiliation: str = DEFAULT_AFFILIATION
    accreditation: str = DEFAULT_ACCREDITATION
    certifications: str = DEFAULT_CERTIFICATIONS
    logo_url: str = DEFAULT_LOGO_URL
    logo_bytes: bytes | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, 'name', _or_default(self.name, DEFAULT_NAME))
        object.__setattr__(self, 'affiliation', _or_default(self.affiliation, DEFAULT_AFFILIATION))
        object.__setattr__(self, 'accreditation', _or_default(self.accreditation, DEFAULT_ACCREDITATION))
        object.__setattr__(self, 'certifications', _or_default(self.certifications, DEFAULT_CERTIFICATIONS))
        object.__setattr__(self, 'logo_url', _or_default(self.logo_url, DEFAULT_LOGO_URL))

    @classmethod
    def from_college_settings(
        cls,
        college: CollegeSettings | None,
        *,
        logo_bytes: bytes | None = None,
    ) -> Letterhead:
        if college is None:
            return cls(logo_bytes=logo_bytes)
        return cls(
            name=college.college_name,
            affiliation=college.affiliation,
            accreditation=college.accreditation,
            certifications=college.certifications,
            logo_url=college.logo_url,
            logo_bytes=logo_bytes,
        )

    @property
    def lines(self) -> tuple[str, str, str, str]:
        return (self.name, self.affiliation, self.accreditation, self.certifications)

    def logo_data_uri(self) -> str | None:
        if not self.logo_bytes:
            return None
        mime = _guess_image_mime(self.logo_bytes)
        encoded = base64.b64encode(self.logo_bytes).decode('ascii')
        return f'data:{mime};base64,{encoded}'


_IMAGE_SIGNATURES: tuple[tuple[bytes, str], ...] = (
    (b'\x89PNG\r\n\x1a\n', 'image/png'),
    (b'\xff\xd8\xff', 'image/jpeg'),
    (b'GIF87a', 'image/gif'),
    (b'GIF89a', 'image/gif'),
    (b'<svg', 'image/svg+xml'),
    (b'<?xml', 'image/svg+xml'),
)


def _guess_image_mime(data: bytes) -> str:
    head = data[:16].lstrip()
    for signature, mime in _IMAGE_SIGNATURES:
        if head.startswith(signature):
            return mime
    if data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return 'image/webp'
    return 'image/png'
