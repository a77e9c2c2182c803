from __future__ import annotations

import base64
import binascii
import logging
from pathlib import Path

import httpx


logger = logging.getLogger(__name__)

MAX_LOGO_BYTES = 5 * 1024 * 1024


def _decode_data_uri(reference: str) -> bytes:
    header, _, payload = reference.partition(',')
    if ';base64' in header:
        return base64.b64decode(payload, validate=True)
    return payload.encode('utf-8')


def load_logo(reference: str | None, *, timeout_seconds: float = 10.0, base_dir: Path | None = None) -> bytes | None:
    """Fetch the letterhead logo; any failure means "no logo", never an error."""
    token = str(reference or '').strip()
    if not token:
        return None

    try:
        if token.startswith('data:'):
            data = _decode_data_uri(token)
        elif token.startswith(('http://', 'https://')):
            with httpx.Client(timeout=max(1.0, float(timeout_seconds)), follow_redirects=True) as client:
                response = client.get(token)
            response.raise_for_status()
            data = response.content
        else:
            path = Path(token.lstrip('/')) if base_dir is None else base_dir / token.lstrip('/')
            data = path.read_bytes()
    except (httpx.HTTPError, OSError, ValueError, binascii.Error) as exc:
        logger.warning('Failed to load letterhead logo from %s: %s', token[:120], exc)
        return None

    if not data:
        logger.warning('Letterhead logo at %s is empty', token[:120])
        return None
    if len(data) > MAX_LOGO_BYTES:
        logger.warning('Letterhead logo at %s is too large (%d bytes)', token[:120], len(data))
        return None
    return data
