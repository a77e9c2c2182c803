from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from collegedocs.adapters.llm import GenerationError
from collegedocs.adapters.logo import load_logo
from collegedocs.adapters.rasterizer import PlaywrightRasterizer
from collegedocs.config import get_settings
from collegedocs.generation import run_generation
from collegedocs.prompts import RequestValidationError
from collegedocs.report.exporter import ExportError, export_document
from collegedocs.report.letterhead import Letterhead
from collegedocs.state import (
    create_revision,
    delete_document,
    document_counts,
    list_documents,
    load_college_settings,
    load_document,
    save_college_settings,
    update_document,
)
from collegedocs.types import CollegeSettings, DocumentStatus, DocumentType, ExportFormat, GeneratedDocument


def _print_json(payload: dict | list) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _error(message: str) -> int:
    _print_json({'status': 'error', 'message': message})
    return 2


def _document_summary(document: GeneratedDocument) -> dict:
    return {
        'document_id': str(document.id),
        'title': document.title,
        'document_type': document.document_type.value,
        'status': document.status.value,
        'version': document.version,
        'parent_id': str(document.parent_id) if document.parent_id else None,
        'created_at': document.created_at.isoformat(),
        'updated_at': document.updated_at.isoformat(),
    }


def _load_request_payload(args: argparse.Namespace) -> dict:
    payload: dict = {}
    if args.request_json:
        path = Path(args.request_json).expanduser()
        loaded = json.loads(path.read_text(encoding='utf-8'))
        if not isinstance(loaded, dict):
            raise RequestValidationError(f'--request-json must contain a JSON object: {path}')
        payload.update(loaded)
    for item in args.field or []:
        key, sep, value = item.partition('=')
        if not sep:
            raise RequestValidationError(f'--field expects key=value, got: {item}')
        payload[key.strip().replace('-', '_')] = value
    if args.type:
        payload['document_type'] = args.type
    if args.title:
        payload['title'] = args.title
    return payload


def cmd_generate(args: argparse.Namespace) -> int:
    try:
        payload = _load_request_payload(args)
        document = run_generation(payload, owner_id=args.owner)
    except (ValueError, GenerationError, OSError) as exc:
        return _error(str(exc))

    result = _document_summary(document)
    result['content'] = document.content
    _print_json(result)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    document_type = DocumentType(args.type) if args.type else None
    try:
        rows = list_documents(args.owner, document_type=document_type, search=args.search)
    except ValueError as exc:
        return _error(str(exc))
    _print_json([_document_summary(row) for row in rows])
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    try:
        counts = document_counts(args.owner)
    except ValueError as exc:
        return _error(str(exc))
    _print_json(counts)
    return 0


def cmd_show(args: argparse.Namespace) -> int:
    document = load_document(args.owner, args.document_id)
    if document is None:
        return _error(f'Document not found: {args.document_id}')
    if args.content_only:
        print(document.content)
        return 0
    _print_json(document.model_dump(mode='json'))
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    if not delete_document(args.owner, args.document_id):
        return _error(f'Document not found: {args.document_id}')
    _print_json({'status': 'deleted', 'document_id': args.document_id})
    return 0


def cmd_status(args: argparse.Namespace) -> int:
    try:
        document = update_document(args.owner, args.document_id, status=DocumentStatus(args.status))
    except FileNotFoundError as exc:
        return _error(str(exc))
    _print_json(_document_summary(document))
    return 0


def cmd_revise(args: argparse.Namespace) -> int:
    content = None
    if args.content_file:
        try:
            content = Path(args.content_file).expanduser().read_text(encoding='utf-8')
        except OSError as exc:
            return _error(str(exc))
    try:
        document = create_revision(args.owner, args.document_id, content=content)
    except FileNotFoundError as exc:
        return _error(str(exc))
    _print_json(_document_summary(document))
    return 0


def _letterhead_for(owner_id: str) -> Letterhead:
    settings = get_settings()
    college = load_college_settings(owner_id)
    logo = load_logo(college.logo_url, timeout_seconds=settings.logo_fetch_timeout_seconds)
    return Letterhead.from_college_settings(college, logo_bytes=logo)


def cmd_export(args: argparse.Namespace) -> int:
    document = load_document(args.owner, args.document_id)
    if document is None:
        return _error(f'Document not found: {args.document_id}')

    fmt = ExportFormat(args.format)
    rasterizer = None
    if fmt == ExportFormat.png:
        rasterizer = PlaywrightRasterizer(timeout_ms=get_settings().image_render_timeout_ms)

    try:
        path = export_document(
            document.content,
            fmt=fmt,
            letterhead=_letterhead_for(args.owner),
            title=args.title or document.title,
            output_dir=Path(args.output_dir).expanduser(),
            rasterizer=rasterizer,
        )
    except (ExportError, ValueError) as exc:
        return _error(str(exc))

    _print_json({'document_id': str(document.id), 'format': fmt.value, 'path': str(path)})
    return 0


def cmd_settings_show(args: argparse.Namespace) -> int:
    try:
        college = load_college_settings(args.owner)
    except ValueError as exc:
        return _error(str(exc))
    _print_json(college.model_dump(mode='json'))
    return 0


def cmd_settings_set(args: argparse.Namespace) -> int:
    known = set(CollegeSettings.model_fields) - {'updated_at'}
    try:
        current = load_college_settings(args.owner).model_dump()
        for item in args.values:
            key, sep, value = item.partition('=')
            key = key.strip()
            if not sep or key not in known:
                return _error(f'Unknown setting: {item} (expected one of {", ".join(sorted(known))})')
            current[key] = value
        saved = save_college_settings(args.owner, CollegeSettings.model_validate(current))
    except ValueError as exc:
        return _error(str(exc))
    _print_json(saved.model_dump(mode='json'))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='College academic document generator CLI')
    parser.add_argument('--owner', default='local', help='Owner id that scopes documents and settings')
    sub = parser.add_subparsers(dest='command', required=True)

    generate = sub.add_parser('generate', help='Generate and store a new document')
    generate.add_argument('--type', choices=[item.value for item in DocumentType], required=False)
    generate.add_argument('--title', required=False)
    generate.add_argument('--request-json', required=False, help='JSON file with request fields')
    generate.add_argument('--field', action='append', help='Extra request field as key=value')
    generate.set_defaults(func=cmd_generate)

    list_cmd = sub.add_parser('list', help='List stored documents, newest first')
    list_cmd.add_argument('--type', choices=[item.value for item in DocumentType], required=False)
    list_cmd.add_argument('--search', required=False, help='Case-insensitive title filter')
    list_cmd.set_defaults(func=cmd_list)

    stats = sub.add_parser('stats', help='Count stored documents by type')
    stats.set_defaults(func=cmd_stats)

    show = sub.add_parser('show', help='Show a stored document')
    show.add_argument('--document-id', required=True)
    show.add_argument('--content-only', action='store_true')
    show.set_defaults(func=cmd_show)

    delete = sub.add_parser('delete', help='Delete a stored document')
    delete.add_argument('--document-id', required=True)
    delete.set_defaults(func=cmd_delete)

    status = sub.add_parser('status', help='Change the status of a stored document')
    status.add_argument('--document-id', required=True)
    status.add_argument('--status', choices=[item.value for item in DocumentStatus], required=True)
    status.set_defaults(func=cmd_status)

    revise = sub.add_parser('revise', help='Store a new version of a document')
    revise.add_argument('--document-id', required=True)
    revise.add_argument('--content-file', required=False, help='Replacement content for the new version')
    revise.set_defaults(func=cmd_revise)

    export = sub.add_parser('export', help='Export a document to a file')
    export.add_argument('--document-id', required=True)
    export.add_argument('--format', choices=[item.value for item in ExportFormat], default='pdf')
    export.add_argument('--output-dir', default='.')
    export.add_argument('--title', required=False, help='Title used for the file name')
    export.set_defaults(func=cmd_export)

    settings = sub.add_parser('settings', help='Show or change college settings')
    settings_sub = settings.add_subparsers(dest='settings_command', required=True)
    settings_show = settings_sub.add_parser('show')
    settings_show.set_defaults(func=cmd_settings_show)
    settings_set = settings_sub.add_parser('set')
    settings_set.add_argument('values', nargs='+', help='key=value pairs')
    settings_set.set_defaults(func=cmd_settings_set)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(get_settings().log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
