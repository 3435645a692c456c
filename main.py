from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path

from intelreport.config import get_settings
from intelreport.errors import ExportError
from intelreport.report.catalog import DEFAULT_CATALOG
from intelreport.report.export import ExportOutcome, build_orchestrator
from intelreport.state import load_job_state
from intelreport.types import ExportJob, ExportSubject, ReportRequest, RequesterContext


logger = logging.getLogger('intelreport')


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _status_snapshot(job: ExportJob) -> dict:
    return {
        'job_id': str(job.id),
        'mode': job.mode.value,
        'status': job.status.value,
        'message': job.progress_message,
        'error': job.error,
        'output_path': job.output_path,
        'page_count': job.page_count,
        'report_count': len(job.report_list),
        'created_at': job.created_at.isoformat(),
        'updated_at': job.updated_at.isoformat(),
        'metadata': job.metadata,
    }


def _outcome_response(outcome: ExportOutcome) -> dict:
    return {
        'job_id': str(outcome.job.id),
        'status': outcome.job.status.value,
        'output_path': str(outcome.path),
        'page_count': outcome.page_count,
        'error_document': outcome.error_document,
    }


def _progress(message: str) -> None:
    logger.info(message)


def _requester(args: argparse.Namespace) -> RequesterContext:
    return RequesterContext(user_id=args.user_id, firm_id=args.firm_id)


def _subject(args: argparse.Namespace) -> ExportSubject:
    return ExportSubject(
        company_id=args.company_id,
        company_name=args.company_name,
        competitor_ids=list(args.competitor_id or []),
        analysis_period=getattr(args, 'analysis_period', None),
        requester=_requester(args),
    )


def _run_export(coro) -> int:
    try:
        outcome = asyncio.run(coro)
    except ExportError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2
    _print_json(_outcome_response(outcome))
    return 0


def cmd_export_single(args: argparse.Namespace) -> int:
    if DEFAULT_CATALOG.get(args.report_type) is None:
        _print_json({'status': 'error', 'message': f'Unknown report type: {args.report_type}'})
        return 2

    orchestrator = build_orchestrator(progress=_progress)
    if args.content_file:
        content_path = Path(args.content_file).expanduser().resolve()
        if not content_path.is_file():
            _print_json({'status': 'error', 'message': f'Content file not found: {content_path}'})
            return 2
        content = content_path.read_text(encoding='utf-8')
        return _run_export(
            orchestrator.export_single(args.report_type, content, company_name=args.company_name)
        )

    if not args.company_id:
        _print_json({'status': 'error', 'message': '--company-id is required without --content-file'})
        return 2
    request = ReportRequest(
        report_type_id=args.report_type,
        company_id=args.company_id,
        competitor_ids=list(args.competitor_id or []),
        requester=_requester(args),
    )
    return _run_export(orchestrator.export_single_request(request, company_name=args.company_name))


def cmd_export_all(args: argparse.Namespace) -> int:
    orchestrator = build_orchestrator(progress=_progress)
    return _run_export(orchestrator.export_all(_subject(args)))


def cmd_export_summary(args: argparse.Namespace) -> int:
    orchestrator = build_orchestrator(progress=_progress)
    return _run_export(orchestrator.export_summary(_subject(args)))


def cmd_status(args: argparse.Namespace) -> int:
    job = load_job_state(args.job_id)
    if job is None:
        _print_json({'status': 'error', 'message': f'Job not found: {args.job_id}'})
        return 2

    _print_json(_status_snapshot(job))
    return 0


def cmd_report_types(args: argparse.Namespace) -> int:
    _print_json(
        {
            'report_types': [
                {'id': rt.id, 'name': rt.name, 'description': rt.description}
                for rt in DEFAULT_CATALOG
            ]
        }
    )
    return 0


def _add_subject_arguments(parser: argparse.ArgumentParser, *, company_required: bool = True) -> None:
    parser.add_argument('--company-id', required=company_required, help='Company the reports are about')
    parser.add_argument('--company-name', required=False, help='Company name for titles and filenames')
    parser.add_argument(
        '--competitor-id',
        action='append',
        required=False,
        help='Competitor ID (repeat for several)',
    )
    parser.add_argument('--user-id', required=False)
    parser.add_argument('--firm-id', required=False)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Competitive-intelligence report export CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    single = sub.add_parser('export-single', help='Export one report as a PDF')
    single.add_argument('--report-type', required=True, help='Report type ID')
    single.add_argument('--content-file', required=False, help='Markdown file with the report body')
    _add_subject_arguments(single, company_required=False)
    single.set_defaults(func=cmd_export_single)

    bundle = sub.add_parser('export-all', help='Export every report type as one PDF')
    _add_subject_arguments(bundle)
    bundle.set_defaults(func=cmd_export_all)

    summary = sub.add_parser('export-summary', help='Export an executive summary PDF')
    _add_subject_arguments(summary)
    summary.add_argument('--analysis-period', required=False)
    summary.set_defaults(func=cmd_export_summary)

    status = sub.add_parser('status', help='Get export job status')
    status.add_argument('--job-id', required=True, help='Job ID')
    status.set_defaults(func=cmd_status)

    report_types = sub.add_parser('report-types', help='List known report types')
    report_types.set_defaults(func=cmd_report_types)

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == '__main__':
    raise SystemExit(main())
