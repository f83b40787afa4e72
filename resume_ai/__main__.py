"""Command-line entry point: python -m resume_ai <command> ..."""
import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .batch import BatchProcessor
from .config import load_settings
from .errors import ConfigurationError
from .logging_config import setup_logging
from .orchestrator import AnalysisOrchestrator
from .schemas import ResumeInput

logger = logging.getLogger('resume_ai')


def _read(path: Optional[str]) -> Optional[str]:
    if path is None:
        return None
    return Path(path).read_text(encoding='utf-8', errors='replace')


def _dump(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='resume_ai', description='Resume and interview analysis')
    parser.add_argument('--config', help='YAML config file (default: config/analysis.yaml)')
    parser.add_argument('--log-dir', help='Directory for rotating log files (default: ./logs)')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    commands = parser.add_subparsers(dest='command', required=True)

    score = commands.add_parser('score', help='Score a resume against a job description')
    score.add_argument('resume', help='Plain-text resume file')
    score.add_argument('--jd', help='Plain-text job description file')

    review = commands.add_parser('review', help='Job-seeker feedback on a resume')
    review.add_argument('resume', help='Plain-text resume file')

    batch = commands.add_parser('batch', help='Score several resumes against one job description')
    batch.add_argument('resumes', nargs='+', help='Plain-text resume files')
    batch.add_argument('--jd', required=True, help='Plain-text job description file')

    questions = commands.add_parser('questions', help='Generate interview questions')
    questions.add_argument('--title', required=True, help='Job title')
    questions.add_argument('--skills', nargs='*', default=[], help='Candidate skills')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_dir, logging.DEBUG if args.verbose else logging.INFO)

    try:
        settings = load_settings(args.config)
        orchestrator = AnalysisOrchestrator.from_settings(settings)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {str(e)}")
        return 2

    try:
        if args.command == 'score':
            result = asyncio.run(orchestrator.analyze_resume(_read(args.resume), _read(args.jd)))
            _dump(result.model_dump(by_alias=True, mode='json'))
        elif args.command == 'review':
            result = asyncio.run(orchestrator.review_resume(_read(args.resume)))
            _dump(result.model_dump(by_alias=True, mode='json'))
        elif args.command == 'batch':
            job_description = _read(args.jd)
            items = [ResumeInput(resume_text=_read(path), job_description=job_description) for path in args.resumes]
            results, stats = BatchProcessor(orchestrator, settings.max_concurrency).process_batch(items)
            _dump({
                'results': [
                    dict(file=path, **r.model_dump(by_alias=True, mode='json'))
                    for path, r in zip(args.resumes, results)
                ],
                'stats': stats,
            })
        elif args.command == 'questions':
            _dump(asyncio.run(orchestrator.generate_interview_questions(args.title, args.skills)))
    except OSError as e:
        logger.error(f"Could not read input: {str(e)}")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
