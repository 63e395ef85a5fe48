"""Command line entry point for validating course directories.

Why:
    Course authors want sync errors before they push a course. The CLI runs
    the same sync the web app runs at startup against an in-memory repository
    and prints the per-file errors and warnings.
"""
from __future__ import annotations

import logging
import os
from typing import Tuple

import click

from backend.courses.repo import CoursesRepo
from backend.courses.sync import CourseSyncError, SyncReport, load_course


def _print_report(path: str, report: SyncReport) -> None:
    click.echo(
        f"{path}: {report.questions} questions, {report.course_instances} course instances, "
        f"{report.assessments} assessments"
    )
    for rel_path in sorted(set(report.errors) | set(report.warnings)):
        for message in report.errors.get(rel_path, []):
            click.echo(f"  ERROR {rel_path}: {message}")
        for message in report.warnings.get(rel_path, []):
            click.echo(f"  WARNING {rel_path}: {message}")


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, file_okay=False))
@click.option(
    "--fail-on-warnings",
    is_flag=True,
    default=False,
    help="Exit non-zero when any file has sync warnings.",
)
def cli(paths: Tuple[str, ...], fail_on_warnings: bool) -> None:
    """Sync one or more course directories and report per-file problems.

    Behaviour:
        - Exit code 0 when every course synced without errors.
        - Exit code 1 when a course could not be loaded or a file has errors
          (or warnings with `--fail-on-warnings`).
    """
    level_name = os.getenv("LOG_LEVEL", "WARNING")
    logging.basicConfig(level=level_name.strip().upper() or "WARNING")

    repo = CoursesRepo()
    failed = False
    for path in paths:
        try:
            _, report = load_course(repo, path)
        except CourseSyncError as exc:
            click.echo(f"{path}: {exc}", err=True)
            failed = True
            continue
        _print_report(path, report)
        if not report.ok or (fail_on_warnings and report.warnings):
            failed = True
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":  # pragma: no cover
    cli()
