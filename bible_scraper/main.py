"""CLI entry point."""

import argparse
import os
import sys

from .catalogue import build_catalogue, total_chapters
from .config import load_config
from .errors import ScraperError
from .jobs import DownloadService
from .logger import setup_logger
from .models import ProcessingMode, SpeedPreference
from .scanner import scan_existing
from .sources import get_source
from .translations import LEGAL_DISCLAIMER, get_translation, list_translations


def show_translations():
    print(f"{'Code':<8} {'Name':<34} {'Language':<18} {'Source':<16} {'License'}")
    print("-" * 100)
    for t in list_translations():
        license_str = "public domain" if t.is_public_domain else "copyrighted"
        print(f"{t.code:<8} {t.full_name:<34} {t.language_name:<18} {t.source:<16} {license_str}")


def show_scan(config, code: str):
    """Report how many chapters of a translation are already on disk."""
    translation = get_translation(code)
    if translation is None:
        print(f"Unknown translation: {code}")
        return 1

    source = get_source(translation.source)
    catalogue = build_catalogue(translation)
    raw_dir = os.path.join(config.html_dir, translation.code)
    result = scan_existing(catalogue, raw_dir, source.payload_ext)

    total = total_chapters(catalogue)
    print(f"{translation.code}: {result.valid}/{total} valid, {result.invalid} invalid "
          f"(removed), {result.missing} missing")
    return 0


def print_summary(service, job_id: str):
    progress = service.get_progress(job_id)
    print()
    print("=" * 60)
    print(f"  Status:    {progress.status.value}")
    print(f"  Chapters:  {progress.completed}/{progress.total} ({progress.percentage}%)")
    print(f"  Errors:    {len(progress.errors)}")
    print("=" * 60)
    for error in progress.errors[:20]:
        where = f"{error.document} {error.chapter}" if error.document else "pipeline"
        print(f"  [{error.kind}] {where}: {error.message}")
    if len(progress.errors) > 20:
        print(f"  ... and {len(progress.errors) - 20} more")
    for path in service.get_job(job_id).artifacts:
        print(f"  Output: {path}")


def main():
    parser = argparse.ArgumentParser(description="Bible chapter downloader")
    parser.add_argument("--translation", "-t", type=str, default=None,
                        help="Translation code, e.g. KJV")
    parser.add_argument("--mode", type=str, default=ProcessingMode.TEXT.value,
                        help="fetch-only, fetch-and-assemble-text, "
                             "fetch-and-assemble-structured or both")
    parser.add_argument("--speed", type=str, default=None,
                        choices=[s.value for s in SpeedPreference],
                        help="Download speed preference")
    parser.add_argument("--agree-legal", action="store_true",
                        help="Confirm the legal notice for copyrighted translations")
    parser.add_argument("--list", action="store_true",
                        help="List available translations")
    parser.add_argument("--scan", action="store_true",
                        help="Only check already-downloaded chapters")
    parser.add_argument("--config", type=str, default="config.yaml",
                        help="Path to config file")
    args = parser.parse_args()

    config = load_config(args.config)
    setup_logger(config.log_dir, config.log_level)

    if args.list:
        show_translations()
        return 0

    if not args.translation:
        parser.error("--translation is required")

    if args.scan:
        return show_scan(config, args.translation)

    translation = get_translation(args.translation)
    if translation is not None and not translation.is_public_domain and not args.agree_legal:
        notice = LEGAL_DISCLAIMER["english"]
        print(notice["title"])
        print("\n".join(notice["content"]))
        print("\nRe-run with --agree-legal to accept these terms.")
        return 2

    print("Bible Downloader")
    print(f"Data directory: {config.data_dir}")

    service = DownloadService(config, background=False)
    try:
        job_id = service.create_job(args.translation, args.mode, args.speed,
                                    legal_agreement=args.agree_legal)
    except KeyboardInterrupt:
        print("\nInterrupted. Already downloaded chapters are kept; re-run to resume.")
        return 130
    except ScraperError as e:
        print(f"Error: {e}")
        jobs = service.list_jobs()
        if jobs:
            print_summary(service, jobs[-1].id)
        return 1

    print_summary(service, job_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
