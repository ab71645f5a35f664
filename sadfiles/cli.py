from __future__ import annotations

import argparse
import sys
import tempfile
from pathlib import Path
from typing import Optional, Sequence

from sadfiles import __app_name__, __version__
from sadfiles.core.acquisition_service import AcquisitionService, describe
from sadfiles.core.cleanup import remove_workspace
from sadfiles.core.errors import ArchiverError
from sadfiles.core.models import DEFAULT_TOOL_PACKAGE, AcquisitionJob
from sadfiles.infra.archiver import ARCHIVERS, get_archiver
from sadfiles.infra.logging_utils import LOGGER


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=__app_name__,
        description="Acquire a suspicious file or directory into a password-protected package.",
    )
    parser.add_argument("--version", action="version", version=f"{__app_name__} {__version__}")
    sub = parser.add_subparsers(dest="command", required=True)

    acquire = sub.add_parser("acquire", help="Acquire a file or directory")
    acquire.add_argument("target", help="File or directory to acquire")
    acquire.add_argument("--output-root", default=tempfile.gettempdir(), help="Parent of the sadfiles working directory")
    acquire.add_argument("--password", default=None, help="Archive password (defaults to the well-known 'infected')")
    acquire.add_argument("--hint", dest="password_hint", default=None, help="Password hint written to the job log")
    acquire.add_argument("--case", dest="case_number", default=None, help="Case or ticket number")
    acquire.add_argument("--nohash", dest="no_hash", action="store_true", help="Log paths only, skip metadata and hashes")
    acquire.add_argument("--keep-tools", action="store_true", help="Leave the staged archiving tool on disk")
    acquire.add_argument("--tool-package", default=DEFAULT_TOOL_PACKAGE, help="Zip or executable of the 7-Zip tool")
    acquire.add_argument("--archiver", choices=sorted(ARCHIVERS), default="7za", help="Archiving backend")
    acquire.add_argument("--debug", action="store_true", help=argparse.SUPPRESS)

    cleanup = sub.add_parser("cleanup", help="Remove the sadfiles working directory")
    cleanup.add_argument("--parent", default=tempfile.gettempdir(), help="Directory containing sadfiles/")
    return parser


def acquire(args: argparse.Namespace) -> int:
    try:
        archiver = get_archiver(args.archiver)
    except ArchiverError as exc:
        LOGGER.error("Archiver unavailable", extra={"extra_data": {"error": str(exc)}})
        return 1
    job = AcquisitionJob.create(
        args.target,
        args.output_root,
        password=args.password,
        case_number=args.case_number,
        password_hint=args.password_hint,
        no_hash=args.no_hash,
        keep_tools=args.keep_tools,
        tool_package=args.tool_package,
        debug=args.debug,
    )
    outcome = AcquisitionService(archiver).run(job)
    for line in describe(outcome):
        print(line, file=sys.stderr)
    return outcome.exit_code


def cleanup(args: argparse.Namespace) -> int:
    try:
        remove_workspace(Path(args.parent))
    except OSError as exc:
        LOGGER.error("Workspace cleanup failed", extra={"extra_data": {"parent": args.parent, "error": str(exc)}})
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "acquire":
        return acquire(args)
    return cleanup(args)


if __name__ == "__main__":
    sys.exit(main())
