#!/usr/bin/env python3
"""
dupindex CLI — Command line interface for incremental duplicate detection.
Hashes every file below a target directory, remembers the hashes in an index file,
and lists groups of files with identical content.
Deletion is safe: duplicates are moved to system trash, never permanently erased.
"""
from __future__ import annotations  # Enable postponed evaluation of annotations (PEP 563)
import argparse
import logging
import os
import sys
import time
from typing import List, NoReturn, Optional

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)-8s | %(name)-25s | %(message)s"
)

from dupindex.core.cancellation import CancellationToken, SignalListener
from dupindex.core.errors import TraversalError
from dupindex.core.models import DeduplicationParams, DuplicateGroup, RunResult
from dupindex.core.store import default_index_path
from dupindex.commands import DeduplicationCommand
from dupindex.services.duplicate_service import DuplicateService
from dupindex.aliases import (
    CACHE_HELP_TEXT, DELETE_HELP_TEXT, EPILOG_TEXT, ORGANIZE_HELP_TEXT, USAGE_TEXT
)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INTERRUPTED = 130


class CLIApplication:
    """Main CLI application controller."""

    def __init__(self):
        self.start_time: float = time.time()
        self.verbose: bool = False
        self.quiet: bool = False
        self.progress: bool = False
        self.token = CancellationToken()

        # Fix encoding for Windows consoles to prevent UnicodeEncodeError
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding='utf-8')
        if hasattr(sys.stderr, "reconfigure"):
            sys.stderr.reconfigure(encoding='utf-8')

    @staticmethod
    def build_parser() -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="dupindex — incremental duplicate file finder with a persistent hash index",
            formatter_class=argparse.RawTextHelpFormatter,
            epilog=EPILOG_TEXT
        )

        parser.add_argument(
            "target",
            nargs="?",
            default=None,
            help="Target directory to scan for duplicates"
        )

        # Run options
        parser.add_argument(
            "--purge-cache", "-c",
            action="store_true",
            dest="purge_cache",
            help="Discard the saved index before scanning"
        )
        parser.add_argument(
            "--organize", "-s",
            action="store_true",
            help=ORGANIZE_HELP_TEXT
        )
        parser.add_argument(
            "--unzip", "-z",
            action="store_true",
            help="Extract .zip archives next to themselves and delete them"
        )
        parser.add_argument(
            "--cache-file",
            default=None,
            type=str,
            metavar='PATH',
            dest="cache_file",
            help=CACHE_HELP_TEXT
        )

        # Actions
        parser.add_argument(
            "--delete", "-d",
            action="store_true",
            help=DELETE_HELP_TEXT
        )

        # Output options
        parser.add_argument(
            "--force",
            action="store_true",
            help="Skip confirmation prompt when used with --delete (for automation/scripts)"
        )
        parser.add_argument(
            "--quiet", "-q",
            action="store_true",
            help="Suppress non-essential output"
        )
        parser.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Show each file looked at and detailed statistics"
        )
        parser.add_argument(
            "--progress", "-p",
            action="store_true",
            help="Count files first and show progress"
        )
        return parser

    def parse_args(self, args=None) -> argparse.Namespace:
        """Parse command-line arguments."""
        return self.build_parser().parse_args(args)

    def validate_args(self, args: argparse.Namespace) -> None:
        """Validate command-line arguments before execution."""
        if args.force and not args.delete:
            self.error_exit("--force can only be used with --delete")

        # Prevent interactive confirmation in non-TTY environments
        if args.delete and not args.force:
            if not sys.stdin.isatty() or not sys.stdout.isatty():
                self.error_exit(
                    "Cannot request interactive confirmation in non-interactive session.\n"
                    "Use --force flag to proceed without confirmation when piping output or running in scripts."
                )

    def create_params(self, args: argparse.Namespace) -> DeduplicationParams:
        """Create DeduplicationParams from CLI arguments."""
        try:
            return DeduplicationParams(
                root_dir=args.target,
                cache_path=args.cache_file or default_index_path(),
                purge_cache=args.purge_cache,
                organize=args.organize,
                expand_archives=args.unzip,
                delete_duplicates=args.delete,
                verbose=args.verbose,
                show_progress=args.progress,
                force=args.force,
            )
        except ValueError as e:
            self.error_exit(f"Parameter error: {e}")

    @staticmethod
    def configure_logging(verbose: bool) -> None:
        """Verbose mode shows per-file events logged at INFO."""
        logging.getLogger("dupindex").setLevel(logging.INFO if verbose else logging.WARNING)

    def progress_callback(self, stage: str, current: int, total: Optional[int]) -> None:
        """CLI progress callback - shows progress in console."""
        if not self.progress:
            return

        if total and total > 0:
            percent = min(current / total, 1.0) * 100
            sys.stderr.write(
                f"\r  [{stage}] {current}/{total} ({percent:.1f}%)"
            )
            sys.stderr.flush()
        else:
            sys.stderr.write(f"\r  [{stage}] {current} files processed...")
            sys.stderr.flush()

    def output_results(self, groups: List[DuplicateGroup]) -> None:
        """Print one line per duplicate group."""
        if self.progress:
            sys.stderr.write("\n")
        if self.quiet:
            return

        if not groups:
            print("No duplicate groups found.")
            return

        total_files = sum(len(g.paths) for g in groups)
        print(f"\nFound {len(groups)} duplicate groups ({total_files} files)")
        for group in groups:
            print("Duplicates ", " ".join(group.paths))

    def confirm_deletion(self, groups: List[DuplicateGroup], force: bool = False) -> bool:
        """Shows the KEEP/DEL preview and asks for confirmation unless force is set."""
        files_to_delete, _ = DuplicateService.keep_only_one_file_per_group(groups)
        if not files_to_delete:
            if not self.quiet:
                print("No files to delete (all groups already have only one file).")
            return False

        # Always show deletion preview before action (safety first)
        print()
        for idx, group in enumerate(groups, 1):
            print(f"📁 Group {idx} | {group.digest[:16]} | Files: {len(group.paths)}")
            print("-" * 60)
            print(f"   [KEEP] {group.keeper}")
            for path in group.paths:
                if path != group.keeper:
                    print(f"   [DEL]  {path}")
            print()

        print("=" * 60)
        print(f"Summary: Keep 1 file per group ({len(groups)} files preserved, {len(files_to_delete)} files deleted)")
        print()

        if force:
            print("⚠️  WARNING: --force flag skips confirmation. Proceeding with deletion...")
            return True

        # Safety check: confirm we're still in interactive mode
        if not sys.stdin.isatty() or not sys.stdout.isatty():
            self.warning(
                "Lost interactive terminal during operation. "
                "Use --force to proceed in non-interactive environments."
            )
            return False

        response = input(f"Are you sure you want to move {len(files_to_delete)} files to trash? [y/N]: ")
        if response.strip().lower() not in ("y", "yes"):
            print("Deletion cancelled by user.")
            return False
        return True

    def report_outcome(self, result: RunResult) -> None:
        """Print load/save problems, per-file errors and deletion results."""
        if result.load_error:
            self.warning(str(result.load_error))

        errors = result.stats.errors
        if errors and not self.quiet:
            print(f"\n⚠️  {len(errors)} file(s) could not be processed:", file=sys.stderr)
            for path, error in errors[:5]:  # Show first 5 errors
                print(f"  • {error}", file=sys.stderr)
            if len(errors) > 5:
                print(f"  ...and {len(errors) - 5} more files", file=sys.stderr)

        deletion = result.deletion
        if deletion is not None:
            if deletion.failed:
                print(f"\n⚠️  Partial success: {len(deletion.deleted)}/"
                      f"{len(deletion.deleted) + len(deletion.failed)} files moved to trash.")
                for path, error in deletion.failed[:5]:
                    print(f"  • {os.path.basename(path)}: {error.split(':')[-1].strip()}")
                if len(deletion.failed) > 5:
                    print(f"  ...and {len(deletion.failed) - 5} more files")
            else:
                print(f"✅ Successfully moved {len(deletion.deleted)} files to trash.")

        if result.save_error:
            print(f"❌ Error: {result.save_error}", file=sys.stderr)

        if self.verbose:
            print("\n" + result.stats.print_summary())

    def warning(self, message: str) -> None:
        """Print a warning message to stderr."""
        if not self.quiet:
            print(f"⚠️  {message}", file=sys.stderr)

    @staticmethod
    def error_exit(message: str, code: int = EXIT_ERROR) -> NoReturn:
        """Print error and exit."""
        print(f"❌ Error: {message}", file=sys.stderr)
        sys.exit(code)

    def run(self, argv=None) -> int:
        """Main entry point. Returns the process exit status."""
        parser = self.build_parser()
        args = parser.parse_args(argv)
        if not args.target:
            print(USAGE_TEXT % {"prog": parser.prog})
            return EXIT_OK

        self.verbose = args.verbose
        self.quiet = args.quiet
        self.progress = args.progress
        self.configure_logging(self.verbose)

        self.validate_args(args)
        params = self.create_params(args)

        if not self.quiet:
            print(f"Scanning directory: {params.root_dir}")

        command = DeduplicationCommand()
        with SignalListener(self.token):
            try:
                result = command.execute(
                    params,
                    progress_callback=self.progress_callback if self.progress else None,
                    stopped_flag=self.token,
                    report_callback=self.output_results,
                    confirm_deletion=lambda groups: self.confirm_deletion(groups, force=params.force),
                )
            except TraversalError as e:
                self.error_exit(str(e))

        self.report_outcome(result)

        if result.interrupted:
            print("\n⚠️  Operation cancelled by user, index saved", file=sys.stderr)
            return EXIT_INTERRUPTED

        elapsed = time.time() - self.start_time
        if self.verbose:
            print(f"\n✅ Completed in {elapsed:.2f} seconds")
        return EXIT_OK


def main() -> None:
    """Application entry point."""
    app = CLIApplication()
    try:
        sys.exit(app.run())
    except KeyboardInterrupt:
        print("\n⚠️  Operation cancelled by user (Ctrl+C)")
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        if os.environ.get("DEBUG"):
            raise
        print(f"❌ Unexpected error: {e}", file=sys.stderr)
        sys.exit(EXIT_ERROR)


if __name__ == "__main__":
    main()
