"""
CLI tests — argument handling, exit statuses, report format and deletion safety.
"""
import json
import sys
from unittest import mock

import pytest

from dupindex.cli import EXIT_ERROR, EXIT_INTERRUPTED, EXIT_OK, CLIApplication, main
from dupindex.core.cancellation import CancellationToken
from dupindex.services.file_service import FileService


def run_cli(*argv) -> int:
    return CLIApplication().run(list(argv))


class TestUsage:

    def test_no_target_prints_usage_and_exits_zero(self, capsys):
        assert run_cli() == EXIT_OK
        assert "usage" in capsys.readouterr().out.lower()

    def test_main_with_no_arguments_exits_zero(self, capsys):
        with mock.patch.object(sys, "argv", ["dupindex"]):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_OK

    def test_flags_parse(self):
        args = CLIApplication.build_parser().parse_args(
            ["-c", "-s", "-z", "-d", "-v", "-p", "--force", "--cache-file", "/x.json", "/tree"])
        assert args.purge_cache and args.organize and args.unzip
        assert args.delete and args.verbose and args.progress and args.force
        assert args.cache_file == "/x.json"
        assert args.target == "/tree"


class TestReport:

    def test_prints_one_line_per_group(self, test_files, tree, cache_path, capsys):
        code = run_cli(str(tree), "--cache-file", str(cache_path))

        out = capsys.readouterr().out
        assert code == EXIT_OK
        dup_lines = [line for line in out.splitlines() if line.startswith("Duplicates ")]
        assert len(dup_lines) == 1
        for key in ("a", "b", "d"):
            assert str(test_files[key]) in dup_lines[0]
        assert str(test_files["c"]) not in out

    def test_no_duplicates(self, tree, cache_path, capsys):
        (tree / "only.txt").write_bytes(b"unique")
        assert run_cli(str(tree), "--cache-file", str(cache_path)) == EXIT_OK
        assert "No duplicate groups found." in capsys.readouterr().out

    def test_quiet_suppresses_report(self, test_files, tree, cache_path, capsys):
        run_cli(str(tree), "--cache-file", str(cache_path), "-q")
        assert "Duplicates" not in capsys.readouterr().out

    def test_cache_file_from_environment(self, test_files, tree, cache_path, monkeypatch):
        monkeypatch.setenv("DUPINDEX_CACHE", str(cache_path))
        run_cli(str(tree))
        assert len(json.loads(cache_path.read_text(encoding="utf-8"))["Files"]) == 4

    def test_verbose_lists_files_and_summary(self, test_files, tree, cache_path, capsys, caplog):
        caplog.set_level("INFO", logger="dupindex")
        run_cli(str(tree), "--cache-file", str(cache_path), "-v")

        assert str(test_files["c"]) in caplog.text
        assert "Files hashed" in capsys.readouterr().out

    def test_corrupt_index_warns_and_continues(self, test_files, tree, cache_path, capsys):
        cache_path.write_text("not json", encoding="utf-8")

        assert run_cli(str(tree), "--cache-file", str(cache_path)) == EXIT_OK
        captured = capsys.readouterr()
        assert "Duplicates " in captured.out
        assert "⚠️" in captured.err


class TestErrors:

    def test_missing_target_exits_with_error(self, temp_dir, cache_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(str(temp_dir / "missing"), "--cache-file", str(cache_path))

        assert exc_info.value.code == EXIT_ERROR
        assert "does not exist" in capsys.readouterr().err
        assert not cache_path.exists()

    def test_force_without_delete_is_rejected(self, tree, cache_path):
        with pytest.raises(SystemExit) as exc_info:
            run_cli(str(tree), "--cache-file", str(cache_path), "--force")
        assert exc_info.value.code == EXIT_ERROR

    def test_delete_without_force_in_non_tty_is_rejected(self, test_files, tree, cache_path):
        with mock.patch.object(sys.stdin, "isatty", return_value=False):
            with pytest.raises(SystemExit) as exc_info:
                run_cli(str(tree), "--cache-file", str(cache_path), "--delete")
        assert exc_info.value.code == EXIT_ERROR
        assert all(p.exists() for p in test_files.values())

    def test_unexpected_error_exits_with_error(self, monkeypatch, capsys):
        monkeypatch.delenv("DEBUG", raising=False)
        with mock.patch.object(CLIApplication, "run", side_effect=ValueError("boom")):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_ERROR
        assert "boom" in capsys.readouterr().err


class TestInterruption:

    def test_cancelled_run_saves_index_and_exits_130(self, test_files, tree, cache_path):
        app = CLIApplication()
        app.token.cancel()

        code = app.run([str(tree), "--cache-file", str(cache_path)])

        assert code == EXIT_INTERRUPTED
        assert cache_path.exists()

    def test_keyboard_interrupt_in_main_exits_130(self):
        with mock.patch.object(CLIApplication, "run", side_effect=KeyboardInterrupt):
            with pytest.raises(SystemExit) as exc_info:
                main()
        assert exc_info.value.code == EXIT_INTERRUPTED

    def test_token_is_callable_stop_flag(self):
        token = CancellationToken()
        assert token() is False
        token.cancel()
        assert token() is True


class TestDeletion:
    """Deletion moves every path but the lexicographically first of each group to trash."""

    def test_force_deletes_all_but_first(self, test_files, tree, cache_path):
        with mock.patch.object(FileService, "move_to_trash") as mock_trash:
            code = run_cli(str(tree), "--cache-file", str(cache_path), "--delete", "--force")

        deleted = sorted(call.args[0] for call in mock_trash.call_args_list)
        assert code == EXIT_OK
        assert deleted == sorted([str(test_files["b"]), str(test_files["d"])])
        assert str(test_files["a"]) not in deleted

    def test_preview_shows_keep_and_del(self, test_files, tree, cache_path, capsys):
        with mock.patch.object(FileService, "move_to_trash"):
            run_cli(str(tree), "--cache-file", str(cache_path), "--delete", "--force")

        out = capsys.readouterr().out
        assert f"[KEEP] {test_files['a']}" in out
        assert f"[DEL]  {test_files['b']}" in out

    def test_user_declines(self, test_files, tree, cache_path):
        app = CLIApplication()
        with mock.patch.object(sys.stdin, "isatty", return_value=True), \
                mock.patch.object(sys.stdout, "isatty", return_value=True), \
                mock.patch("builtins.input", return_value="n"), \
                mock.patch.object(FileService, "move_to_trash") as mock_trash:
            code = app.run([str(tree), "--cache-file", str(cache_path), "--delete"])

        assert code == EXIT_OK
        mock_trash.assert_not_called()

    def test_user_confirms(self, test_files, tree, cache_path):
        app = CLIApplication()
        with mock.patch.object(sys.stdin, "isatty", return_value=True), \
                mock.patch.object(sys.stdout, "isatty", return_value=True), \
                mock.patch("builtins.input", return_value="yes"), \
                mock.patch.object(FileService, "move_to_trash") as mock_trash:
            app.run([str(tree), "--cache-file", str(cache_path), "--delete"])

        assert mock_trash.call_count == 2

    def test_failed_trash_reports_partial_success(self, test_files, tree, cache_path, capsys):
        with mock.patch.object(FileService, "move_to_trash", side_effect=RuntimeError("Failed to move to trash: busy")):
            code = run_cli(str(tree), "--cache-file", str(cache_path), "--delete", "--force")

        assert code == EXIT_OK
        assert "Partial success: 0/2" in capsys.readouterr().out
        saved = json.loads(cache_path.read_text(encoding="utf-8"))
        assert len(saved["Files"]) == 4
