"""
Integration tests for DeduplicationCommand — the orchestration layer between the CLI and core.
Verifies load → walk → report → delete → persist wiring, and that the index is saved in
every outcome.
"""
import json
import zipfile
from unittest import mock

import pytest

from dupindex import DeduplicationCommand, DeduplicationParams
from dupindex.core.cancellation import CancellationToken
from dupindex.core.errors import IndexSaveError, TraversalError
from dupindex.core.models import EngineState, Stage
from dupindex.core.store import JsonIndexStore


def make_params(tree, cache_path, **kwargs) -> DeduplicationParams:
    return DeduplicationParams(root_dir=str(tree), cache_path=str(cache_path), **kwargs)


class TestDeduplicationCommand:

    def test_execute_returns_groups_and_saves_index(self, test_files, tree, cache_path):
        result = DeduplicationCommand().execute(make_params(tree, cache_path))

        assert result.state == EngineState.COMPLETING
        assert not result.interrupted
        assert len(result.groups) == 1
        assert len(result.groups[0].paths) == 3
        assert result.load_error is None
        assert result.save_error is None

        saved = json.loads(cache_path.read_text(encoding="utf-8"))
        assert len(saved["Files"]) == 4

    def test_report_callback_receives_groups(self, test_files, tree, cache_path):
        reported = []
        DeduplicationCommand().execute(make_params(tree, cache_path), report_callback=reported.append)

        assert len(reported) == 1
        assert [g.keeper for g in reported[0]] == [str(test_files["a"])]

    def test_second_run_uses_saved_index(self, test_files, tree, cache_path):
        params = make_params(tree, cache_path)
        DeduplicationCommand().execute(params)

        result = DeduplicationCommand().execute(params)

        assert result.stats.files_hashed == 0
        assert result.stats.files_cached == 4
        assert len(result.groups) == 1

    def test_purge_rehashes_everything(self, test_files, tree, cache_path):
        DeduplicationCommand().execute(make_params(tree, cache_path))

        result = DeduplicationCommand().execute(make_params(tree, cache_path, purge_cache=True))

        assert result.stats.files_hashed == 4
        assert result.stats.files_cached == 0

    def test_purge_drops_entries_outside_current_tree(self, test_files, tree, cache_path, temp_dir):
        other = temp_dir / "other"
        other.mkdir()
        (other / "x.txt").write_bytes(b"x")
        DeduplicationCommand().execute(make_params(other, cache_path))

        DeduplicationCommand().execute(make_params(tree, cache_path, purge_cache=True))

        saved = json.loads(cache_path.read_text(encoding="utf-8"))
        assert str(other / "x.txt") not in saved["Files"]

    def test_index_file_inside_tree_is_not_indexed(self, test_files, tree):
        cache = tree / "index.json"
        DeduplicationCommand().execute(make_params(tree, cache))
        result = DeduplicationCommand().execute(make_params(tree, cache))

        saved = json.loads(cache.read_text(encoding="utf-8"))
        assert str(cache) not in saved["Files"]
        assert result.stats.files_seen == 4

    def test_corrupt_index_degrades_to_empty(self, test_files, tree, cache_path):
        cache_path.write_text("{broken", encoding="utf-8")

        result = DeduplicationCommand().execute(make_params(tree, cache_path))

        assert result.load_error is not None
        assert result.stats.files_hashed == 4
        assert len(result.groups) == 1
        JsonIndexStore().load(str(cache_path))[0].check_invariants()

    def test_progress_callback_counts_first(self, test_files, tree, cache_path):
        calls = []
        DeduplicationCommand().execute(
            make_params(tree, cache_path, show_progress=True),
            progress_callback=lambda stage, cur, total: calls.append((stage, cur, total)),
        )

        assert calls[0] == (Stage.COUNT.value, 4, 4)
        assert calls[-1] == (Stage.INDEX.value, 4, 4)


class TestTraversalFailure:

    def test_missing_root_raises_before_loading(self, temp_dir, cache_path):
        store = mock.Mock()
        command = DeduplicationCommand(store=store)

        with pytest.raises(TraversalError):
            command.execute(make_params(temp_dir / "nope", cache_path))

        store.load.assert_not_called()
        store.save.assert_not_called()


class TestInterruption:

    def test_cancelled_run_skips_report_and_saves(self, test_files, tree, cache_path):
        token = CancellationToken()
        token.cancel()
        reported = []

        result = DeduplicationCommand().execute(
            make_params(tree, cache_path), stopped_flag=token, report_callback=reported.append)

        assert result.interrupted
        assert result.groups == []
        assert reported == []
        assert cache_path.exists()

    def test_unexpected_exception_still_persists(self, test_files, tree, cache_path):
        """The index is saved even when the walk dies with an exception."""
        calls = {"n": 0}

        def stopped_flag():
            calls["n"] += 1
            if calls["n"] > 3:
                raise KeyboardInterrupt
            return False

        with pytest.raises(KeyboardInterrupt):
            DeduplicationCommand().execute(make_params(tree, cache_path), stopped_flag=stopped_flag)

        index, error = JsonIndexStore().load(str(cache_path))
        assert error is None
        assert 0 < len(index) < 4

    def test_save_error_is_reported_in_result(self, test_files, tree, cache_path):
        store = JsonIndexStore()
        with mock.patch.object(store, "save", side_effect=IndexSaveError("read-only file system")):
            result = DeduplicationCommand(store=store).execute(make_params(tree, cache_path))

        assert isinstance(result.save_error, IndexSaveError)
        assert len(result.groups) == 1


class TestDeleteMode:

    def test_deletes_all_but_first_path(self, test_files, tree, cache_path):
        removed = []
        command = DeduplicationCommand(remove_file=removed.append)

        result = command.execute(make_params(tree, cache_path, delete_duplicates=True))

        assert sorted(removed) == sorted([str(test_files["b"]), str(test_files["d"])])
        assert result.deletion.kept == [str(test_files["a"])]
        saved = json.loads(cache_path.read_text(encoding="utf-8"))
        assert sorted(saved["Files"]) == sorted([str(test_files["a"]), str(test_files["c"])])

    def test_declined_confirmation_deletes_nothing(self, test_files, tree, cache_path):
        remove = mock.Mock()
        command = DeduplicationCommand(remove_file=remove)

        result = command.execute(
            make_params(tree, cache_path, delete_duplicates=True),
            confirm_deletion=lambda groups: False,
        )

        remove.assert_not_called()
        assert result.deletion is None
        assert len(result.groups) == 1

    def test_files_indexed_under_other_root_are_not_deleted(self, test_files, tree, cache_path, temp_dir):
        other = temp_dir / "other"
        other.mkdir()
        (other / "copy.txt").write_bytes(b"world")
        DeduplicationCommand().execute(make_params(other, cache_path))
        removed = []

        result = DeduplicationCommand(remove_file=removed.append).execute(
            make_params(tree, cache_path, delete_duplicates=True))

        assert str(other / "copy.txt") not in removed
        assert str(test_files["c"]) not in removed
        assert sorted(removed) == sorted([str(test_files["b"]), str(test_files["d"])])
        assert len(result.groups) == 2

    def test_default_removal_uses_trash(self, test_files, tree, cache_path):
        with mock.patch("dupindex.services.file_service.send2trash") as trash:
            DeduplicationCommand().execute(make_params(tree, cache_path, delete_duplicates=True))

        trashed = sorted(call.args[0] for call in trash.call_args_list)
        assert trashed == sorted([str(test_files["b"]), str(test_files["d"])])


class TestOrganizeAndUnzip:

    def test_organize_uses_walk_root(self, tree, cache_path):
        nested = tree / "deep" / "er"
        nested.mkdir(parents=True)
        (nested / "Report.PDF").write_bytes(b"%PDF")

        DeduplicationCommand().execute(make_params(tree, cache_path, organize=True))

        assert (tree / "re" / "Report.PDF").exists()
        saved = json.loads(cache_path.read_text(encoding="utf-8"))
        assert list(saved["Files"]) == [str(tree / "re" / "Report.PDF")]

    def test_unzip_indexes_members(self, tree, cache_path):
        with zipfile.ZipFile(tree / "bundle.zip", "w") as zf:
            zf.writestr("one.txt", b"same")
            zf.writestr("two.txt", b"same")

        result = DeduplicationCommand().execute(make_params(tree, cache_path, expand_archives=True))

        assert result.groups[0].paths == [str(tree / "one.txt"), str(tree / "two.txt")]
        assert not (tree / "bundle.zip").exists()
