"""
Tests for the install and update workflows.

The git backend is a MagicMock, so these run without git or network.
"""

import pytest
import yaml
from pathlib import Path
from unittest.mock import MagicMock

from repolock.config import Settings
from repolock.domain.operation import SyncAction
from repolock.exit_codes import (
    CheckoutError,
    CloneError,
    FetchError,
    InvalidURL,
    RecordReadError,
)
from repolock.infra.git_client import GitClient, PullResult
from repolock.services.lock_service import LockService


H1 = "1" * 40
H2 = "2" * 40
HPIN = "a" * 40


def write_yaml(path: Path, data) -> None:
    path.write_text(yaml.safe_dump(data, sort_keys=False))


def read_yaml(path: Path):
    return yaml.safe_load(path.read_text())


def drain(gen):
    """Exhaust a LockService generator and return (results, summary)."""
    results = []
    while True:
        try:
            results.append(next(gen))
        except StopIteration as stop:
            return results, stop.value


@pytest.fixture
def settings(tmp_path):
    return Settings(
        manifest_path=tmp_path / "repolock-manifest.yaml",
        lock_path=tmp_path / "repolock-lock.yaml",
        default_base_dir=str(tmp_path / "repos"),
    )


@pytest.fixture
def git():
    client = MagicMock(spec=GitClient)
    client.is_git_repo.return_value = False
    client.clone.return_value = H1
    return client


class TestInstall:
    """Tests for LockService.install."""

    def test_fresh_install_records_head(self, settings, git, tmp_path):
        """Empty lock: clone into the URL-derived directory and lock the head."""
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })

        results, summary = drain(LockService(settings, git_client=git).install())

        git.clone.assert_called_once_with('https://example.com/a.git', str(tmp_path / 'repos' / 'a'))
        git.checkout.assert_not_called()
        assert results[0].action == SyncAction.CLONED
        assert results[0].hash == H1
        assert read_yaml(settings.lock_path) == {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H1}]
        }
        assert summary.completed

    def test_locked_entry_is_checked_out_at_locked_hash(self, settings, git):
        """Existing lock pins the entry: install checks the locked hash out."""
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H2}]
        })

        results, _ = drain(LockService(settings, git_client=git).install())

        git.checkout.assert_called_once()
        assert git.checkout.call_args[0][1] == H2
        assert results[0].action == SyncAction.PINNED
        assert read_yaml(settings.lock_path)['repositories'][0]['hash'] == H2

    def test_reported_previous_hash_comes_from_lock(self, settings, git, caplog):
        """A fresh clone reports no previous hash; a restored entry reports no change."""
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'},
                             {'url': 'https://example.com/b.git'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/b.git', 'directory': 'b', 'hash': H2}]
        })

        with caplog.at_level("INFO", logger="repolock"):
            results, _ = drain(LockService(settings, git_client=git).install())

        assert results[0].previous_hash is None
        assert 'previous_hash' not in results[0].to_dict()
        assert results[1].previous_hash == H2
        assert 'previous_hash' not in results[1].to_dict()
        checked_out = [r.getMessage() for r in caplog.records if r.getMessage().startswith("Checked out")]
        assert checked_out == [f"Checked out https://example.com/b.git at {H2}"]

    def test_lock_directory_wins_over_manifest(self, settings, git, tmp_path):
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'new-name'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'old-name', 'hash': H2}]
        })

        drain(LockService(settings, git_client=git).install())

        assert git.clone.call_args[0][1] == str(tmp_path / 'repos' / 'old-name')
        assert read_yaml(settings.lock_path)['repositories'][0]['directory'] == 'old-name'

    def test_manifest_pin_is_checked_out(self, settings, git):
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'hash': HPIN}]
        })

        drain(LockService(settings, git_client=git).install())

        assert git.checkout.call_args[0][1] == HPIN
        assert read_yaml(settings.lock_path)['repositories'][0]['hash'] == HPIN

    def test_lock_only_entries_are_dropped(self, settings, git):
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [
                {'url': 'https://example.com/gone.git', 'directory': 'gone', 'hash': H2},
            ]
        })

        drain(LockService(settings, git_client=git).install())

        urls = [r['url'] for r in read_yaml(settings.lock_path)['repositories']]
        assert urls == ['https://example.com/a.git']

    def test_existing_checkout_is_not_cloned_again(self, settings, git):
        git.is_git_repo.return_value = True
        git.head.return_value = H2
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })

        results, _ = drain(LockService(settings, git_client=git).install())

        git.clone.assert_not_called()
        assert results[0].action == SyncAction.PRESENT
        assert results[0].hash == H2

    def test_manifest_base_directory_is_used_and_recorded(self, settings, git, tmp_path):
        base = tmp_path / 'third_party'
        write_yaml(settings.manifest_path, {
            'base_directory': str(base),
            'repositories': [{'url': 'https://example.com/a.git'}]
        })

        drain(LockService(settings, git_client=git).install())

        assert git.clone.call_args[0][1] == str(base / 'a')
        assert read_yaml(settings.lock_path)['base_directory'] == str(base)

    def test_base_dir_override_wins(self, settings, git, tmp_path):
        override = tmp_path / 'override'
        settings = Settings(
            manifest_path=settings.manifest_path,
            lock_path=settings.lock_path,
            base_dir_override=str(override),
        )
        write_yaml(settings.manifest_path, {
            'base_directory': 'ignored',
            'repositories': [{'url': 'https://example.com/a.git'}]
        })

        drain(LockService(settings, git_client=git).install())

        assert git.clone.call_args[0][1] == str(override / 'a')

    def test_entries_processed_in_manifest_order(self, settings, git):
        git.clone.side_effect = [H1, H2]
        write_yaml(settings.manifest_path, {
            'repositories': [
                {'url': 'https://example.com/b.git'},
                {'url': 'https://example.com/a.git'},
            ]
        })

        drain(LockService(settings, git_client=git).install())

        lock = read_yaml(settings.lock_path)['repositories']
        assert [e['directory'] for e in lock] == ['b', 'a']
        assert [e['hash'] for e in lock] == [H1, H2]

    def test_missing_manifest_is_fatal(self, settings, git):
        with pytest.raises(RecordReadError):
            drain(LockService(settings, git_client=git).install())
        git.clone.assert_not_called()

    def test_duplicate_manifest_url_is_fatal(self, settings, git):
        write_yaml(settings.manifest_path, {
            'repositories': [
                {'url': 'https://example.com/a.git'},
                {'url': 'https://example.com/a.git', 'directory': 'other'},
            ]
        })

        with pytest.raises(RecordReadError, match="more than once"):
            drain(LockService(settings, git_client=git).install())

    def test_clone_failure_writes_no_lock(self, settings, git):
        git.clone.side_effect = [H1, CloneError("Failed to clone", url='https://example.com/b.git')]
        write_yaml(settings.manifest_path, {
            'repositories': [
                {'url': 'https://example.com/a.git'},
                {'url': 'https://example.com/b.git'},
                {'url': 'https://example.com/c.git'},
            ]
        })

        with pytest.raises(CloneError):
            drain(LockService(settings, git_client=git).install())

        assert git.clone.call_count == 2
        assert not settings.lock_path.exists()

    def test_checkout_failure_keeps_old_lock(self, settings, git):
        git.checkout.side_effect = CheckoutError("Failed to checkout")
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        old_lock = {'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H2}]}
        write_yaml(settings.lock_path, old_lock)

        with pytest.raises(CheckoutError):
            drain(LockService(settings, git_client=git).install())

        assert read_yaml(settings.lock_path) == old_lock

    def test_invalid_url_aborts_before_clone(self, settings, git):
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/'}]
        })

        with pytest.raises(InvalidURL):
            drain(LockService(settings, git_client=git).install())

        git.clone.assert_not_called()
        assert not settings.lock_path.exists()


class TestUpdate:
    """Tests for LockService.update."""

    def test_missing_lock_is_fatal(self, settings, git):
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })

        with pytest.raises(RecordReadError, match="install"):
            drain(LockService(settings, git_client=git).update())
        git.pull.assert_not_called()

    def test_pinned_entry_is_skipped_and_carried_forward(self, settings, git):
        """Pinned manifest entry: no pull, directory from old lock, hash from manifest."""
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'hash': HPIN}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'custom', 'hash': HPIN}]
        })

        results, _ = drain(LockService(settings, git_client=git).update())

        git.pull.assert_not_called()
        assert results[0].action == SyncAction.SKIPPED
        assert read_yaml(settings.lock_path)['repositories'] == [
            {'url': 'https://example.com/a.git', 'directory': 'custom', 'hash': HPIN}
        ]

    def test_pinned_entry_url_is_not_parsed(self, settings, git):
        """A skipped entry needs no directory derived from its URL."""
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/', 'hash': HPIN}]
        })
        write_yaml(settings.lock_path, {'repositories': []})

        results, _ = drain(LockService(settings, git_client=git).update())

        git.pull.assert_not_called()
        assert results[0].action == SyncAction.SKIPPED
        assert results[0].path is None
        assert read_yaml(settings.lock_path)['repositories'] == [
            {'url': 'https://example.com/', 'hash': HPIN}
        ]

    def test_already_up_to_date_keeps_hash(self, settings, git, tmp_path):
        git.pull.return_value = PullResult(head=H1, previous_head=H1)
        old_lock = {'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H1}]}
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, old_lock)

        results, summary = drain(LockService(settings, git_client=git).update())

        git.pull.assert_called_once_with(str(tmp_path / 'repos' / 'a'), remote='origin')
        assert results[0].action == SyncAction.ALREADY_CURRENT
        assert read_yaml(settings.lock_path) == old_lock
        assert summary.count(SyncAction.ALREADY_CURRENT) == 1

    def test_new_commits_advance_hash(self, settings, git):
        git.pull.return_value = PullResult(head=H2, previous_head=H1)
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H1}]
        })

        results, _ = drain(LockService(settings, git_client=git).update())

        assert results[0].action == SyncAction.UPDATED
        assert results[0].previous_hash == H1
        assert read_yaml(settings.lock_path)['repositories'][0]['hash'] == H2

    def test_directory_recovered_from_old_lock(self, settings, git, tmp_path):
        git.pull.return_value = PullResult(head=H1, previous_head=H1)
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, {
            'repositories': [{'url': 'https://example.com/a.git', 'directory': 'vendored-a', 'hash': H1}]
        })

        drain(LockService(settings, git_client=git).update())

        assert git.pull.call_args[0][0] == str(tmp_path / 'repos' / 'vendored-a')

    def test_falls_back_to_manifest_entry(self, settings, git, tmp_path):
        git.pull.return_value = PullResult(head=H1, previous_head=H1)
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/b.git'}]
        })
        write_yaml(settings.lock_path, {'repositories': []})

        drain(LockService(settings, git_client=git).update())

        assert git.pull.call_args[0][0] == str(tmp_path / 'repos' / 'b')

    def test_only_pinned_entries_are_skipped(self, settings, git):
        git.pull.return_value = PullResult(head=H2, previous_head=H1)
        write_yaml(settings.manifest_path, {
            'repositories': [
                {'url': 'https://example.com/a.git'},
                {'url': 'https://example.com/p.git', 'hash': HPIN},
                {'url': 'https://example.com/c.git'},
            ]
        })
        write_yaml(settings.lock_path, {'repositories': []})

        results, _ = drain(LockService(settings, git_client=git).update())

        assert git.pull.call_count == 2
        assert [r.action for r in results] == [
            SyncAction.UPDATED, SyncAction.SKIPPED, SyncAction.UPDATED
        ]
        lock = read_yaml(settings.lock_path)['repositories']
        assert [e['url'] for e in lock] == [
            'https://example.com/a.git', 'https://example.com/p.git', 'https://example.com/c.git'
        ]
        assert lock[1]['hash'] == HPIN

    def test_lock_keeps_manifest_base_directory(self, settings, git):
        git.pull.return_value = PullResult(head=H1, previous_head=H1)
        write_yaml(settings.manifest_path, {
            'base_directory': 'from-manifest',
            'repositories': []
        })
        write_yaml(settings.lock_path, {'base_directory': 'from-lock', 'repositories': []})

        drain(LockService(settings, git_client=git).update())

        assert read_yaml(settings.lock_path)['base_directory'] == 'from-manifest'

    def test_fetch_failure_writes_no_lock(self, settings, git):
        git.pull.side_effect = FetchError("Failed to pull from origin")
        old_lock = {'repositories': [{'url': 'https://example.com/a.git', 'directory': 'a', 'hash': H1}]}
        write_yaml(settings.manifest_path, {
            'repositories': [{'url': 'https://example.com/a.git'}]
        })
        write_yaml(settings.lock_path, old_lock)

        with pytest.raises(FetchError):
            drain(LockService(settings, git_client=git).update())

        assert read_yaml(settings.lock_path) == old_lock


class TestRun:
    def test_unknown_mode(self, settings, git):
        with pytest.raises(ValueError):
            LockService(settings, git_client=git).run("upgrade")
