import os
import subprocess
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

from commit_wizard.grouping.change_classifier import CommitType
from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup, FileStatus
from commit_wizard.vcs.git_client import CommitError, GitClient, GitError


class DummyProc(SimpleNamespace):
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""


STATUS_OUTPUT = "\0".join(
    [
        " M modified_file.py",
        "A  added_file.py",
        "D  deleted_file.py",
        "R  renamed_new.py",
        "renamed_old.py",
        "MM staged_and_dirty.py",
        "?? untracked.txt",
        "!! ignored.log",
        "",
    ]
)


class TestGitClientStatus(unittest.TestCase):
    def _client_with_status(self, output: str):
        def fake_run(self, args, check=True, timeout=None):
            if args[0] == "status" and "-z" in args:
                return DummyProc(returncode=0, stdout=output, stderr="")
            raise AssertionError(f"Unexpected git command: {args}")

        patcher = patch.object(GitClient, "_run", autospec=True, side_effect=fake_run)
        patcher.start()
        self.addCleanup(patcher.stop)
        return GitClient(Path("/repo"))

    def test_get_changes_parses_status(self) -> None:
        client = self._client_with_status(STATUS_OUTPUT)
        changes = client.get_changes()
        self.assertEqual(
            changes,
            [
                ChangedFile("modified_file.py", FileStatus.MODIFIED),
                ChangedFile("added_file.py", FileStatus.ADDED),
                ChangedFile("deleted_file.py", FileStatus.DELETED),
                ChangedFile("renamed_new.py", FileStatus.RENAMED, old_path="renamed_old.py"),
                ChangedFile("staged_and_dirty.py", FileStatus.MODIFIED),
            ],
        )

    def test_untracked_files(self) -> None:
        client = self._client_with_status(STATUS_OUTPUT)
        self.assertEqual(
            client.get_untracked_files(),
            [ChangedFile("untracked.txt", FileStatus.UNTRACKED)],
        )
        with_untracked = client.get_changes(include_untracked=True)
        self.assertIn(ChangedFile("untracked.txt", FileStatus.UNTRACKED), with_untracked)
        self.assertTrue(all(c.path != "ignored.log" for c in with_untracked))

    def test_paths_with_spaces_and_arrows(self) -> None:
        client = self._client_with_status(" M dir with space/a -> b.txt\0")
        self.assertEqual(
            client.get_changes(), [ChangedFile("dir with space/a -> b.txt", FileStatus.MODIFIED)]
        )

    def test_empty_status(self) -> None:
        client = self._client_with_status("")
        self.assertEqual(client.get_changes(), [])


class TestGitClientRun(unittest.TestCase):
    def test_run_raises_on_failure(self) -> None:
        with patch(
            "commit_wizard.vcs.git_client.subprocess.run",
            return_value=DummyProc(returncode=128, stdout="", stderr="fatal: bad"),
        ):
            with self.assertRaises(GitError) as ctx:
                GitClient(Path("/repo"))._run(["status"])
        self.assertIn("fatal: bad", str(ctx.exception))

    def test_run_timeout_becomes_git_error(self) -> None:
        with patch(
            "commit_wizard.vcs.git_client.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="git commit", timeout=5),
        ):
            with self.assertRaises(GitError) as ctx:
                GitClient(Path("/repo"))._run(["commit"], timeout=5)
        self.assertIn("timed out", str(ctx.exception))

    def test_run_missing_git(self) -> None:
        with patch("commit_wizard.vcs.git_client.subprocess.run", side_effect=FileNotFoundError("git")):
            with self.assertRaises(GitError):
                GitClient(Path("/repo"))._run(["status"])

    def test_get_current_branch(self) -> None:
        with patch.object(GitClient, "_run", return_value=DummyProc(stdout="feature/ABC-1\n")):
            self.assertEqual(GitClient(Path("/repo")).get_current_branch(), "feature/ABC-1")

    def test_get_diff_prefers_staged(self) -> None:
        calls = []

        def fake_run(self, args, check=True, timeout=None):
            calls.append(args)
            if "--cached" in args:
                return DummyProc(stdout="")
            return DummyProc(stdout="diff --git a/x b/x\n")

        with patch.object(GitClient, "_run", autospec=True, side_effect=fake_run):
            diff = GitClient(Path("/repo")).get_diff("x")
        self.assertEqual(diff, "diff --git a/x b/x\n")
        self.assertEqual(calls, [["diff", "--cached", "--", "x"], ["diff", "--", "x"]])

    def test_find_repo_root(self) -> None:
        import tempfile

        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp).resolve()
            (root / ".git").mkdir()
            nested = root / "a" / "b"
            nested.mkdir(parents=True)
            self.assertEqual(GitClient.find_repo_root(nested), root)


class TestCommitGroup(unittest.TestCase):
    def _group(self, *files: ChangedFile) -> ChangeGroup:
        return ChangeGroup(
            commit_type=CommitType.FEAT,
            scope="src",
            files=list(files),
            description="add login",
            body_lines=["- modify src/a.py"],
        )

    def test_commit_stages_and_commits_only_group_files(self) -> None:
        calls = []
        messages = []

        def fake_run(self, args, check=True, timeout=None):
            calls.append((args, timeout))
            if args[0] == "commit":
                with open(args[2], encoding="utf-8") as handle:
                    messages.append(handle.read())
            return DummyProc(stdout="[main abc123] feat(src): add login\n")

        group = self._group(
            ChangedFile("src/a.py", FileStatus.MODIFIED),
            ChangedFile("src/new.py", FileStatus.RENAMED, old_path="src/old.py"),
        )
        with patch.object(GitClient, "_run", autospec=True, side_effect=fake_run):
            output = GitClient(Path("/repo")).commit_group(group, timeout=12)

        self.assertIn("abc123", output)
        add_args, _ = calls[0]
        self.assertEqual(add_args, ["add", "-A", "--", "src/a.py", "src/old.py", "src/new.py"])
        commit_args, commit_timeout = calls[1]
        self.assertEqual(commit_args[:2], ["commit", "-F"])
        self.assertEqual(commit_args[3:], ["--", "src/a.py", "src/old.py", "src/new.py"])
        self.assertEqual(commit_timeout, 12)
        self.assertEqual(messages, ["feat(src): add login\n\n- modify src/a.py\n"])
        self.assertFalse(os.path.exists(commit_args[2]))

    def test_commit_failure_raises_commit_error(self) -> None:
        def fake_run(self, args, check=True, timeout=None):
            if args[0] == "commit":
                raise GitError("pre-commit hook failed")
            return DummyProc()

        group = self._group(ChangedFile("src/a.py", FileStatus.MODIFIED))
        with patch.object(GitClient, "_run", autospec=True, side_effect=fake_run):
            with self.assertRaises(CommitError) as ctx:
                GitClient(Path("/repo")).commit_group(group)
        self.assertIn("pre-commit hook failed", ctx.exception.diagnostics)

    def test_unsafe_path_never_reaches_git(self) -> None:
        group = self._group(ChangedFile("../escape.py", FileStatus.MODIFIED))
        with patch.object(GitClient, "_run", autospec=True) as mock_run:
            with self.assertRaises(CommitError):
                GitClient(Path("/repo")).commit_group(group)
        mock_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
