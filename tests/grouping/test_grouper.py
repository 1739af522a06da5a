import random
import unittest

from commit_wizard.grouping.change_classifier import CommitType
from commit_wizard.grouping.group_model import ChangedFile, ChangeGroup, FileStatus
from commit_wizard.grouping.grouper import (
    MAX_BODY_LINES,
    DuplicateFileError,
    NoChangesError,
    body_lines_for,
    describe,
    group_changes,
    sort_groups,
    validate_unique_files,
)


def modified(path: str) -> ChangedFile:
    return ChangedFile(path=path, status=FileStatus.MODIFIED)


class TestGroupChanges(unittest.TestCase):
    def test_mixed_changes_are_grouped_and_ordered(self) -> None:
        changes = [
            modified("src/api/users.rs"),
            modified("README.md"),
            modified("tests/api_test.rs"),
            modified("web/app.css"),
        ]
        groups = group_changes(changes, ticket="JIRA-42")

        summary = [(g.commit_type, g.scope, g.paths) for g in groups]
        self.assertEqual(
            summary,
            [
                (CommitType.TEST, "tests", ["tests/api_test.rs"]),
                (CommitType.DOCS, None, ["README.md"]),
                (CommitType.STYLE, "web", ["web/app.css"]),
                (CommitType.FEAT, "src", ["src/api/users.rs"]),
            ],
        )
        self.assertTrue(all(g.ticket == "JIRA-42" for g in groups))

    def test_files_with_same_type_and_scope_share_a_group(self) -> None:
        groups = group_changes([modified("src/a.py"), modified("lib/x.py"), modified("src/b.py")])
        self.assertEqual([g.scope for g in groups], ["lib", "src"])
        self.assertEqual(groups[1].paths, ["src/a.py", "src/b.py"])

    def test_none_scope_sorts_first(self) -> None:
        groups = group_changes([modified("src/main.py"), modified("main.py")])
        self.assertEqual([g.scope for g in groups], [None, "src"])

    def test_reordered_input_gives_same_groups(self) -> None:
        changes = [
            modified("src/a.py"),
            modified("src/b.py"),
            modified("docs/guide.md"),
            modified("tests/test_a.py"),
            modified("setup.py"),
            modified("web/site.css"),
            modified("lib/util.py"),
        ]
        expected = [(g.commit_type, g.scope, set(g.paths)) for g in group_changes(changes)]
        shuffled = list(changes)
        random.Random(7).shuffle(shuffled)
        actual = [(g.commit_type, g.scope, set(g.paths)) for g in group_changes(shuffled)]
        self.assertEqual(actual, expected)

    def test_every_valid_file_lands_in_exactly_one_group(self) -> None:
        changes = [modified(p) for p in ("a.py", "src/b.py", "tests/c.py", "docs/d.md", "e.css")]
        groups = group_changes(changes)
        paths = [p for g in groups for p in g.paths]
        self.assertEqual(sorted(paths), sorted(c.path for c in changes))
        self.assertTrue(all(g.files for g in groups))

    def test_unsafe_paths_are_dropped(self) -> None:
        with self.assertLogs("commit_wizard.vcs.path_validator", level="WARNING"):
            groups = group_changes([modified("../etc/passwd"), modified("src/ok.py")])
        self.assertEqual([p for g in groups for p in g.paths], ["src/ok.py"])

    def test_repeated_paths_keep_first_entry(self) -> None:
        first = ChangedFile(path="src/a.py", status=FileStatus.ADDED)
        groups = group_changes([first, modified("src/a.py")])
        self.assertEqual(groups[0].files, [first])

    def test_no_valid_changes_raises(self) -> None:
        with self.assertRaises(NoChangesError):
            group_changes([])
        with self.assertRaises(NoChangesError):
            group_changes([modified("/abs/path.py")])


class TestDescribe(unittest.TestCase):
    def test_verb_depends_on_type(self) -> None:
        files = [modified("src/a.py")]
        self.assertEqual(describe(CommitType.FEAT, "src", files), "add src")
        self.assertEqual(describe(CommitType.FIX, "src", files), "fix src")
        self.assertEqual(describe(CommitType.DOCS, "src", files), "update src")
        self.assertEqual(describe(CommitType.TEST, "src", files), "update src")

    def test_object_without_scope(self) -> None:
        self.assertEqual(describe(CommitType.DOCS, None, [modified("README.md")]), "update README.md")
        self.assertEqual(
            describe(CommitType.FEAT, None, [modified("a.py"), modified("b.py")]), "add 2 files"
        )


class TestBodyLines(unittest.TestCase):
    def test_one_line_per_file_by_status(self) -> None:
        files = [
            ChangedFile("a.py", FileStatus.ADDED),
            ChangedFile("b.py", FileStatus.DELETED),
            ChangedFile("c.py", FileStatus.MODIFIED),
            ChangedFile("d.py", FileStatus.RENAMED, old_path="old_d.py"),
            ChangedFile("e.py", FileStatus.UNTRACKED),
        ]
        self.assertEqual(
            body_lines_for(files),
            ["- add a.py", "- remove b.py", "- modify c.py", "- rename d.py", "- add e.py"],
        )

    def test_body_is_capped(self) -> None:
        files = [modified(f"src/f{i}.py") for i in range(MAX_BODY_LINES + 5)]
        lines = body_lines_for(files)
        self.assertEqual(len(lines), MAX_BODY_LINES + 1)
        self.assertEqual(lines[-1], "- ... and 5 more files")


class TestGroupHelpers(unittest.TestCase):
    def test_sort_groups(self) -> None:
        groups = [
            ChangeGroup(CommitType.FIX, [modified("b.py")], scope="b"),
            ChangeGroup(CommitType.TEST, [modified("t.py")], scope="z"),
            ChangeGroup(CommitType.FIX, [modified("a.py")]),
        ]
        ordered = sort_groups(groups)
        self.assertEqual([(g.commit_type, g.scope) for g in ordered], [
            (CommitType.TEST, "z"),
            (CommitType.FIX, None),
            (CommitType.FIX, "b"),
        ])

    def test_validate_unique_files(self) -> None:
        ok = [
            ChangeGroup(CommitType.FEAT, [modified("a.py")]),
            ChangeGroup(CommitType.DOCS, [modified("b.md")]),
        ]
        validate_unique_files(ok)

        duplicated = ok + [ChangeGroup(CommitType.FIX, [modified("a.py")])]
        with self.assertRaises(DuplicateFileError) as ctx:
            validate_unique_files(duplicated)
        self.assertIn("a.py", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
