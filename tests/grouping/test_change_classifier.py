import unittest

from commit_wizard.grouping.change_classifier import (
    DEFAULT_RULES,
    ClassificationRule,
    CommitType,
    classify_change,
)


class TestChangeClassifier(unittest.TestCase):
    def test_classify_change_cases(self) -> None:
        cases = [
            ("tests/test_example.py", CommitType.TEST),
            ("test/helpers.py", CommitType.TEST),
            ("src/user_spec.js", CommitType.TEST),
            ("README.md", CommitType.DOCS),
            ("guide/intro.rst", CommitType.DOCS),
            ("docs/conf.py", CommitType.DOCS),
            (".github/workflows/ci.yml", CommitType.CI),
            (".gitlab/ci.yml", CommitType.CI),
            ("deploy/pipeline.yml", CommitType.CI),
            ("Dockerfile", CommitType.BUILD),
            ("package.json", CommitType.BUILD),
            ("backend/pyproject.toml", CommitType.BUILD),
            ("Cargo.toml", CommitType.BUILD),
            ("web/app.css", CommitType.STYLE),
            ("web/theme.scss", CommitType.STYLE),
            ("styles/colors.js", CommitType.STYLE),
            ("src/main.py", CommitType.FEAT),
            ("unknown.bin", CommitType.FEAT),
        ]
        for file_path, expected in cases:
            with self.subTest(file=file_path):
                self.assertEqual(classify_change(file_path), expected)

    def test_matching_is_case_insensitive(self) -> None:
        self.assertEqual(classify_change("Tests/Login.py"), CommitType.TEST)
        self.assertEqual(classify_change("GUIDE.MD"), CommitType.DOCS)
        self.assertEqual(classify_change("DOCKERFILE"), CommitType.BUILD)

    def test_first_matching_rule_wins(self) -> None:
        # each path matches two rules; the earlier one decides
        self.assertEqual(classify_change("tests/README.md"), CommitType.TEST)
        self.assertEqual(classify_change("docs/pipeline.md"), CommitType.DOCS)
        self.assertEqual(classify_change(".github/CONTRIBUTING.md"), CommitType.DOCS)
        self.assertEqual(classify_change("tests/package.json"), CommitType.TEST)
        self.assertEqual(classify_change(".github/styles/site.css"), CommitType.CI)

    def test_directory_segment_is_not_a_file_name(self) -> None:
        self.assertEqual(classify_change("src/docs.py"), CommitType.FEAT)
        self.assertEqual(classify_change("src/styles.py"), CommitType.FEAT)

    def test_rules_are_evaluated_in_given_order(self) -> None:
        reversed_rules = tuple(reversed(DEFAULT_RULES))
        self.assertEqual(classify_change("tests/README.md", reversed_rules), CommitType.DOCS)

    def test_custom_rule(self) -> None:
        rule = ClassificationRule(CommitType.PERF, "benchmarks", lambda path, lower: "bench" in lower)
        self.assertEqual(classify_change("bench/run.py", (rule,)), CommitType.PERF)
        self.assertEqual(classify_change("src/run.py", (rule,)), CommitType.FEAT)


class TestCommitType(unittest.TestCase):
    def test_rank_follows_declaration_order(self) -> None:
        ranked = sorted(CommitType, key=lambda t: t.rank)
        self.assertEqual(
            [t.value for t in ranked],
            ["test", "docs", "ci", "build", "style", "feat", "fix", "refactor", "perf", "chore"],
        )

    def test_parse(self) -> None:
        self.assertIs(CommitType.parse("fix"), CommitType.FIX)
        self.assertIs(CommitType.parse(" Docs "), CommitType.DOCS)
        self.assertIs(CommitType.parse("whatever"), CommitType.FEAT)


if __name__ == "__main__":
    unittest.main()
