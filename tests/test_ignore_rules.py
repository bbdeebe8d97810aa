"""Tests for .gitignore loading and glob compilation."""

from sourcesnap.core import IgnoreRules, compile_patterns, load_gitignore


class TestLoadGitignore:
    """Test load_gitignore function."""

    def test_missing_file_gives_empty_rules(self, tmp_path):
        rules = load_gitignore(tmp_path)
        assert len(rules) == 0
        assert not rules.matches("anything.ts")

    def test_disabled_ignores_existing_file(self, make_tree):
        root = make_tree({".gitignore": "*.ts\n"})
        rules = load_gitignore(root, enabled=False)
        assert not rules.matches("a.ts")

    def test_undecodable_file_gives_empty_rules(self, make_tree):
        root = make_tree({".gitignore": b"\xff\xfe\xfa*.ts\n"})
        rules = load_gitignore(root)
        assert len(rules) == 0

    def test_comments_and_blank_lines_are_not_patterns(self, make_tree):
        root = make_tree({".gitignore": "# build output\n\nbuild/\n"})
        rules = load_gitignore(root)
        assert len(rules) == 1
        assert rules.matches("build", is_dir=True)
        assert not rules.matches("# build output")

    def test_crlf_lines(self, make_tree):
        root = make_tree({".gitignore": "*.log\r\ntmp/\r\n"})
        rules = load_gitignore(root)
        assert rules.matches("debug.log")
        assert rules.matches("tmp", is_dir=True)


class TestIgnoreRules:
    """Test IgnoreRules matching semantics."""

    def test_directory_pattern_needs_directory(self):
        rules = IgnoreRules.from_lines(["dist/"])
        assert rules.matches("dist", is_dir=True)
        assert rules.matches("packages/dist", is_dir=True)
        assert not rules.matches("dist")

    def test_negation_last_match_wins(self):
        rules = IgnoreRules.from_lines(["*.log", "!keep.log"])
        assert rules.matches("debug.log")
        assert not rules.matches("keep.log")

    def test_later_pattern_re_ignores(self):
        rules = IgnoreRules.from_lines(["*.log", "!keep.log", "keep.log"])
        assert rules.matches("keep.log")

    def test_anchored_pattern(self):
        rules = IgnoreRules.from_lines(["/secret.ts"])
        assert rules.matches("secret.ts")
        assert not rules.matches("src/secret.ts")

    def test_trailing_slash_is_not_doubled(self):
        rules = IgnoreRules.from_lines(["out/"])
        assert rules.matches("out/", is_dir=True)


class TestCompilePatterns:
    """Test compile_patterns glob semantics."""

    def test_double_star_crosses_segments(self):
        globs = compile_patterns(["**/*.test.ts"])
        assert globs.match_file("a.test.ts")
        assert globs.match_file("src/deep/a.test.ts")
        assert not globs.match_file("a.ts")

    def test_star_without_slash_is_root_only(self):
        globs = compile_patterns(["*.ts"])
        assert globs.match_file("a.ts")
        assert not globs.match_file("src/b.ts")

    def test_single_star_stays_in_segment(self):
        globs = compile_patterns(["src/*"])
        assert globs.match_file("src/a.ts")
        assert not globs.match_file("src/sub/b.ts")

    def test_question_mark(self):
        globs = compile_patterns(["?.js"])
        assert globs.match_file("a.js")
        assert not globs.match_file("ab.js")

    def test_leading_bang_is_literal(self):
        globs = compile_patterns(["!a.ts"])
        assert globs.match_file("!a.ts")
        assert not globs.match_file("b.ts")

    def test_leading_hash_is_literal(self):
        globs = compile_patterns(["#notes.md"])
        assert globs.match_file("#notes.md")

    def test_star_matches_dotfiles(self):
        assert compile_patterns(["*.json"]).match_file(".eslintrc.json")

    def test_special_regex_characters_are_literal(self):
        globs = compile_patterns(["file(1)+.ts"])
        assert globs.match_file("file(1)+.ts")
        assert not globs.match_file("file1.ts")

    def test_empty_matches_nothing(self):
        globs = compile_patterns([])
        assert len(globs) == 0
        assert not globs.match_file("a.ts")
