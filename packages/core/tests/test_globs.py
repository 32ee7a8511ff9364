"""Tests for the target-glob filter."""

import pytest

from patchpilot_core.utils.globs import compile_glob, matches


class TestCompileGlob:
    def test_single_star_stays_within_segment(self):
        pattern = compile_glob("src/*.py")
        assert pattern.match("src/app.py")
        assert not pattern.match("src/pkg/app.py")

    def test_double_star_crosses_segments(self):
        pattern = compile_glob("src/**")
        assert pattern.match("src/app.py")
        assert pattern.match("src/a/b/c.py")

    def test_literal_segments_are_escaped(self):
        pattern = compile_glob("docs/v1.0+/index.md")
        assert pattern.match("docs/v1.0+/index.md")
        assert not pattern.match("docs/v1x0+/index.md")

    def test_match_is_anchored(self):
        pattern = compile_glob("src/**")
        assert not pattern.match("vendor/src/app.py")
        assert not compile_glob("*.py").match("app.pyc")

    def test_double_star_then_single_star(self):
        pattern = compile_glob("**/*.test.js")
        assert pattern.match("src/a/b.test.js")
        assert not pattern.match("b.test.js")


class TestMatches:
    def test_empty_patterns_match_everything(self):
        assert matches("anything/at/all.txt", [])
        assert matches("anything/at/all.txt", None)

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/index.js", True),
            ("lib/util/strings.js", True),
            ("tests/test_x.py", False),
            ("README.md", False),
            ("srcx/file.js", False),
        ],
    )
    def test_default_globs(self, path, expected):
        assert matches(path, ["src/**", "lib/**"]) is expected

    def test_no_pattern_matches(self):
        assert matches("app.py", ["src/**", "*.md"]) is False
