"""Tests for route template compilation, path splitting and matching."""

import pytest

from app.core.errors import ValidationAppError
from app.utils.route_patterns import (
    SegmentKind,
    compile_template,
    expand_template,
    patterns_overlap,
    split_path,
)


class TestSplitPath:
    def test_splits_and_decodes_segments(self):
        assert split_path("/app/jobs/senior%20dev") == ["app", "jobs", "senior dev"]

    def test_root_is_empty(self):
        assert split_path("/") == []

    @pytest.mark.parametrize("pathname", ["//", "///", "//?tab=1"])
    def test_slash_only_paths_are_not_the_root(self, pathname):
        assert split_path(pathname) not in ([], None)
        assert all(segment == "" for segment in split_path(pathname))

    def test_ignores_query_fragment_and_trailing_slash(self):
        assert split_path("/app/results/?page=2#top") == ["app", "results"]

    def test_encoded_slash_stays_inside_segment(self):
        assert split_path("/files/a%2Fb") == ["files", "a/b"]

    @pytest.mark.parametrize(
        "pathname",
        [
            "/app/jobs/%E0%A4%A",  # truncated escape
            "/app/jobs/100%",  # bare percent
            "/app/jobs/%zz",  # non-hex escape
            "/app/jobs/%FF",  # invalid UTF-8
            "/app/jobs/%E0%A4",  # incomplete UTF-8 sequence
        ],
    )
    def test_malformed_escapes_return_none(self, pathname):
        assert split_path(pathname) is None

    @pytest.mark.parametrize("pathname", ["", "app/dashboard", None])
    def test_non_absolute_paths_return_none(self, pathname):
        assert split_path(pathname) is None


class TestCompileTemplate:
    def test_segment_kinds(self):
        pattern = compile_template("/files/:dir?/:rest*/:name/:tail+")

        assert [s.kind for s in pattern.segments] == [
            SegmentKind.LITERAL,
            SegmentKind.OPTIONAL,
            SegmentKind.ZERO_OR_MORE,
            SegmentKind.PARAM,
            SegmentKind.ONE_OR_MORE,
        ]
        assert pattern.param_names == ("dir", "rest", "name", "tail")

    @pytest.mark.parametrize(
        "template",
        ["app/dashboard", "/app/:", "/app/:1abc", "/app//x", "/a/:id/:id", "/a/:x-y"],
    )
    def test_invalid_templates_raise(self, template):
        with pytest.raises(ValidationAppError) as exc_info:
            compile_template(template)

        assert exc_info.value.code == "invalid_route_template"

    def test_more_specific_template_ranks_higher(self):
        specific = compile_template("/app/interviews/new")
        general = compile_template("/app/interviews/:id")
        catch_all = compile_template("/app/:rest*")

        assert specific.specificity > general.specificity > catch_all.specificity

    def test_exact_end_ranks_above_optional_tail(self):
        assert compile_template("/app").specificity > compile_template("/app/:id?").specificity


class TestMatch:
    def test_named_parameter(self):
        assert compile_template("/app/interviews/:id").match("/app/interviews/42") == {"id": "42"}

    def test_parameter_is_percent_decoded(self):
        pattern = compile_template("/app/jobs/:name")

        assert pattern.match("/app/jobs/senior%20dev") == {"name": "senior dev"}

    def test_literal_compared_after_decoding(self):
        assert compile_template("/app/dashboard").match("/app/%64ashboard") == {}

    def test_literal_is_case_insensitive(self):
        assert compile_template("/app/dashboard").match("/APP/Dashboard") == {}

    def test_trailing_slash_and_query_tolerated(self):
        pattern = compile_template("/app/dashboard")

        assert pattern.match("/app/dashboard/") == {}
        assert pattern.match("/app/dashboard?tab=stats") == {}

    def test_root_template(self):
        assert compile_template("/").match("/") == {}
        assert compile_template("/").match("/app") is None
        assert compile_template("/").match("//") is None

    @pytest.mark.parametrize(
        "pathname",
        [
            "/app/interviews",
            "/app/interviews/",
            "/app/interviews/42/edit",
            "/app/results/42",
            "/app//42",
        ],
    )
    def test_non_matching_paths(self, pathname):
        assert compile_template("/app/interviews/:id").match(pathname) is None

    def test_malformed_path_does_not_match(self):
        assert compile_template("/app/jobs/:name").match("/app/jobs/%E0%A4%A") is None

    def test_optional_parameter(self):
        pattern = compile_template("/app/results/:id?")

        assert pattern.match("/app/results") == {}
        assert pattern.match("/app/results/7") == {"id": "7"}
        assert pattern.match("/app/results/7/8") is None

    def test_zero_or_more(self):
        pattern = compile_template("/app/:rest*")

        assert pattern.match("/app") == {"rest": []}
        assert pattern.match("/app/a/b") == {"rest": ["a", "b"]}

    def test_one_or_more(self):
        pattern = compile_template("/files/:path+")

        assert pattern.match("/files") is None
        assert pattern.match("/files/a/b%20c") == {"path": ["a", "b c"]}

    def test_repeated_segment_followed_by_literal(self):
        pattern = compile_template("/docs/:path*/edit")

        assert pattern.match("/docs/a/b/edit") == {"path": ["a", "b"]}
        assert pattern.match("/docs/edit") == {"path": []}
        assert pattern.match("/docs/a/b") is None

    def test_stacked_repeated_segments_on_long_paths(self):
        pattern = compile_template("/:a*/:b*/:c*/x")
        parts = ["p"] * 200

        assert pattern.match_segments(parts) is None
        assert pattern.match_segments([*parts, "x"]) == {"a": parts, "b": [], "c": []}

    def test_backtracking_keeps_first_successful_split(self):
        pattern = compile_template("/:head+/mid/:tail*/end")

        assert pattern.match("/a/mid/b/mid/c/end") == {
            "head": ["a", "mid", "b"],
            "tail": ["c"],
        }


class TestExpandTemplate:
    def test_substitutes_and_quotes(self):
        assert expand_template("/app/interviews/:id", {"id": "a b"}) == "/app/interviews/a%20b"

    def test_repeated_values_are_joined(self):
        assert expand_template("/files/:path*", {"path": ["a", "b"]}) == "/files/a/b"

    def test_unknown_params_left_in_place(self):
        assert expand_template("/app/results/:id", {}) == "/app/results/:id"


class TestPatternsOverlap:
    @pytest.mark.parametrize(
        ("first", "second", "expected"),
        [
            ("/app/interviews/new", "/app/interviews/:id", True),
            ("/app/interviews", "/app/interviews/:id", False),
            ("/app/:rest*", "/app/interviews/:id", True),
            ("/app/:rest*", "/app", True),
            ("/a/:x+", "/a", False),
            ("/a/b/:x", "/a/c/:y", False),
            ("/a/:x?/c", "/a/c", True),
            ("/a/:x/:y", "/a/:z", False),
            ("/Admin/users", "/admin/users", True),
        ],
    )
    def test_overlap(self, first, second, expected):
        a, b = compile_template(first), compile_template(second)

        assert patterns_overlap(a, b) is expected
        assert patterns_overlap(b, a) is expected
