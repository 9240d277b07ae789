"""Tests for schemaguard.reporter module."""

from datetime import date

from schemaguard import MISSING, Channel, ErrorReporter, Issue, IssueCode
from schemaguard.reporter import describe_received, format_path


def _issue(path, code=IssueCode.REQUIRED, message="required"):
    return Issue(path=path, code=code, message=message, expected="string", received="null")


class TestFormatPath:
    def test_fields_and_indices(self):
        assert format_path(("a", "b", 2, "c")) == "a.b[2].c"
        assert format_path((0, "x")) == "[0].x"
        assert format_path(("cells", 1, 1)) == "cells[1][1]"
        assert format_path(()) == ""


class TestDescribeReceived:
    def test_textual_forms(self):
        assert describe_received(MISSING) == "undefined"
        assert describe_received(None) == "null"
        assert describe_received(True) == "true"
        assert describe_received("abc") == "abc"
        assert describe_received(12) == "12"
        assert describe_received({"a": 1}) == '{"a": 1}'
        assert describe_received(date(2025, 1, 2)) == "2025-01-02"

    def test_long_values_are_truncated(self):
        text = describe_received("x" * 500)
        assert len(text) == 80
        assert text.endswith("...")


class TestViolationReport:
    """Test report aggregation and serialization."""

    def test_reporter_collects_issues(self):
        reporter = ErrorReporter(Channel.BODY)
        assert not reporter

        reporter.add(_issue(("name",)))
        reporter.extend([_issue(("tags", 1), IssueCode.INVALID_TYPE, "Expected string")])
        assert reporter

        report = reporter.report()
        assert report.channel == Channel.BODY
        assert report.fields == ["name", "tags[1]"]
        assert report.codes_at("tags[1]") == [IssueCode.INVALID_TYPE]

    def test_error_body_is_keyed_by_channel(self):
        reporter = ErrorReporter(Channel.QUERY)
        reporter.add(_issue(("nbr1",)))

        body = reporter.report().to_error_body()

        assert body == {
            "error": {
                "query": {
                    "issues": [
                        {
                            "path": ["nbr1"],
                            "code": "required",
                            "expected": "string",
                            "received": "null",
                            "message": "required",
                        }
                    ]
                }
            }
        }

    def test_describe_and_summary(self):
        reporter = ErrorReporter(Channel.PATH)
        reporter.add(_issue(("id",)))
        reporter.add(_issue(("name",)))
        report = reporter.report()

        assert report.describe() == [
            "id: required (expected string, received null)",
            "name: required (expected string, received null)",
        ]
        assert report.summary() == (
            "Invalid param: 2 issues; id: required (expected string, received null)"
        )

    def test_root_issue_description(self):
        issue = Issue(path=(), code=IssueCode.INVALID_TYPE, message="Expected object")

        assert issue.location == ""
        assert issue.describe() == "<root>: Expected object"
