"""Tests for reviewer helper functions."""

import pytest

from reviewbot_core.models import ChangedFile
from reviewbot_core.reviewer import (
    _is_excluded,
    get_provider,
    print_shadow_comments,
    should_process,
    skip_reason,
)


class TestIsExcluded:
    def test_exact_filename_match(self):
        assert _is_excluded("yarn.lock", ["yarn.lock"]) is True

    def test_glob_basename_match(self):
        assert _is_excluded("dist/app.min.js", ["*.min.js"]) is True

    def test_glob_full_path_match(self):
        assert _is_excluded("src/generated/schema.py", ["src/generated/*.py"]) is True

    def test_directory_prefix_at_root(self):
        assert _is_excluded("migrations/0001_initial.py", ["migrations/"]) is True

    def test_directory_prefix_nested(self):
        assert _is_excluded("app/migrations/0001_initial.py", ["migrations"]) is True

    def test_no_false_positive_on_similar_name(self):
        assert _is_excluded("test_helpers.py", ["tests/"]) is False

    def test_not_excluded_when_no_patterns(self):
        assert _is_excluded("src/main.py", []) is False


def _file(path="src/app.py", additions=10, is_deleted=False):
    return ChangedFile(path=path, additions=additions, deletions=0, is_deleted=is_deleted)


class TestSkipReason:
    def test_reviewable_file(self):
        assert skip_reason(_file(), {}) is None

    def test_deleted(self):
        assert skip_reason(_file(is_deleted=True), {}) == "deleted"

    def test_too_large(self):
        assert skip_reason(_file(additions=501), {"max_file_additions": 500}).startswith("too large")

    def test_at_limit_is_fetched(self):
        assert skip_reason(_file(additions=500), {"max_file_additions": 500}) is None

    def test_non_code_file(self):
        assert skip_reason(_file(path="assets/logo.png"), {}) == "not a code file"

    def test_excluded(self):
        assert skip_reason(_file(path="migrations/0001.py"), {"exclude": ["migrations/"]}) == "excluded"


class TestShouldProcess:
    @pytest.mark.parametrize("action", ["opened", "reopened", "synchronize"])
    def test_reviewed_actions(self, action):
        assert should_process("pull_request", {"action": action}) is True

    @pytest.mark.parametrize("action", ["closed", "edited", "labeled", None])
    def test_other_actions_ignored(self, action):
        assert should_process("pull_request", {"action": action}) is False

    def test_ping_ignored(self):
        assert should_process("ping", {"zen": "Keep it logically awesome."}) is False

    def test_other_events_ignored(self):
        assert should_process("push", {"action": "opened"}) is False


class TestGetProvider:
    def test_returns_anthropic_provider(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.reviewer.AnthropicProvider")
        get_provider({"model": "anthropic", "anthropic_api_key": "ant-key", "ai_model": None})
        mock_cls.assert_called_once_with(api_key="ant-key", model=None)

    def test_returns_openai_provider(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.reviewer.OpenAIProvider")
        get_provider({"model": "openai", "openai_api_key": "oai-key", "openai_base_url": "https://gw/v1"})
        mock_cls.assert_called_once_with(api_key="oai-key", base_url="https://gw/v1", model=None)

    def test_missing_key_disables_ai(self, mocker):
        mock_cls = mocker.patch("reviewbot_core.reviewer.AnthropicProvider")
        assert get_provider({"model": "anthropic", "anthropic_api_key": None}) is None
        mock_cls.assert_not_called()

    def test_missing_sdk_disables_ai(self, mocker):
        mocker.patch("reviewbot_core.reviewer.OpenAIProvider", side_effect=ImportError("no openai"))
        assert get_provider({"model": "openai", "openai_api_key": "k"}) is None

    def test_raises_for_unknown_model(self):
        with pytest.raises(ValueError, match="Unknown model provider"):
            get_provider({"model": "gemini"})


class TestPrintShadowComments:
    def test_no_comments_prints_message(self, mocker):
        mock_console = mocker.patch("reviewbot_core.reviewer.console")
        print_shadow_comments([], "## Summary")
        printed = " ".join(str(a) for call in mock_console.print.call_args_list for a in call.args)
        assert "no inline comments" in printed.lower()
        assert "## Summary" in printed

    def test_with_comments_prints_each_entry(self, mocker):
        mock_console = mocker.patch("reviewbot_core.reviewer.console")
        comments = [
            {"path": "foo.py", "line": 5, "body": "🔴 bad"},
            {"path": "bar.py", "line": 10, "body": "⚪ style"},
        ]
        print_shadow_comments(comments, "## Summary")
        printed = " ".join(str(a) for call in mock_console.print.call_args_list for a in call.args)
        assert "foo.py" in printed
        assert "bar.py" in printed
        assert "2 inline comment(s)" in printed
        mock_console.rule.assert_called_once_with("Summary")
