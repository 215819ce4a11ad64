"""Tests for inline comment batching and the summary report."""

from reviewbot_core.models import Category, Issue, Severity
from reviewbot_core.presenter import (
    Recommendation,
    RiskLevel,
    build_comment_batch,
    build_error_report,
    build_summary,
    count_by_severity,
    format_issue_comment,
    recommend,
    risk_level,
    score_emoji,
    top_concerns,
)


def _issue(severity=Severity.LOW, line=1, title="t", path="src/app.js", **kwargs):
    return Issue(
        path=path,
        line=line,
        severity=severity,
        category=kwargs.pop("category", Category.QUALITY),
        title=title,
        description=kwargs.pop("description", "desc"),
        **kwargs,
    )


class TestFormatIssueComment:
    def test_header_and_description(self):
        body = format_issue_comment(
            _issue(Severity.CRITICAL, category=Category.SECURITY, title="Dangerous eval() usage", description="Bad.")
        )
        assert body.startswith("🔴 **🔒 SECURITY:** Dangerous eval() usage\n\nBad.")

    def test_suggestion_fenced_with_language(self):
        body = format_issue_comment(_issue(suggestion="JSON.parse(input)", language="javascript"))
        assert "**💡 Suggested Fix:**\n```javascript\nJSON.parse(input)\n```" in body

    def test_unknown_language_fence_has_no_tag(self):
        body = format_issue_comment(_issue(suggestion="fix it"))
        assert "```\nfix it\n```" in body

    def test_no_suggestion_no_fence(self):
        assert "```" not in format_issue_comment(_issue())

    def test_documentation_link(self):
        body = format_issue_comment(_issue(documentation="https://owasp.org/x"))
        assert "📚 [Learn more](https://owasp.org/x)" in body


class TestBuildCommentBatch:
    def test_capped_at_30_in_order(self):
        issues = [_issue(line=n) for n in range(1, 46)]
        batch = build_comment_batch(issues)
        assert len(batch) == 30
        assert [c["line"] for c in batch] == list(range(1, 31))

    def test_unanchored_issues_skipped(self):
        issues = [_issue(line=0), _issue(path="", line=3), _issue(line=5)]
        assert [c["line"] for c in build_comment_batch(issues)] == [5]

    def test_comment_shape(self):
        [comment] = build_comment_batch([_issue(line=7, path="lib/x.py")])
        assert set(comment) == {"path", "line", "body"}
        assert comment["path"] == "lib/x.py"

    def test_custom_limit(self):
        assert len(build_comment_batch([_issue()] * 5, limit=2)) == 2


class TestRiskAndRecommendation:
    def test_risk_levels(self):
        assert risk_level(count_by_severity([_issue(Severity.CRITICAL), _issue(Severity.LOW)])) == RiskLevel.HIGH
        assert risk_level(count_by_severity([_issue(Severity.HIGH)])) == RiskLevel.MEDIUM
        assert risk_level(count_by_severity([_issue(Severity.MEDIUM)])) == RiskLevel.LOW
        assert risk_level(count_by_severity([_issue(Severity.LOW)] * 45)) == RiskLevel.MINIMAL
        assert risk_level(count_by_severity([])) == RiskLevel.MINIMAL

    def test_critical_blocks_regardless_of_score(self):
        assert recommend(95, count_by_severity([_issue(Severity.CRITICAL)])) == Recommendation.BLOCK

    def test_high_needs_caution(self):
        assert recommend(90, count_by_severity([_issue(Severity.HIGH)])) == Recommendation.CAUTION

    def test_score_tiers(self):
        assert recommend(100, count_by_severity([])) == Recommendation.APPROVE_WITH_NOTES
        assert recommend(80, count_by_severity([])) == Recommendation.APPROVE_WITH_NOTES
        assert recommend(40, count_by_severity([_issue()] * 45)) == Recommendation.APPROVE

    def test_score_emoji(self):
        assert score_emoji(95) == "🌟"
        assert score_emoji(70) == "👍"
        assert score_emoji(50) == "⚠️"
        assert score_emoji(10) == "🚨"


class TestTopConcerns:
    def test_first_five_critical_or_high_in_order(self):
        issues = [_issue(Severity.LOW, title="low")] + [
            _issue(Severity.HIGH if n % 2 else Severity.CRITICAL, title=f"c{n}") for n in range(7)
        ]
        assert [i.title for i in top_concerns(issues)] == ["c0", "c1", "c2", "c3", "c4"]


class TestBuildSummary:
    def test_clean_review(self):
        body = build_summary([], 100, reviewed_files=2)
        assert body.startswith("## 🤖 ReviewBot Analysis Summary")
        assert "**Overall Score:** 100/100 🌟" in body
        assert "**Risk Level:** 🟢 MINIMAL" in body
        assert "✅ No issues found! Great work! 🎉" in body
        assert "✅ No major concerns detected!" in body
        assert Recommendation.APPROVE_WITH_NOTES.value in body
        assert "**2** file(s) reviewed · **0** issue(s)" in body

    def test_counts_and_concerns(self):
        issues = [
            _issue(Severity.CRITICAL, line=2, title="Dangerous eval() usage"),
            _issue(Severity.MEDIUM),
            _issue(Severity.MEDIUM),
        ]
        body = build_summary(issues, 67)
        assert "- 🔴 **1 Critical** (Security/Breaking)" in body
        assert "- 🟡 **2 Medium** (Should address)" in body
        assert "High**" not in body
        assert "- **src/app.js:2** - Dangerous eval() usage (critical)" in body
        assert "**Risk Level:** 🔴 HIGH" in body
        assert Recommendation.BLOCK.value in body

    def test_stats_line_with_skips_and_timing(self):
        body = build_summary([_issue()], 99, reviewed_files=3, skipped_files=1, elapsed_seconds=12.4)
        assert "**3** file(s) reviewed, **1** skipped · **1** issue(s) · reviewed in 12s" in body

    def test_footer_link(self):
        body = build_summary([], 100, public_link="https://example.com/bot")
        assert body.endswith("<sub>🤖 Powered by [ReviewBot](https://example.com/bot)</sub>")


def test_error_report_contains_message():
    body = build_error_report("GitHub API unavailable")
    assert body.startswith("## ⚠️ ReviewBot Error")
    assert "```\nGitHub API unavailable\n```" in body
