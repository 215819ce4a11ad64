"""Turn the aggregate issue list into inline comments and a summary report."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum

from reviewbot_core.models import Category, Issue, Severity

# One review call with more anchored comments than this is not reliably accepted.
MAX_INLINE_COMMENTS = 30
MAX_TOP_CONCERNS = 5
APPROVE_WITH_NOTES_SCORE = 80

DEFAULT_PUBLIC_LINK = "https://github.com/apps/reviewbot"

SEVERITY_ICONS = {
    Severity.CRITICAL: "🔴",
    Severity.HIGH: "🟠",
    Severity.MEDIUM: "🟡",
    Severity.LOW: "⚪",
}

CATEGORY_LABELS = {
    Category.SECURITY: "🔒 SECURITY",
    Category.BUG: "🐛 BUG",
    Category.PERFORMANCE: "⚡ PERFORMANCE",
    Category.QUALITY: "💡 CODE QUALITY",
    Category.STYLE: "🎨 STYLE",
}


class RiskLevel(str, Enum):
    HIGH = "🔴 HIGH"
    MEDIUM = "🟠 MEDIUM"
    LOW = "🟡 LOW"
    MINIMAL = "🟢 MINIMAL"


class Recommendation(str, Enum):
    BLOCK = "🚨 **Do not merge** - Critical issues must be resolved first."
    CAUTION = "⚠️ **Review carefully** - High priority issues should be addressed."
    APPROVE_WITH_NOTES = "✅ **Looks good to merge** - Minor issues can be addressed later."
    APPROVE = "👍 **Approved** - Code quality looks great!"


def format_issue_comment(issue: Issue) -> str:
    body = (
        f"{SEVERITY_ICONS[issue.severity]} **{CATEGORY_LABELS[issue.category]}:** {issue.title}\n\n"
        f"{issue.description}\n\n"
    )
    if issue.suggestion:
        lang = issue.language if issue.language != "unknown" else ""
        body += f"**💡 Suggested Fix:**\n```{lang}\n{issue.suggestion}\n```\n\n"
    if issue.documentation:
        body += f"📚 [Learn more]({issue.documentation})\n"
    return body


def build_comment_batch(issues: Sequence[Issue], limit: int = MAX_INLINE_COMMENTS) -> list[dict]:
    """Return at most ``limit`` anchored comments, in aggregate order."""
    anchored = [i for i in issues if i.path and i.line]
    return [{"path": i.path, "line": i.line, "body": format_issue_comment(i)} for i in anchored[:limit]]


def count_by_severity(issues: Sequence[Issue]) -> dict[Severity, int]:
    counts = {s: 0 for s in Severity}
    for issue in issues:
        counts[issue.severity] += 1
    return counts


def risk_level(counts: dict[Severity, int]) -> RiskLevel:
    if counts[Severity.CRITICAL]:
        return RiskLevel.HIGH
    if counts[Severity.HIGH]:
        return RiskLevel.MEDIUM
    if counts[Severity.MEDIUM]:
        return RiskLevel.LOW
    return RiskLevel.MINIMAL


def score_emoji(score: int) -> str:
    if score >= 90:
        return "🌟"
    if score >= 70:
        return "👍"
    if score >= 50:
        return "⚠️"
    return "🚨"


def top_concerns(issues: Sequence[Issue], limit: int = MAX_TOP_CONCERNS) -> list[Issue]:
    """First ``limit`` critical or high issues; aggregate order breaks ties."""
    return [i for i in issues if i.severity in (Severity.CRITICAL, Severity.HIGH)][:limit]


def recommend(score: int, counts: dict[Severity, int]) -> Recommendation:
    if counts[Severity.CRITICAL]:
        return Recommendation.BLOCK
    if counts[Severity.HIGH]:
        return Recommendation.CAUTION
    if score >= APPROVE_WITH_NOTES_SCORE:
        return Recommendation.APPROVE_WITH_NOTES
    return Recommendation.APPROVE


def _format_elapsed(elapsed_seconds: float) -> str:
    elapsed_min = elapsed_seconds / 60
    if elapsed_min < 1:
        return f"{int(elapsed_seconds)}s"
    return f"{elapsed_min:.1f} min"


def build_summary(
    issues: Sequence[Issue],
    score: int,
    reviewed_files: int | None = None,
    skipped_files: int = 0,
    elapsed_seconds: float | None = None,
    public_link: str = DEFAULT_PUBLIC_LINK,
) -> str:
    """Render the single summary comment posted on the pull request."""
    counts = count_by_severity(issues)

    lines = [
        "## 🤖 ReviewBot Analysis Summary",
        "",
        f"**Overall Score:** {score}/100 {score_emoji(score)}",
        f"**Risk Level:** {risk_level(counts).value}",
        "",
        "### 📊 Issues Found",
    ]
    if counts[Severity.CRITICAL]:
        lines.append(f"- 🔴 **{counts[Severity.CRITICAL]} Critical** (Security/Breaking)")
    if counts[Severity.HIGH]:
        lines.append(f"- 🟠 **{counts[Severity.HIGH]} High** (Important fixes needed)")
    if counts[Severity.MEDIUM]:
        lines.append(f"- 🟡 **{counts[Severity.MEDIUM]} Medium** (Should address)")
    if counts[Severity.LOW]:
        lines.append(f"- ⚪ **{counts[Severity.LOW]} Low** (Suggestions)")
    if not issues:
        lines.append("✅ No issues found! Great work! 🎉")

    lines += ["", "### 🎯 Top Concerns"]
    concerns = top_concerns(issues)
    if concerns:
        lines += [f"- **{i.path}:{i.line}** - {i.title} ({i.severity.value})" for i in concerns]
    else:
        lines.append("✅ No major concerns detected!")

    lines += ["", "### 📝 Recommendation", recommend(score, counts).value]

    if reviewed_files is not None:
        stats = (
            f"**{reviewed_files}** file(s) reviewed"
            + (f", **{skipped_files}** skipped" if skipped_files else "")
            + f" · **{len(issues)}** issue(s)"
            + (f" · reviewed in {_format_elapsed(elapsed_seconds)}" if elapsed_seconds is not None else "")
        )
        lines += ["", stats]

    lines += ["", "---", f"<sub>🤖 Powered by [ReviewBot]({public_link})</sub>"]
    return "\n".join(lines)


def build_error_report(message: str) -> str:
    return (
        "## ⚠️ ReviewBot Error\n\n"
        "Sorry, I encountered an error while analyzing this PR:\n"
        f"```\n{message}\n```"
    )
