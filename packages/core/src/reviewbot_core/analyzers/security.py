"""Pattern-based security scan.

The signatures are data, not code: they live in ``rules/security.yml`` and are
loaded and compiled once at import. Adding a signature never touches the scan
loop below.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path

import yaml

from reviewbot_core.models import Category, ChangedFile, Issue, SecuritySignature, Severity

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "rules" / "security.yml"


def load_signatures(path: Path = DEFAULT_RULES_PATH) -> tuple[SecuritySignature, ...]:
    """Load and validate the ordered signature table.

    Raises ValueError for an entry with a missing field, an unknown severity
    or a pattern that does not compile. A broken rule table is a packaging
    bug and should fail loudly at startup.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    signatures = []
    for i, entry in enumerate(data.get("signatures", [])):
        missing = [k for k in ("name", "pattern", "title", "description", "severity") if not entry.get(k)]
        if missing:
            raise ValueError(f"Security signature #{i} is missing {', '.join(missing)}")
        try:
            pattern = re.compile(entry["pattern"], re.IGNORECASE)
        except re.error as e:
            raise ValueError(f"Security signature {entry['name']!r} has an invalid pattern: {e}") from e
        signatures.append(
            SecuritySignature(
                name=entry["name"],
                pattern=pattern,
                title=entry["title"],
                description=entry["description"],
                severity=Severity.parse(entry["severity"]),
                suggestion=entry.get("suggestion"),
                documentation=entry.get("documentation"),
            )
        )
    return tuple(signatures)


SIGNATURES = load_signatures()


def analyze_security(
    files: Iterable[ChangedFile],
    signatures: tuple[SecuritySignature, ...] = SIGNATURES,
) -> list[Issue]:
    issues: list[Issue] = []
    for file in files:
        if not file.content:
            continue
        for index, line in enumerate(file.lines):
            # Signatures are independent: one line can yield several issues.
            for sig in signatures:
                if sig.pattern.search(line):
                    issues.append(
                        Issue(
                            path=file.path,
                            line=index + 1,
                            severity=sig.severity,
                            category=Category.SECURITY,
                            title=sig.title,
                            description=sig.description,
                            suggestion=sig.suggestion,
                            documentation=sig.documentation,
                            language=file.language,
                        )
                    )

    logger.info("Security analysis: %d issue(s)", len(issues))
    return issues
