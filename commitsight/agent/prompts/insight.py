"""Prompts for the contribution insight report."""

from __future__ import annotations

from collections.abc import Sequence

from commitsight.engines.commit_collector.models import CommitRecord, FileChange, RunParams
from commitsight.engines.stats.models import AggregateStats
from commitsight.engines.stats.quality import round_half_up
from commitsight.engines.stats.series import top_languages

MAX_SIGNIFICANT_COMMITS = 15
MAX_FILES_PER_COMMIT = 5
MAX_PATCH_CHARS = 800
TRUNCATION_MARKER = "\n... (truncated)"

INSIGHT_FIELDS = (
    "executiveSummary",
    "xyzFeedback",
    "recommendations",
    "productivityScore",
    "strengths",
    "areasOfImprovement",
    "commitQualitySuggestions",
    "implementedFeatures",
)

INSIGHT_SYSTEM_PROMPT = """\
You are an expert in developer productivity and code quality analysis.

Give feedback using the XYZ pattern:
- X (Situation): the context or situation observed
- Y (Behavior): the specific behavior or action taken
- Z (Impact): the impact or result of that action

Be constructive, specific and actionable in your recommendations.
IMPORTANT: Reply ONLY with a valid JSON object, with no text before or after it.
"""

_OUTPUT_SCHEMA = """\
{
    "executiveSummary": "2-3 paragraph summary focused on WHAT WAS BUILT OR IMPROVED, not on numbers. Be specific about the features and improvements delivered.",
    "xyzFeedback": [
        {
            "situation": "X - specific technical context (e.g. 'The login form had no input validation')",
            "behavior": "Y - what was implemented (e.g. 'Added client-side validation for email format and password strength')",
            "impact": "Z - concrete benefit (e.g. 'Reduces user errors and improves security before submission')",
            "type": "positive | improvement | neutral"
        }
    ],
    "recommendations": ["Specific technical recommendations based on the analyzed code"],
    "productivityScore": 0-100,
    "strengths": ["TECHNICAL strengths seen in the code (patterns, quality, etc.)"],
    "areasOfImprovement": ["Technical areas that could improve, based on the code seen"],
    "commitQualitySuggestions": ["Suggestions to improve the commit messages"],
    "implementedFeatures": ["Features and improvements identified in the diffs"]
}"""


def select_significant_commits(
    commits: Sequence[CommitRecord], limit: int = MAX_SIGNIFICANT_COMMITS
) -> list[CommitRecord]:
    """Top *limit* commits by descending churn; ties keep input order."""
    return sorted(commits, key=lambda c: c.churn, reverse=True)[:limit]


def truncate_patch(patch: str | None, limit: int = MAX_PATCH_CHARS) -> str:
    """First *limit* characters of *patch*, marked when something was cut."""
    if not patch:
        return ""
    if len(patch) <= limit:
        return patch
    return patch[:limit] + TRUNCATION_MARKER


def _format_file(change: FileChange) -> str:
    return (
        f"  - {change.filename} ({change.status}): +{change.additions}/-{change.deletions}\n"
        f"    Changes:\n"
        f"```\n{truncate_patch(change.patch)}\n```"
    )


def format_commit_section(commit: CommitRecord) -> str:
    """Render one commit with up to five file diffs."""
    day = commit.authored_at.date().isoformat() if commit.authored_at else "unknown date"
    files = list(commit.files or ())[:MAX_FILES_PER_COMMIT]
    files_info = "\n".join(_format_file(f) for f in files) if files else "  (no file details)"
    return (
        f"### Commit: {commit.sha[:7]} - {day}\n"
        f'Message: "{commit.message}"\n'
        f"Impact: +{commit.additions:,}/-{commit.deletions:,} lines\n"
        f"Files changed:\n{files_info}"
    )


def _plural(count: int, word: str) -> str:
    return f"{count:,} {word}" if count == 1 else f"{count:,} {word}s"


def build_insight_prompt(
    stats: AggregateStats,
    commits: Sequence[CommitRecord],
    params: RunParams,
    *,
    language: str = "English",
) -> str:
    """Render the user prompt for one analysis run.

    Deterministic: the same inputs always render the same text.
    """
    significant = select_significant_commits(commits)
    detailed = "\n\n".join(format_commit_section(c) for c in significant)
    if not detailed:
        detailed = "(no commits in this window)"

    languages = ", ".join(
        f"{lang}: {changes:,} changes"
        for lang, changes in top_languages(stats.language_distribution, 5)
    ) or "(no file data)"

    weekdays = ", ".join(
        f"{day}: {_plural(count, 'commit')}" for day, count in stats.commits_by_weekday.items()
    ) or "(no commits)"

    return f"""\
Analyze IN DEPTH the contributions of developer "{params.author}" to repository \
"{params.owner}/{params.repo}" from {params.since} to {params.until}.
The analyzed window contains {_plural(stats.total_commits, 'commit')}.

## IMPORTANT: Qualitative analysis of the changes
Below are the most significant commits with the REAL code diffs.
Analyze WHAT WAS IMPLEMENTED, IMPROVED OR FIXED based on the actual code, not only on the statistics.

## Overall statistics:
- Total commits: {stats.total_commits:,}
- Lines added: {stats.total_additions:,}
- Lines removed: {stats.total_deletions:,}
- Net change: {stats.net_changes:,} lines
- Files modified: {stats.files_modified:,}
- Average commit size: {round_half_up(stats.average_commit_size):,} lines

## Most used languages:
{languages}

## DETAILED COMMIT ANALYSIS WITH DIFFS:
{detailed}

## Commits per weekday:
{weekdays}

---

## ANALYSIS INSTRUCTIONS:

1. **ANALYZE THE REAL CODE in the diffs** - Do not rely only on the numbers or commit messages.

2. **Identify IMPLEMENTED FEATURES** - What did the developer build? Which new features?

3. **Identify IMPROVEMENTS** - Was code refactored? Performance improved? Bugs fixed?

4. **Use the XYZ format for every insight**:
   - X (Situation): the technical context of what existed or was needed
   - Y (Behavior/Action): what exactly was implemented or changed (based on the code)
   - Z (Impact): the concrete benefit of that change

Return a complete analysis as a single JSON object with this structure:
{_OUTPUT_SCHEMA}

IMPORTANT:
- Produce at least 5-8 XYZ feedback items covering different technical aspects of the contributions.
- Every XYZ feedback item must be SPECIFIC and grounded in the analyzed code, never generic.
- "implementedFeatures" must list the concrete features and improvements identified.
- Write every text value in {language}.
- Reply with the JSON object only: no markdown fences, no prose before or after it."""
