"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Any formula or business rule that references a numeric constant should
import it from here instead of hardcoding.  This avoids drift between
apps that use the same value.
"""

# ── Pagination ──────────────────────────────────────────────────────
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# ── Report content limits ───────────────────────────────────────────
TITLE_MIN_LENGTH: int = 5
TITLE_MAX_LENGTH: int = 200
DESCRIPTION_MIN_LENGTH: int = 10
DESCRIPTION_MAX_LENGTH: int = 1000

# ── FIR numbers ─────────────────────────────────────────────────────
# Manually supplied FIR numbers must fall in this length range.  The
# generated fallback is ``FIR-<epoch millis>``.
FIR_NUMBER_MIN_LENGTH: int = 3
FIR_NUMBER_MAX_LENGTH: int = 50
FIR_NUMBER_PREFIX: str = "FIR-"

# ── Heatmap ─────────────────────────────────────────────────────────
# Severity → point weight on the crime heatmap.
SEVERITY_HEATMAP_WEIGHTS: dict[str, int] = {
    "critical": 5,
    "high": 4,
    "medium": 3,
    "low": 1,
}

# ── Dashboard ───────────────────────────────────────────────────────
RECENT_ACTIVITY_LIMIT: int = 5
