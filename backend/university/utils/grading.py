"""Final grade computation from partial scores."""

from typing import Optional, Tuple

from ..config import settings
from ..models import GradeStatus

PARTIAL_MIN = 0.0
PARTIAL_MAX = 10.0


def compute_final_grade(
    partial1: Optional[float],
    partial2: Optional[float],
    partial3: Optional[float],
    passing: Optional[float] = None,
) -> Tuple[Optional[float], GradeStatus]:
    """Return `(final_grade, status)` for three partial scores.

    The final grade is the arithmetic mean of the partials and only
    exists once all three are present; until then the grade stays
    `PENDING`. A mean at or above `passing` (default
    `settings.PASSING_GRADE`) is `APPROVED`, anything lower `FAILED`.
    A partial of `0` counts as present.
    """
    if passing is None:
        passing = settings.PASSING_GRADE
    partials = (partial1, partial2, partial3)
    if any(p is None for p in partials):
        return None, GradeStatus.PENDING
    final = sum(partials) / 3
    status = GradeStatus.APPROVED if final >= passing else GradeStatus.FAILED
    return final, status
