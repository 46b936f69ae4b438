"""Eligibility gate — compares a user's trust score with a required minimum.

The same comparison backs two call sites: the job-application use case,
which rejects ineligible applicants without touching any state, and the
advisory eligibility badge shown next to a job. Pure computation.
"""

from __future__ import annotations

import math

from pramaan.models.trust import EligibilityResult


def is_eligible(user_score: float, required_min_score: float) -> bool:
    return user_score >= required_min_score


def points_needed(user_score: float, required_min_score: float) -> int:
    return max(0, math.ceil(required_min_score - user_score))


def validate_job_application(
    user_score: float,
    job_min_score: float,
) -> EligibilityResult:
    """Eligibility, shortfall, progress percentage and a display message.

    A job with a minimum of 0 (or less) admits everyone at 100%.
    """
    eligible = is_eligible(user_score, job_min_score)
    needed = points_needed(user_score, job_min_score)

    if job_min_score <= 0:
        percentage = 100.0
    else:
        percentage = min(100.0, max(0.0, user_score / job_min_score * 100))

    if eligible:
        message = (
            f"You meet the trust score requirement ({user_score}/{job_min_score})"
        )
    else:
        message = (
            f"You need {needed} more points to apply ({user_score}/{job_min_score})"
        )

    return EligibilityResult(
        eligible=eligible,
        points_needed=needed,
        percentage=percentage,
        message=message,
    )
