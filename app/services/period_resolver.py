"""
app/services/period_resolver.py

Date-to-trimester resolution over a set of academic periods.

Trimesters of one school year are expected to be contiguous and
non-overlapping. Resolution never trusts that: every period is checked and
zero or multiple matches are reported explicitly instead of picking one.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from app.domain.errors import PeriodNotFoundError, PeriodResolutionAmbiguity
from app.domain.infraction import AcademicPeriod


class PeriodResolutionStatus:
    FOUND = "found"
    NO_PERIOD = "no_period"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class PeriodResolution:
    """
    Outcome of resolving one date.
    """

    value: date
    status: str
    period: AcademicPeriod | None = None
    candidates: tuple[AcademicPeriod, ...] = ()
    reason: str | None = None

    @property
    def found(self) -> bool:
        return self.status == PeriodResolutionStatus.FOUND

    def require(self) -> AcademicPeriod:
        """
        Return the resolved period or raise the matching error.
        """

        if self.period is not None:
            return self.period
        if self.status == PeriodResolutionStatus.AMBIGUOUS:
            raise PeriodResolutionAmbiguity(
                self.reason or "Multiple periods cover this date.",
                trimester_ids=tuple(candidate.trimester_id for candidate in self.candidates),
            )
        raise PeriodNotFoundError(self.reason or "No period covers this date.")


def resolve_period(value: date, periods: Iterable[AcademicPeriod]) -> PeriodResolution:
    """
    Find the single period whose inclusive [start_date, end_date] contains ``value``.
    """

    matches = tuple(period for period in periods if period.contains(value))

    if len(matches) == 1:
        return PeriodResolution(
            value=value,
            status=PeriodResolutionStatus.FOUND,
            period=matches[0],
            candidates=matches,
        )

    if not matches:
        return PeriodResolution(
            value=value,
            status=PeriodResolutionStatus.NO_PERIOD,
            reason=f"No period covers {value.isoformat()}.",
        )

    # Sorted only so the diagnostic message is stable.
    ordered = tuple(sorted(matches, key=lambda period: (period.start_date, period.trimester_id)))
    names = ", ".join(
        f"{period.school_year_name}/{period.trimester_name} (id={period.trimester_id})"
        for period in ordered
    )
    return PeriodResolution(
        value=value,
        status=PeriodResolutionStatus.AMBIGUOUS,
        candidates=ordered,
        reason=(
            f"Multiple periods cover {value.isoformat()}: {names}. "
            "Trimester configuration overlaps."
        ),
    )


@dataclass(frozen=True)
class PeriodLayoutIssue:
    school_year_id: int
    code: str
    message: str
    trimester_ids: tuple[int, ...]


def validate_period_layout(periods: Sequence[AcademicPeriod]) -> list[PeriodLayoutIssue]:
    """
    Report overlaps, gaps and inverted ranges between the trimesters of each school year.
    """

    issues: list[PeriodLayoutIssue] = []
    by_school_year: dict[int, list[AcademicPeriod]] = defaultdict(list)
    for period in periods:
        by_school_year[period.school_year_id].append(period)

    for school_year_id, year_periods in sorted(by_school_year.items()):
        ordered = sorted(year_periods, key=lambda period: (period.order, period.start_date))

        for period in ordered:
            if period.end_date < period.start_date:
                issues.append(
                    PeriodLayoutIssue(
                        school_year_id=school_year_id,
                        code="inverted_range",
                        message=f"{period.trimester_name} ends before it starts.",
                        trimester_ids=(period.trimester_id,),
                    )
                )

        for previous, current in zip(ordered, ordered[1:]):
            if current.start_date <= previous.end_date:
                issues.append(
                    PeriodLayoutIssue(
                        school_year_id=school_year_id,
                        code="overlap",
                        message=(
                            f"{previous.trimester_name} and {current.trimester_name} overlap "
                            f"({current.start_date.isoformat()} <= {previous.end_date.isoformat()})."
                        ),
                        trimester_ids=(previous.trimester_id, current.trimester_id),
                    )
                )
            elif current.start_date > previous.end_date + timedelta(days=1):
                issues.append(
                    PeriodLayoutIssue(
                        school_year_id=school_year_id,
                        code="gap",
                        message=(
                            f"Gap between {previous.trimester_name} and {current.trimester_name} "
                            f"({previous.end_date.isoformat()} -> {current.start_date.isoformat()})."
                        ),
                        trimester_ids=(previous.trimester_id, current.trimester_id),
                    )
                )

    return issues
