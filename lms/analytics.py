"""Course-wide rollups for the educator analytics view.

Everything here is derived on demand from attempts and enrollments; nothing
is written back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from lms.content import (
    AttemptRecord,
    CourseTree,
    EnrollmentRecord,
    load_attempt_records,
    load_course_tree,
    load_enrollment_records,
    require_instructor,
)
from lms.db import get_session
from lms.errors import PermissionDenied
from lms.progress import compute_progress, is_course_completed

logger = logging.getLogger(__name__)

TREND_STUDENT_LIMIT = 3


@dataclass(frozen=True)
class ActivityAggregate:
    name: str
    average_score: float
    attempts: int


@dataclass(frozen=True)
class StudentTrend:
    student_id: int
    label: str
    scores: tuple[int, ...]


@dataclass(frozen=True)
class EngagementShare:
    student_id: int
    label: str
    attempts: int


@dataclass(frozen=True)
class StudentProgressRow:
    student_id: int
    label: str
    status: str
    progress: float
    best_score: Optional[int]


@dataclass(frozen=True)
class AnalyticsSummary:
    total_students: int
    completed_count: int
    average_progress: float


@dataclass(frozen=True)
class CourseAnalytics:
    course_id: int
    course_title: str
    summary: AnalyticsSummary
    activity_averages: tuple[ActivityAggregate, ...]
    trends: tuple[StudentTrend, ...]
    engagement: tuple[EngagementShare, ...]
    students: tuple[StudentProgressRow, ...]

    def engagement_by_student(self) -> dict[int, int]:
        return {share.student_id: share.attempts for share in self.engagement}


def _activity_averages(course: CourseTree, attempts: Iterable[AttemptRecord]) -> tuple[ActivityAggregate, ...]:
    totals: dict[str, list[int]] = {}
    for at in attempts:
        lesson = course.lesson_for_quiz(at.quiz_id)
        if lesson is None:
            logger.warning("Skipping attempt on quiz %s: no lesson in course %s", at.quiz_id, course.id)
            continue
        entry = totals.setdefault(lesson.activity_name, [0, 0])
        entry[0] += at.score
        entry[1] += 1
    return tuple(
        ActivityAggregate(name=name, average_score=total / count, attempts=count)
        for name, (total, count) in sorted(totals.items())
    )


def build_analytics(
    course: CourseTree,
    attempts: Sequence[AttemptRecord],
    enrollments: Sequence[EnrollmentRecord],
    requester_id: Optional[int],
) -> CourseAnalytics:
    """Roll a course's attempts and enrollments up into chart-ready series.

    Only instructors of the course may ask; anyone else gets PermissionDenied
    before any aggregation runs. Enrollments that are not ``enrolled`` are
    ignored. Attempts on quizzes that no longer resolve to a lesson of the
    course are skipped.
    """
    if not course.is_instructor(requester_id):
        raise PermissionDenied("Only course instructors can view analytics")

    enrolled = [e for e in enrollments if e.status == "enrolled"]

    by_student: dict[int, list[AttemptRecord]] = {}
    for at in attempts:
        by_student.setdefault(at.student_id, []).append(at)

    trends = []
    for e in enrolled[:TREND_STUDENT_LIMIT]:
        own = sorted(by_student.get(e.student_id, []), key=lambda a: a.submitted_at)
        trends.append(StudentTrend(
            student_id=e.student_id,
            label=e.label,
            scores=tuple(a.score for a in own),
        ))

    engagement = tuple(
        EngagementShare(
            student_id=e.student_id,
            label=e.label,
            attempts=len(by_student.get(e.student_id, [])),
        )
        for e in enrolled
    )

    rows = []
    for e in enrolled:
        own = by_student.get(e.student_id, [])
        rows.append(StudentProgressRow(
            student_id=e.student_id,
            label=e.label,
            status=e.status,
            progress=compute_progress(course, e.completed_items),
            best_score=max((a.score for a in own), default=None),
        ))

    total_students = len(rows)
    completed_count = sum(1 for r in rows if is_course_completed(r.progress))
    average_progress = (
        round(sum(r.progress for r in rows) / total_students, 2) if total_students else 0
    )

    return CourseAnalytics(
        course_id=course.id,
        course_title=course.title,
        summary=AnalyticsSummary(
            total_students=total_students,
            completed_count=completed_count,
            average_progress=average_progress,
        ),
        activity_averages=_activity_averages(course, attempts),
        trends=tuple(trends),
        engagement=engagement,
        students=tuple(rows),
    )


def get_course_analytics(course_id: int, requester_id: int) -> CourseAnalytics:
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        course = load_course_tree(session, course_id)
        attempts = load_attempt_records(session, course)
        enrollments = load_enrollment_records(session, course_id, status="enrolled")
    return build_analytics(course, attempts, enrollments, requester_id)
