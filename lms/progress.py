import logging
from dataclasses import dataclass
from typing import Iterable

from sqlmodel import select

from lms.content import CourseTree, load_course_tree
from lms.db import get_session
from lms.enrollments import find_enrollment
from lms.completion import load_completed_items
from lms.errors import NotFound
from lms.models import Enrollment

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CourseProgress:
    course_id: int
    course_title: str
    progress: float

    @property
    def completed(self) -> bool:
        return is_course_completed(self.progress)


def compute_progress(course: CourseTree, completed_items: Iterable[int]) -> float:
    """Percentage (0-100, two decimals) of the course's lessons a student has completed.

    Only completed ids that are still lessons of the course count, so stale
    ids left behind by deleted lessons cannot inflate the result. A course
    without lessons is at 0.
    """
    lesson_ids = course.lesson_ids
    total = len(lesson_ids)
    if total == 0:
        return 0.0
    done = len(lesson_ids.intersection(completed_items))
    return round(done / total * 100, 2)


def is_course_completed(percentage: float) -> bool:
    return percentage >= 100


def get_course_progress(course_id: int, student_id: int) -> float:
    with get_session() as session:
        enrollment = find_enrollment(session, course_id, student_id)
        if not enrollment:
            raise NotFound("Enrollment not found")
        course = load_course_tree(session, course_id)
        return compute_progress(course, load_completed_items(session, enrollment.id))


def get_progress_report(student_id: int) -> list[CourseProgress]:
    """Progress in every course the student is enrolled in, in enrollment order."""
    report = []
    with get_session() as session:
        enrollments = session.exec(
            select(Enrollment)
            .where(Enrollment.student_id == student_id, Enrollment.status == "enrolled")
            .order_by(Enrollment.requested_at, Enrollment.id)
        ).all()
        for enrollment in enrollments:
            try:
                course = load_course_tree(session, enrollment.course_id)
            except NotFound:
                logger.warning("Enrollment %s points at a missing course", enrollment.id)
                continue
            pct = compute_progress(course, load_completed_items(session, enrollment.id))
            report.append(CourseProgress(course_id=course.id, course_title=course.title, progress=pct))
    return report
