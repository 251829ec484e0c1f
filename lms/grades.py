import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlmodel import select

from lms.content import AttemptRecord, CourseTree, QuizNode, load_attempt_records, load_course_tree
from lms.db import get_session
from lms.errors import NotFound
from lms.models import Enrollment, User

logger = logging.getLogger(__name__)

# evaluated top-down; first threshold reached wins
LETTER_GRADES = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (60, "D"),
)


@dataclass(frozen=True)
class GradedQuiz:
    quiz_id: int
    title: str
    score: int
    total: int


@dataclass(frozen=True)
class UngradedQuiz:
    quiz_id: int
    title: str


@dataclass(frozen=True)
class GradeSummary:
    course_id: int
    course_title: str
    overall_grade: Optional[int]
    letter_grade: str
    graded_quizzes: tuple[GradedQuiz, ...]
    ungraded_quizzes: tuple[UngradedQuiz, ...]


def letter_grade(percentage: Optional[float]) -> str:
    if percentage is None:
        return "N/A"
    for threshold, letter in LETTER_GRADES:
        if percentage >= threshold:
            return letter
    return "F"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def build_grade_summary(
    course: CourseTree,
    quizzes: Sequence[QuizNode],
    attempts: Iterable[AttemptRecord],
) -> GradeSummary:
    """Split a course's quizzes into graded/ungraded for one student and grade the course.

    ``attempts`` are the student's own attempts. The overall grade is the
    rounded percentage of all points scored over all points available in
    graded quizzes; None when nothing with a non-zero total is graded.
    """
    attempt_by_quiz = {at.quiz_id: at for at in attempts}
    graded = []
    ungraded = []
    total_score = 0
    total_possible = 0
    for quiz in quizzes:
        at = attempt_by_quiz.get(quiz.id)
        if at is None:
            ungraded.append(UngradedQuiz(quiz_id=quiz.id, title=quiz.title))
            continue
        total = at.total_questions or quiz.question_count
        graded.append(GradedQuiz(quiz_id=quiz.id, title=quiz.title, score=at.score, total=total))
        if total > 0:
            total_score += at.score
            total_possible += total

    overall = _round_half_up(total_score / total_possible * 100) if total_possible > 0 else None
    return GradeSummary(
        course_id=course.id,
        course_title=course.title,
        overall_grade=overall,
        letter_grade=letter_grade(overall),
        graded_quizzes=tuple(graded),
        ungraded_quizzes=tuple(ungraded),
    )


def get_grade_report(student_id: int) -> list[GradeSummary]:
    """Grade summaries for every course the student is enrolled in."""
    with get_session() as session:
        if not session.get(User, student_id):
            raise NotFound("User not found")
        course_ids = session.exec(
            select(Enrollment.course_id)
            .where(Enrollment.student_id == student_id, Enrollment.status == "enrolled")
            .order_by(Enrollment.requested_at, Enrollment.id)
        ).all()
        report = []
        for course_id in course_ids:
            try:
                course = load_course_tree(session, course_id)
            except NotFound:
                logger.warning("Skipping grades for missing course %s", course_id)
                continue
            attempts = load_attempt_records(session, course, student_id=student_id)
            report.append(build_grade_summary(course, course.quizzes, attempts))
        return report
