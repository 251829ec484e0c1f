import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from lms.db import get_session
from lms.enrollments import find_enrollment
from lms.errors import NotFound, PermissionDenied, ValidationError
from lms.models import CompletedItem, Enrollment, Lesson, Module, Quiz, QuizAttempt

logger = logging.getLogger(__name__)


def load_completed_items(session: Session, enrollment_id: int) -> set[int]:
    rows = session.exec(
        select(CompletedItem.lesson_id).where(CompletedItem.enrollment_id == enrollment_id)
    ).all()
    return set(rows)


def completed_items(enrollment_id: int) -> set[int]:
    with get_session() as session:
        return load_completed_items(session, enrollment_id)


def record_completion(session: Session, enrollment: Enrollment, lesson_id: int, *, check_quiz: bool = True) -> bool:
    """Add ``lesson_id`` to the enrollment's completed-items set inside ``session``.

    This is the only writer of completed items. The caller commits. Returns
    False when the lesson was already complete.

    ``check_quiz=False`` is used by quiz submission, which creates the
    attempt in the same commit.
    """
    if enrollment.status != "enrolled":
        raise PermissionDenied("Only enrolled students can complete lessons")

    lesson = session.exec(
        select(Lesson)
        .join(Module, Module.id == Lesson.module_id)
        .where(Lesson.id == lesson_id, Module.course_id == enrollment.course_id)
    ).first()
    if not lesson:
        raise NotFound(f"Lesson {lesson_id} is not part of course {enrollment.course_id}")

    existing = session.exec(
        select(CompletedItem).where(
            CompletedItem.enrollment_id == enrollment.id,
            CompletedItem.lesson_id == lesson_id,
        )
    ).first()
    if existing:
        return False

    if check_quiz:
        quiz = session.exec(select(Quiz).where(Quiz.lesson_id == lesson_id)).first()
        if quiz:
            attempt = session.exec(
                select(QuizAttempt).where(
                    QuizAttempt.quiz_id == quiz.id,
                    QuizAttempt.student_id == enrollment.student_id,
                )
            ).first()
            if not attempt:
                raise ValidationError("Complete the lesson quiz before marking the lesson as complete")

    session.add(CompletedItem(enrollment_id=enrollment.id, lesson_id=lesson_id))
    return True


def mark_complete(course_id: int, student_id: int, lesson_id: int) -> set[int]:
    """Mark a lesson done for a student and return the updated completed-items set."""
    with get_session() as session:
        enrollment = find_enrollment(session, course_id, student_id)
        if not enrollment:
            raise NotFound("Enrollment not found")
        added = record_completion(session, enrollment, lesson_id)
        if added:
            try:
                session.commit()
            except IntegrityError:
                # a concurrent writer recorded the same lesson first
                session.rollback()
                added = False
        if added:
            logger.info("Lesson %s completed by student %s in course %s", lesson_id, student_id, course_id)
        return load_completed_items(session, enrollment.id)
