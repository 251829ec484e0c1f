from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from lms.content import load_course_tree, require_instructor
from lms.db import get_session
from lms.errors import Conflict, NotFound, ValidationError
from lms.grading import attempt_answers, load_quiz_questions
from lms.models import Enrollment, Lesson, Module, Question, Quiz, QuizAttempt, now_utc
from lms.questions import encode_answer, is_correct, question_from_dict, question_to_record

logger = logging.getLogger(__name__)


def create_quiz(lesson_id: int, title: str, questions: List[Dict[str, Any]], requester_id: int,
                due_date: Optional[datetime] = None) -> Quiz:
    """questions: list of dicts: {type, text, choices (multiple-choice only), correct_answer}

    A lesson carries at most one quiz. Questions cannot be edited afterwards;
    publish a new quiz on a lesson without one instead.
    """
    if not (title or "").strip():
        raise ValidationError("Quiz title cannot be empty")
    if not questions:
        raise ValidationError("A quiz needs at least one question")
    parsed = [question_from_dict(q) for q in questions]

    with get_session() as session:
        lesson = session.get(Lesson, lesson_id)
        module = session.get(Module, lesson.module_id) if lesson else None
        if not module:
            raise NotFound("Lesson not found")
        require_instructor(session, module.course_id, requester_id)

        existing = session.exec(select(Quiz).where(Quiz.lesson_id == lesson_id)).first()
        if existing:
            raise Conflict("This lesson already has a quiz")

        quiz = Quiz(lesson_id=lesson_id, title=title.strip(), due_date=due_date)
        session.add(quiz)
        try:
            session.flush()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict("This lesson already has a quiz") from exc

        for position, question in enumerate(parsed):
            session.add(question_to_record(question, quiz.id, position))
        session.commit()
        session.refresh(quiz)

    logger.info("Quiz %s created on lesson %s with %s questions", quiz.id, lesson_id, len(parsed))
    return quiz


def get_quiz(quiz_id: int) -> Quiz:
    with get_session() as session:
        quiz = session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        return quiz


def get_quiz_for_lesson(lesson_id: int) -> Optional[Quiz]:
    with get_session() as session:
        return session.exec(select(Quiz).where(Quiz.lesson_id == lesson_id)).first()


def get_attempt_count(quiz_id: int) -> int:
    with get_session() as session:
        return len(session.exec(select(QuizAttempt.id).where(QuizAttempt.quiz_id == quiz_id)).all())


def delete_quiz(quiz_id: int, requester_id: int) -> bool:
    """Delete a quiz that nobody has attempted yet."""
    with get_session() as session:
        quiz = session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        lesson = session.get(Lesson, quiz.lesson_id)
        module = session.get(Module, lesson.module_id) if lesson else None
        if not module:
            raise NotFound("Quiz is not attached to a course lesson")
        require_instructor(session, module.course_id, requester_id)

        attempted = session.exec(select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id)).first()
        if attempted:
            raise Conflict("Quizzes with attempts cannot be deleted")

        for question in session.exec(select(Question).where(Question.quiz_id == quiz_id)).all():
            session.delete(question)
        session.flush()
        session.delete(quiz)
        session.commit()
    logger.info("Quiz %s deleted by %s", quiz_id, requester_id)
    return True


def get_attempt_detail(attempt_id: int):
    """Return attempt details including question texts, the submitted answers and correctness"""
    with get_session() as session:
        at = session.get(QuizAttempt, attempt_id)
        if not at:
            return None
        quiz = session.get(Quiz, at.quiz_id)
        questions = load_quiz_questions(session, at.quiz_id)
    answers = attempt_answers(at)
    detailed = []
    for q in questions:
        answer = answers.get(q.id)
        detailed.append({
            'question_id': q.id,
            'question_text': q.text,
            'type': q.kind,
            'answer': encode_answer(answer),
            'correct': is_correct(q, answer),
        })
    return {
        'attempt_id': at.id,
        'quiz_id': at.quiz_id,
        'quiz_title': quiz.title if quiz else '',
        'student_id': at.student_id,
        'per_question': detailed,
        'score': at.score,
        'total_questions': at.total_questions,
        'submitted_at': at.submitted_at.isoformat() if at.submitted_at else None,
    }


@dataclass(frozen=True)
class Deadline:
    course_id: int
    course_title: str
    lesson_id: int
    lesson_title: str
    quiz_id: int
    quiz_title: str
    due_date: datetime

    @property
    def overdue(self) -> bool:
        return self.due_date < now_utc()


def _as_utc(value: datetime) -> datetime:
    # sqlite hands datetimes back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_upcoming_deadlines(student_id: int, include_overdue: bool = True) -> List[Deadline]:
    """Due quizzes the student has not attempted yet, across enrolled courses, soonest first."""
    deadlines = []
    with get_session() as session:
        course_ids = session.exec(
            select(Enrollment.course_id).where(
                Enrollment.student_id == student_id, Enrollment.status == "enrolled"
            )
        ).all()
        attempted = set(session.exec(
            select(QuizAttempt.quiz_id).where(QuizAttempt.student_id == student_id)
        ).all())
        for course_id in course_ids:
            try:
                course = load_course_tree(session, course_id)
            except NotFound:
                logger.warning("Student %s is enrolled in missing course %s", student_id, course_id)
                continue
            for lesson in course.lessons:
                quiz = lesson.quiz
                if quiz is None or quiz.due_date is None or quiz.id in attempted:
                    continue
                deadlines.append(Deadline(
                    course_id=course.id,
                    course_title=course.title,
                    lesson_id=lesson.id,
                    lesson_title=lesson.title,
                    quiz_id=quiz.id,
                    quiz_title=quiz.title,
                    due_date=_as_utc(quiz.due_date),
                ))
    if not include_overdue:
        now = now_utc()
        deadlines = [d for d in deadlines if d.due_date >= now]
    deadlines.sort(key=lambda d: (d.due_date, d.quiz_id))
    return deadlines
