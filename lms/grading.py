"""Quiz grading: score a full submission and persist it as a one-shot attempt."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from lms.completion import record_completion
from lms.content import AttemptRecord, load_attempt_records, load_course_tree
from lms.db import get_session
from lms.enrollments import find_enrollment
from lms.errors import Conflict, NotFound, PermissionDenied, ValidationError
from lms.models import Lesson, Module, Question, Quiz, QuizAttempt, User, now_utc
from lms.questions import (
    Answer,
    QuizQuestion,
    decode_answer,
    encode_answer,
    is_correct,
    question_from_record,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuestionResult:
    question_id: int
    correct: bool


@dataclass(frozen=True)
class GradedSubmission:
    score: int
    total_questions: int
    answers: dict[int, Optional[Answer]]
    results: tuple[QuestionResult, ...]
    submitted_at: datetime


def score_answers(questions: Sequence[QuizQuestion], answers_by_question_id: Mapping[int, Any]) -> int:
    """Count correct answers; missing or wrong-typed entries just count as wrong."""
    return sum(
        1 for q in questions if is_correct(q, decode_answer(answers_by_question_id.get(q.id)))
    )


def grade_submission(
    questions: Sequence[QuizQuestion],
    answers_by_question_id: Mapping[int, Any],
    submitted_at: Optional[datetime] = None,
) -> GradedSubmission:
    """Score a complete submission.

    Every question needs an entry in ``answers_by_question_id`` and no entry
    may name a question outside the quiz, otherwise ValidationError is raised
    before anything is scored. An entry whose value is None or of the wrong
    kind is scored as incorrect.
    """
    question_ids = [q.id for q in questions]
    missing = [qid for qid in question_ids if qid not in answers_by_question_id]
    if missing:
        raise ValidationError("All questions must be answered")
    unknown = set(answers_by_question_id) - set(question_ids)
    if unknown:
        raise ValidationError(f"Answers reference questions outside the quiz: {sorted(unknown)}")

    answers = {}
    results = []
    for q in questions:
        answer = decode_answer(answers_by_question_id[q.id])
        answers[q.id] = answer
        results.append(QuestionResult(question_id=q.id, correct=is_correct(q, answer)))

    return GradedSubmission(
        score=sum(1 for r in results if r.correct),
        total_questions=len(questions),
        answers=answers,
        results=tuple(results),
        submitted_at=submitted_at or now_utc(),
    )


def load_quiz_questions(session, quiz_id: int) -> list[QuizQuestion]:
    rows = session.exec(
        select(Question).where(Question.quiz_id == quiz_id).order_by(Question.position, Question.id)
    ).all()
    return [question_from_record(row) for row in rows]


def get_quiz_questions(quiz_id: int) -> list[QuizQuestion]:
    with get_session() as session:
        if not session.get(Quiz, quiz_id):
            raise NotFound("Quiz not found")
        return load_quiz_questions(session, quiz_id)


def submit_quiz(quiz_id: int, student_id: int, answers: Mapping[int, Any]) -> QuizAttempt:
    """Grade a student's submission and store it with the lesson completion.

    The attempt and the completed lesson are written in one commit. A
    student gets exactly one attempt per quiz; a second one raises Conflict
    and leaves the first untouched.
    """
    with get_session() as session:
        student = session.get(User, student_id)
        if not student:
            raise NotFound("User not found")
        if student.role != "student":
            raise PermissionDenied("Only students can submit quizzes")

        quiz = session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound("Quiz not found")
        lesson = session.get(Lesson, quiz.lesson_id)
        module = session.get(Module, lesson.module_id) if lesson else None
        if not module:
            raise NotFound("Quiz is not attached to a course lesson")

        enrollment = find_enrollment(session, module.course_id, student_id)
        if not enrollment or enrollment.status != "enrolled":
            raise PermissionDenied("Only enrolled students can submit quizzes")

        existing = session.exec(
            select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
        ).first()
        if existing:
            raise Conflict("You have already submitted this quiz")

        questions = load_quiz_questions(session, quiz_id)
        graded = grade_submission(questions, answers)

        # completion first: the attempt row must only be flushed by the commit below
        record_completion(session, enrollment, lesson.id, check_quiz=False)
        attempt = QuizAttempt(
            quiz_id=quiz_id,
            student_id=student_id,
            answers=json.dumps([
                {"question_id": qid, "answer": encode_answer(answer)}
                for qid, answer in graded.answers.items()
            ]),
            score=graded.score,
            total_questions=graded.total_questions,
            submitted_at=graded.submitted_at,
        )
        session.add(attempt)
        try:
            session.commit()
        except IntegrityError as exc:
            session.rollback()
            raise Conflict("You have already submitted this quiz") from exc
        session.refresh(attempt)

    logger.info(
        "Quiz %s submitted by student %s: %s/%s",
        quiz_id, student_id, attempt.score, attempt.total_questions,
    )
    return attempt


def get_attempt(quiz_id: int, student_id: int) -> Optional[QuizAttempt]:
    with get_session() as session:
        q = select(QuizAttempt).where(QuizAttempt.quiz_id == quiz_id, QuizAttempt.student_id == student_id)
        return session.exec(q).first()


def attempt_answers(attempt: QuizAttempt) -> dict[int, Optional[Answer]]:
    """Decode the answers stored on an attempt, keyed by question id."""
    if not attempt.answers:
        return {}
    return {
        item["question_id"]: decode_answer(item.get("answer"))
        for item in json.loads(attempt.answers)
    }


def get_attempts_for_course(course_id: int, student_id: Optional[int] = None) -> list[AttemptRecord]:
    with get_session() as session:
        course = load_course_tree(session, course_id)
        return load_attempt_records(session, course, student_id=student_id)
