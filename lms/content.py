"""Read-side views of a course: its content tree, attempts and enrollments.

These loaders are not transactional. A row that disappears between two
queries (a deleted lesson, a quiz whose lesson is gone) is treated as absent
rather than as an error.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, Optional

from sqlalchemy import func
from sqlmodel import Session, select

from lms.errors import NotFound, PermissionDenied
from lms.models import (
    CompletedItem,
    Course,
    CourseInstructor,
    Enrollment,
    Lesson,
    Module,
    Question,
    Quiz,
    QuizAttempt,
    User,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuizNode:
    id: int
    lesson_id: int
    title: str
    question_count: int
    due_date: Optional[datetime] = None


@dataclass(frozen=True)
class LessonNode:
    id: int
    module_id: int
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    lab_url: Optional[str] = None
    quiz: Optional[QuizNode] = None

    @property
    def activity_name(self) -> str:
        return f"{self.title} Quiz"


@dataclass(frozen=True)
class ModuleNode:
    id: int
    title: str
    lessons: tuple[LessonNode, ...] = ()


@dataclass(frozen=True)
class CourseTree:
    id: int
    title: str
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    instructor_ids: frozenset[int] = frozenset()
    modules: tuple[ModuleNode, ...] = ()

    @property
    def lessons(self) -> Iterator[LessonNode]:
        for module in self.modules:
            yield from module.lessons

    @property
    def lesson_ids(self) -> frozenset[int]:
        return frozenset(lesson.id for lesson in self.lessons)

    @property
    def quizzes(self) -> list[QuizNode]:
        return [lesson.quiz for lesson in self.lessons if lesson.quiz is not None]

    def lesson_for_quiz(self, quiz_id: int) -> Optional[LessonNode]:
        for lesson in self.lessons:
            if lesson.quiz is not None and lesson.quiz.id == quiz_id:
                return lesson
        return None

    def is_instructor(self, user_id: Optional[int]) -> bool:
        return user_id is not None and user_id in self.instructor_ids


@dataclass(frozen=True)
class AttemptRecord:
    quiz_id: int
    student_id: int
    score: int
    total_questions: int
    submitted_at: datetime


@dataclass(frozen=True)
class EnrollmentRecord:
    student_id: int
    status: str
    completed_items: frozenset[int] = field(default_factory=frozenset)
    label: str = ""
    requested_at: Optional[datetime] = None


def _parse_tags(raw: Optional[str]) -> tuple[str, ...]:
    if not raw:
        return ()
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        # fallback comma separated
        tags = [t.strip() for t in raw.split(",") if t.strip()]
    return tuple(str(t) for t in tags)


def get_instructor_ids(session: Session, course_id: int) -> frozenset[int]:
    rows = session.exec(
        select(CourseInstructor.user_id).where(CourseInstructor.course_id == course_id)
    ).all()
    return frozenset(rows)


def require_instructor(session: Session, course_id: int, user_id: Optional[int]) -> Course:
    course = session.get(Course, course_id)
    if not course:
        raise NotFound(f"Course {course_id} not found")
    if user_id is None or user_id not in get_instructor_ids(session, course_id):
        raise PermissionDenied("Only course instructors can do this")
    return course


def load_course_tree(session: Session, course_id: int) -> CourseTree:
    """Assemble course -> modules -> lessons -> quiz for one course."""
    course = session.get(Course, course_id)
    if not course:
        raise NotFound(f"Course {course_id} not found")

    modules = session.exec(
        select(Module).where(Module.course_id == course_id).order_by(Module.position, Module.id)
    ).all()
    module_ids = [m.id for m in modules]

    lessons = []
    if module_ids:
        lessons = session.exec(
            select(Lesson).where(Lesson.module_id.in_(module_ids)).order_by(Lesson.position, Lesson.id)
        ).all()
    lesson_ids = [lesson.id for lesson in lessons]

    quizzes = []
    if lesson_ids:
        quizzes = session.exec(select(Quiz).where(Quiz.lesson_id.in_(lesson_ids))).all()
    quiz_ids = [q.id for q in quizzes]

    counts = {}
    if quiz_ids:
        rows = session.exec(
            select(Question.quiz_id, func.count(Question.id))
            .where(Question.quiz_id.in_(quiz_ids))
            .group_by(Question.quiz_id)
        ).all()
        counts = {quiz_id: count for quiz_id, count in rows}

    quiz_by_lesson = {
        q.lesson_id: QuizNode(
            id=q.id,
            lesson_id=q.lesson_id,
            title=q.title,
            question_count=counts.get(q.id, 0),
            due_date=q.due_date,
        )
        for q in quizzes
    }

    lessons_by_module: dict[int, list[LessonNode]] = {}
    for lesson in lessons:
        lessons_by_module.setdefault(lesson.module_id, []).append(
            LessonNode(
                id=lesson.id,
                module_id=lesson.module_id,
                title=lesson.title,
                content=lesson.content,
                video_url=lesson.video_url,
                lab_url=lesson.lab_url,
                quiz=quiz_by_lesson.get(lesson.id),
            )
        )

    return CourseTree(
        id=course.id,
        title=course.title,
        description=course.description,
        tags=_parse_tags(course.tags),
        instructor_ids=get_instructor_ids(session, course_id),
        modules=tuple(
            ModuleNode(id=m.id, title=m.title, lessons=tuple(lessons_by_module.get(m.id, [])))
            for m in modules
        ),
    )


def load_attempt_records(
    session: Session, course: CourseTree, student_id: Optional[int] = None
) -> list[AttemptRecord]:
    quiz_ids = [q.id for q in course.quizzes]
    if not quiz_ids:
        return []
    query = select(QuizAttempt).where(QuizAttempt.quiz_id.in_(quiz_ids))
    if student_id is not None:
        query = query.where(QuizAttempt.student_id == student_id)
    attempts = session.exec(query.order_by(QuizAttempt.submitted_at, QuizAttempt.id)).all()
    return [
        AttemptRecord(
            quiz_id=at.quiz_id,
            student_id=at.student_id,
            score=at.score,
            total_questions=at.total_questions,
            submitted_at=at.submitted_at,
        )
        for at in attempts
    ]


def load_enrollment_records(
    session: Session, course_id: int, status: Optional[str] = None
) -> list[EnrollmentRecord]:
    """Enrollments of a course in request order, with completed items and labels."""
    query = select(Enrollment).where(Enrollment.course_id == course_id)
    if status is not None:
        query = query.where(Enrollment.status == status)
    enrollments = session.exec(query.order_by(Enrollment.requested_at, Enrollment.id)).all()
    if not enrollments:
        return []

    enrollment_ids = [e.id for e in enrollments]
    completed: dict[int, set[int]] = {}
    for enrollment_id, lesson_id in session.exec(
        select(CompletedItem.enrollment_id, CompletedItem.lesson_id).where(
            CompletedItem.enrollment_id.in_(enrollment_ids)
        )
    ).all():
        completed.setdefault(enrollment_id, set()).add(lesson_id)

    student_ids = [e.student_id for e in enrollments]
    users = {u.id: u for u in session.exec(select(User).where(User.id.in_(student_ids))).all()}

    records = []
    for e in enrollments:
        user = users.get(e.student_id)
        if user is None:
            logger.warning("Enrollment %s references missing user %s", e.id, e.student_id)
        records.append(
            EnrollmentRecord(
                student_id=e.student_id,
                status=e.status,
                completed_items=frozenset(completed.get(e.id, set())),
                label=(user.email if user else str(e.student_id)),
                requested_at=e.requested_at,
            )
        )
    return records
