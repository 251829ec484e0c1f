from typing import Optional
from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone

ROLES = ("student", "educator", "admin")
ENROLLMENT_STATUSES = ("pending", "enrolled", "rejected")


def now_utc():
    return datetime.now(timezone.utc)


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True)
    password_hash: str
    full_name: Optional[str] = None
    role: str = Field(default="student")  # student|educator|admin
    created_at: datetime = Field(default_factory=now_utc)


class Course(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    tags: Optional[str] = None  # JSON list
    owner_id: int = Field(foreign_key="user.id")
    created_at: datetime = Field(default_factory=now_utc)


class CourseInstructor(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("course_id", "user_id", name="uq_course_instructor"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    user_id: int = Field(foreign_key="user.id", index=True)


class Module(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    title: str
    position: int = Field(default=0)


class Lesson(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    module_id: int = Field(foreign_key="module.id", index=True)
    title: str
    content: Optional[str] = None
    video_url: Optional[str] = None
    lab_url: Optional[str] = None
    position: int = Field(default=0)


class Quiz(SQLModel, table=True):
    # one quiz per lesson; a new version is a new quiz on a lesson without one
    __table_args__ = (UniqueConstraint("lesson_id", name="uq_quiz_lesson"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    lesson_id: int = Field(foreign_key="lesson.id", index=True)
    title: str
    due_date: Optional[datetime] = None
    created_at: datetime = Field(default_factory=now_utc)


class Question(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key="quiz.id", index=True)
    position: int = Field(default=0)
    type: str  # multiple-choice|identification|true-or-false
    text: str
    choices: Optional[str] = None  # JSON list of option labels
    correct_answer: Optional[str] = None  # JSON


class QuizAttempt(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("quiz_id", "student_id", name="uq_attempt_quiz_student"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    quiz_id: int = Field(foreign_key="quiz.id", index=True)
    student_id: int = Field(foreign_key="user.id", index=True)
    answers: Optional[str] = None  # JSON: list of {question_id, answer}
    score: int = Field(default=0)
    total_questions: int = Field(default=0)
    submitted_at: datetime = Field(default_factory=now_utc)


class Enrollment(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("course_id", "student_id", name="uq_enrollment_course_student"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: int = Field(foreign_key="course.id", index=True)
    student_id: int = Field(foreign_key="user.id", index=True)
    status: str = Field(default="pending")  # pending|enrolled|rejected
    requested_at: datetime = Field(default_factory=now_utc)
    acknowledged_by_student: bool = Field(default=False)


class CompletedItem(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("enrollment_id", "lesson_id", name="uq_completed_item"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    enrollment_id: int = Field(foreign_key="enrollment.id", index=True)
    lesson_id: int = Field(index=True)  # no FK: stale ids survive lesson deletion
    completed_at: datetime = Field(default_factory=now_utc)


class Notification(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    course_id: Optional[int] = Field(default=None, foreign_key="course.id")
    type: str  # enrollment_request|enrollment_approved|enrollment_added
    message: str
    created_at: datetime = Field(default_factory=now_utc)
    is_read: bool = Field(default=False)
