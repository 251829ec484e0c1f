import itertools
import os
from types import SimpleNamespace

import pytest

TEST_DB = os.path.join(os.getcwd(), 'test_app.db')
# must be set before lms.db is imported anywhere
os.environ['DATABASE_URL'] = f'sqlite:///{TEST_DB}'

from lms.db import init_db, get_session  # noqa: E402
from lms.courses import add_lesson, add_module, create_course  # noqa: E402
from lms.models import Enrollment, User  # noqa: E402
from lms.quiz import create_quiz  # noqa: E402

_ids = itertools.count(1)


@pytest.fixture(scope='session', autouse=True)
def reset_db():
    # Ensure a clean DB for the test session
    try:
        os.remove(TEST_DB)
    except FileNotFoundError:
        pass
    init_db()
    yield
    try:
        os.remove(TEST_DB)
    except OSError:
        pass


@pytest.fixture
def make_user():
    def _make(role='student', name=None):
        n = next(_ids)
        with get_session() as s:
            user = User(email=f'{role}_{n}@example.com', password_hash='x', full_name=name, role=role)
            s.add(user)
            s.commit()
            s.refresh(user)
            return user
    return _make


QUIZ_QUESTIONS = [
    {'type': 'multiple-choice', 'text': 'Which structure?', 'choices': ['List', 'Tree', 'Hash', 'Heap'], 'correct_answer': 2},
    {'type': 'identification', 'text': 'O(1) lookup table', 'correct_answer': 'Hash'},
    {'type': 'true-or-false', 'text': 'Hashes can collide', 'correct_answer': True},
]


@pytest.fixture
def make_course(make_user):
    """Course with one module of ``lessons`` lessons; ``quiz_on`` lists lesson indexes that get a quiz."""
    def _make(lessons=2, quiz_on=(), instructor=None, title='Course'):
        instructor = instructor or make_user('educator')
        course = create_course(title, 'desc', instructor.id)
        module = add_module(course.id, 'Module 1', instructor.id)
        lesson_rows = [add_lesson(module.id, f'Lesson {i+1}', 'content', instructor.id) for i in range(lessons)]
        quizzes = {}
        for idx in quiz_on:
            quizzes[idx] = create_quiz(lesson_rows[idx].id, f'Quiz {idx+1}', QUIZ_QUESTIONS, instructor.id)
        return SimpleNamespace(
            course=course, instructor=instructor, module=module, lessons=lesson_rows, quizzes=quizzes,
        )
    return _make


@pytest.fixture
def enroll():
    def _enroll(course_id, student_id, status='enrolled'):
        with get_session() as s:
            e = Enrollment(course_id=course_id, student_id=student_id, status=status)
            s.add(e)
            s.commit()
            s.refresh(e)
            return e
    return _enroll
