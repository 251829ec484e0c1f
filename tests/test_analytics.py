from datetime import datetime, timedelta

import pytest

from lms.analytics import build_analytics, get_course_analytics
from lms.content import AttemptRecord, CourseTree, EnrollmentRecord, LessonNode, ModuleNode, QuizNode
from lms.errors import PermissionDenied
from lms.grading import get_quiz_questions, submit_quiz

INSTRUCTOR = 1
X, Y, Z = 10, 11, 12
T0 = datetime(2024, 5, 1, 12, 0)


def course_tree():
    lessons = (
        LessonNode(id=100, module_id=1, title='Intro', quiz=QuizNode(id=1000, lesson_id=100, title='Q1', question_count=100)),
        LessonNode(id=101, module_id=1, title='Basics', quiz=QuizNode(id=1001, lesson_id=101, title='Q2', question_count=100)),
    )
    return CourseTree(
        id=1,
        title='Algorithms',
        instructor_ids=frozenset({INSTRUCTOR}),
        modules=(ModuleNode(id=1, title='M', lessons=lessons),),
    )


def attempt(quiz_id, student_id, score, minutes):
    return AttemptRecord(
        quiz_id=quiz_id,
        student_id=student_id,
        score=score,
        total_questions=100,
        submitted_at=T0 + timedelta(minutes=minutes),
    )


def enrollments():
    return [
        EnrollmentRecord(student_id=X, status='enrolled', completed_items=frozenset({100, 101}), label='x@example.com'),
        EnrollmentRecord(student_id=Y, status='enrolled', label='y@example.com'),
        EnrollmentRecord(student_id=Z, status='pending', label='z@example.com'),
    ]


def test_two_students_one_without_attempts():
    # listed newest first: trends must come out in submission order
    attempts = [attempt(1001, X, 90, 30), attempt(1000, X, 80, 10)]
    result = build_analytics(course_tree(), attempts, enrollments(), INSTRUCTOR)

    trends = {t.student_id: t.scores for t in result.trends}
    assert trends == {X: (80, 90), Y: ()}
    assert result.engagement_by_student() == {X: 2, Y: 0}


def test_activity_averages_sorted_by_name():
    attempts = [
        attempt(1000, X, 80, 1),
        attempt(1000, Y, 60, 2),
        attempt(1001, X, 90, 3),
    ]
    result = build_analytics(course_tree(), attempts, enrollments(), INSTRUCTOR)

    assert [a.name for a in result.activity_averages] == ['Basics Quiz', 'Intro Quiz']
    by_name = {a.name: a for a in result.activity_averages}
    assert by_name['Intro Quiz'].average_score == 70
    assert by_name['Intro Quiz'].attempts == 2
    assert by_name['Basics Quiz'].average_score == 90


def test_dangling_quiz_is_skipped():
    attempts = [attempt(1000, X, 80, 1), attempt(4242, X, 5, 2)]
    result = build_analytics(course_tree(), attempts, enrollments(), INSTRUCTOR)
    assert [a.name for a in result.activity_averages] == ['Intro Quiz']


def test_summary_counts_enrolled_only():
    result = build_analytics(course_tree(), [], enrollments(), INSTRUCTOR)
    assert result.summary.total_students == 2
    assert result.summary.completed_count == 1
    assert result.summary.average_progress == 50.0
    assert [r.student_id for r in result.students] == [X, Y]
    assert all(r.best_score is None for r in result.students)


def test_empty_course_summary():
    result = build_analytics(course_tree(), [], [], INSTRUCTOR)
    assert result.summary.total_students == 0
    assert result.summary.average_progress == 0
    assert result.trends == ()


def test_trends_limited_to_first_three_students():
    many = [EnrollmentRecord(student_id=i, status='enrolled', label=str(i)) for i in range(20, 25)]
    result = build_analytics(course_tree(), [], many, INSTRUCTOR)
    assert [t.student_id for t in result.trends] == [20, 21, 22]
    assert len(result.engagement) == 5


def test_non_instructor_is_denied():
    with pytest.raises(PermissionDenied):
        build_analytics(course_tree(), [attempt(1000, X, 80, 1)], enrollments(), X)
    with pytest.raises(PermissionDenied):
        build_analytics(course_tree(), [], enrollments(), None)


def test_course_analytics_from_store(make_user, make_course, enroll):
    c = make_course(lessons=2, quiz_on=(0,))
    first = make_user('student')
    second = make_user('student')
    enroll(c.course.id, first.id)
    enroll(c.course.id, second.id)
    quiz = c.quizzes[0]
    answers = {q.id: None for q in get_quiz_questions(quiz.id)}
    submit_quiz(quiz.id, first.id, answers)

    result = get_course_analytics(c.course.id, c.instructor.id)

    assert [a.name for a in result.activity_averages] == ['Lesson 1 Quiz']
    assert result.engagement_by_student() == {first.id: 1, second.id: 0}
    progress = {r.student_id: r.progress for r in result.students}
    assert progress == {first.id: 50.0, second.id: 0}

    with pytest.raises(PermissionDenied):
        get_course_analytics(c.course.id, first.id)
