from datetime import datetime, timedelta

from lms.analytics import build_analytics
from lms.charts import (
    activity_chart,
    activity_frame,
    engagement_frame,
    grade_frame,
    student_frame,
    trend_chart,
    trend_frame,
)
from lms.content import AttemptRecord, CourseTree, EnrollmentRecord, LessonNode, ModuleNode, QuizNode
from lms.grades import GradedQuiz, GradeSummary


def sample_analytics():
    lesson = LessonNode(id=1, module_id=1, title='Intro', quiz=QuizNode(id=9, lesson_id=1, title='Q', question_count=10))
    course = CourseTree(id=1, title='C', instructor_ids=frozenset({1}), modules=(ModuleNode(id=1, title='M', lessons=(lesson,)),))
    t0 = datetime(2024, 1, 1)
    attempts = [
        AttemptRecord(quiz_id=9, student_id=2, score=8, total_questions=10, submitted_at=t0),
        AttemptRecord(quiz_id=9, student_id=3, score=6, total_questions=10, submitted_at=t0 + timedelta(hours=1)),
    ]
    enrollments = [
        EnrollmentRecord(student_id=2, status='enrolled', label='a@example.com'),
        EnrollmentRecord(student_id=3, status='enrolled', label='b@example.com'),
        EnrollmentRecord(student_id=4, status='enrolled', label='c@example.com'),
    ]
    return build_analytics(course, attempts, enrollments, 1)


def test_frames():
    analytics = sample_analytics()

    act = activity_frame(analytics)
    assert act.to_dict('records') == [{'activity': 'Intro Quiz', 'average_score': 7.0, 'attempts': 2}]

    trend = trend_frame(analytics)
    assert list(trend['student']) == ['a@example.com', 'b@example.com']
    assert list(trend['label']) == ['Attempt 1', 'Attempt 1']

    share = engagement_frame(analytics)
    assert list(share['attempts']) == [1, 1, 0]
    assert abs(share['share'].sum() - 1.0) < 1e-9

    students = student_frame(analytics)
    assert list(students['Best score'][:2]) == [8, 6]
    assert students['Best score'].isna().iloc[2]


def test_empty_engagement_share_is_zero():
    course = CourseTree(id=1, title='C', instructor_ids=frozenset({1}))
    analytics = build_analytics(course, [], [EnrollmentRecord(student_id=2, status='enrolled', label='a')], 1)
    assert list(engagement_frame(analytics)['share']) == [0.0]


def test_charts_build():
    analytics = sample_analytics()
    assert activity_chart(analytics).to_dict()['mark']['type'] == 'bar'
    assert trend_chart(analytics).to_dict()['mark']['type'] == 'line'


def test_grade_frame():
    report = [GradeSummary(
        course_id=1,
        course_title='C',
        overall_grade=75,
        letter_grade='C+',
        graded_quizzes=(GradedQuiz(quiz_id=1, title='Q1', score=3, total=4),),
        ungraded_quizzes=(),
    )]
    df = grade_frame(report)
    assert df.to_dict('records') == [{'Course': 'C', 'Quiz': 'Q1', 'Score': 3, 'Total': 4, 'Percent': 75.0}]
