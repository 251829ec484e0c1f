import pytest

from lms.content import AttemptRecord, CourseTree, LessonNode, ModuleNode, QuizNode
from lms.grades import build_grade_summary, get_grade_report, letter_grade
from lms.grading import get_quiz_questions, submit_quiz
from lms.models import now_utc


def course_with_quizzes(*counts):
    lessons = tuple(
        LessonNode(
            id=100 + i,
            module_id=1,
            title=f'L{i}',
            quiz=QuizNode(id=1000 + i, lesson_id=100 + i, title=f'Quiz {i}', question_count=n),
        )
        for i, n in enumerate(counts)
    )
    return CourseTree(id=1, title='C', modules=(ModuleNode(id=1, title='M', lessons=lessons),))


def at(quiz_id, score, total):
    return AttemptRecord(quiz_id=quiz_id, student_id=5, score=score, total_questions=total, submitted_at=now_utc())


@pytest.mark.parametrize('pct,letter', [
    (100, 'A+'), (97, 'A+'), (96.9, 'A'), (93, 'A'), (90, 'A-'), (87, 'B+'), (83, 'B'),
    (80, 'B-'), (77, 'C+'), (73, 'C'), (70, 'C-'), (60, 'D'), (59.9, 'F'), (0, 'F'),
])
def test_letter_grade_table(pct, letter):
    assert letter_grade(pct) == letter


def test_no_graded_quizzes():
    course = course_with_quizzes(3, 4)
    summary = build_grade_summary(course, course.quizzes, [])
    assert summary.overall_grade is None
    assert summary.letter_grade == 'N/A'
    assert [q.quiz_id for q in summary.ungraded_quizzes] == [1000, 1001]


def test_overall_grade_pools_points():
    course = course_with_quizzes(3, 5, 2)
    summary = build_grade_summary(course, course.quizzes, [at(1000, 3, 3), at(1001, 2, 5)])
    # 5 / 8 = 62.5 -> 63
    assert summary.overall_grade == 63
    assert summary.letter_grade == 'D'
    assert [q.quiz_id for q in summary.graded_quizzes] == [1000, 1001]
    assert [q.quiz_id for q in summary.ungraded_quizzes] == [1002]


def test_zero_total_quizzes_do_not_grade():
    course = course_with_quizzes(0)
    summary = build_grade_summary(course, course.quizzes, [at(1000, 0, 0)])
    assert len(summary.graded_quizzes) == 1
    assert summary.overall_grade is None
    assert summary.letter_grade == 'N/A'


def test_grade_report_for_student(make_user, make_course, enroll):
    c = make_course(lessons=2, quiz_on=(0, 1), title='Data Structures')
    student = make_user('student')
    enroll(c.course.id, student.id)
    quiz = c.quizzes[0]
    answers = {}
    for q in get_quiz_questions(quiz.id):
        answers[q.id] = q.correct_answer_index if q.kind == 'multiple-choice' else (
            q.correct_answer if q.kind == 'true-or-false' else 'wrong'
        )
    submit_quiz(quiz.id, student.id, answers)

    report = get_grade_report(student.id)

    assert len(report) == 1
    summary = report[0]
    assert summary.course_title == 'Data Structures'
    assert summary.overall_grade == 67
    assert summary.letter_grade == 'D'
    assert [q.score for q in summary.graded_quizzes] == [2]
    assert [q.title for q in summary.ungraded_quizzes] == ['Quiz 2']
