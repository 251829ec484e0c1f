from lms.completion import mark_complete
from lms.content import CourseTree, LessonNode, ModuleNode
from lms.progress import compute_progress, get_course_progress, get_progress_report, is_course_completed


def tree(*lesson_ids):
    lessons = tuple(LessonNode(id=i, module_id=1, title=f'L{i}') for i in lesson_ids)
    return CourseTree(id=1, title='C', modules=(ModuleNode(id=1, title='M', lessons=lessons),))


def test_half_done():
    assert compute_progress(tree(10, 11), {10}) == 50.0


def test_no_lessons_is_zero():
    assert compute_progress(tree(), {1, 2}) == 0
    assert compute_progress(CourseTree(id=1, title='Empty'), set()) == 0


def test_stale_ids_do_not_count():
    assert compute_progress(tree(10, 11), {10, 99, 100}) == 50.0


def test_rounded_to_two_decimals():
    assert compute_progress(tree(1, 2, 3), {1}) == 33.33


def test_monotonic_and_capped():
    course = tree(1, 2, 3, 4, 5, 6, 7)
    done = set()
    last = 0
    for lesson_id in [1, 2, 3, 4, 5, 6, 7]:
        done.add(lesson_id)
        pct = compute_progress(course, done)
        assert last <= pct <= 100
        last = pct
    assert last == 100
    assert is_course_completed(last)
    assert not is_course_completed(99.99)


def test_progress_from_store(make_user, make_course, enroll):
    c = make_course(lessons=2)
    student = make_user('student')
    enroll(c.course.id, student.id)
    assert get_course_progress(c.course.id, student.id) == 0

    mark_complete(c.course.id, student.id, c.lessons[0].id)
    assert get_course_progress(c.course.id, student.id) == 50.0

    mark_complete(c.course.id, student.id, c.lessons[1].id)
    assert get_course_progress(c.course.id, student.id) == 100.0


def test_progress_report_covers_enrolled_courses(make_user, make_course, enroll):
    first = make_course(lessons=2, title='Algorithms')
    second = make_course(lessons=1, title='Databases')
    pending = make_course(lessons=1, title='Networks')
    student = make_user('student')
    enroll(first.course.id, student.id)
    enroll(second.course.id, student.id)
    enroll(pending.course.id, student.id, status='pending')

    mark_complete(first.course.id, student.id, first.lessons[0].id)
    mark_complete(second.course.id, student.id, second.lessons[0].id)

    report = get_progress_report(student.id)

    assert [(r.course_title, r.progress, r.completed) for r in report] == [
        ('Algorithms', 50.0, False),
        ('Databases', 100.0, True),
    ]
    assert report[0].progress == get_course_progress(first.course.id, student.id)


def test_progress_report_empty_without_enrollments(make_user):
    assert get_progress_report(make_user('student').id) == []
