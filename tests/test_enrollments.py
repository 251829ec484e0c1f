import pytest
from sqlalchemy.exc import IntegrityError

from lms import enrollments
from lms.completion import mark_complete
from lms.courses import add_instructor, get_courses_for_student
from lms.enrollments import (
    add_student_by_email,
    get_enrollment,
    list_enrollments,
    remove_student,
    request_enrollment,
    respond_to_request,
)
from lms.errors import NotFound, PermissionDenied, ValidationError
from lms.notifications import get_notifications, mark_read, unread_count


def test_request_notifies_every_instructor(make_user, make_course):
    c = make_course(lessons=1)
    co = make_user('educator')
    add_instructor(c.course.id, co.id, c.instructor.id)
    student = make_user('student', name='Ada')

    enrollment = request_enrollment(c.course.id, student.id)

    assert enrollment.status == 'pending'
    for instructor in (c.instructor, co):
        notes = get_notifications(instructor.id)
        assert len(notes) == 1
        assert notes[0].type == 'enrollment_request'
        assert notes[0].course_id == c.course.id
        assert 'Ada' in notes[0].message
        assert not notes[0].is_read


def test_repeated_request_returns_existing(make_user, make_course):
    c = make_course(lessons=1)
    student = make_user('student')
    first = request_enrollment(c.course.id, student.id)
    again = request_enrollment(c.course.id, student.id)

    assert again.id == first.id
    assert len(list_enrollments(c.course.id)) == 1
    assert unread_count(c.instructor.id) == 1


def test_only_students_request(make_user, make_course):
    c = make_course(lessons=1)
    with pytest.raises(PermissionDenied):
        request_enrollment(c.course.id, make_user('educator').id)
    with pytest.raises(NotFound):
        request_enrollment(999999, make_user('student').id)


def test_approve_notifies_student(make_user, make_course):
    c = make_course(lessons=1)
    student = make_user('student')
    request_enrollment(c.course.id, student.id)

    enrollment = respond_to_request(c.course.id, student.id, 'enrolled', c.instructor.id)

    assert enrollment.status == 'enrolled'
    assert [n.type for n in get_notifications(student.id)] == ['enrollment_approved']
    assert [course.id for course in get_courses_for_student(student.id)] == [c.course.id]


def test_reject_and_bad_status(make_user, make_course):
    c = make_course(lessons=1)
    student = make_user('student')
    request_enrollment(c.course.id, student.id)

    with pytest.raises(ValidationError):
        respond_to_request(c.course.id, student.id, 'maybe', c.instructor.id)
    with pytest.raises(PermissionDenied):
        respond_to_request(c.course.id, student.id, 'enrolled', student.id)

    enrollment = respond_to_request(c.course.id, student.id, 'rejected', c.instructor.id)
    assert enrollment.status == 'rejected'
    assert get_notifications(student.id) == []


def test_add_by_email_and_remove(make_user, make_course):
    c = make_course(lessons=1)
    student = make_user('student')

    enrollment = add_student_by_email(c.course.id, student.email, c.instructor.id)
    assert enrollment.status == 'enrolled'
    assert [n.type for n in get_notifications(student.id)] == ['enrollment_added']

    mark_complete(c.course.id, student.id, c.lessons[0].id)
    assert remove_student(c.course.id, student.id, c.instructor.id)
    assert get_enrollment(c.course.id, student.id) is None

    with pytest.raises(NotFound):
        add_student_by_email(c.course.id, 'nobody@example.com', c.instructor.id)


def test_mark_read(make_user, make_course):
    c = make_course(lessons=1)
    student = make_user('student')
    request_enrollment(c.course.id, student.id)
    note = get_notifications(c.instructor.id)[0]

    with pytest.raises(PermissionDenied):
        mark_read(note.id, student.id)

    mark_read(note.id, c.instructor.id)
    assert unread_count(c.instructor.id) == 0
    assert get_notifications(c.instructor.id, unread_only=True) == []

    with pytest.raises(NotFound):
        mark_read(999999, c.instructor.id)


def test_failed_fan_out_leaves_no_pending_enrollment(make_user, make_course, monkeypatch):
    c = make_course(lessons=1)
    co = make_user('educator')
    add_instructor(c.course.id, co.id, c.instructor.id)
    student = make_user('student')
    real_notification = enrollments.Notification
    built = []

    def broken_second_notification(**fields):
        built.append(fields)
        if len(built) == 2:
            fields['message'] = None
        return real_notification(**fields)

    monkeypatch.setattr(enrollments, 'Notification', broken_second_notification)

    with pytest.raises(IntegrityError):
        request_enrollment(c.course.id, student.id)

    assert len(built) == 2
    assert get_enrollment(c.course.id, student.id) is None
    assert get_notifications(c.instructor.id) == []
    assert get_notifications(co.id) == []


def test_add_by_email_rejects_non_students(make_user, make_course):
    c = make_course(lessons=1)
    educator = make_user('educator')

    with pytest.raises(ValidationError):
        add_student_by_email(c.course.id, educator.email, c.instructor.id)
    assert get_enrollment(c.course.id, educator.id) is None
    assert get_notifications(educator.id) == []
