import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from lms.content import get_instructor_ids, require_instructor
from lms.db import get_session
from lms.errors import NotFound, PermissionDenied, ValidationError
from lms.models import CompletedItem, Course, Enrollment, Notification, User

logger = logging.getLogger(__name__)


def find_enrollment(session: Session, course_id: int, student_id: int) -> Optional[Enrollment]:
    q = select(Enrollment).where(Enrollment.course_id == course_id, Enrollment.student_id == student_id)
    return session.exec(q).first()


def get_enrollment(course_id: int, student_id: int) -> Optional[Enrollment]:
    with get_session() as session:
        return find_enrollment(session, course_id, student_id)


def list_enrollments(course_id: int, status: Optional[str] = None):
    with get_session() as session:
        q = select(Enrollment).where(Enrollment.course_id == course_id)
        if status is not None:
            q = q.where(Enrollment.status == status)
        return list(session.exec(q.order_by(Enrollment.requested_at, Enrollment.id)))


def request_enrollment(course_id: int, student_id: int) -> Enrollment:
    """Create a pending enrollment and notify every instructor in the same commit.

    Asking again returns the existing enrollment untouched.
    """
    with get_session() as session:
        course = session.get(Course, course_id)
        if not course:
            raise NotFound("Course not found")
        student = session.get(User, student_id)
        if not student:
            raise NotFound("User not found")
        if student.role != "student":
            raise PermissionDenied("Only students can request enrollment")

        existing = find_enrollment(session, course_id, student_id)
        if existing:
            return existing

        enroll = Enrollment(course_id=course_id, student_id=student_id, status="pending")
        session.add(enroll)
        who = student.full_name or student.email
        for instructor_id in sorted(get_instructor_ids(session, course_id)):
            session.add(Notification(
                user_id=instructor_id,
                course_id=course_id,
                type="enrollment_request",
                message=f"{who} requested to enroll in {course.title}.",
            ))
        try:
            session.commit()
        except IntegrityError:
            session.rollback()
            existing = find_enrollment(session, course_id, student_id)
            if existing:
                return existing
            raise
        session.refresh(enroll)
        logger.info("Enrollment requested: student %s, course %s", student_id, course_id)
        return enroll


def respond_to_request(course_id: int, student_id: int, status: str, requester_id: int) -> Enrollment:
    if status not in ("enrolled", "rejected"):
        raise ValidationError(f"Invalid enrollment status: {status!r}")
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        enroll = find_enrollment(session, course_id, student_id)
        if not enroll:
            raise NotFound("Enrollment request not found")
        enroll.status = status
        enroll.acknowledged_by_student = False
        session.add(enroll)
        if status == "enrolled":
            session.add(Notification(
                user_id=student_id,
                course_id=course_id,
                type="enrollment_approved",
                message="You have been enrolled in the course!",
            ))
        session.commit()
        session.refresh(enroll)
        logger.info("Enrollment %s for student %s in course %s", status, student_id, course_id)
        return enroll


def add_student_by_email(course_id: int, email: str, requester_id: int) -> Enrollment:
    email = (email or "").strip()
    if not email:
        raise ValidationError("Email cannot be empty")
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        student = session.exec(select(User).where(User.email == email)).first()
        if not student:
            raise NotFound("No user found with this email")
        if student.role != "student":
            raise ValidationError("Only student accounts can be enrolled")
        enroll = find_enrollment(session, course_id, student.id)
        if enroll is None:
            enroll = Enrollment(course_id=course_id, student_id=student.id)
        enroll.status = "enrolled"
        enroll.acknowledged_by_student = False
        session.add(enroll)
        session.add(Notification(
            user_id=student.id,
            course_id=course_id,
            type="enrollment_added",
            message="An instructor has enrolled you in a new course!",
        ))
        session.commit()
        session.refresh(enroll)
        logger.info("Student %s added to course %s by %s", student.id, course_id, requester_id)
        return enroll


def remove_student(course_id: int, student_id: int, requester_id: int) -> bool:
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        enroll = find_enrollment(session, course_id, student_id)
        if not enroll:
            raise NotFound("Enrollment not found")
        items = session.exec(select(CompletedItem).where(CompletedItem.enrollment_id == enroll.id)).all()
        for item in items:
            session.delete(item)
        session.flush()
        session.delete(enroll)
        session.commit()
        logger.info("Student %s removed from course %s", student_id, course_id)
        return True
