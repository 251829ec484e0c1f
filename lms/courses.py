import json
import logging
from typing import Optional

from sqlalchemy import func
from sqlmodel import select

from lms.content import CourseTree, load_course_tree, require_instructor
from lms.db import get_session
from lms.errors import NotFound, PermissionDenied, ValidationError
from lms.models import Course, CourseInstructor, Enrollment, Lesson, Module, User

logger = logging.getLogger(__name__)

AUTHOR_ROLES = ("educator", "admin")


def _clean_tags(tags) -> list[str]:
    seen = []
    for t in tags or []:
        t = str(t).strip().lower()
        if t and t not in seen:
            seen.append(t)
    return seen


def create_course(title: str, description: str, owner_id: int, tags: Optional[list] = None) -> Course:
    if not (title or "").strip():
        raise ValidationError("Course title cannot be empty")
    with get_session() as session:
        owner = session.get(User, owner_id)
        if not owner:
            raise NotFound("User not found")
        if owner.role not in AUTHOR_ROLES:
            raise PermissionDenied("Only educators can create courses")
        course = Course(
            title=title.strip(),
            description=description,
            tags=json.dumps(_clean_tags(tags)),
            owner_id=owner_id,
        )
        session.add(course)
        session.commit()
        session.refresh(course)
        # owner is the first instructor
        session.add(CourseInstructor(course_id=course.id, user_id=owner_id))
        session.commit()
        logger.info("Course %s created by %s", course.id, owner_id)
        return course


def update_course(course_id: int, requester_id: int, title: Optional[str] = None,
                  description: Optional[str] = None, tags: Optional[list] = None) -> Course:
    with get_session() as session:
        course = require_instructor(session, course_id, requester_id)
        if title is not None:
            if not title.strip():
                raise ValidationError("Course title cannot be empty")
            course.title = title.strip()
        if description is not None:
            course.description = description
        if tags is not None:
            course.tags = json.dumps(_clean_tags(tags))
        session.add(course)
        session.commit()
        session.refresh(course)
        return course


def add_instructor(course_id: int, user_id: int, requester_id: int) -> CourseInstructor:
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        user = session.get(User, user_id)
        if not user:
            raise NotFound("User not found")
        if user.role not in AUTHOR_ROLES:
            raise ValidationError("Only educators can be course instructors")
        existing = session.exec(
            select(CourseInstructor).where(
                CourseInstructor.course_id == course_id, CourseInstructor.user_id == user_id
            )
        ).first()
        if existing:
            return existing
        link = CourseInstructor(course_id=course_id, user_id=user_id)
        session.add(link)
        session.commit()
        session.refresh(link)
        return link


def add_module(course_id: int, title: str, requester_id: int) -> Module:
    if not (title or "").strip():
        raise ValidationError("Module title cannot be empty")
    with get_session() as session:
        require_instructor(session, course_id, requester_id)
        count = session.exec(select(func.count(Module.id)).where(Module.course_id == course_id)).one()
        module = Module(course_id=course_id, title=title.strip(), position=count)
        session.add(module)
        session.commit()
        session.refresh(module)
        return module


def add_lesson(module_id: int, title: str, content: str, requester_id: int,
               video_url: Optional[str] = None, lab_url: Optional[str] = None) -> Lesson:
    if not (title or "").strip():
        raise ValidationError("Lesson title cannot be empty")
    with get_session() as session:
        module = session.get(Module, module_id)
        if not module:
            raise NotFound("Module not found")
        require_instructor(session, module.course_id, requester_id)
        count = session.exec(select(func.count(Lesson.id)).where(Lesson.module_id == module_id)).one()
        lesson = Lesson(
            module_id=module_id,
            title=title.strip(),
            content=content,
            video_url=video_url or None,
            lab_url=lab_url or None,
            position=count,
        )
        session.add(lesson)
        session.commit()
        session.refresh(lesson)
        return lesson


def get_course(course_id: int) -> Course:
    with get_session() as session:
        course = session.get(Course, course_id)
        if not course:
            raise NotFound("Course not found")
        return course


def get_course_tree(course_id: int) -> CourseTree:
    with get_session() as session:
        return load_course_tree(session, course_id)


def course_tags(course: Course) -> list[str]:
    if not course.tags:
        return []
    return json.loads(course.tags)


def list_courses(tag: Optional[str] = None):
    with get_session() as session:
        courses = list(session.exec(select(Course).order_by(Course.created_at.desc())))
    if tag:
        tag = tag.strip().lower()
        courses = [c for c in courses if tag in course_tags(c)]
    return courses


def get_courses_for_instructor(user_id: int):
    with get_session() as session:
        q = (
            select(Course)
            .join(CourseInstructor, CourseInstructor.course_id == Course.id)
            .where(CourseInstructor.user_id == user_id)
        )
        return list(session.exec(q))


def get_courses_for_student(user_id: int, status: str = "enrolled"):
    with get_session() as session:
        q = (
            select(Course)
            .join(Enrollment, Enrollment.course_id == Course.id)
            .where(Enrollment.student_id == user_id, Enrollment.status == status)
        )
        return list(session.exec(q))
