import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import select

from lms.db import get_session
from lms.models import (
    CompletedItem,
    Course,
    Enrollment,
    Lesson,
    Module,
    Notification,
    Question,
    Quiz,
    QuizAttempt,
    User,
)


SEED_USER_PREFIX = "seed_student"
SEED_MODULE_PREFIX = "[SEED]"


def main():
    parser = argparse.ArgumentParser(description="Cleanup seeded data for a course.")
    parser.add_argument("--course-id", type=int, required=True, help="Course to cleanup.")
    args = parser.parse_args()

    with get_session() as session:
        course = session.get(Course, args.course_id)
        if not course:
            raise SystemExit(f"Course not found: {args.course_id}")

        modules = session.exec(select(Module).where(Module.course_id == course.id)).all()
        seed_module_ids = [m.id for m in modules if m.title.startswith(SEED_MODULE_PREFIX)]
        lessons = []
        if seed_module_ids:
            lessons = session.exec(select(Lesson).where(Lesson.module_id.in_(seed_module_ids))).all()
        lesson_ids = [lesson.id for lesson in lessons]
        quizzes = []
        if lesson_ids:
            quizzes = session.exec(select(Quiz).where(Quiz.lesson_id.in_(lesson_ids))).all()
        quiz_ids = [q.id for q in quizzes]

        if quiz_ids:
            session.exec(QuizAttempt.__table__.delete().where(QuizAttempt.quiz_id.in_(quiz_ids)))
            session.exec(Question.__table__.delete().where(Question.quiz_id.in_(quiz_ids)))
            session.exec(Quiz.__table__.delete().where(Quiz.id.in_(quiz_ids)))
        if lesson_ids:
            session.exec(CompletedItem.__table__.delete().where(CompletedItem.lesson_id.in_(lesson_ids)))
            session.exec(Lesson.__table__.delete().where(Lesson.id.in_(lesson_ids)))
        if seed_module_ids:
            session.exec(Module.__table__.delete().where(Module.id.in_(seed_module_ids)))

        seed_users = session.exec(
            select(User).where(User.email.like(f"{SEED_USER_PREFIX}+c{course.id}_%"))
        ).all()
        seed_user_ids = [u.id for u in seed_users]

        if seed_user_ids:
            enrollment_ids = session.exec(
                select(Enrollment.id).where(
                    Enrollment.course_id == course.id,
                    Enrollment.student_id.in_(seed_user_ids),
                )
            ).all()
            if enrollment_ids:
                session.exec(
                    CompletedItem.__table__.delete().where(CompletedItem.enrollment_id.in_(enrollment_ids))
                )
                session.exec(Enrollment.__table__.delete().where(Enrollment.id.in_(enrollment_ids)))
            session.exec(QuizAttempt.__table__.delete().where(QuizAttempt.student_id.in_(seed_user_ids)))
            session.exec(Notification.__table__.delete().where(Notification.user_id.in_(seed_user_ids)))
            session.exec(User.__table__.delete().where(User.id.in_(seed_user_ids)))

        session.commit()

    print(f"Seed cleanup complete for course {args.course_id}.")


if __name__ == "__main__":
    main()
