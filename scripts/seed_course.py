import argparse
import random
import sys
from datetime import timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from sqlmodel import select

from lms.courses import add_lesson, add_module
from lms.db import get_session, init_db
from lms.grading import get_quiz_questions, submit_quiz
from lms.logging_config import setup_logging
from lms.models import Course, Enrollment, QuizAttempt, User, now_utc
from lms.questions import (
    BooleanAnswer,
    ChoiceAnswer,
    IDENTIFICATION,
    MULTIPLE_CHOICE,
    TextAnswer,
    TRUE_OR_FALSE,
)
from lms.quiz import create_quiz


SEED_USER_PREFIX = "seed_student"
SEED_MODULE_PREFIX = "[SEED]"


def _question_defs(lesson_no, count):
    defs = []
    for qn in range(count):
        if qn % 3 == 0:
            defs.append({
                "type": TRUE_OR_FALSE,
                "text": f"Seed true/false {lesson_no}-{qn+1}",
                "correct_answer": True,
            })
        elif qn % 3 == 1:
            defs.append({
                "type": MULTIPLE_CHOICE,
                "text": f"Seed multiple choice {lesson_no}-{qn+1}",
                "choices": ["Option A", "Option B", "Option C", "Option D"],
                "correct_answer": 0,
            })
        else:
            defs.append({
                "type": IDENTIFICATION,
                "text": f"Seed identification {lesson_no}-{qn+1}",
                "correct_answer": "python",
            })
    return defs


def _answer(question, correct):
    if question.kind == MULTIPLE_CHOICE:
        return ChoiceAnswer(question.correct_answer_index if correct else len(question.options) - 1)
    if question.kind == IDENTIFICATION:
        return TextAnswer(question.correct_answer.upper() if correct else "wrong")
    if question.kind == TRUE_OR_FALSE:
        return BooleanAnswer(question.correct_answer if correct else not question.correct_answer)
    return None


def main():
    parser = argparse.ArgumentParser(description="Seed lessons, quizzes and attempts for a course.")
    parser.add_argument("--course-id", type=int, required=True, help="Course to seed.")
    parser.add_argument("--students", type=int, default=8)
    parser.add_argument("--lessons", type=int, default=4)
    parser.add_argument("--questions", type=int, default=5)
    args = parser.parse_args()

    setup_logging()
    init_db()
    random.seed(42)

    with get_session() as session:
        course = session.get(Course, args.course_id)
        if not course:
            raise SystemExit(f"Course not found: {args.course_id}")
        owner_id = course.owner_id
        course_title = course.title

    module = add_module(args.course_id, f"{SEED_MODULE_PREFIX} Practice module", owner_id)
    quizzes = []
    for li in range(args.lessons):
        lesson = add_lesson(
            module.id,
            f"Practice lesson {li+1}",
            f"Seeded content for practice lesson {li+1}.",
            owner_id,
        )
        quizzes.append(
            create_quiz(lesson.id, f"Practice lesson {li+1} Quiz", _question_defs(li + 1, args.questions), owner_id)
        )

    student_ids = []
    with get_session() as session:
        for i in range(args.students):
            email = f"{SEED_USER_PREFIX}+c{args.course_id}_{i+1}@example.com"
            user = session.exec(select(User).where(User.email == email)).first()
            if not user:
                user = User(
                    email=email,
                    password_hash="seed",
                    full_name=f"Seed Student {i+1}",
                    role="student",
                )
                session.add(user)
                session.commit()
                session.refresh(user)
            student_ids.append(user.id)

            existing = session.exec(
                select(Enrollment).where(
                    Enrollment.course_id == args.course_id,
                    Enrollment.student_id == user.id,
                )
            ).first()
            if not existing:
                session.add(Enrollment(course_id=args.course_id, student_id=user.id, status="enrolled"))
                session.commit()
            elif existing.status != "enrolled":
                existing.status = "enrolled"
                session.add(existing)
                session.commit()

    # segments: struggling / average / strong
    for idx, student_id in enumerate(student_ids):
        success_rate = (0.35, 0.6, 0.85)[idx % 3]
        # later students skip the last quizzes so progress varies
        taken = quizzes[: max(1, len(quizzes) - idx % len(quizzes))]
        for quiz in taken:
            questions = get_quiz_questions(quiz.id)
            answers = {q.id: _answer(q, random.random() < success_rate) for q in questions}
            attempt = submit_quiz(quiz.id, student_id, answers)

            with get_session() as session:
                row = session.get(QuizAttempt, attempt.id)
                row.submitted_at = now_utc() - timedelta(days=random.randint(0, 20))
                session.add(row)
                session.commit()

    print(
        f"Seed complete for course {course_title} ({args.course_id}). "
        f"Students={args.students}, Lessons={args.lessons}, Questions={args.questions}"
    )


if __name__ == "__main__":
    main()
