"""Question and answer variants, and scoring of one answer against one question.

A question is one of three tagged shapes. A submitted answer is tagged the
same way, and an answer only ever matches a question carrying the same tag.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

from lms.errors import ValidationError
from lms.models import Question

MULTIPLE_CHOICE = "multiple-choice"
IDENTIFICATION = "identification"
TRUE_OR_FALSE = "true-or-false"

QUESTION_KINDS = (MULTIPLE_CHOICE, IDENTIFICATION, TRUE_OR_FALSE)


@dataclass(frozen=True)
class MultipleChoiceQuestion:
    text: str
    options: tuple[str, ...]
    correct_answer_index: int
    id: Optional[int] = field(default=None, compare=False)

    kind: ClassVar[str] = MULTIPLE_CHOICE


@dataclass(frozen=True)
class IdentificationQuestion:
    text: str
    correct_answer: str
    id: Optional[int] = field(default=None, compare=False)

    kind: ClassVar[str] = IDENTIFICATION


@dataclass(frozen=True)
class TrueFalseQuestion:
    text: str
    correct_answer: bool
    id: Optional[int] = field(default=None, compare=False)

    kind: ClassVar[str] = TRUE_OR_FALSE


QuizQuestion = Union[MultipleChoiceQuestion, IdentificationQuestion, TrueFalseQuestion]


@dataclass(frozen=True)
class ChoiceAnswer:
    index: int

    kind: ClassVar[str] = MULTIPLE_CHOICE

    @property
    def value(self) -> int:
        return self.index


@dataclass(frozen=True)
class TextAnswer:
    text: str

    kind: ClassVar[str] = IDENTIFICATION

    @property
    def value(self) -> str:
        return self.text


@dataclass(frozen=True)
class BooleanAnswer:
    value: bool

    kind: ClassVar[str] = TRUE_OR_FALSE


Answer = Union[ChoiceAnswer, TextAnswer, BooleanAnswer]

_ANSWER_TYPES = {
    MULTIPLE_CHOICE: ChoiceAnswer,
    IDENTIFICATION: TextAnswer,
    TRUE_OR_FALSE: BooleanAnswer,
}


def _normalize_text(t: str) -> str:
    return t.strip().casefold()


def _choice_is_correct(question: MultipleChoiceQuestion, answer: ChoiceAnswer) -> bool:
    if isinstance(answer.index, bool) or not isinstance(answer.index, int):
        return False
    return answer.index == question.correct_answer_index


def _identification_is_correct(question: IdentificationQuestion, answer: TextAnswer) -> bool:
    if not isinstance(answer.text, str):
        return False
    return _normalize_text(answer.text) == _normalize_text(question.correct_answer)


def _true_false_is_correct(question: TrueFalseQuestion, answer: BooleanAnswer) -> bool:
    return isinstance(answer.value, bool) and answer.value == question.correct_answer


_CHECKS = {
    MULTIPLE_CHOICE: _choice_is_correct,
    IDENTIFICATION: _identification_is_correct,
    TRUE_OR_FALSE: _true_false_is_correct,
}


def is_correct(question: QuizQuestion, answer: Optional[Answer]) -> bool:
    """Return whether ``answer`` is the canonical answer to ``question``.

    Missing answers and answers tagged for another question kind are
    incorrect. This never raises for a well-formed question.
    """
    if answer is None or answer.kind != question.kind:
        return False
    return _CHECKS[question.kind](question, answer)


def decode_answer(raw: Any) -> Optional[Answer]:
    """Turn a raw submitted value into a tagged answer.

    Accepts tagged answers as-is, explicit ``{"kind": ..., "value": ...}``
    dicts, and bare JSON scalars (bool, int, str). Anything else, including
    ``None``, decodes to ``None`` and is scored as unanswered.
    """
    if isinstance(raw, (ChoiceAnswer, TextAnswer, BooleanAnswer)):
        return raw
    if isinstance(raw, dict):
        answer_type = _ANSWER_TYPES.get(raw.get("kind"))
        if answer_type is None or "value" not in raw:
            return None
        value = raw["value"]
        # the tag only stands if the payload has the matching JSON type
        if answer_type is BooleanAnswer and isinstance(value, bool):
            return BooleanAnswer(value)
        if answer_type is ChoiceAnswer and isinstance(value, int) and not isinstance(value, bool):
            return ChoiceAnswer(value)
        if answer_type is TextAnswer and isinstance(value, str):
            return TextAnswer(value)
        return None
    # bool first: it is a subclass of int
    if isinstance(raw, bool):
        return BooleanAnswer(raw)
    if isinstance(raw, int):
        return ChoiceAnswer(raw)
    if isinstance(raw, str):
        return TextAnswer(raw)
    return None


def encode_answer(answer: Optional[Answer]) -> Optional[dict]:
    if answer is None:
        return None
    return {"kind": answer.kind, "value": answer.value}


def validate_question(question: QuizQuestion) -> QuizQuestion:
    if not (question.text or "").strip():
        raise ValidationError("Question text cannot be empty")
    if question.kind == MULTIPLE_CHOICE:
        if len(question.options) < 2:
            raise ValidationError("A multiple-choice question needs at least two options")
        index = question.correct_answer_index
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(question.options):
            raise ValidationError("Correct option index is out of range")
    elif question.kind == IDENTIFICATION:
        if not isinstance(question.correct_answer, str) or not question.correct_answer.strip():
            raise ValidationError("An identification question needs a non-empty answer")
    elif question.kind == TRUE_OR_FALSE:
        if not isinstance(question.correct_answer, bool):
            raise ValidationError("A true-or-false question needs a boolean answer")
    return question


def question_from_dict(data: dict) -> QuizQuestion:
    """Build a question from authoring input.

    data: {type, text, choices (multiple-choice only), correct_answer}
    """
    q_type = data.get("type")
    text = data.get("text") or ""
    correct = data.get("correct_answer")
    if q_type == MULTIPLE_CHOICE:
        choices = data.get("choices") or []
        if not isinstance(choices, (list, tuple)):
            raise ValidationError("Choices must be a list of option labels")
        question = MultipleChoiceQuestion(
            text=text,
            options=tuple(str(c) for c in choices),
            correct_answer_index=correct,
        )
    elif q_type == IDENTIFICATION:
        question = IdentificationQuestion(text=text, correct_answer=correct)
    elif q_type == TRUE_OR_FALSE:
        question = TrueFalseQuestion(text=text, correct_answer=correct)
    else:
        raise ValidationError(f"Unknown question type: {q_type!r}")
    return validate_question(question)


def question_from_record(row: Question) -> QuizQuestion:
    try:
        correct = json.loads(row.correct_answer) if row.correct_answer is not None else None
        choices = json.loads(row.choices) if row.choices else []
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Question {row.id} has a malformed stored answer") from exc
    if row.type == MULTIPLE_CHOICE:
        return MultipleChoiceQuestion(
            text=row.text,
            options=tuple(choices),
            correct_answer_index=correct,
            id=row.id,
        )
    if row.type == IDENTIFICATION:
        return IdentificationQuestion(text=row.text, correct_answer=correct, id=row.id)
    if row.type == TRUE_OR_FALSE:
        return TrueFalseQuestion(text=row.text, correct_answer=correct, id=row.id)
    raise ValidationError(f"Question {row.id} has unknown type {row.type!r}")


def question_to_record(question: QuizQuestion, quiz_id: int, position: int) -> Question:
    choices = None
    if question.kind == MULTIPLE_CHOICE:
        choices = json.dumps(list(question.options))
        correct = question.correct_answer_index
    else:
        correct = question.correct_answer
    return Question(
        quiz_id=quiz_id,
        position=position,
        type=question.kind,
        text=question.text,
        choices=choices,
        correct_answer=json.dumps(correct),
    )
