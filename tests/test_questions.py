import pytest

from lms.errors import ValidationError
from lms.questions import (
    BooleanAnswer,
    ChoiceAnswer,
    IdentificationQuestion,
    MultipleChoiceQuestion,
    TextAnswer,
    TrueFalseQuestion,
    decode_answer,
    encode_answer,
    is_correct,
    question_from_dict,
    question_from_record,
    question_to_record,
)

MCQ = MultipleChoiceQuestion(text='Pick', options=('a', 'b', 'c'), correct_answer_index=2, id=1)
IDENT = IdentificationQuestion(text='Capital of France', correct_answer='Paris', id=2)
TF = TrueFalseQuestion(text='Sky is blue', correct_answer=True, id=3)


def test_multiple_choice_matches_index_only():
    assert is_correct(MCQ, ChoiceAnswer(2))
    assert not is_correct(MCQ, ChoiceAnswer(1))
    # a bool smuggled in as an index is never a choice
    assert not is_correct(MCQ, ChoiceAnswer(True))


@pytest.mark.parametrize('given', ['Paris', ' paris ', 'PARIS'])
def test_identification_ignores_case_and_outer_whitespace(given):
    assert is_correct(IDENT, TextAnswer(given))


def test_identification_has_no_fuzzy_matching():
    assert not is_correct(IDENT, TextAnswer('Pariss'))
    assert not is_correct(IDENT, TextAnswer('Pa ris'))


def test_true_false():
    assert is_correct(TF, BooleanAnswer(True))
    assert not is_correct(TF, BooleanAnswer(False))


def test_answer_of_another_kind_is_incorrect():
    assert not is_correct(MCQ, TextAnswer('2'))
    assert not is_correct(TF, ChoiceAnswer(1))
    assert not is_correct(IDENT, None)


def test_decode_answer_bare_scalars():
    assert decode_answer(True) == BooleanAnswer(True)
    assert decode_answer(1) == ChoiceAnswer(1)
    assert decode_answer('x') == TextAnswer('x')
    assert decode_answer(None) is None
    assert decode_answer([1]) is None
    assert decode_answer(1.5) is None


def test_decode_answer_tagged_dict_checks_payload_type():
    assert decode_answer({'kind': 'multiple-choice', 'value': 0}) == ChoiceAnswer(0)
    assert decode_answer({'kind': 'multiple-choice', 'value': '0'}) is None
    assert decode_answer({'kind': 'true-or-false', 'value': 1}) is None
    assert decode_answer({'kind': 'essay', 'value': 'x'}) is None
    assert decode_answer({'kind': 'identification'}) is None


def test_encode_answer_is_decodable():
    encoded = encode_answer(TextAnswer('hash'))
    assert encoded == {'kind': 'identification', 'value': 'hash'}
    assert decode_answer(encoded) == TextAnswer('hash')
    assert encode_answer(None) is None


def test_question_from_dict_rejects_bad_input():
    with pytest.raises(ValidationError):
        question_from_dict({'type': 'essay', 'text': 'x'})
    with pytest.raises(ValidationError):
        question_from_dict({'type': 'multiple-choice', 'text': 'x', 'choices': ['a', 'b'], 'correct_answer': 2})
    with pytest.raises(ValidationError):
        question_from_dict({'type': 'true-or-false', 'text': 'x', 'correct_answer': 'yes'})
    with pytest.raises(ValueError):
        question_from_dict({'type': 'identification', 'text': ' ', 'correct_answer': 'x'})


def test_question_record_keeps_shape():
    q = question_from_dict({'type': 'multiple-choice', 'text': 'Pick', 'choices': ['a', 'b', 'c'], 'correct_answer': 2})
    row = question_to_record(q, quiz_id=7, position=0)
    row.id = 42
    back = question_from_record(row)
    assert back == q
    assert back.id == 42
    assert back.kind == 'multiple-choice'
