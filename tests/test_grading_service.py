import pytest

from intranet.schemas.mandatory_content import QuizDefinition
from intranet.services.grading_service import GradingService, QuizIncompleteError
from tests.utils import QUIZ, CORRECT_ANSWERS


@pytest.fixture()
def questions():
    return QuizDefinition.model_validate(QUIZ).questions


def test_two_of_three_rounds_half_up_to_67(questions):
    answers = {**CORRECT_ANSWERS, 2: "E-mail pessoal"}
    result = GradingService().grade_quiz(questions, answers)

    assert result.correct_count == 2
    assert result.total_questions == 3
    assert result.score == 67
    assert result.all_correct is False
    assert [r.correct for r in result.results] == [True, True, False]


def test_all_correct(questions):
    result = GradingService().grade_quiz(questions, CORRECT_ANSWERS)
    assert result.score == 100
    assert result.all_correct is True


def test_missing_answer_raises_before_grading(questions):
    with pytest.raises(QuizIncompleteError) as exc:
        GradingService().grade_quiz(questions, {0: "30 dias", 2: "Intranet"})
    assert exc.value.missing == [1]


def test_answer_match_is_exact(questions):
    answers = {**CORRECT_ANSWERS, 0: "30 Dias"}
    result = GradingService().grade_quiz(questions, answers)
    assert result.results[0].correct is False
    assert result.results[0].explanation == "A política de troca é de 30 dias."


@pytest.mark.parametrize(
    "correct,total,expected",
    [(1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (0, 4, 0), (0, 0, 100)],
)
def test_calculate_score(correct, total, expected):
    assert GradingService.calculate_score(correct, total) == expected


def test_passed_uses_minimum_score():
    service = GradingService()
    assert service.passed(70, 70) is True
    assert service.passed(69, 70) is False
    assert service.passed(0, None) is True
