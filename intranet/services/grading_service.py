"""
Quiz grading service
Multiple choice only: exact string match against the stored correct answer
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Sequence

from intranet.schemas.mandatory_content import QuizQuestion, QuestionResult, QuizGradingResponse

logger = logging.getLogger(__name__)


class QuizIncompleteError(ValueError):
    """Raised when a submission leaves at least one question unanswered"""

    def __init__(self, missing: List[int]):
        self.missing = missing
        super().__init__(f"Unanswered questions: {missing}")


class GradingService:
    """
    Service for grading comprehension quizzes

    Strategy:
    - Every question must carry an answer before grading starts
    - Correctness is exact string equality with correct_answer
    - Score is correct / total * 100 rounded half-up (2 of 3 -> 67)
    """

    def find_unanswered(self, questions: Sequence[QuizQuestion], answers: Dict[int, str]) -> List[int]:
        """Indexes of questions with no selected option"""
        return [
            index for index in range(len(questions))
            if not answers.get(index)
        ]

    def grade_quiz(
        self,
        questions: Sequence[QuizQuestion],
        answers: Dict[int, str]
    ) -> QuizGradingResponse:
        """
        Grade a complete quiz submission

        Args:
            questions: Ordered quiz questions
            answers: Selected option per question index

        Returns:
            Grading snapshot with per-question results and aggregate score

        Raises:
            QuizIncompleteError: if any question is unanswered
        """
        missing = self.find_unanswered(questions, answers)
        if missing:
            raise QuizIncompleteError(missing)

        results = []
        for index, question in enumerate(questions):
            selected = answers.get(index)
            results.append(QuestionResult(
                index=index,
                selected=selected,
                correct=selected == question.correct_answer,
                explanation=question.explanation
            ))

        correct_count = sum(1 for r in results if r.correct)
        score = self.calculate_score(correct_count, len(results))

        logger.info(f"Quiz graded: {correct_count}/{len(results)} correct, score={score}")

        return QuizGradingResponse(
            results=results,
            correct_count=correct_count,
            total_questions=len(results),
            score=score,
            all_correct=correct_count == len(results)
        )

    @staticmethod
    def calculate_score(correct: int, total: int) -> int:
        """Percentage rounded half-up; an empty quiz scores 100"""
        if total == 0:
            return 100
        percentage = Decimal(correct * 100) / Decimal(total)
        return int(percentage.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    def passed(self, score: int, min_score: Optional[int]) -> bool:
        """Training quizzes pass at or above their minimum score"""
        return score >= (min_score or 0)


# Global instance
grading_service = GradingService()
