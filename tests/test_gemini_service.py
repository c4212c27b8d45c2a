import json

import pytest

from intranet.services.gemini_service import AIServiceError, GeminiService, IDEA_CATEGORIES


class StubModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return type("Response", (), {"text": self.text})()


def service_with(model):
    service = GeminiService()
    service.model = model
    return service


def test_generate_quiz_parses_fenced_json_and_drops_invalid_questions():
    payload = {
        "questions": [
            {"question": "Q1?", "options": ["A", "B"], "correct_answer": "A", "explanation": "porque"},
            {"question": "Q2?", "options": ["A", "B"], "correct_answer": "C"},
        ]
    }
    model = StubModel(text=f"```json\n{json.dumps(payload)}\n```")

    questions = service_with(model).generate_quiz("Texto base", num_questions=2)

    assert len(questions) == 1
    assert questions[0].correct_answer == "A"
    assert "Texto base" in model.prompts[0]


def test_generate_quiz_invalid_json_raises():
    with pytest.raises(AIServiceError):
        service_with(StubModel(text="not json")).generate_quiz("Texto")


def test_generate_quiz_model_failure_raises():
    with pytest.raises(AIServiceError):
        service_with(StubModel(error=RuntimeError("quota"))).generate_quiz("Texto")


def test_classify_idea_matches_known_category_case_insensitively():
    model = StubModel(text='"inovação de processo"\n')
    assert service_with(model).classify_idea("Título", "Descrição", "processo") == IDEA_CATEGORIES[0]


def test_classify_idea_off_list_or_failure_is_none():
    assert service_with(StubModel(text="Outra coisa")).classify_idea("t", "d", "c") is None
    assert service_with(StubModel(error=RuntimeError("down"))).classify_idea("t", "d", "c") is None
