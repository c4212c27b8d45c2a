"""
Gemini AI service for comprehension quiz generation and idea classification
"""
import google.generativeai as genai
from intranet.config import settings
import json
import logging
from typing import List, Dict, Any, Optional

from pydantic import ValidationError

from intranet.schemas.mandatory_content import QuizQuestion

logger = logging.getLogger(__name__)

# Configure Gemini API
genai.configure(api_key=settings.GEMINI_API_KEY)

IDEA_CATEGORIES = [
    "Inovação de Processo",
    "Melhoria de Experiência",
    "Sugestão de Comunicação",
    "Proposta Operacional",
    "Sugestão Cultural",
]


class AIServiceError(Exception):
    """The completion API failed or answered something unusable"""


class GeminiService:
    """Service for all Gemini AI operations"""

    def __init__(self):
        self.model = genai.GenerativeModel(settings.GEMINI_MODEL)

    @staticmethod
    def _strip_code_fences(text: str) -> str:
        """Remove markdown code blocks if present"""
        cleaned = text.strip()
        if cleaned.startswith("```json"):
            cleaned = cleaned[7:-3].strip()
        elif cleaned.startswith("```"):
            cleaned = cleaned[3:-3].strip()
        return cleaned

    def generate_quiz(self, content_text: str, num_questions: int = 3) -> List[QuizQuestion]:
        """
        Generate multiple choice comprehension questions for a text

        Args:
            content_text: Mandatory content body
            num_questions: Number of questions to ask for

        Returns:
            Validated questions whose correct_answer is one of the options

        Raises:
            AIServiceError: if the model call fails or no valid question comes back
        """
        prompt = self._create_quiz_prompt(content_text, num_questions)

        try:
            response = self.model.generate_content(prompt)
        except Exception as e:
            logger.error(f"Failed to generate quiz: {str(e)}")
            raise AIServiceError("Erro ao gerar perguntas com IA") from e

        questions = self._parse_quiz_response(response.text)

        if not questions:
            raise AIServiceError("A IA não retornou perguntas válidas")

        if len(questions) != num_questions:
            logger.warning(f"Expected {num_questions} questions, got {len(questions)}")

        logger.info(f"Quiz generated with {len(questions)} questions")
        return questions

    def _create_quiz_prompt(self, content_text: str, num_questions: int) -> str:
        """Create structured prompt for quiz generation"""

        return f"""
Você é um gerador de questões objetivas para avaliação de compreensão de texto.

REGRAS:
- Gere {num_questions} perguntas objetivas com 4 alternativas cada
- Apenas 1 alternativa correta por pergunta
- Foque nos pontos principais e conceitos-chave
- Perguntas claras e diretas
- Evite pegadinhas ou ambiguidades

Retorne APENAS um JSON válido (sem markdown) no formato:
{{
  "questions": [
    {{
      "question": "Texto da pergunta?",
      "options": ["Opção A", "Opção B", "Opção C", "Opção D"],
      "correct_answer": "Opção correta (deve ser uma das options)",
      "explanation": "Por que esta é a resposta correta"
    }}
  ]
}}

Texto:

{content_text}
"""

    def _parse_quiz_response(self, response_text: str) -> List[QuizQuestion]:
        """Parse the model answer, dropping malformed questions"""
        try:
            data = json.loads(self._strip_code_fences(response_text))
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse quiz JSON: {str(e)}")
            logger.error(f"Response text: {response_text[:500]}")
            raise AIServiceError("Resposta da IA em formato inválido") from e

        raw_questions: List[Dict[str, Any]] = data.get("questions", []) if isinstance(data, dict) else data
        if not isinstance(raw_questions, list):
            raise AIServiceError("Resposta da IA em formato inválido")

        questions = []
        for raw in raw_questions:
            try:
                questions.append(QuizQuestion.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Discarding malformed generated question: {str(e)}")

        return questions

    def classify_idea(self, title: str, description: str, category: str) -> Optional[str]:
        """
        Classify an idea into one of IDEA_CATEGORIES

        Returns:
            Category name, or None when the model fails or answers off-list
        """
        prompt = f"""
Você é o GiraBot, IA da rede Cresci e Perdi.
Classifique a ideia abaixo em UMA destas categorias:
{chr(10).join(f'- "{c}"' for c in IDEA_CATEGORIES)}

Retorne APENAS o nome da categoria, nada mais.

Título: {title}
Descrição: {description}
Categoria original: {category}
"""
        try:
            response = self.model.generate_content(prompt)
            classification = response.text.strip().strip('"').strip()
        except Exception as e:
            logger.error(f"Failed to classify idea: {str(e)}")
            return None

        for known in IDEA_CATEGORIES:
            if classification.lower() == known.lower():
                logger.info(f"Idea classified as: {known}")
                return known

        logger.warning(f"Unexpected idea classification: {classification!r}")
        return None


# Global instance
gemini_service = GeminiService()
