import json
import logging
import re
from typing import List, Optional

import openai
from openai import AsyncOpenAI

from vidnotes.core.config import (
    AI_API_KEY,
    AI_BASE_URL,
    AI_MAX_CONTEXT_LENGTH,
    AI_MAX_TEXT_LENGTH,
    AI_MODEL,
)
from vidnotes.models.study import Flashcard, QuizQuestion

logger = logging.getLogger(__name__)

JSON_INSTRUCTION = (
    "Return the response in raw JSON format only. Do not wrap it in markdown "
    "code blocks (like ```json). Just the raw JSON string."
)

EXPLAIN_SYSTEM_PROMPT = (
    "You are an expert educator. Explain concepts clearly and concisely. Use examples "
    "when helpful. Keep explanations focused and under 200 words."
)
SUMMARIZE_SYSTEM_PROMPT = (
    "You are an expert at summarizing content. Create clear, bullet-point summaries "
    "that capture key points."
)
FLASHCARDS_SYSTEM_PROMPT = (
    "You are an expert educator who creates effective study flashcards. "
    "Generate flashcards in JSON format only."
)
QUIZ_SYSTEM_PROMPT = (
    "You are an expert educator who writes fair multiple-choice questions. "
    "Generate quizzes in JSON format only."
)

_FENCE_RE = re.compile(r"```(?:json)?\s*\n?|\n?```")


class AIGatewayError(Exception):
    """The text-generation endpoint failed or could not be reached."""

    status_code = 502


class AIRateLimitError(AIGatewayError):
    status_code = 429


class AICreditsError(AIGatewayError):
    status_code = 402


class AIInputError(ValueError):
    """The request was rejected before reaching the model."""


class ContentParseError(ValueError):
    """Generated content was not the JSON shape we asked for."""


def strip_code_fences(content: str) -> str:
    return _FENCE_RE.sub("", content).strip()


def validate_text(text: Optional[str], context: Optional[str] = None) -> str:
    if text is None or not text.strip():
        raise AIInputError("Text field cannot be empty")
    if len(text) > AI_MAX_TEXT_LENGTH:
        raise AIInputError(f"Text field must be less than {AI_MAX_TEXT_LENGTH} characters")
    if context is not None and len(context) > AI_MAX_CONTEXT_LENGTH:
        raise AIInputError(f"Context field must be less than {AI_MAX_CONTEXT_LENGTH} characters")
    return text.strip()


def _load_array(raw: str) -> list:
    try:
        data = json.loads(strip_code_fences(raw))
    except json.JSONDecodeError as e:
        raise ContentParseError(f"Generated content is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ContentParseError("Generated content is not a JSON array")
    return data


def parse_flashcards(raw: str, note_id: str) -> List[Flashcard]:
    cards = []
    for item in _load_array(raw):
        if not isinstance(item, dict):
            continue
        question = str(item.get("question", "")).strip()
        answer = str(item.get("answer", "")).strip()
        if question and answer:
            cards.append(Flashcard(note_id=note_id, question=question, answer=answer))
    if not cards:
        raise ContentParseError("Generated content contains no usable flashcards")
    return cards


def parse_quiz(raw: str) -> List[QuizQuestion]:
    questions = []
    for index, item in enumerate(_load_array(raw)):
        if not isinstance(item, dict):
            continue
        options = item.get("options")
        answer = item.get("answer")
        if not isinstance(options, list) or len(options) != 4 or answer not in options:
            logger.warning(f"⚠️ Dropping malformed quiz question {index}: {item!r}")
            continue
        questions.append(QuizQuestion(
            question=str(item.get("question", "")),
            options=[str(option) for option in options],
            answer=str(answer),
        ))
    if not questions:
        raise ContentParseError("Generated content contains no usable quiz questions")
    return questions


class AIGateway:
    """Stateless bridge to an OpenAI-compatible chat completions endpoint"""

    def __init__(self, client: Optional[AsyncOpenAI] = None, model: str = AI_MODEL):
        self._client = client
        self.model = model

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not AI_API_KEY:
                raise AIGatewayError("AI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=AI_API_KEY, base_url=AI_BASE_URL)
        return self._client

    async def generate_text(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        logger.info(f"🤖 AI request - model={self.model}, prompt length={len(prompt)}")
        try:
            response = await self.client.chat.completions.create(model=self.model, messages=messages)
        except openai.RateLimitError as e:
            logger.error(f"❌ AI rate limit: {e}")
            raise AIRateLimitError("Rate limit exceeded. Please try again later.") from e
        except openai.APIStatusError as e:
            if e.status_code == 402:
                logger.error(f"❌ AI credits depleted: {e}")
                raise AICreditsError("AI credits depleted. Please add more credits.") from e
            logger.error(f"❌ AI gateway error: {e.status_code} {e}")
            raise AIGatewayError(f"AI gateway error: {e.status_code}") from e
        except openai.APIError as e:
            logger.error(f"❌ AI gateway unreachable: {e}")
            raise AIGatewayError(f"AI gateway error: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise AIGatewayError("AI gateway returned an empty response")
        logger.info(f"🤖 AI response - content length={len(content)}")
        return content

    async def generate_json(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        content = await self.generate_text(f"{prompt}\n\n{JSON_INSTRUCTION}", system_prompt)
        return strip_code_fences(content)

    async def explain(self, text: str, context: Optional[str] = None) -> str:
        text = validate_text(text, context)
        if context and context.strip():
            prompt = f'Explain this text in simple terms:\n\n"{text}"\n\nContext from the video notes: {context.strip()}'
        else:
            prompt = f'Explain this text in simple terms:\n\n"{text}"'
        return await self.generate_text(prompt, EXPLAIN_SYSTEM_PROMPT)

    async def summarize(self, text: str) -> str:
        text = validate_text(text)
        return await self.generate_text(
            f"Summarize the following notes into key bullet points:\n\n{text}",
            SUMMARIZE_SYSTEM_PROMPT,
        )

    async def flashcards(self, text: str) -> str:
        text = validate_text(text)
        return await self.generate_json(
            "Based on these notes, generate 5-8 flashcards for studying. Return ONLY a JSON array "
            f'with objects containing "question" and "answer" fields. No other text.\n\nNotes:\n{text}',
            FLASHCARDS_SYSTEM_PROMPT,
        )

    async def quiz(self, text: str) -> str:
        text = validate_text(text)
        return await self.generate_json(
            "Based on these notes, generate 5 multiple-choice questions. Return ONLY a JSON array "
            'with objects containing "question", "options" (exactly 4 strings) and "answer" '
            f"(the correct option, copied exactly). No other text.\n\nNotes:\n{text}",
            QUIZ_SYSTEM_PROMPT,
        )
