"""Comprehension questions: generation via an LLM and placement in the text."""

from __future__ import annotations

import json
import logging
import random
import re
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .pacing.itemize import Item
from .playback import Question, QuizItem

__all__ = [
    "QUESTION_PROMPT",
    "QuestionFormatError",
    "distribute_questions",
    "find_sentence_ends",
    "generate_questions",
    "parse_questions",
]

LOGGER = logging.getLogger(__name__)

QUESTION_PROMPT = """You are a reading comprehension assistant. Given the following text, generate exactly {count} multiple-choice questions to test the reader's comprehension.

For each question:
- Create a clear question about the content
- Provide 2-4 answer choices (labeled A, B, C, D)
- Indicate the correct answer
- Write the question and choices in the SAME LANGUAGE as the text
- IMPORTANT: Generate questions in SEQUENTIAL ORDER following the text flow. Question 1 should be about content near the beginning, question 2 about content that comes after, and so on. Each question should only reference content that appears BEFORE it in the text.

IMPORTANT: Output ONLY valid JSON in this exact format, no other text:
{{
  "questions": [
    {{
      "question": "What is the main topic?",
      "choices": ["Choice A", "Choice B", "Choice C"],
      "correct": 0
    }}
  ]
}}

The "correct" field is the 0-based index of the correct answer in the choices array.

TEXT:
{text}"""

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.S)

Complete = Callable[[str], Awaitable[str]]


class QuestionFormatError(ValueError):
    """Raised when an LLM reply does not contain a usable question list."""


def parse_questions(reply: str) -> List[Question]:
    """Parse the JSON question list from *reply*, tolerating code fences."""

    match = _FENCE_RE.search(reply)
    payload = match.group(1) if match else reply
    try:
        data: Any = json.loads(payload.strip())
    except json.JSONDecodeError as exc:
        raise QuestionFormatError(f"Failed to parse LLM response: {exc}") from exc
    raw_questions = data.get("questions") if isinstance(data, dict) else None
    if not isinstance(raw_questions, list):
        raise QuestionFormatError("Invalid response format: missing questions array")

    questions: List[Question] = []
    for position, raw in enumerate(raw_questions, start=1):
        if not isinstance(raw, dict):
            raise QuestionFormatError(f"Question {position} is not an object")
        prompt = raw.get("question")
        choices = raw.get("choices")
        correct = raw.get("correct")
        if not prompt or not isinstance(choices, list) or not choices:
            raise QuestionFormatError(f"Question {position} is missing its text or choices")
        if isinstance(correct, bool) or not isinstance(correct, int):
            raise QuestionFormatError(f"Question {position} has no numeric correct index")
        if not 0 <= correct < len(choices):
            raise QuestionFormatError(f"Question {position} has an out-of-range correct index")
        questions.append(Question(prompt=str(prompt), choices=tuple(str(c) for c in choices), correct_index=correct))
    return questions


async def generate_questions(text: str, complete: Complete, count: int = 10) -> List[Question]:
    """Ask *complete* for *count* questions about *text*."""

    if count < 1:
        raise ValueError(f"count must be at least 1 (got {count})")
    prompt = QUESTION_PROMPT.format(count=count, text=text)
    reply = await complete(prompt)
    questions = parse_questions(reply)
    LOGGER.info("Generated %d comprehension questions", len(questions))
    return questions


def find_sentence_ends(items: Sequence[Item]) -> List[int]:
    return [index for index, item in enumerate(items) if item.text.endswith((".", "!", "?"))]


def distribute_questions(
    items: Sequence[Item],
    questions: Sequence[Question],
    *,
    frequency: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[QuizItem]:
    """Place questions on sentence-ending items, in text order.

    Without *frequency* the questions are spread evenly over the sentence ends.
    With it, a question is placed on the first sentence end at least
    *frequency* items after the previous one; leftovers go to random unused
    sentence ends.
    """

    if not items or not questions:
        return []
    sentence_ends = find_sentence_ends(items)
    if not sentence_ends:
        return [QuizItem(word_index=len(items) - 1, question=question) for question in questions]

    placed: List[QuizItem] = []
    if frequency:
        rng = rng or random.Random()
        next_at = frequency
        remaining = list(questions)
        for position in sentence_ends:
            if not remaining:
                break
            if position >= next_at:
                placed.append(QuizItem(word_index=position, question=remaining.pop(0)))
                next_at = position + frequency
        used = {entry.word_index for entry in placed}
        free = [position for position in sentence_ends if position not in used]
        while remaining and free:
            position = free.pop(rng.randrange(len(free)))
            placed.append(QuizItem(word_index=position, question=remaining.pop(0)))
        if remaining:
            LOGGER.warning("Dropped %d questions: not enough sentence ends", len(remaining))
    else:
        interval = len(sentence_ends) // (len(questions) + 1)
        for number, question in enumerate(questions, start=1):
            index = min(number * interval, len(sentence_ends) - 1)
            placed.append(QuizItem(word_index=sentence_ends[index], question=question))

    placed.sort(key=lambda entry: entry.word_index)
    return placed
