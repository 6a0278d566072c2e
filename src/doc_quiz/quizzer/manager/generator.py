import re
import json
import random
import logging

from typing import Optional, List, Sequence, Tuple, Dict, Any

from openai import OpenAIError

from ...core.ai import load_client
from ..models import REQUIRED_FIELDS, QuizQuestion, question_from_record

logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Raised when the generation service cannot produce a batch."""


class ParseError(ProviderError):
    """Raised when the service answered with unusable structured output."""


def _build_batch_prompts(
    content: str,
    existing_titles: Sequence[str],
    *,
    is_image: bool,
    batch_size: int,
    exclusion_window: int,
    language: str,
    seed: int,
) -> Tuple[str, str]:
    sys_prompt = (
        "You extract multiple-choice study questions from source material "
        "and answer with JSON only."
    )
    recent = list(existing_titles)[-exclusion_window:] if exclusion_window else []
    if existing_titles:
        avoidance = (
            f"IMPORTANT: {len(existing_titles)} questions were already "
            f"extracted. Do NOT repeat any of these: [{', '.join(recent)}]. "
            "Find completely NEW questions."
        )
    else:
        avoidance = f"Extract {batch_size} questions from the material."
    schema_line = (
        '{"questions": [{"question": str, "options": [str, str, str, str], '
        '"correct_answers": [str], "explanation": str, '
        '"original_index": str}]}'
    )
    rules = (
        f"1. {avoidance}\n"
        "2. SELECTION: pick questions at random from the whole material "
        "(jump between beginning, middle and end); do not go in order.\n"
        f"3. RANDOMNESS: use this hint to vary the selection: {seed}.\n"
        "4. FORMAT: for every question give the question text, exactly 4 "
        "options, ALL correct answers copied verbatim from the options "
        "(several may be correct), a short explanation and the original "
        "label or number from the source (e.g. '1' or 'Q15').\n"
        f"5. AMOUNT: always try to return exactly {batch_size} unique "
        "questions if the material allows it.\n"
        f"6. LANGUAGE: write every generated text in {language}."
    )
    source = (
        "The material is the attached image."
        if is_image
        else f"Source text:\n\n{content}"
    )
    user_prompt = f"{rules}\n\nJSON schema:\n{schema_line}\n\n{source}"
    return sys_prompt, user_prompt


def _build_messages(
    sys_prompt: str,
    user_prompt: str,
    *,
    image_b64: Optional[str] = None,
    mime_type: str = "image/jpeg",
) -> List[Dict[str, Any]]:
    if image_b64 is None:
        user: Any = user_prompt
    else:
        user = [
            {"type": "text", "text": user_prompt},
            {
                "type": "image_url",
                "image_url": {"url": f"data:{mime_type};base64,{image_b64}"},
            },
        ]
    return [
        {"role": "system", "content": sys_prompt},
        {"role": "user", "content": user},
    ]


def _chat_completion_content(
    client: object,
    *,
    model: str,
    messages: List[Dict[str, Any]],
    temperature: float,
    max_tokens: int,
) -> str:
    try:
        resp = client.chat.completions.create(  # type: ignore[attr-defined]
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            response_format={"type": "json_object"},
        )
    except OpenAIError as exc:
        raise ProviderError(f"Question service request failed: {exc}") from exc
    raw_content = resp.choices[0].message.content  # type: ignore[index]
    content = (raw_content or "").strip()
    if not content:
        raise ProviderError("The question service returned no content.")
    return content


def _extract_json_array(content: str) -> List[Any]:
    fenced = re.search(r"```(?:json)?\s*(.+?)```", content, re.DOTALL)
    payload = fenced.group(1) if fenced else content
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as exc:
        raise ParseError(
            "Could not process the quiz data. Please try again."
        ) from exc
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise ParseError("Quiz data is not a list of questions.")
    return data


def _build_questions(records: List[Any]) -> List[QuizQuestion]:
    """Convert decoded records, rejecting the batch on schema breaks.

    A record that is not an object or lacks one of the required fields
    invalidates the whole payload. A record that has every field but breaks
    the option contract is dropped on its own.
    """
    questions: List[QuizQuestion] = []
    for idx, rec in enumerate(records):
        if not isinstance(rec, dict):
            raise ParseError(f"Question #{idx} is not an object.")
        missing = [name for name in REQUIRED_FIELDS if name not in rec]
        if missing:
            raise ParseError(
                f"Question #{idx} is missing: {', '.join(missing)}."
            )
        try:
            questions.append(question_from_record(rec))
        except ValueError as exc:
            logger.warning(
                "Dropped malformed question",
                extra={"position": idx, "reason": str(exc)},
            )
    return questions


class OpenAIQuestionProvider:
    """Question provider backed by OpenAI chat completions.

    The client is created on first use so a missing key surfaces as
    :class:`~doc_quiz.core.ai.CredentialError` right before the first
    request, never as a transport failure.
    """

    def __init__(
        self,
        *,
        client: object = None,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        max_tokens: int = 6000,
        api_base: Optional[str] = None,
        request_timeout: Optional[float] = None,
        batch_size: int = 15,
        exclusion_window: int = 30,
        language: str = "English",
        rng: Optional[random.Random] = None,
    ) -> None:
        self._client = client
        self._api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.api_base = api_base
        self.request_timeout = request_timeout
        self.batch_size = batch_size
        self.exclusion_window = exclusion_window
        self.language = language
        self._rng = rng or random.Random()

    @property
    def client(self) -> object:
        if self._client is None:
            self._client = load_client(
                self._api_key,
                base_url=self.api_base,
                timeout=self.request_timeout,
            )
        return self._client

    def generate_batch(
        self,
        content: str,
        existing_titles: Sequence[str],
        is_image: bool = False,
        *,
        mime_type: Optional[str] = None,
    ) -> List[QuizQuestion]:
        """Request one batch of questions about ``content``.

        ``existing_titles`` is only a hint for the model; callers still
        have to filter duplicates themselves.
        """
        client = self.client
        sys_prompt, user_prompt = _build_batch_prompts(
            content,
            existing_titles,
            is_image=is_image,
            batch_size=self.batch_size,
            exclusion_window=self.exclusion_window,
            language=self.language,
            seed=self._rng.randrange(1_000_000),
        )
        messages = _build_messages(
            sys_prompt,
            user_prompt,
            image_b64=content if is_image else None,
            mime_type=mime_type or "image/jpeg",
        )
        raw = _chat_completion_content(
            client,
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        try:
            questions = _build_questions(_extract_json_array(raw))
        except ParseError:
            logger.error(
                "Unparseable question payload",
                extra={"preview": raw[:200]},
            )
            raise
        logger.debug(
            "Generated question batch",
            extra={"received": len(questions), "is_image": is_image},
        )
        return questions
