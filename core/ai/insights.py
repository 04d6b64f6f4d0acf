"""Behavioral finance insights generated by the OpenAI chat API."""

from __future__ import annotations

import json
import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Iterable, Mapping

from openai import APIError, AuthenticationError, OpenAI
from pydantic import BaseModel, ValidationError

from config import get_settings
from core.formatting import CURRENCY_SYMBOL
from core.models import Transaction, coerce_transactions
from prompts import get_prompt_text, render_prompt

logger = logging.getLogger(__name__)

PROMPT_SYSTEM = "insights_system"
PROMPT_USER = "insights"
EXPECTED_INSIGHTS = 4
MAX_OUTPUT_TOKENS = 1000
TEMPERATURE = 0.7

__all__ = [
    "Insight",
    "InsightBatch",
    "InsightError",
    "InsightErrorKind",
    "InsightRequest",
    "build_insight_request",
    "generate_insights",
    "parse_insights",
]


class Insight(BaseModel):
    title: str
    finding: str
    impact: str
    tip: str


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO timestamp, assuming UTC when no offset is present."""

    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO timestamp, got {value!r}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True, slots=True)
class InsightBatch:
    insights: list[Insight]
    generated_at: datetime

    def to_payload(self) -> dict[str, Any]:
        return {
            "insights": [insight.model_dump() for insight in self.insights],
            "generated_at": self.generated_at.isoformat(),
        }

    @classmethod
    def from_payload(cls, data: Any) -> "InsightBatch":
        if not isinstance(data, Mapping) or "insights" not in data:
            raise ValueError("Malformed insight payload")
        raw_insights = data["insights"]
        if not isinstance(raw_insights, list):
            raise ValueError("Insight payload must hold a list")
        return cls(
            insights=[Insight.model_validate(item) for item in raw_insights],
            generated_at=parse_timestamp(data.get("generated_at")),
        )


class InsightErrorKind(str, Enum):
    NO_TRANSACTIONS = "no_transactions"
    INVALID_API_KEY = "invalid_api_key"
    QUOTA_EXCEEDED = "quota_exceeded"
    PARSE_FAILED = "parse_failed"
    WRONG_COUNT = "wrong_count"
    API_ERROR = "api_error"


_STATUS_CODES: dict[InsightErrorKind, int] = {
    InsightErrorKind.NO_TRANSACTIONS: 400,
    InsightErrorKind.INVALID_API_KEY: 401,
    InsightErrorKind.QUOTA_EXCEEDED: 402,
    InsightErrorKind.PARSE_FAILED: 502,
    InsightErrorKind.WRONG_COUNT: 502,
    InsightErrorKind.API_ERROR: 500,
}


class InsightError(RuntimeError):
    """Raised when insights cannot be generated; ``kind`` says why."""

    def __init__(self, kind: InsightErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = _STATUS_CODES[kind]


@dataclass(frozen=True, slots=True)
class InsightRequest:
    transaction_lines: list[str]
    total_spent: float
    category_totals: dict[str, float]
    model: str

    def user_prompt(self) -> str:
        return render_prompt(
            PROMPT_USER,
            transactions="\n".join(self.transaction_lines),
            total_spent=_format_amount(self.total_spent),
            category_totals=json.dumps(self.category_totals, ensure_ascii=False),
        )


def _format_amount(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def build_insight_request(
    transactions: Iterable[Transaction | Mapping[str, Any]] | None,
    *,
    model: str | None = None,
) -> InsightRequest:
    txns = coerce_transactions(transactions)
    if not txns:
        raise InsightError(InsightErrorKind.NO_TRANSACTIONS, "No transactions provided")

    lines = [
        f"{txn.date.isoformat()}: {txn.merchant} - {CURRENCY_SYMBOL}{_format_amount(txn.amount)} "
        f"({txn.category or 'Other'})"
        for txn in txns
    ]

    categories: dict[str, float] = defaultdict(float)
    for txn in txns:
        categories[txn.category or "Other"] += txn.amount

    return InsightRequest(
        transaction_lines=lines,
        total_spent=float(sum(txn.amount for txn in txns)),
        category_totals={name: round(total, 2) for name, total in categories.items()},
        model=model or get_settings().openai_model,
    )


def _resolve_openai_client() -> OpenAI:
    settings = get_settings()
    if not settings.openai_api_key:
        raise InsightError(
            InsightErrorKind.INVALID_API_KEY,
            "Missing OpenAI API key. Set OPENAI_API_KEY or add it to .streamlit/secrets.toml under [openai].",
        )
    return OpenAI(**settings.openai_client_kwargs)


_CODE_FENCE_OPEN = re.compile(r"```json\n?")
_CODE_FENCE_CLOSE = re.compile(r"```\n?")


def parse_insights(content: str) -> list[Insight]:
    """Parse the model output into exactly four insights."""

    cleaned = _CODE_FENCE_CLOSE.sub("", _CODE_FENCE_OPEN.sub("", content or "")).strip()
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Failed to parse OpenAI response", extra={"content": content})
        raise InsightError(InsightErrorKind.PARSE_FAILED, "Failed to parse AI response") from exc

    if not isinstance(payload, list) or len(payload) != EXPECTED_INSIGHTS:
        raise InsightError(InsightErrorKind.WRONG_COUNT, f"AI did not return exactly {EXPECTED_INSIGHTS} insights")

    try:
        return [Insight.model_validate(item) for item in payload]
    except ValidationError as exc:
        raise InsightError(InsightErrorKind.PARSE_FAILED, f"AI returned malformed insights: {exc}") from exc


def _classify_api_error(exc: APIError) -> InsightError:
    code = getattr(exc, "code", None)
    if code == "insufficient_quota":
        return InsightError(
            InsightErrorKind.QUOTA_EXCEEDED, "OpenAI API quota exceeded. Please check your billing."
        )
    if code == "invalid_api_key" or isinstance(exc, AuthenticationError):
        return InsightError(
            InsightErrorKind.INVALID_API_KEY,
            "Invalid OpenAI API key. Please check your environment variables.",
        )
    return InsightError(InsightErrorKind.API_ERROR, f"OpenAI API error: {exc}")


def generate_insights(
    transactions: Iterable[Transaction | Mapping[str, Any]] | None,
    *,
    client_factory: Callable[[], OpenAI] | None = None,
    model: str | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> InsightBatch:
    """Ask the model for four behavioral finance insights about ``transactions``.

    Raises
    ------
    InsightError
        With a kind describing the failure: no input, credential or quota
        problems, other API errors, or output that is not exactly four
        well-formed insights.
    """

    request = build_insight_request(transactions, model=model)
    client = (client_factory or _resolve_openai_client)()

    try:
        response = client.chat.completions.create(
            model=request.model,
            messages=[
                {"role": "system", "content": get_prompt_text(PROMPT_SYSTEM)},
                {"role": "user", "content": request.user_prompt()},
            ],
            temperature=TEMPERATURE,
            max_tokens=MAX_OUTPUT_TOKENS,
        )
    except APIError as exc:
        error = _classify_api_error(exc)
        logger.error("Error generating insights", extra={"kind": error.kind.value, "error": str(exc)})
        raise error from exc

    try:
        content = response.choices[0].message.content or ""
    except (AttributeError, IndexError) as exc:  # pragma: no cover - unexpected SDK output
        raise InsightError(InsightErrorKind.PARSE_FAILED, "Unexpected response format from OpenAI API") from exc

    insights = parse_insights(content)
    batch = InsightBatch(insights=insights, generated_at=clock())
    logger.info("Generated behavioral insights", extra={"count": len(insights), "model": request.model})
    return batch
