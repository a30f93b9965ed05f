"""
Extraction strategies, tried in order by the engine.

Manifesto:
    Each tier is cheaper and more trusted than the next. Local rules cost
    nothing and quote the source verbatim; a model call costs quota and can
    hallucinate; merging provider insights is the last resort. Confidence
    reflects that ordering and never increases down the list:

    ======================  ===========================================
    LocalPatternStrategy    0.8 (primary source) / 0.6 (fallback)
    ModelAssistedStrategy   max(0.3, 0.9 - 0.1 * missing), <= 0.6 when
                            anything is missing
    InsightMergeStrategy    0.5
    ======================  ===========================================

    No tier may invent a required number: a point that is not literally
    supported by the source data is reported as missing.

Tags:
    extraction, strategies, llm, grounding, tilehub

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from tilehub.core.errors import ExtractionError, describe_error
from tilehub.core.logging import get_logger
from tilehub.core.models import MetricValue, SourceResponse
from tilehub.execution.serializer import RequestSerializer
from tilehub.extraction.requirements import ExtractionRequirements
from tilehub.llm.protocol import LLMProvider, Message

logger = get_logger(__name__)

PRIMARY_LOCAL_CONFIDENCE = 0.8
FALLBACK_LOCAL_CONFIDENCE = 0.6
INSIGHT_CONFIDENCE = 0.5
MODEL_BASE_CONFIDENCE = 0.9
MODEL_MISSING_PENALTY = 0.1
MODEL_MIN_CONFIDENCE = 0.3


@dataclass
class ExtractionResult:
    """Outcome of extraction for one tile.

    Attributes:
        data: Extracted metrics, or ``None`` when nothing was recovered
        confidence: 0..1 trust in ``data``
        missing_data_points: Required points not found in ``data``
        source_response_ids: Ids of the responses ``data`` came from
        from_cache: True when no outbound call was needed to extract
        method: Which tier produced the result
        insights: Human-readable notes (dropped values, failures)
    """

    data: dict[str, MetricValue] | None
    confidence: float
    missing_data_points: list[str]
    source_response_ids: list[str] = field(default_factory=list)
    from_cache: bool = False
    method: str = "none"
    insights: list[str] = field(default_factory=list)

    @classmethod
    def nothing(cls, requirements: ExtractionRequirements, notes: list[str] | None = None) -> ExtractionResult:
        return cls(
            data=None,
            confidence=0.0,
            missing_data_points=list(requirements.required_data_points),
            insights=list(notes or []),
        )


class ExtractionStrategy(Protocol):
    name: str

    async def extract(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> ExtractionResult | None: ...


# ------------------------------------------------------------------ #
# Missing-point detection
# ------------------------------------------------------------------ #

_SEPARATORS_RE = re.compile(r"[_\-]+")


def _normalize_name(text: str) -> str:
    return _SEPARATORS_RE.sub(" ", text.lower())


def identify_missing_points(
    data: dict[str, MetricValue] | None, required_points: Sequence[str]
) -> list[str]:
    """Required points whose normalized name does not appear in the serialized data."""
    if not data:
        return list(required_points)
    serialized = _normalize_name(
        json.dumps({name: metric.to_dict() for name, metric in data.items()}, default=str)
    )
    return [point for point in required_points if _normalize_name(point) not in serialized]


def _by_source(responses: Sequence[SourceResponse], source: str) -> list[SourceResponse]:
    return [r for r in responses if r.source == source and r.usable]


# ------------------------------------------------------------------ #
# Tier 1: local patterns
# ------------------------------------------------------------------ #


class LocalPatternStrategy:
    """Run the tile's local extractor over primary, then fallback, responses."""

    name = "local"

    async def extract(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> ExtractionResult | None:
        extractor = requirements.local_extractor
        if extractor is None:
            return None

        tiers = (
            (requirements.primary_sources, PRIMARY_LOCAL_CONFIDENCE, "local_primary"),
            (requirements.fallback_sources, FALLBACK_LOCAL_CONFIDENCE, "local_fallback"),
        )
        for sources, confidence, method in tiers:
            for source in sources:
                for response in _by_source(responses, source):
                    data = extractor(response)
                    if data:
                        return ExtractionResult(
                            data=data,
                            confidence=confidence,
                            missing_data_points=identify_missing_points(
                                data, requirements.required_data_points
                            ),
                            source_response_ids=[response.id],
                            from_cache=True,
                            method=method,
                        )
        return None


# ------------------------------------------------------------------ #
# Tier 2: model-assisted
# ------------------------------------------------------------------ #

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_DIGITS_RE = re.compile(r"\d+(?:[.,]\d+)*")
_SCALED_RE = re.compile(r"(\d+(?:[.,]\d+)*)\s*(thousand|million|billion|trillion)\b", re.IGNORECASE)
_SCALES = {"thousand": 1e3, "million": 1e6, "billion": 1e9, "trillion": 1e12}
_EMPTY_VALUES = {"", "unknown", "n/a", "na", "none", "null", "not available", "not found"}
_META_KEYS = {"confidence", "sources_used", "sources"}

_SYSTEM_PROMPT = (
    "You are a data extraction specialist. Extract only facts that appear in the "
    "provided data. Use null for anything the data does not state. Never estimate. "
    "Respond with a single JSON object."
)


def parse_model_json(content: str) -> dict[str, Any]:
    """Recover the JSON object from a model response.

    Strips code fences, falls back to the outermost ``{...}`` span, and
    unwraps a nested ``extraction`` object.

    Raises:
        ExtractionError: No JSON object could be recovered.
    """
    text = _FENCE_RE.sub("", content or "").strip()
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise ExtractionError("model response contains no JSON object") from None
        try:
            parsed = json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise ExtractionError("model response JSON is malformed", cause=e) from e

    if not isinstance(parsed, dict):
        raise ExtractionError("model response is not a JSON object")
    nested = parsed.get("extraction")
    if isinstance(nested, dict):
        return nested
    return parsed


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip().lower() in _EMPTY_VALUES
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def _digit_tokens(value: Any) -> list[str]:
    if isinstance(value, bool):
        return []
    if isinstance(value, (int, float)):
        number = float(value)
        if number.is_integer():
            return [str(int(number))]
        return [format(number, "f").rstrip("0").rstrip(".")]
    if isinstance(value, str):
        return [token.replace(",", "") for token in _DIGITS_RE.findall(value)]
    if isinstance(value, list):
        return [token for item in value for token in _digit_tokens(item)]
    if isinstance(value, dict):
        return [token for item in value.values() for token in _digit_tokens(item)]
    return []


def _as_number(token: str) -> float | None:
    try:
        return float(token.replace(",", ""))
    except ValueError:
        return None


def _corpus_numbers(corpus: str) -> set[float]:
    numbers = {_as_number(token) for token in _digit_tokens(corpus)}
    for digits, scale in _SCALED_RE.findall(corpus):
        base = _as_number(digits)
        if base is not None:
            numbers.add(round(base * _SCALES[scale.lower()], 2))
    numbers.discard(None)
    return numbers


def is_grounded(value: Any, corpus: str) -> bool:
    """True when every number in ``value`` is a whole number token of ``corpus``.

    ``12`` is not grounded by ``2012``. A corpus "4.2 billion" also grounds
    ``4200000000``.
    """
    tokens = _digit_tokens(value)
    if not tokens:
        return True
    known = _corpus_numbers(corpus)
    return all(_as_number(token) in known for token in tokens)


def _to_metric(raw: Any) -> MetricValue:
    if isinstance(raw, dict) and "value" in raw:
        confidence = raw.get("confidence")
        return MetricValue(
            value=raw.get("value"),
            unit=raw.get("unit"),
            explanation=raw.get("explanation") or raw.get("source"),
            confidence=float(confidence) if isinstance(confidence, (int, float)) else None,
        )
    return MetricValue(value=raw)


class ModelAssistedStrategy:
    """Ask an LLM to extract required points from bounded response summaries.

    Args:
        provider: LLM backend.
        serializer: Optional request serializer the model call is queued on.
        max_responses: Maximum responses summarized into the prompt.
        summary_chars: Truncation length of each summary.
        model: Model id (provider default when ``None``).
        max_tokens: Completion budget.
    """

    name = "model"

    def __init__(
        self,
        provider: LLMProvider,
        *,
        serializer: RequestSerializer | None = None,
        max_responses: int = 5,
        summary_chars: int = 2000,
        model: str | None = None,
        max_tokens: int = 2000,
    ):
        self.provider = provider
        self.serializer = serializer
        self.max_responses = max_responses
        self.summary_chars = summary_chars
        self.model = model
        self.max_tokens = max_tokens

    def _select(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> list[SourceResponse]:
        selected: list[SourceResponse] = []
        for source in requirements.all_sources:
            selected.extend(_by_source(responses, source))
        return selected[: self.max_responses]

    def build_messages(
        self, requirements: ExtractionRequirements, summaries: list[dict[str, str]]
    ) -> list[Message]:
        prompt = (
            f'Extract information for the "{requirements.tile.value}" tile.\n\n'
            f"Requirements:\n{requirements.instruction}\n\n"
            f"Data points needed (use exactly these keys):\n"
            f"{', '.join(requirements.required_data_points)}\n\n"
            f"Available data:\n{json.dumps(summaries, indent=2)}\n\n"
            'Format: {"extraction": {"<data_point>": {"value": ..., "unit": ..., '
            '"confidence": 0-1}}, "sources_used": [...]}'
        )
        return [Message.system(_SYSTEM_PROMPT), Message.user(prompt)]

    async def _complete(self, messages: list[Message]) -> str:
        call_kwargs = {"temperature": 0.1, "max_tokens": self.max_tokens, "json_mode": True}
        if self.serializer is not None:
            response = await self.serializer.submit(
                self.provider.complete, messages, self.model, **call_kwargs
            )
        else:
            response = await self.provider.complete(messages, self.model, **call_kwargs)
        if response.truncated:
            logger.warning(
                "model_response_truncated",
                model=response.model,
                completion_tokens=response.usage.completion_tokens,
            )
        return response.content

    async def extract(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> ExtractionResult | None:
        selected = self._select(requirements, responses)
        if not selected:
            return None

        summaries = [
            {"source": r.source, "summary": r.summary(self.summary_chars)} for r in selected
        ]
        corpus = "\n".join(s["summary"] for s in summaries)

        try:
            content = await self._complete(self.build_messages(requirements, summaries))
            parsed = parse_model_json(content)
        except Exception as e:
            logger.warning(
                "model_extraction_failed",
                tile=requirements.tile.value,
                error=describe_error(e),
            )
            return None

        notes: list[str] = []
        data: dict[str, MetricValue] = {}
        for key, raw in parsed.items():
            if key in _META_KEYS:
                continue
            metric = _to_metric(raw)
            if _is_empty(metric.value):
                continue
            if not is_grounded(metric.value, corpus):
                notes.append(f"Dropped ungrounded value for {key}")
                continue
            data[key] = metric

        if not data:
            return None

        missing = identify_missing_points(data, requirements.required_data_points)
        confidence = max(
            MODEL_MIN_CONFIDENCE, MODEL_BASE_CONFIDENCE - MODEL_MISSING_PENALTY * len(missing)
        )
        if missing:
            confidence = min(confidence, FALLBACK_LOCAL_CONFIDENCE)
        return ExtractionResult(
            data=data,
            confidence=round(confidence, 2),
            missing_data_points=missing,
            source_response_ids=[r.id for r in selected],
            from_cache=False,
            method="model",
            insights=notes,
        )


# ------------------------------------------------------------------ #
# Tier 3: provider insights
# ------------------------------------------------------------------ #


class InsightMergeStrategy:
    """Merge the provider-supplied insight named by ``insight_key``."""

    name = "insights"

    async def extract(
        self, requirements: ExtractionRequirements, responses: Sequence[SourceResponse]
    ) -> ExtractionResult | None:
        key = requirements.insight_key
        if key is None:
            return None

        data: dict[str, MetricValue] = {}
        used: list[str] = []
        for source in requirements.all_sources:
            for response in _by_source(responses, source):
                insight = response.insights.get(key)
                if _is_empty(insight):
                    continue
                used.append(response.id)
                if isinstance(insight, dict):
                    for name, value in insight.items():
                        if not _is_empty(value) and name not in data:
                            data[name] = MetricValue(value=value, explanation=f"Reported by {source}")
                elif key not in data:
                    data[key] = MetricValue(value=insight, explanation=f"Reported by {source}")

        if not data:
            return None
        return ExtractionResult(
            data=data,
            confidence=INSIGHT_CONFIDENCE,
            missing_data_points=identify_missing_points(data, requirements.required_data_points),
            source_response_ids=used,
            from_cache=True,
            method="insights",
        )


__all__ = [
    "ExtractionResult",
    "ExtractionStrategy",
    "LocalPatternStrategy",
    "ModelAssistedStrategy",
    "InsightMergeStrategy",
    "identify_missing_points",
    "parse_model_json",
    "is_grounded",
]
