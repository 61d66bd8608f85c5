"""모델 응답을 저장 가능한 여행 계획(GeneratedPlan) 으로 정규화합니다.

기존에 저장된 계획과 호환되어야 하므로 정리 순서는 바꾸지 않습니다.
"""
from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable

from ..core.errors import EmptyAIResponse, InvalidJSONFormat
from ..schemas.ai import TripRequest

logger = logging.getLogger(__name__)

Extractor = Callable[[dict[str, Any]], str | None]

REQUIRED_PLAN_FIELDS = ("name", "schedule")

_FENCE_PATTERN = re.compile(r"^```json|```\Z")


def _output(envelope: dict[str, Any]) -> dict[str, Any]:
    output = envelope.get("output") if isinstance(envelope, dict) else None
    return output if isinstance(output, dict) else {}


def _from_text(envelope: dict[str, Any]) -> str | None:
    return _output(envelope).get("text")


def _from_first_choice(envelope: dict[str, Any]) -> str | None:
    choices = _output(envelope).get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    choice = choices[0]
    message = choice.get("message") if isinstance(choice.get("message"), dict) else {}
    for candidate in (choice.get("text"), choice.get("content"), message.get("content")):
        if isinstance(candidate, str) and candidate:
            return candidate
    return None


def _from_serialized_output(envelope: dict[str, Any]) -> str | None:
    output = _output(envelope)
    return json.dumps(output, ensure_ascii=False) if output else None


RESPONSE_EXTRACTORS: tuple[Extractor, ...] = (
    _from_text,
    _from_first_choice,
    _from_serialized_output,
)


def extract_response_text(envelope: dict[str, Any]) -> str:
    for extractor in RESPONSE_EXTRACTORS:
        text = extractor(envelope)
        if isinstance(text, str) and text:
            logger.debug("응답 텍스트 추출: %s (%d자)", extractor.__name__, len(text))
            return text
    raise EmptyAIResponse(
        details={
            "has_output": isinstance(envelope, dict) and "output" in envelope,
            "has_choices": "choices" in _output(envelope),
        }
    )


def clean_json_text(text: str) -> str:
    cleaned = _FENCE_PATTERN.sub("", text.strip()).strip()

    first_brace = cleaned.find("{")
    if first_brace != -1:
        cleaned = cleaned[first_brace:]

    last_brace = cleaned.rfind("}")
    if last_brace != -1:
        cleaned = cleaned[: last_brace + 1]
    return cleaned


def _reject_constant(name: str) -> Any:
    # NaN, Infinity 는 표준 JSON 이 아니다
    raise ValueError(f"허용되지 않는 JSON 상수: {name}")


def parse_json_object(text: str) -> Any:
    try:
        return json.loads(clean_json_text(text), parse_constant=_reject_constant)
    except ValueError as exc:
        logger.warning("JSON 파싱 실패: %s", exc)
        raise InvalidJSONFormat(str(exc), raw_text=text) from exc


def _is_missing(value: Any) -> bool:
    # 빈 리스트/객체는 값이 있는 것으로 본다
    if isinstance(value, (list, dict)):
        return False
    return value is None or value is False or value == "" or value == 0


def normalize_plan_text(text: str, trip: TripRequest, user_id: str) -> dict[str, Any]:
    plan = parse_json_object(text)
    if not isinstance(plan, dict) or any(_is_missing(plan.get(field)) for field in REQUIRED_PLAN_FIELDS):
        raise InvalidJSONFormat("필수 계획 필드(name 또는 schedule)가 없습니다.", raw_text=text)

    # 호출자가 넘긴 값이 항상 우선한다
    plan.update(
        {
            "destination": trip.destination,
            "duration": trip.duration,
            "budget": trip.budget,
            "people": trip.people,
            "preferences": trip.preferences or "",
            "startDate": trip.start_date.isoformat(),
            "endDate": trip.end_date.isoformat(),
            "user": user_id,
        }
    )
    return plan


def normalize_plan_response(envelope: dict[str, Any], trip: TripRequest, user_id: str) -> dict[str, Any]:
    """모델 응답 봉투 -> GeneratedPlan. 재시도는 하지 않습니다."""
    return normalize_plan_text(extract_response_text(envelope), trip, user_id)
