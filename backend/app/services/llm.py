from __future__ import annotations

import json
import logging
from typing import Any

import httpx
from fastapi import status

from ..core.config import settings
from ..core.errors import InvalidJSONFormat, UpstreamError
from ..schemas.ai import TripRequest
from .normalizer import extract_response_text, normalize_plan_response, parse_json_object
from .prompts import (
    API_KEY_PROBE_PROMPT,
    build_budget_analysis_prompt,
    build_itinerary_prompt,
    build_trip_extraction_prompt,
)

logger = logging.getLogger(__name__)

GENERATION_PATH = "/aigc/text-generation/generation"

INVALID_KEY_MESSAGE = "DashScope API Key 가 유효하지 않거나 만료되었습니다."

# 업스트림 상태 코드 -> (reason, 사용자 메시지)
STATUS_REASONS: dict[int, tuple[str, str]] = {
    401: ("invalid_api_key", INVALID_KEY_MESSAGE),
    429: ("rate_limited", "API 호출 빈도가 너무 높습니다. 잠시 후 다시 시도해 주세요."),
    404: ("endpoint_not_found", "API 엔드포인트를 찾을 수 없습니다. 설정을 확인해 주세요."),
    500: ("upstream_server_error", "DashScope 서버 오류입니다. 잠시 후 다시 시도해 주세요."),
}


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text[:500]


def classify_upstream_error(exc: httpx.HTTPError) -> UpstreamError:
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        reason, message = STATUS_REASONS.get(code, ("upstream_error", INVALID_KEY_MESSAGE))
        return UpstreamError(code, message, reason, details=_response_body(exc.response))
    if isinstance(exc, httpx.TimeoutException):
        return UpstreamError(
            status.HTTP_504_GATEWAY_TIMEOUT,
            "연결 시간이 초과되었습니다. 네트워크 연결을 확인해 주세요.",
            "timeout",
            details=str(exc),
        )
    return UpstreamError(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DashScope API 에 연결할 수 없습니다. 네트워크 연결을 확인해 주세요.",
        "network_unreachable",
        details=str(exc),
    )


class DashScopeClient:
    """DashScope 텍스트 생성 API 호출. API Key 는 호출자가 명시적으로 넘깁니다."""

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = (base_url or settings.dashscope_base_url).rstrip("/")
        self.model = model or settings.dashscope_model
        self.timeout = timeout if timeout is not None else settings.dashscope_timeout_seconds
        self.transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
        result_format: str | None = "json",
    ) -> dict[str, Any]:
        parameters: dict[str, Any] = {"max_tokens": max_tokens, "temperature": temperature}
        if result_format:
            parameters["result_format"] = result_format
        body = {"model": self.model, "input": {"prompt": prompt}, "parameters": parameters}
        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

        try:
            async with httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(GENERATION_PATH, json=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPError as exc:
            error = classify_upstream_error(exc)
            logger.warning("DashScope 호출 실패: reason=%s status=%s", error.reason, error.status_code)
            raise error from exc

        try:
            envelope = response.json()
        except ValueError as exc:
            raise UpstreamError(
                status.HTTP_502_BAD_GATEWAY,
                "DashScope 응답을 해석할 수 없습니다.",
                "invalid_response",
                details=response.text[:500],
            ) from exc
        return envelope if isinstance(envelope, dict) else {"output": envelope}


async def _invoke(prompt: str, *, api_key: str, max_tokens: int, temperature: float, result_format: str | None = "json") -> dict[str, Any]:
    client = DashScopeClient(api_key)
    return await client.generate(prompt, max_tokens=max_tokens, temperature=temperature, result_format=result_format)


def _describe_envelope(envelope: dict[str, Any]) -> dict[str, Any]:
    output = envelope.get("output")
    return {
        "has_output": isinstance(output, dict),
        "has_text": isinstance(output, dict) and isinstance(output.get("text"), str),
        "has_choices": isinstance(output, dict) and isinstance(output.get("choices"), list),
        "keys": sorted(envelope.keys()),
    }


async def generate_travel_plan(trip: TripRequest, *, api_key: str, user_id: str) -> dict[str, Any]:
    prompt = build_itinerary_prompt(trip)
    envelope = await _invoke(prompt, api_key=api_key, max_tokens=4000, temperature=0.7)
    logger.info("DashScope 응답 구조: %s", _describe_envelope(envelope))
    logger.debug("DashScope 응답 상세: %s", dumps_for_log(envelope))
    plan = normalize_plan_response(envelope, trip, user_id)
    schedule = plan.get("schedule")
    days = len(schedule) if isinstance(schedule, list) else 0
    logger.info("여행 계획 생성 완료: user=%s days=%d", user_id, days)
    return plan


async def validate_api_key(api_key: str) -> None:
    """최소 프롬프트로 키를 확인합니다. 실패하면 UpstreamError."""
    await _invoke(API_KEY_PROBE_PROMPT, api_key=api_key, max_tokens=10, temperature=0, result_format=None)


async def _invoke_for_object(prompt: str, *, api_key: str, max_tokens: int, temperature: float) -> dict[str, Any]:
    envelope = await _invoke(prompt, api_key=api_key, max_tokens=max_tokens, temperature=temperature)
    text = extract_response_text(envelope)
    parsed = parse_json_object(text)
    if not isinstance(parsed, dict):
        raise InvalidJSONFormat("JSON 객체가 아닙니다.", raw_text=text, message="AI 응답을 해석하지 못했습니다. 다시 시도해 주세요.")
    return parsed


async def extract_trip_info(text: str, *, api_key: str) -> dict[str, Any]:
    return await _invoke_for_object(build_trip_extraction_prompt(text), api_key=api_key, max_tokens=1000, temperature=0.3)


async def analyze_budget(
    destination: str,
    duration: int,
    people: int,
    items: list[dict[str, Any]],
    *,
    api_key: str,
) -> dict[str, Any]:
    prompt = build_budget_analysis_prompt(destination, duration, people, items)
    return await _invoke_for_object(prompt, api_key=api_key, max_tokens=2000, temperature=0.7)


def dumps_for_log(payload: Any, limit: int = 1000) -> str:
    return json.dumps(payload, ensure_ascii=False, default=str)[:limit]
