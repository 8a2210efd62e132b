from __future__ import annotations

import json
import logging
import re
from typing import Any

from groq import Groq

from ..recommendations.models import Candidate, ProfileType, TransportationMethod
from .config import DEFAULT_LLM_CONFIG, LLMConfig

logger = logging.getLogger(__name__)

PROFILE_LABELS = {
    ProfileType.ALONE: "혼자",
    ProfileType.COUPLE: "커플",
    ProfileType.FAMILY: "가족 단위",
}

TRANSPORT_LABELS = {
    TransportationMethod.WALK: "도보",
    TransportationMethod.CAR: "자동차",
    TransportationMethod.BUS: "버스",
    TransportationMethod.SUBWAY: "지하철",
}

SYSTEM_PROMPT = (
    "당신은 행사장 주변 장소 추천 전문가입니다. "
    "방문자 정보와 후보 장소 목록을 보고 가장 적합한 순서대로 장소 번호를 나열하세요.\n\n"
    "반드시 다음 형식의 JSON만 반환하세요:\n"
    '{"ranking": [3, 1, 5, 2, 4]}\n'
    "목록에 있는 번호만 사용하고, 가장 적합한 장소를 먼저 적으세요."
)

_NUMBER_SPLIT = re.compile(r"[,\s]+")


def _build_user_message(
    candidates: list[Candidate],
    profile_type: ProfileType,
    transportation_method: TransportationMethod,
    custom_conditions: str,
) -> str:
    lines = ["## 방문자 정보"]
    lines.append(f"- 프로필: {PROFILE_LABELS[profile_type]}")
    lines.append(f"- 이동수단: {TRANSPORT_LABELS[transportation_method]}")
    lines.append(f"- 조건: {custom_conditions}")

    lines.append("\n## 후보 장소")
    for number, c in enumerate(candidates, start=1):
        distance = f"{c.distance_km:.1f}km" if c.distance_km is not None else "정보 없음"
        lines.append(
            f"{number}. {c.name} ({c.category.value}) - {c.description or ''} - 거리: {distance}"
        )

    lines.append("\n장소 번호를 우선순위 순으로 나열하세요.")
    return "\n".join(lines)


def parse_ranking(content: str, count: int) -> list[int]:
    """
    Turn the model's answer into 0-based candidate indices.

    Accepts ``{"ranking": [...]}`` or a bare list of 1-based numbers.
    Out-of-range numbers and repeats are dropped.
    """
    raw: list[Any]
    try:
        parsed = json.loads(content)
    except ValueError:
        raw = [part for part in _NUMBER_SPLIT.split(content.strip()) if part]
    else:
        if isinstance(parsed, dict):
            raw = parsed.get("ranking", [])
        elif isinstance(parsed, list):
            raw = parsed
        else:
            raw = [parsed]

    indices: list[int] = []
    for item in raw:
        try:
            number = int(item)
        except (TypeError, ValueError):
            continue
        index = number - 1
        if 0 <= index < count and index not in indices:
            indices.append(index)
    return indices


def rank_candidates(
    candidates: list[Candidate],
    profile_type: ProfileType,
    transportation_method: TransportationMethod,
    custom_conditions: str,
    config: LLMConfig = DEFAULT_LLM_CONFIG,
) -> list[int]:
    """
    Ask the Groq LLM for a preferred ordering of ``candidates``.

    Returns 0-based indices into ``candidates``, best first. Only the first
    ``config.max_candidates`` places are offered to the model.
    Returns an empty list on any failure (timeout, bad JSON, API error).
    """
    if not config.enabled or not config.api_key:
        return []

    if not candidates:
        return []

    offered = candidates[: config.max_candidates]

    try:
        client = Groq(api_key=config.api_key, timeout=config.timeout)
        response = client.chat.completions.create(
            model=config.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": _build_user_message(
                        offered, profile_type, transportation_method, custom_conditions,
                    ),
                },
            ],
            max_tokens=config.max_tokens,
            temperature=0.2,
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content or ""
        ranking = parse_ranking(content, len(offered))
        logger.info("Groq ranking returned %d of %d places", len(ranking), len(offered))
        return ranking

    except Exception:
        logger.warning("Groq ranking call failed, continuing with heuristic scoring", exc_info=True)
        return []
