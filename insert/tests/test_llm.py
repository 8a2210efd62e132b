import json
from unittest.mock import MagicMock, patch

from insert.llm.config import LLMConfig
from insert.llm.groq_client import parse_ranking, rank_candidates
from insert.recommendations.models import (
    Candidate,
    Category,
    ProfileType,
    TransportationMethod,
)

SAMPLE_CANDIDATES = [
    Candidate(id="1", name="카페 온도", description="음식점 > 카페", category=Category.CAFE, distance_km=0.3),
    Candidate(id="2", name="문학산", description="여행 > 관광,명소", category=Category.ACTIVITY, distance_km=1.1),
    Candidate(id="3", name="솔밭가든", description="음식점 > 한식", category=Category.DINING, distance_km=0.8),
]

ENABLED_CONFIG = LLMConfig(api_key="test-key", enabled=True)
DISABLED_CONFIG = LLMConfig(api_key="test-key", enabled=False)


def _mock_groq_response(content: str) -> MagicMock:
    message = MagicMock()
    message.content = content
    choice = MagicMock()
    choice.message = message
    response = MagicMock()
    response.choices = [choice]
    return response


def _rank(config=ENABLED_CONFIG):
    return rank_candidates(
        SAMPLE_CANDIDATES,
        ProfileType.COUPLE,
        TransportationMethod.WALK,
        "분위기 있는 데이트 코스",
        config=config,
    )


@patch("insert.llm.groq_client.Groq")
def test_rank_candidates_returns_zero_based_indices(mock_groq_cls):
    content = json.dumps({"ranking": [3, 1, 2]})
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response(content)

    assert _rank() == [2, 0, 1]


@patch("insert.llm.groq_client.Groq")
def test_prompt_lists_places_and_visitor(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response('{"ranking": []}')

    _rank()

    kwargs = mock_groq_cls.return_value.chat.completions.create.call_args.kwargs
    user_message = kwargs["messages"][1]["content"]
    assert "1. 카페 온도 (CAFE) - 음식점 > 카페 - 거리: 0.3km" in user_message
    assert "- 프로필: 커플" in user_message
    assert "- 이동수단: 도보" in user_message
    assert kwargs["response_format"] == {"type": "json_object"}


@patch("insert.llm.groq_client.Groq")
def test_rank_candidates_fallback_on_api_error(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.side_effect = Exception("API timeout")

    assert _rank() == []


@patch("insert.llm.groq_client.Groq")
def test_rank_candidates_ignores_unusable_output(mock_groq_cls):
    mock_groq_cls.return_value.chat.completions.create.return_value = _mock_groq_response("잘 모르겠습니다")

    assert _rank() == []


def test_rank_candidates_disabled():
    assert _rank(DISABLED_CONFIG) == []


def test_rank_candidates_without_key():
    assert _rank(LLMConfig(api_key="", enabled=True)) == []


def test_rank_candidates_empty_candidates():
    result = rank_candidates(
        [], ProfileType.ALONE, TransportationMethod.BUS, "조용한 곳", config=ENABLED_CONFIG,
    )
    assert result == []


class TestParseRanking:
    def test_json_object(self):
        assert parse_ranking('{"ranking": [2, 1]}', 3) == [1, 0]

    def test_plain_number_list(self):
        assert parse_ranking("3, 1 5,2", 5) == [2, 0, 4, 1]

    def test_drops_out_of_range_and_repeats(self):
        assert parse_ranking('{"ranking": [0, 4, 2, 2, "x", 1]}', 3) == [1, 0]

    def test_bare_json_list(self):
        assert parse_ranking("[1, 2]", 2) == [0, 1]
