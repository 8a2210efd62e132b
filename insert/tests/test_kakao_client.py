from unittest.mock import MagicMock, patch

import pytest
import requests

from insert.places.config import KakaoConfig
from insert.places.kakao_client import (
    VENUE_MEMO_SIZE,
    Coordinates,
    KakaoPlacesClient,
    PlaceSearchError,
    haversine_km,
    is_incheon,
    known_venue,
    query_variations,
)
from insert.recommendations.models import Category

CONFIG = KakaoConfig(api_key="test-key")

MUNHAK = {"id": "8", "place_name": "인천문학경기장", "x": "126.6941", "y": "37.4344"}


def _response(payload):
    resp = MagicMock()
    resp.json.return_value = payload
    resp.raise_for_status.return_value = None
    return resp


def _doc(pid, name, distance="350", category_name="음식점 > 카페"):
    return {
        "id": pid,
        "place_name": name,
        "category_name": category_name,
        "address_name": "인천 미추홀구 문학동 1",
        "road_address_name": "인천 미추홀구 매소홀로 618",
        "x": "126.6950",
        "y": "37.4350",
        "distance": distance,
        "phone": "032-000-0000",
        "place_url": f"http://place.map.kakao.com/{pid}",
    }


def test_query_variations_strip_suffixes():
    assert query_variations("인천 문학경기장!") == ["인천 문학경기장", "인천 문학", "인천문학"]
    assert query_variations("강남역") == ["강남역", "강남"]


def test_known_venue_table():
    assert known_venue("인천 문학 경기장") == Coordinates(37.4344, 126.6941)
    assert known_venue("홍대 앞 공연장") == Coordinates(37.5572, 126.9254)
    assert known_venue("어딘가 모르는 곳") is None


def test_incheon_bounds():
    assert is_incheon(Coordinates(37.4344, 126.6941))
    assert not is_incheon(Coordinates(37.5172, 127.0473))


def test_haversine_km():
    assert haversine_km(Coordinates(37.5, 127.0), Coordinates(37.5, 127.0)) == 0.0
    distance = haversine_km(Coordinates(37.4344, 126.6941), Coordinates(37.5172, 127.0473))
    assert 32 < distance < 33


@patch("insert.places.kakao_client._session.get")
def test_resolve_venue_uses_first_document(mock_get):
    mock_get.return_value = _response({"documents": [MUNHAK]})
    client = KakaoPlacesClient(CONFIG)

    coords = client.resolve_venue("인천 문학경기장")
    client.resolve_venue("인천 문학경기장")

    assert coords == Coordinates(37.4344, 126.6941)
    assert mock_get.call_count == 1
    kwargs = mock_get.call_args.kwargs
    assert kwargs["headers"] == {"Authorization": "KakaoAK test-key"}
    assert kwargs["params"]["query"] == "인천 문학경기장"


@patch("insert.places.kakao_client._session.get")
def test_resolve_venue_falls_back_to_known_table(mock_get):
    mock_get.return_value = _response({"documents": []})
    client = KakaoPlacesClient(CONFIG)

    assert client.resolve_venue("잠실 주경기장") == Coordinates(37.5139, 127.1006)
    # every query variation was tried first
    assert mock_get.call_count == len(query_variations("잠실 주경기장"))


@patch("insert.places.kakao_client._session.get")
def test_search_near_by_category_maps_documents(mock_get):
    mock_get.side_effect = [
        _response({"documents": [MUNHAK]}),
        _response({"documents": [_doc("101", "카페 온도"), _doc("102", "폴바셋", distance="")],
                   "meta": {"is_end": True}}),
    ]
    client = KakaoPlacesClient(CONFIG)

    places = client.search_near_by_category("인천 문학경기장", Category.CAFE, 45)

    assert [p.id for p in places] == ["101", "102"]
    first = places[0]
    assert first.category == Category.CAFE
    assert first.description == "음식점 > 카페"
    assert first.address == "인천 미추홀구 매소홀로 618"
    assert first.distance_km == 0.35
    assert first.rating is None
    assert first.place_url == "http://place.map.kakao.com/101"
    # no distance in the document: computed from coordinates
    assert 0 < places[1].distance_km < 0.2

    params = mock_get.call_args.kwargs["params"]
    assert params["category_group_code"] == "CE7"
    assert params["radius"] == 3000  # widened inside Incheon
    assert params["sort"] == "distance"


@patch("insert.places.kakao_client._session.get")
def test_search_near_pages_until_limit(mock_get):
    page = {"documents": [_doc(str(i), f"장소 {i}") for i in range(15)], "meta": {"is_end": False}}
    mock_get.side_effect = [_response({"documents": [MUNHAK]})] + [_response(page)] * 12
    client = KakaoPlacesClient(CONFIG)

    places = client.search_near("인천 문학경기장", 80)

    # four category codes, 20 places each, two pages per code
    assert len(places) == 80
    codes = [c.kwargs["params"].get("category_group_code") for c in mock_get.call_args_list[1:]]
    assert codes == ["AT4", "AT4", "CT1", "CT1", "FD6", "FD6", "CE7", "CE7"]


@patch("insert.places.kakao_client._session.get")
def test_unknown_venue_returns_no_places(mock_get):
    mock_get.return_value = _response({"documents": []})
    client = KakaoPlacesClient(CONFIG)

    assert client.search_near("어딘가 모르는 곳", 30) == []


@patch("insert.places.kakao_client._session.get")
def test_http_error_raises_place_search_error(mock_get):
    mock_get.side_effect = requests.ConnectionError("unreachable")
    client = KakaoPlacesClient(CONFIG)

    with pytest.raises(PlaceSearchError):
        client.search_near("인천 문학경기장", 30)


@patch("insert.places.kakao_client._session.get")
def test_malformed_response_raises_place_search_error(mock_get):
    mock_get.return_value = _response(["not", "a", "dict"])
    client = KakaoPlacesClient(CONFIG)

    with pytest.raises(PlaceSearchError):
        client.resolve_venue("어딘가 모르는 곳")


def test_missing_api_key_raises_place_search_error():
    client = KakaoPlacesClient(KakaoConfig(api_key=""))

    with pytest.raises(PlaceSearchError):
        client.search_near("인천 문학경기장", 30)


@patch("insert.places.kakao_client._session.get")
def test_failed_keyword_search_falls_back_to_known_table(mock_get):
    mock_get.side_effect = requests.Timeout("slow")
    client = KakaoPlacesClient(CONFIG)

    assert client.resolve_venue("인천 문학경기장") == Coordinates(37.4344, 126.6941)
    assert mock_get.call_count == len(query_variations("인천 문학경기장"))


@patch("insert.places.kakao_client._session.get")
def test_failed_lookup_for_unknown_venue_is_retried(mock_get):
    mock_get.side_effect = requests.Timeout("slow")
    client = KakaoPlacesClient(CONFIG)

    with pytest.raises(PlaceSearchError):
        client.resolve_venue("어딘가 모르는 곳")

    mock_get.side_effect = None
    mock_get.return_value = _response({"documents": [MUNHAK]})
    assert client.resolve_venue("어딘가 모르는 곳") == Coordinates(37.4344, 126.6941)


@patch("insert.places.kakao_client._session.get")
def test_venue_memo_is_bounded(mock_get):
    mock_get.return_value = _response({"documents": []})
    client = KakaoPlacesClient(CONFIG)

    for i in range(VENUE_MEMO_SIZE + 10):
        client.resolve_venue(f"모르는 곳 {i}")

    assert len(client._venues) == VENUE_MEMO_SIZE
    assert "모르는 곳 0" not in client._venues
    assert f"모르는 곳 {VENUE_MEMO_SIZE + 9}" in client._venues
