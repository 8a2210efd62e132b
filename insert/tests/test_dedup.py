from insert.recommendations.dedup import dedup_key, deduplicate
from insert.recommendations.models import Candidate, Category


def _place(pid, name, address="인천 미추홀구 매소홀로 618", rating=None, distance=None):
    return Candidate(
        id=pid,
        name=name,
        address=address,
        category=Category.CAFE,
        rating=rating,
        distance_km=distance,
    )


def test_dedup_key_normalises_case_and_whitespace():
    a = _place("1", "  스타벅스   문학점 ", address="인천  미추홀구")
    b = _place("2", "스타벅스 문학점", address="인천 미추홀구 ")
    assert dedup_key(a) == dedup_key(b) == "스타벅스 문학점|인천 미추홀구"


def test_higher_rating_survives():
    low = _place("1", "스타벅스 OO점", rating=4.0)
    high = _place("2", "스타벅스 OO점", rating=4.5)

    result = deduplicate([low, high])

    assert [c.id for c in result] == ["2"]


def test_first_kept_when_it_has_higher_rating():
    high = _place("1", "스타벅스 OO점", rating=4.5)
    low = _place("2", "스타벅스 OO점", rating=4.0)

    assert [c.id for c in deduplicate([high, low])] == ["1"]


def test_equal_ratings_prefer_shorter_distance():
    far = _place("1", "투썸플레이스", rating=4.0, distance=1.2)
    near = _place("2", "투썸플레이스", rating=4.0, distance=0.4)

    assert [c.id for c in deduplicate([far, near])] == ["2"]


def test_missing_rating_falls_back_to_distance():
    far = _place("1", "투썸플레이스", rating=None, distance=1.2)
    near = _place("2", "투썸플레이스", rating=4.8, distance=0.4)

    assert [c.id for c in deduplicate([far, near])] == ["2"]


def test_no_tiebreak_keeps_first_seen():
    first = _place("1", "할리스")
    second = _place("2", "할리스")

    assert [c.id for c in deduplicate([first, second])] == ["1"]


def test_blank_names_are_dropped():
    result = deduplicate([_place("1", None), _place("2", "   "), _place("3", "이디야")])
    assert [c.id for c in result] == ["3"]


def test_first_occurrence_order_preserved():
    places = [
        _place("1", "A", rating=4.0),
        _place("2", "B"),
        _place("3", "A", rating=4.9),
        _place("4", "C"),
    ]

    result = deduplicate(places)

    # the better "A" takes the slot of the first "A"
    assert [c.id for c in result] == ["3", "2", "4"]


def test_no_duplicate_keys_survive():
    places = [_place(str(i), f"장소 {i % 4}", rating=4.0 + (i % 3) * 0.1) for i in range(20)]

    result = deduplicate(places)
    keys = [dedup_key(c) for c in result]

    assert len(keys) == len(set(keys)) == 4
