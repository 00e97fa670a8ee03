from __future__ import annotations

from decimal import Decimal

import pytest

from yisu_hotels.hotels.models import Hotel, HotelStatus, RoomOption
from yisu_hotels.hotels.normalizer import (
    MAX_PRICE,
    build_room_options,
    clamp_star_rating,
    coerce_price,
    normalize_images,
    parse_leading_int,
    round_half_up,
)


def test_round_half_up_rounds_halves_away_from_zero():
    assert round_half_up(382.5) == Decimal("383")
    assert round_half_up(2.5) == Decimal("3")
    assert round_half_up(1.125, 2) == Decimal("1.13")


@pytest.mark.parametrize(
    ("value", "expected"),
    [("42", 42), (" 7 nights", 7), ("-3", -3), (4.9, 4), (True, None), ("x1", None), (None, None)],
)
def test_parse_leading_int(value, expected):
    assert parse_leading_int(value) == expected


@pytest.mark.parametrize(
    ("value", "fallback", "expected"),
    [(4, 3, 4), (0, 3, 3), ("junk", 2, 2), (11, 3, 5), (-1, 3, 1), (None, 5, 5)],
)
def test_clamp_star_rating(value, fallback, expected):
    assert clamp_star_rating(value, fallback) == expected


@pytest.mark.parametrize(
    ("value", "expected"),
    [(388, 388), ("199.5", 200), ("  ", 0), ("abc", 0), (-10, 0), (None, 0), (False, 0), ("nan", 0)],
)
def test_coerce_price(value, expected):
    assert coerce_price(value) == expected


def test_build_room_options_synthesizes_positional_ids():
    rooms = build_room_options("h9", [{"id": "keep", "name": "King", "price": 300}, {}])

    assert rooms == [
        RoomOption(id="r_h9_1", name="King", base_price=300),
        RoomOption(id="r_h9_2", name="Standard Room", base_price=0),
    ]


def test_normalize_images_drops_blanks():
    assert normalize_images([" a.jpg ", "", None, "b.jpg"]) == ["a.jpg", "b.jpg"]
    assert normalize_images(None) == []


def test_hotel_record_round_trip_keeps_field_names():
    hotel = Hotel(
        id="h1",
        owner_id="u1",
        display_name="易宿精选·西湖店",
        display_name_alt="",
        address="浙江省杭州市西湖区文三路 100 号",
        star_rating=4,
        opened_on="2020-06-01",
        room_options=[RoomOption(id="r1", name="King Room", base_price=388)],
        status=HotelStatus.APPROVED,
        amenity_tags="西湖景区",
    )

    record = hotel.to_dict()
    restored = Hotel.from_dict(record)

    assert record["room_options"] == [{"id": "r1", "name": "King Room", "price": 388}]
    assert record["status"] == "approved"
    assert restored.display_name_alt == "易宿精选·西湖店"
    assert restored.room_options == hotel.room_options


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("1e20", MAX_PRICE),
        ("1e30", MAX_PRICE),
        ("1" + "0" * 40, MAX_PRICE),
        (10**25, MAX_PRICE),
        ("9223372036854775806.4", MAX_PRICE - 1),
    ],
)
def test_coerce_price_caps_oversized_values(value, expected):
    assert coerce_price(value) == expected


def test_loaded_records_respect_rating_range_and_note_rule():
    record = {
        "id": "h7",
        "owner_id": "u1",
        "display_name": "Old Record",
        "star_rating": 9,
        "status": "approved",
        "rejection_note": "left over from an earlier rejection",
    }

    hotel = Hotel.from_dict(record)
    assert hotel.star_rating == 5
    assert hotel.rejection_note is None

    rejected = Hotel.from_dict({**record, "star_rating": -2, "status": "rejected"})
    assert rejected.star_rating == 1
    assert rejected.rejection_note == "left over from an earlier rejection"


def test_to_dicts_serializes_each_hotel():
    hotel = Hotel(
        id="h1",
        owner_id="u1",
        display_name="Lakeside",
        display_name_alt="Lakeside",
        address="1 Lake Road",
        star_rating=3,
        opened_on="2020-01-01",
    )
    assert Hotel.to_dicts([hotel, hotel]) == [hotel.to_dict(), hotel.to_dict()]
