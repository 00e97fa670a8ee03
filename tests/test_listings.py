from __future__ import annotations

import pytest

from yisu_hotels.core.errors import Forbidden, NotFound, ValidationError
from yisu_hotels.hotels.models import HotelStatus
from yisu_hotels.listings import ListingService
from yisu_hotels.storage.repository import InMemoryHotelRepository

CREATED = "2025-03-01T09:00:00.000Z"
EDITED = "2025-03-02T09:00:00.000Z"


def _fields(**overrides: object) -> dict[str, object]:
    fields: dict[str, object] = {
        "display_name": "易宿·钱江商务酒店",
        "display_name_alt": "Yisu Qianjiang Business",
        "address": "浙江省杭州市江干区钱江路 200 号",
        "star_rating": 4,
        "opened_on": "2019-10-01",
        "room_options": [{"name": "Standard Single", "price": 268}, {"name": "Standard Twin", "price": 298}],
        "amenity_tags": "Qianjiang CBD, Metro",
        "images": ["https://example.com/a.jpg"],
    }
    fields.update(overrides)
    return fields


class _Clock:
    def __init__(self, *stamps: str) -> None:
        self._stamps = list(stamps)

    def __call__(self) -> str:
        return self._stamps.pop(0) if len(self._stamps) > 1 else self._stamps[0]


def _service() -> tuple[ListingService, InMemoryHotelRepository]:
    repository = InMemoryHotelRepository()
    return ListingService(repository, clock=_Clock(CREATED, EDITED)), repository


def test_create_starts_pending_with_synthesized_room_ids():
    service, repository = _service()

    hotel = service.create(_fields(), "u1")

    assert hotel.id == "h1"
    assert hotel.owner_id == "u1"
    assert hotel.status is HotelStatus.PENDING
    assert hotel.rejection_note is None
    assert [room.id for room in hotel.room_options] == ["r_h1_1", "r_h1_2"]
    assert [room.base_price for room in hotel.room_options] == [268, 298]
    assert hotel.created_at == hotel.updated_at == CREATED
    assert repository.find_by_id("h1") is hotel
    assert service.create(_fields(), "u1").id == "h2"


def test_create_reports_every_missing_required_field():
    service, _ = _service()

    with pytest.raises(ValidationError) as excinfo:
        service.create(_fields(display_name="  ", address=None, opened_on=""), "u1")

    assert excinfo.value.fields == ("display_name", "address", "opened_on")


@pytest.mark.parametrize("rooms", [[], None, "Suite"])
def test_create_requires_a_room_option(rooms):
    service, repository = _service()

    with pytest.raises(ValidationError) as excinfo:
        service.create(_fields(room_options=rooms), "u1")

    assert excinfo.value.fields == ("room_options",)
    assert repository.list() == []


def test_create_applies_field_defaults_and_coercion():
    service, _ = _service()

    hotel = service.create(
        _fields(
            display_name_alt="",
            star_rating=None,
            amenity_tags=None,
            images="not-a-list",
            room_options=[{"price": "99.5"}, {"name": " Loft ", "price": -40}, {"name": "Attic", "price": "free"}],
        ),
        "u1",
    )

    assert hotel.display_name_alt == hotel.display_name
    assert hotel.star_rating == 3
    assert hotel.amenity_tags == ""
    assert hotel.images == []
    assert [(room.name, room.base_price) for room in hotel.room_options] == [
        ("Standard Room", 100),
        ("Loft", 0),
        ("Attic", 0),
    ]


@pytest.mark.parametrize(("raw", "expected"), [(9, 5), ("-2", 1), ("4.7", 4), ("2 stars", 2)])
def test_create_clamps_star_rating(raw, expected):
    service, _ = _service()
    assert service.create(_fields(star_rating=raw), "u1").star_rating == expected


def test_edit_by_non_owner_is_forbidden_even_with_invalid_fields():
    service, repository = _service()
    hotel = service.create(_fields(), "u1")

    with pytest.raises(Forbidden):
        service.edit(hotel.id, {"display_name": "", "room_options": []}, "u3")
    with pytest.raises(Forbidden):
        service.edit(hotel.id, {"address": "New address"}, "u3")

    assert repository.find_by_id(hotel.id).address == _fields()["address"]


def test_edit_unknown_hotel_is_not_found():
    service, _ = _service()
    with pytest.raises(NotFound):
        service.edit("h99", {"address": "Anywhere"}, "u1")


def test_edit_merges_only_supplied_fields_and_keeps_status():
    service, repository = _service()
    hotel = service.create(_fields(), "u1")
    hotel.status = HotelStatus.APPROVED

    updated = service.edit(hotel.id, {"address": " 1 New Road ", "unknown": "ignored"}, "u1")

    assert updated.address == "1 New Road"
    assert updated.display_name == hotel.display_name
    assert updated.star_rating == 4
    assert [room.id for room in updated.room_options] == ["r_h1_1", "r_h1_2"]
    assert updated.images == ["https://example.com/a.jpg"]
    assert updated.status is HotelStatus.APPROVED
    assert updated.created_at == CREATED
    assert updated.updated_at == EDITED
    assert repository.find_by_id(hotel.id) is updated


@pytest.mark.parametrize(("raw", "expected"), [("abc", 4), (0, 4), (None, 4), (7, 5), ("2", 2)])
def test_edit_star_rating_falls_back_to_prior_value(raw, expected):
    service, _ = _service()
    hotel = service.create(_fields(star_rating=4), "u1")
    assert service.edit(hotel.id, {"star_rating": raw}, "u1").star_rating == expected


def test_edit_reuses_incoming_room_ids():
    service, _ = _service()
    hotel = service.create(_fields(), "u1")

    updated = service.edit(
        hotel.id,
        {"room_options": [{"id": "r_h1_2", "name": "Twin", "price": 310}, {"name": "Suite", "price": 90}]},
        "u1",
    )

    assert [(room.id, room.base_price) for room in updated.room_options] == [("r_h1_2", 310), ("r_h1_2", 90)]


def test_edit_rejects_blank_required_fields():
    service, _ = _service()
    hotel = service.create(_fields(), "u1")

    with pytest.raises(ValidationError) as excinfo:
        service.edit(hotel.id, {"display_name": "   "}, "u1")
    assert excinfo.value.fields == ("display_name",)

    with pytest.raises(ValidationError):
        service.edit(hotel.id, {"room_options": []}, "u1")


def test_edit_blank_alternate_name_falls_back_to_primary():
    service, _ = _service()
    hotel = service.create(_fields(), "u1")

    updated = service.edit(hotel.id, {"display_name": "Qianjiang Hotel", "display_name_alt": ""}, "u1")

    assert updated.display_name_alt == "Qianjiang Hotel"
