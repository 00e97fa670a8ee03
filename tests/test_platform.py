from __future__ import annotations

import pytest

from yisu_hotels.auth import PasswordHasher
from yisu_hotels.config import Settings
from yisu_hotels.core.envelope import OperationResult
from yisu_hotels.hotels.models import HotelStatus
from yisu_hotels.hotels.normalizer import MAX_PRICE
from yisu_hotels.platform import HotelPlatform
from yisu_hotels.storage import InMemoryHotelRepository, Snapshot, default_snapshot

NEW_HOTEL = {
    "display_name": "Harbour Lights Hotel",
    "address": "8 Quay Street, Ningbo",
    "opened_on": "2023-04-01",
    "star_rating": 4,
    "room_options": [{"name": "Twin", "price": 200}, {"name": "Single", "price": 100}],
    "amenity_tags": "Harbour view, Parking",
}


def _settings(tmp_path, **overrides) -> Settings:
    return Settings(
        _env_file=None,
        json_storage_path=tmp_path / "store.json",
        sqlite_storage_path=tmp_path / "store.sqlite3",
        log_dir=tmp_path / "logs",
        **overrides,
    )


async def _token(platform: HotelPlatform, username: str) -> str:
    result = await platform.login(username, "123456")
    assert result.ok, result.message
    return result.data["token"]


@pytest.mark.asyncio
async def test_start_seeds_demo_dataset(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))

    health = await platform.health()
    public = await platform.search({})

    assert health.to_dict() == {"code": 0, "message": "success", "data": {"ok": True, "hotels": 3}}
    assert [item["id"] for item in public.data["list"]] == ["h1", "h2"]
    assert (tmp_path / "store.json").exists()
    assert (tmp_path / "logs").is_dir()


@pytest.mark.asyncio
async def test_listing_lifecycle_from_creation_to_publication(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))
    merchant = await _token(platform, "merchant1")
    admin = await _token(platform, "admin1")

    created = await platform.create_listing(NEW_HOTEL, merchant)
    assert created.ok
    hotel_id = created.data["id"]
    assert hotel_id == "h4"
    assert created.data["status"] == "pending"

    hidden = await platform.search({"keyword": "harbour"})
    assert hidden.data["total"] == 0

    approved = await platform.approve(hotel_id, admin)
    assert approved.message == "Approved and published"

    visible = await platform.search({"keyword": "harbour"})
    assert visible.data["total"] == 1
    assert min(room["price"] for room in visible.data["list"][0]["room_options"]) == 100

    detail = await platform.detail(hotel_id)
    assert [room["price"] for room in detail.data["room_options"]] == [100, 200]
    assert detail.data["display_name_alt"] == "Harbour Lights Hotel"

    offline = await platform.offline(hotel_id, admin)
    assert offline.data["status"] == "offline"
    assert (await platform.detail(hotel_id)).code == 404

    restored = await platform.restore(hotel_id, admin)
    assert restored.data["status"] == "approved"


@pytest.mark.asyncio
async def test_changes_survive_restart(tmp_path) -> None:
    settings = _settings(tmp_path)
    platform = await HotelPlatform.start(settings)
    merchant = await _token(platform, "merchant1")
    created = await platform.create_listing(NEW_HOTEL, merchant)

    restarted = await HotelPlatform.start(settings)

    assert restarted.repository.find_by_id(created.data["id"]).display_name == "Harbour Lights Hotel"
    # Sessions are process-local.
    assert (await restarted.create_listing(NEW_HOTEL, merchant)).code == 401


@pytest.mark.asyncio
async def test_sqlite_backend_round_trip(tmp_path) -> None:
    settings = _settings(tmp_path, storage_backend="sqlite")
    platform = await HotelPlatform.start(settings)
    admin = await _token(platform, "admin1")
    await platform.reject("h3", "Blurry photos", admin)

    restarted = await HotelPlatform.start(settings)

    hotel = restarted.repository.find_by_id("h3")
    assert hotel.status.value == "rejected"
    assert hotel.rejection_note == "Blurry photos"
    assert (tmp_path / "store.sqlite3").exists()


@pytest.mark.asyncio
async def test_gated_operations_report_auth_codes(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))
    merchant = await _token(platform, "merchant1")

    anonymous = await platform.create_listing(NEW_HOTEL, None)
    assert (anonymous.code, anonymous.message) == (401, "Not logged in")
    assert anonymous.data is None

    stale = await platform.approve("h3", "tk_stale")
    assert stale.code == 401

    wrong_role = await platform.review_list({}, merchant)
    assert (wrong_role.code, wrong_role.message) == (403, "Permission denied")
    assert (await platform.approve("h3", merchant)).code == 403
    assert (await platform.offline("h1", None)).code == 401
    assert platform.repository.find_by_id("h1").status.value == "approved"


@pytest.mark.asyncio
async def test_edit_rules_through_facade(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))
    merchant = await _token(platform, "merchant1")
    registered = await platform.register("merchant2", "pw", "merchant")
    assert registered.data == {"id": "u3", "username": "merchant2", "role": "merchant"}
    other = (await platform.login("merchant2", "pw")).data["token"]

    assert (await platform.edit_listing("h99", {"address": "x"}, merchant)).code == 404
    assert (await platform.edit_listing("h1", {"address": "x"}, other)).code == 403

    invalid = await platform.edit_listing("h1", {"display_name": ""}, merchant)
    assert invalid.code == 1

    edited = await platform.edit_listing(
        "h1",
        {"room_options": [{"id": "r1", "name": "King", "price": 500}, {"id": "r2", "name": "Twin", "price": 300}]},
        merchant,
    )
    assert edited.message == "Updated"
    assert [room["id"] for room in edited.data["room_options"]] == ["r2", "r1"]
    assert edited.data["status"] == "approved"


@pytest.mark.asyncio
async def test_moderation_errors_through_facade(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))
    admin = await _token(platform, "admin1")

    assert (await platform.restore("h3", admin)).code == 409
    assert (await platform.approve("missing", admin)).code == 404

    rejected = await platform.reject("h3", "", admin)
    assert rejected.data["rejection_note"] == "unspecified"

    review = await platform.review_list({"status": "rejected"}, admin)
    assert review.data["total"] == 1
    assert review.data["page_size"] == 20


@pytest.mark.asyncio
async def test_login_and_registration_failures(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))

    bad_login = await platform.login("merchant1", "nope")
    assert (bad_login.code, bad_login.message) == (1, "Invalid username or password")

    duplicate = await platform.register("merchant1", "pw", "merchant")
    assert (duplicate.code, duplicate.message) == (1, "Username already exists")

    token = await _token(platform, "merchant1")
    assert (await platform.logout(token)).ok
    assert (await platform.create_listing(NEW_HOTEL, token)).code == 401


@pytest.mark.asyncio
async def test_unexpected_errors_become_internal_error_envelopes(tmp_path, monkeypatch) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))

    def _boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(platform.engine, "search", _boom)

    result = await platform.search({})

    assert result == OperationResult(500, "Internal server error", None)


@pytest.mark.asyncio
async def test_created_listing_reads_back_for_its_owner(tmp_path) -> None:
    platform = await HotelPlatform.start(_settings(tmp_path))
    merchant = await _token(platform, "merchant1")

    created = await platform.create_listing(NEW_HOTEL, merchant)
    hotel_id = created.data["id"]
    detail = await platform.detail(hotel_id, token=merchant)

    assert detail.ok
    data = detail.data
    assert data["status"] == "pending"
    assert data["owner_id"] == "u1"
    for name in ("display_name", "address", "opened_on", "star_rating", "amenity_tags"):
        assert data[name] == NEW_HOTEL[name]
    assert data["room_options"] == [
        {"id": f"r_{hotel_id}_2", "name": "Single", "price": 100},
        {"id": f"r_{hotel_id}_1", "name": "Twin", "price": 200},
    ]
    assert data["pricing"]["multiplier"] == 1.0


class _SwitchableStore:
    """Snapshot store whose writes can be made to fail."""

    def __init__(self) -> None:
        self.failing = False
        self.saved: Snapshot | None = None

    async def load(self) -> Snapshot:
        raise FileNotFoundError("empty")

    async def persist(self, users, hotels) -> None:
        if self.failing:
            raise OSError("disk full")
        self.saved = Snapshot(users=list(users), hotels=list(hotels))


@pytest.mark.asyncio
async def test_failed_persist_rolls_back_in_memory_changes(tmp_path) -> None:
    hasher = PasswordHasher("test_salt")
    store = _SwitchableStore()
    repository = InMemoryHotelRepository(store, seed=lambda: default_snapshot(hasher.hash))
    await repository.load()
    platform = HotelPlatform(repository, settings=_settings(tmp_path), hasher=hasher)
    merchant = await _token(platform, "merchant1")
    admin = await _token(platform, "admin1")
    sessions_before = len(platform.sessions)

    store.failing = True
    created = await platform.create_listing(NEW_HOTEL, merchant)
    rejected = await platform.reject("h3", "Blurry photos", admin)
    edited = await platform.edit_listing("h1", {"address": "Elsewhere"}, merchant)
    registered = await platform.register("merchant2", "pw", "merchant")
    login = await platform.login("merchant1", "123456")

    assert [result.code for result in (created, rejected, edited, registered, login)] == [500] * 5
    assert [hotel.id for hotel in repository.list()] == ["h1", "h2", "h3"]
    h3 = repository.find_by_id("h3")
    assert (h3.status, h3.rejection_note) == (HotelStatus.PENDING, None)
    assert repository.find_by_id("h1").address == "浙江省杭州市西湖区文三路 100 号"
    assert repository.find_user_by_username("merchant2") is None
    assert len(platform.sessions) == sessions_before

    store.failing = False
    approved = await platform.approve("h3", admin)
    assert approved.ok
    assert [hotel.id for hotel in store.saved.hotels] == ["h1", "h2", "h3"]
    assert store.saved.hotels[2].status is HotelStatus.APPROVED


@pytest.mark.asyncio
@pytest.mark.parametrize("price", ["1e20", "1e30"])
async def test_oversized_prices_are_capped_and_storage_keeps_working(tmp_path, price) -> None:
    settings = _settings(tmp_path, storage_backend="sqlite")
    platform = await HotelPlatform.start(settings)
    merchant = await _token(platform, "merchant1")
    admin = await _token(platform, "admin1")

    fields = {**NEW_HOTEL, "room_options": [{"name": "Suite", "price": price}]}
    created = await platform.create_listing(fields, merchant)

    assert created.ok, created.message
    assert created.data["room_options"][0]["price"] == MAX_PRICE
    assert (await platform.approve("h3", admin)).ok

    restarted = await HotelPlatform.start(settings)
    assert restarted.repository.find_by_id(created.data["id"]).room_options[0].base_price == MAX_PRICE
