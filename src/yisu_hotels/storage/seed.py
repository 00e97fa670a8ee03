"""Demo dataset written on first start or when stored data is unusable."""
from __future__ import annotations

from typing import Callable

from yisu_hotels.hotels.models import Hotel, HotelStatus, RoomOption, User, UserRole

from .repository import Snapshot

DEMO_PASSWORD = "123456"


def default_snapshot(hash_password: Callable[[str], str]) -> Snapshot:
    users = [
        User(id="u1", username="merchant1", password=hash_password(DEMO_PASSWORD), role=UserRole.MERCHANT),
        User(id="u2", username="admin1", password=hash_password(DEMO_PASSWORD), role=UserRole.ADMIN),
    ]
    hotels = [
        Hotel(
            id="h1",
            owner_id="u1",
            display_name="易宿精选·西湖店",
            display_name_alt="Yisu Select West Lake",
            address="浙江省杭州市西湖区文三路 100 号",
            star_rating=4,
            opened_on="2020-06-01",
            room_options=[
                RoomOption(id="r1", name="King Room", base_price=388),
                RoomOption(id="r2", name="Twin Room", base_price=428),
                RoomOption(id="r3", name="Family Suite", base_price=688),
            ],
            status=HotelStatus.APPROVED,
            amenity_tags="西湖景区、黄龙体育中心、文三路数码商圈",
            images=["https://via.placeholder.com/800x400?text=Hotel1"],
            created_at="2024-01-15T10:00:00.000Z",
            updated_at="2024-01-15T10:00:00.000Z",
        ),
        Hotel(
            id="h2",
            owner_id="u1",
            display_name="易宿·灵隐度假酒店",
            display_name_alt="Yisu Lingyin Resort",
            address="浙江省杭州市西湖区灵隐路 18 号",
            star_rating=5,
            opened_on="2021-03-20",
            room_options=[
                RoomOption(id="r4", name="Mountain View King", base_price=888),
                RoomOption(id="r5", name="Courtyard Suite", base_price=1288),
            ],
            status=HotelStatus.APPROVED,
            amenity_tags="灵隐寺、北高峰索道、梅家坞茶文化村",
            images=["https://via.placeholder.com/800x400?text=Hotel2"],
            created_at="2024-02-01T10:00:00.000Z",
            updated_at="2024-02-01T10:00:00.000Z",
        ),
        Hotel(
            id="h3",
            owner_id="u1",
            display_name="易宿·钱江商务酒店",
            display_name_alt="Yisu Qianjiang Business",
            address="浙江省杭州市江干区钱江路 200 号",
            star_rating=3,
            opened_on="2019-10-01",
            room_options=[
                RoomOption(id="r6", name="Standard Single", base_price=268),
                RoomOption(id="r7", name="Standard Twin", base_price=298),
            ],
            status=HotelStatus.PENDING,
            created_at="2024-03-10T10:00:00.000Z",
            updated_at="2024-03-10T10:00:00.000Z",
        ),
    ]
    return Snapshot(users=users, hotels=hotels)
