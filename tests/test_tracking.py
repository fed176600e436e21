from datetime import datetime, timezone

import pytest

from conftest import fresh_order, make_schedule, sign_up
from shared.errors import InvalidStateError, NotFoundError, PermissionDeniedError, ValidationError
from services.order_service.schemas import OrderCreate
from services.order_service.service import OrderService
from services.tracking_service.feed import LocationFeed, location_feed
from services.tracking_service.models import LocationUpdate
from services.tracking_service.repository import LocationRepository
from services.tracking_service.schemas import LocationCreate
from services.tracking_service.service import TrackingService


async def confirmed_order(db, driver, customer, quantity=1):
    schedule = await make_schedule(db, driver, capacity=5)
    created = await OrderService.create_order(
        db, customer, OrderCreate(schedule_id=schedule.id, quantity=quantity, description="Curry")
    )
    await OrderService.confirm_payment(db, created.payment_handle)
    return created.order_id


async def test_location_needs_a_coordinate(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)
    with pytest.raises(ValidationError):
        await TrackingService.append_location_update(db, driver, order_id, LocationCreate(note="on my way"))


async def test_unknown_order_is_not_found(db, driver):
    with pytest.raises(NotFoundError):
        await TrackingService.append_location_update(db, driver, "missing", LocationCreate(latitude=42.3))


async def test_only_the_orders_driver_posts_locations(db, driver, parent):
    other, _ = await sign_up(db, "another-driver@collegebites.com", "driver")
    order_id = await confirmed_order(db, driver, parent)
    point = LocationCreate(latitude=42.36, longitude=-71.06)

    with pytest.raises(PermissionDeniedError):
        await TrackingService.append_location_update(db, other, order_id, point)
    with pytest.raises(PermissionDeniedError):
        await TrackingService.append_location_update(db, parent, order_id, point)


async def test_cancelled_order_takes_no_locations(db, driver, parent):
    schedule = await make_schedule(db, driver, capacity=5)
    created = await OrderService.create_order(
        db, parent, OrderCreate(schedule_id=schedule.id, quantity=1, description="Curry")
    )
    await OrderService.cancel_order(db, created.order_id, parent)

    with pytest.raises(InvalidStateError):
        await TrackingService.append_location_update(
            db, driver, created.order_id, LocationCreate(latitude=1.0, longitude=2.0)
        )


async def test_first_location_puts_order_in_transit(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)

    await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=42.0, longitude=-72.0))

    assert (await fresh_order(order_id)).status == "in_transit"


async def test_subscriber_receives_updates_in_order(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)
    received = []
    TrackingService.subscribe_to_location_updates(order_id, received.append)

    u1 = await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=1.0, longitude=1.0))
    u2 = await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=2.0, longitude=2.0))

    assert [u.id for u in received] == [u1.id, u2.id]


async def test_late_reader_sees_history_oldest_first(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)
    u1 = await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=1.0, longitude=1.0))
    u2 = await TrackingService.append_location_update(
        db, driver, order_id, LocationCreate(latitude=2.0, longitude=2.0, note="Exit 7")
    )

    history = await TrackingService.list_location_updates(db, order_id, parent)

    assert [u.id for u in history] == [u1.id, u2.id]
    assert history[1].note == "Exit 7"


async def test_strangers_cannot_read_history(db, driver, parent, student):
    order_id = await confirmed_order(db, driver, parent)
    with pytest.raises(NotFoundError):
        await TrackingService.list_location_updates(db, order_id, student)


async def test_updates_for_other_orders_are_not_delivered(db, driver, parent, student):
    mine = await confirmed_order(db, driver, parent)
    theirs = await confirmed_order(db, driver, student)
    received = []
    TrackingService.subscribe_to_location_updates(mine, received.append)

    await TrackingService.append_location_update(db, driver, theirs, LocationCreate(latitude=1.0, longitude=1.0))

    assert received == []


async def test_unsubscribe_stops_delivery(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)
    received = []
    unsubscribe = TrackingService.subscribe_to_location_updates(order_id, received.append)

    await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=1.0, longitude=1.0))
    unsubscribe()
    await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=2.0, longitude=2.0))

    assert len(received) == 1
    assert location_feed.subscriber_count(order_id) == 0


async def test_failing_subscriber_is_dropped_without_breaking_others():
    feed = LocationFeed()
    received = []

    def broken(update):
        raise RuntimeError("socket closed")

    feed.subscribe("order-1", broken)
    feed.subscribe("order-1", received.append)

    await feed.publish("order-1", "u1")
    await feed.publish("order-1", "u2")

    assert received == ["u1", "u2"]
    assert feed.subscriber_count("order-1") == 1


async def test_async_subscribers_are_awaited():
    feed = LocationFeed()
    received = []

    async def on_update(update):
        received.append(update)

    feed.subscribe("order-1", on_update)
    await feed.publish("order-1", "u1")

    assert received == ["u1"]


async def test_tracking_view_reports_delivery_status(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)

    view = await TrackingService.track_order(db, order_id, parent)
    assert view.delivery_status.status == "Preparing"
    assert view.location_updates == []

    await TrackingService.append_location_update(db, driver, order_id, LocationCreate(latitude=1.0, longitude=1.0))
    view = await TrackingService.track_order(db, order_id, parent)
    assert view.delivery_status.status == "In Transit"
    assert len(view.location_updates) == 1

    await OrderService.update_status(db, order_id, driver, "completed")
    view = await TrackingService.track_order(db, order_id, driver)
    assert view.delivery_status.status == "Delivered"
    assert view.order.total_cents == 1000


async def test_appends_are_numbered_per_order(db, driver, parent, student):
    mine = await confirmed_order(db, driver, parent)
    theirs = await confirmed_order(db, driver, student)

    a = await TrackingService.append_location_update(db, driver, mine, LocationCreate(latitude=1.0))
    b = await TrackingService.append_location_update(db, driver, theirs, LocationCreate(latitude=1.0))
    c = await TrackingService.append_location_update(db, driver, mine, LocationCreate(latitude=2.0))

    assert (a.sequence, c.sequence) == (1, 2)
    assert b.sequence == 1


async def test_history_with_identical_timestamps_keeps_insertion_order(db, driver, parent):
    order_id = await confirmed_order(db, driver, parent)
    same_instant = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)

    # ids sort opposite to insertion order
    first = LocationUpdate(id="zzzz", order_id=order_id, sequence=1, latitude=1.0, created_at=same_instant)
    second = LocationUpdate(id="aaaa", order_id=order_id, sequence=2, latitude=2.0, created_at=same_instant)
    await LocationRepository.add(db, first)
    await LocationRepository.add(db, second)

    history = await TrackingService.list_location_updates(db, order_id, parent)

    assert [u.id for u in history] == ["zzzz", "aaaa"]
