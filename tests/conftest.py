from datetime import datetime, timedelta, timezone

import pytest

from shopkeep.store import MemoryKeyValue, Product, ShopStore


class FixedClock:
    """Clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    # local noon today, so "today" holds in any timezone
    local_noon = datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0)
    return FixedClock(local_noon.astimezone(timezone.utc))


@pytest.fixture
def backend():
    return MemoryKeyValue()


@pytest.fixture
def store(backend, clock):
    return ShopStore(backend, clock=clock)


@pytest.fixture
def sparkler():
    return Product(
        barcode="8901000000017",
        name="Sparkler 10cm",
        category="Sparklers",
        purchase_price=30.0,
        selling_price=50.0,
        quantity=10,
    )


@pytest.fixture
def rocket():
    return Product(
        barcode="8901000000024",
        name="Sky Rocket",
        category="Rockets",
        purchase_price=80.0,
        selling_price=120.5,
        quantity=4,
    )
