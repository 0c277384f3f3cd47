import os

# przed importem storefront: sqlite zamiast postgresa, celery bez brokera
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CARRIER_API_ID"] = ""
os.environ["CARRIER_API_TOKEN"] = ""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront.data.database import Base, init_db
from storefront.data.models.promo_code import PromotionalCodeModel
from storefront.data.models.user import UserModel
from storefront.data.seed import seed_reference_data
from storefront.domain.errors import NotificationFailure
from storefront.services.carrier_client import CarrierResult, DirectoryUnavailable, FeeTable
from storefront.services.checkout_service import CheckoutService
from storefront.services.product_client import CatalogProduct


class FakeCatalog:
    """Katalog w pamieci, ceny w groszach."""

    def __init__(self, products: dict[int, CatalogProduct] | None = None):
        self.products = dict(products or {})
        self.requested: list[list[int]] = []

    def add(self, product_id, name="Product", price_cents=10000, sku="", category_id=None):
        self.products[product_id] = CatalogProduct(
            id=product_id, name=name, sku=sku, price_cents=price_cents, category_id=category_id
        )

    def fetch_catalog(self, product_ids):
        self.requested.append(list(product_ids))
        return {pid: self.products[pid] for pid in product_ids if pid in self.products}


class FakeCarrierClient:
    """Deterministyczny przewoznik do testow, domyslnie parcel sie udaje."""

    def __init__(self):
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.directory_down = False
        self.regions: list[dict] = []
        self.sub_regions: dict[int, list[dict]] = {}
        self.fees: dict[int, FeeTable] = {}
        self.created: list[dict] = []

    def configure(self, should_succeed=True, failure_reason="Carrier unavailable"):
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def create_parcel(self, payload):
        self.created.append(payload)
        if not self.should_succeed:
            return CarrierResult(ok=False, error=self.failure_reason, raw={"message": self.failure_reason})
        tracking = f"YAL-{len(self.created):06d}"
        return CarrierResult(
            ok=True,
            tracking=tracking,
            label_url=f"https://carrier.example.com/labels/{tracking}.pdf",
            status="created",
            raw={"tracking": tracking},
        )

    def get_regions(self):
        if self.directory_down:
            raise DirectoryUnavailable("directory down")
        return self.regions

    def get_sub_regions(self, region_id):
        if self.directory_down:
            raise DirectoryUnavailable("directory down")
        return self.sub_regions.get(region_id, [])

    def get_fees(self, to_region_id):
        if self.directory_down or to_region_id not in self.fees:
            raise DirectoryUnavailable("fees unavailable")
        return self.fees[to_region_id]


class FakeLock:
    def __init__(self):
        self.held: dict[str, str] = {}

    def acquire_submission_lock(self, order_number, owner, ttl):
        if order_number in self.held:
            return False
        self.held[order_number] = owner
        return True

    def release_submission_lock(self, order_number, owner):
        if self.held.get(order_number) == owner:
            del self.held[order_number]
            return True
        return False


class RecordingNotifier:
    def __init__(self, fail=False):
        self.fail = fail
        self.admin_calls = []
        self.customer_calls = []

    def notify_admin_new_order(self, order_number, customer_name, total, user_id, items):
        if self.fail:
            raise NotificationFailure("telegram down")
        self.admin_calls.append((order_number, customer_name, total, user_id, items))

    def notify_customer_order_placed(self, user_id, order_number, total):
        if self.fail:
            raise NotificationFailure("email down")
        self.customer_calls.append((user_id, order_number, total))


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def regions(db):
    seed_reference_data(db)
    return db


@pytest.fixture()
def user(db):
    u = UserModel(id=7, name="Amina Benali", phone="0550123456")
    db.add(u)
    db.commit()
    return u


@pytest.fixture()
def catalog():
    c = FakeCatalog()
    c.add(1, name="Filtre a huile", price_cents=10000, sku="FH-01", category_id="engine")
    c.add(2, name="Plaquettes de frein", price_cents=3450, sku="PF-02", category_id="brakes")
    c.add(3, name="Batterie 70Ah", price_cents=18900, sku="BT-70", category_id="electrical")
    return c


@pytest.fixture()
def carrier():
    return FakeCarrierClient()


@pytest.fixture()
def lock():
    return FakeLock()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def make_checkout(db, catalog, carrier, lock, notifier):
    def _make(auto_submit=False, **overrides):
        return CheckoutService(
            db=db,
            product_client=overrides.get("product_client", catalog),
            carrier_client=overrides.get("carrier_client", carrier),
            lock_service=overrides.get("lock_service", lock),
            notifier=overrides.get("notifier", notifier),
            auto_submit=auto_submit,
        )

    return _make


@pytest.fixture()
def make_code(db):
    def _make(code="SAVE10", type="PERCENTAGE", value=Decimal("10"), **kwargs):
        kwargs.setdefault("starts_at", datetime.now(timezone.utc) - timedelta(days=1))
        promo = PromotionalCodeModel(
            code=code,
            name=kwargs.pop("name", code),
            type=type,
            value=value,
            is_active=kwargs.pop("is_active", True),
            used_count=kwargs.pop("used_count", 0),
            applicable_products=kwargs.pop("applicable_products", []),
            applicable_categories=kwargs.pop("applicable_categories", []),
            excluded_products=kwargs.pop("excluded_products", []),
            **kwargs,
        )
        db.add(promo)
        db.commit()
        return promo

    return _make


def checkout_payload(**overrides) -> dict:
    """Poprawne body checkoutu: 2 x produkt 1 (100.00), dostawa do domu Alger / Hydra."""
    payload = {
        "cart": [
            {
                "product_id": 1,
                "name": "Filtre a huile",
                "unit_price_cents": 1,
                "quantity": 2,
                "weight_gr": 600,
            }
        ],
        "customer": {"first_name": "Amina", "last_name": "Benali", "phone": "0550 12 34 56"},
        "destination": {"region": "alger", "sub_region": "hydra"},
        "delivery": {"mode": "home"},
        "quoted_shipping_cost": "5.00",
    }
    payload.update(overrides)
    return payload
