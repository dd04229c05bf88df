"""
Pytest configuration and fixtures per i test di SPK Tracker.

I service vengono provati con una AsyncSession mockata: nessun database
reale. I modelli sono istanze SQLAlchemy transient costruite in memoria.
"""

import datetime
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from spk_tracker.core.config import Settings
from spk_tracker.models import Payment, WorkOrder
from spk_tracker.services.notification_service import NotificationDispatcher

FIXED_NOW = datetime.datetime(2026, 1, 15, 9, 30, tzinfo=datetime.timezone.utc)


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.delete = AsyncMock()
    return db


def make_result(value=None, rowcount=1):
    """Risultato di db.execute() con scalar_one_or_none e rowcount."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.rowcount = rowcount
    return result


# ============================================================
# Fixtures per Settings e dipendenze
# ============================================================


@pytest.fixture
def test_settings():
    """Settings isolate dal file .env."""
    return Settings(
        _env_file=None,
        app_env="testing",
        app_url="https://spk.example.com/",
        default_actor="admin@company.com",
        spk_number_max_attempts=3,
        webhook_spk_published_url="https://hooks.example.com/spk-published",
        webhook_payment_updated_url="https://hooks.example.com/payment-updated",
    )


@pytest.fixture
def mock_dispatcher():
    """Dispatcher che registra gli eventi senza inviarli."""
    return MagicMock(spec=NotificationDispatcher)


# ============================================================
# Fixtures per WorkOrder e Payment
# ============================================================


def build_payments(work_order_id, actor="admin@company.com", **status_by_term):
    """I tre pagamenti standard 30/40/30 su 100.000.000 IDR."""
    split = {
        "dp": (Decimal("30.00"), Decimal("30000000.00")),
        "progress": (Decimal("40.00"), Decimal("40000000.00")),
        "final": (Decimal("30.00"), Decimal("30000000.00")),
    }
    return [
        Payment(
            id=uuid.uuid4(),
            spk_id=work_order_id,
            term=term,
            percentage=pct,
            amount=amount,
            status=status_by_term.get(term, "pending"),
            updated_by=actor,
            created_at=FIXED_NOW,
            updated_at=FIXED_NOW,
        )
        for term, (pct, amount) in split.items()
    ]


def build_work_order(**overrides) -> WorkOrder:
    """WorkOrder transient con valori realistici e tre pagamenti."""
    work_order_id = overrides.pop("id", uuid.uuid4())
    values = dict(
        id=work_order_id,
        spk_number="SPK-2026-4821",
        vendor_name="PT Maju Jaya",
        vendor_email="procurement@majujaya.co.id",
        vendor_phone="+62 21 555 0101",
        project_name="Renovasi Gudang",
        project_description="Renovasi atap dan lantai gudang utama",
        contract_value=Decimal("100000000.00"),
        currency="IDR",
        start_date=datetime.date(2026, 1, 15),
        end_date=datetime.date(2026, 6, 30),
        dp_percentage=Decimal("30.00"),
        dp_amount=Decimal("30000000.00"),
        progress_percentage=Decimal("40.00"),
        progress_amount=Decimal("40000000.00"),
        final_percentage=Decimal("30.00"),
        final_amount=Decimal("30000000.00"),
        status="draft",
        revision=1,
        pdf_url=None,
        created_by="admin@company.com",
        notes=None,
        created_at=FIXED_NOW,
        updated_at=FIXED_NOW,
    )
    values.update(overrides)
    if "payments" not in values:
        values["payments"] = build_payments(work_order_id)
    return WorkOrder(**values)


@pytest.fixture
def work_order():
    """SPK in stato draft."""
    return build_work_order()


@pytest.fixture
def published_work_order():
    """SPK già pubblicato."""
    return build_work_order(status="published", revision=2)


@pytest.fixture
def valid_input():
    """Input di creazione valido, chiavi camelCase come dal form."""
    return {
        "vendorName": "PT Maju Jaya",
        "vendorEmail": "procurement@majujaya.co.id",
        "vendorPhone": "+62 21 555 0101",
        "projectName": "Renovasi Gudang",
        "projectDescription": "Renovasi atap dan lantai gudang utama",
        "contractValue": 100000000,
        "currency": "IDR",
        "startDate": "2026-01-15",
        "endDate": "2026-06-30",
        "dpPercentage": 30,
        "progressPercentage": 40,
        "finalPercentage": 30,
        "notes": "",
    }
