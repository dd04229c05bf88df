"""
Tests per Settings e per i timestamp monotoni dei modelli.
"""

import datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from spk_tracker.core.config import Settings
from spk_tracker.models.mixins import next_timestamp


class TestSettings:
    """Tests per la configurazione applicazione."""

    def test_defaults(self):
        settings = Settings(_env_file=None)

        assert settings.default_currency == "IDR"
        assert settings.default_actor == "admin@company.com"
        assert settings.webhook_timeout_seconds == 10.0

    def test_blank_webhook_disables_notification(self):
        settings = Settings(_env_file=None, webhook_spk_published_url="  ")

        assert settings.webhook_spk_published_url is None

    def test_trailing_slash_removed(self):
        settings = Settings(_env_file=None, app_url="https://spk.example.com/")

        assert settings.app_url == "https://spk.example.com"

    def test_currency_normalized(self):
        assert Settings(_env_file=None, default_currency="usd").default_currency == "USD"

    def test_invalid_currency(self):
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, default_currency="RUPIAH")

    def test_production_rejects_local_settings(self):
        with pytest.raises(PydanticValidationError) as exc_info:
            Settings(_env_file=None, app_env="production")

        message = str(exc_info.value)
        assert "database_url" in message
        assert "app_url" in message


class TestNextTimestamp:
    """Tests per next_timestamp."""

    def test_moves_forward(self):
        previous = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)
        now = previous + datetime.timedelta(seconds=5)

        assert next_timestamp(previous, now) == now

    def test_same_instant_adds_microsecond(self):
        now = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)

        assert next_timestamp(now, now) == now + datetime.timedelta(microseconds=1)

    def test_clock_going_backwards(self):
        previous = datetime.datetime(2026, 1, 1, 12, tzinfo=datetime.timezone.utc)
        now = previous - datetime.timedelta(minutes=1)

        assert next_timestamp(previous, now) > previous

    def test_naive_previous_treated_as_utc(self):
        previous = datetime.datetime(2026, 1, 1, 12)
        now = datetime.datetime(2026, 1, 1, 12, tzinfo=datetime.timezone.utc)

        assert next_timestamp(previous, now).tzinfo is not None

    def test_no_previous(self):
        now = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)

        assert next_timestamp(None, now) == now
