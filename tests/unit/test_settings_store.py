"""Tests for ProfileSettingsStore (profile.yaml settings, rates, subscribers)."""

import pytest
import yaml

from shiftpay.sdk.schemas import FixedUplift
from shiftpay.sdk.settings_store import ProfileSettingsStore


class Ticker:
    def __init__(self, start=1_000):
        self.now = start

    def __call__(self):
        self.now += 1
        return self.now


@pytest.fixture
def profile_path(tmp_path):
    return tmp_path / "profile.yaml"


@pytest.fixture
def store(profile_path):
    return ProfileSettingsStore(path=profile_path, clock=Ticker())


class TestSettings:
    """Loading, saving and notifying."""

    def test_missing_profile_gives_defaults(self, store):
        settings = store.get_settings()
        assert settings.pay_rates == []
        assert settings.pay_rules.overtime.daily.threshold == 8

    def test_save_merges_section(self, store):
        store.set_preferences({"currency": "EUR"})
        store.set_preferences({"rounding_rule": "none"})

        prefs = store.get_settings().preferences
        assert prefs.currency == "EUR"
        assert prefs.rounding_rule == "none"

    def test_subscribers_see_new_settings(self, store):
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(s.preferences.currency))

        store.set_preferences({"currency": "EUR"})
        unsubscribe()
        store.set_preferences({"currency": "USD"})

        assert seen == ["EUR"]

    def test_unsubscribe_twice_is_safe(self, store):
        unsubscribe = store.subscribe(lambda s: None)
        unsubscribe()
        unsubscribe()

    def test_failing_listener_does_not_break_save(self, store):
        def boom(settings):
            raise RuntimeError("listener failed")

        seen = []
        store.subscribe(boom)
        store.subscribe(lambda s: seen.append(s))

        store.set_preferences({"currency": "EUR"})

        assert len(seen) == 1
        assert store.get_settings().preferences.currency == "EUR"

    def test_legacy_profile_migrates_on_save(self, store, profile_path):
        profile_path.write_text(yaml.dump({
            "pay_rules": {"night": {"start": "22:00", "end": "06:00", "type": "fixed", "value": 0.5}},
        }))
        assert store.get_settings().pay_rules.night.uplift == FixedUplift(uplift=0.5)

        store.set_preferences({"currency": "GBP"})

        saved = yaml.safe_load(profile_path.read_text())
        assert saved["pay_rules"]["night"]["uplift"] == {"kind": "fixed", "uplift": 0.5}
        assert "type" not in saved["pay_rules"]["night"]

    def test_set_pay_rules_keeps_other_sections(self, store):
        store.set_pay_rules({"tax": {"enabled": True, "percentage": 20, "personal_allowance": 50}})

        rules = store.get_settings().pay_rules
        assert rules.tax.percentage == 20
        assert rules.overtime.daily.threshold == 8


class TestPayRates:
    """Saved rate CRUD."""

    def test_add_rate_newest_first(self, store):
        first = store.add_pay_rate("Day", 12.5)
        second = store.add_pay_rate("Night", 15, rate_type="premium")

        rates = store.get_settings().pay_rates
        assert [r.id for r in rates] == [second.id, first.id]
        assert len(first.id) == 8
        assert rates[0].type == "premium"

    def test_update_rate(self, store):
        rate = store.add_pay_rate("Day", 12.5)

        updated = store.update_pay_rate(rate.id, value=13)

        assert updated.value == 13
        assert updated.created_at == rate.created_at
        assert updated.updated_at > rate.updated_at
        assert store.get_settings().find_rate(rate.id).value == 13

    def test_update_unknown_rate(self, store):
        assert store.update_pay_rate("missing", value=1) is None

    def test_delete_rate(self, store):
        rate = store.add_pay_rate("Day", 12.5)

        assert store.delete_pay_rate(rate.id) is True
        assert store.delete_pay_rate(rate.id) is False
        assert store.get_settings().pay_rates == []
