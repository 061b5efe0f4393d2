"""Settings store backed by profile.yaml.

Reads normalize legacy rule shapes on every load; writes always store the
canonical shape, so a profile migrates the first time anything is saved.
Subscribers are notified with the new AppSettings after every save.
"""

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import yaml

from .config import get_profile_path, load_profile, save_profile
from .normalize import normalize_settings
from .schemas import AppSettings, PayRate
from .storage import PersistenceError
from .timeutil import epoch_ms

logger = logging.getLogger(__name__)

SettingsListener = Callable[[AppSettings], None]


class ProfileSettingsStore:
    """Pay rates, rules, preferences and notification prefs in profile.yaml."""

    def __init__(self, path: Optional[Path] = None, clock: Callable[[], int] = epoch_ms):
        self._path = path
        self._clock = clock
        self._listeners: List[SettingsListener] = []

    @property
    def path(self) -> Path:
        return self._path or get_profile_path(require_exists=False)

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, settings: AppSettings) -> None:
        for listener in list(self._listeners):
            try:
                listener(settings)
            except Exception:
                logger.exception("settings listener failed")

    def _load_raw(self) -> Dict[str, Any]:
        try:
            if self._path is None:
                return load_profile(require_exists=False)
            if not self._path.exists():
                return {}
            with open(self._path, "r") as f:
                return yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise PersistenceError(self.path, f"read failed: {e}") from e

    def get_settings(self) -> AppSettings:
        """Load and normalize the current settings (defaults if no profile)."""
        return normalize_settings(self._load_raw())

    def save_settings(self, partial: Dict[str, Any]) -> AppSettings:
        """Merge top-level sections over the current settings and save.

        Raises:
            PersistenceError: If profile.yaml can't be written (nothing is
                notified and the file is unchanged)
        """
        current = self.get_settings().model_dump(mode="json", exclude_none=True)
        current.update(partial)
        settings = normalize_settings(current)
        try:
            save_profile(settings.model_dump(mode="json", exclude_none=True), path=self.path)
        except OSError as e:
            raise PersistenceError(self.path, f"write failed: {e}") from e
        logger.info(f"saved settings to {self.path}")
        self._notify(settings)
        return settings

    def _merge_section(self, section: str, partial: Dict[str, Any]) -> AppSettings:
        current = self.get_settings().model_dump(mode="json", exclude_none=True)
        merged = {**current.get(section, {}), **partial}
        return self.save_settings({section: merged})

    def set_preferences(self, partial: Dict[str, Any]) -> AppSettings:
        return self._merge_section("preferences", partial)

    def set_pay_rules(self, partial: Dict[str, Any]) -> AppSettings:
        return self._merge_section("pay_rules", partial)

    def set_notifications_prefs(self, partial: Dict[str, Any]) -> AppSettings:
        return self._merge_section("notifications", partial)

    # Pay rates CRUD

    def add_pay_rate(self, label: str, value: float, rate_type: str = "base") -> PayRate:
        """Add a saved rate (newest first)."""
        now = self._clock()
        rate_id = hashlib.sha256(f"rate|{label}|{value}|{now}".encode()).hexdigest()[:8]
        rate = PayRate(
            id=rate_id, label=label, value=value, type=rate_type,
            created_at=now, updated_at=now,
        )
        rates = [r.model_dump() for r in self.get_settings().pay_rates]
        self.save_settings({"pay_rates": [rate.model_dump()] + rates})
        return rate

    def update_pay_rate(self, rate_id: str, **updates: Any) -> Optional[PayRate]:
        """Update fields of a saved rate. Returns None if the id is unknown."""
        settings = self.get_settings()
        if settings.find_rate(rate_id) is None:
            return None
        updates.pop("id", None)
        rates = []
        updated = None
        for rate in settings.pay_rates:
            if rate.id == rate_id:
                rate = PayRate.model_validate({
                    **rate.model_dump(), **updates, "updated_at": self._clock(),
                })
                updated = rate
            rates.append(rate.model_dump())
        self.save_settings({"pay_rates": rates})
        return updated

    def delete_pay_rate(self, rate_id: str) -> bool:
        """Delete a saved rate. Returns False if the id is unknown."""
        settings = self.get_settings()
        rates = [r.model_dump() for r in settings.pay_rates if r.id != rate_id]
        if len(rates) == len(settings.pay_rates):
            return False
        self.save_settings({"pay_rates": rates})
        return True
