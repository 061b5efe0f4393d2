"""Normalize raw profile data into canonical AppSettings.

profile.yaml may hold any historical shape of the pay rules:

- camelCase keys (dailyThreshold, personalAllowance, payRates, ...)
- legacy uplifts: {type: percentage|fixed, value: N}
- structured uplifts: {mode: multiplier|fixed, multiplier: N, uplift: N}
- flat overtime fields: daily_threshold / daily_multiplier /
  weekly_threshold / weekly_multiplier

Everything is converted here, once, into the single tagged uplift shape
({kind: multiplier, multiplier} or {kind: fixed, uplift}). The pay engine
only ever sees the canonical models.
"""

import copy
import hashlib
import logging
import re
from typing import Any, Dict, Optional

from .schemas import AppSettings

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_ENUM_VALUES = {
    "perShift": "per_shift",
    "perHour": "per_hour",
    "perKm": "per_km",
    "highestOnly": "highest_only",
}


def default_profile() -> Dict[str, Any]:
    """Profile used when none exists yet (legacy overtime shape on purpose)."""
    return {
        "pay_rates": [],
        "pay_rules": {
            "overtime": {"daily_threshold": 8, "daily_multiplier": 1.5},
            "weekend": {"days": ["Sat", "Sun"], "type": "fixed", "value": 0},
            "allowances": [],
            "pay_period": {"cycle": "weekly", "start_day": "Monday"},
        },
        "preferences": {},
        "notifications": {},
    }


def snake_keys(value: Any) -> Any:
    """Recursively convert camelCase dict keys and enum values to snake_case."""
    if isinstance(value, dict):
        return {_CAMEL_RE.sub("_", str(k)).lower(): snake_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_keys(v) for v in value]
    if isinstance(value, str):
        return _ENUM_VALUES.get(value, value)
    return value


def normalize_uplift(section: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Pop any uplift fields from a rule section and return the canonical uplift.

    Accepts canonical {uplift: {kind: ...}}, structured {mode, multiplier,
    uplift} and legacy {type: percentage|fixed, value}. A percentage of P
    becomes multiplier 1 + P/100.
    """
    uplift = section.pop("uplift", None)
    mode = section.pop("mode", None)
    multiplier = section.pop("multiplier", None)
    legacy_type = section.pop("type", None)
    legacy_value = section.pop("value", None)

    if isinstance(uplift, dict):
        return uplift
    if mode == "multiplier":
        return {"kind": "multiplier", "multiplier": _number(multiplier, default=1.0)}
    if mode == "fixed":
        return {"kind": "fixed", "uplift": _number(uplift)}
    if legacy_type == "percentage":
        return {"kind": "multiplier", "multiplier": 1 + _number(legacy_value) / 100}
    if legacy_type == "fixed":
        return {"kind": "fixed", "uplift": _number(legacy_value)}
    if multiplier is not None:
        return {"kind": "multiplier", "multiplier": _number(multiplier, default=1.0)}
    if uplift is not None:
        return {"kind": "fixed", "uplift": _number(uplift)}
    return None


def normalize_overtime(raw: Dict[str, Any]) -> Dict[str, Any]:
    section = dict(raw)
    for basis in ("daily", "weekly"):
        threshold = section.pop(f"{basis}_threshold", None)
        multiplier = section.pop(f"{basis}_multiplier", None)
        tier = section.get(basis)
        if tier is None and threshold is not None:
            tier = {"threshold": threshold}
            if multiplier is not None:
                tier.update(mode="multiplier", multiplier=multiplier)
        if isinstance(tier, dict):
            tier = dict(tier)
            tier["uplift"] = normalize_uplift(tier)
            section[basis] = tier

    if "active" not in section:
        section["active"] = "weekly" if section.get("weekly") and not section.get("daily") else "daily"
    return section


def normalize_night(raw: Dict[str, Any]) -> Dict[str, Any]:
    section = dict(raw)
    section["uplift"] = normalize_uplift(section)
    return section


def normalize_weekend(raw: Dict[str, Any]) -> Dict[str, Any]:
    section = dict(raw)
    section["uplift"] = normalize_uplift(section)
    if "days" in section:
        section["days"] = [str(d)[:3].capitalize() for d in section["days"] or []]
    return section


def normalize_deduction(raw: Dict[str, Any]) -> Dict[str, Any]:
    section = dict(raw)
    section.pop("type", None)  # only "flat" has ever existed
    return section


def normalize_allowances(raw: list) -> list:
    items = []
    for index, item in enumerate(raw or []):
        item = dict(item)
        if not item.get("id"):
            content = f"allowance|{index}|{item.get('type', '')}|{item.get('value', 0)}"
            item["id"] = hashlib.sha256(content.encode()).hexdigest()[:8]
        items.append(item)
    return items


def normalize_pay_rules(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a (snake_cased) pay_rules dict into canonical form."""
    rules = dict(raw or {})
    if rules.get("overtime") is not None:
        rules["overtime"] = normalize_overtime(rules["overtime"])
    if rules.get("night") is not None:
        rules["night"] = normalize_night(rules["night"])
    if rules.get("weekend") is not None:
        rules["weekend"] = normalize_weekend(rules["weekend"])
    for key in ("tax", "ni"):
        if rules.get(key) is not None:
            rules[key] = normalize_deduction(rules[key])
    if "allowances" in rules:
        rules["allowances"] = normalize_allowances(rules["allowances"])
    return rules


def normalize_settings(raw: Optional[Dict[str, Any]]) -> AppSettings:
    """Merge a raw profile over defaults and validate it as AppSettings.

    Sections are merged one level deep, like saved partial updates.

    Raises:
        pydantic.ValidationError: If the canonical result is still invalid
    """
    base = default_profile()
    data = snake_keys(copy.deepcopy(raw or {}))

    merged = {
        "pay_rates": data.get("pay_rates", base["pay_rates"]) or [],
        "pay_rules": {**base["pay_rules"], **(data.get("pay_rules") or {})},
        "preferences": {**base["preferences"], **(data.get("preferences") or {})},
        "notifications": {**base["notifications"], **(data.get("notifications") or {})},
    }
    merged["pay_rules"] = normalize_pay_rules(merged["pay_rules"])

    settings = AppSettings.model_validate(merged)
    logger.debug(f"normalized settings: {len(settings.pay_rates)} rate(s)")
    return settings


def _number(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default
