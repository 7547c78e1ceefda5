"""Symptom log history and preventive-action checklist.

Logs are kept newest first, one per calendar day, capped at MAX_LOGS.
Severity is 0-10 where higher is worse, so a positive trend means
symptoms are getting worse.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .risk_engine import round_half_up

MAX_LOGS = 30
WEEKLY_WINDOW = 7
TREND_WINDOW = 3  # entries per side of the trend comparison

ACTION_ITEMS: list[tuple[str, str]] = [
    ("mask", "Wear a high-filtration mask"),
    ("glasses", "Protect your eyes with glasses or goggles"),
    ("laundryInside", "Dry laundry indoors"),
    ("shower", "Shower off pollen when you get home"),
    ("roomClean", "Clean the bedroom and run the air purifier"),
]
ACTION_KEYS = [key for key, _ in ACTION_ITEMS]


@dataclass(frozen=True)
class SymptomLog:
    date: str  # "2026-03-15", unique per log history
    severity: int  # 0-10
    took_medicine: bool
    memo: str

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "SymptomLog":
        """Build from stored JSON; accepts camelCase keys. Raises on bad data."""
        severity = data["severity"]
        if isinstance(severity, bool) or not isinstance(severity, int) or not 0 <= severity <= 10:
            raise ValueError(f"invalid severity: {severity!r}")
        log_date = data["date"]
        if not isinstance(log_date, str) or not log_date:
            raise ValueError(f"invalid date: {log_date!r}")
        took = data.get("took_medicine", data.get("tookMedicine", False))
        return cls(
            date=log_date,
            severity=severity,
            took_medicine=bool(took),
            memo=str(data.get("memo", "")),
        )


def upsert_log(logs: list[SymptomLog], entry: SymptomLog) -> list[SymptomLog]:
    """Put entry first, replacing any log for the same date, and cap the history."""
    kept = [log for log in logs if log.date != entry.date]
    return [entry, *kept][:MAX_LOGS]


def _mean(logs: list[SymptomLog]) -> float:
    return sum(log.severity for log in logs) / len(logs)


def weekly_average(logs: list[SymptomLog]) -> Optional[float]:
    """Mean severity of the latest (up to) 7 entries, one decimal; None when empty."""
    if not logs:
        return None
    return round_half_up(_mean(logs[:WEEKLY_WINDOW]), 1)


def severity_trend(logs: list[SymptomLog]) -> Optional[float]:
    """Latest 3 entries' mean minus the previous 3 entries' mean.

    None (not 0) until there are at least 6 entries.
    """
    if len(logs) < TREND_WINDOW * 2:
        return None
    latest = logs[:TREND_WINDOW]
    previous = logs[TREND_WINDOW:TREND_WINDOW * 2]
    return round_half_up(_mean(latest) - _mean(previous), 1)


def default_actions() -> dict[str, bool]:
    return {key: False for key in ACTION_KEYS}


def normalize_actions(raw: object) -> dict[str, bool]:
    """Keep known action keys only; missing keys default to False."""
    actions = default_actions()
    if isinstance(raw, dict):
        for key in ACTION_KEYS:
            value = raw.get(key)
            if isinstance(value, bool):
                actions[key] = value
    return actions


def toggle_action(actions: dict[str, bool], key: str) -> dict[str, bool]:
    if key not in ACTION_KEYS:
        raise KeyError(key)
    updated = normalize_actions(actions)
    updated[key] = not updated[key]
    return updated


def completion_rate(actions: dict[str, bool]) -> int:
    """Percentage of the checklist done, rounded to an integer."""
    done = sum(1 for key in ACTION_KEYS if actions.get(key))
    return int(round_half_up(done / len(ACTION_KEYS) * 100))
