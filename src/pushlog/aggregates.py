"""Values derived from the ledger. Nothing here is stored or cached."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from .ledger import PushupEntry

DAILY_GOAL = 100
CHART_DAYS = 30


@dataclass(frozen=True)
class DayTotal:
    date: str
    label: str
    total: int

    def to_dict(self) -> Dict[str, object]:
        return {"date": self.date, "label": self.label, "pushups": self.total}


def _today(today: Optional[date]) -> date:
    return today if today is not None else date.today()


def _sum_for(entries: Sequence[PushupEntry], day: str) -> int:
    return sum(entry.count for entry in entries if entry.date == day)


def today_total(entries: Sequence[PushupEntry], today: Optional[date] = None) -> int:
    return _sum_for(entries, _today(today).isoformat())


def progress_ratio(total: int, goal: int = DAILY_GOAL) -> float:
    return min(total / goal, 1.0)


def last_30_days(entries: Sequence[PushupEntry], today: Optional[date] = None) -> List[DayTotal]:
    """Per-day totals for the 30 days ending today, oldest first."""
    end = _today(today)
    series: List[DayTotal] = []
    for offset in range(CHART_DAYS - 1, -1, -1):
        day = end - timedelta(days=offset)
        label = f"{day.strftime('%b')} {day.day}"
        series.append(DayTotal(date=day.isoformat(), label=label, total=_sum_for(entries, day.isoformat())))
    return series


def history(entries: Sequence[PushupEntry]) -> List[PushupEntry]:
    return list(reversed(entries))


def summary(entries: Sequence[PushupEntry], today: Optional[date] = None) -> Dict[str, object]:
    day = _today(today)
    total = today_total(entries, day)
    return {
        "date": day.isoformat(),
        "todayTotal": total,
        "dailyGoal": DAILY_GOAL,
        "progress": progress_ratio(total),
        "last30Days": [item.to_dict() for item in last_30_days(entries, day)],
    }
