# tracker/metrics.py
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from .records import GroupRecord, ParticipantRecord

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]


def _parse(ts: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(ts)
    except (TypeError, ValueError):
        return None


def _parse_all(timestamps) -> List[datetime]:
    return [d for d in (_parse(t) for t in timestamps) if d is not None]


def time_period(hour: int) -> str:
    if 6 <= hour < 12:
        return "morning"
    if 12 <= hour < 18:
        return "afternoon"
    if 18 <= hour < 24:
        return "night"
    return "dawn"


def _peak(counter: Counter):
    if not counter:
        return None, 0
    return counter.most_common(1)[0]


def average_interval(timestamps) -> float:
    """Mean seconds between consecutive messages, 0 with fewer than two."""
    dates = sorted(_parse_all(timestamps))
    if len(dates) < 2:
        return 0.0
    gaps = [(b - a).total_seconds() for a, b in zip(dates, dates[1:])]
    return sum(gaps) / len(gaps)


def growth_summary(group: GroupRecord) -> Optional[Dict]:
    history = sorted(group.growth_history, key=lambda s: s.timestamp or "")
    if len(history) < 2:
        return None
    initial, final = history[0].size, history[-1].size
    growth = final - initial
    return {
        "initial_size": initial,
        "final_size": final,
        "growth": growth,
        "percentage": round(growth / initial * 100, 2) if initial else None,
    }


def most_used_type(participant: ParticipantRecord) -> Optional[str]:
    if not participant.message_types:
        return None
    return max(participant.message_types.items(), key=lambda kv: kv[1].count)[0]


def participation_ranking(group: GroupRecord, limit: int = 5) -> List[Dict]:
    total = sum(p.occurrences for p in group.participants.values())
    ranking = []
    for pid, p in group.participants.items():
        hours = Counter(d.hour for d in _parse_all(p.timestamps))
        peak_hour, peak_count = _peak(hours)
        ranking.append({
            "id": pid,
            "push_name": p.push_name,
            "occurrences": p.occurrences,
            "frequency": round(p.occurrences / total * 100, 2) if total else 0.0,
            "most_used_type": most_used_type(p),
            "peak_hour": peak_hour,
            "peak_hour_messages": peak_count,
        })
    ranking.sort(key=lambda r: r["occurrences"], reverse=True)
    return ranking[:limit]


def group_metrics(group: GroupRecord, top: int = 5) -> Dict:
    """Activity summary for one group."""
    participants = list(group.participants.values())
    active = [p for p in participants if p.occurrences > 0]
    total_messages = sum(p.occurrences for p in participants)
    dates = [d for p in participants for d in _parse_all(p.timestamps)]

    hourly = Counter(d.hour for d in dates)
    peak_hour, peak_messages = _peak(hourly)

    per_day = {}
    for day in sorted({d.weekday() for d in dates}):
        day_hours = Counter(d.hour for d in dates if d.weekday() == day)
        hour, count = _peak(day_hours)
        per_day[WEEKDAYS[day]] = {
            "total_messages": sum(day_hours.values()),
            "peak_hour": hour,
            "peak_messages": count,
        }

    return {
        "name": group.name,
        "total_participants": group.size,
        "active_participants": len(active),
        "inactive_participants": max(group.size - len(active), 0),
        "total_messages": total_messages,
        "engagement": round(total_messages / len(active)) if active else 0,
        "hourly_activity": dict(sorted(hourly.items())),
        "peak_hour": peak_hour,
        "peak_hour_messages": peak_messages,
        "periods": dict(Counter(time_period(d.hour) for d in dates)),
        "per_weekday": per_day,
        "average_interval": (
            sum(average_interval(p.timestamps) for p in active) / len(active) if active else 0.0
        ),
        "growth": growth_summary(group),
        "top_participants": participation_ranking(group, top),
    }


def user_metrics(group: GroupRecord, participant_id: str) -> Optional[Dict]:
    """Activity of one participant inside a group, None if never seen there."""
    p = group.participants.get(participant_id)
    if p is None:
        return None
    dates = sorted(_parse_all(p.timestamps))
    peak_hour, peak_count = _peak(Counter(d.hour for d in dates))
    return {
        "push_name": p.push_name,
        "total_messages": p.occurrences,
        "message_types": {k: v.count for k, v in p.message_types.items()},
        "first_message": dates[0].isoformat() if dates else None,
        "last_message": dates[-1].isoformat() if dates else None,
        "peak_hour": peak_hour,
        "peak_hour_messages": peak_count,
        "average_interval": average_interval(p.timestamps),
    }
