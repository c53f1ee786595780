"""
Record types for the group and user datasets.

Every record reads itself from the camelCase JSON stored on disk and writes
itself back the same way. Keys a record does not model are kept in `extra`
so they survive the round trip.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


def _list(value) -> list:
    return list(value) if isinstance(value, list) else []


def _int(value, default=0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class MessageTypeStat:
    count: int = 0
    dates: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MessageTypeStat":
        if not isinstance(data, dict):
            return cls()
        return cls(count=_int(data.get("count")), dates=_list(data.get("dates")))

    def to_dict(self) -> Dict[str, Any]:
        return {"count": self.count, "dates": list(self.dates)}


def _types_from_dict(data) -> Dict[str, MessageTypeStat]:
    if not isinstance(data, dict):
        return {}
    return {k: MessageTypeStat.from_dict(v) for k, v in data.items()}


def _types_to_dict(types: Dict[str, MessageTypeStat]) -> Dict[str, Any]:
    return {k: v.to_dict() for k, v in types.items()}


@dataclass
class GrowthSample:
    size: int
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {"size": self.size, "timestamp": self.timestamp}


@dataclass
class ParticipantRecord:
    push_name: Optional[str] = None
    occurrences: int = 0
    timestamps: List[str] = field(default_factory=list)
    message_types: Dict[str, MessageTypeStat] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParticipantRecord":
        data = dict(data) if isinstance(data, dict) else {}
        return cls(
            push_name=data.pop("pushName", None),
            occurrences=_int(data.pop("occurrences", 0)),
            timestamps=_list(data.pop("timestamps", None)),
            message_types=_types_from_dict(data.pop("messageTypes", {})),
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update({
            "pushName": self.push_name,
            "occurrences": self.occurrences,
            "timestamps": list(self.timestamps),
            "messageTypes": _types_to_dict(self.message_types),
        })
        return out


@dataclass
class GroupRecord:
    id: str
    name: Optional[str] = None
    size: int = 0
    owner: Optional[str] = None
    creation: Optional[Any] = None
    desc: Optional[str] = None
    participants: Dict[str, ParticipantRecord] = field(default_factory=dict)
    growth_history: List[GrowthSample] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, group_id: str, data: Dict[str, Any]) -> "GroupRecord":
        data = dict(data) if isinstance(data, dict) else {}
        data.pop("id", None)
        participants = data.pop("participants", None) or {}
        history = _list(data.pop("growthHistory", None))
        return cls(
            id=group_id,
            name=data.pop("name", None),
            size=_int(data.pop("size", 0)),
            owner=data.pop("owner", None),
            creation=data.pop("creation", None),
            desc=data.pop("desc", None),
            participants={
                pid: ParticipantRecord.from_dict(p)
                for pid, p in (participants.items() if isinstance(participants, dict) else [])
            },
            growth_history=[
                GrowthSample(size=_int(s.get("size")), timestamp=s.get("timestamp"))
                for s in history if isinstance(s, dict)
            ],
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update({
            "id": self.id,
            "name": self.name,
            "size": self.size,
            "owner": self.owner,
            "creation": self.creation,
            "desc": self.desc,
            "participants": {pid: p.to_dict() for pid, p in self.participants.items()},
            "growthHistory": [s.to_dict() for s in self.growth_history],
        })
        return out


@dataclass
class UserRecord:
    push_name: Optional[str] = None
    total_messages: int = 0
    total_messages_in_group: int = 0
    total_messages_outside_group: int = 0
    first_seen: Optional[str] = None
    last_seen: Optional[str] = None
    timestamps: List[str] = field(default_factory=list)
    message_types: Dict[str, MessageTypeStat] = field(default_factory=dict)
    timestamp: Optional[int] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserRecord":
        data = dict(data) if isinstance(data, dict) else {}
        return cls(
            push_name=data.pop("pushName", None),
            total_messages=_int(data.pop("totalMessages", 0)),
            total_messages_in_group=_int(data.pop("totalMessagesInGroup", 0)),
            total_messages_outside_group=_int(data.pop("totalMessagesOutsideGroup", 0)),
            first_seen=data.pop("firstSeen", None),
            last_seen=data.pop("lastSeen", None),
            timestamps=_list(data.pop("timestamps", None)),
            message_types=_types_from_dict(data.pop("messageTypes", {})),
            timestamp=data.pop("timestamp", None),
            extra=data,
        )

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out.update({
            "pushName": self.push_name,
            "totalMessages": self.total_messages,
            "totalMessagesInGroup": self.total_messages_in_group,
            "totalMessagesOutsideGroup": self.total_messages_outside_group,
            "firstSeen": self.first_seen,
            "lastSeen": self.last_seen,
            "timestamps": list(self.timestamps),
            "messageTypes": _types_to_dict(self.message_types),
            "timestamp": self.timestamp,
        })
        return out


# --- DATASETS ---------------------------------------

class GroupDataset(dict):
    """group id -> GroupRecord, stored on disk as one JSON object."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroupDataset":
        return cls({gid: GroupRecord.from_dict(gid, g) for gid, g in data.items() if isinstance(g, dict)})

    def to_dict(self) -> Dict[str, Any]:
        return {gid: g.to_dict() for gid, g in self.items()}


@dataclass
class UserDataset:
    """Stored on disk as {"users": {id: UserRecord}}."""
    users: Dict[str, UserRecord] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserDataset":
        data = dict(data)
        users = data.pop("users", None)
        if not isinstance(users, dict):
            users = {}
        return cls(users={uid: UserRecord.from_dict(u) for uid, u in users.items()}, extra=data)

    def to_dict(self) -> Dict[str, Any]:
        out = dict(self.extra)
        out["users"] = {uid: u.to_dict() for uid, u in self.users.items()}
        return out


@dataclass
class InboundEvent:
    """One inbound message reduced to what the tracker counts."""
    remote_jid: str
    participant_id: str
    push_name: str = "Unknown"
    message_type: str = "unknown"
    is_group: bool = False
    from_me: bool = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InboundEvent":
        remote_jid = str(data["remoteJid"])
        is_group = bool(data.get("isGroupEvent", False))
        participant = data.get("participantId") or (None if is_group else remote_jid)
        if participant is None:
            raise ValueError("group event without participantId")
        return cls(
            remote_jid=remote_jid,
            participant_id=str(participant),
            push_name=data.get("pushName") or "Unknown",
            message_type=data.get("messageType") or "unknown",
            is_group=is_group,
            from_me=bool(data.get("fromMe", False)),
        )
