"""
Pure update functions applied once per inbound event.

Nothing here awaits or touches the disk, so a flush running on the same loop
never sees a half-updated record.
"""
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .records import GroupDataset, GroupRecord, GrowthSample, MessageTypeStat, ParticipantRecord, UserDataset, UserRecord

# transport metadata key -> GroupRecord attribute
_META_ATTRS = {
    "subject": "name",
    "owner": "owner",
    "creation": "creation",
    "desc": "desc",
}

# Descriptive flags kept verbatim on the record when the transport reports them
_META_FLAGS = (
    "subjectOwner", "subjectTime", "descId", "restrict", "announce",
    "isCommunity", "isCommunityAnnounce", "joinApprovalMode", "memberAddMode",
)


def iso_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _bump_type(types: Dict[str, MessageTypeStat], message_type: str, now: str):
    stat = types.get(message_type)
    if stat is None:
        stat = types[message_type] = MessageTypeStat()
    stat.count += 1
    stat.dates.append(now)


def metadata_size(meta: Dict[str, Any]) -> int:
    participants = meta.get("participants")
    if isinstance(participants, (list, tuple, dict)) and participants:
        return len(participants)
    return int(meta.get("size") or 0)


def apply_group_metadata(group: GroupRecord, meta: Dict[str, Any], now: str) -> GroupRecord:
    """Copy fresh transport metadata onto the record and sample growth on size change."""
    for key, attr in _META_ATTRS.items():
        if key in meta:
            setattr(group, attr, meta[key])
    for key in _META_FLAGS:
        if key in meta:
            group.extra[key] = meta[key]

    size = metadata_size(meta)
    group.size = size
    history = group.growth_history
    if not history or history[-1].size != size:
        history.append(GrowthSample(size=size, timestamp=now))
    return group


def record_participant_message(participant: ParticipantRecord, message_type: str, push_name: Optional[str], now: str):
    participant.push_name = push_name
    participant.occurrences += 1
    participant.timestamps.append(now)
    _bump_type(participant.message_types, message_type, now)


def record_user_message(users: UserDataset, participant_id: str, push_name: Optional[str],
                        message_type: str, is_group: bool, now: str, epoch: Optional[int] = None) -> UserRecord:
    user = users.users.get(participant_id)
    if user is None:
        user = UserRecord(
            push_name=push_name,
            first_seen=now,
            timestamp=epoch if epoch is not None else int(time.time()),
        )
        users.users[participant_id] = user

    user.push_name = push_name
    user.total_messages += 1
    user.last_seen = now
    user.timestamps.append(now)
    if is_group:
        user.total_messages_in_group += 1
    else:
        user.total_messages_outside_group += 1
    _bump_type(user.message_types, message_type, now)
    return user


def apply_event(groups: GroupDataset, users: UserDataset, event, meta: Optional[Dict[str, Any]],
                now: Optional[str] = None) -> bool:
    """
    Apply one inbound event to both datasets.
    Returns True when the group dataset was touched.
    """
    now = now or iso_now()
    group_touched = False

    if event.is_group and meta:
        group_id = str(meta.get("id") or event.remote_jid)
        group = groups.get(group_id)
        if group is None:
            group = groups[group_id] = GroupRecord(id=group_id)
        apply_group_metadata(group, meta, now)

        participant = group.participants.get(event.participant_id)
        if participant is None:
            participant = group.participants[event.participant_id] = ParticipantRecord(push_name=event.push_name)
        record_participant_message(participant, event.message_type, event.push_name, now)
        group_touched = True

    record_user_message(users, event.participant_id, event.push_name, event.message_type, event.is_group, now)
    return group_touched
