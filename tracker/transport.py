# tracker/transport.py
import logging

from telethon import utils
from telethon.tl.functions.channels import GetFullChannelRequest
from telethon.tl.functions.messages import GetFullChatRequest
from telethon.tl.types import Channel, ChannelParticipantCreator, ChatParticipantCreator

from .records import InboundEvent

# Checked in order; the first attribute set on the message names its type
_MESSAGE_KINDS = (
    "sticker", "gif", "voice", "video_note", "video", "audio", "photo",
    "poll", "contact", "venue", "geo", "dice", "game", "invoice", "document",
)


def message_type_of(message) -> str:
    if message is None:
        return "unknown"
    for kind in _MESSAGE_KINDS:
        if getattr(message, kind, None):
            return kind
    media = getattr(message, "media", None)
    if media is not None:
        return type(media).__name__
    if getattr(message, "message", None):
        return "text"
    return "unknown"


async def event_from_telethon(event) -> InboundEvent:
    """Reduce a telethon NewMessage event to an InboundEvent."""
    message = getattr(event, "message", None)
    push_name = None
    try:
        sender = await event.get_sender()
        if sender is not None:
            push_name = utils.get_display_name(sender)
    except Exception as e:
        logging.debug(f"Could not resolve sender for chat {event.chat_id}: {e}")

    return InboundEvent(
        remote_jid=str(event.chat_id),
        participant_id=str(event.sender_id if event.sender_id is not None else event.chat_id),
        push_name=push_name or "Unknown",
        message_type=message_type_of(message),
        is_group=bool(event.is_group),
        from_me=bool(getattr(event, "out", False)),
    )


class TelethonTransport:
    """Group metadata lookups on a connected TelegramClient."""

    def __init__(self, client):
        self.client = client

    async def _participants(self, entity):
        try:
            return await self.client.get_participants(entity)
        except Exception as e:
            logging.warning(f"⚠️ Could not list participants of {getattr(entity, 'id', entity)}: {e}")
            return []

    async def fetch_group_metadata(self, group_id):
        entity = await self.client.get_entity(int(group_id))
        if isinstance(entity, Channel):
            full = await self.client(GetFullChannelRequest(entity))
        else:
            full = await self.client(GetFullChatRequest(entity.id))
        full_chat = full.full_chat

        participants = await self._participants(entity)
        owner = None
        for user in participants:
            if isinstance(getattr(user, "participant", None), (ChannelParticipantCreator, ChatParticipantCreator)):
                owner = str(user.id)
                break

        date = getattr(entity, "date", None)
        return {
            "id": str(utils.get_peer_id(entity)),
            "subject": getattr(entity, "title", None),
            "participants": [str(u.id) for u in participants],
            "size": len(participants) or getattr(full_chat, "participants_count", 0) or 0,
            "owner": owner,
            "creation": int(date.timestamp()) if date else None,
            "desc": getattr(full_chat, "about", None),
            "announce": bool(getattr(entity, "broadcast", False)),
            "isCommunity": bool(getattr(entity, "forum", False)),
            "joinApprovalMode": bool(getattr(entity, "join_request", False)),
        }
