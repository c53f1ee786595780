# tracker/events.py
import logging

from .aggregator import apply_event
from .records import InboundEvent
from .transport import event_from_telethon


async def normalize_event(event):
    if isinstance(event, InboundEvent):
        return event
    if isinstance(event, dict):
        return InboundEvent.from_dict(event)
    return await event_from_telethon(event)


async def process_event(context, event, client):
    """
    Count one inbound message. Never raises: a bad event is logged and dropped
    so the stream keeps flowing.
    """
    try:
        event = await normalize_event(event)
        if event.from_me:
            return

        meta = None
        if event.is_group:
            meta = await context.metadata.get(event.remote_jid, client.fetch_group_metadata)

        # No awaits below this line: the update lands in one step.
        groups = context.buffer.load_group_data()
        users = context.buffer.load_user_data()
        if apply_event(groups, users, event, meta):
            context.buffer.mark_group_dirty()
        context.buffer.mark_user_dirty()
        logging.debug(f"📨 Message counted: {event.participant_id} in {event.remote_jid} ({event.message_type})")
    except Exception as e:
        logging.error(f"❌ Failed to process message event: {e}", exc_info=True)
