import unittest
from types import SimpleNamespace

from telethon.tl.types import User

from tracker.transport import event_from_telethon, message_type_of


class FakeTelethonEvent:
    def __init__(self, message, chat_id=-100123, sender_id=42, is_group=True, out=False, sender=None):
        self.message = message
        self.chat_id = chat_id
        self.sender_id = sender_id
        self.is_group = is_group
        self.out = out
        self._sender = sender

    async def get_sender(self):
        return self._sender


class MessageMediaWebPage:
    pass


class TestMessageType(unittest.TestCase):
    def test_text(self):
        self.assertEqual(message_type_of(SimpleNamespace(message="hi", media=None)), "text")

    def test_media_kinds(self):
        self.assertEqual(message_type_of(SimpleNamespace(message="", photo=object(), media=object())), "photo")
        self.assertEqual(message_type_of(SimpleNamespace(message="", sticker=object(), document=object())), "sticker")
        self.assertEqual(message_type_of(SimpleNamespace(message="", voice=object(), audio=object())), "voice")

    def test_unmapped_media_uses_class_name(self):
        self.assertEqual(message_type_of(SimpleNamespace(message="link", media=MessageMediaWebPage())), "MessageMediaWebPage")

    def test_missing(self):
        self.assertEqual(message_type_of(None), "unknown")
        self.assertEqual(message_type_of(SimpleNamespace(message="", media=None)), "unknown")


class TestEventFromTelethon(unittest.IsolatedAsyncioTestCase):
    async def test_group_message(self):
        sender = User(id=42, first_name="Naruto", last_name="Uzumaki")
        event = FakeTelethonEvent(SimpleNamespace(message="dattebayo", media=None), sender=sender)
        inbound = await event_from_telethon(event)
        self.assertEqual(inbound.remote_jid, "-100123")
        self.assertEqual(inbound.participant_id, "42")
        self.assertEqual(inbound.push_name, "Naruto Uzumaki")
        self.assertEqual(inbound.message_type, "text")
        self.assertTrue(inbound.is_group)
        self.assertFalse(inbound.from_me)

    async def test_unknown_sender_and_outgoing(self):
        event = FakeTelethonEvent(SimpleNamespace(message="x", media=None), sender_id=None, out=True)
        inbound = await event_from_telethon(event)
        self.assertEqual(inbound.push_name, "Unknown")
        self.assertEqual(inbound.participant_id, "-100123")
        self.assertTrue(inbound.from_me)


if __name__ == '__main__':
    unittest.main()
