import os
import shutil
import tempfile
import unittest

from tracker.config import Settings
from tracker.context import TrackerContext
from tracker.events import process_event
from tracker.records import InboundEvent


class FakeTransport:
    def __init__(self, participants=("u1", "u2")):
        self.calls = 0
        self.fail = False
        self.participants = list(participants)

    async def fetch_group_metadata(self, group_id):
        self.calls += 1
        if self.fail:
            raise ConnectionError("offline")
        return {"id": group_id, "subject": "Hidden Leaf", "participants": list(self.participants)}


def raw(participant="u1", group=True, **overrides):
    data = {
        "remoteJid": "g1" if group else participant,
        "participantId": participant,
        "pushName": "Naruto",
        "messageType": "text",
        "isGroupEvent": group,
        "fromMe": False,
    }
    data.update(overrides)
    return data


class TestProcessEvent(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.tmp = tempfile.mkdtemp()
        self.context = TrackerContext(Settings(data_dir=self.tmp))
        self.client = FakeTransport()

    def tearDown(self):
        shutil.rmtree(self.tmp, ignore_errors=True)

    async def test_group_event_updates_both_datasets(self):
        await process_event(self.context, raw(), self.client)
        groups = self.context.buffer.load_group_data()
        users = self.context.buffer.load_user_data()
        self.assertEqual(groups["g1"].participants["u1"].occurrences, 1)
        self.assertEqual(groups["g1"].name, "Hidden Leaf")
        self.assertEqual(users.users["u1"].total_messages_in_group, 1)
        self.assertTrue(self.context.buffer.group_dirty)
        self.assertTrue(self.context.buffer.user_dirty)

    async def test_metadata_fetched_once_within_ttl(self):
        for _ in range(5):
            await process_event(self.context, raw(), self.client)
        self.assertEqual(self.client.calls, 1)
        self.assertEqual(self.context.buffer.load_group_data()["g1"].participants["u1"].occurrences, 5)

    async def test_private_event_skips_metadata(self):
        await process_event(self.context, raw("u7", group=False), self.client)
        self.assertEqual(self.client.calls, 0)
        self.assertFalse(self.context.buffer.group_dirty)
        self.assertEqual(self.context.buffer.load_user_data().users["u7"].total_messages_outside_group, 1)

    async def test_own_messages_are_ignored(self):
        await process_event(self.context, raw(fromMe=True), self.client)
        self.assertFalse(self.context.buffer.user_dirty)

    async def test_missing_fields_get_defaults(self):
        await process_event(self.context, raw(pushName=None, messageType=None), self.client)
        participant = self.context.buffer.load_group_data()["g1"].participants["u1"]
        self.assertEqual(participant.push_name, "Unknown")
        self.assertIn("unknown", participant.message_types)

    async def test_failures_are_logged_and_swallowed(self):
        self.client.fail = True
        with self.assertLogs(level="ERROR"):
            result = await process_event(self.context, raw(), self.client)
        self.assertIsNone(result)
        self.assertFalse(self.context.buffer.user_dirty)

        # the stream keeps flowing
        self.client.fail = False
        await process_event(self.context, raw(), self.client)
        self.assertTrue(self.context.buffer.user_dirty)

    async def test_malformed_event_does_not_raise(self):
        with self.assertLogs(level="ERROR"):
            await process_event(self.context, {"pushName": "no jid"}, self.client)

    async def test_inbound_event_passes_through(self):
        event = InboundEvent(remote_jid="g1", participant_id="u2", is_group=True)
        await self.context.process_event(event, self.client)
        self.assertIn("u2", self.context.buffer.load_group_data()["g1"].participants)

    async def test_group_and_private_ids_are_separate_keyspaces(self):
        await process_event(self.context, raw("u1"), self.client)
        await process_event(self.context, raw("U1@private", group=False), self.client)
        users = self.context.buffer.load_user_data().users
        self.assertEqual(users["u1"].total_messages, 1)
        self.assertEqual(users["U1@private"].total_messages, 1)


if __name__ == '__main__':
    unittest.main()
