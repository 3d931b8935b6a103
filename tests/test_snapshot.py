"""
Unit tests for the collaborative snapshot codec.

Most tests run against the in-memory engine; TestPycrdtSnapshots checks the
real encoding produced with pycrdt.
"""

import base64
import unittest

from pycrdt import Doc, XmlFragment

from tasknotes.collab import (
    InMemoryEngine,
    PycrdtEngine,
    create_collab_snapshot,
    create_updated_collab_snapshot,
    rebuild_collab_snapshot,
)
from tasknotes.exceptions import ReplayWarning, ValidationError
from tasknotes.models import CollabSnapshot


TASK_ID = "507f1f77bcf86cd799439011"
DOC_NAME = f"tasks/notes/{TASK_ID}"


def decode(value):
    return base64.b64decode(value, validate=True)


class TestCreateSnapshot(unittest.TestCase):
    """Test snapshots for new tasks."""

    def setUp(self):
        self.engine = InMemoryEngine()

    def load_outline(self, snapshot):
        doc = self.engine.load_document(decode(snapshot.updates[0].value))
        return self.engine.outline(self.engine.get_fragment(doc, "default"))

    def test_snapshot_shape(self):
        snapshot = create_collab_snapshot(TASK_ID, "Hello", engine=self.engine)

        self.assertEqual(snapshot.state.version, "v1_sv")
        self.assertEqual(snapshot.state.doc_name, DOC_NAME)
        self.assertEqual(snapshot.state.clock, 0)
        self.assertEqual(len(snapshot.updates), 1)

        update = snapshot.updates[0]
        self.assertEqual(update.version, "v1")
        self.assertEqual(update.action, "update")
        self.assertEqual(update.doc_name, DOC_NAME)
        self.assertEqual(update.clock, 0)

    def test_values_are_base64(self):
        snapshot = create_collab_snapshot(TASK_ID, "Hello", engine=self.engine)
        self.assertTrue(decode(snapshot.state.value))
        self.assertTrue(decode(snapshot.updates[0].value))

    def test_content_round_trip(self):
        snapshot = create_collab_snapshot(TASK_ID, "Hello **world**", engine=self.engine)
        self.assertEqual(self.load_outline(snapshot), [{"tag": "paragraph", "children": [{"text": ["Hello ", "world"]}]}])

    def test_empty_notes(self):
        for markdown in ("", None, "   "):
            with self.subTest(markdown=markdown):
                snapshot = create_collab_snapshot(TASK_ID, markdown, engine=self.engine)
                self.assertEqual(self.load_outline(snapshot), [{"tag": "paragraph", "children": [{"text": []}]}])

    def test_wire_payload(self):
        payload = create_collab_snapshot(TASK_ID, "x", engine=self.engine).to_payload()
        self.assertEqual(payload["state"]["docName"], DOC_NAME)
        self.assertEqual(payload["updates"][0]["docName"], DOC_NAME)

    def test_task_id_required(self):
        with self.assertRaises(ValidationError):
            create_collab_snapshot("", "x", engine=self.engine)


class TestUpdateSnapshot(unittest.TestCase):
    """Test snapshots rebuilt from a previous snapshot."""

    def setUp(self):
        self.engine = InMemoryEngine()
        self.previous = create_collab_snapshot(TASK_ID, "Old notes\n\n- old item", engine=self.engine)

    def load_outline(self, snapshot):
        doc = self.engine.load_document(decode(snapshot.updates[0].value))
        return self.engine.outline(self.engine.get_fragment(doc, "default"))

    def test_content_replaced(self):
        snapshot = create_updated_collab_snapshot(self.previous, "New notes", engine=self.engine)
        self.assertEqual(self.load_outline(snapshot), [{"tag": "paragraph", "children": [{"text": ["New notes"]}]}])

    def test_replay_succeeds(self):
        rebuild = rebuild_collab_snapshot(self.previous, "New notes", engine=self.engine)
        self.assertTrue(rebuild.replayed)
        self.assertIsNone(rebuild.replay_warning)

    def test_shape_preserved(self):
        snapshot = create_updated_collab_snapshot(self.previous, "New notes", engine=self.engine)

        self.assertEqual(snapshot.doc_name, DOC_NAME)
        self.assertEqual(snapshot.state.version, "v1_sv")
        self.assertEqual(snapshot.state.clock, 0)
        self.assertEqual(len(snapshot.updates), 1)
        self.assertEqual(snapshot.updates[0].doc_name, DOC_NAME)

    def test_accepts_wire_dict(self):
        snapshot = create_updated_collab_snapshot(self.previous.to_payload(), "New notes", engine=self.engine)
        self.assertIsInstance(snapshot, CollabSnapshot)
        self.assertEqual(snapshot.doc_name, DOC_NAME)

    def test_extra_state_fields_kept(self):
        payload = self.previous.to_payload()
        payload["state"]["clock"] = 12
        payload["state"]["origin"] = "web"

        snapshot = create_updated_collab_snapshot(payload, "New notes", engine=self.engine)
        state = snapshot.to_payload()["state"]
        self.assertEqual(state["origin"], "web")
        self.assertEqual(state["clock"], 0)

    def test_corrupt_update_is_not_fatal(self):
        payload = self.previous.to_payload()
        payload["updates"][0]["value"] = "!!!not-base64!!!"

        with self.assertLogs(level="WARNING") as logs:
            rebuild = rebuild_collab_snapshot(payload, "Recovered", engine=self.engine)

        self.assertFalse(rebuild.replayed)
        self.assertIsInstance(rebuild.replay_warning, ReplayWarning)
        self.assertEqual(rebuild.replay_warning.doc_name, DOC_NAME)
        self.assertIn("creating fresh document", logs.output[0])
        self.assertEqual(self.load_outline(rebuild.snapshot), [{"tag": "paragraph", "children": [{"text": ["Recovered"]}]}])

    def test_undecodable_update_is_not_fatal(self):
        payload = self.previous.to_payload()
        payload["updates"][0]["value"] = base64.b64encode(b"garbage").decode("ascii")

        with self.assertLogs(level="WARNING"):
            snapshot = create_updated_collab_snapshot(payload, "Recovered", engine=self.engine)

        self.assertEqual(len(snapshot.updates), 1)
        self.assertEqual(snapshot.doc_name, DOC_NAME)

    def test_invalid_payload_rejected(self):
        for payload in ({"updates": []}, {"state": {"version": "v1_sv"}}, ["not", "a", "snapshot"]):
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError) as ctx:
                    rebuild_collab_snapshot(payload, "New", engine=self.engine)
                self.assertEqual(ctx.exception.field, "collab_snapshot")

    def test_empty_updates_list(self):
        payload = self.previous.to_payload()
        payload["updates"] = []

        rebuild = rebuild_collab_snapshot(payload, "Fresh", engine=self.engine)
        self.assertTrue(rebuild.replayed)
        self.assertEqual(len(rebuild.snapshot.updates), 1)


class TestPycrdtSnapshots(unittest.TestCase):
    """Test the Yjs-compatible encoding."""

    def setUp(self):
        self.engine = PycrdtEngine()

    def load(self, snapshot):
        doc = Doc()
        doc.apply_update(decode(snapshot.updates[0].value))
        return doc.get("default", type=XmlFragment)

    def tags(self, snapshot):
        return [node["tag"] for node in self.engine.outline(self.load(snapshot))]

    def test_default_engine(self):
        snapshot = create_collab_snapshot(TASK_ID, "Hello")
        self.assertEqual(self.tags(snapshot), ["paragraph"])

    def test_block_elements(self):
        markdown = "# Title\n\n- a\n- b\n\n3. c\n\n> quote\n\n---"
        snapshot = create_collab_snapshot(TASK_ID, markdown, engine=self.engine)
        self.assertEqual(
            self.tags(snapshot),
            ["paragraph", "bulletList", "orderedList", "blockquote", "horizontalRule"],
        )

    def test_text_content(self):
        snapshot = create_collab_snapshot(TASK_ID, "Hello **world** again", engine=self.engine)
        paragraph = self.engine.outline(self.load(snapshot))[0]
        self.assertEqual("".join(paragraph["children"][0]["text"]), "Hello world again")

    def test_empty_notes(self):
        snapshot = create_collab_snapshot(TASK_ID, "", engine=self.engine)
        fragment = self.load(snapshot)
        self.assertEqual(self.engine.child_count(fragment), 1)
        self.assertEqual(self.engine.outline(fragment), [{"tag": "paragraph", "children": [{"text": []}]}])

    def test_update_replaces_content(self):
        previous = create_collab_snapshot(TASK_ID, "Old\n\n- x\n- y", engine=self.engine)
        rebuild = rebuild_collab_snapshot(previous, "New", engine=self.engine)

        self.assertTrue(rebuild.replayed)
        self.assertEqual(self.tags(rebuild.snapshot), ["paragraph"])

    def test_update_descends_from_previous(self):
        previous = create_collab_snapshot(TASK_ID, "Old", engine=self.engine)
        snapshot = create_updated_collab_snapshot(previous, "New", engine=self.engine)

        # A client holding the old state converges on the new content only
        doc = Doc()
        doc.apply_update(decode(previous.updates[0].value))
        doc.apply_update(decode(snapshot.updates[0].value))
        outline = self.engine.outline(doc.get("default", type=XmlFragment))

        self.assertEqual([node["tag"] for node in outline], ["paragraph"])
        self.assertEqual("".join(outline[0]["children"][0]["text"]), "New")
        self.assertNotEqual(snapshot.state.value, previous.state.value)

    def test_surrogate_reference_encodes(self):
        snapshot = create_collab_snapshot(TASK_ID, "see &#xD800; here", engine=self.engine)
        paragraph = self.engine.outline(self.load(snapshot))[0]
        self.assertEqual("".join(paragraph["children"][0]["text"]), "see \ufffd here")

        rebuild = rebuild_collab_snapshot(snapshot, "&#55296;", engine=self.engine)
        paragraph = self.engine.outline(self.load(rebuild.snapshot))[0]
        self.assertEqual("".join(paragraph["children"][0]["text"]), "\ufffd")

    def test_corrupt_update_is_not_fatal(self):
        payload = create_collab_snapshot(TASK_ID, "Old", engine=self.engine).to_payload()
        payload["updates"][0]["value"] = base64.b64encode(b"\xff\x00garbage").decode("ascii")

        with self.assertLogs(level="WARNING"):
            rebuild = rebuild_collab_snapshot(payload, "New", engine=self.engine)

        self.assertFalse(rebuild.replayed)
        self.assertEqual(self.tags(rebuild.snapshot), ["paragraph"])


if __name__ == '__main__':
    unittest.main(verbosity=2)
