"""
In-memory CRDT engine for tasknotes.

This engine keeps the document as a plain tree so tests and dry runs can
inspect exactly what the tree builder produced. Its "update" encoding is a
JSON dump of the tree, so it is not wire-compatible with the web editor.
"""

import json
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .engine import CrdtEngine


Run = Tuple[str, Dict[str, Any]]


@dataclass
class MemoryNode:
    """A fragment, element or text node."""

    kind: str
    tag: Optional[str] = None
    attributes: Dict[str, str] = field(default_factory=dict)
    children: List["MemoryNode"] = field(default_factory=list)
    runs: List[Run] = field(default_factory=list)

    def text_length(self) -> int:
        return sum(len(text) for text, _ in self.runs)

    def to_dict(self) -> Dict[str, Any]:
        if self.kind == "text":
            return {"kind": "text", "runs": [[text, attrs] for text, attrs in self.runs]}
        data: Dict[str, Any] = {"kind": self.kind, "children": [child.to_dict() for child in self.children]}
        if self.tag is not None:
            data["tag"] = self.tag
        if self.attributes:
            data["attributes"] = dict(self.attributes)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryNode":
        if data["kind"] == "text":
            return cls(kind="text", runs=[(text, dict(attrs)) for text, attrs in data.get("runs", [])])
        return cls(
            kind=data["kind"],
            tag=data.get("tag"),
            attributes=dict(data.get("attributes", {})),
            children=[cls.from_dict(child) for child in data.get("children", [])],
        )


@dataclass
class MemoryDocument:
    fragments: Dict[str, MemoryNode] = field(default_factory=dict)
    transactions: int = 0
    clock: int = 0


class InMemoryEngine(CrdtEngine):
    """
    Deterministic engine that stores documents as MemoryNode trees.
    """

    def create_document(self) -> MemoryDocument:
        return MemoryDocument()

    def get_fragment(self, doc: MemoryDocument, name: str) -> MemoryNode:
        return doc.fragments.setdefault(name, MemoryNode(kind="fragment"))

    @contextmanager
    def transaction(self, doc: MemoryDocument) -> Iterator[MemoryDocument]:
        doc.transactions += 1
        yield doc
        doc.clock += 1

    def append_element(self, parent: MemoryNode, tag: str) -> MemoryNode:
        element = MemoryNode(kind="element", tag=tag)
        parent.children.append(element)
        return element

    def append_text(self, element: MemoryNode) -> MemoryNode:
        text_node = MemoryNode(kind="text")
        element.children.append(text_node)
        return text_node

    def insert_text(self, node: MemoryNode, offset: int, text: str, attributes: Optional[Dict[str, Any]] = None) -> int:
        if offset < 0 or offset > node.text_length():
            raise IndexError(f"Offset {offset} outside text of length {node.text_length()}")

        marks = {name: value for name, value in (attributes or {}).items() if value is not None}
        position = 0
        for index, (existing, existing_marks) in enumerate(node.runs):
            if position + len(existing) >= offset:
                split = offset - position
                node.runs[index:index + 1] = [
                    run for run in (
                        (existing[:split], existing_marks),
                        (text, marks),
                        (existing[split:], existing_marks),
                    ) if run[0]
                ]
                break
            position += len(existing)
        else:
            node.runs.append((text, marks))

        return offset + len(text)

    def set_attribute(self, element: MemoryNode, name: str, value: str) -> None:
        element.attributes[name] = value

    def child_count(self, node: MemoryNode) -> int:
        return len(node.children)

    def clear_children(self, node: MemoryNode) -> None:
        node.children.clear()

    def encode_state_vector(self, doc: MemoryDocument) -> bytes:
        return json.dumps({"clock": doc.clock}).encode("utf-8")

    def encode_update(self, doc: MemoryDocument) -> bytes:
        payload = {name: fragment.to_dict() for name, fragment in doc.fragments.items()}
        return json.dumps({"fragments": payload}, sort_keys=True).encode("utf-8")

    def apply_update(self, doc: MemoryDocument, update: bytes) -> None:
        data = json.loads(update.decode("utf-8"))
        if not isinstance(data, dict) or not isinstance(data.get("fragments"), dict):
            raise ValueError("Not an in-memory document update")
        for name, fragment in data["fragments"].items():
            doc.fragments[name] = MemoryNode.from_dict(fragment)
        doc.clock += 1

    def outline(self, node: MemoryNode) -> List[Dict[str, Any]]:
        described = []
        for child in node.children:
            if child.kind == "text":
                described.append({"text": [text for text, _ in child.runs]})
            else:
                entry: Dict[str, Any] = {"tag": child.tag, "children": self.outline(child)}
                if child.attributes:
                    entry["attributes"] = dict(child.attributes)
                described.append(entry)
        return described
