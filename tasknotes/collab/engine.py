"""
CRDT engine interface for tasknotes.

The tree builder and snapshot codec only talk to a CrdtEngine, so the
collaborative document library can be swapped (or replaced by an in-memory
engine in tests) without touching the document layout code.
"""

from abc import ABC, abstractmethod
from typing import Any, ContextManager, Dict, List, Optional

from pycrdt import Doc, XmlElement, XmlFragment, XmlText


class CrdtEngine(ABC):
    """
    Abstract base class for collaborative document engines.

    Documents, fragments, elements and text nodes are opaque handles owned by
    the engine; callers only pass them back into engine methods.
    """

    @abstractmethod
    def create_document(self) -> Any:
        """
        Create a new, empty document.

        Returns:
            An engine-specific document handle
        """
        pass

    @abstractmethod
    def get_fragment(self, doc: Any, name: str) -> Any:
        """
        Get (creating if needed) the named root XML fragment of a document.
        """
        pass

    @abstractmethod
    def transaction(self, doc: Any) -> ContextManager[Any]:
        """
        Open a transaction; all changes made inside it form one update.
        """
        pass

    @abstractmethod
    def append_element(self, parent: Any, tag: str) -> Any:
        """
        Append a new element to a fragment or element.

        Returns:
            The element, already attached to parent
        """
        pass

    @abstractmethod
    def append_text(self, element: Any) -> Any:
        """
        Append a new, empty text node to an element.

        Returns:
            The text node, already attached to element
        """
        pass

    @abstractmethod
    def insert_text(self, node: Any, offset: int, text: str, attributes: Optional[Dict[str, Any]] = None) -> int:
        """
        Insert a formatted run into a text node.

        Args:
            node: Text node handle
            offset: Position to insert at
            text: Run text
            attributes: Formatting marks; a None value removes a mark

        Returns:
            The offset just past the inserted run
        """
        pass

    @abstractmethod
    def set_attribute(self, element: Any, name: str, value: str) -> None:
        pass

    @abstractmethod
    def child_count(self, node: Any) -> int:
        pass

    @abstractmethod
    def clear_children(self, node: Any) -> None:
        """Remove every child of a fragment or element."""
        pass

    @abstractmethod
    def encode_state_vector(self, doc: Any) -> bytes:
        pass

    @abstractmethod
    def encode_update(self, doc: Any) -> bytes:
        """Encode the full document state as a single update."""
        pass

    @abstractmethod
    def apply_update(self, doc: Any, update: bytes) -> None:
        """
        Apply an encoded update to a document.

        Raises:
            Exception: Engine-specific error for malformed updates
        """
        pass

    @abstractmethod
    def outline(self, node: Any) -> List[Dict[str, Any]]:
        """
        Describe the children of a fragment or element as plain data.

        Elements become {"tag", "children"} dicts and text nodes
        {"text": [run text, ...]}.
        """
        pass

    def load_document(self, update: bytes) -> Any:
        """Create a document and apply a full update to it."""
        doc = self.create_document()
        self.apply_update(doc, update)
        return doc


class PycrdtEngine(CrdtEngine):
    """
    Engine backed by pycrdt, the Python binding of the Rust port of Yjs.

    Updates and state vectors use the Yjs v1 encoding the web editor reads.
    """

    def create_document(self) -> Doc:
        return Doc()

    def get_fragment(self, doc: Doc, name: str) -> XmlFragment:
        return doc.get(name, type=XmlFragment)

    def transaction(self, doc: Doc):
        return doc.transaction()

    def append_element(self, parent, tag: str) -> XmlElement:
        return parent.children.append(XmlElement(tag))

    def append_text(self, element) -> XmlText:
        return element.children.append(XmlText())

    def insert_text(self, node: XmlText, offset: int, text: str, attributes: Optional[Dict[str, Any]] = None) -> int:
        before = len(node)
        if attributes:
            node.insert(offset, text, attributes)
        else:
            node.insert(offset, text)
        return offset + len(node) - before

    def set_attribute(self, element: XmlElement, name: str, value: str) -> None:
        element.attributes[name] = value

    def child_count(self, node) -> int:
        return len(node.children)

    def clear_children(self, node) -> None:
        for index in reversed(range(len(node.children))):
            del node.children[index]

    def encode_state_vector(self, doc: Doc) -> bytes:
        return doc.get_state()

    def encode_update(self, doc: Doc) -> bytes:
        return doc.get_update()

    def apply_update(self, doc: Doc, update: bytes) -> None:
        doc.apply_update(update)

    def outline(self, node) -> List[Dict[str, Any]]:
        described = []
        for child in node.children:
            if isinstance(child, XmlText):
                described.append({"text": [run for run, _ in child.diff()]})
            else:
                described.append({"tag": child.tag, "children": self.outline(child)})
        return described
