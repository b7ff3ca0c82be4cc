"""XML reading and writing utilities.

Uses lxml so that project files keep their comments, indentation and
unrelated elements when modified and saved. This is important for keeping
the rewritten build files readable and diff-friendly.

Two fidelity levels are supported:
- whitespace-preserving (project rewriting): insignificant whitespace,
  the XML declaration, a UTF-8 BOM and trailing newlines survive a save.
- reformatting (reference injection, config cleanup): blank text is
  dropped on load and the tree is pretty-printed on save.
"""

from __future__ import annotations

import io
import re
from collections.abc import Iterator
from pathlib import Path

from lxml import etree

from .errors import DocumentParseError, MissingFileError

# BOM and XML declaration, plus the whitespace that follows them
_PROLOG = re.compile(rb"^(?:\xef\xbb\xbf)?(?:<\?xml[^>]*\?>)?\s*")
_TRAILING_SPACE = re.compile(rb"\s*$")


def local_name(node: etree._Element) -> str | None:
    """Return the tag name of an element without its namespace.

    Comments and processing instructions have no tag name and return None.
    """
    if not isinstance(node.tag, str):
        return None
    return etree.QName(node).localname


def get_attribute(node: etree._Element, name: str, remove: bool = False) -> str | None:
    """Read an attribute value, optionally removing it from the element.

    Returns None when the attribute is not present.
    """
    value = node.get(name)
    if value is not None and remove:
        del node.attrib[name]
    return value


def has_child_elements(node: etree._Element) -> bool:
    """True if the element has at least one child element (comments ignored)."""
    return any(isinstance(child.tag, str) for child in node)


def insert_before(anchor: etree._Element, node: etree._Element) -> None:
    """Insert node as the sibling immediately before anchor."""
    anchor.addprevious(node)


def insert_after(anchor: etree._Element, node: etree._Element) -> None:
    """Insert node as the sibling immediately after anchor."""
    anchor.addnext(node)


def remove_node(node: etree._Element) -> None:
    """Detach a node from its parent, keeping the surrounding layout.

    lxml drops the tail text together with the element. The whitespace that
    preceded the node is replaced by the node's own tail so the next sibling
    (or the parent's closing tag) keeps its indentation.
    """
    parent = node.getparent()
    if parent is None:
        raise ValueError("Cannot remove the document root")

    tail = node.tail
    previous = node.getprevious()
    if previous is not None:
        if previous.tail is None or not previous.tail.strip():
            previous.tail = tail
        elif tail:
            previous.tail += tail
    elif parent.text is None or not parent.text.strip():
        parent.text = tail
    elif tail:
        parent.text += tail

    parent.remove(node)


class XmlDocument:
    """A mutable, loaded XML document with dirty tracking.

    Attributes:
        path: File the document was loaded from (None for parsed strings).
        tree: The underlying lxml element tree.
        preserve_whitespace: Whether insignificant whitespace is kept.
        dirty: Set by callers once the tree has been modified.
    """

    def __init__(
        self,
        tree: etree._ElementTree,
        *,
        path: Path | None = None,
        preserve_whitespace: bool = True,
        prolog: bytes = b"",
        epilog: bytes = b"",
        crlf: bool = False,
    ) -> None:
        self.tree = tree
        self.path = path
        self.preserve_whitespace = preserve_whitespace
        self.dirty = False
        self._prolog = prolog
        self._epilog = epilog
        self._crlf = crlf

    @classmethod
    def parse(
        cls,
        data: bytes | str,
        *,
        path: Path | None = None,
        preserve_whitespace: bool = True,
    ) -> XmlDocument:
        """Parse XML text into a document.

        Raises:
            DocumentParseError: If the text is not well-formed XML.
        """
        if isinstance(data, str):
            data = data.encode("utf-8")

        parser = etree.XMLParser(
            remove_blank_text=not preserve_whitespace,
            resolve_entities=False,
        )
        try:
            tree = etree.parse(io.BytesIO(data), parser)
        except etree.XMLSyntaxError as exc:
            raise DocumentParseError(path, str(exc)) from exc

        prolog = b""
        epilog = b""
        if preserve_whitespace:
            prolog = _PROLOG.match(data).group(0)
            epilog = _TRAILING_SPACE.search(data).group(0)
        else:
            # Keep the BOM and declaration, but let pretty-printing lay out the rest
            prolog = _PROLOG.match(data).group(0).rstrip()
            if prolog.endswith(b"?>"):
                prolog += b"\n"

        return cls(
            tree,
            path=path,
            preserve_whitespace=preserve_whitespace,
            prolog=prolog,
            epilog=epilog,
            crlf=preserve_whitespace and b"\r\n" in data,
        )

    @classmethod
    def load(cls, path: Path, *, preserve_whitespace: bool = True) -> XmlDocument:
        """Load and parse an XML file.

        Raises:
            MissingFileError: If the file does not exist or cannot be read.
            DocumentParseError: If the file is not well-formed XML.
        """
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise MissingFileError(path, exc.strerror) from exc
        return cls.parse(data, path=path, preserve_whitespace=preserve_whitespace)

    @property
    def root(self) -> etree._Element:
        return self.tree.getroot()

    @property
    def namespace(self) -> str | None:
        """Namespace URI of the root element, or None for unqualified documents."""
        return etree.QName(self.root).namespace

    def iter_local(self, name: str, within: etree._Element | None = None) -> Iterator[etree._Element]:
        """Yield descendant elements whose local name matches, in document order.

        Matching ignores any namespace bound to the tag, since MSBuild files
        are written both with and without the msbuild/2003 namespace.
        """
        scope = self.root if within is None else within
        for node in scope.iter(etree.Element):
            if node is within:
                continue
            if local_name(node) == name:
                yield node

    def find_all(self, name: str, within: etree._Element | None = None) -> list[etree._Element]:
        """List descendant elements by local name, in document order."""
        return list(self.iter_local(name, within))

    def find_first(self, name: str) -> etree._Element | None:
        return next(self.iter_local(name), None)

    def make_element(self, name: str, **attrib: str) -> etree._Element:
        """Create a detached element in the root element's namespace."""
        tag = etree.QName(self.namespace, name) if self.namespace else name
        return etree.Element(tag, attrib)

    def to_bytes(self) -> bytes:
        """Serialize the document, keeping the original prolog."""
        encoding = self.tree.docinfo.encoding or "UTF-8"
        body = etree.tostring(
            self.tree,
            encoding=encoding,
            xml_declaration=False,
            pretty_print=not self.preserve_whitespace,
        )
        if self.preserve_whitespace:
            body = body.rstrip()
            # libxml2 normalizes line endings to LF on parse
            if self._crlf:
                body = body.replace(b"\n", b"\r\n")
            body += self._epilog
        return self._prolog + body

    def write(self) -> None:
        """Persist the document to its path unconditionally."""
        if self.path is None:
            raise ValueError("Document has no path to write to")
        self.path.write_bytes(self.to_bytes())
        self.dirty = False

    def save(self, *, dry_run: bool = False) -> bool:
        """Persist the document if it was modified and this is not a dry run.

        Returns:
            True if the file was written.
        """
        if not self.dirty or dry_run:
            return False
        self.write()
        return True
