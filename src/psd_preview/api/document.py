"""
Source document structure.

A source document is a read-only tree of named nodes. Each node may carry a
raster buffer (``canvas``), either a :py:class:`PIL.Image.Image` or a NumPy
array, and a stable path-like identifier.

Nodes without an explicit ``id`` are addressed by their index path, the
zero-based sibling indices from the root joined by ``.``, e.g. ``'0.2.1'``.

Example::

    from PIL import Image
    from psd_preview.api.document import SourceDocument, SourceNode

    document = SourceDocument('psd-1', [
        SourceNode('Bg', id='L1', canvas=Image.new('RGBA', (300, 200))),
        SourceNode('Group', children=[SourceNode('Logo')]),
    ])
    document.find_by_path('1.0')  # Logo
    document.find('Logo')         # Logo
"""

import logging
from typing import Any, Iterator, Optional

from attrs import define, field

logger = logging.getLogger(__name__)

PATH_SEPARATOR = "."


@define(eq=False)
class SourceNode:
    """
    Named node of a source document.

    .. py:attribute:: name
    .. py:attribute:: id

        Optional stable identifier. When None, the index path is used.

    .. py:attribute:: canvas

        Optional raster buffer.

    .. py:attribute:: children
    """

    name: str = field(converter=str)
    id: Optional[str] = None
    canvas: Any = None
    children: list["SourceNode"] = field(factory=list)

    def __repr__(self) -> str:
        return "%s(%r%s%s)" % (
            self.__class__.__name__,
            self.name,
            "" if self.id is None else " id=%r" % self.id,
            " with canvas" if self.has_canvas() else "",
        )

    def has_canvas(self) -> bool:
        return self.canvas is not None

    def is_group(self) -> bool:
        return bool(self.children)


@define(eq=False)
class SourceDocument:
    """
    Tree of source nodes registered under ``id``.

    Iterating a document yields its top-level nodes.
    """

    id: str = field(converter=str)
    children: list[SourceNode] = field(factory=list)

    def __repr__(self) -> str:
        return "%s(%r children=%d)" % (
            self.__class__.__name__,
            self.id,
            len(self.children),
        )

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[SourceNode]:
        return iter(self.children)

    def __getitem__(self, index: int) -> SourceNode:
        return self.children[index]

    def descendants(self) -> Iterator[tuple[str, SourceNode]]:
        """
        Iterate over ``(path, node)`` for every node, depth first in document
        order.
        """
        yield from _walk(self.children, ())

    def find_by_path(self, path: str) -> Optional[SourceNode]:
        """
        Return the node whose identifier equals `path`.

        Explicit ``id`` attributes take precedence over index paths: an index
        path only addresses nodes without an explicit ``id``.
        """
        for node_path, node in self.descendants():
            if node_path == path:
                return node
        return None

    def find(self, name: str) -> Optional[SourceNode]:
        """
        Returns the first node found for the given name.

        The search is depth first: a node's subtree is searched before its
        next sibling.
        """
        for node in self.findall(name):
            return node
        return None

    def findall(self, name: str) -> Iterator[SourceNode]:
        """Return a generator over all nodes with the given name."""
        for _, node in self.descendants():
            if node.name == name:
                yield node


def _walk(
    nodes: list[SourceNode], prefix: tuple[int, ...]
) -> Iterator[tuple[str, SourceNode]]:
    for index, node in enumerate(nodes):
        indices = prefix + (index,)
        if node.id is not None:
            path = node.id
        else:
            path = PATH_SEPARATOR.join(str(i) for i in indices)
        yield path, node
        yield from _walk(node.children, indices)
