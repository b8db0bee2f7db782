"""
JSON loaders for payloads, templates and document manifests.

A document manifest mirrors :py:class:`~psd_preview.api.document.SourceDocument`;
``canvas`` entries are image file paths relative to the manifest. They are
decoded when the manifest is loaded and no file handle is kept open::

    {
        "id": "psd-1",
        "children": [
            {"name": "Bg", "id": "L1", "canvas": "bg.png"},
            {"name": "Group", "children": [{"name": "Logo", "canvas": "logo.png"}]}
        ]
    }
"""

import json
import logging
import os
from typing import Any, Union

from PIL import Image

from psd_preview.api.document import SourceDocument, SourceNode
from psd_preview.api.payload import TransformedPayload
from psd_preview.api.template import Template

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def _read_json(path: PathLike) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_payload(path: PathLike) -> TransformedPayload:
    return TransformedPayload.from_dict(_read_json(path))


def load_templates(path: PathLike) -> list[Template]:
    """Load one template, a list of templates, or a name to template mapping."""
    data = _read_json(path)
    if isinstance(data, dict) and "containers" in data:
        return [Template.from_dict(data)]
    if isinstance(data, dict):
        return [
            Template.from_dict(dict(value, name=value.get("name", name)))
            for name, value in data.items()
        ]
    return [Template.from_dict(item) for item in data]


def load_document(path: PathLike) -> SourceDocument:
    """Load a document manifest and decode its images."""
    data = _read_json(path)
    root = os.path.dirname(os.path.abspath(path))
    if "id" not in data:
        raise ValueError("document manifest is missing required key 'id'")
    document = SourceDocument(
        data["id"], [_load_node(child, root) for child in data.get("children") or ()]
    )
    logger.debug("Loaded %s from %s" % (document, path))
    return document


def _load_node(data: dict, root: str) -> SourceNode:
    if "name" not in data:
        raise ValueError("document node is missing required key 'name'")
    canvas = None
    if data.get("canvas"):
        with Image.open(os.path.join(root, data["canvas"])) as image:
            canvas = image.copy()
    return SourceNode(
        name=data["name"],
        id=data.get("id"),
        canvas=canvas,
        children=[_load_node(child, root) for child in data.get("children") or ()],
    )
