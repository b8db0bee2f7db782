"""Pytest configuration for psd-preview tests."""

import pytest
from PIL import Image

from psd_preview.api.document import SourceNode
from psd_preview.api.store import ProceduralStore
from psd_preview.api.template import Bounds, Template, TemplateContainer

from .psd_preview.utils import make_document, make_layer, make_payload, solid


@pytest.fixture
def hero_payload():
    return make_payload(
        [make_layer("L1", "Bg", coords=(0, 0, 300, 200))],
        size=(300, 200),
        container="Hero",
    )


@pytest.fixture
def hero_document():
    return make_document("psd-1", [SourceNode("Bg", id="L1", canvas=solid((300, 200)))])


@pytest.fixture
def hero_template() -> Template:
    return Template(
        "Banner",
        [TemplateContainer("Hero", Bounds(0, 0, 300, 200), original_name="HERO_01")],
    )


@pytest.fixture
def store(hero_document, hero_template) -> ProceduralStore:
    store = ProceduralStore()
    store.documents.register(hero_document)
    store.templates.register(hero_template)
    return store


@pytest.fixture
def png_file(tmp_path):
    def _create(name: str, size=(10, 10), color=(255, 0, 0, 255)) -> str:
        path = tmp_path / name
        Image.new("RGBA", size, color).save(path)
        return str(path)

    return _create
