import io
import logging

import numpy as np
import pytest
from PIL import Image

from psd_preview.api.document import SourceNode
from psd_preview.api.store import DocumentRegistry, TemplateRegistry
from psd_preview.api.template import Bounds, Template, TemplateContainer
from psd_preview.composite import Compositor, RenderRequest, paint, render, render_payload
from psd_preview.composite.utils import paint_order
from psd_preview.constants import GENERATIVE_STROKE, FramingMode, LayerType, LeafStatus

from ..utils import (
    GREEN,
    RED,
    WHITE,
    as_array,
    checker_color,
    make_document,
    make_layer,
    make_payload,
    pixel,
    solid,
)

logger = logging.getLogger(__name__)


def _truncated_png(size=(20, 20)) -> Image.Image:
    with io.BytesIO() as f:
        Image.fromarray(
            np.random.RandomState(0).randint(0, 255, (size[1], size[0], 4), np.uint8)
        ).save(f, format="PNG")
        data = f.getvalue()
    return Image.open(io.BytesIO(data[: len(data) // 2]))


@pytest.mark.parametrize("size", [(0, 100), (100, 0), (0, 0)])
def test_render_empty_target(size, hero_document):
    payload = make_payload([make_layer("L1")], size=size)
    assert render(RenderRequest(payload, documents=DocumentRegistry([hero_document]))) is None


def test_render_hero_scenario(hero_payload, store):
    result = render(
        RenderRequest(hero_payload, FramingMode.STRICT, store.documents, store.templates)
    )
    assert result is not None
    assert result.image.size == (300, 200)
    assert result.origin == (0.0, 0.0)
    assert [leaf.status for leaf in result.leaves] == [LeafStatus.DRAWN]
    assert result.leaves[0].position == (0.0, 0.0)
    assert result.leaves[0].node is store.documents.get("psd-1")[0]
    assert (as_array(result.image) == np.array(RED, dtype=np.uint8)).all()


def test_render_hero_scenario_auto_frame(hero_payload, store):
    result = render(RenderRequest(hero_payload, documents=store.documents))
    assert result.framing == FramingMode.AUTO
    assert result.origin == (0.0, 0.0)
    assert pixel(result.image, 150, 100) == RED
    assert pixel(result.image, 299, 0) == RED


def test_render_without_any_document(hero_payload):
    result = render(RenderRequest(hero_payload, FramingMode.STRICT))
    assert [leaf.status for leaf in result.leaves] == [LeafStatus.MISSING_SOURCE]
    assert result.document is None
    for x, y in [(0, 0), (150, 100), (299, 199)]:
        red, green, _, _ = pixel(result.image, x, y)
        assert red > checker_color(x, y)[0]
        assert green < checker_color(x, y)[1]


def test_render_stale_reference_uses_first_document(hero_payload, hero_document, caplog):
    hero_payload.source_node_id = "deleted-node"
    result = render_payload(
        hero_payload, DocumentRegistry([hero_document]), framing=FramingMode.STRICT
    )
    assert result.document is hero_document
    assert result.statuses()[LeafStatus.DRAWN] == 1
    assert "deleted-node" in caplog.text


def test_render_name_fallback():
    document = make_document("psd-1", [SourceNode("Bg", id="other", canvas=solid((4, 4), GREEN))])
    payload = make_payload([make_layer("stale-id", "Bg", coords=(0, 0, 10, 10))], size=(10, 10))
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert result.leaves[0].status == LeafStatus.DRAWN
    assert result.leaves[0].node is document[0]
    assert pixel(result.image, 5, 5) == GREEN


def test_render_missing_pixels():
    document = make_document("psd-1", [SourceNode("Other", canvas=solid((4, 4)))])
    payload = make_payload(
        [
            make_layer("L1", "Missing", coords=(0, 0, 10, 10)),
            make_layer("L2", "Other", coords=(20, 20, 10, 10)),
        ],
        size=(40, 40),
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    statuses = {leaf.layer.id: leaf.status for leaf in result.leaves}
    assert statuses == {"L1": LeafStatus.MISSING_PIXELS, "L2": LeafStatus.DRAWN}
    assert pixel(result.image, 25, 25) == RED


def test_render_empty_buffer():
    document = make_document(
        "psd-1", [SourceNode("Bg", id="L1", canvas=np.zeros((0, 0, 4), np.uint8))]
    )
    payload = make_payload([make_layer("L1", "Bg", coords=(0, 0, 20, 20))], size=(20, 20))
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert result.leaves[0].status == LeafStatus.EMPTY_BUFFER
    assert result.leaves[0].node is document[0]
    assert pixel(result.image, 5, 5) != checker_color(5, 5)


def test_render_draw_fault_is_local(caplog):
    document = make_document(
        "psd-1",
        [
            SourceNode("Broken", id="L1", canvas=_truncated_png()),
            SourceNode("Odd", id="L2", canvas=object()),
            SourceNode("Fine", id="L3", canvas=solid((2, 2), GREEN)),
        ],
    )
    payload = make_payload(
        [
            make_layer("L1", coords=(0, 0, 20, 20)),
            make_layer("L2", coords=(20, 0, 20, 20)),
            make_layer("L3", coords=(40, 0, 20, 20)),
        ],
        size=(60, 20),
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    statuses = {leaf.layer.id: leaf.status for leaf in result.leaves}
    assert statuses == {
        "L1": LeafStatus.DRAW_FAULT,
        "L2": LeafStatus.DRAW_FAULT,
        "L3": LeafStatus.DRAWN,
    }
    assert pixel(result.image, 0, 0) == (255, 0, 0, 255)
    assert pixel(result.image, 50, 10) == GREEN
    warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warnings) == 2


@pytest.mark.parametrize("width", [float("inf"), 1e300, 3e9])
@pytest.mark.parametrize("type", [LayerType.RASTER, LayerType.GENERATIVE])
def test_render_oversized_leaf(width, type):
    document = make_document("psd-1", [SourceNode("Bg", id="L1", canvas=solid((4, 4)))])
    payload = make_payload(
        [make_layer("L1", "Bg", coords=(0, 0, width, 10), type=type)], size=(30, 20)
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert result.image.size == (30, 20)
    assert len(result.leaves) == 1
    expected = LeafStatus.DRAWN if type == LayerType.RASTER else LeafStatus.PLACEHOLDER
    assert result.leaves[0].status == expected
    assert pixel(result.image, 5, 15) == checker_color(5, 15)
    if width == float("inf"):
        # Non-finite sizes collapse to an empty rectangle.
        assert pixel(result.image, 5, 5) == checker_color(5, 5)
    elif type == LayerType.RASTER:
        assert pixel(result.image, 5, 5) == RED
        assert pixel(result.image, 29, 9) == RED
    else:
        assert pixel(result.image, 0, 0) == GENERATIVE_STROKE


def test_render_oversized_rotated_leaf():
    document = make_document("psd-1", [SourceNode("Bg", id="L1", canvas=solid((4, 4)))])
    payload = make_payload(
        [make_layer("L1", coords=(-1e12, -1e12, 2e12, 2e12), rotation=30)], size=(30, 20)
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert result.leaves[0].status == LeafStatus.DRAWN
    assert pixel(result.image, 15, 10) == RED


def test_render_fault_marker_failure_is_local(monkeypatch, caplog):
    def explode(surface, placement, canvas=None):
        raise OverflowError("too large")

    monkeypatch.setitem(paint.PAINTERS, LeafStatus.DRAWN, explode)
    monkeypatch.setitem(paint.PAINTERS, LeafStatus.DRAW_FAULT, explode)
    document = make_document(
        "psd-1", [SourceNode("Bg", id="L1", canvas=solid((2, 2), GREEN))]
    )
    payload = make_payload(
        [
            make_layer("L1", coords=(0, 0, 10, 10)),
            make_layer("L2", coords=(10, 0, 10, 10)),
        ],
        size=(20, 10),
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    statuses = {leaf.layer.id: leaf.status for leaf in result.leaves}
    assert statuses == {"L1": LeafStatus.DRAW_FAULT, "L2": LeafStatus.MISSING_PIXELS}
    assert any(r.levelno == logging.ERROR for r in caplog.records)


@pytest.mark.parametrize("with_document", [True, False])
def test_render_generative_placeholder(with_document, hero_document):
    payload = make_payload(
        [make_layer("L1", "Bg", coords=(0, 0, 40, 40), type=LayerType.GENERATIVE)],
        size=(40, 40),
    )
    documents = DocumentRegistry([hero_document]) if with_document else None
    result = render_payload(payload, documents, framing="strict")
    assert result.leaves[0].status == LeafStatus.PLACEHOLDER
    assert result.leaves[0].node is None
    assert pixel(result.image, 0, 0) == (192, 132, 252, 255)


def test_render_skips_hidden_layers(hero_document):
    payload = make_payload(
        [
            make_layer("hidden", "Bg", coords=(0, 0, 10, 10), visible=False),
            make_layer(
                "hidden-group",
                coords=(0, 0, 10, 10),
                visible=False,
                children=[make_layer("child", "Bg", coords=(0, 0, 10, 10))],
            ),
        ],
        size=(10, 10),
    )
    result = render_payload(payload, DocumentRegistry([hero_document]), framing="strict")
    assert result.leaves == []
    assert result.leaf_count == 2
    background = render_payload(make_payload([], size=(10, 10)), framing="strict")
    assert np.array_equal(as_array(result.image), as_array(background.image))


def test_render_groups_are_flattened():
    document = make_document(
        "psd-1",
        [
            SourceNode("Red", canvas=solid((1, 1), RED)),
            SourceNode("Green", canvas=solid((1, 1), GREEN)),
        ],
    )
    group = make_layer(
        "G",
        "Group",
        coords=(0, 0, 20, 10),
        children=[
            make_layer("a", "Red", coords=(0, 0, 10, 10)),
            make_layer("b", "Green", coords=(10, 0, 10, 10)),
        ],
    )
    payload = make_payload([group], size=(20, 10))
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert [leaf.layer.id for leaf in result.leaves] == ["b", "a"]
    assert pixel(result.image, 5, 5) == RED
    assert pixel(result.image, 15, 5) == GREEN


def test_render_first_sibling_on_top():
    document = make_document(
        "psd-1",
        [
            SourceNode("Top", canvas=solid((1, 1), GREEN)),
            SourceNode("Bottom", canvas=solid((1, 1), RED)),
        ],
    )
    payload = make_payload(
        [
            make_layer("t", "Top", coords=(0, 0, 10, 10)),
            make_layer("b", "Bottom", coords=(0, 0, 10, 10)),
        ],
        size=(10, 10),
    )
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    assert [leaf.layer.id for leaf in result.leaves] == ["b", "t"]
    assert pixel(result.image, 5, 5) == GREEN


def test_render_local_position_and_pivot():
    payload = make_payload(
        [make_layer("L1", coords=(10, 10, 50, 50), opacity=0.0)], size=(100, 100)
    )
    result = render_payload(payload, framing="strict")
    leaf = result.leaves[0]
    assert leaf.position == (10.0, 10.0)
    assert leaf.placement.pivot == (35.0, 35.0)
    assert leaf.placement.rotation == 0.0
    # Zero opacity leaves the background untouched.
    background = render_payload(make_payload([], size=(100, 100)), framing="strict")
    assert np.array_equal(as_array(result.image), as_array(background.image))


def test_render_strict_origin_offsets_layers():
    document = make_document("psd-1", [SourceNode("Bg", id="L1", canvas=solid((1, 1)))])
    templates = TemplateRegistry()
    templates.register(Template("T", [TemplateContainer("Hero", Bounds(100, 50))]))
    payload = make_payload([make_layer("L1", coords=(110, 60, 10, 10))], size=(40, 40))
    result = render_payload(payload, DocumentRegistry([document]), templates, "strict")
    assert result.origin == (100.0, 50.0)
    assert result.leaves[0].position == (10.0, 10.0)
    assert pixel(result.image, 15, 15) == RED
    assert pixel(result.image, 5, 5) == checker_color(5, 5)


def test_render_opacity():
    document = make_document("psd-1", [SourceNode("W", id="L1", canvas=solid((1, 1), WHITE))])
    payload = make_payload([make_layer("L1", coords=(0, 0, 10, 10), opacity=0.5)], size=(10, 10))
    result = render_payload(payload, DocumentRegistry([document]), framing="strict")
    red = pixel(result.image, 5, 5)[0]
    assert checker_color(5, 5)[0] < red < 255


@pytest.mark.parametrize("framing", [FramingMode.AUTO, FramingMode.STRICT])
def test_render_idempotent(framing, hero_document, hero_template):
    payload = make_payload(
        [
            make_layer("L1", "Bg", coords=(10, 10, 80, 40), rotation=33, opacity=0.7),
            make_layer("gen", coords=(0, 0, 30, 30), type=LayerType.GENERATIVE),
            make_layer("missing", coords=(50, 50, 30, 30)),
        ],
        size=(120, 90),
    )
    documents = DocumentRegistry([hero_document])
    templates = TemplateRegistry([hero_template])
    first = render(RenderRequest(payload, framing, documents, templates))
    second = render(RenderRequest(payload, framing, documents, templates))
    assert first.image is not second.image
    assert np.array_equal(as_array(first.image), as_array(second.image))
    assert first.encode("PNG") == second.encode("PNG")


def test_render_auto_frame_indicator():
    payload = make_payload([], size=(200, 60))
    auto = render_payload(payload, framing=FramingMode.AUTO)
    strict = render_payload(payload, framing=FramingMode.STRICT)
    assert not np.array_equal(as_array(auto.image), as_array(strict.image))
    assert np.array_equal(as_array(auto.image)[:20], as_array(strict.image)[:20])


def test_render_result_encoding(hero_payload, store):
    result = render(RenderRequest(hero_payload, documents=store.documents))
    assert result.encode()[:2] == b"\xff\xd8"
    assert result.encode("PNG")[:8] == b"\x89PNG\r\n\x1a\n"
    assert result.data_url().startswith("data:image/jpeg;base64,")
    assert result.leaf_count == 1


def test_compositor():
    compositor = Compositor((10, 10), (0.0, 0.0), None)
    layers = [make_layer("a"), make_layer("b", type=LayerType.GENERATIVE)]
    for layer in paint_order(layers):
        compositor.apply(layer)
    image, leaves = compositor.finish()
    assert image is compositor.surface
    assert [leaf.status for leaf in leaves] == [
        LeafStatus.PLACEHOLDER,
        LeafStatus.MISSING_SOURCE,
    ]
