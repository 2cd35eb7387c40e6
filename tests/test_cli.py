import cv2
import pytest
from fastapi.testclient import TestClient

import inkpage.cli.render.render as render_module
from inkpage.cli import main
from inkpage.core.annotation import (
    PageCanvasState,
    PageKey,
    ShapeType,
    Style,
    VectorObject,
    serialize,
)
from inkpage.core.store import HttpAnnotationStore, InMemoryAnnotationStore
from inkpage.server import create_app


@pytest.fixture
def server_store(monkeypatch):
    store = InMemoryAnnotationStore(materials=[7])
    client = TestClient(create_app(store))
    monkeypatch.setattr(
        render_module,
        "HttpAnnotationStore",
        lambda url, timeout: HttpAnnotationStore(url, session=client, timeout=timeout),
    )
    return store


def render_args(material, output, width=40):
    return [
        "render", str(material), "1", str(output),
        "-u", "42", "-W", str(width), "-H", "20",
        "--url", "http://testserver",
    ]  # fmt: skip


def test_version(capsys):
    with pytest.raises(SystemExit) as exc_info:
        main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == "0.1.0"


def test_render_stored_page(server_store, tmp_path):
    line = VectorObject("l", ShapeType.LINE, (0, 10, 39, 10), Style("red", 3))
    server_store.save(7, 42, 1, serialize(PageCanvasState(key=PageKey(7, 42, 1), objects=[line])))
    output = tmp_path / "page.png"

    assert main(render_args(7, output)) == 0

    image = cv2.imread(str(output))
    assert image.shape == (20, 40, 3)
    assert tuple(int(c) for c in image[10, 20]) == (0, 0, 255)


def test_render_page_without_annotations(server_store, tmp_path):
    output = tmp_path / "blank.png"
    assert main(render_args(7, output)) == 0
    assert (cv2.imread(str(output)) == 255).all()


def test_render_unknown_material(server_store, tmp_path):
    output = tmp_path / "missing.png"
    assert main(render_args(8, output)) == 1
    assert not output.exists()


def test_render_css_named_color(server_store, tmp_path):
    line = VectorObject("l", ShapeType.LINE, (0, 10, 39, 10), Style("purple", 3))
    server_store.save(7, 42, 1, serialize(PageCanvasState(key=PageKey(7, 42, 1), objects=[line])))
    output = tmp_path / "purple.png"

    assert main(render_args(7, output)) == 0
    assert tuple(int(c) for c in cv2.imread(str(output))[10, 20]) == (128, 0, 128)


def test_render_invalid_size(server_store, tmp_path):
    output = tmp_path / "empty.png"
    assert main(render_args(7, output, width=0)) == 1
    assert not output.exists()
