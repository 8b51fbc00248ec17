import base64
import hashlib
import subprocess
import zlib
from unittest.mock import Mock

import pytest
import requests

from modelflow.renderers import docker_client, kroki_client, mermaid_renderer
from modelflow.renderers.errors import RenderError
from modelflow.utils import config


MARKUP = "graph TD\n  A --> B"


def _response(status_code=200, content=b"<svg></svg>", text=""):
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.text = text
    return response


@pytest.fixture
def kroki_settings(monkeypatch):
    monkeypatch.setattr(config.settings, "kroki_url", "https://kroki.test/")
    monkeypatch.setattr(config.settings, "renderer_backend", "kroki")


def test_kroki_encode_round_trips():
    encoded = kroki_client.kroki_encode(MARKUP)
    assert zlib.decompress(base64.urlsafe_b64decode(encoded)).decode("utf-8") == MARKUP


def test_render_kroki_uses_get_for_short_markup(monkeypatch, kroki_settings):
    calls = {}

    def mock_get(url, **kwargs):
        calls["url"] = url
        return _response()

    monkeypatch.setattr(requests, "get", mock_get)
    monkeypatch.setattr(requests, "post", Mock(side_effect=AssertionError("POST not expected")))

    assert kroki_client.render_kroki(MARKUP, "svg") == b"<svg></svg>"
    assert calls["url"].startswith("https://kroki.test/mermaid/svg/")


def test_render_kroki_posts_long_markup(monkeypatch, kroki_settings):
    long_markup = "graph TD\n" + "\n".join(
        f"  N{i}[{hashlib.sha256(str(i).encode()).hexdigest()}] --> N{i + 1}" for i in range(200)
    )
    posted = {}

    def mock_post(url, data=None, headers=None, timeout=None):
        posted["url"] = url
        posted["data"] = data
        return _response()

    monkeypatch.setattr(requests, "get", Mock(side_effect=AssertionError("GET not expected")))
    monkeypatch.setattr(requests, "post", mock_post)

    kroki_client.render_kroki(long_markup, "svg")
    assert posted["url"] == "https://kroki.test/mermaid/svg"
    assert posted["data"] == long_markup.encode("utf-8")


def test_render_kroki_falls_back_to_post_on_414(monkeypatch, kroki_settings):
    monkeypatch.setattr(requests, "get", lambda url, **kwargs: _response(status_code=414))
    post = Mock(return_value=_response(content=b"\x89PNGdata"))
    monkeypatch.setattr(requests, "post", post)

    assert kroki_client.render_kroki(MARKUP, "png") == b"\x89PNGdata"
    post.assert_called_once()


def test_render_kroki_error_status_raises(monkeypatch, kroki_settings):
    monkeypatch.setattr(requests, "get", lambda url, **kwargs: _response(status_code=400, text="Syntax error"))
    with pytest.raises(RenderError) as excinfo:
        kroki_client.render_kroki(MARKUP, "svg")
    assert "400" in str(excinfo.value)
    assert excinfo.value.detail == "Syntax error"


def test_render_kroki_connection_error_raises(monkeypatch, kroki_settings):
    def boom(url, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(requests, "get", boom)
    with pytest.raises(RenderError, match="Renderer unavailable"):
        kroki_client.render_kroki(MARKUP, "svg")


def test_render_mermaid_svg_validates_output(monkeypatch):
    monkeypatch.setattr(config.settings, "renderer_backend", "kroki")
    monkeypatch.setattr(mermaid_renderer, "render_kroki", lambda text, fmt: b"<svg>ok</svg>")
    assert mermaid_renderer.render_mermaid_svg(MARKUP) == "<svg>ok</svg>"

    monkeypatch.setattr(mermaid_renderer, "render_kroki", lambda text, fmt: b"not an image")
    with pytest.raises(RenderError):
        mermaid_renderer.render_mermaid_svg(MARKUP)


def test_render_mermaid_png_requires_signature(monkeypatch):
    monkeypatch.setattr(config.settings, "renderer_backend", "kroki")
    monkeypatch.setattr(mermaid_renderer, "render_kroki", lambda text, fmt: b"<svg/>")
    with pytest.raises(RenderError, match="PNG"):
        mermaid_renderer.render_mermaid_png(MARKUP)


def test_preflight_runs_before_backend(monkeypatch):
    backend = Mock()
    monkeypatch.setattr(mermaid_renderer, "render_kroki", backend)
    with pytest.raises(RenderError):
        mermaid_renderer.render_mermaid_svg("not a diagram")
    backend.assert_not_called()


def test_unknown_backend_raises(monkeypatch):
    monkeypatch.setattr(config.settings, "renderer_backend", "carrier-pigeon")
    with pytest.raises(RenderError, match="Unknown renderer backend"):
        mermaid_renderer.render_mermaid_svg(MARKUP)


def test_docker_backend_reads_output_file(monkeypatch):
    monkeypatch.setattr(config.settings, "renderer_backend", "docker")

    def fake_run(image, workdir, command):
        assert command[:2] == ["-i", "input.mmd"]
        assert (workdir / "input.mmd").read_text(encoding="utf-8") == MARKUP
        (workdir / "output.svg").write_text("<svg>docker</svg>", encoding="utf-8")

    monkeypatch.setattr(docker_client, "run_docker_renderer", fake_run)
    assert mermaid_renderer.render_mermaid_svg(MARKUP) == "<svg>docker</svg>"


def test_docker_failure_becomes_render_error(monkeypatch):
    def fake_run(image, workdir, command):
        raise subprocess.CalledProcessError(1, ["docker"], stderr=b"Parse error on line 2")

    monkeypatch.setattr(docker_client, "run_docker_renderer", fake_run)
    with pytest.raises(RenderError) as excinfo:
        docker_client.render_mermaid_cli(MARKUP, "svg")
    assert "Parse error" in excinfo.value.detail
