"""Render Mermaid text with a dockerized mermaid-cli."""
from __future__ import annotations

import logging
import subprocess
import tempfile
from pathlib import Path
from typing import List

from modelflow.renderers.errors import RenderError
from modelflow.utils.config import settings

logger = logging.getLogger(__name__)


def run_docker_renderer(image: str, workdir: Path, command: List[str]) -> None:
    cmd = [
        "docker",
        "run",
        "--rm",
        "-v",
        f"{workdir}:/data",
        "-w",
        "/data",
        image,
    ] + command
    subprocess.run(cmd, check=True, capture_output=True, timeout=settings.render_timeout * 4)


def render_mermaid_cli(mermaid_text: str, output_format: str) -> bytes:
    """Run mermaid-cli on ``input.mmd`` and return the produced file's bytes."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        workdir = Path(tmp_dir)
        input_path = workdir / "input.mmd"
        output_path = workdir / f"output.{output_format}"
        input_path.write_text(mermaid_text, encoding="utf-8")
        try:
            run_docker_renderer(
                settings.mermaid_renderer_image,
                workdir,
                ["-i", input_path.name, "-o", output_path.name],
            )
        except FileNotFoundError as exc:
            raise RenderError("docker executable not found") from exc
        except subprocess.TimeoutExpired as exc:
            raise RenderError("mermaid-cli timed out") from exc
        except subprocess.CalledProcessError as exc:
            stderr = (exc.stderr or b"").decode("utf-8", errors="ignore").strip()
            logger.warning("mermaid-cli failed with exit code %s", exc.returncode)
            raise RenderError("mermaid-cli failed to render the diagram", detail=stderr[:500]) from exc
        if not output_path.exists():
            raise RenderError("mermaid-cli produced no output")
        return output_path.read_bytes()
