"""HCL loading engine — parse .hcl files into a Workspace."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import hcl2
import jinja2

from .workspace import Workspace

logger = logging.getLogger(__name__)


def scan(
    path: str | Path,
    *,
    recurse: bool = True,
    context: dict[str, Any] | None = None,
    variables: dict[str, Any] | None = None,
) -> Workspace:
    """Load every .hcl file under `path` into a new Workspace.

    `context` feeds the Jinja2 pass over the raw text; `variables` resolve
    ``${...}`` references in resource attributes.
    """
    root = Path(path)
    files = sorted(root.rglob("*.hcl") if recurse else root.glob("*.hcl"))
    logger.debug("Found %d HCL file(s) under %s", len(files), root)

    ws = Workspace(variables=variables)
    for file in files:
        ws.load(load(file, context=context), source=str(file))
    return ws


def load(
    file: Path,
    *,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Load and parse a single HCL file, rendering Jinja2 templates with context."""
    text = file.read_text()
    ctx = context if context is not None else {}
    env = jinja2.Environment(
        undefined=jinja2.StrictUndefined,
        keep_trailing_newline=True,
        autoescape=False,
    )
    try:
        template = env.from_string(text)
        text = template.render(ctx)
    except jinja2.TemplateError as exc:
        raise ValueError(f"{file}: {exc}") from exc
    try:
        return hcl2.loads(text)
    except Exception as exc:
        raise ValueError(f"{file}: {exc}") from exc
