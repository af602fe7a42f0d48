from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import yaml

from cart_transform_platform.core.errors import CartLoadError


STDIN_PATH = "-"


def load_input(path: str) -> dict[str, Any]:
    """Load a function input document (YAML/JSON file, or JSON on stdin for "-").

    Returns a dict with keys: cart, __file__.
    Does not coerce types; validator owns shape checking.
    """

    if path == STDIN_PATH:
        return _normalize(_parse_json(sys.stdin.read(), file="<stdin>"), file="<stdin>")

    p = Path(path)
    if not p.exists():
        raise CartLoadError(
            code="E_FILE_NOT_FOUND",
            message="file does not exist",
            file=str(p),
        )

    suffix = p.suffix.lower()
    if suffix not in {".yaml", ".yml", ".json"}:
        raise CartLoadError(
            code="E_UNSUPPORTED_FORMAT",
            message="supported formats are .yaml/.yml and .json",
            file=str(p),
        )

    try:
        raw_text = p.read_text(encoding="utf-8")
    except OSError as e:  # pragma: no cover
        raise CartLoadError(code="E_FILE_READ", message=str(e), file=str(p)) from e

    if suffix == ".json":
        data = _parse_json(raw_text, file=str(p))
    else:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as e:
            raise CartLoadError(code="E_YAML_PARSE", message=str(e), file=str(p)) from e

    return _normalize(data, file=str(p))


def _parse_json(raw_text: str, *, file: str) -> Any:
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError as e:
        raise CartLoadError(code="E_JSON_PARSE", message=str(e), file=file) from e


def _normalize(data: Any, *, file: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise CartLoadError(
            code="E_INVALID_TOP_LEVEL",
            message="top-level document must be a mapping/object",
            file=file,
        )

    # Keep only the cart; validator checks it is present.
    return {"cart": data.get("cart"), "__file__": file}
