from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


# Input keys the host uses for the two bundle metafields on a ProductVariant.
DEFAULT_FIELDS: dict[str, str] = {
    "components": "expandBundleComponents",
    "quantities": "expandBundleComponentQuantities",
}


@dataclass(frozen=True)
class MetafieldFields:
    components: str
    quantities: str


class MetafieldConfigError(ValueError):
    pass


def load_config_file(path: str | Path) -> dict[str, str]:
    """Load metafield key overrides from a YAML file.

    Format:
      components: <input key holding the component ids metafield>
      quantities: <input key holding the quantities metafield>

    Either key may be omitted.
    """
    p = Path(path)
    raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise MetafieldConfigError("config file must be a mapping of components/quantities -> key")

    out: dict[str, str] = {}
    for k, v in raw.items():
        if k not in DEFAULT_FIELDS:
            raise MetafieldConfigError(
                f"unknown config key '{k}' (choose from: {', '.join(sorted(DEFAULT_FIELDS))})"
            )
        if not isinstance(v, str) or not v.strip():
            raise MetafieldConfigError(f"config key '{k}' must be a non-empty string")
        out[k] = v.strip()

    if out.get("components", DEFAULT_FIELDS["components"]) == out.get(
        "quantities", DEFAULT_FIELDS["quantities"]
    ):
        raise MetafieldConfigError("components and quantities must use different keys")
    return out


def merged_fields(overrides: dict[str, str] | None = None) -> MetafieldFields:
    merged = dict(DEFAULT_FIELDS)
    if overrides:
        merged.update(overrides)
    return MetafieldFields(components=merged["components"], quantities=merged["quantities"])


def load_and_merge(config_file: str | None) -> MetafieldFields:
    if not config_file:
        return merged_fields()
    return merged_fields(load_config_file(config_file))
