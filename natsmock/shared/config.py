"""Construction options for MockNatsClient, optionally read from JSON."""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path


@dataclass(frozen=True)
class ClientConfig:
    json: bool = False
    preserve_buffers: bool = False
    name: str = "client"

    @classmethod
    def from_file(cls, config_path: str, **overrides) -> "ClientConfig":
        """Read options from a JSON file; keyword overrides win.

        ``preserveBuffers`` is accepted so configs shared with JavaScript
        suites load unchanged. Unknown keys raise ``ValueError``.
        """
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        raw = json.loads(path.read_text())
        if "preserveBuffers" in raw:
            raw["preserve_buffers"] = raw.pop("preserveBuffers")

        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"Unknown client options in {config_path}: {sorted(unknown)}")

        return replace(cls(**raw), **overrides)
