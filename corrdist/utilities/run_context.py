from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import json

from .serialization import json_ready


@dataclass
class RunContext:
    pipeline: str
    output_root: Path
    run_id: str
    run_dir: Path
    features_dir: Path
    reports_dir: Path
    artifacts: dict[str, str] = field(default_factory=dict)
    timings: dict[str, float] = field(default_factory=dict)

    def add_artifact(self, key: str, path: Path) -> None:
        self.artifacts[key] = str(path)

    def add_timing(self, key: str, value_seconds: float) -> None:
        self.timings[key] = float(value_seconds)

    def write_json(self, path: Path, payload: Any) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(json_ready(payload), f, indent=2)
        return path

    def finalize(self, run_config: dict[str, Any]) -> None:
        self.write_json(self.run_dir / "run_config.json", run_config)
        self.write_json(self.run_dir / "artifact_index.json", self.artifacts)
        self.write_json(self.run_dir / "timings.json", self.timings)


def _default_run_id() -> str:
    return datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")


def create_run_context(
    *,
    pipeline: str,
    output_root: Path = Path("runs"),
    run_id: str | None = None,
) -> RunContext:
    rid = run_id or _default_run_id()
    run_dir = output_root / pipeline / rid
    features_dir = run_dir / "features"
    reports_dir = run_dir / "reports"

    for path in [features_dir, reports_dir]:
        path.mkdir(parents=True, exist_ok=True)

    return RunContext(
        pipeline=pipeline,
        output_root=output_root,
        run_id=rid,
        run_dir=run_dir,
        features_dir=features_dir,
        reports_dir=reports_dir,
    )
