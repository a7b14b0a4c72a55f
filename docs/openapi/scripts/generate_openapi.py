"""Generate and persist OpenAPI artifacts for Natours webservice."""

from __future__ import annotations

import json
from pathlib import Path

import yaml

from natours.webservice.main import app


def main(outdir: str = "docs/openapi") -> None:
    out = Path(outdir)
    out.mkdir(parents=True, exist_ok=True)

    openapi_schema = app.openapi()

    json_path = out / "natours-openapi.json"
    json_path.write_text(json.dumps(openapi_schema, indent=2), encoding="utf-8")

    yaml_path = out / "natours-openapi.yaml"
    yaml_path.write_text(yaml.safe_dump(openapi_schema, sort_keys=False), encoding="utf-8")


if __name__ == "__main__":
    main()
