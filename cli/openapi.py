"""CLI wrapper: Generate the OpenAPI specification for the HTTP API."""

from __future__ import annotations

import json
import sys
from pathlib import Path


def main() -> None:
    """Write the OpenAPI JSON to docs/openapi.json (or the path given as argument)."""
    from sop_script.main import create_app

    output_file = Path(sys.argv[1]) if len(sys.argv) > 1 else Path("docs") / "openapi.json"
    output_file.parent.mkdir(parents=True, exist_ok=True)

    openapi_schema = create_app().openapi()
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(openapi_schema, f, indent=2)
        f.write("\n")

    print(f"[OK] OpenAPI schema generated: {output_file}")
    print(f"   Title: {openapi_schema['info']['title']}")
    print(f"   Version: {openapi_schema['info']['version']}")
    for path, methods in openapi_schema["paths"].items():
        for method, details in methods.items():
            print(f"   {method.upper():6} {path:40} {details.get('summary', '')}")
