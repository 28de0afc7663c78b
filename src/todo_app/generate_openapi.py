"""
Utility script to generate and write the OpenAPI schema for the FastAPI app.

This script builds the FastAPI application (without opening a database) and
serializes its OpenAPI schema to a JSON file so that API clients and
documentation tools can consume a stable contract without running the server.

Usage:
    todo-openapi [--output interfaces/openapi.json]

Notes:
- The script ensures every tag in ``openapi_tags`` is present in the schema.
- The default output path is relative to the current directory: interfaces/openapi.json
"""
from __future__ import annotations

import argparse
import json
import os
from typing import Any, Dict, List, Optional

from .main import create_app, openapi_tags
from .settings import get_settings

DEFAULT_OUTPUT = os.path.join("interfaces", "openapi.json")


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains the expected tags metadata. Existing
    tag definitions are left untouched.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def generate_openapi(output_path: str = DEFAULT_OUTPUT) -> str:
    """Write the OpenAPI schema to ``output_path`` and return the path written."""
    schema = create_app(settings=get_settings()).openapi()
    _ensure_tags(schema)

    directory = os.path.dirname(output_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    return output_path


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="todo-openapi", description="Write the API's OpenAPI schema.")
    parser.add_argument("--output", default=DEFAULT_OUTPUT, help="Destination JSON file")
    args = parser.parse_args(argv)
    out_path = generate_openapi(args.output)
    print(f"Wrote OpenAPI schema to: {out_path}")


if __name__ == "__main__":
    main()
