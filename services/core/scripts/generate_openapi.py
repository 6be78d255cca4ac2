#!/usr/bin/env python3
"""Write the service's OpenAPI document to a file.

Run from services/core:
    python scripts/generate_openapi.py --output openapi.json
"""

import argparse
import json
from pathlib import Path

from outlets_core.main import app


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--output", default="openapi.json", help="Destination file")
    args = parser.parse_args()

    output = Path(args.output)
    output.write_text(json.dumps(app.openapi(), indent=2) + "\n")
    print(f"OpenAPI spec written to {output}")


if __name__ == "__main__":
    main()
