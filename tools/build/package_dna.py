from __future__ import annotations

import argparse
import json
from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from matchmaker.config import DEFAULT_DNA_NAME, DEFAULT_DNA_PATH
from matchmaker.dna import build_dna_data


def main() -> int:
    ap = argparse.ArgumentParser(description="Write the DNA artifact from the zome declarations")
    ap.add_argument("--name", default=DEFAULT_DNA_NAME)
    ap.add_argument("--out", type=Path, default=DEFAULT_DNA_PATH)
    ap.add_argument("--zome", action="append", default=[], metavar="NAME=MODULE",
                    help="zome to include (default: main=matchmaker.zome)")
    args = ap.parse_args()

    zomes = {}
    for item in args.zome or ["main=matchmaker.zome"]:
        if "=" not in item:
            ap.error(f"--zome expects NAME=MODULE, got {item!r}")
        zname, module = item.split("=", 1)
        zomes[zname.strip()] = module.strip()

    data = build_dna_data(args.name, zomes)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    print(f"wrote {args.out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
