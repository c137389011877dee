"""Generate ledger-state and wire-format vectors from the test suite.

Vectors land in `vectors/` by default; `tools/consume.py` replays them.
"""

from __future__ import annotations

import argparse
import json
import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
VECTOR_FILES = {"ledger_state.json": "cases", "wire_format.json": "vectors"}


def _summarize(out: Path) -> None:
    for name, key in VECTOR_FILES.items():
        path = out / name
        if not path.exists():
            print(f"{name}: not written")
            continue
        count = len(json.loads(path.read_text()).get(key, []))
        print(f"{name}: {count} {key}")


def main() -> int:
    parser = argparse.ArgumentParser(description="Write threshold-tx vectors")
    parser.add_argument("--output", default=str(ROOT / "vectors"))
    parser.add_argument("-k", dest="keyword", default=None, help="pytest -k expression")
    args = parser.parse_args()

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])
    cmd = [sys.executable, "-m", "pytest", str(ROOT / "tests"), "-q", "--output", args.output]
    if args.keyword:
        cmd += ["-k", args.keyword]

    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if code == 0:
        _summarize(Path(args.output))
    return code


if __name__ == "__main__":
    raise SystemExit(main())
