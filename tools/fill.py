"""Generate invoice settlement fixtures by running the test suite.

Wraps pytest with `--output` so `tests/conftest.py` writes one fixture file
per instruction family under the target directory.
"""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from pathlib import Path

import click

ROOT = Path(__file__).resolve().parent.parent

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


@click.command()
@click.option(
    "--output",
    default=None,
    help="Fixture output directory (default: $FIXTURES_DIR or ./fixtures)",
)
@click.option(
    "--format",
    "fixture_format",
    type=click.Choice(["json", "yaml"]),
    default="json",
    show_default=True,
)
@click.option("-k", "keyword", default=None, help="Only fill tests matching this pytest expression")
def main(output: str | None, fixture_format: str, keyword: str | None) -> None:
    out = Path(output or os.environ.get("FIXTURES_DIR", str(ROOT / "fixtures")))

    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join([str(ROOT / "src"), str(ROOT)])

    cmd = [
        sys.executable,
        "-m",
        "pytest",
        str(ROOT / "tests"),
        "-q",
        "--output",
        str(out),
        "--fixture-format",
        fixture_format,
    ]
    if keyword:
        cmd += ["-k", keyword]

    logger.info("Running: %s", " ".join(cmd))
    code = subprocess.call(cmd, env=env, cwd=str(ROOT))
    if code != 0:
        logger.error("pytest exited with %d; fixtures under %s may be incomplete", code, out)
    raise SystemExit(code)


if __name__ == "__main__":
    main()
