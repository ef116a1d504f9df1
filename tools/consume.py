"""Consume fixtures and validate them against the Python specs."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

import click

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT / "tools"))

from invoicenow_spec.state_digest import compute_state_digest  # noqa: E402
from invoicenow_spec.state_transition import apply_ix  # noqa: E402
from fixtures_io import ix_from_json, state_from_json, state_to_json  # noqa: E402
from yaml_dump import load_yaml  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
)
logger = logging.getLogger(__name__)


def _load(path: Path) -> dict[str, Any]:
    if path.suffix in (".yaml", ".yml"):
        return load_yaml(path.read_text())
    return json.loads(path.read_text())


def check_state_cases(path: Path) -> list[str]:
    failures: list[str] = []
    data = _load(path)

    for case in data.get("cases", []):
        pre_state = state_from_json(case["pre_state"])
        ix = ix_from_json(case["ix"])
        post_state, result = apply_ix(pre_state, ix)

        expected = case["expected"]
        if result.ok != expected["ok"]:
            failures.append(f"{case['name']}: ok_mismatch")
            continue

        actual_err = result.error.code.name if result.error else None
        if actual_err != expected["error"]:
            failures.append(f"{case['name']}: error_mismatch")
            continue

        digest = compute_state_digest(state_to_json(post_state))
        if digest != expected["state_digest"]:
            failures.append(f"{case['name']}: state_digest_mismatch")

    return failures


@click.command()
@click.option(
    "--fixtures",
    default=None,
    help="Fixture directory or a single fixture file (default: $FIXTURES_DIR or ./fixtures)",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output",
)
def main(fixtures: str | None, verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    target = Path(fixtures or os.environ.get("FIXTURES_DIR", str(ROOT / "fixtures")))
    if target.is_file():
        paths = [target]
    else:
        paths = sorted(
            p for p in target.rglob("*") if p.suffix in (".json", ".yaml", ".yml")
        )

    if not paths:
        logger.error("No fixtures found under %s", target)
        raise SystemExit(2)

    failures: list[str] = []
    for path in paths:
        logger.debug("Checking %s", path)
        failures.extend(check_state_cases(path))

    if failures:
        for f in failures:
            logger.error("FAIL %s", f)
        raise SystemExit(1)

    logger.info("All fixtures passed (%d files)", len(paths))


if __name__ == "__main__":
    main()
