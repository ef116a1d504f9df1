"""Pytest hooks to generate fixtures (EEST-style)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import pytest

from invoicenow_spec.state_digest import compute_state_digest
from invoicenow_spec.state_transition import TransitionResult, apply_ix
from invoicenow_spec.types import Instruction, LedgerState
from tools.fixtures_io import ix_to_json, state_to_json
from tools.yaml_dump import write_yaml

_STATE_CASES: dict[str, list[dict[str, Any]]] = {}

StateTestGroup = Callable[
    [str, str, LedgerState, Instruction], "tuple[LedgerState, TransitionResult]"
]


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--output",
        action="store",
        default=None,
        help="Output directory for generated fixtures",
    )
    parser.addoption(
        "--fixture-format",
        action="store",
        default="json",
        choices=("json", "yaml"),
        help="Serialization format for generated fixtures",
    )


@pytest.fixture
def state_test_group() -> StateTestGroup:
    """Apply an instruction, collect it as a fixture case and return the outcome."""

    def _state_test_group(
        rel_path: str, name: str, pre_state: LedgerState, ix: Instruction
    ) -> tuple[LedgerState, TransitionResult]:
        post_state, result = apply_ix(pre_state, ix)
        post_json = state_to_json(post_state)
        _STATE_CASES.setdefault(rel_path, []).append(
            {
                "name": name,
                "pre_state": state_to_json(pre_state),
                "ix": ix_to_json(ix),
                "expected": {
                    "ok": result.ok,
                    "error": result.error.code.name if result.error else None,
                    "post_state": post_json,
                    "state_digest": compute_state_digest(post_json),
                },
            }
        )
        return post_state, result

    return _state_test_group


def pytest_sessionfinish(session: pytest.Session, exitstatus: int) -> None:
    output_dir = session.config.getoption("--output")
    if not output_dir:
        return
    fmt = session.config.getoption("--fixture-format")

    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)

    for rel_path, cases in _STATE_CASES.items():
        if not cases:
            continue
        target = out / rel_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if fmt == "yaml":
            write_yaml(target.with_suffix(".yaml"), {"cases": cases})
        else:
            target.write_text(json.dumps({"cases": cases}, indent=2))
