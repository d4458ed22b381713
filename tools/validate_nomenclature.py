"""Validate the nomenclature and scoring JSON files.

The checks run the same pydantic models the library uses at load time, then
encode and decode the first buildable unit of every family so that code tables
which validate structurally but cannot round-trip are reported as well.
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from hvac_crossref.decoder import decode
from hvac_crossref.encoder import encode
from hvac_crossref.registry.loader import (
    Registry,
    ScoringConfig,
    build_registry,
    build_scoring_config,
    get_nomenclature_path,
    get_scoring_path,
)


def validate(path: Path) -> Registry:
    """Validate nomenclature file at ``path`` and return the registry."""

    registry = build_registry(json.loads(path.read_text(encoding="utf-8")))
    for family in registry:
        model_number = encode(family, {}, registry=registry)
        decoded = decode(model_number, family, registry=registry)
        if decoded.low_confidence:
            raise ValueError(
                f"{family.key}: default model {model_number} decodes with low confidence "
                f"in {sorted(decoded.low_confidence)}"
            )
        if encode(family, decoded, registry=registry) != model_number:
            raise ValueError(f"{family.key}: default model {model_number} does not round-trip")
    return registry


def validate_scoring(path: Path) -> ScoringConfig:
    """Validate scoring file at ``path``."""

    return build_scoring_config(json.loads(path.read_text(encoding="utf-8")))


def main(argv: list[str] | None = None) -> int:
    """Validate data files, exiting with ``1`` on error."""

    parser = argparse.ArgumentParser(description="Validate nomenclature and scoring JSON.")
    parser.add_argument("path", nargs="?", type=Path, default=None)
    parser.add_argument("--scoring", type=Path, default=None)
    args = parser.parse_args(argv)

    nomenclature = args.path if args.path is not None else get_nomenclature_path()
    scoring = args.scoring if args.scoring is not None else get_scoring_path()

    try:
        registry = validate(nomenclature)
        validate_scoring(scoring)
    except Exception as err:  # pragma: no cover - error path
        print(err)
        raise SystemExit(1) from None
    print(f"{len(registry)} families OK")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    raise SystemExit(main())
