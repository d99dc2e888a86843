from __future__ import annotations

import argparse
import json
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel

from .models import OutcomeOrdering
from .registry import registry

# Ensure built-in checks are imported/registered when generating a catalog.
from . import checks as _builtin_checks  # noqa: F401


class CheckCatalogEntry(BaseModel):
    position: int
    check_id: str
    title: str
    description: str = ""
    priority: str
    found_status: str
    outcome: Optional[str] = None
    outcome_rank: int = 0
    predicate: str = ""

    module: str
    class_name: str

    config_model: str
    config_schema: Dict[str, Any]


def build_catalog() -> List[CheckCatalogEntry]:
    ordering = OutcomeOrdering.default()
    entries: List[CheckCatalogEntry] = []
    for position, kind in enumerate(registry.kinds(), start=1):
        check_cls = registry.get(kind)
        cfg_model = getattr(check_cls, "config_model", None)
        cfg_schema: Dict[str, Any] = {}
        cfg_model_name = ""
        if cfg_model is not None:
            cfg_model_name = getattr(cfg_model, "__name__", str(cfg_model))
            cfg_schema = cfg_model.model_json_schema()

        outcome = getattr(check_cls, "outcome", None)
        predicate = getattr(check_cls, "predicate", None)
        entries.append(
            CheckCatalogEntry(
                position=position,
                check_id=getattr(check_cls, "check_id", ""),
                title=kind.value,
                description=getattr(check_cls, "description", ""),
                priority=check_cls.priority.value,
                found_status=check_cls.found_status.value,
                outcome=outcome.value if outcome else None,
                outcome_rank=ordering.rank(outcome) if outcome else 0,
                predicate=predicate.describe() if predicate is not None else "",
                module=getattr(check_cls, "__module__", ""),
                class_name=getattr(check_cls, "__name__", ""),
                config_model=cfg_model_name,
                config_schema=cfg_schema,
            )
        )

    return entries


def _dump_json(catalog: list[dict[str, Any]]) -> str:
    return json.dumps(catalog, indent=2, sort_keys=True)


def _dump_yaml(catalog: list[dict[str, Any]]) -> str:
    return yaml.safe_dump(catalog, sort_keys=True)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Generate a receipt check catalog from the registry.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    args = parser.parse_args(argv)

    catalog = [e.model_dump() for e in build_catalog()]
    if args.format == "json":
        print(_dump_json(catalog))
    else:
        print(_dump_yaml(catalog))


if __name__ == "__main__":
    main()
