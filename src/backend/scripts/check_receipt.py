from __future__ import annotations

import argparse
import json
import sys
from functools import partial
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def render_markdown(result, fix=None) -> str:
    lines = [
        f"# Receipt Check: {result.overall_status.value}",
        "",
        result.message,
        "",
        "## Steps",
    ]
    for index, step in enumerate(result.steps, start=1):
        lines.append("")
        lines.append(f"### {index}. {step.title} ({step.priority.value}): {step.status.value}")
        if step.message:
            lines.append(f"- Message: {step.message}")
        if step.outcome is not None:
            lines.append(f"- Outcome: {step.outcome.value}")
        if step.matched_rows:
            lines.append(f"- Matched rows: {len(step.matched_rows)}")
            for row in step.matched_rows:
                lines.append(f"  - {row}")
    if fix is not None:
        lines.append("")
        lines.append("## Proposed fix (review before running)")
        lines.append(f"- Action: {fix.action}")
        if fix.reason:
            lines.append(f"- Reason: {fix.reason}")
        if fix.sql:
            lines.append("")
            lines.append("```sql")
            lines.append(fix.sql)
            lines.append("```")
            lines.append(f"- Params: {fix.params}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Check whether a receipt already exists for a loan and classify any conflict."
    )
    parser.add_argument("--loan", required=True, help="Loan number (e.g. 140102037).")
    parser.add_argument("--receipt", required=True, help="Receipt number.")
    parser.add_argument("--amount", required=True, help="Receipt amount (2 decimal places).")
    parser.add_argument(
        "--date",
        required=True,
        help="Receipt date (yyyy-mm-dd, mm-dd-yyyy, dd/mm/yyyy, ...).",
    )
    parser.add_argument(
        "--database",
        default=None,
        help="Database name to check against (must be in ALLOWED_DATABASES; default DB_DATABASE).",
    )
    parser.add_argument(
        "--format",
        choices=("markdown", "json"),
        default="markdown",
        help="Output format (default: markdown).",
    )
    parser.add_argument("--fix", action="store_true", help="Include the proposed corrective statement.")
    parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run the receipt-level checks concurrently (one connection per check).",
    )
    parser.add_argument("--out", default=None, help="Write output to this file instead of stdout.")
    args = parser.parse_args(argv)

    _ensure_backend_on_path()

    from common.logging_config import setup_logging
    from common.receipt_checks import ReceiptRequest, ReconciliationRunner
    from common.receipt_checks.errors import ReceiptValidationError
    from connectors.loan_db.config import get_loan_db_config
    from connectors.loan_db.fixes import propose_fix
    from connectors.loan_db.store import EngineRegistry, open_store

    setup_logging()
    config = get_loan_db_config()
    engines = EngineRegistry(config)
    if args.database:
        engines.switch(args.database)

    request = ReceiptRequest(
        loan_no=args.loan,
        receipt_no=args.receipt,
        amount=args.amount,
        txn_date=args.date,
    )
    runner = ReconciliationRunner()
    try:
        if args.parallel:
            result = runner.run_parallel(request, partial(open_store, engines.engine()))
        else:
            with open_store(engines.engine()) as store:
                result = runner.run(request, store)

        fix = None
        if args.fix:
            try:
                fix = propose_fix(
                    result,
                    request.to_query(),
                    office_prefix_length=runner.config.office_prefix_length,
                )
            except ReceiptValidationError:
                fix = None
    finally:
        engines.dispose()

    if args.format == "json":
        payload = {"result": result.model_dump(mode="json")}
        if fix is not None:
            payload["fix"] = fix.model_dump(mode="json")
        text = json.dumps(payload, indent=2)
    else:
        text = render_markdown(result, fix)

    if args.out:
        Path(args.out).write_text(text)
        print(f"Wrote {args.out}")
    else:
        print(text)

    return 0 if result.overall_status.value != "error" else 1


if __name__ == "__main__":
    raise SystemExit(main())
