"""
CLI main entry point.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from ..config import Config, create_default_config, load_config
from ..ocr_client import OcrClient, OcrError
from ..parsing import ReceiptParser, RuleTableError, load_rule_table
from ..parsing.base import ParseOutput
from ..schemas import DuplicateFound, SaveOutcome, Success, TransferForm, ValidationFailure
from ..services import TransferNotFoundError, TransferService
from ..state_store import TransferStore

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_DUPLICATE = 2


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="transfer-receipts",
        description="Parse bank transfer receipts and keep a deduplicated transfer log",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("config.yaml"),
        help="Path to config file (default: config.yaml)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # init-config command
    subparsers.add_parser("init-config", help="Write a default config file")

    # parse command
    parse_parser = subparsers.add_parser("parse", help="Parse a receipt and print the fields")
    parse_parser.add_argument("file", type=str, help="OCR text file, image with --image, or -")
    parse_parser.add_argument(
        "--image",
        action="store_true",
        help="Treat FILE as an image and send it to the OCR service first",
    )

    # ingest command
    ingest_parser = subparsers.add_parser("ingest", help="Parse a receipt and save the transfer")
    ingest_parser.add_argument("file", type=str, help="OCR text file, image with --image, or -")
    ingest_parser.add_argument(
        "--image",
        action="store_true",
        help="Treat FILE as an image and send it to the OCR service first",
    )
    ingest_parser.add_argument(
        "--replace",
        action="store_true",
        help="Overwrite a duplicate transfer instead of reporting it",
    )

    # submit command
    submit_parser = subparsers.add_parser("submit", help="Save an edited transfer form (JSON)")
    submit_parser.add_argument("form", type=str, help="Form JSON file or -")
    submit_parser.add_argument(
        "--replace",
        action="store_true",
        help="Overwrite a duplicate transfer instead of reporting it",
    )

    # list command
    list_parser = subparsers.add_parser("list", help="List saved transfers, newest first")
    list_parser.add_argument(
        "--search",
        type=str,
        default="",
        help="Substring to match against beneficiary, bank, amount or operation number",
    )

    # delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a transfer")
    delete_parser.add_argument("id", type=str, help="Transfer id")

    # mark-exported command
    export_parser = subparsers.add_parser(
        "mark-exported", help="Stamp transfers as exported"
    )
    export_parser.add_argument("--from", dest="date_from", type=str, help="First date (YYYY-MM-DD)")
    export_parser.add_argument("--to", dest="date_to", type=str, help="Last date (YYYY-MM-DD)")
    export_parser.add_argument(
        "--all",
        action="store_true",
        help="Include transfers that were already exported",
    )

    # status command
    subparsers.add_parser("status", help="Show transfer statistics")

    return parser


def _build_parser(config: Config) -> ReceiptParser:
    return ReceiptParser(
        rule_table=load_rule_table(config.rules_path),
        exclude_receipt_year=config.parser.exclude_receipt_year,
    )


def _build_service(config: Config) -> TransferService:
    return TransferService(TransferStore(config.state_db_path))


def _read_text(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    return Path(source).read_text(encoding="utf-8")


def _read_receipt(config: Config, source: str, image: bool) -> ParseOutput:
    """Parse a text transcript, or an image through the OCR service."""
    parser = _build_parser(config)
    if not image:
        return parser.parse(_read_text(source))

    client = OcrClient(
        base_url=config.ocr.base_url,
        token=config.ocr.token,
        timeout=config.ocr.timeout_seconds,
        max_retries=config.ocr.max_retries,
    )
    content = sys.stdin.buffer.read() if source == "-" else Path(source)
    return parser.parse_ocr_result(client.recognize(content))


def _report_outcome(outcome: SaveOutcome) -> int:
    if isinstance(outcome, Success):
        verb = "Replaced" if outcome.replaced else "Saved"
        print(f"✓ {verb} transfer {outcome.id}")
        return EXIT_OK
    if isinstance(outcome, ValidationFailure):
        print(f"❌ Invalid {outcome.field}: {outcome.message}")
        return EXIT_FAILURE
    if isinstance(outcome, DuplicateFound):
        existing = outcome.existing
        print(f"⚠️  Duplicate ({outcome.type.value}) of transfer {existing.id}")
        print(f"   {existing.date} {existing.time} {existing.bank} {existing.amount}")
        print("   Re-run with --replace to overwrite it")
        return EXIT_DUPLICATE
    raise TypeError(f"Unknown outcome: {outcome!r}")


def cmd_init_config(config_path: Path) -> int:
    """Write a default config file."""
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return EXIT_FAILURE
    create_default_config(config_path)
    print(f"✓ Wrote {config_path}")
    return EXIT_OK


def cmd_parse(config: Config, source: str, image: bool) -> int:
    """Parse one receipt and print the extracted fields as JSON."""
    try:
        output = _read_receipt(config, source, image)
    except (OSError, OcrError) as e:
        print(f"❌ Failed to read receipt: {e}")
        return EXIT_FAILURE

    print(json.dumps(output.to_dict(), indent=2, ensure_ascii=False))
    return EXIT_OK


def cmd_ingest(config: Config, source: str, image: bool, replace: bool) -> int:
    """Parse a receipt and save it as a transfer."""
    try:
        output = _read_receipt(config, source, image)
    except (OSError, OcrError) as e:
        print(f"❌ Failed to read receipt: {e}")
        return EXIT_FAILURE

    print(f"📄 {output.bank.value} {output.date.value} {output.amount.value}")
    form = TransferForm.from_dict(output.to_form())
    return _report_outcome(_build_service(config).create_or_update(form, replace))


def cmd_submit(config: Config, source: str, replace: bool) -> int:
    """Save a transfer form given as JSON."""
    try:
        data = json.loads(_read_text(source))
        if not isinstance(data, dict):
            print("❌ Form must be a JSON object")
            return EXIT_FAILURE
        form = TransferForm.from_dict(data)
    except (OSError, ValueError) as e:
        print(f"❌ Failed to read form: {e}")
        return EXIT_FAILURE

    service = _build_service(config)
    try:
        outcome = service.create_or_update(form, replace)
    except TransferNotFoundError as e:
        print(f"❌ {e}")
        return EXIT_FAILURE
    return _report_outcome(outcome)


def cmd_list(config: Config, search: str) -> int:
    """List saved transfers."""
    records = _build_service(config).search(search)

    for record in records:
        exported = "📤" if record.exported_at else "  "
        operation = record.operation_number or "-"
        print(
            f"  {exported} {record.date} {record.time}  {record.bank:<10} {record.amount:>14}  "
            f"{record.beneficiary} (****{record.destination_account_suffix}) op {operation}  "
            f"[{record.id}]"
        )

    print(f"\n✓ {len(records)} transfer(s)")
    return EXIT_OK


def cmd_delete(config: Config, transfer_id: str) -> int:
    """Delete a transfer by id."""
    try:
        _build_service(config).delete_by_id(transfer_id)
    except TransferNotFoundError as e:
        print(f"❌ {e}")
        return EXIT_FAILURE
    print(f"✓ Deleted transfer {transfer_id}")
    return EXIT_OK


def cmd_mark_exported(
    config: Config, date_from: str | None, date_to: str | None, include_exported: bool
) -> int:
    """Stamp the selected transfers as exported."""
    service = _build_service(config)
    records = service.store.select_for_export(
        pending_only=not include_exported,
        date_from=date_from,
        date_to=date_to,
    )
    if not records:
        print("No transfers to export")
        return EXIT_OK

    count = service.mark_exported(records)
    print(f"✓ Marked {count} transfer(s) as exported")
    return EXIT_OK


def cmd_status(config: Config) -> int:
    """Show transfer statistics."""
    stats = TransferStore(config.state_db_path).get_stats()

    print("\n📊 Transfer Status")
    print("=" * 40)
    print(f"  Transfers total:        {stats['transfers_total']}")
    print(f"  Exported:               {stats['transfers_exported']}")
    print(f"  Pending export:         {stats['transfers_pending_export']}")
    print(f"  Without operation no.:  {stats['transfers_without_operation']}")
    for bank, count in stats["by_bank"].items():
        print(f"    {bank:<20} {count}")
    print()

    return EXIT_OK


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return EXIT_FAILURE

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
        config.ensure_valid()
    except Exception as e:
        print(f"❌ Failed to load config: {e}")
        return EXIT_FAILURE

    # Route to command
    try:
        if parsed.command == "parse":
            return cmd_parse(config, parsed.file, parsed.image)
        elif parsed.command == "ingest":
            return cmd_ingest(config, parsed.file, parsed.image, parsed.replace)
        elif parsed.command == "submit":
            return cmd_submit(config, parsed.form, parsed.replace)
        elif parsed.command == "list":
            return cmd_list(config, parsed.search)
        elif parsed.command == "delete":
            return cmd_delete(config, parsed.id)
        elif parsed.command == "mark-exported":
            return cmd_mark_exported(config, parsed.date_from, parsed.date_to, parsed.all)
        elif parsed.command == "status":
            return cmd_status(config)
    except RuleTableError as e:
        print(f"❌ Invalid rule table: {e}")
        return EXIT_FAILURE

    parser.print_help()
    return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
