"""
Credit card statement -> EMI plan extractor

Stages:
- parse:  statement text files -> statement-extractions.json
- emis:   statement-extractions.json -> emi-plans.json (+ optional Excel/XML)
- enrich: emi-plans.json -> enriched-emis.json

Usage:
    python extract_emis.py parse statements/*.txt
    python extract_emis.py emis [--min-gap-days 20] [-f all]
    python extract_emis.py enrich
"""
import os
import sys
import argparse
import logging
from typing import List, Optional

from emi_extractor import config, exporters
from emi_extractor.exceptions import EMIExtractorError
from emi_extractor.extractor import enrich_emi_document, extract_emi_document, parse_statement_files

logger = logging.getLogger('EMIExtractor')


def configure_logging(log_dir: str, debug: bool = False) -> None:
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    log_filename = os.path.join(log_dir, 'emi_extractor.log')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    # Re-running main() in one process must not stack handlers
    for handler in list(root_logger.handlers):
        if getattr(handler, "_emi_extractor", False):
            root_logger.removeHandler(handler)
            handler.close()

    log_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    # Console stays at INFO unless --debug; the file always gets DEBUG
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(log_formatter)
    console_handler._emi_extractor = True
    root_logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_filename, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(log_formatter)
    file_handler._emi_extractor = True
    root_logger.addHandler(file_handler)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description='Reconstruct EMI plans from credit card statements.')
    parser.add_argument('--debug', help='Enable debug logging.', action='store_true')
    parser.add_argument('--log-dir', help='Directory for the log file.', default=config.LOG_DIR)
    subparsers = parser.add_subparsers(dest='command', required=True)

    parse_cmd = subparsers.add_parser('parse', help='Parse statement text files into transactions.')
    parse_cmd.add_argument('statements', nargs='+', help='Statement text files, in reading order.')
    parse_cmd.add_argument('-o', '--output', help='Extraction document to write.', default=config.EXTRACTIONS_FILE)
    parse_cmd.add_argument('--bank', help='Name of the bank (optional).', default=None)

    emis_cmd = subparsers.add_parser('emis', help='Build EMI plans from an extraction document.')
    emis_cmd.add_argument('-i', '--input', help='Extraction document to read.', default=config.EXTRACTIONS_FILE)
    emis_cmd.add_argument('-o', '--output', help='Plan document to write.', default=config.PLANS_FILE)
    emis_cmd.add_argument('--min-gap-days', type=int, default=config.MIN_PLAN_GAP_DAYS,
                          help='Minimum days between installments of one plan.')
    emis_cmd.add_argument('-f', '--output-format', default='json', choices=['json', 'excel', 'xml', 'all'],
                          help='Additional export format next to the JSON document.')

    enrich_cmd = subparsers.add_parser('enrich', help='Add rates, progress and priority to EMI plans.')
    enrich_cmd.add_argument('-i', '--input', help='Plan document to read.', default=config.PLANS_FILE)
    enrich_cmd.add_argument('-o', '--output', help='Enriched document to write.', default=config.ENRICHED_FILE)

    return parser.parse_args(argv)


def run_parse(args: argparse.Namespace) -> None:
    document = parse_statement_files(args.statements, bank_name=args.bank, debug=args.debug)
    exporters.write_json(document, args.output)
    print(f"Parsed {document['totalStatements']} statement(s), "
          f"{document['totalTransactions']} transaction(s)")
    print(f"Saved to: {args.output}")


def run_emis(args: argparse.Namespace) -> None:
    document = extract_emi_document(args.input, min_gap_days=args.min_gap_days, debug=args.debug)
    exporters.write_json(document, args.output)

    base_name = os.path.splitext(args.output)[0]
    if args.output_format in ('excel', 'all'):
        exporters.export_plans_excel(document, f"{base_name}.xlsx")
        print(f"Exported to Excel: {base_name}.xlsx")
    if args.output_format in ('xml', 'all'):
        exporters.export_plans_xml(document, f"{base_name}.xml")
        print(f"Exported to XML: {base_name}.xml")

    exporters.print_plan_summary(document)
    print(f"\nSaved to: {args.output}")


def run_enrich(args: argparse.Namespace) -> None:
    document = enrich_emi_document(args.input)
    exporters.write_json(document, args.output)
    exporters.print_enrichment_summary(document['summary'], document['emiPlans'])
    print(f"\nEnriched EMI data saved to: {args.output}")


COMMANDS = {
    'parse': run_parse,
    'emis': run_emis,
    'enrich': run_enrich,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.log_dir, args.debug)
    try:
        COMMANDS[args.command](args)
    except EMIExtractorError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
