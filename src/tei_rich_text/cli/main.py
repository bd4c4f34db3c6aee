"""Main CLI entry point for the tei-rich-text command-line tool.

Converts TEI files into rich document JSON and lists the compiled rules of a
configuration in match-priority order.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from tei_rich_text import __version__
from tei_rich_text.api import MalformedDocumentError, TEIParser
from tei_rich_text.rules import compile_rules
from tei_rich_text.shared.config import ConfigError, ParserConfig, TEIConfig
from tei_rich_text.shared.logging import get_logger

XML_SUFFIXES = {".xml", ".tei"}


class CLIConfig:
    """Rule configuration and parser options gathered from command-line files."""

    def __init__(self, rules: TEIConfig, options: Optional[ParserConfig] = None):
        self.rules = rules
        self.options = options or ParserConfig()
        self.include_diagnostics = False
        self.quiet = False

    @classmethod
    def from_files(
        cls, config_path: Path, options_path: Optional[Path] = None
    ) -> "CLIConfig":
        """Load rules and, when given, parser options from JSON files."""
        rules = TEIConfig.from_file(config_path)
        options = None
        if options_path is not None:
            try:
                content = options_path.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigError(f"Could not read options {options_path}: {e}") from e
            options = ParserConfig.from_json(content)
        return cls(rules, options)


class ProgressTracker:
    """Progress display for multi-file conversions."""

    def __init__(self, total: int, description: str = "Converting"):
        self.total = total
        self.completed = 0
        self.description = description
        self.start_time = time.time()

    def update(self, increment: int = 1) -> None:
        self.completed += increment
        self._display_progress()

    def _display_progress(self) -> None:
        if self.total == 0:
            return
        percentage = (self.completed / self.total) * 100
        elapsed = time.time() - self.start_time
        print(f"\r{self.description}: {percentage:.1f}% "
              f"({self.completed}/{self.total}, {elapsed:.1f}s)",
              end="", file=sys.stderr)
        if self.completed >= self.total:
            print(file=sys.stderr)


class DocumentProcessor:
    """Converts TEI files with one shared parser."""

    def __init__(self, config: CLIConfig):
        self.config = config
        self.parser = TEIParser(config.rules, config.options)
        self.logger = get_logger(__name__, config.options.correlation_id, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Convert one file and return a JSON-compatible result record."""
        try:
            document = self.parser.parse_file(file_path)
        except (MalformedDocumentError, OSError) as e:
            self.logger.warning("Failed to convert file", extra={"file": str(file_path)})
            return {"file": str(file_path), "success": False, "error": str(e)}

        result: Dict[str, Any] = {
            "file": str(file_path),
            "success": True,
            "document": document.to_dict(),
            "metrics": document.metrics.to_dict(),
            "diagnostic_count": len(document.diagnostics),
        }
        if self.config.include_diagnostics:
            result["diagnostics"] = [entry.to_dict() for entry in document.diagnostics]
        return result

    def find_xml_files(self, path: Path, recursive: bool = False) -> Iterator[Path]:
        """Find TEI files in path."""
        if path.is_file():
            yield path
        elif path.is_dir():
            candidates = path.rglob("*") if recursive else path.glob("*")
            for candidate in sorted(candidates):
                if candidate.is_file() and candidate.suffix.lower() in XML_SUFFIXES:
                    yield candidate
        else:
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = False) -> List[Dict[str, Any]]:
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_xml_files(path, recursive))

        results = []
        progress = None
        if len(all_files) > 1 and not self.config.quiet:
            progress = ProgressTracker(len(all_files))
        for file_path in all_files:
            results.append(self.process_single_file(file_path))
            if progress is not None:
                progress.update()
        return results


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="tei-rich-text",
        description="Convert TEI XML into rich document trees using a rule configuration",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Quiet output")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    convert_parser = subparsers.add_parser("convert", help="Convert TEI files")
    convert_parser.add_argument(
        "paths", nargs="+", type=Path, help="TEI files or directories to convert"
    )
    convert_parser.add_argument(
        "--config", "-c", type=Path, required=True, help="Rule configuration (JSON)"
    )
    convert_parser.add_argument(
        "--options", type=Path, help="Parser options (JSON)"
    )
    convert_parser.add_argument(
        "--recursive", "-r", action="store_true", help="Recursively process directories"
    )
    convert_parser.add_argument(
        "--format", "-f", choices=["json", "text"], default="json",
        help="Output format (default: json)",
    )
    convert_parser.add_argument(
        "--output", "-o", type=Path, help="Output file (default: stdout)"
    )
    convert_parser.add_argument(
        "--include-diagnostics", action="store_true",
        help="Include diagnostic records in JSON output",
    )

    rules_parser = subparsers.add_parser("rules", help="List compiled rules in priority order")
    rules_parser.add_argument(
        "--config", "-c", type=Path, required=True, help="Rule configuration (JSON)"
    )
    rules_parser.add_argument(
        "--format", "-f", choices=["json", "text"], default="text",
        help="Output format (default: text)",
    )

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format conversion results for output."""
    if format_type == "text":
        if not results:
            return "No files converted."
        successful = sum(1 for r in results if r.get("success", False))
        lines = [f"Converted {len(results)} files, {successful} successful", "-" * 60]
        for result in results:
            if not result.get("success", False):
                lines.append(f"FAIL {result['file']}")
                lines.append(f"   Error: {result.get('error', '')}")
                continue
            metrics = result.get("metrics", {})
            lines.append(f"OK   {result['file']}")
            lines.append(
                f"   Sections: {', '.join(result['document'])}, "
                f"Elements: {metrics.get('elements_visited', 0)}, "
                f"Unknown: {metrics.get('unknown_elements', 0)}, "
                f"Nested: {metrics.get('nested_documents', 0)}"
            )
        return "\n".join(lines)

    return json.dumps(
        {result["file"]: result for result in results}, indent=2, ensure_ascii=False
    )


def format_rules(config: TEIConfig, format_type: str) -> str:
    """Format the compiled rules of a configuration."""
    rules = compile_rules(config)
    if format_type == "json":
        return json.dumps(
            {
                "node_rules": [rule.to_dict() for rule in rules.node_rules],
                "attribute_rules": [rule.to_dict() for rule in rules.attribute_rules],
            },
            indent=2,
        )

    lines = [f"Node rules ({len(rules.node_rules)}):"]
    for index, rule in enumerate(rules.node_rules, 1):
        extra = f" attrs={','.join(rule.attrs)}" if rule.attrs else ""
        lines.append(f"{index:4d}. {rule.pattern} -> {rule.name} [{rule.role.value}]{extra}")
    lines.append(f"Attribute rules ({len(rules.attribute_rules)}):")
    for index, attribute_rule in enumerate(rules.attribute_rules, 1):
        lines.append(
            f"{index:4d}. {attribute_rule.pattern} -> {attribute_rule.name} "
            f"= {attribute_rule.value_pattern}"
        )
    return "\n".join(lines)


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    try:
        config = CLIConfig.from_files(args.config, args.options)
        config.include_diagnostics = args.include_diagnostics
        config.quiet = args.quiet
        processor = DocumentProcessor(config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    results = processor.batch_process(args.paths, args.recursive)
    formatted_output = format_results(results, args.format)

    if args.output:
        try:
            args.output.write_text(formatted_output, encoding="utf-8")
        except OSError as e:
            print(f"Error writing output: {e}", file=sys.stderr)
            return 1
        if not args.quiet:
            print(f"Results written to {args.output}", file=sys.stderr)
    else:
        print(formatted_output)

    if not results:
        return 1
    return 0 if all(r.get("success", False) for r in results) else 1


def cmd_rules(args: argparse.Namespace) -> int:
    """Handle rules command."""
    try:
        config = TEIConfig.from_file(args.config)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    print(format_rules(config, args.format))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    elif args.quiet:
        logging.basicConfig(level=logging.ERROR)

    try:
        if args.command == "convert":
            return cmd_convert(args)
        if args.command == "rules":
            return cmd_rules(args)
        print(f"Unknown command: {args.command}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
