#!/usr/bin/env python3
"""
Quick Start Guide for TEI rich document conversion.

Converts the sample letter with the basic rule configuration and prints the
main document, the extracted footnotes, the header metadata and the
diagnostics raised for unconfigured markup.
"""

import json
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tei_rich_text import TEIConfig, TEIParser

EXAMPLES_DIR = Path(__file__).parent


def quick_start_example():
    """Quick start example showing basic usage."""

    print("QUICK START - TEI Rich Text")
    print("=" * 45)

    # Step 1: Load the rule configuration
    print("\nStep 1: Loading rules")
    print("-" * 30)
    config = TEIConfig.from_file(EXAMPLES_DIR / "configs" / "tei_basic.json")
    parser = TEIParser(config)
    print(f"Compiled {len(parser.rules.node_rules)} node rules "
          f"and {len(parser.rules.attribute_rules)} attribute rules")

    # Step 2: Convert the sample letter
    print("\nStep 2: Converting document")
    print("-" * 30)
    document = parser.parse_file(EXAMPLES_DIR / "data" / "letter.xml")
    main = document["main"]
    print(json.dumps(main.main.to_dict(), indent=2, ensure_ascii=False))

    # Step 3: Nested documents
    print("\nStep 3: Nested documents")
    print("-" * 30)
    for nested in main.iter_nested():
        print(f"{nested.type} {nested.id}: {nested.doc.plain_text}")

    # Step 4: Header metadata
    print("\nStep 4: Metadata")
    print("-" * 30)
    title = document["metadata"].find("tei:title")
    print(f"Title: {title.text if title is not None else 'n/a'}")

    # Step 5: Diagnostics
    print("\nStep 5: Diagnostics")
    print("-" * 30)
    for entry in document.diagnostics:
        print(f"  - {entry.severity.name} {entry.code}: {entry.message}")
    print(f"Elements visited: {document.metrics.elements_visited}")


if __name__ == "__main__":
    quick_start_example()
