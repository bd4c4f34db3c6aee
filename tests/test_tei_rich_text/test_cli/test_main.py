"""Tests for the tei-rich-text command-line interface."""

import json

import pytest

from tei_rich_text.cli.main import (
    CLIConfig,
    DocumentProcessor,
    create_argument_parser,
    format_results,
    format_rules,
    main,
)
from tei_rich_text.shared.config import ConfigError, TEIConfig

TEI = "http://www.tei-c.org/ns/1.0"

CONFIG = {
    "sections": [
        {"name": "main", "type": "text", "parse": {"rule": "tei:text/tei:body"}},
    ],
    "elements": [
        {"name": "doc", "parse": {"rule": "tei:body"}},
        {"name": "paragraph", "attrs": ["xmlid"], "parse": {"rule": "tei:p"}},
        {"name": "italic", "type": "mark", "parse": {"rule": "tei:hi"}},
    ],
    "attributes": [
        {"name": "xmlid", "parse": {"rule": "@xml:id", "value": "@xml:id"}},
    ],
}


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps(CONFIG), encoding="utf-8")
    return path


@pytest.fixture
def tei_path(tmp_path):
    path = tmp_path / "letter.xml"
    path.write_text(
        f'<TEI xmlns="{TEI}"><text><body><p>Hi <hi>there</hi></p><seg/></body></text></TEI>',
        encoding="utf-8",
    )
    return path


class TestArgumentParser:
    """Test cases for the argument parser."""

    def test_convert_arguments(self):
        args = create_argument_parser().parse_args(
            ["convert", "a.xml", "b.xml", "--config", "rules.json", "--format", "text"]
        )
        assert args.command == "convert"
        assert [str(path) for path in args.paths] == ["a.xml", "b.xml"]
        assert args.format == "text"
        assert not args.recursive

    def test_convert_requires_config(self):
        with pytest.raises(SystemExit):
            create_argument_parser().parse_args(["convert", "a.xml"])

    def test_rules_defaults_to_text(self):
        args = create_argument_parser().parse_args(["rules", "--config", "rules.json"])
        assert args.format == "text"


class TestCLIConfig:
    """Test cases for CLIConfig."""

    def test_from_files(self, config_path, tmp_path):
        options_path = tmp_path / "options.json"
        options_path.write_text('{"max_depth": 12}', encoding="utf-8")
        config = CLIConfig.from_files(config_path, options_path)
        assert isinstance(config.rules, TEIConfig)
        assert config.options.max_depth == 12

    def test_missing_options_file(self, config_path, tmp_path):
        with pytest.raises(ConfigError, match="Could not read options"):
            CLIConfig.from_files(config_path, tmp_path / "missing.json")


class TestDocumentProcessor:
    """Test cases for DocumentProcessor."""

    def test_process_single_file(self, config_path, tei_path):
        processor = DocumentProcessor(CLIConfig.from_files(config_path))
        result = processor.process_single_file(tei_path)
        assert result["success"] is True
        assert result["diagnostic_count"] == 1
        assert "diagnostics" not in result
        paragraph = result["document"]["main"]["main"]["content"][0]
        assert [child["text"] for child in paragraph["content"]] == ["Hi ", "there"]

    def test_include_diagnostics(self, config_path, tei_path):
        config = CLIConfig.from_files(config_path)
        config.include_diagnostics = True
        result = DocumentProcessor(config).process_single_file(tei_path)
        assert result["diagnostics"][0]["code"] == "unknown-element"
        assert result["diagnostics"][0]["timestamp"] > 0
        assert "correlation_id" in result["diagnostics"][0]

    def test_malformed_file(self, config_path, tmp_path):
        broken = tmp_path / "broken.xml"
        broken.write_text("<TEI><text></TEI>", encoding="utf-8")
        result = DocumentProcessor(CLIConfig.from_files(config_path)).process_single_file(broken)
        assert result["success"] is False
        assert "Malformed XML" in result["error"]

    def test_find_xml_files(self, config_path, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "a.xml").write_text("<a/>", encoding="utf-8")
        (tmp_path / "sub" / "b.tei").write_text("<b/>", encoding="utf-8")
        (tmp_path / "notes.txt").write_text("x", encoding="utf-8")
        processor = DocumentProcessor(CLIConfig.from_files(config_path))
        assert [p.name for p in processor.find_xml_files(tmp_path)] == ["a.xml"]
        assert sorted(p.name for p in processor.find_xml_files(tmp_path, recursive=True)) == [
            "a.xml", "b.tei"
        ]


class TestFormatting:
    """Test cases for output formatting."""

    def test_format_results_text(self):
        results = [
            {"file": "a.xml", "success": True, "document": {"main": {}},
             "metrics": {"elements_visited": 4, "unknown_elements": 1}},
            {"file": "b.xml", "success": False, "error": "Malformed XML"},
        ]
        output = format_results(results, "text")
        assert "Converted 2 files, 1 successful" in output
        assert "OK   a.xml" in output
        assert "FAIL b.xml" in output

    def test_format_results_empty(self):
        assert format_results([], "text") == "No files converted."

    def test_format_rules_text(self):
        output = format_rules(TEIConfig.from_dict(CONFIG), "text")
        assert "Node rules (3):" in output
        assert "1. tei:body -> doc [block]" in output
        assert "3. tei:hi -> italic [mark]" in output
        assert "1. @xml:id -> xmlid = @xml:id" in output

    def test_format_rules_json(self):
        data = json.loads(format_rules(TEIConfig.from_dict(CONFIG), "json"))
        assert [rule["name"] for rule in data["node_rules"]] == ["doc", "paragraph", "italic"]
        assert data["attribute_rules"][0]["value"] == "@xml:id"


class TestMain:
    """Test cases for the main entry point."""

    def test_no_command(self, capsys):
        assert main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_convert_json(self, config_path, tei_path, capsys):
        exit_code = main(["convert", str(tei_path), "--config", str(config_path)])
        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output[str(tei_path)]["success"] is True

    def test_convert_to_output_file(self, config_path, tei_path, tmp_path):
        out = tmp_path / "out.json"
        exit_code = main([
            "convert", str(tei_path), "--config", str(config_path), "-o", str(out)
        ])
        assert exit_code == 0
        assert json.loads(out.read_text(encoding="utf-8"))[str(tei_path)]["success"]

    def test_convert_failure_exit_code(self, config_path, tmp_path):
        broken = tmp_path / "broken.xml"
        broken.write_text("<TEI>", encoding="utf-8")
        assert main(["convert", str(broken), "--config", str(config_path)]) == 1

    def test_bad_configuration(self, tmp_path, tei_path, capsys):
        bad = tmp_path / "bad.json"
        bad.write_text("{not json", encoding="utf-8")
        assert main(["convert", str(tei_path), "--config", str(bad)]) == 2
        assert "Configuration error" in capsys.readouterr().err

    def test_rules_command(self, config_path, capsys):
        assert main(["rules", "--config", str(config_path)]) == 0
        assert "tei:p -> paragraph [block] attrs=xmlid" in capsys.readouterr().out
