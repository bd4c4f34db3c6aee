"""Tests for converting section subtrees with the tree walker."""

import logging

from lxml import etree

from tei_rich_text.query import XPathEvaluator
from tei_rich_text.rules import compile_rules
from tei_rich_text.shared.config import ParserConfig, TEIConfig
from tei_rich_text.shared.result import DiagnosticCode, DiagnosticSink
from tei_rich_text.tree import (
    ContextKind,
    NodeResolver,
    Resolution,
    TraversalContext,
    TreeWalker,
)
from tei_rich_text.tree.nodes import Mark, StructuralNode, TextNode

TEI = "http://www.tei-c.org/ns/1.0"

RULES = {
    "elements": [
        {"name": "doc", "parse": {"rule": "tei:body"}},
        {"name": "paragraph", "parse": {"rule": "tei:p"}},
        {"name": "pageBreak", "type": "inline", "attrs": ["n"],
         "parse": {"rule": "tei:pb", "text": "@n"}},
        {"name": "italic", "type": "mark",
         "parse": {"rule": "tei:hi[contains(@rend, 'italic')]"}},
        {"name": "bold", "type": "mark",
         "parse": {"rule": "tei:hi[contains(@rend, 'bold')]"}},
        {"name": "footnote", "type": "nested", "attrs": ["xmlid"],
         "parse": {"rule": "tei:note"}},
    ],
    "attributes": [
        {"name": "xmlid", "parse": {"rule": "@xml:id", "value": "@xml:id"}},
        {"name": "n", "parse": {"rule": "@n", "value": "@n"}},
    ],
}


def make_walker(options=None, diagnostics=None, rules=None):
    config = TEIConfig.from_dict(rules or RULES)
    resolver = NodeResolver(compile_rules(config), XPathEvaluator())
    return TreeWalker(resolver, options, diagnostics)


XML_PARSER = etree.XMLParser(collect_ids=False)


def body(markup):
    return etree.fromstring(f'<body xmlns="{TEI}">{markup}</body>', XML_PARSER)


class TestTraversalContext:
    """Test cases for TraversalContext."""

    def test_root(self):
        container = StructuralNode("doc")
        context = TraversalContext.root(container)
        assert context.kind is ContextKind.ROOT
        assert context.node is container
        assert context.depth == 0

    def test_descend(self):
        context = TraversalContext.root(StructuralNode("doc"))
        paragraph = StructuralNode("paragraph")
        run = TextNode(marks=[Mark("italic")])

        assert context.descend().node is context.node
        assert context.descend().depth == 1
        structural = context.descend(Resolution(paragraph))
        assert structural.kind is ContextKind.STRUCTURAL
        assert structural.node is paragraph
        marked = structural.descend(Resolution(run))
        assert marked.kind is ContextKind.MARK
        assert marked.depth == 2


class TestTreeWalker:
    """Test cases for TreeWalker.build."""

    def test_section_root_becomes_main(self):
        collection = make_walker().build(body("<p>Hello</p>"))
        assert collection.main == StructuralNode(
            "doc", content=[StructuralNode("paragraph", content=[TextNode("Hello")])]
        )

    def test_mixed_content_keeps_order(self):
        collection = make_walker().build(body('<p>A <hi rend="italic">B</hi> C</p>'))
        paragraph = collection.main.content[0]
        assert paragraph.content == [
            TextNode("A "),
            TextNode("B", marks=[Mark("italic")]),
            TextNode(" C"),
        ]

    def test_nested_marks_fold_into_one_run(self):
        collection = make_walker().build(
            body('<p><hi rend="italic">a <hi rend="bold">b</hi> c</hi></p>')
        )
        assert collection.main.content[0].content == [
            TextNode("a b c", marks=[Mark("italic"), Mark("bold")])
        ]

    def test_structural_inside_mark_folds_into_run(self):
        collection = make_walker().build(
            body('<p><hi rend="italic">a<p>b</p>c</hi></p>')
        )
        assert collection.main.content[0].content == [
            TextNode("abc", marks=[Mark("italic")])
        ]

    def test_nested_root_inside_mark(self):
        collection = make_walker().build(
            body('<p><hi rend="italic">a<note xml:id="n9">z</note>b</hi></p>')
        )
        assert collection.main.content[0].content == [
            TextNode("ab", marks=[Mark("italic")])
        ]
        assert collection.get_nested("footnote", "n9").doc == StructuralNode(
            "doc", content=[TextNode("z")]
        )

    def test_inline_text_pattern(self):
        collection = make_walker().build(body('<p>End<pb n="2"/>Start</p>'))
        assert collection.main.content[0].content == [
            TextNode("End"),
            StructuralNode("pageBreak", content=[TextNode("2")], attrs={"n": "2"}),
            TextNode("Start"),
        ]

    def test_nested_documents_are_extracted(self):
        walker = make_walker()
        collection = walker.build(
            body('<p>Text<note xml:id="n1"><p>Note</p></note></p>')
        )
        assert collection.main.content[0].content == [TextNode("Text")]
        nested = collection.get_nested("footnote", "n1")
        assert nested.id == "n1"
        assert nested.type == "footnote"
        assert nested.doc == StructuralNode(
            "doc", content=[StructuralNode("paragraph", content=[TextNode("Note")])]
        )
        assert walker.metrics.nested_documents == 1

    def test_nested_document_root_has_no_text(self):
        rules = dict(RULES)
        rules["elements"] = [
            {"name": "doc", "parse": {"rule": "tei:body"}},
            {"name": "footnote", "type": "nested", "attrs": ["xmlid"],
             "parse": {"rule": "tei:note", "text": "@n"}},
        ]
        collection = make_walker(rules=rules).build(
            body('<note xml:id="n1" n="3">ignored</note>')
        )
        assert collection.get_nested("footnote", "n1").doc == StructuralNode("doc")

    def test_nested_without_id_gets_generated_key(self):
        diagnostics = DiagnosticSink()
        collection = make_walker(diagnostics=diagnostics).build(
            body("<note>one</note><note>two</note>")
        )
        assert sorted(collection.nested["footnote"]) == ["footnote-1", "footnote-2"]
        assert len(diagnostics.by_code(DiagnosticCode.MISSING_NESTED_ID)) == 2

    def test_duplicate_nested_id_keeps_last(self):
        diagnostics = DiagnosticSink()
        collection = make_walker(diagnostics=diagnostics).build(
            body('<note xml:id="n1">first</note><note xml:id="n1">second</note>')
        )
        assert collection.get_nested("footnote", "n1").doc.plain_text == "second"
        assert len(diagnostics.by_code(DiagnosticCode.DUPLICATE_NESTED_ID)) == 1

    def test_unknown_element_skipped_with_subtree(self, caplog):
        diagnostics = DiagnosticSink()
        walker = make_walker(diagnostics=diagnostics)
        with caplog.at_level(logging.WARNING, logger="tei_rich_text.tree.walker"):
            collection = walker.build(
                body("<p>A</p><seg type=\"x\"><p>inner</p></seg><p>B</p>")
            )
        assert [node.plain_text for node in collection.main.content] == ["A", "B"]
        entries = diagnostics.by_code(DiagnosticCode.UNKNOWN_ELEMENT)
        assert len(entries) == 1
        assert entries[0].details == {"tag": "tei:seg", "attributes": {"type": "x"}}
        assert walker.metrics.unknown_elements == 1
        components = [getattr(record, "component", None) for record in caplog.records]
        assert "tree_walker" in components

    def test_indentation_dropped_by_default(self):
        root = body("\n  <p>One</p>\n")
        assert make_walker().build(root).main.content == [
            StructuralNode("paragraph", content=[TextNode("One")])
        ]

    def test_indentation_kept_when_configured(self):
        root = body("\n  <p>One</p>\n")
        walker = make_walker(ParserConfig(drop_indentation_text=False))
        content = walker.build(root).main.content
        assert content[0] == TextNode("\n  ")
        assert content[2] == TextNode("\n")

    def test_comments_skipped_but_tail_kept(self):
        collection = make_walker().build(body("<p>a<!-- note -->b</p>"))
        assert collection.main.content[0].content == [TextNode("a"), TextNode("b")]

    def test_max_depth(self):
        diagnostics = DiagnosticSink()
        walker = make_walker(ParserConfig(max_depth=2), diagnostics)
        collection = walker.build(body('<p>x<hi rend="italic">deep</hi></p>'))
        assert collection.main.content[0].content == [TextNode("x")]
        assert len(diagnostics.by_code(DiagnosticCode.MAX_DEPTH_EXCEEDED)) == 1

    def test_unknown_section_root_gives_empty_document(self):
        collection = make_walker().build(etree.fromstring(f'<div xmlns="{TEI}"><p>x</p></div>'))
        assert collection.main == StructuralNode("doc")

    def test_marked_section_root_is_wrapped(self):
        root = etree.fromstring(f'<hi xmlns="{TEI}" rend="italic">x</hi>')
        collection = make_walker().build(root)
        assert collection.main == StructuralNode(
            "doc", content=[TextNode("x", marks=[Mark("italic")])]
        )

    def test_metrics(self):
        walker = make_walker()
        walker.build(body('<p><hi rend="bold italic">x</hi></p>'))
        assert walker.metrics.elements_visited == 3
        assert walker.metrics.nodes_created == 3
        assert walker.metrics.marks_applied == 2
