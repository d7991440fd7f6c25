"""Tests for converter nodes."""
from __future__ import annotations

from stanzamap import TranslationContext, Translator, XMLElement
from stanzamap.core.translator import DefinitionRecord, TypeContext, exporter_key


def _record(**overrides) -> DefinitionRecord:
    values = {"namespace": "urn:x", "element": "item"}
    values.update(overrides)
    return DefinitionRecord(**values)


class TestStructure:
    def test_add_child_indexes_import_key(self):
        parent, child = Translator(), Translator()
        edge = parent.add_child("item", child, multiple=True, import_key="{urn:x}item")
        assert parent.get_child("item") is edge
        assert edge.translator is child and edge.multiple
        assert parent.get_import_key(XMLElement("item", {"xmlns": "urn:x"})) == "item"

    def test_add_child_keeps_existing_target(self):
        parent, first, second = Translator(), Translator(), Translator()
        parent.add_child("item", first, selector="a")
        edge = parent.add_child("item", second, multiple=True, selector="a")
        assert edge.translator is first
        assert edge.multiple
        assert edge.selector == "a"

    def test_add_context_merges_per_path(self):
        node = Translator()
        node.add_context("a.b", None, "kind", "{urn:1}x", "one")
        node.add_context("a.b", None, "kind", "{urn:2}x", "two")
        context = node.contexts["a.b"]
        assert context.type_field == "kind"
        assert context.type_values == {"{urn:1}x": "one", "{urn:2}x": "two"}
        assert context.implied_type is None

    def test_replace_with_merges_state(self):
        old, new, grandchild = Translator(), Translator(), Translator()
        old.add_child("sub", grandchild, import_key="{urn:g}g")
        old.update_definition(_record(namespace="urn:old", type="t"))
        old.type_field = "kind"
        new.update_definition(_record(namespace="urn:new"))

        old.replace_with(new)
        assert new.get_child("sub").translator is grandchild
        assert new.children_index["{urn:g}g"] == "sub"
        assert set(new.importers) == {"{urn:old}item", "{urn:new}item"}
        assert new.type_field == "kind"

    def test_replace_with_carries_language_field(self):
        old, new = Translator(), Translator()
        old.language_field = "language"
        old.replace_with(new)
        assert new.language_field == "language"

        kept = Translator()
        kept.language_field = "locale"
        old.replace_with(kept)
        assert kept.language_field == "locale"


class TestUpdateDefinition:
    def test_exporters_keyed_by_version_and_type(self):
        node = Translator()
        node.update_definition(_record(type="info", version="2"))
        node.update_definition(_record(namespace="urn:y", type="items"))
        assert set(node.exporters) == {"2-info", "items"}
        assert exporter_key(None, None) == ""

    def test_missing_converters_are_ignored(self):
        node = Translator()
        node.update_definition(_record(importers={"a": None}, exporters={"b": None}))
        importer = node.importers["{urn:x}item"]
        assert importer.field_importers == {}
        assert node.exporters[""].field_exporters == {}

    def test_contexts_merged(self):
        node = Translator()
        node.update_definition(_record(contexts={"p": TypeContext(type_field="kind")}))
        node.update_definition(_record(contexts={"p": TypeContext(type_values={"x": "y"})}))
        assert node.contexts["p"].type_field == "kind"
        assert node.contexts["p"].type_values == {"x": "y"}


class TestOrdering:
    def test_import_order_is_stable(self):
        calls: list[str] = []

        def importer(name):
            def run(xml, context):
                calls.append(name)
                return name
            return run

        node = Translator()
        node.update_definition(_record(
            importers={"c": importer("c"), "a": importer("a"), "b": importer("b"), "z": importer("z")},
            importer_ordering={"c": 1, "a": 0, "b": 0, "z": -1},
        ))
        node.import_(XMLElement("item", {"xmlns": "urn:x"}), TranslationContext())
        assert calls == ["z", "a", "b", "c"]

    def test_export_order_is_stable(self):
        calls: list[str] = []

        def exporter(xml, value, context):
            calls.append(value)

        node = Translator()
        node.update_definition(_record(
            exporters={"late": exporter, "first": exporter, "second": exporter},
            exporter_ordering={"late": 5},
        ))
        node.export({"late": "late", "first": "first", "second": "second"}, TranslationContext())
        assert calls == ["first", "second", "late"]

    def test_type_order_sorts_multiple_children(self):
        parent, child = Translator(), Translator()
        child.type_field = "kind"
        child.update_definition(_record(namespace="urn:a", type="a", type_order=2))
        child.update_definition(_record(namespace="urn:b", type="b", type_order=1))
        parent.update_definition(_record(namespace="urn:p", element="list"))
        parent.add_child("items", child, multiple=True)

        output = parent.export({"items": [{"kind": "a"}, {"kind": "b"}]}, TranslationContext())
        assert [c.get_namespace() for c in output.iter_elements()] == ["urn:b", "urn:a"]


class TestTypeResolution:
    def test_type_field_written_on_import(self):
        node = Translator()
        node.type_field = "kind"
        node.version_field = "v"
        node.update_definition(_record(type="info", version="2"))
        result = node.import_(XMLElement("item", {"xmlns": "urn:x"}), TranslationContext())
        assert result == {"kind": "info", "v": "2"}

    def test_export_falls_back_to_default_type(self):
        node = Translator()
        node.type_field = "kind"
        node.default_type = "info"
        node.update_definition(_record(namespace="urn:info", type="info"))
        node.update_definition(_record(namespace="urn:items", type="items"))
        assert node.export({}, TranslationContext()).get_namespace() == "urn:info"
        assert node.export({"kind": "items"}, TranslationContext()).get_namespace() == "urn:items"

    def test_context_selector_used_when_data_has_no_type(self):
        node = Translator()
        node.update_definition(_record(namespace="urn:a", type="a"))
        node.update_definition(_record(namespace="urn:b", type="b"))
        node.add_context("p", "b", "kind", "{urn:b}item", "b")
        output = node.export({}, TranslationContext(path="p"))
        assert output.get_namespace() == "urn:b"

    def test_unknown_type_exports_nothing(self):
        node = Translator()
        node.type_field = "kind"
        node.update_definition(_record(namespace="urn:a", type="a"))
        node.update_definition(_record(namespace="urn:b", type="b"))
        assert node.export({"kind": "c"}, TranslationContext()) is None

    def test_placeholder_imports_and_exports_nothing(self):
        node = Translator(placeholder=True)
        assert node.import_(XMLElement("item", {"xmlns": "urn:x"}), TranslationContext()) is None
        assert node.export({"a": 1}, TranslationContext()) is None

    def test_non_mapping_data_exports_nothing(self):
        node = Translator()
        node.update_definition(_record())
        assert node.export("text", TranslationContext()) is None


class TestSelectors:
    def test_selector_filters_imported_children(self):
        parent, child = Translator(), Translator()
        child.update_definition(_record(namespace="urn:a", type="a"))
        child.update_definition(_record(namespace="urn:b", type="b"))
        parent.update_definition(_record(namespace="urn:p", element="wrap"))
        parent.add_child("item", child, selector="a", import_key="{urn:a}item")
        parent.children_index["{urn:b}item"] = "item"

        xml = XMLElement("wrap", {"xmlns": "urn:p"}, [XMLElement("item", {"xmlns": "urn:b"})])
        assert parent.import_(xml, TranslationContext()) == {}
        xml = XMLElement("wrap", {"xmlns": "urn:p"}, [XMLElement("item", {"xmlns": "urn:a"})])
        assert parent.import_(xml, TranslationContext()) == {"item": {}}
