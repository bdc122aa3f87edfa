"""Tests for locating the editable structure in a JavaScript source."""

import pytest
from segment_editor.errors import NoStructureFound, SourceSyntaxError
from segment_editor.parsing.js_ast import MemberKind, SourceText, StructureKind
from segment_editor.parsing.structure_parser import parse_structure


SIMPLE_CLASS = """\
class Foo {
  // Greets
  greet(){return 1;}
  farewell(){return 2;}
}"""


ACCESSORS = """\
class Point {
  get x() { return this._x; }
  set x(v) { this._x = v; }
  static make() { return new Point(); }
  #secret() { return 42; }
  'quoted name'() {}
  async *items() {}
}
"""


OBJECT_LITERAL = """\
const api = {
  // Fetch things
  fetch() { return 1; },
  name: 'x',
  save: function () { return 2; },
  load: () => 3,
};
"""


class TestFindStructure:
    def test_finds_class_declaration(self):
        parsed = parse_structure(SIMPLE_CLASS)

        assert parsed.structure.kind is StructureKind.CLASS
        assert parsed.structure.name == "Foo"
        assert [m.name for m in parsed.members] == ["greet", "farewell"]

    def test_class_wins_over_earlier_object(self):
        source = "const cfg = { a() {} };\nclass Foo { b() {} }\n"
        parsed = parse_structure(source)

        assert parsed.structure.kind is StructureKind.CLASS
        assert parsed.structure.name == "Foo"

    def test_first_class_wins(self):
        source = "class A { a() {} }\nclass B { b() {} }\n"
        assert parse_structure(source).structure.name == "A"

    def test_falls_back_to_object_literal(self):
        parsed = parse_structure(OBJECT_LITERAL)

        assert parsed.structure.kind is StructureKind.OBJECT_LITERAL
        assert parsed.structure.name == "api"
        assert [m.name for m in parsed.members] == ["fetch", "save", "load"]

    def test_object_members_carry_trailing_comma(self):
        parsed = parse_structure(OBJECT_LITERAL)
        fetch = parsed.members[0]

        assert fetch.separator_end is not None
        assert parsed.text[fetch.end:fetch.separator_end] == ","
        assert fetch.syntax_end == fetch.separator_end

    def test_function_valued_properties(self):
        parsed = parse_structure(OBJECT_LITERAL)
        kinds = {m.name: m.kind for m in parsed.members}

        assert kinds["fetch"] is MemberKind.METHOD
        assert kinds["save"] is MemberKind.FUNCTION_PROPERTY
        assert kinds["load"] is MemberKind.FUNCTION_PROPERTY

    def test_exported_class(self):
        parsed = parse_structure("export class Widget {\n  render() {}\n}\n")
        assert parsed.structure.name == "Widget"

    def test_export_default_class(self):
        parsed = parse_structure("export default class Widget {\n  render() {}\n}\n")
        assert parsed.structure.name == "Widget"

    def test_export_default_anonymous_class(self):
        parsed = parse_structure("export default class {\n  render() {}\n}\n")

        assert parsed.structure.kind is StructureKind.CLASS
        assert parsed.structure.name == "AnonymousClass"

    def test_exported_object(self):
        parsed = parse_structure("export const routes = {\n  home() {},\n};\n")

        assert parsed.structure.kind is StructureKind.OBJECT_LITERAL
        assert parsed.structure.name == "routes"

    def test_export_default_object(self):
        parsed = parse_structure("export default {\n  home() {},\n};\n")
        assert parsed.structure.name == "DefaultExportedObject"

    def test_no_structure(self):
        with pytest.raises(NoStructureFound):
            parse_structure("function foo() {}\nconst x = 1;\n")

    def test_empty_source(self):
        with pytest.raises(NoStructureFound):
            parse_structure("")

    def test_nested_class_is_not_top_level(self):
        with pytest.raises(NoStructureFound):
            parse_structure("function f() {\n  class Inner { a() {} }\n}\n")


class TestMemberNames:
    def test_accessors_and_special_names(self):
        names = [m.name for m in parse_structure(ACCESSORS).members]

        assert names == ["get x", "set x", "make", "#secret", "quoted name", "items"]

    def test_accessor_kinds(self):
        kinds = [m.kind for m in parse_structure(ACCESSORS).members]

        assert kinds[0] is MemberKind.GETTER
        assert kinds[1] is MemberKind.SETTER
        assert kinds[2] is MemberKind.METHOD

    def test_method_named_get_is_not_an_accessor(self):
        parsed = parse_structure("class Store {\n  get(key) { return key; }\n}\n")
        member = parsed.members[0]

        assert member.name == "get"
        assert member.kind is MemberKind.METHOD

    def test_duplicate_names_are_suffixed(self):
        parsed = parse_structure("class D {\n  a() {}\n  a() {}\n  a() {}\n}\n")
        assert [m.name for m in parsed.members] == ["a", "a (2)", "a (3)"]
        assert [m.base_name for m in parsed.members] == ["a", "a", "a"]

    def test_fields_are_not_members(self):
        parsed = parse_structure("class C {\n  count = 0;\n  inc() { this.count++; }\n}\n")
        assert [m.name for m in parsed.members] == ["inc"]

    def test_keys(self):
        structure = parse_structure(SIMPLE_CLASS).structure

        assert structure.definition_key == "Foo (Definition)"
        assert structure.member_key("greet") == "Foo::greet"
        assert structure.closing_key == "Foo (Closing)"


class TestSyntaxErrors:
    def test_reports_line(self):
        source = "class Foo {\n  greet( {\n}\n"
        with pytest.raises(SourceSyntaxError) as exc:
            parse_structure(source)

        assert exc.value.code == "syntax_error"
        assert exc.value.line is not None and exc.value.line >= 1
        assert exc.value.column is not None and exc.value.column >= 0
        assert "line" in str(exc.value)

    def test_to_dict_includes_location(self):
        with pytest.raises(SourceSyntaxError) as exc:
            parse_structure("class {")

        payload = exc.value.to_dict()
        assert payload["code"] == "syntax_error"
        assert "line" in payload and "column" in payload


class TestSourceText:
    def test_line_and_column(self):
        source = SourceText("ab\ncd\n")

        assert source.line_of(0) == 1
        assert source.line_of(3) == 2
        assert source.column_of(4) == 1

    def test_char_offsets_for_multibyte_text(self):
        source = SourceText("é = 1")

        # 'é' is two bytes in UTF-8
        assert source.char_offset(2) == 1
        assert source.char_offset(len(source.data)) == len(source.text)

    def test_members_located_after_multibyte_comment(self):
        source = "class Café {\n  // naïve\n  run() {}\n}\n"
        parsed = parse_structure(source)
        member = parsed.members[0]

        assert parsed.structure.name == "Café"
        assert source[member.start:member.end] == "run() {}"
