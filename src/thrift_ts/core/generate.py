"""TypeScript emission for parsed Thrift documents.

Structs become interfaces, enums a ``const`` object plus a union type of its
values, services interfaces with one method per function. Field ids and
annotations are carried over as JSDoc tags.
"""

import json
import re

from pydantic import BaseModel, ConfigDict

from thrift_ts.core.paths import import_specifier, module_stem
from thrift_ts.core.visit import Visitor
from thrift_ts.models import (
    Annotation,
    BlockComment,
    Comment,
    Document,
    EnumDefinition,
    EnumMember,
    FieldDefinition,
    FunctionDefinition,
    IncludeDefinition,
    LineComment,
    ListType,
    MapType,
    NamedType,
    NamespaceDefinition,
    PrimitiveType,
    ServiceDefinition,
    StructDefinition,
    ThriftType,
)

_INDENT = "  "

_PRIMITIVE_TYPES = {
    "void": "void",
    "string": "string",
    "bool": "boolean",
    "i16": "number",
    "i32": "number",
    # i64 above 2^53 loses precision.
    "i64": "number",
    "double": "number",
}

_RESERVED_WORDS = frozenset(
    {
        "arguments",
        "await",
        "break",
        "case",
        "catch",
        "class",
        "const",
        "continue",
        "debugger",
        "default",
        "delete",
        "do",
        "else",
        "enum",
        "eval",
        "export",
        "extends",
        "false",
        "finally",
        "for",
        "function",
        "if",
        "implements",
        "import",
        "in",
        "instanceof",
        "interface",
        "let",
        "new",
        "null",
        "package",
        "private",
        "protected",
        "public",
        "return",
        "static",
        "super",
        "switch",
        "this",
        "throw",
        "true",
        "try",
        "typeof",
        "var",
        "void",
        "while",
        "with",
        "yield",
    }
)

# Leading "*" of a block comment line written in JSDoc style.
_GUTTER = re.compile(r"^\*(?!/) ?")


class GenerateOptions(BaseModel):
    """Generator settings, passed by value to every build. None are recognised yet."""

    model_config = ConfigDict(frozen=True)


class _CodeWriter:
    def __init__(self) -> None:
        self.indent = 0
        self.lines: list[str] = []

    def line(self, text: str = "") -> None:
        self.lines.append((_INDENT * self.indent + text).rstrip())

    def blank(self) -> None:
        if self.lines and self.lines[-1]:
            self.lines.append("")

    def doc(self, entries: list[str]) -> None:
        """Write a JSDoc block, one line per entry (entries may span lines)."""
        texts = [_escape_doc(text) for entry in entries for text in (entry.splitlines() or [""])]
        if not texts:
            return
        if len(texts) == 1:
            self.line(f"/** {texts[0]} */")
            return
        self.line("/**")
        for text in texts:
            self.line(f" * {text}")
        self.line(" */")

    def comments(self, entries: list[str]) -> None:
        for entry in entries:
            for text in entry.splitlines() or [""]:
                self.line(f"// {text}")

    def output(self) -> str:
        lines = list(self.lines)
        while lines and not lines[-1]:
            lines.pop()
        return "\n".join(lines) + "\n"


class Generator(Visitor):
    def __init__(self, document: Document) -> None:
        self.document = document
        self.options = GenerateOptions()
        self._writer = _CodeWriter()
        self._bindings: set[str] = set()
        self._previous_kind: str | None = None
        self._member_index = 0

    def build(self, options: GenerateOptions) -> str:
        self.options = options
        self._writer = _CodeWriter()
        self._bindings = set()
        self._previous_kind = None
        self.visit_document(self.document)
        if self.document.trailing_comments:
            self._writer.blank()
            self._writer.comments(_comment_lines(self.document.trailing_comments))
        return self._writer.output()

    def _separate(self, kind: str) -> None:
        """Blank line between definitions; namespaces and includes stay grouped."""
        if kind != self._previous_kind or kind not in ("namespace", "include"):
            self._writer.blank()
        self._previous_kind = kind

    # ── Top-level definitions ────────────────────────────────

    def visit_namespace_definition(self, namespace_definition: NamespaceDefinition) -> None:
        self._separate("namespace")
        self._writer.doc(
            _comment_lines(namespace_definition.comments)
            + [f"namespace {namespace_definition.scope} {namespace_definition.name}"]
        )

    def visit_include_definition(self, include_definition: IncludeDefinition) -> None:
        self._separate("include")
        binding = self._import_binding(include_definition.path)
        specifier = json.dumps(import_specifier(include_definition.path), ensure_ascii=False)
        self._writer.doc(_comment_lines(include_definition.comments))
        self._writer.line(f"import * as {binding} from {specifier};")

    def visit_struct_definition(self, struct_definition: StructDefinition) -> None:
        self._separate("struct")
        self._writer.doc(_comment_lines(struct_definition.comments))
        self._writer.line(f"export interface {_binding_name(struct_definition.name)} {{")
        self._writer.indent += 1
        super().visit_struct_definition(struct_definition)
        self._writer.comments(_comment_lines(struct_definition.trailing_comments))
        self._writer.indent -= 1
        self._writer.line("}")

    def visit_enum_definition(self, enum_definition: EnumDefinition) -> None:
        self._separate("enum")
        name = _binding_name(enum_definition.name)
        self._writer.doc(_comment_lines(enum_definition.comments))
        self._writer.line(f"export const {name} = {{")
        self._writer.indent += 1
        self._member_index = 0
        super().visit_enum_definition(enum_definition)
        self._writer.comments(_comment_lines(enum_definition.trailing_comments))
        self._writer.indent -= 1
        self._writer.line("} as const;")
        self._writer.line(f"export type {name} = typeof {name}[keyof typeof {name}];")

    def visit_service_definition(self, service_definition: ServiceDefinition) -> None:
        self._separate("service")
        self._writer.doc(_comment_lines(service_definition.comments))
        self._writer.line(f"export interface {_binding_name(service_definition.name)} {{")
        self._writer.indent += 1
        super().visit_service_definition(service_definition)
        self._writer.comments(_comment_lines(service_definition.trailing_comments))
        self._writer.indent -= 1
        self._writer.line("}")

    # ── Members ──────────────────────────────────────────────

    def visit_struct_field_definition(self, field_definition: FieldDefinition) -> None:
        self._writer.doc(
            _comment_lines(field_definition.comments)
            + [f"@fieldId {field_definition.id}"]
            + _annotation_tags(field_definition.annotations)
        )
        name = _property_key(field_definition.name)
        optional = "?" if field_definition.requiredness == "optional" else ""
        self._writer.line(f"{name}{optional}: {self._ts_type(field_definition.type)};")

    def visit_enum_member(self, enum_member: EnumMember) -> None:
        # Members without an initializer take their zero-based position.
        value = str(int(enum_member.value)) if enum_member.value is not None else str(self._member_index)
        self._member_index += 1
        self._writer.doc(_comment_lines(enum_member.comments))
        self._writer.line(f"{_property_key(enum_member.name)}: {value},")

    def visit_function_definition(self, function_definition: FunctionDefinition) -> None:
        tags = [_param_tag(param) for param in function_definition.fields]
        tags += _annotation_tags(function_definition.annotations)
        self._writer.doc(_comment_lines(function_definition.comments) + tags)
        params = ", ".join(
            f"{_binding_name(param.name)}: {self._ts_type(param.type)}" for param in function_definition.fields
        )
        return_type = self._ts_type(function_definition.return_type)
        self._writer.line(f"{_property_key(function_definition.name)}({params}): {return_type};")

    # ── Helpers ──────────────────────────────────────────────

    def _ts_type(self, thrift_type: ThriftType) -> str:
        match thrift_type:
            case PrimitiveType(name=name):
                return _PRIMITIVE_TYPES[name]
            case ListType(element=element):
                return f"Array<{self._ts_type(element)}>"
            case MapType(key=key, value=value):
                return f"Record<{self._ts_type(key)}, {self._ts_type(value)}>"
            case NamedType(name=name):
                return _type_reference(name)
        raise TypeError(f"Unsupported type node: {thrift_type!r}")

    def _import_binding(self, path: str) -> str:
        base = _binding_name(module_stem(path))
        binding = base
        suffix = 2
        while binding in self._bindings:
            binding = f"{base}_{suffix}"
            suffix += 1
        self._bindings.add(binding)
        return binding


def _comment_lines(comments: list[Comment]) -> list[str]:
    lines: list[str] = []
    for comment in comments:
        match comment:
            case LineComment(text=text):
                lines.append(text)
            case BlockComment(lines=block_lines):
                lines.extend(_block_lines(block_lines))
    return lines


def _block_lines(lines: list[str]) -> list[str]:
    texts = [_GUTTER.sub("", line, count=1) for line in lines]
    while texts and not texts[0]:
        texts.pop(0)
    while texts and not texts[-1]:
        texts.pop()
    return texts or [""]


def _param_tag(param: FieldDefinition) -> str:
    tag = f"@param {_binding_name(param.name)} fieldId {param.id}"
    if param.annotations:
        tag += f" ({_annotation_list(param.annotations)})"
    description = " ".join(_comment_lines(param.comments))
    if description:
        tag += f" {description}"
    return tag


def _annotation_tags(annotations: list[Annotation] | None) -> list[str]:
    return [f"@annotation {annotation.name}={annotation.value}" for annotation in annotations or []]


def _annotation_list(annotations: list[Annotation]) -> str:
    return ", ".join(f"{annotation.name}={annotation.value}" for annotation in annotations)


def _escape_doc(text: str) -> str:
    return text.replace("*/", "*\\/")


def _is_identifier(name: str) -> bool:
    return name.replace("$", "_").isidentifier()


def _sanitize(name: str) -> str:
    safe = "".join(ch if ch == "$" or f"_{ch}".isidentifier() else "_" for ch in name)
    if not _is_identifier(safe):
        safe = f"_{safe}"
    return safe


def _binding_name(name: str) -> str:
    """A declarable TypeScript name: invalid characters become ``_``, reserved words get a suffix."""
    safe = _sanitize(name)
    if safe in _RESERVED_WORDS:
        safe += "_"
    return safe


def _property_key(name: str) -> str:
    if _is_identifier(name):
        return name
    return json.dumps(name, ensure_ascii=False)


def _type_reference(name: str) -> str:
    head, *rest = name.split(".")
    return ".".join([_binding_name(head), *(_sanitize(part) for part in rest)])


def generate(document: Document, options: GenerateOptions | None = None) -> str:
    return Generator(document).build(options or GenerateOptions())
