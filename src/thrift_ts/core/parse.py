"""Thrift IDL parser.

Scannerless recursive descent with ordered choice: an alternative that fails
restores the cursor and the next one is tried. When nothing matches, the
failure that got furthest into the input is reported, together with the chain
of productions that were active when it happened.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

from thrift_ts.models import (
    PRIMITIVE_NAMES,
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
    Requiredness,
    ServiceDefinition,
    StructDefinition,
    ThriftType,
    TopDefinition,
)

_T = TypeVar("_T")

# Characters that terminate an identifier.
_DELIMITERS = frozenset(" \t\r\n-=(){}[]<>,;\"/")
_WHITESPACE = frozenset(" \t\r\n")
_HORIZONTAL_WHITESPACE = frozenset(" \t")
_SEPARATORS = (",", ";")
_REQUIREDNESS: tuple[Requiredness, ...] = ("optional", "required")
_SNIPPET_LENGTH = 40


class ParseError(Exception):
    """Malformed IDL. The first error aborts the file."""

    def __init__(
        self,
        message: str,
        *,
        file: str | None = None,
        context: tuple[str, ...] = (),
        line: int = 1,
        column: int = 1,
        remaining: str = "",
    ) -> None:
        self.message = message
        self.file = file
        self.context = context
        self.line = line
        self.column = column
        self.remaining = remaining
        super().__init__(message)

    def __str__(self) -> str:
        text = f"{self.message} at line {self.line} column {self.column}"
        if self.context:
            text += f" in {' > '.join(self.context)}"
        if self.remaining:
            snippet = self.remaining[:_SNIPPET_LENGTH].replace("\r", "\\r").replace("\n", "\\n")
            text += f' near "{snippet}"'
        return text


class _Failure(Exception):
    """A failed alternative. Only the one finally reported becomes a ``ParseError``."""

    def __init__(self, message: str, pos: int, context: tuple[str, ...]) -> None:
        self.message = message
        self.pos = pos
        self.context = context
        super().__init__(message)


class Parser:
    def __init__(self, source: str, file: str | None = None) -> None:
        self.source = source
        self.file = file
        self.pos = 0
        self._context: list[str] = []
        self._furthest: _Failure | None = None

    def parse(self) -> Document:
        return self._run("document", self._document)

    def parse_type(self) -> ThriftType:
        def _complete_type() -> ThriftType:
            thrift_type = self._type()
            self._ws()
            if not self._eof():
                raise self._fail("unexpected input after type")
            return thrift_type

        return self._run("type", _complete_type)

    def _run(self, label: str, production: Callable[[], _T]) -> _T:
        self.pos = 0
        self._furthest = None
        try:
            with self._label(label):
                return production()
        except _Failure as failure:
            raise self._error(self._furthest or failure) from None

    def _error(self, failure: _Failure) -> ParseError:
        line_start = self.source.rfind("\n", 0, failure.pos) + 1
        return ParseError(
            failure.message,
            file=self.file,
            context=failure.context,
            line=self.source.count("\n", 0, failure.pos) + 1,
            column=failure.pos - line_start + 1,
            remaining=self.source[failure.pos :],
        )

    # ── Helpers ──────────────────────────────────────────────

    @contextmanager
    def _label(self, name: str) -> Iterator[None]:
        self._context.append(name)
        try:
            yield
        finally:
            self._context.pop()

    def _fail(self, message: str) -> _Failure:
        failure = _Failure(message, self.pos, tuple(self._context))
        # On a tie the later, more general failure wins.
        if self._furthest is None or self.pos >= self._furthest.pos:
            self._furthest = failure
        return failure

    def _attempt(self, production: Callable[[], _T]) -> _T | None:
        start = self.pos
        try:
            return production()
        except _Failure:
            self.pos = start
            return None

    def _eof(self) -> bool:
        return self.pos >= len(self.source)

    def _startswith(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _ws(self) -> None:
        while not self._eof() and self.source[self.pos] in _WHITESPACE:
            self.pos += 1

    def _hws(self) -> None:
        while not self._eof() and self.source[self.pos] in _HORIZONTAL_WHITESPACE:
            self.pos += 1

    def _literal(self, text: str) -> None:
        self._ws()
        if not self._startswith(text):
            raise self._fail(f"expected {text!r}")
        self.pos += len(text)

    def _at_keyword(self, word: str) -> bool:
        if not self._startswith(word):
            return False
        end = self.pos + len(word)
        return end >= len(self.source) or self.source[end] in _DELIMITERS

    def _keyword(self, word: str) -> None:
        self._ws()
        if not self._at_keyword(word):
            raise self._fail(f"expected keyword {word!r}")
        self.pos += len(word)

    def _match_keyword(self, word: str) -> bool:
        start = self.pos
        self._ws()
        if self._at_keyword(word):
            self.pos += len(word)
            return True
        self.pos = start
        return False

    def _identifier(self) -> str:
        self._ws()
        start = self.pos
        while not self._eof() and self.source[self.pos] not in _DELIMITERS:
            self.pos += 1
        if self.pos == start:
            raise self._fail("expected identifier")
        return self.source[start : self.pos]

    def _integer(self) -> str:
        self._ws()
        start = self.pos
        while not self._eof() and self.source[self.pos] in "0123456789":
            self.pos += 1
        if self.pos == start:
            raise self._fail("expected integer")
        return self.source[start : self.pos]

    def _string_literal(self) -> str:
        self._literal('"')
        end = self.source.find('"', self.pos)
        if end < 0:
            raise self._fail("unterminated string literal")
        value = self.source[self.pos : end]
        self.pos = end + 1
        return value

    def _separator(self) -> None:
        start = self.pos
        self._ws()
        if self.source.startswith(_SEPARATORS, self.pos):
            self.pos += 1
        else:
            self.pos = start

    # ── Comments ─────────────────────────────────────────────

    def _line_comment(self) -> LineComment:
        self.pos += len("//")
        end = self.source.find("\n", self.pos)
        if end < 0:
            end = len(self.source)
        text = self.source[self.pos : end].strip()
        self.pos = end
        return LineComment(text=text)

    def _block_comment(self) -> BlockComment:
        self.pos += len("/*")
        end = self.source.find("*/", self.pos)
        if end < 0:
            raise self._fail("unterminated block comment")
        interior = self.source[self.pos : end]
        self.pos = end + len("*/")
        return BlockComment(lines=[line.strip() for line in interior.split("\n")])

    def _comments(self) -> list[Comment]:
        comments: list[Comment] = []
        while True:
            self._ws()
            if self._startswith("//"):
                comments.append(self._line_comment())
            elif self._startswith("/*"):
                with self._label("comment"):
                    comments.append(self._block_comment())
            else:
                return comments

    def _inline_comment(self) -> list[Comment]:
        """A line comment on the same line as the node it follows."""
        start = self.pos
        self._hws()
        if self._startswith("//"):
            return [self._line_comment()]
        self.pos = start
        return []

    # ── Document ─────────────────────────────────────────────

    def _document(self) -> Document:
        document = Document()
        while True:
            comments = self._comments()
            if self._eof():
                document.trailing_comments = comments
                return document
            definition = self._top_definition()
            definition.comments = comments
            document.body.append(definition)

    def _top_definition(self) -> TopDefinition:
        productions: tuple[Callable[[], TopDefinition], ...] = (
            self._namespace,
            self._include,
            self._struct,
            self._enum,
            self._service,
        )
        for production in productions:
            definition = self._attempt(production)
            if definition is not None:
                return definition
        raise self._fail("expected namespace, include, struct, enum or service")

    def _namespace(self) -> NamespaceDefinition:
        with self._label("namespace"):
            self._keyword("namespace")
            scope = self._identifier()
            name = self._identifier()
            return NamespaceDefinition(scope=scope, name=name)

    def _include(self) -> IncludeDefinition:
        with self._label("include"):
            self._keyword("include")
            return IncludeDefinition(path=self._string_literal())

    def _struct(self) -> StructDefinition:
        with self._label("struct"):
            self._keyword("struct")
            name = self._identifier()
            self._literal("{")
            fields, trailing = self._members(self._field, "}")
            return StructDefinition(name=name, fields=fields, trailing_comments=trailing)

    def _enum(self) -> EnumDefinition:
        with self._label("enum"):
            self._keyword("enum")
            name = self._identifier()
            self._literal("{")
            members, trailing = self._members(self._enum_member, "}")
            return EnumDefinition(name=name, members=members, trailing_comments=trailing)

    def _service(self) -> ServiceDefinition:
        with self._label("service"):
            self._keyword("service")
            name = self._identifier()
            self._literal("{")
            functions, trailing = self._members(self._function, "}")
            return ServiceDefinition(name=name, functions=functions, trailing_comments=trailing)

    def _members(
        self, production: Callable[[], _T], closer: str
    ) -> tuple[list[_T], list[Comment]]:
        """Parse ``production*`` up to ``closer``.

        Each member gets its leading comments prepended to whatever inline
        comment it collected. Comments directly before ``closer`` are returned
        separately.
        """
        members: list[_T] = []
        while True:
            comments = self._comments()
            if self._startswith(closer):
                self.pos += len(closer)
                return members, comments
            if self._eof():
                raise self._fail(f"expected {closer!r}")
            member = production()
            member.comments = comments + member.comments  # type: ignore[attr-defined]
            members.append(member)

    # ── Members ──────────────────────────────────────────────

    def _field(self) -> FieldDefinition:
        with self._label("field"):
            field_id = self._integer()
            self._literal(":")
            requiredness = self._requiredness()
            field_type = self._type()
            name = self._identifier()
            annotations = self._optional_annotations()
            self._separator()
            return FieldDefinition(
                id=field_id,
                requiredness=requiredness,
                type=field_type,
                name=name,
                annotations=annotations,
                comments=self._inline_comment(),
            )

    def _requiredness(self) -> Requiredness | None:
        for word in _REQUIREDNESS:
            if self._match_keyword(word):
                return word
        return None

    def _enum_member(self) -> EnumMember:
        with self._label("enum member"):
            name = self._identifier()
            value = None
            start = self.pos
            self._ws()
            if self._startswith("="):
                self.pos += 1
                self._ws()
                sign = ""
                if self._startswith("-"):
                    sign = "-"
                    self.pos += 1
                value = sign + self._integer()
            else:
                self.pos = start
            self._separator()
            return EnumMember(name=name, value=value, comments=self._inline_comment())

    def _function(self) -> FunctionDefinition:
        with self._label("function"):
            return_type = self._type()
            name = self._identifier()
            self._literal("(")
            fields, dangling = self._members(self._field, ")")
            annotations = self._optional_annotations()
            self._separator()
            return FunctionDefinition(
                return_type=return_type,
                name=name,
                fields=fields,
                annotations=annotations,
                comments=dangling + self._inline_comment(),
            )

    # ── Types ────────────────────────────────────────────────

    def _type(self) -> ThriftType:
        with self._label("type"):
            for primitive in PRIMITIVE_NAMES:
                if self._match_keyword(primitive):
                    return PrimitiveType(name=primitive)
            if self._match_generic("list"):
                element = self._type()
                self._literal(">")
                return ListType(element=element)
            if self._match_generic("map"):
                key = self._type()
                self._literal(",")
                value = self._type()
                self._literal(">")
                return MapType(key=key, value=value)
            return NamedType(name=self._identifier())

    def _match_generic(self, word: str) -> bool:
        """``list`` and ``map`` are only keywords when ``<`` follows."""
        start = self.pos
        self._ws()
        if self._startswith(word):
            self.pos += len(word)
            self._ws()
            if self._startswith("<"):
                self.pos += 1
                return True
        self.pos = start
        return False

    # ── Annotations ──────────────────────────────────────────

    def _optional_annotations(self) -> list[Annotation] | None:
        start = self.pos
        self._ws()
        if not self._startswith("("):
            self.pos = start
            return None
        with self._label("annotations"):
            self.pos += 1
            annotations = [self._annotation()]
            while True:
                self._ws()
                if not self._startswith(","):
                    break
                self.pos += 1
                annotations.append(self._annotation())
            self._literal(")")
            return annotations

    def _annotation(self) -> Annotation:
        name = self._identifier()
        self._literal("=")
        return Annotation(name=name, value=self._string_literal())


def parse_document(source: str, file: str | None = None) -> Document:
    return Parser(source, file).parse()


def parse_type(text: str) -> ThriftType:
    return Parser(text).parse_type()
