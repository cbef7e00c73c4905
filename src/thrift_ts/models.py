from typing import Annotated, Literal

from pydantic import BaseModel, Field

PrimitiveName = Literal["void", "string", "i16", "i32", "i64", "double", "bool"]
Requiredness = Literal["optional", "required"]

PRIMITIVE_NAMES: tuple[PrimitiveName, ...] = ("void", "string", "i16", "i32", "i64", "double", "bool")


class LineComment(BaseModel):
    kind: Literal["line"] = "line"
    text: str


class BlockComment(BaseModel):
    kind: Literal["block"] = "block"
    lines: list[str]


Comment = Annotated[LineComment | BlockComment, Field(discriminator="kind")]


class PrimitiveType(BaseModel):
    kind: Literal["primitive"] = "primitive"
    name: PrimitiveName


class ListType(BaseModel):
    kind: Literal["list"] = "list"
    element: "ThriftType"


class MapType(BaseModel):
    kind: Literal["map"] = "map"
    key: "ThriftType"
    value: "ThriftType"


class NamedType(BaseModel):
    """Reference to a user type, dotted names (``a.A``) kept verbatim."""

    kind: Literal["named"] = "named"
    name: str


ThriftType = Annotated[PrimitiveType | ListType | MapType | NamedType, Field(discriminator="kind")]

ListType.model_rebuild()  # necessary for recursive types
MapType.model_rebuild()


class Annotation(BaseModel):
    name: str
    value: str


class FieldDefinition(BaseModel):
    """A struct field or function parameter.

    ``id`` is the ordinal as written in the source; duplicates are kept.
    """

    id: str
    requiredness: Requiredness | None = None
    type: ThriftType
    name: str
    annotations: list[Annotation] | None = None
    comments: list[Comment] = []


class EnumMember(BaseModel):
    name: str
    value: str | None = None
    comments: list[Comment] = []


class FunctionDefinition(BaseModel):
    return_type: ThriftType
    name: str
    fields: list[FieldDefinition] = []
    annotations: list[Annotation] | None = None
    comments: list[Comment] = []


class NamespaceDefinition(BaseModel):
    kind: Literal["namespace"] = "namespace"
    scope: str
    name: str
    comments: list[Comment] = []


class IncludeDefinition(BaseModel):
    kind: Literal["include"] = "include"
    path: str
    comments: list[Comment] = []


class StructDefinition(BaseModel):
    kind: Literal["struct"] = "struct"
    name: str
    fields: list[FieldDefinition] = []
    comments: list[Comment] = []
    trailing_comments: list[Comment] = []


class EnumDefinition(BaseModel):
    kind: Literal["enum"] = "enum"
    name: str
    members: list[EnumMember] = []
    comments: list[Comment] = []
    trailing_comments: list[Comment] = []


class ServiceDefinition(BaseModel):
    kind: Literal["service"] = "service"
    name: str
    functions: list[FunctionDefinition] = []
    comments: list[Comment] = []
    trailing_comments: list[Comment] = []


TopDefinition = Annotated[
    NamespaceDefinition | IncludeDefinition | StructDefinition | EnumDefinition | ServiceDefinition,
    Field(discriminator="kind"),
]


class Document(BaseModel):
    body: list[TopDefinition] = []
    trailing_comments: list[Comment] = []
