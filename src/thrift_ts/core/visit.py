from thrift_ts.models import (
    Document,
    EnumDefinition,
    EnumMember,
    FieldDefinition,
    FunctionDefinition,
    IncludeDefinition,
    NamespaceDefinition,
    ServiceDefinition,
    StructDefinition,
)


class Visitor:
    """Walks a ``Document`` with one overridable hook per node kind.

    Container hooks recurse into their children by default, leaf hooks do
    nothing. Nodes are handed over as-is, so a pass may rewrite them in place.
    """

    def visit_document(self, document: Document) -> None:
        for definition in document.body:
            match definition:
                case NamespaceDefinition():
                    self.visit_namespace_definition(definition)
                case IncludeDefinition():
                    self.visit_include_definition(definition)
                case StructDefinition():
                    self.visit_struct_definition(definition)
                case EnumDefinition():
                    self.visit_enum_definition(definition)
                case ServiceDefinition():
                    self.visit_service_definition(definition)

    def visit_namespace_definition(self, namespace_definition: NamespaceDefinition) -> None:
        pass

    def visit_include_definition(self, include_definition: IncludeDefinition) -> None:
        pass

    def visit_struct_definition(self, struct_definition: StructDefinition) -> None:
        for field_definition in struct_definition.fields:
            self.visit_struct_field_definition(field_definition)

    def visit_enum_definition(self, enum_definition: EnumDefinition) -> None:
        for enum_member in enum_definition.members:
            self.visit_enum_member(enum_member)

    def visit_service_definition(self, service_definition: ServiceDefinition) -> None:
        for function_definition in service_definition.functions:
            self.visit_function_definition(function_definition)

    def visit_function_definition(self, function_definition: FunctionDefinition) -> None:
        for field_definition in function_definition.fields:
            self.visit_function_field_definition(field_definition)

    def visit_struct_field_definition(self, field_definition: FieldDefinition) -> None:
        pass

    def visit_function_field_definition(self, field_definition: FieldDefinition) -> None:
        pass

    def visit_enum_member(self, enum_member: EnumMember) -> None:
        pass


class IncludeCollector(Visitor):
    """Records the path of every ``include`` in a document."""

    def __init__(self) -> None:
        self.includes: set[str] = set()

    def visit_include_definition(self, include_definition: IncludeDefinition) -> None:
        self.includes.add(include_definition.path)


def collect_includes(document: Document) -> set[str]:
    collector = IncludeCollector()
    collector.visit_document(document)
    return collector.includes
