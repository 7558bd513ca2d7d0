from pathlib import Path

import pytest
from graphql.language import BREAK, SKIP, FieldDefinitionNode, NameNode, ObjectTypeDefinitionNode

from graphql_codegen.errors import DuplicateFieldError, SchemaStructureError, SchemaValidationError
from graphql_codegen.pipeline.schema import (
    SchemaContext,
    SchemaVisitor,
    create_context,
    load_source_file,
    parse_source,
)

SCHEMAS = Path(__file__).parent / "test_data" / "schemas"


def context_for(*sources):
    return SchemaContext([parse_source(source) for source in sources])


class RecordingVisitor(SchemaVisitor):
    def __init__(self):
        self.events = []

    def enter_field_definition(self, node, type_info):
        self.events.append(("field", node.name.value, type_info.parent_type.name.value))

    def enter_enum_value_definition(self, node, type_info):
        self.events.append(("enum_value", node.name.value, type_info.parent_node.name.value))

    def leave_object_type_definition(self, node, type_info):
        self.events.append(("leave", node.name.value, None))


class TestDuplicateFields:
    def test_duplicate_field_across_extension(self):
        context = context_for("type Foo { bar: String }\nextend type Foo { bar: Int }")

        with pytest.raises(DuplicateFieldError) as exc_info:
            context.visit_schema({})

        assert exc_info.value.qualified_name == "Foo.bar"
        assert "Foo.bar" in str(exc_info.value)
        assert isinstance(exc_info.value, SchemaStructureError)

    def test_duplicate_input_field(self):
        context = context_for("input Foo { bar: String }\nextend input Foo { bar: Int }")

        with pytest.raises(DuplicateFieldError, match="Foo.bar"):
            context.visit_schema({})

    def test_same_field_name_on_different_types(self):
        type_info = context_for("type A { id: ID }\ntype B { id: ID }").visit_schema({})
        assert set(type_info.field_definitions) == {"A.id", "B.id"}


class TestRootTypes:
    def test_conventional_names_without_schema_definition(self):
        type_info = context_for("type Query { a: Int }\ntype Mutation { b: Int }").visit_schema({})

        assert type_info.is_query_type("Query")
        assert type_info.is_mutation_type("Mutation")
        # Conventional names apply to every operation without a schema definition
        assert type_info.is_subscription_type("Subscription")
        assert not type_info.is_query_type("Mutation")

    def test_explicit_root_does_not_fall_back(self):
        type_info = context_for(
            "schema { query: RootQuery }\ntype RootQuery { a: Int }\ntype Query { b: Int }"
        ).visit_schema({})

        assert type_info.is_query_type("RootQuery")
        assert not type_info.is_query_type("Query")
        assert type_info.is_root_operation_type("RootQuery")

    def test_explicit_subscription_root_does_not_fall_back(self):
        type_info = context_for(
            "schema { query: Q subscription: S }\ntype Q { a: Int }\ntype S { b: Int }\ntype Subscription { c: Int }"
        ).visit_schema({})

        assert type_info.is_subscription_type("S")
        assert not type_info.is_subscription_type("Subscription")
        assert not type_info.is_root_operation_type("Subscription")


class TestSymbolTable:
    @pytest.fixture
    def type_info(self):
        documents = [load_source_file(path) for path in sorted((SCHEMAS / "library").glob("*.graphql"))]
        return create_context(documents).visit_schema({})

    def test_classification(self, type_info):
        assert type_info.is_object_type("Book")
        assert type_info.is_interface_type("Node")
        assert type_info.is_enum_type("Genre")
        assert type_info.is_input_object_type("BookFilter")
        assert type_info.is_union_type("SearchResult")
        assert not type_info.is_object_type("Node")
        assert not type_info.is_union_type("Book")

    def test_enum_values_accumulate_across_extensions(self, type_info):
        values = [value.name.value for value in type_info.get_enum_values("Genre")]
        assert sorted(values) == ["FICTION", "HISTORY", "POETRY", "SCIENCE"]
        assert len(type_info.get_enum_type_definitions("Genre")) == 2

    def test_field_maps(self, type_info):
        assert list(type_info.get_field_definition_map("Author")) == ["id", "name", "books"]
        assert type_info.field_definitions["Book.title"].name.value == "title"
        assert list(type_info.get_field_definition_map("BookFilter")) == ["title", "genre", "first", "tags"]
        assert [field.name.value for field in type_info.get_field_definitions("Mutation")] == ["addBook"]
        assert sorted(type_info.object_definitions) == ["Author", "Book", "Mutation", "Query", "Subscription"]

    def test_arguments_are_not_fields(self, type_info):
        assert "Query.id" not in type_info.field_definitions
        assert "Query.book" in type_info.field_definitions

    def test_interfaces(self, type_info):
        assert type_info.get_interfaces_for_type("Book") == {"Node"}
        assert type_info.get_interfaces_for_type("Genre") == frozenset()

    def test_descriptions(self, type_info):
        assert type_info.get_type_description("Book") == "A book in the catalog."
        assert type_info.get_interface_type_description("Node") == "Something that can be looked up by id."
        assert type_info.get_object_type_description("Author") is None
        assert type_info.get_type_description("Unknown") is None

    def test_unknown_names_raise(self, type_info):
        with pytest.raises(KeyError):
            type_info.get_enum_values("Book")
        with pytest.raises(KeyError):
            type_info.get_field_definition_map("Genre")
        with pytest.raises(KeyError):
            type_info.get_object_type_definitions("Node")

    def test_views_are_read_only(self, type_info):
        with pytest.raises(TypeError):
            type_info.field_definitions["X.y"] = None

    def test_union_is_not_a_parent_type(self):
        seen = []
        context_for("type A { a: Int }\ntype B { b: Int }\nunion U = A | B").visit_schema(
            {"named_type": lambda node, type_info: seen.append((node.name.value, type_info.parent_type))}
        )
        assert ("A", None) in seen
        assert ("B", None) in seen


class TestTraversal:
    def test_callbacks_see_parent_state(self):
        visitor = RecordingVisitor()
        context_for("type A { x: Int\n y: Int }\nenum E { ONE }").visit_schema(visitor)

        assert visitor.events == [
            ("field", "x", "A"),
            ("field", "y", "A"),
            ("leave", "A", None),
            ("enum_value", "ONE", "E"),
        ]

    def test_mapping_visitor_with_enter_and_leave(self):
        events = []
        context_for("type A { x: Int }").visit_schema(
            {
                "object_type_definition": {
                    "enter": lambda node, type_info: events.append("enter"),
                    "leave": lambda node, type_info: events.append("leave"),
                }
            }
        )
        assert events == ["enter", "leave"]

    def test_skip_does_not_visit_subtree(self):
        fields = []

        class Visitor(SchemaVisitor):
            def enter_object_type_definition(self, node, type_info):
                return SKIP if node.name.value == "Hidden" else None

            def enter_field_definition(self, node, type_info):
                fields.append(node.name.value)

        type_info = context_for("type Hidden { secret: Int }\ntype Shown { visible: Int }").visit_schema(Visitor())

        assert fields == ["visible"]
        assert "Hidden.secret" not in type_info.field_definitions
        assert type_info.is_object_type("Hidden")

    def test_break_stops_only_the_current_definition(self):
        fields = []

        def enter_field(node, type_info):
            fields.append(node.name.value)
            return BREAK

        context_for("type A { a1: Int\n a2: Int }\ntype B { b1: Int }").visit_schema({"field_definition": enter_field})

        assert fields == ["a1", "b1"]

    def test_replacement_node_is_recorded(self):
        def rename(node, type_info):
            if node.name.value == "old":
                return FieldDefinitionNode(name=NameNode(value="new"), type=node.type, arguments=(), directives=())
            return None

        type_info = context_for("type A { old: Int\n other: Int }").visit_schema({"field_definition": rename})

        assert "A.new" in type_info.field_definitions
        assert "A.other" in type_info.field_definitions

    def test_parent_stack_is_reset_after_traversal(self):
        type_info = context_for("type A { x: Int }").visit_schema({})
        assert type_info.parent_node is None
        assert type_info.parent_type is None

    def test_each_visit_rebuilds_the_symbol_table(self):
        context = context_for("type A { x: Int }")
        first = context.visit_schema({})
        second = context.visit_schema({})

        assert first is not second
        assert list(second.field_definitions) == ["A.x"]

    def test_reentrant_traversal_is_rejected(self):
        context = context_for("type A { x: Int }")

        def nested(node, type_info):
            context.visit_schema({})

        with pytest.raises(RuntimeError, match="already being traversed"):
            context.visit_schema({"object_type_definition": nested})

    def test_replacement_object_type(self):
        def rename(node, type_info):
            if node.name.value == "A":
                return ObjectTypeDefinitionNode(
                    name=NameNode(value="Renamed"), fields=node.fields, interfaces=(), directives=()
                )
            return None

        type_info = context_for("type A { x: Int }").visit_schema({"object_type_definition": rename})

        assert "Renamed.x" in type_info.field_definitions


class TestValidation:
    def test_all_validation_errors_are_aggregated(self):
        document = load_source_file(SCHEMAS / "invalid.graphql")

        with pytest.raises(SchemaValidationError) as exc_info:
            create_context([document])

        messages = exc_info.value.messages
        assert len(messages) >= 3
        assert any("Query root type must be provided" in message for message in messages)
        assert any("Node.id" in message for message in messages)
        assert any("Empty" in message for message in messages)
        assert str(exc_info.value) == "\n\n".join(messages)

    def test_unknown_type_reference(self):
        with pytest.raises(SchemaValidationError, match="Missing"):
            create_context([parse_source("type Query { a: Missing }")])

    @pytest.mark.parametrize(
        "sdl,message",
        [
            ("type Query { a: Int }\ntype Foo { x: Int }\ntype Foo { y: Int }", "There can be only one type named 'Foo'"),
            ("type Query { a: Int }\nextend type Missing { x: Int }", "Cannot extend type 'Missing'"),
            ("type Query { a: Int @nope }", "Unknown directive '@nope'"),
            ("type Query { a: Int }\nenum E { A A }", "Enum value 'E.A' can only be defined once"),
        ],
    )
    def test_invalid_sdl_is_rejected(self, sdl, message):
        with pytest.raises(SchemaValidationError, match=message):
            create_context([parse_source(sdl)])

    def test_every_sdl_error_is_reported(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            context_for("type Query { a: Int @nope }\nextend type Missing { x: Int }")

        assert len(exc_info.value.messages) == 2

    def test_valid_schema(self):
        context = create_context([parse_source("type Query { ok: Boolean }")])
        assert context.schema.query_type.name == "Query"


if __name__ == "__main__":
    pytest.main([__file__])
