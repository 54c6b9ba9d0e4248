"""Tests for sprout.validation.infer — schemas derived from handler signatures."""

from typing import Any, NotRequired, TypedDict

from sprout.http.request import Request
from sprout.session import Session
from sprout.validation import FieldError, FieldType, coerce_for, field_for, field_name, validate
from sprout.validation.infer import infer_schema, unwrap_optional


class Options(TypedDict):
    backgroundColor: NotRequired[str]


class Service:
    pass


async def locate_bin(session: Session, lat: float, lng: float, type: str) -> None: ...


async def add_bin(session: Session, lat: float, lng: float, type: list[str]) -> None: ...


async def get_posts(service: Service, author: str | None = None) -> None: ...


async def accept(session: Session, from_: str) -> None: ...


def untyped(request, thing, *args, **kwargs) -> None: ...


class TestInferSchema:
    def test_skips_injected_names(self) -> None:
        schema = infer_schema(locate_bin, skip_names={"session"})
        assert list(schema) == ["lat", "lng", "type"]

    def test_skips_injected_types(self) -> None:
        schema = infer_schema(get_posts, skip_types=(Service,))
        assert list(schema) == ["author"]

    def test_default_makes_optional(self) -> None:
        schema = infer_schema(get_posts, skip_types=(Service,))
        assert schema.fields["author"].optional

    def test_field_types(self) -> None:
        schema = infer_schema(add_bin, skip_names={"session"})
        assert schema.fields["lat"].type is FieldType.NUMBER
        assert schema.fields["type"].type is FieldType.ARRAY
        assert schema.fields["type"].items is not None
        assert schema.fields["type"].items.type is FieldType.STRING

    def test_ignores_var_args_and_unannotated(self) -> None:
        schema = infer_schema(untyped, skip_names={"request"})
        assert list(schema) == ["thing"]
        assert schema.fields["thing"].type is FieldType.ANY

    def test_keyword_param_reads_bare_field(self) -> None:
        schema = infer_schema(accept, skip_types=(Session,))
        assert list(schema) == ["from"]

    def test_inferred_schema_validates(self) -> None:
        schema = infer_schema(locate_bin, skip_names={"session"})
        result = validate(schema, {"lat": "1.5", "lng": "2"})
        assert result.errors == (FieldError("type", "Required"),)


class TestFieldFor:
    def test_scalars(self) -> None:
        assert field_for(bool).type is FieldType.BOOLEAN
        assert field_for(str).type is FieldType.STRING
        assert field_for(float).type is FieldType.NUMBER
        assert field_for(Any).type is FieldType.ANY

    def test_int_is_whole_number(self) -> None:
        schema_field = field_for(int)
        assert schema_field.type is FieldType.NUMBER
        assert schema_field.rules[0](2.5) == "Must be a whole number"

    def test_optional_union(self) -> None:
        assert field_for(str | None).optional

    def test_mapping(self) -> None:
        assert field_for(dict[str, int]).type is FieldType.OBJECT

    def test_typed_dict_builds_nested_schema(self) -> None:
        schema_field = field_for(Options)
        assert schema_field.type is FieldType.OBJECT
        assert schema_field.schema is not None
        assert schema_field.schema.fields["backgroundColor"].optional

    def test_unknown_class_is_any(self) -> None:
        assert field_for(Request).type is FieldType.ANY


class TestHelpers:
    def test_unwrap_optional(self) -> None:
        assert unwrap_optional(int | None) == (int, True)
        assert unwrap_optional(int) == (int, False)
        assert unwrap_optional(int | str) == (Any, False)

    def test_field_name(self) -> None:
        assert field_name("from_") == "from"
        assert field_name("to") == "to"
        assert field_name("name_") == "name_"

    def test_coerce_for(self) -> None:
        assert coerce_for(int, 3.0) == 3
        assert isinstance(coerce_for(int, 3.0), int)
        assert isinstance(coerce_for(float, 3), float)
        assert coerce_for(set[str], ["a", "a"]) == {"a"}
        assert coerce_for(tuple[str, ...], ["a"]) == ("a",)
        assert coerce_for(str, "x") == "x"
        assert coerce_for(float | None, 2) == 2.0
