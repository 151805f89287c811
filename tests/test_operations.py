"""Tests for operation extraction and filtering."""

from openapi_mcp_bridge.operations import (
    compile_pattern,
    extract_operations,
    filter_by_names,
    filter_by_tags,
    filter_operations,
    summarize_operations,
)


def test_extracts_operations_in_document_order(petstore):
    ops = extract_operations(petstore)
    assert [op.operation_id for op in ops] == ["listPets", "createPet", "getPet", "deletePet"]
    assert [op.method for op in ops] == ["GET", "POST", "GET", "DELETE"]


def test_path_level_parameters_are_inherited(petstore):
    get_pet = extract_operations(petstore)[2]
    assert [p.name for p in get_pet.parameters] == ["petId"]
    assert get_pet.parameters[0].location == "path"


def test_operation_parameter_overrides_path_parameter():
    document = {
        "paths": {
            "/items/{id}": {
                "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "string"}}],
                "get": {
                    "operationId": "getItem",
                    "parameters": [{"name": "id", "in": "path", "required": True, "schema": {"type": "integer"}}],
                },
            }
        }
    }
    (op,) = extract_operations(document)
    assert len(op.parameters) == 1
    assert op.parameters[0].schema_ == {"type": "integer"}


def test_security_falls_back_to_document_default(petstore):
    ops = {op.operation_id: op for op in extract_operations(petstore)}
    assert ops["listPets"].security == [{"ApiKeyAuth": []}]
    assert ops["createPet"].security == [{"BearerAuth": []}]


def test_empty_operation_security_overrides_default():
    document = {
        "security": [{"ApiKeyAuth": []}],
        "paths": {"/open": {"get": {"operationId": "open", "security": []}}},
    }
    (op,) = extract_operations(document)
    assert op.security == []


def test_missing_operation_id_falls_back():
    (op,) = extract_operations({"paths": {"/health": {"get": {}}}})
    assert op.operation_id == "get_/health"


def test_filter_by_description(petstore):
    ops = extract_operations(petstore)
    kept = filter_operations(ops, include=compile_pattern("pet"))
    assert {op.operation_id for op in kept} == {"listPets", "createPet", "getPet", "deletePet"}

    kept = filter_operations(ops, exclude=compile_pattern("(?i)delete"))
    assert "deletePet" not in {op.operation_id for op in kept}

    kept = filter_operations(ops, include=compile_pattern("filtered"))
    assert [op.operation_id for op in kept] == ["listPets"]


def test_filter_by_tags_and_names(petstore):
    ops = extract_operations(petstore)
    assert [op.operation_id for op in filter_by_tags(ops, ["admin"])] == ["createPet", "deletePet"]
    assert len(filter_by_tags(ops, [])) == 4
    assert [op.operation_id for op in filter_by_names(ops, ["getPet ", "", "nope"])] == ["getPet"]


def test_summary_counts(petstore):
    counts = summarize_operations(extract_operations(petstore))
    assert counts == {"total": 4, "tags": {"admin": 2, "pets": 3}}
