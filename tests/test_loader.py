"""Tests for document loading and reference resolution."""

import json

import pytest
import yaml

from openapi_mcp_bridge.dereferencer import CIRCULAR_MARKER, Dereferencer
from openapi_mcp_bridge.exceptions import DereferenceError, SpecLoadError
from openapi_mcp_bridge.loader import load_document, parse_document


MINIMAL = {
    "openapi": "3.0.0",
    "info": {"title": "Test API", "version": "1.0.0"},
    "paths": {},
}


def test_parse_json_and_yaml():
    assert parse_document(json.dumps(MINIMAL)) == MINIMAL
    assert parse_document(yaml.safe_dump(MINIMAL)) == MINIMAL


def test_load_from_mapping():
    assert load_document(MINIMAL) == MINIMAL


def test_load_from_text():
    assert load_document(yaml.safe_dump(MINIMAL))["info"]["title"] == "Test API"


def test_load_from_file(tmp_path):
    path = tmp_path / "api.yaml"
    path.write_text(yaml.safe_dump(MINIMAL))
    assert load_document(path)["openapi"] == "3.0.0"


def test_missing_file_reports_narrative(tmp_path):
    with pytest.raises(SpecLoadError) as exc_info:
        load_document(tmp_path / "missing.yaml")
    assert exc_info.value.stage == "File reading"
    assert "OPENAPI LOADING ERROR" in str(exc_info.value)


@pytest.mark.parametrize(
    "spec",
    [
        {"info": {"title": "T", "version": "1"}, "paths": {}},
        {"openapi": "2.0", "info": {"title": "T", "version": "1"}, "paths": {}},
        {"openapi": "3.0.0", "info": {"version": "1"}, "paths": {}},
        {"openapi": "3.0.0", "info": {"title": "T", "version": "1"}, "paths": []},
    ],
)
def test_invalid_documents_fail_closed(spec):
    with pytest.raises(SpecLoadError) as exc_info:
        load_document(spec)
    assert exc_info.value.stage == "Spec validation"


def test_unparseable_text():
    with pytest.raises(SpecLoadError) as exc_info:
        load_document("openapi: [unclosed\n  - : :")
    assert exc_info.value.stage == "Spec parsing"


def test_local_references_are_resolved():
    spec = {
        **MINIMAL,
        "paths": {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "responses": {"200": {"$ref": "#/components/responses/Pets"}},
                }
            }
        },
        "components": {
            "responses": {"Pets": {"description": "ok"}},
        },
    }
    result = load_document(spec)
    assert result["paths"]["/pets"]["get"]["responses"]["200"] == {"description": "ok"}


def test_unresolvable_reference_reports_stage():
    spec = {**MINIMAL, "paths": {"/x": {"$ref": "#/paths/nonexistent"}}}
    with pytest.raises(SpecLoadError) as exc_info:
        load_document(spec)
    assert exc_info.value.stage == "Reference resolution"


def test_invalid_path_ref_error():
    """Test that invalid path references raise appropriate errors."""
    spec = {"paths": {"/invalid": {"$ref": "#/paths/nonexistent"}}}

    with pytest.raises(DereferenceError):
        Dereferencer(spec).dereference()


def test_additional_properties_next_to_ref_are_preserved():
    """Sibling keys next to $ref override the resolved target."""
    spec = {
        "paths": {
            "/base": {"get": {"summary": "Base endpoint"}, "description": "base"},
            "/extended": {"$ref": "#/paths/~1base", "description": "Extended endpoint"},
        }
    }
    result = Dereferencer(spec).dereference()

    extended = result["paths"]["/extended"]
    assert extended["get"] == {"summary": "Base endpoint"}
    assert extended["description"] == "Extended endpoint"


def test_circular_references_become_markers():
    spec = {
        "components": {
            "schemas": {
                "Node": {
                    "type": "object",
                    "properties": {"child": {"$ref": "#/components/schemas/Node"}},
                }
            }
        },
        "paths": {},
        "root": {"$ref": "#/components/schemas/Node"},
    }
    result = Dereferencer(spec).dereference()
    marker = {CIRCULAR_MARKER: "#/components/schemas/Node"}
    assert result["root"]["properties"]["child"] == marker
    node = result["components"]["schemas"]["Node"]
    assert node["properties"]["child"]["properties"]["child"] == marker


def test_external_file_references(tmp_path):
    (tmp_path / "common.yaml").write_text(
        yaml.safe_dump({"components": {"schemas": {"Error": {"type": "object"}}}})
    )
    spec = {"schema": {"$ref": "common.yaml#/components/schemas/Error"}}
    result = Dereferencer(spec, base_path=tmp_path).dereference()
    assert result["schema"] == {"type": "object"}


def test_loading_from_file_resolves_relative_refs(tmp_path):
    (tmp_path / "schemas.json").write_text(json.dumps({"Pet": {"type": "object"}}))
    spec = {
        **MINIMAL,
        "paths": {
            "/pets": {
                "post": {
                    "operationId": "createPet",
                    "requestBody": {
                        "content": {"application/json": {"schema": {"$ref": "schemas.json#/Pet"}}}
                    },
                }
            }
        },
    }
    path = tmp_path / "api.yaml"
    path.write_text(yaml.safe_dump(spec))

    result = load_document(path)
    body = result["paths"]["/pets"]["post"]["requestBody"]
    assert body["content"]["application/json"]["schema"] == {"type": "object"}


def test_local_refs_in_external_file_resolve_against_that_file(tmp_path):
    (tmp_path / "common.yaml").write_text(
        yaml.safe_dump(
            {
                "Pet": {"type": "object", "properties": {"owner": {"$ref": "#/Owner"}}},
                "Owner": {"type": "object", "properties": {"name": {"type": "string"}}},
            }
        )
    )
    spec = {
        **MINIMAL,
        "components": {"schemas": {"Pet": {"$ref": "common.yaml#/Pet"}}},
    }
    path = tmp_path / "api.yaml"
    path.write_text(yaml.safe_dump(spec))

    result = load_document(path)
    owner = result["components"]["schemas"]["Pet"]["properties"]["owner"]
    assert owner == {"type": "object", "properties": {"name": {"type": "string"}}}


def test_same_pointer_in_different_files_is_not_circular(tmp_path):
    (tmp_path / "common.yaml").write_text(
        yaml.safe_dump(
            {
                "defs": {
                    "B": {"type": "object", "properties": {"a": {"$ref": "#/defs/A"}}},
                    "A": {"type": "string"},
                }
            }
        )
    )
    spec = {"defs": {"A": {"$ref": "common.yaml#/defs/B"}}, "root": {"$ref": "#/defs/A"}}
    result = Dereferencer(spec, base_path=tmp_path).dereference()
    assert result["root"]["properties"]["a"] == {"type": "string"}


def test_nested_file_refs_resolve_relative_to_containing_file(tmp_path):
    (tmp_path / "schemas").mkdir()
    (tmp_path / "schemas" / "pet.yaml").write_text(
        yaml.safe_dump({"Pet": {"type": "object", "properties": {"tag": {"$ref": "tag.yaml#/Tag"}}}})
    )
    (tmp_path / "schemas" / "tag.yaml").write_text(yaml.safe_dump({"Tag": {"type": "string"}}))
    spec = {"pet": {"$ref": "schemas/pet.yaml#/Pet"}}
    result = Dereferencer(spec, base_path=tmp_path).dereference()
    assert result["pet"]["properties"]["tag"] == {"type": "string"}
