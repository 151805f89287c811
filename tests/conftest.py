import pytest


@pytest.fixture
def petstore():
    """A small document covering path, query, header and cookie parameters, bodies and security."""
    return {
        "openapi": "3.0.0",
        "info": {
            "title": "Petstore",
            "version": "1.2.3",
            "description": "Pets as a service",
            "termsOfService": "https://example.com/terms",
        },
        "servers": [{"url": "https://api.example.com/v1"}],
        "security": [{"ApiKeyAuth": []}],
        "components": {
            "securitySchemes": {
                "ApiKeyAuth": {"type": "apiKey", "in": "header", "name": "X-Pet-Key"},
                "BearerAuth": {"type": "http", "scheme": "bearer"},
                "BasicAuth": {"type": "http", "scheme": "basic"},
                "QueryKey": {"type": "apiKey", "in": "query", "name": "api_key"},
                "CookieKey": {"type": "apiKey", "in": "cookie", "name": "session"},
            }
        },
        "paths": {
            "/pets": {
                "get": {
                    "operationId": "listPets",
                    "summary": "List pets",
                    "description": "List all pets, optionally filtered.",
                    "tags": ["pets"],
                    "parameters": [
                        {"name": "limit", "in": "query", "schema": {"type": "integer"}},
                        {"name": "filter[species]", "in": "query", "schema": {"type": "string"}},
                        {"name": "X-Trace", "in": "header", "schema": {"type": "string"}},
                        {"name": "theme", "in": "cookie", "schema": {"type": "string"}},
                    ],
                },
                "post": {
                    "operationId": "createPet",
                    "summary": "Create a pet",
                    "tags": ["pets", "admin"],
                    "security": [{"BearerAuth": []}],
                    "requestBody": {
                        "required": True,
                        "content": {
                            "application/json": {
                                "schema": {
                                    "type": "object",
                                    "required": ["name"],
                                    "properties": {
                                        "name": {"type": "string"},
                                        "species": {"type": "string", "enum": ["dog", "cat"]},
                                    },
                                }
                            }
                        },
                    },
                },
            },
            "/pets/{petId}": {
                "parameters": [
                    {"name": "petId", "in": "path", "required": True, "schema": {"type": "integer"}},
                ],
                "get": {
                    "operationId": "getPet",
                    "summary": "Get a pet by petId",
                    "tags": ["pets"],
                },
                "delete": {
                    "operationId": "deletePet",
                    "summary": "Delete a pet",
                    "tags": ["admin"],
                },
            },
        },
    }
