"""Tests for the command-line interface."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from openapi_mcp_bridge.cli import app

runner = CliRunner()


@pytest.fixture
def spec_file(tmp_path, petstore):
    path = tmp_path / "petstore.yaml"
    path.write_text(yaml.safe_dump(petstore, sort_keys=False))
    return path


def test_tools_dry_run(spec_file):
    result = runner.invoke(app, ["tools", str(spec_file), "--tag", "admin"])
    assert result.exit_code == 0
    summaries = json.loads(result.stdout)
    assert [s["name"] for s in summaries] == ["createPet", "deletePet"]


def test_tools_name_format(spec_file):
    result = runner.invoke(app, ["tools", str(spec_file), "--tool-name-format", "upper"])
    assert result.exit_code == 0
    assert "LISTPETS" in [s["name"] for s in json.loads(result.stdout)]


def test_summary(spec_file):
    result = runner.invoke(app, ["summary", str(spec_file)])
    assert result.exit_code == 0
    assert "Total tools: 4" in result.stdout
    assert "pets: 3" in result.stdout


def test_validate_passes(spec_file):
    result = runner.invoke(app, ["validate", str(spec_file)])
    assert result.exit_code == 0


def test_validate_fails_on_missing_operation_id(tmp_path, petstore):
    del petstore["paths"]["/pets"]["get"]["operationId"]
    path = tmp_path / "broken.yaml"
    path.write_text(yaml.safe_dump(petstore))

    result = runner.invoke(app, ["validate", str(path)])
    assert result.exit_code == 1


def test_lint_json(spec_file):
    result = runner.invoke(app, ["lint", str(spec_file), "--json"])
    assert result.exit_code == 0
    report = json.loads(result.stdout)
    assert report["success"] is True
    assert report["warning_count"] > 0


def test_filter_with_function_list(tmp_path, spec_file):
    names = tmp_path / "functions.txt"
    names.write_text("getPet\ndeletePet\n")
    result = runner.invoke(app, ["filter", str(spec_file), "--function-list-file", str(names)])
    assert result.exit_code == 0
    assert [op["name"] for op in json.loads(result.stdout)] == ["getPet", "deletePet"]


def test_docs(tmp_path, spec_file):
    output = tmp_path / "TOOLS.md"
    result = runner.invoke(app, ["docs", str(spec_file), "--output", str(output)])
    assert result.exit_code == 0
    assert "## listPets" in output.read_text()


def test_dereference(tmp_path, petstore):
    petstore["components"]["schemas"] = {"Pet": {"type": "object"}}
    petstore["paths"]["/pets"]["post"]["requestBody"]["content"]["application/json"]["schema"] = {
        "$ref": "#/components/schemas/Pet"
    }
    path = tmp_path / "refs.yaml"
    path.write_text(yaml.safe_dump(petstore))

    result = runner.invoke(app, ["dereference", str(path)])
    assert result.exit_code == 0

    output = yaml.safe_load((tmp_path / "refs.dereferenced.yaml").read_text())
    body = output["paths"]["/pets"]["post"]["requestBody"]["content"]["application/json"]
    assert body["schema"] == {"type": "object"}


def test_missing_spec_file(tmp_path):
    result = runner.invoke(app, ["summary", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 1
