"""
Tests for the openapi_to_zod command line interface.
"""

import json

import pytest
import yaml
from click.testing import CliRunner

from openapi_to_zod.cli_utils import PROGRAM_NAME, reconstruct_command_line
from openapi_to_zod.openapi_to_zod import openapi_to_zod

SPEC = {
    "openapi": "3.0.3",
    "info": {"title": "Test", "version": "1.0.0"},
    "components": {
        "schemas": {
            "User": {
                "type": "object",
                "properties": {"id": {"type": "string"}, "name": {"type": "string"}},
                "required": ["id"],
            },
            "Status": {"type": "string", "enum": ["active", "inactive"]},
        }
    },
}


@pytest.fixture
def spec_file(tmp_path):
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(SPEC), encoding="utf-8")
    return path


def test_generates_file(tmp_path, spec_file):
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(openapi_to_zod, [str(spec_file), str(output)])
    assert result.exit_code == 0, result.output
    assert "Generated 2 schemas in" in result.output

    content = output.read_text(encoding="utf-8")
    assert "// Generated by openapi_to_zod v" in content
    assert "openapi_to_zod spec.json" in content
    assert "export const userSchema = z.object({" in content


def test_yaml_input(tmp_path):
    path = tmp_path / "spec.yaml"
    path.write_text(yaml.safe_dump(SPEC), encoding="utf-8")
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(openapi_to_zod, [str(path), str(output)])
    assert result.exit_code == 0, result.output
    assert "export const statusSchema = z.enum(" in output.read_text(encoding="utf-8")


def test_stdin_input(tmp_path):
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(openapi_to_zod, ["-", str(output)], input=json.dumps(SPEC))
    assert result.exit_code == 0, result.output
    assert output.exists()


def test_options_are_applied_and_recorded(tmp_path, spec_file):
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(
        openapi_to_zod, [str(spec_file), str(output), "--mode", "strict", "--default-nullable", "--stats"]
    )
    assert result.exit_code == 0, result.output

    content = output.read_text(encoding="utf-8")
    assert "export const userSchema = z.strictObject({" in content
    assert "name: z.string().nullable().optional()" in content
    assert "--mode strict" in content
    assert "--default-nullable" in content
    assert "// Generation Statistics:" in content


def test_config_file(tmp_path, spec_file):
    config = tmp_path / "zod.config.yaml"
    config.write_text("mode: loose\nsuffix: dto\n", encoding="utf-8")
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(openapi_to_zod, [str(spec_file), str(output), "--config", str(config)])
    assert result.exit_code == 0, result.output
    assert "export const userDtoSchema = z.looseObject({" in output.read_text(encoding="utf-8")


def test_flags_override_config_file(tmp_path, spec_file):
    config = tmp_path / "zod.config.json"
    config.write_text(json.dumps({"mode": "loose"}), encoding="utf-8")
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(
        openapi_to_zod, [str(spec_file), str(output), "--config", str(config), "--mode", "strict"]
    )
    assert result.exit_code == 0, result.output
    assert "z.strictObject({" in output.read_text(encoding="utf-8")


def test_unresolved_reference_fails(tmp_path):
    spec = {"openapi": "3.0.3", "components": {"schemas": {"User": {"$ref": "#/components/schemas/Missing"}}}}
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(spec), encoding="utf-8")
    output = tmp_path / "schemas.ts"
    result = CliRunner().invoke(openapi_to_zod, [str(path), str(output)])
    assert result.exit_code == 1
    assert "Invalid reference" in result.output
    assert not output.exists()


def test_missing_input_fails(tmp_path):
    result = CliRunner().invoke(openapi_to_zod, [str(tmp_path / "nope.json"), str(tmp_path / "out.ts")])
    assert result.exit_code == 1
    assert "File not found" in result.output


def test_warnings_are_reported(tmp_path):
    spec = {
        "openapi": "3.0.3",
        "components": {"schemas": {"Empty": {"oneOf": []}}},
    }
    path = tmp_path / "spec.json"
    path.write_text(json.dumps(spec), encoding="utf-8")
    result = CliRunner().invoke(openapi_to_zod, [str(path), str(tmp_path / "out.ts")])
    assert result.exit_code == 0, result.output
    assert "Warning: Empty oneOf in schema Empty" in result.output


def test_repeatable_options_are_recorded_once_per_value(tmp_path, spec_file):
    output = tmp_path / "schemas.ts"
    args = [str(spec_file), str(output), "--strip-schema-prefix", "Api", "--strip-schema-prefix", "Dto*"]
    result = CliRunner().invoke(openapi_to_zod, args)
    assert result.exit_code == 0, result.output
    assert "--strip-schema-prefix Api --strip-schema-prefix Dto*" in output.read_text(encoding="utf-8")


def test_reconstruct_command_line_without_context():
    assert reconstruct_command_line(openapi_to_zod) == PROGRAM_NAME


if __name__ == "__main__":
    pytest.main([__file__])
