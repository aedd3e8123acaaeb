import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from oas_typegen.shared.errors import CyclicReference, SchemaError, UnresolvedReference
from oas_typegen.shared.schema_loader import (
    ExternalRefBundler,
    bundle_external_refs,
    load_spec,
    resolve_pointer,
)


class TestLoadSpec:
    def test_load_yaml(self, tmp_path):
        path = tmp_path / "openapi.yaml"
        path.write_text("openapi: 3.0.0\npaths: {}\n")
        assert load_spec(path) == {"openapi": "3.0.0", "paths": {}}

    def test_load_json(self, tmp_path):
        path = tmp_path / "openapi.json"
        path.write_text(json.dumps({"openapi": "3.1.0"}))
        assert load_spec(path) == {"openapi": "3.1.0"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(SchemaError, match="Failed to read file"):
            load_spec(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("key: [unclosed\n")
        with pytest.raises(SchemaError, match="Invalid document"):
            load_spec(path)

    def test_non_mapping_root(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(SchemaError, match="must be a mapping"):
            load_spec(path)


class TestResolvePointer:
    def test_nested(self):
        document = {"components": {"schemas": {"Pet": {"type": "object"}}}}
        assert resolve_pointer(document, "/components/schemas/Pet", "#/x") == {"type": "object"}

    def test_list_index(self):
        assert resolve_pointer({"items": ["a", "b"]}, "/items/1", "#/items/1") == "b"

    def test_escaped_tokens(self):
        document = {"paths": {"/pets": {"get": {}}}}
        assert resolve_pointer(document, "/paths/~1pets", "#") == {"get": {}}

    def test_missing(self):
        with pytest.raises(UnresolvedReference) as exc_info:
            resolve_pointer({}, "/components/schemas/Pet", "other.yaml#/components/schemas/Pet")
        assert exc_info.value.ref == "other.yaml#/components/schemas/Pet"


class TestExternalRefBundler:
    def test_local_refs_untouched(self, tmp_path):
        spec = {
            "components": {"schemas": {"Pet": {"type": "object"}}},
            "paths": {"/pets": {"get": {"responses": {"200": {"$ref": "#/components/responses/Ok"}}}}},
        }
        assert bundle_external_refs(spec, tmp_path / "openapi.yaml") == spec

    def test_imports_external_schema(self, tmp_path):
        (tmp_path / "models.yaml").write_text(
            "components:\n"
            "  schemas:\n"
            "    Owner:\n"
            "      type: object\n"
            "      properties:\n"
            "        pet:\n"
            "          $ref: '#/components/schemas/Pet'\n"
            "    Pet:\n"
            "      type: string\n"
        )
        spec = {
            "components": {"schemas": {"Home": {"$ref": "models.yaml#/components/schemas/Owner"}}},
        }

        result = bundle_external_refs(spec, tmp_path / "openapi.yaml")
        schemas = result["components"]["schemas"]
        assert schemas["Home"] == {"$ref": "#/components/schemas/Owner"}
        assert schemas["Owner"]["properties"]["pet"] == {"$ref": "#/components/schemas/Pet"}
        assert schemas["Pet"] == {"type": "string"}

    def test_import_name_collision(self, tmp_path):
        (tmp_path / "models.yaml").write_text(
            "components:\n  schemas:\n    Pet:\n      type: integer\n"
        )
        spec = {
            "components": {
                "schemas": {
                    "Pet": {"type": "string"},
                    "Other": {"$ref": "models.yaml#/components/schemas/Pet"},
                }
            }
        }

        schemas = bundle_external_refs(spec, tmp_path / "openapi.yaml")["components"]["schemas"]
        assert schemas["Pet"] == {"type": "string"}
        assert schemas["Other"] == {"$ref": "#/components/schemas/Pet2"}
        assert schemas["Pet2"] == {"type": "integer"}

    def test_same_target_imported_once(self, tmp_path):
        (tmp_path / "models.yaml").write_text(
            "components:\n  schemas:\n    Pet:\n      type: string\n"
        )
        spec = {
            "components": {
                "schemas": {
                    "A": {"$ref": "models.yaml#/components/schemas/Pet"},
                    "B": {"$ref": "./models.yaml#/components/schemas/Pet"},
                }
            }
        }

        schemas = bundle_external_refs(spec, tmp_path / "openapi.yaml")["components"]["schemas"]
        assert schemas["A"] == schemas["B"] == {"$ref": "#/components/schemas/Pet"}
        assert "Pet2" not in schemas

    def test_non_schema_pointer_inlined(self, tmp_path):
        (tmp_path / "params.yaml").write_text("limit:\n  name: limit\n  in: query\n")
        spec = {"paths": {"/pets": {"get": {"parameters": [{"$ref": "params.yaml#/limit"}]}}}}

        result = bundle_external_refs(spec, tmp_path / "openapi.yaml")
        assert result["paths"]["/pets"]["get"]["parameters"] == [{"name": "limit", "in": "query"}]

    def test_inline_cycle(self, tmp_path):
        (tmp_path / "loop.yaml").write_text("a:\n  $ref: '#/b'\nb:\n  $ref: '#/a'\n")
        spec = {"x": {"$ref": "loop.yaml#/a"}}

        with pytest.raises(CyclicReference):
            bundle_external_refs(spec, tmp_path / "openapi.yaml")

    def test_file_url(self, tmp_path):
        models = tmp_path / "models.json"
        models.write_text(json.dumps({"definitions": {"Tag": {"type": "string"}}}))
        spec = {"components": {"schemas": {"Label": {"$ref": f"{models.as_uri()}#/definitions/Tag"}}}}

        schemas = bundle_external_refs(spec, tmp_path / "openapi.yaml")["components"]["schemas"]
        assert schemas["Label"] == {"$ref": "#/components/schemas/Tag"}
        assert schemas["Tag"] == {"type": "string"}

    @patch("oas_typegen.shared.schema_loader._build_session")
    def test_remote_document(self, mock_build_session):
        response = MagicMock()
        response.json.return_value = {"components": {"schemas": {"Money": {"type": "number"}}}}
        session = MagicMock()
        session.get.return_value = response
        mock_build_session.return_value = session

        spec = {
            "components": {
                "schemas": {
                    "Price": {"$ref": "https://example.com/common.json#/components/schemas/Money"},
                    "Cost": {"$ref": "https://example.com/common.json#/components/schemas/Money"},
                }
            }
        }
        schemas = ExternalRefBundler().bundle(spec)["components"]["schemas"]

        assert schemas["Money"] == {"type": "number"}
        assert schemas["Price"] == {"$ref": "#/components/schemas/Money"}
        session.get.assert_called_once_with("https://example.com/common.json", timeout=5.0)

    @patch("oas_typegen.shared.schema_loader._build_session")
    def test_remote_yaml_fallback(self, mock_build_session):
        response = MagicMock()
        response.json.side_effect = ValueError("not json")
        response.text = "components:\n  schemas:\n    Money:\n      type: number\n"
        mock_build_session.return_value.get.return_value = response

        spec = {"components": {"schemas": {"Price": {"$ref": "https://example.com/c.yaml#/components/schemas/Money"}}}}
        schemas = ExternalRefBundler().bundle(spec)["components"]["schemas"]
        assert schemas["Money"] == {"type": "number"}

    @patch("oas_typegen.shared.schema_loader._build_session")
    def test_remote_failure(self, mock_build_session):
        mock_build_session.return_value.get.side_effect = requests.ConnectionError("down")

        spec = {"components": {"schemas": {"Price": {"$ref": "https://example.com/c.json#/components/schemas/Money"}}}}
        with pytest.raises(SchemaError, match="Failed to fetch external document"):
            ExternalRefBundler().bundle(spec)

    def test_missing_external_file(self, tmp_path):
        spec = {"components": {"schemas": {"Pet": {"$ref": "nope.yaml#/components/schemas/Pet"}}}}
        with pytest.raises(SchemaError):
            bundle_external_refs(spec, tmp_path / "openapi.yaml")
