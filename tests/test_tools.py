"""Tests for the tool handlers and dispatch."""

import logging

from fsquery.find import FindEngine
from fsquery.tools import dispatch_tool, find_tool_handler, list_tool_handler


def result_names(response):
    return [entry["name"] for entry in response["results"]]


class TestFindToolHandler:
    def test_success(self, config, scenario_tree):
        response = find_tool_handler(
            {
                "base_path": str(scenario_tree),
                "match_criteria": [{"type": "name_pattern", "pattern": "*.txt"}],
            },
            config,
        )
        assert response["tool_name"] == "find"
        assert result_names(response) == ["a.txt", "c.txt"]
        assert response["results"][0]["type"] == "file"
        assert "children" not in response["results"][0]

    def test_relative_base_path(self, config, scenario_tree):
        response = find_tool_handler({"base_path": "t", "entry_type_filter": "directory"}, config)
        assert result_names(response) == ["sub"]

    def test_missing_base_path(self, config, root):
        response = find_tool_handler({"base_path": str(root / "nope")}, config)
        assert response["status"] == "error"
        assert response["error_code"] == "ERR_FS_NOT_FOUND"

    def test_base_path_outside_allowed_paths(self, config):
        response = find_tool_handler({"base_path": "/etc"}, config)
        assert response["error_code"] == "ERR_FS_PERMISSION_DENIED"

    def test_base_path_required(self, config):
        response = find_tool_handler({}, config)
        assert response["error_code"] == "ERR_INVALID_PARAMETER"
        assert "base_path" in response["error_message"]

    def test_unknown_operator_is_invalid(self, config, scenario_tree):
        response = find_tool_handler(
            {
                "base_path": str(scenario_tree),
                "match_criteria": [
                    {"type": "metadata_filter", "attribute": "size_bytes", "operator": "bigger", "value": 1}
                ],
            },
            config,
        )
        assert response["error_code"] == "ERR_INVALID_PARAMETER"

    def test_unknown_attribute_is_invalid(self, config, scenario_tree):
        response = find_tool_handler(
            {
                "base_path": str(scenario_tree),
                "match_criteria": [
                    {"type": "metadata_filter", "attribute": "owner", "operator": "equals", "value": "root"}
                ],
            },
            config,
        )
        assert response["error_code"] == "ERR_INVALID_PARAMETER"
        assert "attribute" in response["error_message"]

    def test_unknown_criterion_type_is_invalid(self, config, scenario_tree):
        response = find_tool_handler(
            {"base_path": str(scenario_tree), "match_criteria": [{"type": "owner", "value": "root"}]},
            config,
        )
        assert response["error_code"] == "ERR_INVALID_PARAMETER"

    def test_unknown_parameter_is_invalid(self, config, scenario_tree):
        response = find_tool_handler({"base_path": str(scenario_tree), "depth": 3}, config)
        assert response["error_code"] == "ERR_INVALID_PARAMETER"

    def test_unexpected_failure_is_internal_error(self, config, scenario_tree, monkeypatch, caplog):
        def boom(self, params):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(FindEngine, "find", boom)
        with caplog.at_level(logging.ERROR):
            response = find_tool_handler({"base_path": str(scenario_tree)}, config)
        assert response["error_code"] == "ERR_INTERNAL_SERVER_ERROR"
        assert "disk on fire" in response["error_message"]
        assert "disk on fire" in caplog.text


class TestListToolHandler:
    def test_entries(self, config, scenario_tree):
        response = list_tool_handler({"path": str(scenario_tree), "recursive_depth": 1}, config)
        assert response["tool_name"] == "list"
        assert result_names(response) == ["a.txt", "b.log", "sub"]
        assert response["results"][2]["children"][0]["name"] == "c.txt"

    def test_system_info(self, config):
        response = list_tool_handler(
            {"operation": "system_info", "info_type": "server_capabilities"}, config
        )
        assert response["results"]["supported_tools"] == ["find", "list"]

    def test_negative_depth_is_invalid(self, config, scenario_tree):
        response = list_tool_handler({"path": str(scenario_tree), "recursive_depth": -1}, config)
        assert response["error_code"] == "ERR_INVALID_PARAMETER"


class TestDispatch:
    def test_routes_by_name(self, config, scenario_tree):
        response = dispatch_tool("find", {"base_path": str(scenario_tree)}, config)
        assert response["tool_name"] == "find"

    def test_unknown_tool(self, config):
        response = dispatch_tool("delete", {}, config)
        assert response["error_code"] == "ERR_UNKNOWN_TOOL"

    def test_params_must_be_an_object(self, config):
        response = dispatch_tool("find", ["base_path"], config)
        assert response["error_code"] == "ERR_INVALID_PARAMETER"
