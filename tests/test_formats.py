"""
Unit tests for output formats and execution time rendering.
"""

from unittest.mock import Mock

import pytest

from pgrest_client import FORMATS, InvalidFormatError, OutputFormat, format_execution_time, resolve


class TestFormatRegistry:
    """Test format lookup."""

    @pytest.mark.parametrize("name,content_type", [
        ("json", "application/json"),
        ("jsonDataArray", "application/json"),
        ("csv", "text/csv"),
        ("arrow", "application/vnd.apache.arrow.stream"),
        ("parquet", "application/octet-stream"),
    ])
    def test_content_types(self, name, content_type):
        """Test every format resolves to its documented content type."""
        descriptor = resolve(name)

        assert descriptor.name.value == name
        assert descriptor.content_type == content_type

    def test_one_descriptor_per_format(self):
        """Test the registry covers each format exactly once."""
        assert set(FORMATS) == set(OutputFormat)
        assert all(key is descriptor.name for key, descriptor in FORMATS.items())

    def test_resolve_enum(self):
        """Test resolving by enum member."""
        assert resolve(OutputFormat.CSV) is FORMATS[OutputFormat.CSV]

    @pytest.mark.parametrize("name", ["xml", "JSON", "Json", "", None, "default"])
    def test_resolve_unknown(self, name):
        """Test unknown names are rejected without fuzzy matching."""
        with pytest.raises(InvalidFormatError) as exc_info:
            resolve(name)

        assert exc_info.value.format_name == name
        assert isinstance(exc_info.value, ValueError)


class TestExecutionTime:
    """Test execution time formatting."""

    @pytest.mark.parametrize("duration,expected", [
        (0, "0 ms"),
        (450, "450 ms"),
        (450.5, "451 ms"),
        (999.4, "999 ms"),
        (1000, "1.00 s"),
        (2530, "2.53 s"),
        (61234, "61.23 s"),
    ])
    def test_format_execution_time(self, duration, expected):
        assert format_execution_time(duration) == expected


class TestDecoders:
    """Test response decoding per format."""

    def test_json_injects_execution_time(self):
        response = Mock()
        response.json.return_value = {"data": [{"a": 1}]}

        result = resolve("json").decode(response, 450)

        assert result == {"data": [{"a": 1}], "executionTime": "450 ms"}

    def test_json_data_array_uses_json_decoding(self):
        response = Mock()
        response.json.return_value = {"columns": ["a"], "data": [[1]]}

        result = resolve("jsonDataArray").decode(response, 1200)

        assert result == {"columns": ["a"], "data": [[1]], "executionTime": "1.20 s"}

    def test_json_custom_formatter(self):
        response = Mock()
        response.json.return_value = {"data": []}

        result = resolve("json").decode(response, 12.5, lambda ms: ms)

        assert result["executionTime"] == 12.5

    def test_json_non_object_is_wrapped(self):
        response = Mock()
        response.json.return_value = [1, 2, 3]

        result = resolve("json").decode(response, 5)

        assert result == {"data": [1, 2, 3], "executionTime": "5 ms"}

    def test_csv_returns_text(self):
        response = Mock(text="a,b\n1,2")

        assert resolve("csv").decode(response, 10) == "a,b\n1,2"
        response.json.assert_not_called()

    @pytest.mark.parametrize("name", ["arrow", "parquet"])
    def test_binary_returns_bytes(self, name):
        response = Mock(content=b"\xff\xff\xff\xff\x00")

        assert resolve(name).decode(response, 10) == b"\xff\xff\xff\xff\x00"
