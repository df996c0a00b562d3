"""
Tests for the ``python -m pgrest_client`` entry point.
"""

import logging
from unittest.mock import patch

import pytest

from pgrest_client import QueryError, TransportError
from pgrest_client.__main__ import DEFAULT_QUERY, main


CREDENTIALS = ["--url", "http://host:8080", "--client-id", "pgrest", "--client-secret", "secret"]


@pytest.fixture
def mock_client():
    with patch('pgrest_client.__main__.QueryClient') as mock_cls:
        client = mock_cls.return_value.__enter__.return_value
        yield mock_cls, client


def test_json_output(mock_client, capsys):
    mock_cls, client = mock_client
    client.query.return_value = {"data": [{"id": 1}], "executionTime": "12 ms"}

    assert main(CREDENTIALS + ["SELECT id FROM t"]) == 0

    mock_cls.assert_called_once_with("http://host:8080", "pgrest", "secret", "default")
    client.query.assert_called_once_with("SELECT id FROM t", format="json", encoding="gzip, br")
    out = capsys.readouterr().out
    assert '"id": 1' in out
    assert "Execution time: 12 ms" in out


def test_default_query(mock_client):
    _, client = mock_client
    client.query.return_value = "a\n1"

    main(CREDENTIALS + ["--format", "csv"])

    assert client.query.call_args[0][0] == DEFAULT_QUERY


def test_csv_output(mock_client, capsys):
    _, client = mock_client
    client.query.return_value = "a,b\n1,2"

    assert main(CREDENTIALS + ["--format", "csv", "SELECT 1"]) == 0

    assert capsys.readouterr().out == "a,b\n1,2\n"


def test_binary_output_written_to_file(mock_client, tmp_path):
    _, client = mock_client
    client.query.return_value = b"PAR1data"
    output = tmp_path / "result.parquet"

    assert main(CREDENTIALS + ["--format", "parquet", "--output", str(output), "SELECT 1"]) == 0

    assert output.read_bytes() == b"PAR1data"


def test_binary_output_requires_file(mock_client):
    with pytest.raises(SystemExit) as exc_info:
        main(CREDENTIALS + ["--format", "arrow", "SELECT 1"])

    assert exc_info.value.code == 2


def test_credentials_from_environment(mock_client, monkeypatch):
    mock_cls, client = mock_client
    client.query.return_value = "a"
    monkeypatch.setenv("PGREST_URL", "http://env-host:8080")
    monkeypatch.setenv("PGREST_CLIENT_ID", "env-client")
    monkeypatch.setenv("PGREST_CLIENT_SECRET", "env-secret")
    monkeypatch.setenv("PGREST_CONNECTION", "warehouse")

    assert main(["--format", "csv", "SELECT 1"]) == 0

    mock_cls.assert_called_once_with("http://env-host:8080", "env-client", "env-secret", "warehouse")


def test_missing_credentials(mock_client, monkeypatch):
    monkeypatch.delenv("PGREST_CLIENT_ID", raising=False)
    monkeypatch.delenv("PGREST_CLIENT_SECRET", raising=False)

    with pytest.raises(SystemExit):
        main(["SELECT 1"])


def test_query_error_output(mock_client, capsys):
    _, client = mock_client
    client.query.side_effect = QueryError(400, "Bad Request", "Error executing query", "syntax error")

    assert main(CREDENTIALS + ["FAIL"]) == 1

    err = capsys.readouterr().err
    assert "400 - Bad Request" in err
    assert "Message: Error executing query" in err
    assert "Details: syntax error" in err


def test_client_error_logged(mock_client, caplog):
    _, client = mock_client
    client.query.side_effect = TransportError("HTTP request failed: connection refused")

    with caplog.at_level(logging.ERROR):
        assert main(CREDENTIALS + ["SELECT 1"]) == 1

    assert "connection refused" in caplog.text


def test_json_data_array_output_keeps_columns(mock_client, capsys):
    _, client = mock_client
    client.query.return_value = {
        "columns": ["entity_id", "temperature"],
        "data": [[2, 11.5]],
        "executionTime": "8 ms",
    }

    assert main(CREDENTIALS + ["--format", "jsonDataArray", "SELECT 1"]) == 0

    out = capsys.readouterr().out
    assert '"columns"' in out
    assert '"temperature"' in out
    assert "Execution time: 8 ms" in out
