"""Tests for argument, environment and connection-string parsing."""

import pytest

from blob_updown.constants import BACKEND_AZURE, BACKEND_S3, CONNECTION_STRING_ENV
from blob_updown.exceptions import ConfigurationError
from blob_updown.parsing import (
    get_connection_string,
    parse_arguments,
    parse_connection_string,
)
from blob_updown.structs import BenchmarkConfig


class TestParseArguments:
    def test_defaults(self) -> None:
        assert parse_arguments([]) == BenchmarkConfig(
            count=5,
            size=10240,
            max_transfer_length=None,
            max_thread_count=None,
            debug=False,
            backend=BACKEND_AZURE,
            exact_throughput=False,
        )

    def test_short_flags(self) -> None:
        config = parse_arguments(["-c", "3", "-s", "1MB", "-l", "4MB", "-t", "8"])
        assert config.count == 3
        assert config.size == 1024 * 1024
        assert config.max_transfer_length == 4 * 1024 * 1024
        assert config.max_thread_count == 8

    def test_long_flags(self) -> None:
        config = parse_arguments(
            [
                "--debug",
                "--count",
                "0",
                "--size",
                "2048",
                "--maximum-thread-count",
                "2",
                "--backend",
                BACKEND_S3,
                "--exact-throughput",
            ]
        )
        assert config.debug is True
        assert config.count == 0
        assert config.size == 2048
        assert config.max_thread_count == 2
        assert config.backend == BACKEND_S3
        assert config.exact_throughput is True

    def test_config_is_immutable(self) -> None:
        config = parse_arguments([])
        with pytest.raises(AttributeError):
            config.count = 10

    @pytest.mark.parametrize(
        "argv",
        [
            ["--count", "-1"],
            ["--count", "five"],
            ["--size", "0"],
            ["--size", "big"],
            ["--maximum-thread-count", "0"],
            ["--maximum-transfer-length", "0"],
            ["--backend", "gcs"],
            ["--unknown"],
        ],
    )
    def test_invalid_arguments_exit(self, argv, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            parse_arguments(argv)
        assert excinfo.value.code == 2
        assert "usage:" in capsys.readouterr().err


class TestGetConnectionString:
    def test_present(self) -> None:
        environ = {CONNECTION_STRING_ENV: " AccountName=a;AccountKey=b "}
        assert get_connection_string(environ) == "AccountName=a;AccountKey=b"

    @pytest.mark.parametrize("environ", [{}, {CONNECTION_STRING_ENV: "   "}])
    def test_missing(self, environ) -> None:
        with pytest.raises(ConfigurationError, match=CONNECTION_STRING_ENV):
            get_connection_string(environ)

    def test_reads_process_environment(self, monkeypatch) -> None:
        monkeypatch.setenv(CONNECTION_STRING_ENV, "UseDevelopmentStorage=true")
        assert get_connection_string() == "UseDevelopmentStorage=true"


class TestParseConnectionString:
    def test_azure_style(self) -> None:
        settings = parse_connection_string(
            "DefaultEndpointsProtocol=https;AccountName=acct;"
            "AccountKey=abc/def==;EndpointSuffix=core.windows.net;"
        )
        assert settings == {
            "DefaultEndpointsProtocol": "https",
            "AccountName": "acct",
            "AccountKey": "abc/def==",
            "EndpointSuffix": "core.windows.net",
        }

    @pytest.mark.parametrize("value", ["", ";;", "AccountName", "=value"])
    def test_malformed(self, value) -> None:
        with pytest.raises(ValueError):
            parse_connection_string(value)
