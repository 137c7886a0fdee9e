"""Tests for argument parsing and the npm-asset entry point."""

import json
from unittest.mock import Mock, patch

import pytest

from args import parse_args
from common.errors import ConfigError, MalformedDocumentError, NotFoundError, TransientTransportError
from constants import ExitCodes
from npm_asset import build_repositories, main, resolve, search
from registry.asset import NpmAssetRepository
from registry.asset.models import AssetPackage, LoadResult, VersionRecord
from versioning.parser import build_request_map, parse_cli_token, tokenize_rightmost_colon


def _package(name, version):
    return AssetPackage(VersionRecord(name=name, version=version, version_normalized=version))


def _repository(*packages, search_url="https://registry.example/-/search?q=%query%"):
    repo = Mock(spec=NpmAssetRepository)
    repo.search_url = search_url
    result = LoadResult()
    for package in packages:
        result.names_found[package.name] = True
        result.packages.append(package)
    repo.load_packages.return_value = result
    return repo


class TestParsing:
    """Command line and token parsing."""

    def test_resolve_arguments(self):
        args = parse_args(["--loglevel", "debug", "resolve", "left-pad:^1.0.0", "-s", "BETA", "-s", "stable"])
        assert args.COMMAND == "resolve"
        assert args.LOG_LEVEL == "DEBUG"
        assert args.PACKAGES == ["left-pad:^1.0.0"]
        assert args.STABILITIES == ["beta", "stable"]
        assert not args.CACHE_READ_ONLY

    def test_search_arguments(self):
        args = parse_args(["-c", "cfg.yml", "--cache-read-only", "search", "left pad"])
        assert args.COMMAND == "search"
        assert args.QUERY == "left pad"
        assert args.CONFIG == "cfg.yml"
        assert args.CACHE_READ_ONLY

    def test_command_required(self):
        with pytest.raises(SystemExit):
            parse_args([])

    def test_rightmost_colon(self):
        assert tokenize_rightmost_colon("left-pad:^1.0.0") == ("left-pad", "^1.0.0")
        assert tokenize_rightmost_colon("left-pad") == ("left-pad", None)
        assert tokenize_rightmost_colon("left-pad:") == ("left-pad", None)

    def test_cli_token(self):
        assert parse_cli_token("@foo/bar:~2.1") == ("npm-asset/@foo/bar", "~2.1")
        assert parse_cli_token("npm-asset/left-pad:latest") == ("npm-asset/left-pad", None)

    def test_request_map(self):
        assert build_request_map(["left-pad:^1.0.0", " ", "is-odd"]) == {
            "npm-asset/left-pad": "^1.0.0",
            "npm-asset/is-odd": None,
        }


class TestResolve:
    """Resolution across repositories."""

    def test_default_stability(self):
        repo = _repository(_package("npm-asset/left-pad", "1.0.0"))

        output = resolve([repo], ["left-pad:^1.0.0"], [])

        repo.load_packages.assert_called_once_with({"npm-asset/left-pad": "^1.0.0"}, ["stable"], {})
        assert output["namesFound"] == ["npm-asset/left-pad"]
        assert [p["version"] for p in output["packages"]] == ["1.0.0"]

    def test_first_repository_wins(self):
        first = _repository(_package("npm-asset/left-pad", "1.0.0"))
        second = _repository(_package("npm-asset/foo--bar", "2.0.0"))

        output = resolve([first, second], ["left-pad", "@foo/bar"], ["beta"])

        second.load_packages.assert_called_once_with({"npm-asset/@foo/bar": None}, ["beta"], {})
        assert output["namesFound"] == ["npm-asset/left-pad", "npm-asset/foo--bar"]

    def test_stops_when_everything_found(self):
        first = _repository(_package("npm-asset/left-pad", "1.0.0"))
        second = _repository()

        resolve([first, second], ["left-pad"], None)

        second.load_packages.assert_not_called()

    def test_search_uses_first_repository_with_endpoint(self):
        without = _repository(search_url=None)
        with_endpoint = _repository()
        with_endpoint.search.return_value = [{"name": "npm-asset/left-pad"}]

        assert search([without, with_endpoint], "pad") == [{"name": "npm-asset/left-pad"}]
        without.search.assert_not_called()


class TestBuildRepositories:
    """Repositories from configuration."""

    def test_default(self, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text("npm-asset:\n  repositories:\n    - url: https://npm.example.com\n", encoding="utf-8")

        repositories = build_repositories(str(path), cache_read_only=True)

        assert [r.url for r in repositories] == ["https://registry.npmjs.org", "https://npm.example.com"]
        assert all(r.cache.is_read_only() for r in repositories)

    def test_disabled(self, tmp_path):
        path = tmp_path / "cfg.yml"
        path.write_text("npm-asset:\n  enabled: false\n", encoding="utf-8")
        assert build_repositories(str(path)) == []


@patch("npm_asset.configure_logging")
class TestMain:
    """Exit codes and output."""

    def test_resolve_prints_json(self, _logging, capsys):
        repo = _repository(_package("npm-asset/left-pad", "1.3.0"))
        with patch("npm_asset.build_repositories", return_value=[repo]):
            code = main(["resolve", "left-pad:^1.0.0"])

        assert code == ExitCodes.SUCCESS.value
        output = json.loads(capsys.readouterr().out)
        assert output["namesFound"] == ["npm-asset/left-pad"]
        assert output["packages"][0]["version"] == "1.3.0"

    def test_search_prints_json(self, _logging, capsys):
        repo = _repository()
        repo.search.return_value = [{"name": "npm-asset/left-pad", "description": None, "abandoned": False}]
        with patch("npm_asset.build_repositories", return_value=[repo]):
            assert main(["search", "pad"]) == ExitCodes.SUCCESS.value
        assert json.loads(capsys.readouterr().out)[0]["name"] == "npm-asset/left-pad"

    def test_config_error(self, _logging):
        with patch("npm_asset.build_repositories", side_effect=ConfigError("bad")):
            assert main(["resolve", "left-pad"]) == ExitCodes.FILE_ERROR.value

    def test_not_found(self, _logging):
        repo = _repository()
        repo.load_packages.side_effect = NotFoundError("https://registry.npmjs.org/nope")
        with patch("npm_asset.build_repositories", return_value=[repo]):
            assert main(["resolve", "nope"]) == ExitCodes.PACKAGE_NOT_FOUND.value

    @pytest.mark.parametrize("error", [
        MalformedDocumentError("Search response is not a list"),
        json.JSONDecodeError("Expecting value", "<html>", 0),
    ])
    def test_unusable_search_response(self, _logging, error):
        repo = _repository()
        repo.search.side_effect = error
        with patch("npm_asset.build_repositories", return_value=[repo]):
            assert main(["search", "pad"]) == ExitCodes.INVALID_RESPONSE.value

    def test_connection_error(self, _logging):
        repo = _repository()
        repo.load_packages.side_effect = TransientTransportError("down", status_code=503)
        with patch("npm_asset.build_repositories", return_value=[repo]):
            assert main(["resolve", "left-pad"]) == ExitCodes.CONNECTION_ERROR.value
