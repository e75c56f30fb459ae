"""Tests for the command-line interface (starterkit.cli).

Covers:
- build-metadata: valid contract, invalid annotations, --allow-invalid,
  overrides, missing file and wrong suffix
- validate: valid file, rule failures, schema errors
- generate-docs: default output path and refusal on invalid metadata
- list: table and JSON output, filters
- malformed or missing --config files
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from starterkit.cli import build_parser, main
from starterkit.config import Config
from starterkit.utils import console


pytestmark = pytest.mark.unit


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    """Keep Rich from wrapping long temporary paths mid-message."""
    monkeypatch.setattr(console, "width", 200)


@pytest.fixture
def config_file(config: Config, tmp_path: Path) -> Path:
    return config.save(tmp_path / "config.json")


@pytest.fixture
def widget_path(widget_source, tmp_path: Path) -> Path:
    path = tmp_path / "Widget.sol"
    path.write_text(widget_source, encoding="utf-8")
    return path


def _run(*argv: str) -> int:
    """Invoke ``main`` and return its exit code (0 when it returns normally)."""
    try:
        main(list(argv))
    except SystemExit as exc:
        return exc.code
    return 0


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class TestParser:
    def test_subcommand_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_build_metadata_flags(self):
        args = build_parser().parse_args([
            "build-metadata", "A.sol", "--tags", "DeFi,NFT", "--no-ui", "--allow-invalid",
        ])
        assert args.contract == "A.sol"
        assert args.tags == "DeFi,NFT"
        assert args.ui is False
        assert args.allow_invalid

    def test_ui_defaults_to_none(self):
        assert build_parser().parse_args(["build-metadata", "A.sol"]).ui is None


# ---------------------------------------------------------------------------
# build-metadata
# ---------------------------------------------------------------------------


class TestBuildMetadata:
    def test_writes_valid_metadata(self, counter_path, config_file, tmp_path, capsys):
        output = tmp_path / "out" / "metadata.json"
        code = _run("build-metadata", str(counter_path), "-o", str(output), "--config", str(config_file))
        assert code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["name"] == "fhe-counter"
        assert data["contract_filename"] == "FHECounter.sol"
        assert "Metadata is valid." in capsys.readouterr().out

    def test_invalid_metadata_not_written(self, widget_path, config_file, tmp_path, capsys):
        widget_path.write_text(
            widget_path.read_text(encoding="utf-8").replace("@custom:ui false", "@custom:ui maybe"),
            encoding="utf-8",
        )
        output = tmp_path / "metadata.json"
        code = _run("build-metadata", str(widget_path), "-o", str(output), "--config", str(config_file))
        assert code == 1
        assert not output.exists()
        out = capsys.readouterr().out
        assert "has_ui" in out
        assert "Nothing written" in out

    def test_allow_invalid_writes(self, widget_path, config_file, tmp_path):
        widget_path.write_text(
            widget_path.read_text(encoding="utf-8").replace("@custom:ui false", "@custom:ui maybe"),
            encoding="utf-8",
        )
        output = tmp_path / "metadata.json"
        code = _run(
            "build-metadata", str(widget_path), "-o", str(output),
            "--config", str(config_file), "--allow-invalid",
        )
        assert code == 0
        assert json.loads(output.read_text(encoding="utf-8"))["has_ui"] is False

    def test_overrides_fill_missing_tags(self, tmp_path, config_file):
        contract = tmp_path / "Plain.sol"
        contract.write_text(
            "/**\n * @title Plain\n * @author Carol\n */\ncontract Plain {}\n", encoding="utf-8"
        )
        output = tmp_path / "metadata.json"
        code = _run(
            "build-metadata", str(contract), "-o", str(output), "--config", str(config_file),
            "--category", "patterns", "--chapter", "handles", "--tags", "DeFi, NFT", "--ui",
        )
        assert code == 0
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["category"] == "patterns"
        assert data["tags"] == ["DeFi", "NFT"]
        assert data["has_ui"] is True

    def test_verbose_and_json(self, counter_path, config_file, tmp_path, capsys):
        output = tmp_path / "metadata.json"
        code = _run(
            "build-metadata", str(counter_path), "-o", str(output),
            "--config", str(config_file), "--verbose", "--json",
        )
        assert code == 0
        out = capsys.readouterr().out
        assert "Extraction summary" in out
        assert '"fhe-counter"' in out

    def test_warnings_printed(self, counter_path, config_file, tmp_path, capsys):
        _run("build-metadata", str(counter_path), "-o", str(tmp_path / "m.json"), "--config", str(config_file))
        assert "[missing_block]" in capsys.readouterr().out

    def test_missing_contract(self, tmp_path, config_file, capsys):
        code = _run("build-metadata", str(tmp_path / "Nope.sol"), "--config", str(config_file))
        assert code == 1
        assert "Error:" in capsys.readouterr().out

    def test_wrong_suffix(self, tmp_path, config_file, capsys):
        path = tmp_path / "notes.txt"
        path.write_text("contract X {}", encoding="utf-8")
        assert _run("build-metadata", str(path), "--config", str(config_file)) == 1
        assert "Expected a .sol file" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


class TestValidate:
    def test_valid_file(self, counter_path, config_file, tmp_path, capsys):
        output = tmp_path / "metadata.json"
        _run("build-metadata", str(counter_path), "-o", str(output), "--config", str(config_file))
        capsys.readouterr()
        assert _run("validate", str(output), "--config", str(config_file)) == 0
        assert "is valid" in capsys.readouterr().out

    def test_rule_failures(self, tmp_path, config_file, capsys):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"name": "Bad Name", "version": "1.0.0"}), encoding="utf-8")
        assert _run("validate", str(path), "--config", str(config_file)) == 1
        out = capsys.readouterr().out
        assert "is invalid" in out
        assert "category" in out

    def test_schema_error(self, tmp_path, config_file, capsys):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"authors": "nobody"}), encoding="utf-8")
        assert _run("validate", str(path), "--config", str(config_file)) == 1
        assert "does not match the metadata schema" in capsys.readouterr().out

    def test_invalid_json(self, tmp_path, config_file, capsys):
        path = tmp_path / "metadata.json"
        path.write_text("{oops", encoding="utf-8")
        assert _run("validate", str(path), "--config", str(config_file)) == 1
        assert "Error:" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# generate-docs
# ---------------------------------------------------------------------------


class TestGenerateDocs:
    def test_default_output(self, counter_path, config, config_file, tmp_path):
        metadata = tmp_path / "metadata.json"
        _run("build-metadata", str(counter_path), "-o", str(metadata), "--config", str(config_file))
        assert _run("generate-docs", str(metadata), "--config", str(config_file)) == 0
        page = config.docs_path / "fundamental" / "fhe-counter-FHECounter.md"
        assert page.read_text(encoding="utf-8").startswith("# FHE Counter")

    def test_custom_template_and_output(self, counter_path, config_file, tmp_path):
        metadata = tmp_path / "metadata.json"
        _run("build-metadata", str(counter_path), "-o", str(metadata), "--config", str(config_file))
        template = tmp_path / "one-line.j2"
        template.write_text("{{ label }}\n", encoding="utf-8")
        output = tmp_path / "page.md"
        code = _run(
            "generate-docs", str(metadata), "-o", str(output),
            "--template", str(template), "--config", str(config_file),
        )
        assert code == 0
        assert output.read_text(encoding="utf-8") == "FHE Counter\n"

    def test_refuses_invalid(self, tmp_path, config_file, capsys):
        path = tmp_path / "metadata.json"
        path.write_text(json.dumps({"name": "x"}), encoding="utf-8")
        assert _run("generate-docs", str(path), "--config", str(config_file)) == 1
        assert "Refusing to render" in capsys.readouterr().out


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


class TestList:
    def test_table(self, starters_dir, config_file, capsys):
        assert _run("list", "--config", str(config_file)) == 0
        out = capsys.readouterr().out
        assert "fhe-counter" in out
        assert "broken-starter" in out

    def test_filter_by_category(self, starters_dir, config_file, capsys):
        assert _run("list", "--category", "applied", "--config", str(config_file)) == 0
        out = capsys.readouterr().out
        assert "simple-voting" in out
        assert "fhe-counter" not in out

    def test_json(self, starters_dir, config_file, capsys):
        assert _run("list", "--json", "--tag", "infra", "--config", str(config_file)) == 0
        out = capsys.readouterr().out
        assert '"fhe-counter"' in out
        assert "simple-voting" not in out

    def test_empty(self, tmp_path, capsys):
        path = Config(starters_dir=tmp_path / "none").save(tmp_path / "empty.json")
        assert _run("list", "--config", str(path)) == 0
        assert "No starters found." in capsys.readouterr().out


# ---------------------------------------------------------------------------
# Configuration errors
# ---------------------------------------------------------------------------


class TestConfigErrors:
    def test_malformed_yaml_config(self, tmp_path, capsys):
        path = tmp_path / "config.yaml"
        path.write_text("taxonomy: [unclosed\n", encoding="utf-8")
        assert _run("list", "--config", str(path)) == 1
        assert "Error:" in capsys.readouterr().out

    def test_missing_config_file(self, tmp_path, capsys):
        assert _run("list", "--config", str(tmp_path / "nope.yaml")) == 1
        assert "Error:" in capsys.readouterr().out
