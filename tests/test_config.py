"""Tests for configuration loading and the command-line interface."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from manuscript_aligner.cli import build_config, main, parse_args
from manuscript_aligner.config import AlignmentConfig, Config, ProcessingConfig, ScanConfig, load_preset
from manuscript_aligner.pipeline import ManuscriptPipeline

AR_TEXT = "هذه هي الجملة الأولى من الفصل."
EN_TEXT = "This is the first sentence of the chapter."


def write(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def create_project(root: Path) -> None:
    write(root, "content/ar/chapter-01.md", AR_TEXT)
    write(root, "content/en/chapter-01.md", EN_TEXT)


class TestConfig:
    """Tests for the pydantic configuration models."""

    def test_defaults(self):
        config = Config()
        assert config.scan.roots == ["content", "data", "docs", "outputs", "dist"]
        assert config.scan.max_depth == 8
        assert config.scan.docx is True
        assert config.alignment.min_ratio == 0.3
        assert config.alignment.max_ratio == 3.0
        assert config.pairing.auto_threshold == 0.6
        assert config.output.output_dir == Path(".cache")

    def test_string_paths_are_converted(self):
        scan = ScanConfig(project_root="/tmp/project", map_path="maps/pairs.json")
        assert scan.project_root == Path("/tmp/project")
        assert scan.resolve(scan.map_path) == Path("/tmp/project/maps/pairs.json")

    def test_output_dir_is_resolved_against_project_root(self, tmp_path):
        config = Config(scan=ScanConfig(project_root=tmp_path))
        assert config.output_dir == tmp_path / ".cache"

    def test_yaml_round_trip(self, tmp_path):
        config = Config(
            scan=ScanConfig(roots=["manuscripts"], exclude=["**/drafts/**"], docx=False),
            processing=ProcessingConfig(workers=2),
        )
        path = tmp_path / "config.yaml"

        config.to_yaml(path)
        loaded = Config.from_yaml(path)

        assert loaded.scan.roots == ["manuscripts"]
        assert loaded.scan.exclude == ["**/drafts/**"]
        assert loaded.scan.docx is False
        assert loaded.processing.workers == 2

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = write(tmp_path, "config.yaml", "")
        assert Config.from_yaml(path) == Config()

    def test_invalid_ratio_bounds(self):
        with pytest.raises(ValidationError):
            AlignmentConfig(min_ratio=2.0, max_ratio=1.0)
        with pytest.raises(ValidationError):
            AlignmentConfig(min_ratio=0.0)

    def test_invalid_values(self):
        with pytest.raises(ValidationError):
            ProcessingConfig(workers=0)
        with pytest.raises(ValidationError):
            Config(segmentation={"engine": "spacy"})
        with pytest.raises(ValidationError):
            Config(pairing={"auto_threshold": 1.5})


class TestPresets:
    """Tests for include/exclude presets."""

    def test_named_preset(self, tmp_path):
        path = write(tmp_path, "config/corpus.json", json.dumps({
            "presets": {"letters": {"includes": ["letters/**/*.md"], "excludes": ["**/draft*"]}}
        }))
        assert load_preset("letters", path) == (["letters/**/*.md"], ["**/draft*"])

    def test_manuscript_preset_uses_top_level(self, tmp_path):
        path = write(tmp_path, "config/corpus.json", json.dumps({"includes": ["content/**"], "excludes": []}))
        assert load_preset("manuscript", path) == (["content/**"], [])

    def test_unknown_or_missing_preset(self, tmp_path):
        path = write(tmp_path, "config/corpus.json", json.dumps({"presets": {}}))
        assert load_preset("letters", path) == ([], [])
        assert load_preset("letters", tmp_path / "missing.json") == ([], [])

    def test_preset_patterns_come_first(self, tmp_path):
        write(tmp_path, "config/corpus.json", json.dumps({"includes": ["content/**"], "excludes": ["**/old/**"]}))
        config = Config(scan=ScanConfig(project_root=tmp_path, preset="manuscript", include=["docs/**"]))

        include, exclude = ManuscriptPipeline(config).resolve_patterns()

        assert include == ["content/**", "docs/**"]
        assert exclude == ["**/old/**"]


class TestArguments:
    """Tests for argument parsing and config overrides."""

    def test_index_is_the_default_command(self):
        assert parse_args([]).command == "index"
        assert parse_args(["--workers", "2"]).command == "index"
        assert parse_args(["discover"]).command == "discover"

    def test_overrides(self, tmp_path):
        args = parse_args([
            "index", "--project-root", str(tmp_path), "--include", "a/**", "--include", "b/**",
            "--docx", "false", "--engine", "regex", "--format", "csv", "--workers", "2", "--no-progress",
        ])

        config = build_config(args)

        assert config.scan.project_root == tmp_path
        assert config.scan.include == ["a/**", "b/**"]
        assert config.scan.docx is False
        assert config.segmentation.engine == "regex"
        assert config.output.format == "csv"
        assert config.processing.workers == 2
        assert config.processing.show_progress is False

    def test_cli_values_extend_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        Config(scan=ScanConfig(exclude=["**/old/**"])).to_yaml(path)

        config = build_config(parse_args(["--config", str(path), "--exclude", "**/tmp/**"]))

        assert config.scan.exclude == ["**/old/**", "**/tmp/**"]

    def test_discover_ignores_index_options(self):
        args = parse_args(["discover", "--root", "content"])
        config = build_config(args)
        assert config.scan.roots == ["content"]
        assert config.output.format == "jsonl"

    def test_invalid_bool(self):
        with pytest.raises(SystemExit):
            parse_args(["--docx", "maybe"])


class TestMain:
    """Tests for the CLI entry point and its exit codes."""

    def base_args(self, root: Path) -> list[str]:
        return ["--project-root", str(root), "--engine", "regex", "--workers", "1", "--no-progress"]

    def test_index(self, tmp_path):
        create_project(tmp_path)

        assert main(self.base_args(tmp_path)) == 0

        manifest = json.loads((tmp_path / ".cache" / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["summary"]["autoPairs"] == 1
        assert (tmp_path / ".cache" / "parallel.jsonl").exists()

    def test_discover(self, tmp_path):
        create_project(tmp_path)

        assert main(["discover", "--project-root", str(tmp_path), "--no-progress"]) == 0

        assert (tmp_path / "artifacts" / "reports" / "translation-inventory.json").exists()
        assert (tmp_path / "artifacts" / "reports" / "translation-inventory.csv").exists()

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Config file not found" in capsys.readouterr().err

    def test_invalid_worker_count(self, tmp_path):
        assert main(["--project-root", str(tmp_path), "--workers", "0"]) == 1

    def test_unwritable_output(self, tmp_path):
        create_project(tmp_path)
        write(tmp_path, "blocker", "not a directory")

        assert main(self.base_args(tmp_path) + ["--output-dir", "blocker/sub"]) == 1

    def test_empty_project(self, tmp_path):
        assert main(self.base_args(tmp_path)) == 0
        manifest = json.loads((tmp_path / ".cache" / "manifest.json").read_text(encoding="utf-8"))
        assert manifest["coveragePct"] == 0
        assert manifest["pairCount"] == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
