"""End-to-end tests for the manuscript pipeline."""

import json
import zipfile
from pathlib import Path

import pytest
from docx import Document

from manuscript_aligner.config import Config, OutputConfig, ProcessingConfig, ScanConfig, SegmentationConfig
from manuscript_aligner.data import load_parallel_dataset, read_parallel_segments
from manuscript_aligner.data.loaders import extract_records
from manuscript_aligner.pipeline import ManuscriptPipeline

AR = [
    "هذه هي الجملة الأولى من الفصل.",
    "تتحدث الجملة الثانية عن الرحلة.",
    "وتنتهي الجملة الثالثة بالوصول.",
    "يبدأ الفصل الثاني بوصف المدينة.",
    "كانت الشوارع مزدحمة بالناس.",
    "وفي المساء عاد الجميع إلى البيوت.",
]
EN = [
    "This is the first sentence of the chapter.",
    "The second sentence talks about the journey.",
    "The third sentence ends with the arrival.",
    "The second chapter begins by describing the city.",
    "The streets were crowded with people.",
    "In the evening everyone returned home.",
]


def write(root: Path, relative: str, text: str) -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_map(root: Path, payload: dict) -> Path:
    return write(root, "config/translations-map.json", json.dumps(payload))


def create_explicit_pair(root: Path) -> None:
    """Two paragraphs of three sentences on each side, paired by the map."""
    write(root, "content/ar/chapter-01.md", " ".join(AR[:3]) + "\n\n" + " ".join(AR[3:]))
    write(root, "content/en/chapter-01.md", " ".join(EN[:3]) + "\n\n" + " ".join(EN[3:]))
    write_map(root, {"pairs": [{"source": "content/ar/chapter-01.md", "target": "content/en/chapter-01.md"}]})


def make_config(root: Path, workers: int = 1, **output) -> Config:
    return Config(
        scan=ScanConfig(project_root=root),
        segmentation=SegmentationConfig(engine="regex"),
        output=OutputConfig(**output),
        processing=ProcessingConfig(workers=workers, show_progress=False),
    )


def run(root: Path, **kwargs) -> dict:
    return ManuscriptPipeline(make_config(root, **kwargs)).run()


def read_stream(root: Path) -> list[dict]:
    with open(root / ".cache" / "parallel.jsonl", encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


def without_timestamp(manifest: dict) -> dict:
    return {k: v for k, v in manifest.items() if k != "updatedAt"}


class TestExplicitPair:
    """An explicitly mapped pair of two-paragraph documents."""

    def test_six_aligned_segments(self, tmp_path):
        create_explicit_pair(tmp_path)

        manifest = run(tmp_path)

        assert manifest["summary"]["mapPairs"] == 1
        assert manifest["summary"]["matchedSegments"] == 6
        assert manifest["pairCount"] == 1
        assert manifest["coveragePct"] == 100.0
        assert manifest["usedMap"] is True
        assert manifest["reasonsForMiss"] == {}

        segments = read_stream(tmp_path)
        assert len(segments) == 6
        assert all(s["status"] == "aligned" for s in segments)
        assert [s["src"] for s in segments] == AR
        assert [s["tgt"] for s in segments] == EN

    def test_segment_records(self, tmp_path):
        create_explicit_pair(tmp_path)
        run(tmp_path)

        first, fourth = read_stream(tmp_path)[0], read_stream(tmp_path)[3]
        assert first["id"] == "content-ar-chapter-01-md:0000#0"
        assert first["rowId"] == "content-ar-chapter-01-md:0000"
        assert (first["paraIndex"], first["segIndex"]) == (0, 0)
        assert (first["srcLang"], first["tgtLang"]) == ("ar", "en")
        assert first["lengthRatio"] == round(len(EN[0]) / len(AR[0]), 3)
        assert first["fileRefs"] == [
            {"path": "content/ar/chapter-01.md", "span": [0, len(AR[0])]},
            {"path": "content/en/chapter-01.md", "span": [0, len(EN[0])]},
        ]
        assert fourth["id"] == "content-ar-chapter-01-md:0001#0"
        assert fourth["paraIndex"] == 1

    def test_manifest_file(self, tmp_path):
        create_explicit_pair(tmp_path)
        manifest = run(tmp_path)

        raw = (tmp_path / ".cache" / "manifest.json").read_text(encoding="utf-8")
        assert raw.endswith("}\n")
        assert json.loads(raw) == manifest
        assert set(manifest) == {
            "coveragePct", "sourcesFound", "targetsFound", "pairCount", "reasonsForMiss",
            "usedMap", "summary", "topMisses", "updatedAt",
        }


class TestUnequalParagraphs:
    """A three-paragraph source against a two-paragraph translation."""

    def test_third_paragraph_is_target_missing(self, tmp_path):
        write(tmp_path, "content/ar/chapter-02.md", "\n\n".join(AR[:3]))
        write(tmp_path, "content/en/chapter-02.md", "\n\n".join(EN[:2]))

        manifest = run(tmp_path)

        segments = read_stream(tmp_path)
        assert [s["status"] for s in segments] == ["aligned", "aligned", "target-missing"]
        last = segments[2]
        assert last["tgt"] == ""
        assert last["tgtLang"] == "unknown"
        assert last["paraIndex"] == 2
        assert last["fileRefs"][1] == {"path": "content/en/chapter-02.md"}
        assert manifest["summary"]["autoPairs"] == 1
        assert manifest["sourcesFound"] == 3
        assert manifest["targetsFound"] == 2
        assert manifest["coveragePct"] == 66.67

    def test_surplus_target_is_not_emitted(self, tmp_path):
        write(tmp_path, "content/ar/chapter-03.md", AR[0])
        write(tmp_path, "content/en/chapter-03.md", EN[0] + "\n\n" + EN[1])

        manifest = run(tmp_path)

        segments = read_stream(tmp_path)
        assert len(segments) == 1
        assert all(s["src"] for s in segments)
        assert manifest["targetsFound"] == 2
        assert manifest["coveragePct"] == 100.0


class TestSingleFiles:
    """Bilingual JSON and marker files."""

    def test_jsonl_records(self, tmp_path):
        lines = [json.dumps({"id": f"rec-{i}", "ar": AR[i], "en": EN[i]}, ensure_ascii=False) for i in range(3)]
        write(tmp_path, "data/bilingual.jsonl", "\n".join(lines) + "\n")

        manifest = run(tmp_path)

        segments = read_stream(tmp_path)
        assert len(segments) == 3
        assert all(s["fileRefs"] == [{"path": "data/bilingual.jsonl"}] for s in segments)
        assert [s["rowId"] for s in segments] == ["rec-0:json-000", "rec-1:json-001", "rec-2:json-002"]
        assert manifest["summary"]["singleFileEntries"] == 1
        assert manifest["pairCount"] == 1

    def test_nested_json_aliases(self, tmp_path):
        payload = {
            "book": {
                "chapters": [
                    {"original": AR[0], "translation": EN[0]},
                    {"sections": [{"source_ar": AR[1], "target_en": EN[1]}]},
                ]
            }
        }
        write(tmp_path, "data/book.json", json.dumps(payload, ensure_ascii=False))

        run(tmp_path)

        segments = read_stream(tmp_path)
        assert [(s["src"], s["tgt"]) for s in segments] == [(AR[0], EN[0]), (AR[1], EN[1])]
        assert segments[0]["rowId"] == "data-book-json-0:json-000"

    def test_marker_file(self, tmp_path):
        text = f"# Notes\n\n## AR\n{AR[0]}\n\n## EN\n{EN[0]}\n\n## AR\n{AR[1]} {AR[2]}\n## EN\n{EN[1]} {EN[2]}\n"
        write(tmp_path, "docs/notes.md", text)

        manifest = run(tmp_path)

        segments = read_stream(tmp_path)
        assert [s["rowId"] for s in segments] == [
            "docs-notes-md:marker-000", "docs-notes-md:marker-001", "docs-notes-md:marker-001",
        ]
        assert [s["segIndex"] for s in segments] == [0, 0, 1]
        assert manifest["summary"]["singleFileEntries"] == 1
        assert manifest["summary"]["matchedSegments"] == 3

    def test_malformed_json_is_a_miss(self, tmp_path):
        write(tmp_path, "data/broken.json", "{oops")
        create_explicit_pair(tmp_path)

        manifest = run(tmp_path)

        assert manifest["reasonsForMiss"] == {"unsupported_format": 1}
        assert manifest["topMisses"] == [{"path": "data/broken.json", "reason": "unsupported_format"}]
        assert manifest["summary"]["matchedSegments"] == 6

    def test_deeply_nested_json_is_a_miss(self, tmp_path):
        create_explicit_pair(tmp_path)
        write(tmp_path, "data/deep.json", "[" * 100000 + "]" * 100000)

        manifest = run(tmp_path)

        assert manifest["reasonsForMiss"] == {"unsupported_format": 1}
        assert manifest["topMisses"] == [{"path": "data/deep.json", "reason": "unsupported_format"}]
        assert manifest["summary"]["matchedSegments"] == 6

    def test_deep_structures_are_walked_without_recursion(self):
        data = {"ar": AR[0], "en": EN[0]}
        for _ in range(5000):
            data = {"child": [data]}

        records = extract_records(data, "deep.json")

        assert [(r.id, r.src, r.tgt) for r in records] == [("deep.json#0", AR[0], EN[0])]

    def test_unexpected_error_in_one_file_is_a_miss(self, tmp_path, monkeypatch):
        create_explicit_pair(tmp_path)
        write(tmp_path, "data/bilingual.jsonl", json.dumps({"ar": AR[0], "en": EN[0]}, ensure_ascii=False) + "\n")

        def crash(*args, **kwargs):
            raise RuntimeError("decoder crashed")

        monkeypatch.setattr("manuscript_aligner.assembler.load_json_records", crash)

        manifest = run(tmp_path)

        assert manifest["reasonsForMiss"] == {"unsupported_format": 1}
        assert manifest["summary"]["singleFileEntries"] == 0
        assert manifest["summary"]["matchedSegments"] == 6

    def test_mixed_file_without_markers(self, tmp_path):
        write(tmp_path, "docs/mixed.txt", f"{AR[0]} {EN[0]}")

        manifest = run(tmp_path)

        assert manifest["reasonsForMiss"] == {"no_target_match": 1}
        assert manifest["summary"]["singleFileEntries"] == 0


class TestMisses:
    """Miss reasons and their relation to pairs."""

    def test_auto_match_below_threshold(self, tmp_path):
        write(tmp_path, "content/intro.md", AR[0])
        write(tmp_path, "content/preface.md", EN[0])

        manifest = run(tmp_path)

        assert manifest["pairCount"] == 0
        assert manifest["coveragePct"] == 0
        assert manifest["reasonsForMiss"] == {"no_target_match": 2}
        assert read_stream(tmp_path) == []

    def test_pair_without_segments_is_too_short(self, tmp_path):
        write(tmp_path, "content/ar/empty.md", ".")
        write(tmp_path, "content/en/empty.md", "?")
        write_map(tmp_path, {"pairs": [{"source": "content/ar/empty.md", "target": "content/en/empty.md"}]})

        manifest = run(tmp_path)

        assert manifest["summary"]["mapPairs"] == 0
        assert manifest["pairCount"] == 0
        assert manifest["reasonsForMiss"] == {"lang_detection_failed": 1, "too_short": 1}
        assert {"path": "content/ar/empty.md", "reason": "too_short"} in manifest["topMisses"]

    def test_misses_and_pairs_are_disjoint(self, tmp_path):
        create_explicit_pair(tmp_path)
        write(tmp_path, "content/ar/chapter-05.md", AR[0])
        write(tmp_path, "content/en/chapter-05.md", EN[0])
        write(tmp_path, "content/intro.md", AR[1])
        write(tmp_path, "content/numbers.txt", "1 2 3")
        write_map(tmp_path, {
            "pairs": [
                {"source": "content/ar/chapter-01.md", "target": "content/en/chapter-01.md"},
                {"source": "content/ar/chapter-05.md", "target": "content/en/gone.md"},
            ]
        })

        manifest = run(tmp_path)

        paired = {ref["path"] for s in read_stream(tmp_path) for ref in s["fileRefs"]}
        missed = {miss["path"] for miss in manifest["topMisses"]}
        assert paired == {
            "content/ar/chapter-01.md", "content/en/chapter-01.md",
            "content/ar/chapter-05.md", "content/en/chapter-05.md",
        }
        assert missed == {"content/intro.md", "content/numbers.txt"}
        assert manifest["summary"]["mapPairs"] == 1
        assert manifest["summary"]["autoPairs"] == 1

    def test_top_misses_are_capped_and_sorted(self, tmp_path):
        for index in range(12):
            write(tmp_path, f"content/orphan-{index:02d}.md", EN[index % len(EN)])
        write(tmp_path, "content/unknown.txt", "12345")

        manifest = run(tmp_path, max_misses_display=10)

        assert manifest["reasonsForMiss"] == {"lang_detection_failed": 1, "no_target_match": 12}
        assert len(manifest["topMisses"]) == 10
        assert manifest["topMisses"][0] == {"path": "content/unknown.txt", "reason": "lang_detection_failed"}
        assert manifest["topMisses"][1]["path"] == "content/orphan-00.md"

    def test_invalid_map_is_ignored(self, tmp_path):
        write(tmp_path, "content/ar/chapter-01.md", AR[0])
        write(tmp_path, "content/en/chapter-01.md", EN[0])
        write(tmp_path, "config/translations-map.json", "{not json")

        manifest = run(tmp_path)

        assert manifest["usedMap"] is False
        assert manifest["summary"]["autoPairs"] == 1


class TestProperties:
    """Run-level properties."""

    def test_idempotent(self, tmp_path):
        create_explicit_pair(tmp_path)
        write(tmp_path, "data/bilingual.jsonl", json.dumps({"ar": AR[0], "en": EN[0]}, ensure_ascii=False) + "\n")

        first = run(tmp_path)
        first_stream = (tmp_path / ".cache" / "parallel.jsonl").read_bytes()
        second = run(tmp_path)

        assert without_timestamp(first) == without_timestamp(second)
        assert (tmp_path / ".cache" / "parallel.jsonl").read_bytes() == first_stream

    def test_worker_count_does_not_change_output(self, tmp_path):
        create_explicit_pair(tmp_path)
        for number in range(2, 6):
            write(tmp_path, f"content/ar/chapter-{number:02d}.md", "\n\n".join(AR[:number]))
            write(tmp_path, f"content/en/chapter-{number:02d}.md", "\n\n".join(EN[:number - 1]))

        sequential = run(tmp_path, workers=1)
        sequential_stream = read_stream(tmp_path)
        concurrent = run(tmp_path, workers=4)

        assert without_timestamp(sequential) == without_timestamp(concurrent)
        assert read_stream(tmp_path) == sequential_stream

    def test_coverage_is_bounded(self, tmp_path):
        create_explicit_pair(tmp_path)
        write(tmp_path, "content/ar/chapter-02.md", "\n\n".join(AR))
        write(tmp_path, "content/en/chapter-02.md", EN[0])

        manifest = run(tmp_path)

        assert 0 <= manifest["coveragePct"] <= 100
        assert manifest["summary"]["matchedSegments"] <= manifest["sourcesFound"]

    def test_target_implies_source(self, tmp_path):
        write(tmp_path, "content/ar/chapter-02.md", AR[0])
        write(tmp_path, "content/en/chapter-02.md", "\n\n".join(EN))

        run(tmp_path)

        assert all(s["src"] for s in read_stream(tmp_path) if s["tgt"])


class TestOutputs:
    """Output formats and the dataset reader."""

    def test_csv_stream(self, tmp_path):
        create_explicit_pair(tmp_path)

        ManuscriptPipeline(make_config(tmp_path, format="csv")).run()

        segments = read_parallel_segments(tmp_path / ".cache" / "parallel.csv")
        assert [s.src for s in segments] == AR
        assert segments[0].file_refs[0].span == (0, len(AR[0]))

    def test_load_dataset(self, tmp_path):
        create_explicit_pair(tmp_path)
        run(tmp_path)

        dataset = load_parallel_dataset(tmp_path / ".cache")

        assert len(dataset.segments) == 6
        assert dataset.manifest["summary"]["matchedSegments"] == 6
        assert [row.row_id for row in dataset.rows] == [
            "content-ar-chapter-01-md:0000", "content-ar-chapter-01-md:0001",
        ]
        assert dataset.rows[0].src_text == " ".join(AR[:3])
        assert dataset.rows[1].statuses == ["aligned"] * 3

    def test_missing_outputs(self, tmp_path):
        dataset = load_parallel_dataset(tmp_path / ".cache")
        assert dataset.segments == []
        assert dataset.manifest["pairCount"] == 0

    def test_custom_output_dir(self, tmp_path):
        create_explicit_pair(tmp_path)

        ManuscriptPipeline(make_config(tmp_path, output_dir="build/corpus")).run()

        assert (tmp_path / "build" / "corpus" / "parallel.jsonl").exists()
        assert (tmp_path / "build" / "corpus" / "manifest.json").exists()

    def test_discover_inventory(self, tmp_path):
        create_explicit_pair(tmp_path)
        write(tmp_path, "data/bilingual.jsonl", json.dumps({"ar": AR[0], "en": EN[0]}) + "\n")

        payload = ManuscriptPipeline(make_config(tmp_path)).discover()

        report_dir = tmp_path / "artifacts" / "reports"
        assert payload["summary"]["totalFiles"] == 3
        assert payload["summary"]["byLanguage"] == {"ar": 1, "en": 1, "mixed": 1}
        assert payload["summary"]["byExtension"] == {".jsonl": 1, ".md": 2}
        assert json.loads((report_dir / "translation-inventory.json").read_text(encoding="utf-8")) == payload
        assert (report_dir / "translation-inventory.csv").read_text(encoding="utf-8").startswith("path,extension")


class TestDocx:
    """Word documents as pair members."""

    def write_docx(self, root: Path, relative: str, paragraphs: list[str]) -> None:
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        document = Document()
        for paragraph in paragraphs:
            document.add_paragraph(paragraph)
        document.save(str(path))

    def test_docx_pair(self, tmp_path):
        self.write_docx(tmp_path, "content/ar/chapter-07.docx", [" ".join(AR[:3]), " ".join(AR[3:])])
        self.write_docx(tmp_path, "content/en/chapter-07.docx", [" ".join(EN[:3]), " ".join(EN[3:])])

        manifest = run(tmp_path)

        segments = read_stream(tmp_path)
        assert manifest["summary"]["autoPairs"] == 1
        assert [s["src"] for s in segments] == AR
        assert segments[3]["rowId"] == "content-ar-chapter-07-docx:0001"
        assert segments[0]["fileRefs"][1] == {"path": "content/en/chapter-07.docx", "span": [0, len(EN[0])]}

    def test_malformed_docx_xml_is_a_miss(self, tmp_path):
        create_explicit_pair(tmp_path)
        path = tmp_path / "content" / "ar" / "broken.docx"
        self.write_docx(tmp_path, "content/ar/broken.docx", [AR[0]])
        with zipfile.ZipFile(path) as source:
            members = {name: source.read(name) for name in source.namelist()}
        members["word/document.xml"] = b"<w:document broken"
        with zipfile.ZipFile(path, "w") as target:
            for name, data in members.items():
                target.writestr(name, data)

        manifest = run(tmp_path)

        assert manifest["topMisses"] == [{"path": "content/ar/broken.docx", "reason": "unsupported_format"}]
        assert manifest["summary"]["matchedSegments"] == 6

    def test_docx_disabled(self, tmp_path):
        self.write_docx(tmp_path, "content/ar/chapter-07.docx", [AR[0]])
        self.write_docx(tmp_path, "content/en/chapter-07.docx", [EN[0]])
        config = make_config(tmp_path)
        config.scan.docx = False

        manifest = ManuscriptPipeline(config).run()

        assert manifest["pairCount"] == 0
        assert manifest["reasonsForMiss"] == {}

    def test_docx_in_map_while_disabled(self, tmp_path):
        write(tmp_path, "content/ar/chapter-08.md", AR[0])
        self.write_docx(tmp_path, "content/en/chapter-08.docx", [EN[0]])
        write_map(tmp_path, {"pairs": [{"source": "content/ar/chapter-08.md", "target": "content/en/chapter-08.docx"}]})
        config = make_config(tmp_path)
        config.scan.docx = False

        manifest = ManuscriptPipeline(config).run()

        assert manifest["summary"]["mapPairs"] == 0
        assert {"path": "content/en/chapter-08.docx", "reason": "unsupported_format"} in manifest["topMisses"]
        assert manifest["reasonsForMiss"]["no_target_match"] == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
