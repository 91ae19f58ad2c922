"""Main pipeline orchestrator for building the parallel corpus."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pandas as pd

from .alignment import SequenceAligner
from .assembler import AssemblyResult, CorpusAssembler
from .catalog import FileCataloger
from .config import Config, load_preset
from .data.output_writer import ParallelStreamWriter, write_manifest
from .models import CoverageTracker, FileRecord, MissLedger
from .pairing import DocumentPairer, TranslationMap, assign_leftovers, load_translation_map
from .segmenter import TextSegmenter

logger = logging.getLogger(__name__)

INVENTORY_JSON = "translation-inventory.json"
INVENTORY_CSV = "translation-inventory.csv"
INVENTORY_COLUMNS = [
    "path", "extension", "sizeBytes", "language", "kind",
    "hasMarkers", "normalizedBase", "numericKey", "dirSignature",
]


class ManuscriptPipeline:
    """
    Discover, pair, segment and align a bilingual manuscript tree.

    Orchestrates the file catalog, the pairing tiers and the corpus
    assembler, then writes the segment stream and the manifest.
    """

    def __init__(self, config: Config):
        """
        Initialize the pipeline.

        Args:
            config: Pipeline configuration.
        """
        self.config = config
        self.project_root = config.scan.project_root.resolve()
        self.cataloger: Optional[FileCataloger] = None
        self.translation_map: Optional[TranslationMap] = None
        self.ledger = MissLedger()
        self.tracker = CoverageTracker()

    @property
    def parallel_path(self) -> Path:
        path = self.config.output_dir / self.config.output.parallel_file
        if self.config.output.format == "csv" and path.suffix.lower() != ".csv":
            path = path.with_suffix(".csv")
        return path

    @property
    def manifest_path(self) -> Path:
        return self.config.output_dir / self.config.output.manifest_file

    def resolve_patterns(self) -> tuple[list[str], list[str]]:
        """Include and exclude globs, preset patterns first."""
        scan = self.config.scan
        include, exclude = list(scan.include), list(scan.exclude)
        if scan.preset:
            preset_include, preset_exclude = load_preset(scan.preset, scan.resolve(scan.corpus_config))
            include = preset_include + include
            exclude = preset_exclude + exclude
        return include, exclude

    def _create_cataloger(self) -> FileCataloger:
        include, exclude = self.resolve_patterns()
        return FileCataloger(
            project_root=self.project_root,
            roots=self.config.scan.roots,
            max_depth=self.config.scan.max_depth,
            include=include,
            exclude=exclude,
            docx_enabled=self.config.scan.docx,
            workers=self.config.processing.workers,
            sample_chars=self.config.processing.sample_chars,
            show_progress=self.config.processing.show_progress,
        )

    def _create_assembler(self) -> CorpusAssembler:
        seg = self.config.segmentation
        return CorpusAssembler(
            segmenter=TextSegmenter(engine=seg.engine, default_language=seg.target_language, min_length=seg.min_length),
            aligner=SequenceAligner(self.config.alignment.min_ratio, self.config.alignment.max_ratio),
            source_language=seg.source_language,
            target_language=seg.target_language,
            workers=self.config.processing.workers,
            show_progress=self.config.processing.show_progress,
        )

    def build_catalog(self) -> list[FileRecord]:
        self.cataloger = self._create_cataloger()
        records = self.cataloger.build()
        for path in self.cataloger.probe_failures:
            self.ledger.record(path, "unsupported_format")
        return records

    def build_manifest(self, result: AssemblyResult) -> dict:
        counts = {"explicit-map": 0, "folder-rule": 0, "auto-matched": 0}
        for pair in result.pairs:
            counts[pair.origin] += 1
        limit = self.config.output.max_misses_display
        return {
            "coveragePct": self.tracker.coverage_pct,
            "sourcesFound": self.tracker.sources_found,
            "targetsFound": self.tracker.targets_found,
            "pairCount": len(result.pairs) + result.single_file_entries,
            "reasonsForMiss": self.ledger.summary(),
            "usedMap": bool(self.translation_map and self.translation_map.loaded),
            "summary": {
                "mapPairs": counts["explicit-map"],
                "folderPairs": counts["folder-rule"],
                "autoPairs": counts["auto-matched"],
                "singleFileEntries": result.single_file_entries,
                "matchedSegments": self.tracker.matched_segments,
            },
            "topMisses": [{"path": m.path, "reason": m.reason} for m in self.ledger.top(limit)],
            "updatedAt": datetime.now(timezone.utc).isoformat(),
        }

    def run(self) -> dict:
        """
        Execute the full pipeline.

        Returns:
            The manifest that was written.

        Raises:
            OSError: If the output directory cannot be written.
        """
        logger.info(f"Starting manuscript indexing in {self.project_root}")

        # Step 1: Load the translation map
        map_path = self.config.scan.resolve(self.config.scan.map_path)
        self.translation_map = load_translation_map(map_path)
        logger.info(
            f"Translation map: {len(self.translation_map.pairs)} pairs, "
            f"{len(self.translation_map.folders)} folder rules (loaded={self.translation_map.loaded})"
        )

        # Step 2: Catalog files
        self.build_catalog()

        # Step 3: Pair documents
        pairer = DocumentPairer(
            translation_map=self.translation_map,
            auto_threshold=self.config.pairing.auto_threshold,
            docx_enabled=self.config.scan.docx,
        )
        pairing = pairer.pair(self.cataloger, self.ledger)
        logger.info(f"Resolved {len(pairing.pairs)} pairs and {len(pairing.single_files)} single files")

        # Step 4: Segment and align
        result = self._create_assembler().assemble(
            pairing.pairs, pairing.single_files, self.tracker, self.ledger
        )
        paired_paths = {path for pair in result.pairs for path in (pair.source.path, pair.target.path)}
        assign_leftovers(self.cataloger.records, paired_paths, self.ledger)

        # Step 5: Write outputs
        with ParallelStreamWriter(self.parallel_path, format=self.config.output.format) as writer:
            writer.write_segments(result.segments)
        logger.info(f"Wrote {writer.count} segments to {self.parallel_path}")
        manifest = self.build_manifest(result)
        write_manifest(manifest, self.manifest_path)

        print_summary(manifest, len(result.segments), self.manifest_path, self.project_root)
        return manifest

    def discover(self) -> dict:
        """
        Catalog files only and write the translation inventory.

        Returns:
            The inventory payload.
        """
        records = self.build_catalog()
        entries = [
            {
                "path": r.path,
                "extension": r.extension,
                "sizeBytes": r.size,
                "language": r.language,
                "kind": r.kind,
                "hasMarkers": r.has_markers,
                "normalizedBase": r.normalized_base,
                "numericKey": r.numeric_key,
                "dirSignature": r.dir_signature,
            }
            for r in records
        ]
        by_language: dict[str, int] = {}
        by_extension: dict[str, int] = {}
        for r in records:
            by_language[r.language] = by_language.get(r.language, 0) + 1
            by_extension[r.extension] = by_extension.get(r.extension, 0) + 1

        include, exclude = self.resolve_patterns()
        payload = {
            "version": 1,
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "maxDepth": self.config.scan.max_depth,
            "roots": self.config.scan.roots,
            "include": include,
            "exclude": exclude,
            "summary": {
                "totalFiles": len(records),
                "totalBytes": sum(r.size for r in records),
                "byLanguage": dict(sorted(by_language.items())),
                "byExtension": dict(sorted(by_extension.items())),
            },
            "probeFailures": sorted(self.cataloger.probe_failures),
            "entries": entries,
        }

        report_dir = self.config.scan.resolve(self.config.output.inventory_dir)
        report_dir.mkdir(parents=True, exist_ok=True)
        with open(report_dir / INVENTORY_JSON, "w", encoding="utf-8") as f:
            f.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
        pd.DataFrame(entries, columns=INVENTORY_COLUMNS).to_csv(report_dir / INVENTORY_CSV, index=False)

        logger.info(f"Inventory written to {report_dir}")
        print("\nTranslation inventory:")
        print(f"  Files: {payload['summary']['totalFiles']}")
        print(f"  Total size: {payload['summary']['totalBytes']:,} bytes")
        for language, count in payload["summary"]["byLanguage"].items():
            print(f"  {language}: {count}")
        return payload


def print_summary(manifest: dict, segment_count: int, manifest_path: Path, project_root: Path) -> None:
    """Print the end-of-run summary to the console."""
    summary = manifest["summary"]
    print(
        f"\nCoverage: {manifest['coveragePct']:.2f}% "
        f"({summary['matchedSegments']}/{max(manifest['sourcesFound'], 1)} aligned segments)"
    )
    print(
        f"Pairs total: {manifest['pairCount']} (map: {summary['mapPairs']}, folder: {summary['folderPairs']}, "
        f"auto: {summary['autoPairs']}, single: {summary['singleFileEntries']})"
    )
    if manifest["reasonsForMiss"]:
        print("Miss reasons:")
        for reason, count in manifest["reasonsForMiss"].items():
            print(f"  {reason}: {count}")
    if manifest["topMisses"]:
        print("Top misses:")
        for miss in manifest["topMisses"]:
            print(f"  {miss['path']} -> {miss['reason']}")
    print(f"Parallel entries written: {segment_count}")
    try:
        shown = manifest_path.resolve().relative_to(project_root).as_posix()
    except ValueError:
        shown = str(manifest_path)
    print(f"Manifest path: {shown}")
