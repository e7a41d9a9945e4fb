from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from tqdm import tqdm

from ..analyzer import Analyzer, AnalyzerConfig, env_credential_provider
from ..types import Finding
from ..utils import iter_python_files, read_text


def render_finding(path: str, finding: Finding) -> str:
    """`path:line:col: severity [ruleId] message`, 1-based like compiler output."""
    suffix = " (review context)" if finding.needs_context else ""
    r = finding.range
    return (
        f"{path}:{r.start_line + 1}:{r.start_char + 1}: {finding.severity.value} "
        f"[{finding.rule_id}] {finding.message}{suffix}"
    )


def collect_targets(repo_dir: Optional[str], paths: List[str]) -> List[Tuple[str, Path]]:
    """(display path, filesystem path) pairs; non-.py paths are ignored."""
    targets: List[Tuple[str, Path]] = []
    if repo_dir:
        root = Path(repo_dir).resolve()
        for rel in iter_python_files(str(root)):
            targets.append((rel, root / rel))
    for p in paths:
        if p.endswith(".py"):
            targets.append((p, Path(p)))
    return targets


async def scan_files(analyzer: Analyzer, targets: List[Tuple[str, Path]]) -> Dict[str, List[Finding]]:
    results: Dict[str, List[Finding]] = {}
    for display, path in tqdm(targets, desc="codespeed scan", unit="file", disable=len(targets) < 2):
        try:
            text = read_text(path)
        except OSError as e:
            tqdm.write(f"[SCAN] skipped {display}: {e.strerror or e}")
            continue
        results[display] = await analyzer.analyze(path.resolve().as_uri(), text)
    return results


def write_jsonl(results: Dict[str, List[Finding]], out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with out_path.open("w", encoding="utf-8") as f:
        for display, findings in results.items():
            for finding in findings:
                row = {"file": display, **finding.to_dict()}
                f.write(json.dumps(row, ensure_ascii=False) + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Flag likely performance issues in Python files.")
    parser.add_argument("paths", nargs="*", help="Python files to scan.")
    parser.add_argument("--repo_dir", type=str, default=None, help="Scan every .py file under this directory.")
    parser.add_argument("--out_jsonl", type=str, default=None, help="Write findings as JSONL to this path.")
    parser.add_argument("--format", choices=["text", "jsonl"], default="text", help="Stdout format.")
    llm = parser.add_mutually_exclusive_group()
    llm.add_argument("--enable_llm", dest="enable_llm", action="store_true", default=None,
                     help="Ask the LLM about findings that need context.")
    llm.add_argument("--disable_llm", dest="enable_llm", action="store_false",
                     help="Rules only (default unless CODESPEED_ENABLE_LLM is set).")
    parser.set_defaults(enable_llm=None)
    args = parser.parse_args(argv)

    if not args.paths and not args.repo_dir:
        parser.error("give at least one file or --repo_dir")

    config = AnalyzerConfig(credential_provider=env_credential_provider(), augmentation_enabled=args.enable_llm)
    if config.is_augmentation_enabled():
        print(f"[LLM] model={config.llm.model} base_url={config.llm.base_url}", flush=True)

    targets = collect_targets(args.repo_dir, args.paths)
    results = asyncio.run(scan_files(Analyzer(config), targets))

    total = 0
    for display, findings in results.items():
        total += len(findings)
        for finding in findings:
            if args.format == "jsonl":
                print(json.dumps({"file": display, **finding.to_dict()}, ensure_ascii=False))
            else:
                print(render_finding(display, finding))

    if args.out_jsonl:
        write_jsonl(results, Path(args.out_jsonl).resolve())

    print(f"[SCAN] files={len(results)} findings={total}", flush=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
