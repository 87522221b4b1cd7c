from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Iterable


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _entries(paths: Iterable[Path]) -> list[dict]:
    entries = []
    for p in sorted({str(p) for p in paths}):
        pp = Path(p)
        entry: dict = {"path": p}
        if pp.is_file():
            entry["digest"] = file_digest(pp)
        else:
            entry["digest"] = None
        entries.append(entry)
    return entries


def compute_task_hash(
    name: str, input_paths: Iterable[Path], code_paths: Iterable[Path], config: dict
) -> str:
    payload = {
        "name": name,
        "inputs": _entries(input_paths),
        "code": _entries(code_paths),
        "config": config,
    }
    data = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return sha256_bytes(data)


def hash_record_path(out_path: Path, cache_dir: Path) -> Path:
    """Location of the hash record for `out_path` inside `cache_dir`.

    Records are keyed by the resolved output path so the output tree itself only
    ever holds site files.
    """
    key = sha256_bytes(str(Path(out_path).resolve()).encode("utf-8"))
    return Path(cache_dir) / key[:2] / f"{key}.hash"


def is_cached(task_hash: str, output_paths: Iterable[Path], cache_dir: Path) -> bool:
    outputs = list(output_paths)
    if not outputs:
        return False
    # All outputs must exist and match hash
    for p in outputs:
        if not p.exists():
            return False
        hf = hash_record_path(p, cache_dir)
        if not hf.exists():
            return False
        if hf.read_text(encoding="utf-8").strip() != task_hash:
            return False
    return True


def write_hash_files(
    task_hash: str, output_paths: Iterable[Path], cache_dir: Path
) -> None:
    for p in output_paths:
        hf = hash_record_path(p, cache_dir)
        hf.parent.mkdir(parents=True, exist_ok=True)
        hf.write_text(task_hash, encoding="utf-8")
