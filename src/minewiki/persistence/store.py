# ABOUTME: Flat JSON file persistence for the items, blocks and recipes collections
# ABOUTME: Sorted, fully rewritten on every flush so partial runs always leave valid JSON behind

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Iterator
from pathlib import Path
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter

from minewiki.core.models import ApiModel, ScrapeFailure
from minewiki.utils.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=ApiModel)


class JsonCollection(Generic[ModelT]):
    """An in-memory list of records mirrored to a JSON array on disk."""

    def __init__(self, path: Path, model: type[ModelT], sort_key: Callable[[ModelT], Any] | None = None):
        self.path = Path(path)
        self.model = model
        self.sort_key = sort_key or (lambda record: record.name)  # type: ignore[attr-defined]
        self.records: list[ModelT] = []
        self._adapter = TypeAdapter(list[model])  # type: ignore[valid-type]

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ModelT]:
        return iter(self.records)

    def load(self) -> JsonCollection[ModelT]:
        """Load existing records from disk; a missing file yields an empty collection."""
        if self.path.exists():
            self.records = self._adapter.validate_json(self.path.read_bytes())
            logger.info("Loaded collection", path=str(self.path), count=len(self.records))
        else:
            self.records = []
        return self

    @property
    def names(self) -> set[str]:
        return {getattr(record, "name", None) or getattr(record, "item") for record in self.records}

    @property
    def namespaced_ids(self) -> set[str]:
        return {record.namespaced_id for record in self.records if hasattr(record, "namespaced_id")}

    def add(self, record: ModelT, flush: bool = True) -> None:
        self.records.append(record)
        if flush:
            self.flush()

    def extend(self, records: Iterable[ModelT]) -> None:
        self.records.extend(records)

    def clear(self) -> None:
        self.records = []

    def flush(self) -> None:
        """Sort the records and rewrite the whole file."""
        self.records.sort(key=self.sort_key)
        write_json(self.path, [record.to_json_dict() for record in self.records])


def write_json(path: Path, payload: Any) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def read_json(path: Path) -> Any:
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_error_report(
    errors_dir: Path,
    collection: str,
    failures: list[ScrapeFailure],
    not_found: list[str] | None = None,
) -> tuple[Path, Path]:
    """Write ``<collection>.json`` and ``<collection>.txt`` failure reports.

    The JSON report keeps the full failure records; the text report is one
    line per failed record so it can be pasted back into a rerun list.
    """
    json_path = Path(errors_dir) / f"{collection}.json"
    text_path = Path(errors_dir) / f"{collection}.txt"

    write_json(
        json_path,
        {
            "collection": collection,
            "failures": [failure.model_dump() for failure in failures],
            "notFound": sorted(not_found or []),
        },
    )

    lines = [f"{failure.name}\t{failure.stage}\t{failure.error_type}: {failure.error}" for failure in failures]
    lines.extend(f"{name}\tnot_found" for name in sorted(not_found or []))
    text_path.write_text("\n".join(lines) + ("\n" if lines else ""), encoding="utf-8")

    logger.info(
        "Wrote error report",
        collection=collection,
        failures=len(failures),
        not_found=len(not_found or []),
        path=str(json_path),
    )
    return json_path, text_path
