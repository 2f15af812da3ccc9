# docsense/pipeline/storage.py
# ============================================================
# Result Stores — the Persistence Collaborator
# ============================================================
# The orchestrator hands every finished DocumentOCRResult to a
# ResultStore, which assigns an id and a timestamp. The pipeline
# never reads back from the store.
#
#   - InMemoryResultStore: keeps records in a dict (tests, CLI dry runs)
#   - JsonResultStore: writes one <id>.json file per result
# ============================================================

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Protocol, Union

from config.settings import settings
from docsense.models import DocumentOCRResult, SourceKind, StoredRecord
from docsense.utils.logger import get_logger

logger = get_logger(__name__)


class ResultStore(Protocol):
    def save(
        self,
        result: DocumentOCRResult,
        source_type: SourceKind,
        file_name: str,
        file_size: int,
    ) -> StoredRecord:
        ...


def _new_record() -> StoredRecord:
    return StoredRecord(id=uuid.uuid4().hex, timestamp=datetime.now(timezone.utc))


class InMemoryResultStore:
    """Keeps saved results in memory, keyed by id."""

    def __init__(self):
        self.records: dict[str, dict] = {}

    def save(self, result, source_type, file_name, file_size) -> StoredRecord:
        record = _new_record()
        self.records[record.id] = {
            "record": record,
            "result": result,
            "sourceType": source_type.value,
            "fileName": file_name,
            "fileSize": file_size,
        }
        return record


class JsonResultStore:
    """
    Writes each result as ``<results_dir>/<id>.json``.

    The JSON body mirrors the persisted record layout: extracted text,
    language, confidence, boxes and a metadata block, plus the file name,
    size and timestamp.
    """

    def __init__(self, results_dir: Optional[Union[str, Path]] = None):
        self.results_dir = Path(results_dir or settings.results_dir)

    def save(self, result, source_type, file_name, file_size) -> StoredRecord:
        record = _new_record()
        self.results_dir.mkdir(parents=True, exist_ok=True)

        data = {
            "id": record.id,
            **result.to_dict(),
            "sourceType": source_type.value,
            "fileName": file_name,
            "fileSize": file_size,
            "timestamp": record.timestamp.isoformat(),
        }

        output_path = self.results_dir / f"{record.id}.json"
        output_path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
        logger.info(f"Saved result to [bold]{output_path}[/bold]")
        return record
