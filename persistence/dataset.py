"""
Dataset storage for extracted business records.

Records are appended to a JSONL file, one object per line. The
RecordSink protocol keeps the crawler independent of the storage
format.
"""

from typing import Protocol, List, Dict, Any
from pathlib import Path
import json
import threading

from errors import SinkUnavailable
from models import BusinessRecord


class RecordSink(Protocol):
    """
    Abstract interface for record storage.

    append() may raise SinkUnavailable; that loses the one record,
    never the crawl.
    """

    def append(self, record: BusinessRecord) -> None:
        """Store one finished record."""
        ...


class JSONLDatasetSink:
    """
    JSONL-based implementation of RecordSink.
    """

    def __init__(self, output_dir: str = "output", filename: str = "dataset.jsonl"):
        """
        Initialize the dataset sink.

        Args:
            output_dir: Directory for output files
            filename: Name of the JSONL dataset file
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.dataset_file = self.output_dir / filename

        self.count = 0
        self._lock = threading.Lock()

    def append(self, record: BusinessRecord) -> None:
        """
        Append a record to the dataset.

        Args:
            record: Finished business record

        Raises:
            SinkUnavailable: If the dataset file cannot be written
        """
        line = json.dumps(record.model_dump(mode='json'), ensure_ascii=False)

        with self._lock:
            try:
                with open(self.dataset_file, 'a', encoding='utf-8') as f:
                    f.write(line + '\n')
            except OSError as e:
                raise SinkUnavailable(f"Could not write to {self.dataset_file}: {e}") from e
            self.count += 1

    def read_records(self) -> List[Dict[str, Any]]:
        """Read every stored record back as a dict."""
        if not self.dataset_file.exists():
            return []

        records = []
        with open(self.dataset_file, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                if line:
                    records.append(json.loads(line))
        return records
