"""Newline-delimited file store of processed lead ids."""

from pathlib import Path
from typing import Optional

from lead_ingest.store.base import ProcessedLeadStore


class FileLeadStore(ProcessedLeadStore):
    """One lead id per line; a missing file means nothing processed yet."""

    def __init__(self, path: str | Path = "processed_leads.txt"):
        super().__init__()
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> set[str]:
        if not self._path.exists():
            return set()
        lines = self._path.read_text(encoding="utf-8").splitlines()
        return {line.strip() for line in lines if line.strip()}

    def _write(
        self,
        lead_id: str,
        platform: Optional[str],
        lead_type: Optional[str],
        deal_id: Optional[int],
    ) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as f:
            f.write(f"{lead_id}\n")
