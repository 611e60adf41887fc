"""
Per-table and run-level counters.

Counters are plain values owned by the caller: the driver creates one
TableCounters per table and folds it into the RunCounters of the run.
"""

from dataclasses import dataclass, field


@dataclass
class TableCounters:
    """Counters for one table sync."""

    table: str
    scanned: int = 0
    skipped: int = 0
    added: int = 0
    updated: int = 0
    updated_source: int = 0
    deleted: int = 0
    warnings: int = 0
    errors: int = 0

    @property
    def changed(self) -> int:
        return self.added + self.updated + self.updated_source + self.deleted

    def summary(self) -> str:
        text = (
            f"{self.table}: scanned={self.scanned}, skipped={self.skipped}, "
            f"added={self.added}, updated={self.updated}, deleted={self.deleted}"
        )
        if self.updated_source:
            text += f", updated_source={self.updated_source}"
        if self.warnings or self.errors:
            text += f", warnings={self.warnings}, errors={self.errors}"
        return text

    def to_dict(self) -> dict[str, int | str]:
        return {
            "table": self.table,
            "scanned": self.scanned,
            "skipped": self.skipped,
            "added": self.added,
            "updated": self.updated,
            "updated_source": self.updated_source,
            "deleted": self.deleted,
            "warnings": self.warnings,
            "errors": self.errors,
        }


@dataclass
class RunCounters:
    """Counters aggregated over every table of a run."""

    tables: int = 0
    warnings: int = 0
    errors: int = 0
    abandoned: list[str] = field(default_factory=list)
    results: list[TableCounters] = field(default_factory=list)

    def add(self, counters: TableCounters) -> None:
        """Fold a finished table into the run totals."""
        self.tables += 1
        self.warnings += counters.warnings
        self.errors += counters.errors
        self.results.append(counters)

    def abandon(self, table: str) -> None:
        """Record a table given up on after an ignored lock or read failure."""
        self.errors += 1
        self.abandoned.append(table)

    def summary(self) -> str:
        text = f"tables={self.tables}, warnings={self.warnings}, errors={self.errors}"
        if self.abandoned:
            text += f", abandoned={','.join(self.abandoned)}"
        return text
