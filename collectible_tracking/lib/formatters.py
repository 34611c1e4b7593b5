"""
CSV report output for reconciled collectibles.

A report has two sections: collectibles the queried wallets hold, and ones
they created, minted or transferred away. Rows follow the aggregation order
(ethereum before solana, wallets in query order, each wallet's collectibles
in resolution order). Files are stamped with a UTC timestamp so repeated
runs never overwrite each other.
"""

import csv
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, TextIO, Tuple

from .models import CSV_COLUMNS, Collectible, CollectiblesResult


OWNED_SECTION = "owned"
UNOWNED_SECTION = "unowned"


def report_timestamp(now: Optional[datetime] = None) -> str:
    """Compact UTC timestamp for report filenames, e.g. 20241214T153022Z."""
    return (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")


def report_path(base_path: str, section: str, timestamp: str) -> str:
    """
    Filename for one report section.

    The owned section keeps the base name; other sections get their name
    appended, and ``.csv`` is assumed when the base path has no suffix.

    Examples:
        report_path("nfts.csv", "owned", "20241214T153022Z") -> "nfts_20241214T153022Z.csv"
        report_path("nfts", "unowned", "20241214T153022Z") -> "nfts_20241214T153022Z_unowned.csv"
    """
    path = Path(base_path)
    suffix = path.suffix or ".csv"
    tag = "" if section == OWNED_SECTION else f"_{section}"
    return str(path.parent / f"{path.stem}_{timestamp}{tag}{suffix}")


@dataclass
class CollectibleReport:
    """Collectibles split by whether the queried wallets still hold them."""

    owned: List[Collectible] = field(default_factory=list)
    unowned: List[Collectible] = field(default_factory=list)

    @classmethod
    def from_result(cls, result: CollectiblesResult) -> "CollectibleReport":
        """Build a report from every chain that succeeded; failed chains add nothing."""
        report = cls()
        for state in (result.eth_collectibles, result.sol_collectibles):
            for collectibles in state.values():
                for collectible in collectibles:
                    section = report.owned if collectible.is_owned else report.unowned
                    section.append(collectible)
        return report

    def sections(self) -> Iterator[Tuple[str, List[Collectible]]]:
        yield OWNED_SECTION, self.owned
        yield UNOWNED_SECTION, self.unowned


def write_rows(collectibles: Iterable[Collectible], stream: TextIO) -> int:
    """
    Write a header and one row per collectible.

    Returns:
        Number of collectible rows written
    """
    writer = csv.DictWriter(stream, fieldnames=CSV_COLUMNS)
    writer.writeheader()
    count = 0
    for collectible in collectibles:
        writer.writerow(dict(zip(CSV_COLUMNS, collectible.to_csv_row())))
        count += 1
    return count


def write_report(
    report: CollectibleReport,
    output_path: Optional[str] = None,
    timestamp: Optional[str] = None,
) -> Dict[str, str]:
    """
    Write a report to stdout or to timestamped files.

    Without an output path only the owned section goes to stdout. With one,
    the owned file is always written and other sections only when non-empty.

    Args:
        report: Report to write
        output_path: Base output path, or None for stdout
        timestamp: Filename timestamp (defaults to the current UTC time)

    Returns:
        Mapping of section name to the file written for it
    """
    if output_path is None:
        write_rows(report.owned, sys.stdout)
        return {}

    timestamp = timestamp or report_timestamp()
    written: Dict[str, str] = {}
    for section, collectibles in report.sections():
        if section != OWNED_SECTION and not collectibles:
            continue
        path = report_path(output_path, section, timestamp)
        with open(path, "w", newline="", encoding="utf-8") as f:
            write_rows(collectibles, f)
        written[section] = path
    return written
