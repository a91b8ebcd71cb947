"""Export functionality for ranked prospects (CSV, TSV, JSON, JSON Lines)."""

import csv
import json
import logging
from datetime import datetime
from pathlib import Path

from .models import ProspectScore

logger = logging.getLogger(__name__)

COLUMNS = [
    "rank",
    "name",
    "score",
    "chain_count",
    "news_hits",
    "review_count",
    "rating",
    "phone",
    "address",
    "id",
]


def prospect_row(rank: int, prospect: ProspectScore) -> dict:
    """Flatten a prospect into a CSV row."""
    candidate = prospect.candidate
    return {
        "rank": rank,
        "name": prospect.name,
        "score": prospect.formatted_score,
        "chain_count": prospect.chain_count,
        "news_hits": prospect.news_hits,
        "review_count": candidate.review_count,
        "rating": candidate.rating,
        "phone": candidate.phone or "",
        "address": candidate.address or "",
        "id": candidate.id,
    }


def export_to_csv(
    prospects: list[ProspectScore],
    output_path: str,
    delimiter: str = ",",
    no_headers: bool = False,
) -> str:
    """
    Export prospects to CSV file.

    Args:
        prospects: Ranked prospects to export
        output_path: Path to output file
        delimiter: Field separator (tab for TSV)
        no_headers: Omit the header row

    Returns:
        Path to the created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=COLUMNS, delimiter=delimiter)
        if not no_headers:
            writer.writeheader()
        for i, prospect in enumerate(prospects, start=1):
            writer.writerow(prospect_row(i, prospect))

    logger.info("Exported %d prospects to %s", len(prospects), output_path)
    return str(output_path)


def export_to_json(prospects: list[ProspectScore], output_path: str) -> str:
    """
    Export prospects to JSON file.

    Args:
        prospects: Ranked prospects to export
        output_path: Path to output file

    Returns:
        Path to the created file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "exported_at": datetime.now().isoformat(),
        "count": len(prospects),
        "prospects": [p.to_dict() for p in prospects],
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)

    logger.info("Exported %d prospects to %s", len(prospects), output_path)
    return str(output_path)


def export_to_jsonl(prospects: list[ProspectScore], output_path: str) -> str:
    """Export prospects to a JSON Lines file, one prospect per line."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w", encoding="utf-8") as f:
        for prospect in prospects:
            f.write(json.dumps(prospect.to_dict()) + "\n")

    logger.info("Exported %d prospects to %s", len(prospects), output_path)
    return str(output_path)


def export_prospects(
    prospects: list[ProspectScore],
    output_path: str,
    format: str = "csv",
    no_headers: bool = False,
) -> str:
    """
    Export prospects to file in specified format.

    Args:
        prospects: Ranked prospects to export
        output_path: Path to output file
        format: Output format ("csv", "tsv", "json" or "jsonl")
        no_headers: Omit the header row (csv and tsv only)

    Returns:
        Path to the created file
    """
    if format == "csv":
        return export_to_csv(prospects, output_path, no_headers=no_headers)
    elif format == "tsv":
        return export_to_csv(prospects, output_path, delimiter="\t", no_headers=no_headers)
    elif format == "json":
        return export_to_json(prospects, output_path)
    elif format == "jsonl":
        return export_to_jsonl(prospects, output_path)
    else:
        raise ValueError(f"Unsupported format: {format}")
