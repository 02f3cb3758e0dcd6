"""
Training data import.
Turns (content, label, categories?) rows or CSV text into TrainingExamples.
Row-level tolerant: bad rows are skipped, an import with zero good rows fails.
"""
from __future__ import annotations

import csv
import io
import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from config import CSV_HEADER_HINTS, DEFAULT_IMPORT_LABEL, LABEL_SYNONYMS
from modpanel.errors import MalformedImport
from modpanel.models import Decision, ExampleSource, TrainingExample
from modpanel.services.training import TrainingStore

logger = logging.getLogger(__name__)

ImportRow = Tuple[str, str, Optional[Sequence[str]]]


def normalize_label(raw: str) -> Decision:
    """Map a free-form label onto a Decision; anything unrecognized becomes flagged."""
    value = (raw or "").strip().lower()
    for canonical, synonyms in LABEL_SYNONYMS.items():
        if value in synonyms:
            return Decision(canonical)
    return Decision(DEFAULT_IMPORT_LABEL)


def split_categories(raw: Optional[str]) -> Optional[List[str]]:
    if not raw:
        return None
    categories = [c.strip() for c in raw.split(";") if c.strip()]
    return categories or None


def looks_like_header(line: str) -> bool:
    line_lower = line.lower()
    return any(hint in line_lower for hint in CSV_HEADER_HINTS)


def parse_csv(text: str, source: ExampleSource = ExampleSource.CSV) -> List[TrainingExample]:
    """
    Parse CSV text of `content,label[,cat1;cat2]` rows.

    The first line is skipped when it contains content/text/label/category.
    Double-quoted fields may contain commas. Rows with empty content are
    skipped; missing labels default to flagged.

    Raises:
        MalformedImport: no row produced an example
    """
    lines = (text or "").splitlines()
    if lines and looks_like_header(lines[0]):
        lines = lines[1:]

    examples: List[TrainingExample] = []
    skipped = 0
    for row in csv.reader(io.StringIO("\n".join(lines)), skipinitialspace=True):
        if not row or not row[0].strip():
            if row:
                skipped += 1
            continue
        content = row[0].strip()
        label = normalize_label(row[1]) if len(row) > 1 else Decision(DEFAULT_IMPORT_LABEL)
        categories = split_categories(row[2]) if len(row) > 2 else None
        examples.append(TrainingExample(content=content, label=label, categories=categories, source=source))

    if not examples:
        raise MalformedImport(count=0)
    if skipped:
        logger.info(f"CSV import skipped {skipped} rows without content")
    return examples


def parse_rows(rows: Iterable[ImportRow], source: ExampleSource = ExampleSource.MANUAL) -> List[TrainingExample]:
    """
    Build examples from (content, label[, categories]) rows.

    Categories may be a `;`-delimited string or a sequence. Rows shorter than
    two fields or without content are skipped.

    Raises:
        MalformedImport: no row produced an example
    """
    examples = []
    skipped = 0
    for row in rows:
        if len(row) < 2 or not row[0] or not str(row[0]).strip():
            skipped += 1
            continue
        content, label = row[0], row[1]
        categories = row[2] if len(row) > 2 else None
        if isinstance(categories, str):
            categories = split_categories(categories)
        examples.append(
            TrainingExample(
                content=str(content).strip(),
                label=normalize_label(str(label)),
                categories=list(categories) if categories else None,
                source=source,
            )
        )
    if not examples:
        raise MalformedImport(count=0)
    if skipped:
        logger.info(f"Row import skipped {skipped} incomplete rows")
    return examples


def import_csv(store: TrainingStore, text: str) -> int:
    """Parse CSV text into the store. Returns the number of examples imported."""
    examples = parse_csv(text, source=ExampleSource.CSV)
    store.add_examples(examples)
    logger.info(f"Imported {len(examples)} examples from CSV ({len(store)} total)")
    return len(examples)


def import_rows(store: TrainingStore, rows: Iterable[ImportRow]) -> int:
    examples = parse_rows(rows)
    store.add_examples(examples)
    logger.info(f"Imported {len(examples)} examples ({len(store)} total)")
    return len(examples)
