from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, List

from modpanel.models import Decision, ModerationItem


def compute_statistics(items: Iterable[ModerationItem]) -> Dict:
    """
    Aggregate queue contents for the dashboard.

    Returns:
        {
            "total": int,
            "approved" / "flagged" / "rejected": int,
            "category_averages": {category name: mean score}, highest first,
            "sources": {source: count},
        }
    """
    items = list(items)
    stats: Dict = {
        "total": len(items),
        "approved": 0,
        "flagged": 0,
        "rejected": 0,
        "category_averages": {},
        "sources": defaultdict(int),
    }

    score_totals: Dict[str, List[float]] = defaultdict(list)
    for item in items:
        stats[Decision(item.status).value] += 1
        stats["sources"][item.source] += 1
        for category in item.analysis.categories:
            score_totals[category.name].append(category.score)

    averages = {name: sum(scores) / len(scores) for name, scores in score_totals.items()}
    stats["category_averages"] = dict(sorted(averages.items(), key=lambda kv: kv[1], reverse=True))
    stats["sources"] = dict(stats["sources"])
    return stats
