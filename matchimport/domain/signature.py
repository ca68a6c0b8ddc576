from __future__ import annotations

import hashlib

from matchimport.domain.models import RawMatchRow

SIGNATURE_LENGTH = 32


def match_signature(row: RawMatchRow) -> str:
    """Canonical key of a match, independent of player order within a team
    and of which team was listed first."""
    sides = sorted(
        [
            (",".join(sorted(row.team1)), "" if row.team1_score is None else str(row.team1_score)),
            (",".join(sorted(row.team2)), "" if row.team2_score is None else str(row.team2_score)),
        ]
    )
    raw = "-".join(
        [
            row.tab_name,
            "|".join(team for team, _ in sides),
            *(score for _, score in sides),
            row.match_date or "",
        ]
    )
    return hashlib.sha256(raw.encode("utf-8")).hexdigest()[:SIGNATURE_LENGTH]
