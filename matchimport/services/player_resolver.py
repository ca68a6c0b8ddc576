from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable

from matchimport.db.repositories import PlayerRepository
from matchimport.domain.models import RawMatchRow, ResolvedPlayer
from matchimport.domain.points import normalize_gender

logger = logging.getLogger(__name__)


def to_resolved_player(record: dict[str, object]) -> ResolvedPlayer:
    display_name = record.get("display_name") or record.get("username") or ""
    return ResolvedPlayer(
        passport_code=str(record["passport_code"]),
        player_id=int(record["id"]),
        display_name=str(display_name),
        current_points=Decimal(str(record.get("ranking_points") or 0)),
        gender=normalize_gender(record.get("gender")),
    )


class PlayerResolver:
    """Resolves passport codes against a point-in-time snapshot of the directory.

    Lookups are exact and case-sensitive. Each code is resolved once; later
    calls return the cached result, so ``matched`` and ``unmatched`` never
    contain duplicates.
    """

    def __init__(self, directory: dict[str, ResolvedPlayer]) -> None:
        self._directory = directory
        self._cache: dict[str, ResolvedPlayer | None] = {}

    @classmethod
    def from_repository(cls, player_repo: PlayerRepository, passport_codes: Iterable[str]) -> PlayerResolver:
        records = player_repo.list_by_passport_codes(passport_codes)
        directory = {str(record["passport_code"]): to_resolved_player(record) for record in records}
        logger.debug("Loaded %d players for resolution", len(directory))
        return cls(directory)

    def resolve(self, passport_code: str) -> ResolvedPlayer | None:
        if passport_code not in self._cache:
            self._cache[passport_code] = self._directory.get(passport_code)
        return self._cache[passport_code]

    def resolve_all(self, passport_codes: Iterable[str]) -> dict[str, ResolvedPlayer | None]:
        return {code: self.resolve(code) for code in passport_codes}

    @property
    def matched(self) -> list[ResolvedPlayer]:
        return [player for player in self._cache.values() if player is not None]

    @property
    def unmatched(self) -> list[str]:
        return [code for code, player in self._cache.items() if player is None]


def distinct_passport_codes(rows: Iterable[RawMatchRow]) -> list[str]:
    """Distinct codes across rows, in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for code in row.passport_codes:
            seen.setdefault(code, None)
    return list(seen)
