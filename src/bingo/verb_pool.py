"""
Verb catalog and board selection.

Selection is driven by an injected random generator so that a fixed seed
always yields the same board.
"""

import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict, Field

from .models import Verb, ValidationError, ValidationResult
from .lines import CELL_COUNT
from .data import DEFAULT_VERBS


logger = logging.getLogger(__name__)

# (regular, irregular) counts per difficulty level
DIFFICULTY_MIX: Dict[int, Tuple[int, int]] = {
    1: (20, 5),
    2: (13, 12),
    3: (5, 20),
}

MIN_VERBS = CELL_COUNT


class VerbPool(BaseModel):
    """
    Holds the active verb catalog and picks the verbs for a board.

    Attributes:
        verbs: The catalog selections are drawn from
        seed: Optional seed used when no generator is supplied
        rng: Random generator used for every shuffle
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    verbs: List[Verb] = Field(default_factory=lambda: list(DEFAULT_VERBS))
    seed: Optional[int] = None
    rng: Optional[random.Random] = None

    def model_post_init(self, __context) -> None:
        """Initialize the random generator after model creation."""
        if self.rng is None:
            self.rng = random.Random(self.seed)

    def _shuffled(self, verbs: Iterable[Verb]) -> List[Verb]:
        items = list(verbs)
        self.rng.shuffle(items)
        return items

    def select_random(self, count: int = CELL_COUNT, pool: Optional[List[Verb]] = None) -> List[Verb]:
        """
        Pick `count` verbs uniformly at random, ignoring regularity.

        Returns fewer than `count` only if the pool is smaller.
        """
        pool = self.verbs if pool is None else pool
        return self._shuffled(pool)[:count]

    def select_for_difficulty(self, level: int, pool: Optional[List[Verb]] = None) -> List[Verb]:
        """
        Pick 25 verbs with the regular/irregular mix for a difficulty level.

        Each subset is shuffled on its own, the picks are combined and the
        combined list is shuffled again so regularity carries no position.
        When a subset runs short the board is padded from the whole pool,
        skipping verbs whose present form is already on the board.

        Args:
            level: Difficulty level (1-3)
            pool: Verbs to draw from (defaults to the catalog)

        Returns:
            Up to 25 verbs; fewer only when the pool lacks 25 unique verbs

        Raises:
            ValueError: If the level is unknown
        """
        if level not in DIFFICULTY_MIX:
            raise ValueError(f"Unknown difficulty level {level} (expected one of {sorted(DIFFICULTY_MIX)})")

        pool = self.verbs if pool is None else pool
        regular_count, irregular_count = DIFFICULTY_MIX[level]

        regular = self._shuffled(v for v in pool if v.is_regular)[:regular_count]
        irregular = self._shuffled(v for v in pool if not v.is_regular)[:irregular_count]
        selected = self._shuffled(regular + irregular)

        if len(selected) < CELL_COUNT:
            logger.debug(
                f"Level {level} mix short by {CELL_COUNT - len(selected)} "
                f"({len(regular)} regular, {len(irregular)} irregular); padding"
            )
            seen = {v.present for v in selected}
            for verb in self._shuffled(pool):
                if len(selected) >= CELL_COUNT:
                    break
                if verb.present in seen:
                    continue
                selected.append(verb)
                seen.add(verb.present)

        if len(selected) < CELL_COUNT:
            logger.warning(f"Verb pool only has {len(selected)} unique verbs; board will be incomplete")

        return selected


def validate_verbs(candidates: List[Verb]) -> ValidationResult:
    """
    Check a candidate verb list before it replaces the catalog.

    Entries with a blank present or past form are dropped with a warning.
    The list is rejected if fewer than 25 usable verbs remain.

    Returns:
        ValidationResult whose `verbs` holds the usable entries
    """
    warnings: List[ValidationError] = []
    usable: List[Verb] = []

    for i, verb in enumerate(candidates, start=1):
        present = verb.present.strip()
        past = verb.past.strip()
        if not present or not past:
            warnings.append(ValidationError(
                code="BLANK_ENTRY",
                message=f"Entry {i} is missing its {'present' if not present else 'past'} form",
                line=i,
            ))
            continue
        usable.append(Verb(present=present, past=past, is_regular=verb.is_regular))

    errors: List[ValidationError] = []
    unique = len({v.present for v in usable})
    if len(usable) < MIN_VERBS:
        errors.append(ValidationError(
            code="TOO_FEW_VERBS",
            message=f"You need at least {MIN_VERBS} verbs to play (got {len(usable)})",
        ))
    elif unique < MIN_VERBS:
        # Padding skips repeated prompts, so duplicates cannot fill a board
        errors.append(ValidationError(
            code="TOO_FEW_UNIQUE_VERBS",
            message=f"You need at least {MIN_VERBS} different verbs to play (got {unique})",
        ))

    return ValidationResult(
        valid=not errors,
        errors=errors,
        warnings=warnings,
        verbs=usable if not errors else [],
    )
