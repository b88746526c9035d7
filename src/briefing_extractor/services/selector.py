"""Primary briefing selection by heuristic scoring.

The weights were calibrated against real project folders; they are kept as
named, overridable values and the ranking is fully deterministic (ties keep
listing order) so fixtures always resolve to the same winner.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..domain.models import CandidateFile, FallbackPolicy, ScoredCandidate, SelectionResult
from ..observability.logger import get_logger
from ..utils.text import fold, significant_tokens

logger = get_logger(__name__)

FALLBACK_REASON = "fallback_first_candidate"


@dataclass(frozen=True)
class ScoringWeights:
    briefing_hint: int = 120
    contains_briefing: int = 80
    contains_brief: int = 60
    token_overlap_max: int = 50
    underscore_allowance: int = 6
    underscore_penalty: int = 3
    short_name_max_length: int = 40
    short_name_bonus: int = 10


class PrimaryBriefingSelector:
    def __init__(
        self,
        weights: ScoringWeights | None = None,
        *,
        require_unique_winner: bool = False,
    ):
        self._w = weights or ScoringWeights()
        self._require_unique_winner = require_unique_winner

    def score(self, candidate: CandidateFile, project_name: str | None) -> ScoredCandidate:
        w = self._w
        name = fold(candidate.file_name)
        score = 0
        reasons: list[str] = []

        if candidate.is_briefing_hint:
            score += w.briefing_hint
            reasons.append("isBriefingFlag")

        if "briefing" in name:
            score += w.contains_briefing
            reasons.append("contains_briefing")
        elif "brief" in name:
            score += w.contains_brief
            reasons.append("contains_brief")

        tokens = significant_tokens(project_name)
        if tokens:
            hits = sum(1 for t in tokens if t in name)
            # round-half-up, matching the calibration data
            score += int(w.token_overlap_max * hits / len(tokens) + 0.5)
            reasons.append(f"token_overlap_{hits}/{len(tokens)}")

        underscores = name.count("_")
        if underscores > w.underscore_allowance:
            score -= (underscores - w.underscore_allowance) * w.underscore_penalty
            reasons.append("underscore_penalty")

        if len(name) <= w.short_name_max_length:
            score += w.short_name_bonus
            reasons.append("length_ok")

        return ScoredCandidate(candidate=candidate, score=score, reason="|".join(reasons))

    def rank(self, candidates: Sequence[CandidateFile], project_name: str | None) -> list[ScoredCandidate]:
        scored = [self.score(c, project_name) for c in candidates]
        return sorted(scored, key=lambda s: -s.score)

    def select(self, candidates: Sequence[CandidateFile], project_name: str | None) -> Optional[SelectionResult]:
        """Best-scored candidate, or None when scoring cannot pick one."""
        if not candidates:
            return None
        ranking = self.rank(candidates, project_name)
        for position, s in enumerate(ranking, start=1):
            logger.info(
                "candidate_ranked",
                position=position,
                file_name=s.candidate.file_name,
                score=s.score,
                reason=s.reason,
            )
        best = ranking[0]
        if self._require_unique_winner and len(ranking) > 1 and ranking[1].score == best.score:
            return None
        return SelectionResult(candidate=best.candidate, reason=best.reason, ranking=tuple(ranking))

    def choose(
        self,
        candidates: Sequence[CandidateFile],
        project_name: str | None,
        *,
        single_briefing: bool = True,
        fallback_policy: FallbackPolicy = FallbackPolicy.FIRST_CANDIDATE,
    ) -> tuple[list[CandidateFile], Optional[SelectionResult]]:
        """Narrow the candidate list according to the caller's options."""
        items = list(candidates)
        if not single_briefing or len(items) <= 1:
            selection = None
            if items:
                selection = SelectionResult(
                    candidate=items[0],
                    reason="single_candidate" if len(items) == 1 else "all_candidates",
                    mode="single" if single_briefing else "all",
                )
            return items, selection

        selection = self.select(items, project_name)
        if selection is not None:
            logger.info(
                "primary_briefing_selected",
                file_name=selection.candidate.file_name,
                candidates=len(items),
                reason=selection.reason,
            )
            return [selection.candidate], selection

        logger.warning("primary_briefing_inconclusive", candidates=len(items), policy=fallback_policy.value)
        fallback = SelectionResult(candidate=items[0], reason=FALLBACK_REASON, fallback=True)
        if fallback_policy is FallbackPolicy.ALL_CANDIDATES:
            return items, fallback
        return [items[0]], fallback
