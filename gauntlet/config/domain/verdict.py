"""Verdict synthesis policy configuration."""

from enum import StrEnum

from pydantic import BaseModel


class TiePolicy(StrEnum):
    """What happens when two or more competitors share the top mean score."""

    NO_WINNER = "no_winner"
    FIRST_SEEN = "first_seen"


class VerdictConfig(BaseModel, frozen=True):
    tie_policy: TiePolicy = TiePolicy.NO_WINNER
    require_full_coverage: bool = False
