"""Where each competitor works inside the sandbox and which branch it owns."""

import re
from dataclasses import dataclass

WORKSPACE_ROOT = "/workspace"
REPO_PATH = f"{WORKSPACE_ROOT}/repo"

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(name: str) -> str:
    slug = _NON_SLUG.sub("-", name.lower()).strip("-")
    return slug or "agent"


def branch_prefix(trial_id: str) -> str:
    return f"gauntlet/trial-{trial_id}/"


@dataclass(frozen=True)
class Placement:
    branch: str
    worktree_path: str


def place(trial_id: str, names: list[str]) -> list[Placement]:
    """One branch and worktree per name, suffixing repeated slugs."""
    seen: dict[str, int] = {}
    placements = []
    for name in names:
        slug = slugify(name)
        seen[slug] = seen.get(slug, 0) + 1
        if seen[slug] > 1:
            slug = f"{slug}-{seen[slug]}"
        placements.append(
            Placement(
                branch=f"{branch_prefix(trial_id)}{slug}",
                worktree_path=f"{WORKSPACE_ROOT}/{slug}",
            )
        )
    return placements
