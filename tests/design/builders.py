"""Structured replies a designer agent would give."""

from typing import Any


def competitor_roster(count: int = 2) -> dict[str, Any]:
    return {
        "reasoning": "Two opposing philosophies create useful tension.",
        "competitors": [
            {
                "name": f"Competitor {index}",
                "persona": f"Engineer number {index} who values clarity.",
                "model": "sonnet",
                "temperature": 0.4,
                "tools": ["Read", "Write", "Bash"],
                "focus": "Correctness first, then speed.",
            }
            for index in range(1, count + 1)
        ],
    }


def evaluator_roster(count: int = 1) -> dict[str, Any]:
    return {
        "reasoning": "The outputs differ mostly in robustness.",
        "evaluators": [
            {
                "name": f"Judge {index}",
                "focus": "Robustness under bad input.",
                "criteria": ["handles errors", "has tests"],
            }
            for index in range(1, count + 1)
        ],
    }


def setup_plan() -> dict[str, Any]:
    return {"setup_sh": "#!/bin/sh\npip install -e .\n", "notes": "python project"}
