"""Tests for score aggregation and winner selection."""

import pytest

from gauntlet.config.domain.verdict import TiePolicy
from gauntlet.verdict.domain.scoring import Standing, decide, ranked, standings
from tests.verdict.builders import make_result


class TestStandings:
    """Means are taken over the evaluators that scored each competitor."""

    def test_mean_across_evaluators(self) -> None:
        results = [
            make_result("e1", {"A": 80, "B": 70}),
            make_result("e2", {"A": 60, "B": 80}),
        ]

        table = {s.competitor_id: s for s in standings(results)}

        assert table["A"].mean == pytest.approx(70.0)
        assert table["B"].mean == pytest.approx(75.0)
        assert table["A"].scored_by == 2

    def test_omitted_competitor_does_not_count_as_zero(self) -> None:
        results = [make_result("e1", {"A": 90, "B": 50}), make_result("e2", {"B": 70})]

        table = {s.competitor_id: s for s in standings(results)}

        assert table["A"].mean == pytest.approx(90.0)
        assert table["A"].scored_by == 1
        assert table["B"].mean == pytest.approx(60.0)

    def test_unknown_competitor_ids_are_ignored(self) -> None:
        results = [make_result("e1", {"A": 90, "ghost": 100})]

        table = standings(results, competitor_ids=["A"])

        assert [s.competitor_id for s in table] == ["A"]

    def test_order_is_first_seen(self) -> None:
        results = [make_result("e1", {"B": 1}), make_result("e2", {"A": 2, "B": 3})]

        assert [s.competitor_id for s in standings(results)] == ["B", "A"]


class TestRanked:
    """ranked sorts by mean, keeping first-seen order on ties."""

    def test_highest_first_and_stable(self) -> None:
        table = [Standing("A", 50.0, 1), Standing("B", 80.0, 1), Standing("C", 50.0, 1)]

        assert [s.competitor_id for s in ranked(table)] == ["B", "A", "C"]


class TestDecide:
    """decide picks the strictly highest mean subject to policy."""

    def test_highest_mean_wins(self) -> None:
        results = [
            make_result("e1", {"A": 80, "B": 70}),
            make_result("e2", {"A": 60, "B": 80}),
        ]

        decision = decide(standings(results), TiePolicy.NO_WINNER)

        assert decision.winner_id == "B"
        assert decision.top_mean == pytest.approx(75.0)
        assert decision.tied == []

    def test_tie_with_no_winner_policy(self) -> None:
        table = [Standing("A", 70.0, 2), Standing("B", 70.0, 2), Standing("C", 10.0, 2)]

        decision = decide(table, TiePolicy.NO_WINNER)

        assert decision.winner_id is None
        assert decision.tied == ["A", "B"]

    def test_tie_with_first_seen_policy(self) -> None:
        table = [Standing("B", 70.0, 2), Standing("A", 70.0, 2)]

        decision = decide(table, TiePolicy.FIRST_SEEN)

        assert decision.winner_id == "B"
        assert decision.tied == ["B", "A"]

    def test_float_noise_counts_as_tie(self) -> None:
        table = [Standing("A", 0.1 + 0.2, 1), Standing("B", 0.3, 1)]

        assert decide(table, TiePolicy.NO_WINNER).winner_id is None

    def test_coverage_excludes_partially_scored(self) -> None:
        table = [Standing("A", 95.0, 1), Standing("B", 70.0, 2)]

        decision = decide(table, TiePolicy.NO_WINNER, required_coverage=2)

        assert decision.winner_id == "B"

    def test_empty_table_has_no_winner(self) -> None:
        decision = decide([], TiePolicy.NO_WINNER)

        assert decision.winner_id is None
        assert decision.top_mean is None
