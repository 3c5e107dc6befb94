import json

import pytest

from conftest import make_result
from tipvote.settlement.result_extractor import ResultFacts, parse_score


@pytest.mark.parametrize(
    "score, expected",
    [
        ("2-1", (2, 1)),
        (" 0 : 0 ", (0, 0)),
        ("10-3", (10, 3)),
        ("2-", None),
        ("", None),
        (None, None),
    ],
)
def test_parse_score(score: str | None, expected: tuple[int, int] | None) -> None:
    assert parse_score(score) == expected


def test_payload_scores_take_precedence_over_final_score() -> None:
    payload = {"homeScore": 3, "awayScore": 1}
    facts = ResultFacts(make_result(final_score="0-0", market_results=payload))
    assert facts.scores() == (3, 1)
    assert facts.total_goals() == 4
    assert facts.both_teams_scored() is True


def test_falls_back_to_final_score() -> None:
    facts = ResultFacts(make_result(final_score="2-0", market_results={"homeScore": "3"}))
    assert facts.scores() == (2, 0)
    assert facts.total_goals() == 2
    assert facts.both_teams_scored() is False


def test_explicit_facts_win() -> None:
    payload = {"totalGoals": 5, "bothTeamsScore": False}
    facts = ResultFacts(make_result(final_score="1-1", market_results=payload))
    assert facts.total_goals() == 5
    assert facts.both_teams_scored() is False


def test_booleans_are_not_scores() -> None:
    facts = ResultFacts(
        make_result(final_score=None, market_results={"homeScore": True, "awayScore": 0})
    )
    assert facts.scores() is None
    assert facts.total_goals() is None
    assert facts.both_teams_scored() is None


def test_json_text_payload_is_parsed() -> None:
    payload = json.dumps({"cancelled": True, "matchResult": "Away"})
    facts = ResultFacts(make_result(market_results=payload))
    assert facts.is_void
    assert facts.winner() == "Away"


@pytest.mark.parametrize("payload", ["{not json", "[1, 2]", "   "])
def test_malformed_payload_degrades_to_fallback(payload: str) -> None:
    facts = ResultFacts(make_result(final_score="1-2", market_results=payload))
    assert not facts.is_void
    assert facts.scores() == (1, 2)


def test_deeply_nested_payload_degrades_to_fallback() -> None:
    facts = ResultFacts(make_result(final_score="2-1", market_results="[" * 200000))
    assert not facts.is_void
    assert facts.scores() == (2, 1)
    assert facts.total_goals() == 3


def test_void_flags_must_be_true() -> None:
    assert ResultFacts(make_result(market_results={"abandoned": True})).is_void
    assert not ResultFacts(make_result(market_results={"cancelled": "true"})).is_void


def test_winner_prefers_result_field() -> None:
    facts = ResultFacts(make_result(winner=" Home ", market_results={"matchResult": "Away"}))
    assert facts.winner() == "Home"
    assert ResultFacts(make_result(winner="")).winner() is None
