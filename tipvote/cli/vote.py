from __future__ import annotations

import argparse
from typing import Sequence

from tipvote.config.settings import settings
from tipvote.domain.errors import TipvoteError
from tipvote.logging_config import get_logger
from tipvote.repositories.sqlite.connection import connect
from tipvote.repositories.sqlite.votes_sqlite import SqliteVoteUnitOfWork
from tipvote.voting.aggregator import VoteAggregator
from tipvote.voting.guard import ConcurrencyGuard


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Cast, flip or withdraw a vote")
    p.add_argument("--db", default=settings.db_path, help="SQLite database path")
    p.add_argument("--voter", type=int, required=True, help="Voter (user) ID")
    p.add_argument(
        "--target-type",
        default="position",
        help="position, ticket or expert (or 1/2/3)",
    )
    p.add_argument("--target", type=int, required=True, help="Target ID")
    p.add_argument("--direction", required=True, help="up/down (or 1/2)")
    return p


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    get_logger()
    conn = connect(args.db)
    try:
        guard = ConcurrencyGuard(
            max_attempts=settings.vote_read_attempts,
            backoff_factor=settings.vote_backoff_seconds,
        )
        aggregator = VoteAggregator(SqliteVoteUnitOfWork(conn), guard)
        try:
            result = aggregator.apply_vote(
                args.voter, args.target_type, args.target, args.direction
            )
        except TipvoteError as exc:
            print(f"Error ({exc.status_code}): {exc}")
            return 1
    finally:
        conn.close()

    c = result.counters
    vote = result.vote_type or "none"
    print(
        f"target={result.target_type.name.lower()}:{result.target_id} vote={vote} "
        f"up={c.upvotes} down={c.downvotes} voters={c.voters} "
        f"prediction={format(c.prediction_percentage, 'f')}%"
    )
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
