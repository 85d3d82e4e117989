"""Lightweight CLI helpers for inspecting the persisted interview state."""
from __future__ import annotations

import argparse
from typing import List, Optional

from config.settings import settings
from interview_session.models import TOTAL_QUESTIONS
from storage import SessionStore


def list_completed(limit: int = 20, db_path: Optional[str] = None) -> List[str]:
    store = SessionStore(db_path or settings.STATE_DB_PATH)
    ranked = sorted(
        store.list_completed(),
        key=lambda candidate: -1 if candidate.final_score is None else candidate.final_score,
        reverse=True,
    )
    lines = []
    for candidate in ranked[:limit]:
        score = "-" if candidate.final_score is None else f"{candidate.final_score}%"
        lines.append(
            f"{candidate.id} {candidate.name or 'N/A'} <{candidate.email or 'N/A'}> score={score} "
            f"answered={sum(1 for q in candidate.questions if q.answered)}/{len(candidate.questions)}"
        )
    return lines


def show_unfinished(db_path: Optional[str] = None) -> List[str]:
    store = SessionStore(db_path or settings.STATE_DB_PATH)
    candidate = store.find_unfinished()
    if candidate is None:
        return ["No unfinished interview."]
    return [
        f"{candidate.id} {candidate.name or 'N/A'} status={candidate.status} "
        f"question={candidate.current_question_index + 1}/{TOTAL_QUESTIONS}"
    ]


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--list-completed", type=int, help="Show the top N completed interviews by score")
    parser.add_argument("--unfinished", action="store_true", help="Show the interview awaiting resume, if any")
    parser.add_argument("--db", help="Override STATE_DB_PATH")
    args = parser.parse_args(argv)

    if args.list_completed:
        for line in list_completed(args.list_completed, args.db):
            print(line)
    if args.unfinished:
        for line in show_unfinished(args.db):
            print(line)


if __name__ == "__main__":
    main()
