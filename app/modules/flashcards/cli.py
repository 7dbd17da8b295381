from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from app.modules.flashcards.analyzer import analyze
from app.modules.flashcards.main import DeckGenerator, GenerationOutcome
from app.modules.flashcards.models.cards import (
    DifficultyMode,
    SourceOrigin,
    SourceText,
    Vibe,
)
from app.modules.flashcards.normalizer import prepare_pasted


def _load_text(args: argparse.Namespace) -> str:
    if args.text and args.text_file:
        raise SystemExit("Provide either --text or --text-file, not both")
    if args.text_file:
        return Path(args.text_file).read_text(encoding="utf-8")
    if args.text:
        return args.text
    raise SystemExit("--text or --text-file is required")


def _outcome_json(outcome: GenerationOutcome) -> dict:
    return {
        "success": outcome.success,
        "stage": outcome.stage.value,
        "message": outcome.message,
        "failedStage": outcome.failed_stage.value if outcome.failed_stage else None,
        "analysis": outcome.analysis.model_dump(mode="json") if outcome.analysis else None,
        "deck": outcome.deck.model_dump(mode="json", by_alias=True) if outcome.deck else None,
    }


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="flashpages", description="Study deck generator CLI"
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    a = sub.add_parser("analyze", help="Analyze text offline (no provider call)")
    a.add_argument("--text", "-t", help="Source text")
    a.add_argument("--text-file", help="Path to a file containing the source text")

    g = sub.add_parser("generate", help="Generate a deck from text or a URL")
    g.add_argument("--text", "-t", help="Source text")
    g.add_argument("--text-file", help="Path to a file containing the source text")
    g.add_argument("--url", help="Import the source text from a web page")
    g.add_argument("--vibe", choices=[v.value for v in Vibe], default=Vibe.STUDENT.value)
    g.add_argument(
        "--difficulty",
        choices=[d.value for d in DifficultyMode],
        default=DifficultyMode.AUTO.value,
    )

    args = parser.parse_args(argv)
    if args.cmd == "analyze":
        text = prepare_pasted(_load_text(args))
        print(json.dumps(analyze(text).model_dump(mode="json"), indent=2))
        return 0
    if args.cmd == "generate":
        svc = DeckGenerator()
        vibe = Vibe(args.vibe)
        difficulty = DifficultyMode(args.difficulty)
        if args.url:
            outcome = asyncio.run(
                svc.generate_from_url(args.url, vibe=vibe, difficulty=difficulty)
            )
        else:
            source = SourceText(content=_load_text(args), origin=SourceOrigin.PASTED)
            outcome = svc.generate_sync(source, vibe=vibe, difficulty=difficulty)
        print(json.dumps(_outcome_json(outcome), indent=2, ensure_ascii=False))
        return 0 if outcome.success else 1

    parser.print_help()
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
