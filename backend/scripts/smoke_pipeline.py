"""
Pipeline smoke test: run from backend/ with:
    uv run python scripts/smoke_pipeline.py            # offline stub generator
    uv run python scripts/smoke_pipeline.py --live     # real LLM (needs API key in .env)

Runs validate-and-finalize on a sample story with one good and one
hallucinated exercise, then prints the outcome of each.
"""
import sys, os, asyncio, argparse, logging
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))

logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

from hablaconmigo.core.config import get_settings
from hablaconmigo.core.deps import get_exercise_generator
from hablaconmigo.models.exercise import CompleteWordsExercise, parse_candidate
from hablaconmigo.services.pipeline import finalize_exercises

PASS = "\033[32m✓\033[0m"
FAIL = "\033[31m✗\033[0m"

PASSAGE = (
    "El gato come pescado. El gato es negro. "
    "La niña juega en el parque porque hace sol. "
    "Después, la niña lee un libro con su abuela."
)


class StubGenerator:
    """Answers every regeneration with a sentence lifted from the passage."""

    async def generate(self, request):
        return parse_candidate({
            "kind": "complete_words",
            "title": "Completa la palabra",
            "sentence": "El gato___negro.",
            "correct": "es",
        })


def main():
    parser = argparse.ArgumentParser(description="Run the exercise pipeline on a sample story")
    parser.add_argument("--live", action="store_true", help="use the configured LLM instead of a stub")
    parser.add_argument("--level", type=int, default=1)
    args = parser.parse_args()

    generator = get_exercise_generator() if args.live else StubGenerator()
    candidates = [
        CompleteWordsExercise(title="Completa", sentence="El gato___pescado.", correct="come"),
        CompleteWordsExercise(title="Completa", sentence="El perro___grande.", correct="es"),
    ]

    report = asyncio.run(finalize_exercises(
        candidates, PASSAGE, args.level, "El gato negro",
        generator=generator, settings=get_settings(),
    ))

    print(f"\n━━━ {len(report.outcomes)} exercises, level {args.level} ━━━")
    for outcome in report.outcomes:
        ok = outcome.status in ("accepted", "regenerated")
        score = f"{outcome.final_verdict.score:.0f}" if outcome.final_verdict else "-"
        print(f"  {PASS if ok else FAIL}  #{outcome.index} {outcome.kind:<15} {outcome.status:<12} "
              f"attempts={len(outcome.attempts)} score={score}")
        for failure in outcome.failures:
            print(f"       {failure}")
    print(f"\nSummary: {report.counts()}")


if __name__ == "__main__":
    main()
