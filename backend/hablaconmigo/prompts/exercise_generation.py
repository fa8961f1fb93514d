"""Prompt templates for exercise generation and feedback-driven regeneration."""
import json

EXERCISE_SYSTEM_PROMPT = """You are an expert educator in Spanish as a first written language
for deaf and hard-of-hearing children. You write short reading-comprehension and
grammar exercises that:
- Use ONLY sentences and facts that appear in the story you are given
- Match the grammar objectives of the requested curriculum level
- Are written in correct, natural Spanish
- Return a single JSON object and nothing else"""

REGENERATION_PROMPT = """The previous exercise failed validation. Produce a corrected one.

EXERCISE KIND: {kind}
LEVEL: {level}
LEVEL GRAMMAR FOCUS: {grammar_focus}

PREVIOUS FAILING ATTEMPT:
{previous_attempt}

PROBLEMS DETECTED:
{feedback}

STORY TEXT (MANDATORY SOURCE):
{passage}

SENTENCES FROM THE STORY THAT SUIT THIS LEVEL:
{suitable_sentences}

CORRECTION RULES:
1. Extract sentences verbatim, exactly as they appear in the story. Do not invent content.
2. Every word of the exercise must come from the story text.
3. The sentence must be grammatically correct Spanish.
4. Align with the grammar objectives of level {level}.
5. Blank marker: write exactly ___ (three underscores) with no spaces around it.
   Correct: "El gato___pescado."  Wrong: "El gato ___ pescado."

Return a corrected exercise as JSON in exactly this format:
{output_schema}"""

GENERATION_PROMPT = """Create one {kind} exercise for level {level}.

LEVEL GRAMMAR FOCUS: {grammar_focus}

STORY TEXT (MANDATORY SOURCE):
{passage}

SENTENCES FROM THE STORY THAT SUIT THIS LEVEL:
{suitable_sentences}

Extract sentences verbatim. Do not invent content. Blank marker: ___ with no spaces around it.

Return the exercise as JSON in exactly this format:
{output_schema}"""


OUTPUT_SCHEMAS: dict[str, dict] = {
    "order_sentence": {
        "kind": "order_sentence",
        "title": "Ordena las palabras",
        "words": ["palabra1", "palabra2", "..."],
        "correct": "Exact sentence copied from the story.",
        "explanation": "Why the order is correct",
        "hints": ["Hint 1", "Hint 2"],
    },
    "complete_words": {
        "kind": "complete_words",
        "title": "Completa la palabra",
        "sentence": "Sentence from the story with___the missing word",
        "correct": "missing_word",
        "explanation": "Why the word is correct",
        "hints": ["Hint 1", "Hint 2"],
    },
    "drag_words": {
        "kind": "drag_words",
        "title": "Arrastra la palabra",
        "sentence": "Sentence from the story with___the missing word",
        "options": ["correct_word", "distractor1", "distractor2"],
        "correct": "correct_word",
        "explanation": "Why the word is correct",
        "hints": ["Hint 1", "Hint 2"],
    },
    "multi_choice": {
        "kind": "multi_choice",
        "title": "Pregunta de comprensión",
        "question": "¿Question about the story?",
        "choices": ["Answer from the story", "Distractor", "Distractor", "Distractor"],
        "correctIndex": 0,
        "explanation": "Where the story says so",
        "hints": ["Hint 1", "Hint 2"],
    },
    "free_writing": {
        "kind": "free_writing",
        "title": "Escribe tu respuesta",
        "prompt": "¿Open question about the story?",
        "minLength": 20,
        "maxLength": 300,
        "rubric": ["Criterion 1", "Criterion 2"],
        "explanation": "What a good answer includes",
        "hints": ["Hint 1", "Hint 2"],
    },
}


def get_output_schema(kind: str) -> str:
    return json.dumps(OUTPUT_SCHEMAS.get(kind, {}), ensure_ascii=False, indent=2)


def format_feedback(feedback: list[str]) -> str:
    return "\n".join(f"  - {line}" for line in feedback) if feedback else "  (none)"


def format_sentences(sentences: list[str]) -> str:
    return "\n".join(f"  - {s}." for s in sentences) if sentences else "  (none found, pick any sentence from the story)"
