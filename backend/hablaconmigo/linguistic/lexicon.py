"""Static Spanish lexicons used by the lexical analyzer and validators."""
import re

# ---------------------------------------------------------------------------
# Connectors
# ---------------------------------------------------------------------------

COORDINATING: frozenset[str] = frozenset({"y", "e", "ni", "o", "u", "pero", "mas", "sino"})
SUBORDINATING: frozenset[str] = frozenset({
    "que", "porque", "cuando", "si", "aunque", "mientras", "como", "donde",
})

# ---------------------------------------------------------------------------
# Subject indicators
# ---------------------------------------------------------------------------

ARTICLES: frozenset[str] = frozenset({"el", "la", "los", "las", "un", "una", "unos", "unas"})
PERSONAL_PRONOUNS: frozenset[str] = frozenset({
    "yo", "tú", "él", "ella", "nosotros", "nosotras", "vosotros", "vosotras",
    "ellos", "ellas", "usted", "ustedes",
})

# ---------------------------------------------------------------------------
# Closed-class words never treated as inflected verbs by suffix matching
# ---------------------------------------------------------------------------

PREPOSITIONS: frozenset[str] = frozenset({
    "a", "al", "ante", "bajo", "con", "contra", "de", "del", "desde", "durante",
    "en", "entre", "hacia", "hasta", "para", "por", "según", "sin", "sobre", "tras",
})
FUNCTION_WORDS: frozenset[str] = frozenset({
    "muy", "más", "menos", "también", "tampoco", "aquí", "allí", "ahí", "después",
    "antes", "ahora", "siempre", "nunca", "todo", "toda", "todos", "todas",
    "este", "esta", "estos", "estas", "ese", "esa", "esos", "esas", "otro", "otra",
    "mucho", "mucha", "muchos", "muchas", "nuestro", "nuestra", "cada", "casi",
})

CLOSED_CLASS: frozenset[str] = (
    ARTICLES | PERSONAL_PRONOUNS | PREPOSITIONS | FUNCTION_WORDS | COORDINATING | SUBORDINATING
)

# ---------------------------------------------------------------------------
# Verb lexicon: conjugated form -> tense (None for infinitives)
# ---------------------------------------------------------------------------

_PRESENTE = (
    "es son soy eres somos está están estoy estás estamos ha han he has hemos hay "
    "tiene tienen tengo tienes tenemos va van voy vas vamos hace hacen dice dicen "
    "puede pueden quiere quieren sabe saben ve ven da dan viene vienen"
)
_PRETERITO = (
    "fue fueron fui estuvo estuvieron tuvo tuvieron hizo hicieron dijo dijeron "
    "pudo pudieron quiso supo vio vieron dio dieron vino vinieron"
)
_IMPERFECTO = (
    "era eran estaba estaban había habían tenía tenían iba iban hacía decía podía "
    "quería sabía veía"
)
_FUTURO = "será serán estará estarán tendrá tendrán irá irán hará dirá podrá querrá sabrá verá vendrá"
_INFINITIVO = "ser estar haber tener hacer decir poder querer saber ver dar ir venir"

VERB_LEXICON: dict[str, str | None] = {
    **{w: "presente" for w in _PRESENTE.split()},
    **{w: "preterito" for w in _PRETERITO.split()},
    **{w: "imperfecto" for w in _IMPERFECTO.split()},
    **{w: "futuro" for w in _FUTURO.split()},
    **{w: None for w in _INFINITIVO.split()},
}

# Inflection endings, checked in order: first match wins for a token.
# Ambiguous endings (-amos, -é) resolve to the earlier tense in this list.
TENSE_SUFFIXES: tuple[tuple[str, re.Pattern], ...] = (
    ("imperfecto", re.compile(r"(?:aba|abas|ábamos|abais|aban|ía|ías|íamos|íais|ían)$")),
    ("futuro", re.compile(r"(?:ré|rás|rá|réis|rán)$")),
    ("preterito", re.compile(r"(?:aste|asteis|aron|iste|isteis|ieron|ió|ó|é|í)$")),
    ("presente", re.compile(r"(?:o|as|a|amos|áis|an|es|e|emos|éis|en)$")),
)

# Suffix matching only applies to tokens longer than this
MIN_SUFFIX_TOKEN_LEN = 3

# ---------------------------------------------------------------------------
# Word classes used by validators
# ---------------------------------------------------------------------------

# Blank answers too trivial to teach anything (bare articles / conjunctions)
TRIVIAL_WORDS: frozenset[str] = ARTICLES | frozenset({"y", "e", "o", "u", "ni"})

# Basic verbs suitable as blank answers for levels 1-2
BASIC_VERBS: frozenset[str] = frozenset({
    "es", "son", "está", "están", "tiene", "tienen", "hay", "va", "van",
    "come", "comen", "juega", "juegan", "lee", "leen", "corre", "corren",
    "vive", "viven", "duerme", "duermen", "mira", "miran", "bebe", "beben",
    "salta", "saltan", "canta", "cantan", "camina", "caminan", "ve", "ven",
})

# Words ignored when extracting content keywords from an answer
STOP_WORDS: frozenset[str] = frozenset({
    "el", "la", "los", "las", "un", "una", "unos", "unas", "de", "del", "a", "al",
    "en", "y", "o", "pero", "que", "es", "son", "esta", "estan", "con", "por",
    "para", "se", "su", "sus", "lo", "le", "les", "muy", "mas",
})

# Question openers per comprehension band (accent-stripped, lowercase)
LITERAL_QUESTION_OPENERS: tuple[str, ...] = ("que", "quien", "donde")
INFERENTIAL_QUESTION_OPENERS: tuple[str, ...] = ("por que", "como")
ANALYTICAL_QUESTION_MARKERS: tuple[str, ...] = ("cual es", "significado", "opinas", "piensas")
