"""Fixed verb catalog used by the quiz."""
from types import MappingProxyType
from typing import Dict, Tuple

from conjubot.models.quiz_models import Verb

PRONOUNS: Tuple[str, ...] = (
    "yo",
    "tú",
    "él/ella/usted",
    "nosotros/as",
    "vosotros/as",
    "ellos/ellas/ustedes",
)

# Places used to build the fill-in-the-blank sentence for the bonus round
CONTEXTS: Tuple[str, ...] = (
    "el parque",
    "la escuela",
    "la casa",
    "el restaurante",
    "la tienda",
    "la biblioteca",
    "el cine",
    "el trabajo",
    "la cafetería",
    "el aeropuerto",
)


def _verb(infinitive: str, verb_type: str, tenses: Dict[str, Tuple[str, ...]]) -> Verb:
    for tense, forms in tenses.items():
        if len(forms) != len(PRONOUNS):
            raise ValueError(f"{infinitive} {tense}: expected {len(PRONOUNS)} forms, got {len(forms)}")
    return Verb(infinitive=infinitive, verb_type=verb_type, conjugations=MappingProxyType(tenses))


VERBS: Tuple[Verb, ...] = (
    _verb("hablar", "ar", {
        "Presente": ("hablo", "hablas", "habla", "hablamos", "habláis", "hablan"),
        "Pretérito": ("hablé", "hablaste", "habló", "hablamos", "hablasteis", "hablaron"),
        "Imperfecto": ("hablaba", "hablabas", "hablaba", "hablábamos", "hablabais", "hablaban"),
        "Futuro": ("hablaré", "hablarás", "hablará", "hablaremos", "hablaréis", "hablarán"),
    }),
    _verb("comer", "er", {
        "Presente": ("como", "comes", "come", "comemos", "coméis", "comen"),
        "Pretérito": ("comí", "comiste", "comió", "comimos", "comisteis", "comieron"),
        "Imperfecto": ("comía", "comías", "comía", "comíamos", "comíais", "comían"),
        "Futuro": ("comeré", "comerás", "comerá", "comeremos", "comeréis", "comerán"),
    }),
    _verb("vivir", "ir", {
        "Presente": ("vivo", "vives", "vive", "vivimos", "vivís", "viven"),
        "Pretérito": ("viví", "viviste", "vivió", "vivimos", "vivisteis", "vivieron"),
        "Imperfecto": ("vivía", "vivías", "vivía", "vivíamos", "vivíais", "vivían"),
        "Futuro": ("viviré", "vivirás", "vivirá", "viviremos", "viviréis", "vivirán"),
    }),
)


def pronoun_index(pronoun: str) -> int:
    """Position of `pronoun` in every conjugation table.

    Raises:
        ValueError: If the pronoun is not one of PRONOUNS.
    """
    return PRONOUNS.index(pronoun)


def make_key(verb: str, tense: str, pronoun: str) -> str:
    """Build the ledger key for a verb/tense/pronoun combination."""
    return f"{verb}-{tense}-{pronoun}"


def split_key(key: str) -> Tuple[str, str, str]:
    """Split a ledger key back into verb, tense and pronoun.

    Only the first two dashes separate fields; pronouns keep their slashes.
    """
    verb, tense, pronoun = key.split("-", 2)
    return verb, tense, pronoun


def get_verb(infinitive: str) -> Verb:
    """Look up a catalog verb by its infinitive."""
    for verb in VERBS:
        if verb.infinitive == infinitive:
            return verb
    raise KeyError(infinitive)
