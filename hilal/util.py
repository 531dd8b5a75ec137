import inflect

INFLECTOR = inflect.engine()


def tags(**kwargs: object) -> str:
    return " ".join(f"{kw}: {str(v)}" for kw, v in kwargs.items())


def number_to_words(count: int) -> str:
    out = INFLECTOR.number_to_words(count, andword="")
    if isinstance(out, str):
        return out
    return out[0]


def ordinal_words(count: int) -> str:
    "1 -> 'first', 19 -> 'nineteenth'."
    return INFLECTOR.ordinal(number_to_words(count))


def tally(count: int, word: str) -> str:
    if count == 1:
        return f"a {word}"
    return f"{number_to_words(count)} {INFLECTOR.plural_noun(word, count)}"


def clamp(x: float, lo: float, hi: float) -> float:
    return max(min(x, hi), lo)


def clamp01(x: float) -> float:
    return clamp(x, 0.0, 1.0)


def smoothstep(lo: float, hi: float, x: float) -> float:
    if hi == lo:
        raise ValueError("lo and hi must not be equal")
    t = clamp01((x - lo) / (hi - lo))
    return t * t * (3.0 - 2.0 * t)


def wrap01(x: float) -> float:
    "Fold a day fraction back into [0, 1)."
    out = x % 1.0
    # -tiny % 1.0 rounds to exactly 1.0
    return 0.0 if out >= 1.0 else out

