"""
Transliteración del alfabeto latino uzbeko al cirílico uzbeko.

Los nombres y el lugar de nacimiento se escriben en el CRM en cirílico.
"""
from typing import Dict

# Variantes de apóstrofo que aparecen en oʻ / gʻ y en el signo de separación
APOSTROPHES = "'ʻʼ‘’`´"

DIGRAPHS: Dict[str, str] = {
    "o'": "ў",
    "g'": "ғ",
    "sh": "ш",
    "ch": "ч",
    "yo": "ё",
    "yu": "ю",
    "ya": "я",
    "ye": "е",
}

LETTERS: Dict[str, str] = {
    "a": "а", "b": "б", "c": "с", "d": "д", "f": "ф", "g": "г", "h": "ҳ",
    "i": "и", "j": "ж", "k": "к", "l": "л", "m": "м", "n": "н", "o": "о",
    "p": "п", "q": "қ", "r": "р", "s": "с", "t": "т", "u": "у", "v": "в",
    "w": "в", "x": "х", "y": "й", "z": "з",
}


def _normalize_apostrophes(text: str) -> str:
    for char in APOSTROPHES[1:]:
        text = text.replace(char, "'")
    return text


def _apply_case(source: str, target: str) -> str:
    if source[0].isupper():
        return target.upper()
    return target


def latin_to_cyrillic(text: str) -> str:
    """
    Translitera un texto en latín uzbeko a cirílico.

    Args:
        text: Texto en alfabeto latino (ej. "ABDULLAYEV", "Toshkent")

    Returns:
        Texto en cirílico; los caracteres no latinos se conservan
    """
    if not text:
        return ""

    text = _normalize_apostrophes(text)
    result = []
    i = 0

    while i < len(text):
        pair = text[i:i + 2]
        # En "yoʻ" / "ygʻ" la y es й y el apóstrofo pertenece a la letra siguiente
        y_before_modified = pair[:1].lower() == "y" and text[i + 1:i + 3].lower() in ("o'", "g'")
        if pair.lower() in DIGRAPHS and not y_before_modified:
            result.append(_apply_case(pair, DIGRAPHS[pair.lower()]))
            i += 2
            continue

        char = text[i]
        lower = char.lower()

        if lower == "e":
            # "e" al inicio de palabra se escribe э
            at_word_start = i == 0 or not text[i - 1].isalpha()
            result.append(_apply_case(char, "э" if at_word_start else "е"))
        elif lower in LETTERS:
            result.append(_apply_case(char, LETTERS[lower]))
        elif char == "'":
            prev = text[i - 1].lower() if i > 0 else ""
            # s'h / c'h solo separa la s de la h (Is'hoq -> Исҳоқ)
            if not (prev in ("s", "c") and text[i + 1:i + 2].lower() == "h"):
                # Tutuq belgisi (signo de separación)
                result.append("Ъ" if i > 0 and text[i - 1].isupper() else "ъ")
        else:
            result.append(char)
        i += 1

    return "".join(result)
