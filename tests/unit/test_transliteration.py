"""
Pruebas unitarias para la transliteración latín -> cirílico uzbeko.
"""

import pytest

from src.utils.transliteration import latin_to_cyrillic

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("latin,cyrillic", [
    ("ABDULLAYEV", "АБДУЛЛАЕВ"),
    ("Toshkent", "Тошкент"),
    ("Erkin", "Эркин"),
    ("SHOXRUX", "ШОХРУХ"),
    ("G'ULOMOVA", "ҒУЛОМОВА"),
    ("O'TKIR", "ЎТКИР"),
    ("Mansur", "Мансур"),
    ("YULDUZ", "ЮЛДУЗ"),
    ("Yoqubjon", "Ёқубжон"),
    ("CHORSHANBE", "ЧОРШАНБЕ"),
])
def test_names_and_places(latin, cyrillic):
    assert latin_to_cyrillic(latin) == cyrillic


@pytest.mark.parametrize("variant", ["Gʻulom", "G’ulom", "G‘ulom", "G`ulom"])
def test_apostrophe_variants(variant):
    assert latin_to_cyrillic(variant) == "Ғулом"


def test_separator_sign():
    assert latin_to_cyrillic("ma'no") == "маъно"


@pytest.mark.parametrize("latin,cyrillic", [
    ("YO'LDOSHEVA", "ЙЎЛДОШЕВА"),
    ("Yo'ldosh", "Йўлдош"),
    ("Yo‘ldoshev", "Йўлдошев"),
])
def test_y_before_o_apostrophe(latin, cyrillic):
    assert latin_to_cyrillic(latin) == cyrillic


@pytest.mark.parametrize("latin,cyrillic", [
    ("IS'HOQ", "ИСҲОҚ"),
    ("Is'hoq", "Исҳоқ"),
])
def test_apostrophe_between_s_and_h_is_dropped(latin, cyrillic):
    assert latin_to_cyrillic(latin) == cyrillic


def test_e_at_word_start_only():
    assert latin_to_cyrillic("TOSHKENT SHAHRI ELLIKQALA") == "ТОШКЕНТ ШАҲРИ ЭЛЛИКҚАЛА"


def test_non_latin_preserved():
    assert latin_to_cyrillic("Тошкент-2") == "Тошкент-2"


def test_empty():
    assert latin_to_cyrillic("") == ""
