"""
Language label normalization and official-language matching.

Directory language fields are free text: comma-separated lists, native
scripts, misspellings, dialect names. ``normalize_language`` maps one label to
a canonical lowercase English name; labels without an alias pass through as
their own canonical form.
"""

import re
from typing import Dict, List, Optional, Sequence

MATCH_SUBSTRING = "substring"
MATCH_EXACT = "exact"

# Alias targets must never themselves be keys mapping elsewhere, otherwise
# normalize_language stops being idempotent.
LANGUAGE_ALIASES: Dict[str, str] = {
    # English
    "englisch": "english",
    "englsh": "english",
    "engish": "english",
    "inglés": "english",
    "ingles": "english",
    "inglese": "english",
    "anglais": "english",
    "american english": "english",
    "british english": "english",
    "us english": "english",
    "en": "english",
    # Spanish
    "español": "spanish",
    "espanol": "spanish",
    "espanõl": "spanish",
    "castellano": "spanish",
    "castilian": "spanish",
    "spanisch": "spanish",
    "spansih": "spanish",
    "spanich": "spanish",
    "latin american spanish": "spanish",
    "mexican spanish": "spanish",
    "es": "spanish",
    # Portuguese
    "português": "portuguese",
    "portugues": "portuguese",
    "portugese": "portuguese",
    "portuguese brazil": "portuguese",
    "brazilian portuguese": "portuguese",
    "brazilian": "portuguese",
    "português brasileiro": "portuguese",
    "pt": "portuguese",
    "pt-br": "portuguese",
    # French
    "français": "french",
    "francais": "french",
    "französisch": "french",
    "francés": "french",
    "frances": "french",
    "québécois": "french",
    "quebecois": "french",
    "canadian french": "french",
    "fr": "french",
    # German
    "deutsch": "german",
    "allemand": "german",
    "alemán": "german",
    "aleman": "german",
    "bavarian": "german",
    "bairisch": "german",
    "schwiizerdütsch": "german",
    "schweizerdeutsch": "german",
    "plattdeutsch": "german",
    "de": "german",
    # Italian
    "italiano": "italian",
    "italien": "italian",
    "italienisch": "italian",
    "napoletano": "italian",
    "it": "italian",
    # Dutch
    "nederlands": "dutch",
    "hollands": "dutch",
    "flemish": "dutch",
    "vlaams": "dutch",
    "nl": "dutch",
    # Nordic
    "svenska": "swedish",
    "dansk": "danish",
    "suomi": "finnish",
    "norsk": "norwegian",
    "bokmål": "norwegian",
    "bokmal": "norwegian",
    "nynorsk": "norwegian",
    "íslenska": "icelandic",
    "islenska": "icelandic",
    "føroyskt": "faroese",
    # Baltic
    "eesti": "estonian",
    "latviešu": "latvian",
    "latviesu": "latvian",
    "lietuvių": "lithuanian",
    "lietuviu": "lithuanian",
    # Slavic
    "polski": "polish",
    "русский": "russian",
    "русский язык": "russian",
    "russkij": "russian",
    "russain": "russian",
    "ru": "russian",
    "українська": "ukrainian",
    "ukranian": "ukrainian",
    "ukrainain": "ukrainian",
    "čeština": "czech",
    "cestina": "czech",
    "slovenčina": "slovak",
    "slovencina": "slovak",
    "slovene": "slovenian",
    "slovenščina": "slovenian",
    "hrvatski": "croatian",
    "srpski": "serbian",
    "српски": "serbian",
    "bosanski": "bosnian",
    "български": "bulgarian",
    "македонски": "macedonian",
    "беларуская": "belarusian",
    "belarussian": "belarusian",
    # Other European
    "magyar": "hungarian",
    "română": "romanian",
    "romana": "romanian",
    "moldovan": "romanian",
    "ελληνικά": "greek",
    "ellinika": "greek",
    "modern greek": "greek",
    "shqip": "albanian",
    "türkçe": "turkish",
    "turkce": "turkish",
    "català": "catalan",
    "catala": "catalan",
    "valencian": "catalan",
    "valencià": "catalan",
    "galego": "galician",
    "euskara": "basque",
    "euskera": "basque",
    "gaeilge": "irish",
    "irish gaelic": "irish",
    "cymraeg": "welsh",
    "malti": "maltese",
    "lëtzebuergesch": "luxembourgish",
    "letzebuergesch": "luxembourgish",
    # Caucasus / Central Asia
    "ქართული": "georgian",
    "հայերեն": "armenian",
    "azərbaycan": "azerbaijani",
    "azeri": "azerbaijani",
    "қазақ": "kazakh",
    "қазақша": "kazakh",
    "o'zbek": "uzbek",
    "ozbek": "uzbek",
    "кыргызча": "kyrgyz",
    "kirghiz": "kyrgyz",
    "тоҷикӣ": "tajik",
    "монгол": "mongolian",
    # Middle East / Africa
    "العربية": "arabic",
    "arabe": "arabic",
    "arab": "arabic",
    "arabisch": "arabic",
    "egyptian arabic": "arabic",
    "darija": "arabic",
    "فارسی": "persian",
    "farsi": "persian",
    "עברית": "hebrew",
    "ivrit": "hebrew",
    "kurdî": "kurdish",
    "kurdi": "kurdish",
    "kiswahili": "swahili",
    "isizulu": "zulu",
    "isixhosa": "xhosa",
    "አማርኛ": "amharic",
    "hausa language": "hausa",
    "yorùbá": "yoruba",
    "wolof language": "wolof",
    "malagasy language": "malagasy",
    # South / East / Southeast Asia
    "हिन्दी": "hindi",
    "hindustani": "hindi",
    "বাংলা": "bengali",
    "bangla": "bengali",
    "اردو": "urdu",
    "தமிழ்": "tamil",
    "नेपाली": "nepali",
    "සිංහල": "sinhala",
    "sinhalese": "sinhala",
    "日本語": "japanese",
    "nihongo": "japanese",
    "한국어": "korean",
    "中文": "chinese",
    "普通话": "chinese",
    "國語": "chinese",
    "粤语": "chinese",
    "廣東話": "chinese",
    "mandarin": "chinese",
    "mandarin chinese": "chinese",
    "cantonese": "chinese",
    "ไทย": "thai",
    "tiếng việt": "vietnamese",
    "tieng viet": "vietnamese",
    "bahasa indonesia": "indonesian",
    "bahasa": "indonesian",
    "bahasa melayu": "malay",
    "bahasa malaysia": "malay",
    "tagalog": "filipino",
    "pilipino": "filipino",
    "ខ្មែរ": "khmer",
    "cambodian": "khmer",
    "ລາວ": "lao",
    "laotian": "lao",
    "မြန်မာ": "burmese",
    # Americas / Pacific
    "kreyòl": "haitian",
    "kreyol": "haitian",
    "haitian creole": "haitian",
    "guaraní": "guarani",
    "runasimi": "quechua",
    "te reo māori": "maori",
    "te reo maori": "maori",
    "māori": "maori",
    # ISO 639-1 codes seen in place of names
    "ar": "arabic",
    "cs": "czech",
    "da": "danish",
    "el": "greek",
    "fa": "persian",
    "fi": "finnish",
    "he": "hebrew",
    "hi": "hindi",
    "hu": "hungarian",
    "ja": "japanese",
    "ko": "korean",
    "no": "norwegian",
    "pl": "polish",
    "ro": "romanian",
    "sv": "swedish",
    "tr": "turkish",
    "uk": "ukrainian",
    "zh": "chinese",
}

_COMMA_SPLIT = re.compile(r",")
_COMMA_OR_SPACE_SPLIT = re.compile(r"[,\s]+")


def normalize_language(raw: str) -> str:
    """Canonical lowercase language name for one free-text label."""
    label = (raw or "").strip().lower()
    return LANGUAGE_ALIASES.get(label, label)


def split_languages(field: str, split_on_whitespace: bool = False) -> List[str]:
    """Normalized, non-empty language tokens from a directory language field."""
    if not field:
        return []
    splitter = _COMMA_OR_SPACE_SPLIT if split_on_whitespace else _COMMA_SPLIT
    tokens = [normalize_language(part) for part in splitter.split(field)]
    return [t for t in tokens if t]


def languages_match(token: str, official: str, mode: str = MATCH_SUBSTRING) -> bool:
    """Exact equality, or substring containment in either direction."""
    if not token or not official:
        return False
    if mode == MATCH_EXACT:
        return token == official
    return token in official or official in token


def match_official_language(language_field: str, official_languages: Sequence[str],
                            mode: str = MATCH_SUBSTRING,
                            split_on_whitespace: bool = False) -> Optional[str]:
    """
    Official language served by a station, or None.

    Official languages are tried in profile order, so a multilingual station
    lands in the earliest (main-most) language it matches. In exact mode the
    station must declare exactly one language.
    """
    tokens = split_languages(language_field, split_on_whitespace)
    if not tokens:
        return None
    if mode == MATCH_EXACT and len(tokens) != 1:
        return None

    for official in official_languages:
        if any(languages_match(token, official, mode) for token in tokens):
            return official
    return None
