"""morsekit — character → Morse pattern table (ITU, with punctuation extensions)."""

from types import MappingProxyType

from .constants import WORD_SEP

_TABLE = {
    'A':'.-',  'B':'-...','C':'-.-.','D':'-..', 'E':'.',   'F':'..-.',
    'G':'--.',  'H':'....','I':'..',  'J':'.---','K':'-.-', 'L':'.-..',
    'M':'--',   'N':'-.',  'O':'---', 'P':'.--.','Q':'--.-','R':'.-.',
    'S':'...',  'T':'-',   'U':'..-', 'V':'...-','W':'.--', 'X':'-..-',
    'Y':'-.--', 'Z':'--..',
    ' ':WORD_SEP,
    '0':'-----','1':'.----','2':'..---','3':'...--','4':'....-',
    '5':'.....','6':'-....','7':'--...','8':'---..','9':'----.',
    '.':'.-.-.-',',':'--..--','?':'..--..',"'":'.----.','!':'-.-.--',
    '/':'-..-.', '(':'-.--.', ')':'-.--.-','&':'.-...', ':':'---...',
    ';':'-.-.-.','=':'-...-', '+':'.-.-.', '-':'-....-','_':'..--.-',
    '"':'.-..-.','$':'...-..-','@':'.--.-.',
}

# Read-only view; nothing may patch the table at runtime.
MORSE_MAP = MappingProxyType(_TABLE)


def lookup(ch: str) -> str:
    """Pattern for *ch* (already upper-cased), or '' when the character is unmapped."""
    return MORSE_MAP.get(ch, '')
