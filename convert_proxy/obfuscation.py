"""
String transforms the upstream converter expects in its paths and payloads.

None of these are security controls; they only reproduce the encoding the
upstream front end uses.
"""

import secrets


def random_token() -> str:
    """32-char lowercase hex filler built from 16 random bytes."""
    return secrets.token_hex(16)


def xor_encode(text: str) -> str:
    """XOR every character code with 1. Applying it twice returns the input."""
    return "".join(chr(ord(ch) ^ 1) for ch in text)


def reverse_char_codes(text: str, separator: str = ",") -> str:
    """
    Join the character codes of ``text`` with ``separator`` and reverse the
    order of the resulting tokens (not the digits inside each token).

    "ab" -> "97,98" -> "98,97"
    """
    joined = separator.join(str(ord(ch)) for ch in text)
    return separator.join(reversed(joined.split(separator)))
