from __future__ import annotations

import re
from typing import Optional

# CPF has 11 digits, CNPJ has 14; anything shorter cannot identify a vendor
MIN_DOCUMENT_DIGITS = 11
CPF_LENGTH = 11
CNPJ_LENGTH = 14

_NON_DIGITS = re.compile(r"[^0-9]+")
_REPEATED = re.compile(r"^(\d)\1+$")


def normalize(raw: Optional[str]) -> str:
    """
    Canonical form of a tax document: decimal digits only.

    Total and idempotent: normalize(normalize(x)) == normalize(x).
    None -> ""
    """
    if raw is None:
        return ""
    return _NON_DIGITS.sub("", str(raw))


def format_cpf_cnpj(raw: Optional[str]) -> str:
    """
    Display mask for partially or fully typed documents.

    - up to 11 digits: 000.000.000-00
    - otherwise:       00.000.000/0000-00
    """
    v = normalize(raw)

    if len(v) <= CPF_LENGTH:
        out = v[0:3]
        if v[3:6]:
            out += "." + v[3:6]
        if v[6:9]:
            out += "." + v[6:9]
        if v[9:11]:
            out += "-" + v[9:11]
        return out

    out = v[0:2]
    if v[2:5]:
        out += "." + v[2:5]
    if v[5:8]:
        out += "." + v[5:8]
    if v[8:12]:
        out += "/" + v[8:12]
    if v[12:14]:
        out += "-" + v[12:14]
    return out


def _check_digit(base: str, weights: list[int]) -> int:
    total = sum(int(d) * w for d, w in zip(base, weights))
    mod = total % 11
    return 0 if mod < 2 else 11 - mod


def is_valid_cnpj(raw: Optional[str]) -> bool:
    s = normalize(raw)
    if len(s) != CNPJ_LENGTH or _REPEATED.match(s):
        return False

    base12 = s[:12]
    dv1 = _check_digit(base12, [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    dv2 = _check_digit(base12 + str(dv1), [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2])
    return s == f"{base12}{dv1}{dv2}"


def is_valid_cpf(raw: Optional[str]) -> bool:
    s = normalize(raw)
    if len(s) != CPF_LENGTH or _REPEATED.match(s):
        return False

    base9 = s[:9]
    dv1 = _check_digit(base9, list(range(10, 1, -1)))
    dv2 = _check_digit(base9 + str(dv1), list(range(11, 1, -1)))
    return s == f"{base9}{dv1}{dv2}"


def is_valid_document(raw: Optional[str]) -> bool:
    s = normalize(raw)
    if len(s) == CPF_LENGTH:
        return is_valid_cpf(s)
    if len(s) == CNPJ_LENGTH:
        return is_valid_cnpj(s)
    return False
