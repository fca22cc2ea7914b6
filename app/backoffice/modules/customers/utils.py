"""
Normalization and Brazilian tax-id (CPF/CNPJ) helpers for customer payloads.

CPF: 11 digits, two mod-11 check digits.
CNPJ: 14 digits, two mod-11 check digits with weights 2..9 cycling from the right.
"""
from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

_CNPJ_WEIGHTS_1 = (5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2)
_CNPJ_WEIGHTS_2 = (6,) + _CNPJ_WEIGHTS_1


def clean(value) -> str | None:
    """Strip strings; empty becomes None. Non-strings are stringified."""
    if value is None:
        return None
    v = str(value).strip()
    return v or None


def normalize_email(value) -> str | None:
    v = clean(value)
    return v.lower() if v else None


def digits_only(value: str | None) -> str:
    return re.sub(r"\D", "", value or "")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and bool(_EMAIL_RE.match(value))


def is_valid_cpf(value: str | None) -> bool:
    cpf = digits_only(value)
    if len(cpf) != 11 or cpf == cpf[0] * 11:
        return False
    nums = [int(c) for c in cpf]
    for pos in (9, 10):
        total = sum(nums[i] * (pos + 1 - i) for i in range(pos))
        check = (total * 10) % 11
        if check == 10:
            check = 0
        if check != nums[pos]:
            return False
    return True


def is_valid_cnpj(value: str | None) -> bool:
    cnpj = digits_only(value)
    if len(cnpj) != 14 or cnpj == cnpj[0] * 14:
        return False
    nums = [int(c) for c in cnpj]
    for pos, weights in ((12, _CNPJ_WEIGHTS_1), (13, _CNPJ_WEIGHTS_2)):
        total = sum(n * w for n, w in zip(nums[:pos], weights))
        rest = total % 11
        check = 0 if rest < 2 else 11 - rest
        if check != nums[pos]:
            return False
    return True
