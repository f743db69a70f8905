"""Máscaras de entrada e validadores de documentos brasileiros.

Todas as funções aceitam valores parcialmente digitados e são idempotentes:
formatar um valor já formatado devolve o mesmo valor.
"""

from __future__ import annotations

import re

from painel_financeiro.config.settings import CEP_DIGITS, CNPJ_DIGITS

_NON_DIGITS = re.compile(r"\D")
_NON_LETTERS = re.compile(r"[^a-zA-Z]")
_EMAIL = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

CPF_DIGITS = 11


def only_digits(value: str) -> str:
    """Remove tudo que não for dígito."""
    return _NON_DIGITS.sub("", value or "")


def format_cep(cep: str) -> str:
    """01310100 -> 01310-100 (parcial até 5 dígitos fica sem hífen)."""
    digits = only_digits(cep)
    if len(digits) <= 5:
        return digits
    return f"{digits[:5]}-{digits[5:8]}"


def format_cnpj(cnpj: str) -> str:
    """12345678000195 -> 12.345.678/0001-95."""
    d = only_digits(cnpj)
    if len(d) <= 2:
        return d
    if len(d) <= 5:
        return f"{d[:2]}.{d[2:]}"
    if len(d) <= 8:
        return f"{d[:2]}.{d[2:5]}.{d[5:]}"
    if len(d) <= 12:
        return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:]}"
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:14]}"


def format_cpf(cpf: str) -> str:
    """12345678909 -> 123.456.789-09."""
    d = only_digits(cpf)
    if len(d) <= 3:
        return d
    if len(d) <= 6:
        return f"{d[:3]}.{d[3:]}"
    if len(d) <= 9:
        return f"{d[:3]}.{d[3:6]}.{d[6:]}"
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:11]}"


def format_cpf_cnpj(value: str) -> str:
    """Escolhe a máscara pelo número de dígitos (até 11 = CPF)."""
    digits = only_digits(value)
    if len(digits) <= CPF_DIGITS:
        return format_cpf(digits)
    return format_cnpj(digits)


def format_phone(phone: str) -> str:
    """Telefone fixo (10 dígitos) ou celular (11 dígitos) com DDD."""
    d = only_digits(phone)
    if len(d) <= 2:
        return d
    if len(d) <= 6:
        return f"({d[:2]}) {d[2:]}"
    if len(d) <= 10:
        return f"({d[:2]}) {d[2:6]}-{d[6:]}"
    return f"({d[:2]}) {d[2:7]}-{d[7:11]}"


def format_state(value: str) -> str:
    """UF: duas letras maiúsculas."""
    return _NON_LETTERS.sub("", value or "").upper()[:2]


def is_valid_cep(cep: str) -> bool:
    return len(only_digits(cep)) == CEP_DIGITS


def has_cnpj_length(cnpj: str) -> bool:
    """Checagem de formato usada pela consulta externa (só comprimento)."""
    return len(only_digits(cnpj)) == CNPJ_DIGITS


def is_valid_cnpj(cnpj: str) -> bool:
    """Valida CNPJ pelos dígitos verificadores."""
    d = only_digits(cnpj)
    if len(d) != CNPJ_DIGITS or len(set(d)) == 1:
        return False

    first = _cnpj_check_digit(d[:12], start_weight=5)
    second = _cnpj_check_digit(d[:13], start_weight=6)
    return first == int(d[12]) and second == int(d[13])


def _cnpj_check_digit(digits: str, start_weight: int) -> int:
    total = 0
    weight = start_weight
    for char in digits:
        total += int(char) * weight
        weight = 9 if weight == 2 else weight - 1
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cpf(cpf: str) -> bool:
    """Valida CPF pelos dígitos verificadores."""
    d = only_digits(cpf)
    if len(d) != CPF_DIGITS or len(set(d)) == 1:
        return False

    first = _cpf_check_digit(d[:9])
    second = _cpf_check_digit(d[:10])
    return first == int(d[9]) and second == int(d[10])


def _cpf_check_digit(digits: str) -> int:
    weight = len(digits) + 1
    total = sum(int(char) * (weight - i) for i, char in enumerate(digits))
    digit = (total * 10) % 11
    return 0 if digit == 10 else digit


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL.match(email or ""))


def validate_cpf_cnpj(value: str) -> tuple[bool, str]:
    """Valida campo livre CPF/CNPJ.

    Returns:
        (is_valid, message); message vazia quando válido ou vazio.
    """
    if not value:
        return True, ""

    digits = only_digits(value)
    if len(digits) == CPF_DIGITS:
        return (True, "") if is_valid_cpf(digits) else (False, "CPF inválido")
    if len(digits) == CNPJ_DIGITS:
        return (True, "") if is_valid_cnpj(digits) else (False, "CNPJ inválido")
    if digits:
        return False, "CPF deve ter 11 dígitos ou CNPJ deve ter 14 dígitos"
    return True, ""
