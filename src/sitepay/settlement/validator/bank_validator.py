"""Bank code resolution and payee bank-detail validation.

Bank names arrive as free text typed by site staff ("국민", "KB국민은행",
"카뱅" ...). Transfer files need the 3-digit institution code.
"""

from __future__ import annotations

import re

from sitepay.models.outputs import FieldErrors, ValidationResult

BANK_CODES: dict[str, str] = {
    # Banks
    "한국은행": "001",
    "산업은행": "002", "산업": "002", "KDB": "002",
    "기업은행": "003", "기업": "003", "IBK": "003",
    "KB국민은행": "004", "국민은행": "004", "국민": "004", "KB": "004",
    "수협은행": "007", "수협": "007", "Sh수협": "007",
    "수출입은행": "008",
    "농협은행": "011", "농협": "011", "NH": "011", "NH농협": "011",
    "농축협": "012", "지역농협": "012",
    "우리은행": "020", "우리": "020",
    "SC제일은행": "023", "제일은행": "023", "SC": "023",
    "한국씨티은행": "027", "씨티": "027", "씨티은행": "027",
    "대구은행": "031", "대구": "031", "iM뱅크": "031", "DGB": "031",
    "부산은행": "032", "부산": "032", "BNK부산": "032",
    "광주은행": "034", "광주": "034",
    "제주은행": "035", "제주": "035",
    "전북은행": "037", "전북": "037",
    "경남은행": "039", "경남": "039", "BNK경남": "039",
    "새마을금고": "045", "새마을": "045", "MG새마을": "045", "MG": "045",
    "신협": "048", "신협중앙회": "048", "신용협동조합": "048",
    "상호저축은행": "050", "저축은행": "050",
    "우체국": "071", "우체국예금": "071",
    "하나은행": "081", "하나": "081", "KEB하나": "081",
    "신한은행": "088", "신한": "088",
    "케이뱅크": "089", "K뱅크": "089", "케이": "089",
    "카카오뱅크": "090", "카카오": "090", "카뱅": "090",
    "토스뱅크": "092", "토스": "092",
    # Savings banks
    "대신저축은행": "102",
    "SBI저축은행": "103", "SBI": "103",
    "HK저축은행": "104",
    "웰컴저축은행": "105", "웰컴": "105",
    "신한저축은행": "106",
    # Securities
    "유안타증권": "209", "유안타": "209",
    "KB증권": "218",
    "상상인증권": "221",
    "한양증권": "222",
    "리딩투자증권": "223", "리딩": "223",
    "BNK투자증권": "224",
    "IBK투자증권": "225",
    "다올투자증권": "227", "다올증권": "227",
    "미래에셋증권": "238", "미래에셋": "238",
    "삼성증권": "240", "삼성": "240",
    "한국투자증권": "243", "한투": "243",
    "NH투자증권": "247", "NH증권": "247",
    "교보증권": "261", "교보": "261",
    "하이투자증권": "262", "아이엠증권": "262", "하이증권": "262",
    "현대차증권": "263", "현대증권": "263",
    "키움증권": "264", "키움": "264",
    "이베스트투자증권": "265", "LS증권": "265", "이베스트": "265",
    "SK증권": "266",
    "대신증권": "267", "대신": "267",
    "한화투자증권": "269", "한화증권": "269",
    "하나증권": "270",
    "토스증권": "271",
    "NH선물": "272",
    "코리아에셋투자증권": "273",
    "DS투자증권": "274",
    "흥국증권": "275",
    "유화증권": "276",
    "에스아이증권": "277",
    "신한투자증권": "278", "신한증권": "278",
    "DB금융투자": "279", "DB증권": "279",
    "유진투자증권": "280", "유진증권": "280",
    "메리츠증권": "287", "메리츠": "287",
    "카카오페이증권": "288",
    "부국증권": "290",
    "신영증권": "291",
}

_WHITESPACE = re.compile(r"\s+")
_BANK_CODES_COMPACT: dict[str, str] = {
    _WHITESPACE.sub("", name).upper(): code for name, code in BANK_CODES.items()
}


def resolve_bank_code(bank_name: str | None) -> str:
    """Institution code for a bank name, or "" if the name is not in the alias table."""
    name = (bank_name or "").strip()
    if not name:
        return ""
    code = BANK_CODES.get(name)
    if code:
        return code
    return _BANK_CODES_COMPACT.get(_WHITESPACE.sub("", name).upper(), "")


def validate(
    *,
    bank_name: str,
    bank_code: str,
    account_number: str,
    account_holder: str,
) -> ValidationResult:
    """Flag each missing bank detail independently."""
    errors = FieldErrors(
        bank_name=not bank_name,
        bank_code=bool(bank_name) and not bank_code,
        account_number=not account_number,
        account_holder=not account_holder,
    )
    return ValidationResult(is_valid=not errors.any(), field_errors=errors)
