"""Bank transfer file rows.

The bank's upload format has narrow free-text columns: the recipient sees
the deposit display (10 characters), our statement shows the withdrawal
display (14 characters). Values longer than that are cut, never padded.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence

from sitepay.core.config import ExportConfig
from sitepay.models.outputs import ExportRow, TransferRow

_WHITESPACE = re.compile(r"\s+")


def truncate(value: str | None, max_length: int) -> str:
    """Trim, then cut to ``max_length``. Shorter values are returned as is."""
    if not value:
        return ""
    trimmed = value.strip()
    return trimmed[:max_length]


def mask_account_number(value: str | None) -> str:
    """All but the last four characters replaced with ``*``."""
    digits = _WHITESPACE.sub("", value or "")
    if not digits:
        return ""
    if len(digits) <= 4:
        return "*" * len(digits)
    return "*" * (len(digits) - 4) + digits[-4:]


def build_export_rows(
    rows: Sequence[TransferRow],
    transfer_amount: Callable[[TransferRow], int],
    settings: ExportConfig | None = None,
    withdrawal_overrides: Mapping[str, str] | None = None,
    deposit_display: str | None = None,
) -> list[ExportRow]:
    """One export row per transfer row, in the given order.

    ``transfer_amount`` supplies the amount to send (net pay for monthly-wage
    rows). A per-row withdrawal override, keyed by row key, replaces the
    default ``payee name + suffix``.
    """
    settings = settings or ExportConfig()
    overrides = withdrawal_overrides or {}
    deposit = truncate(
        settings.deposit_display if deposit_display is None else deposit_display,
        settings.max_deposit_display_length,
    )

    export: list[ExportRow] = []
    for row in rows:
        default_withdrawal = f"{row.payee_name}{settings.withdrawal_suffix}"
        withdrawal = overrides.get(row.row_key, default_withdrawal)
        export.append(ExportRow(
            row_key=row.row_key,
            payee_name=row.payee_name,
            bank_code=row.bank_code,
            account_number=row.account_number,
            masked_account_number=mask_account_number(row.account_number),
            transfer_amount=transfer_amount(row),
            deposit_display=deposit,
            withdrawal_display=truncate(withdrawal, settings.max_withdrawal_display_length),
            is_valid=row.is_valid,
        ))
    return export
