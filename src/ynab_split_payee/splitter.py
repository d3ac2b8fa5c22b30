"""Decide whether a transaction's imported payee should be split into payee and memo.

Bank feeds often put the counterparty and the description into a single payee
string, e.g. ``"John Doe - Maintenance spend (50/50)"``. The splitter turns that
into payee ``"John Doe"`` and moves the tail into the memo, merging it with any
memo already present without repeating content.

A transaction is only ever touched while its payee still equals the imported
payee. Once it has been corrected the two diverge and every later run skips it.
"""

from collections.abc import Callable
from enum import Enum
from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, field_validator

from .models import Transaction

DEFAULT_DELIMITER = " - "
DEFAULT_TRANSFER_MARKER = "Transfer : "


class SplitterConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    delimiter: str = DEFAULT_DELIMITER
    transfer_marker: str = DEFAULT_TRANSFER_MARKER

    @field_validator("delimiter")
    @classmethod
    def delimiter_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("delimiter must contain a non-whitespace character")
        return value


class ExclusionReason(str, Enum):
    BLANK_PAYEE = "blank_payee"
    PAYEE_CHANGED = "payee_changed"
    TRANSFER = "transfer"
    NO_IMPORT_PAYEE = "no_import_payee"
    NO_PAYEE_SEGMENT = "no_payee_segment"
    UNCHANGED = "unchanged"


class Excluded(BaseModel):
    model_config = ConfigDict(frozen=True)

    reason: ExclusionReason


class Update(BaseModel):
    model_config = ConfigDict(frozen=True)

    payee: str
    memo: str | None


SplitResult = Excluded | Update


class Rule(NamedTuple):
    reason: ExclusionReason
    applies: Callable[[Transaction, SplitterConfig], bool]


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


# Evaluated top-down, the first rule that applies excludes the transaction.
GUARD_RULES: tuple[Rule, ...] = (
    Rule(
        ExclusionReason.BLANK_PAYEE,
        lambda t, _: _is_blank(t.payee_name) or _is_blank(t.import_payee_name),
    ),
    Rule(ExclusionReason.PAYEE_CHANGED, lambda t, _: t.payee_name != t.import_payee_name),
    Rule(
        ExclusionReason.TRANSFER,
        lambda t, config: t.payee_name is not None and t.payee_name.startswith(config.transfer_marker),
    ),
    Rule(ExclusionReason.NO_IMPORT_PAYEE, lambda t, _: t.import_payee_name is None),
)


def _drop_repeated_tail(segments: tuple[str, ...]) -> tuple[str, ...]:
    for size in range(1, len(segments) // 2 + 1):
        if segments[-size:] == segments[-2 * size : -size]:
            return segments[:-size]
    return segments


def deduplicate(text: str, delimiter: str = DEFAULT_DELIMITER) -> str:
    """Collapse repeated trailing segment sequences of a delimited string.

    >>> deduplicate("A - A - A - A")
    'A'
    >>> deduplicate("X - A - B - A - B")
    'X - A - B'
    """
    segments = tuple(segment.strip() for segment in text.split(delimiter))
    if len(segments) <= 1:
        return text
    collapsed = _drop_repeated_tail(segments)
    while collapsed != segments:
        segments = collapsed
        collapsed = _drop_repeated_tail(segments)
    return delimiter.join(segments)


def merge_memo(memo: str | None, fragment: str | None, delimiter: str = DEFAULT_DELIMITER) -> str | None:
    """Combine the current memo with the fragment split off the payee."""
    if _is_blank(fragment):
        return deduplicate(memo, delimiter) if memo is not None else None
    fragment = fragment.strip()
    if memo is None:
        return fragment
    collapsed = deduplicate(memo, delimiter)
    # A memo that needed collapsing already carries an earlier run's fragment.
    if collapsed != memo or fragment in collapsed:
        return collapsed
    return f"{memo}{delimiter}{fragment}"


class PayeeMemoSplitter:
    def __init__(self, config: SplitterConfig | None = None) -> None:
        self.config = config or SplitterConfig()
        self.rules = GUARD_RULES

    def split_import_payee(self, import_payee: str) -> tuple[str, str | None]:
        """Split an imported payee into a trimmed payee and an optional memo fragment."""
        delimiter = self.config.delimiter
        trailing = delimiter.rstrip()
        if trailing and import_payee.endswith(trailing):
            import_payee = import_payee[: -len(trailing)]
        segments = import_payee.split(delimiter, 1)
        fragment = segments[1].strip() if len(segments) > 1 else None
        return segments[0].strip(), fragment

    def evaluate(self, transaction: Transaction) -> SplitResult:
        for rule in self.rules:
            if rule.applies(transaction, self.config):
                return Excluded(reason=rule.reason)

        new_payee, fragment = self.split_import_payee(transaction.import_payee_name)
        if not new_payee:
            return Excluded(reason=ExclusionReason.NO_PAYEE_SEGMENT)

        new_memo = merge_memo(transaction.memo, fragment, self.config.delimiter)
        if new_payee == transaction.payee_name and new_memo == transaction.memo:
            return Excluded(reason=ExclusionReason.UNCHANGED)
        return Update(payee=new_payee, memo=new_memo)


def evaluate(transaction: Transaction) -> SplitResult:
    return PayeeMemoSplitter().evaluate(transaction)
