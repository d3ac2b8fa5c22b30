"""Batch reconciliation: evaluate transactions, then push corrections in chunks."""

import logging
from collections.abc import Iterable, Iterator, Sequence
from typing import Protocol, TypeVar

from pydantic import BaseModel

from .models import SaveTransactionWithId, Transaction
from .splitter import Excluded, PayeeMemoSplitter, SplitResult, Update

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 25

T = TypeVar("T")


class TransactionUpdater(Protocol):
    def update_transactions(
        self,
        budget_id: str,
        transactions: list[SaveTransactionWithId],
    ) -> list[Transaction]: ...


class Reporter(Protocol):
    def decision(self, transaction: Transaction, result: SplitResult) -> None: ...

    def batches_planned(
        self,
        budget_id: str,
        eligible_count: int,
        skipped_count: int,
        batch_count: int,
        batch_size: int,
    ) -> None: ...

    def batch_dispatched(
        self,
        budget_id: str,
        index: int,
        total: int,
        requests: list[SaveTransactionWithId],
        dry_run: bool,
    ) -> None: ...

    def batch_completed(self, budget_id: str, index: int, total: int, updated_count: int) -> None: ...


class LoggingReporter:
    def decision(self, transaction: Transaction, result: SplitResult) -> None:
        if isinstance(result, Excluded):
            logger.debug("Skipping transaction %s: %s", transaction.id, result.reason.value)
            return
        logger.info("  Transaction: %s", transaction.id)
        logger.info("  Original payee: %s", transaction.payee_name)
        logger.info("  Import payee: %s", transaction.import_payee_name)
        logger.info("  New payee: %s", result.payee)
        logger.info("  Import memo: %s", transaction.import_memo)
        logger.info("  Current / old memo: %s", transaction.memo)
        logger.info("  New memo: %s", result.memo)

    def batches_planned(
        self,
        budget_id: str,
        eligible_count: int,
        skipped_count: int,
        batch_count: int,
        batch_size: int,
    ) -> None:
        logger.info(
            "Found %d transactions to update, %d skipped, in %d batches of up to %d",
            eligible_count,
            skipped_count,
            batch_count,
            batch_size,
        )

    def batch_dispatched(
        self,
        budget_id: str,
        index: int,
        total: int,
        requests: list[SaveTransactionWithId],
        dry_run: bool,
    ) -> None:
        if dry_run:
            logger.info(
                "Dry run: would update batch %d of %d (%d transactions) in budget %s",
                index,
                total,
                len(requests),
                budget_id,
            )
        else:
            logger.info("Processing batch %d of %d (%d transactions)", index, total, len(requests))

    def batch_completed(self, budget_id: str, index: int, total: int, updated_count: int) -> None:
        logger.info("  Updated %d transactions in batch %d of %d", updated_count, index, total)


class ReconcileSummary(BaseModel):
    budget_id: str
    eligible_count: int
    updated_count: int
    skipped_count: int
    batch_count: int
    dry_run: bool


def build_update_request(transaction: Transaction, update: Update) -> SaveTransactionWithId:
    return SaveTransactionWithId(
        id=transaction.id,
        account_id=transaction.account_id,
        date=transaction.date,
        amount=transaction.amount,
        payee_id=None,
        payee_name=update.payee,
        category_id=transaction.category_id,
        memo=update.memo,
        cleared=transaction.cleared,
        approved=transaction.approved,
        flag_color=transaction.flag_color,
    )


def find_transactions_to_update(
    transactions: Iterable[Transaction],
    splitter: PayeeMemoSplitter,
    reporter: Reporter,
) -> tuple[list[SaveTransactionWithId], int]:
    """Return the update requests in input order and the number of skipped transactions."""
    requests = []
    skipped = 0
    for transaction in transactions:
        result = splitter.evaluate(transaction)
        reporter.decision(transaction, result)
        if isinstance(result, Update):
            requests.append(build_update_request(transaction, result))
        else:
            skipped += 1
    return requests, skipped


def chunked(items: Sequence[T], size: int) -> Iterator[list[T]]:
    if size < 1:
        raise ValueError(f"batch size must be at least 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


def reconcile(
    transactions: Iterable[Transaction],
    budget_id: str,
    updater: TransactionUpdater,
    *,
    dry_run: bool = False,
    batch_size: int = DEFAULT_BATCH_SIZE,
    splitter: PayeeMemoSplitter | None = None,
    reporter: Reporter | None = None,
) -> ReconcileSummary:
    """Split payees for ``transactions`` and submit the corrections batch by batch.

    Batches go out one at a time in input order. A failing batch call propagates
    and the remaining batches of this budget are not attempted. In dry-run mode
    the decisions are identical but nothing is sent.
    """
    splitter = splitter or PayeeMemoSplitter()
    reporter = reporter or LoggingReporter()

    requests, skipped = find_transactions_to_update(transactions, splitter, reporter)
    batches = list(chunked(requests, batch_size))
    reporter.batches_planned(budget_id, len(requests), skipped, len(batches), batch_size)

    updated = 0
    for index, batch in enumerate(batches, start=1):
        reporter.batch_dispatched(budget_id, index, len(batches), batch, dry_run)
        if dry_run:
            continue
        batch_updated = len(updater.update_transactions(budget_id, batch))
        updated += batch_updated
        reporter.batch_completed(budget_id, index, len(batches), batch_updated)

    return ReconcileSummary(
        budget_id=budget_id,
        eligible_count=len(requests),
        updated_count=updated,
        skipped_count=skipped,
        batch_count=len(batches),
        dry_run=dry_run,
    )
