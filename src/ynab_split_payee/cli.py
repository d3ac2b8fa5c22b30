"""
Command line entry point: split imported payees into payee and memo for one or
more YNAB budgets.
"""

import datetime
import logging

import click
import requests
from pydantic import ValidationError

from .client import YnabAPI, YnabAPIError
from .config import ConfigurationError, Settings
from .reconciler import DEFAULT_BATCH_SIZE, ReconcileSummary, reconcile
from .splitter import DEFAULT_DELIMITER, DEFAULT_TRANSFER_MARKER, PayeeMemoSplitter

logger = logging.getLogger(__name__)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def process_budget(
    api: YnabAPI,
    settings: Settings,
    budget_id: str,
    since_date: datetime.date,
    splitter: PayeeMemoSplitter,
) -> ReconcileSummary:
    transactions = api.get_transactions(
        budget_id=budget_id,
        account_id=settings.account_id,
        since_date=since_date,
        only_unapproved=settings.only_unapproved,
    )
    logger.info("Found %d transactions", len(transactions))
    return reconcile(
        transactions,
        budget_id,
        api,
        dry_run=settings.dry_run,
        batch_size=settings.batch_size,
        splitter=splitter,
    )


def resolve_budget_ids(api: YnabAPI, settings: Settings) -> list[str]:
    budget_ids = settings.budget_id_list()
    if budget_ids:
        return budget_ids
    logger.info("No budget ID provided, fetching default budget")
    try:
        return [api.get_default_budget().id]
    except (LookupError, requests.RequestException) as e:
        raise click.ClickException(f"Could not determine the default budget: {e}") from e


@click.command()
@click.option("-t", "--token", required=True, envvar="YNAB_TOKEN", help="YNAB Personal Access Token")
@click.option(
    "-b",
    "--budget-id",
    envvar="YNAB_BUDGET_ID",
    help="YNAB Budget ID (default: last used budget)",
)
@click.option(
    "--budget-ids",
    envvar="YNAB_BUDGET_IDS",
    help="Comma separated list of YNAB Budget IDs. Only this one or --budget-id should be provided",
)
@click.option(
    "-a",
    "--account-id",
    envvar="YNAB_ACCOUNT_ID",
    help="YNAB Account ID (default: all accounts)",
)
@click.option("--dry-run", is_flag=True, help="Don't update transactions, just show what would be updated")
@click.option(
    "-d",
    "--days-back",
    type=int,
    default=30,
    show_default=True,
    help="Number of days to look back for transactions",
)
@click.option(
    "--only-unapproved/--all",
    default=True,
    show_default=True,
    help="Only process unapproved transactions",
)
@click.option(
    "--batch-size",
    type=int,
    default=DEFAULT_BATCH_SIZE,
    envvar="YNAB_BATCH_SIZE",
    show_default=True,
    help="Number of transactions per update call",
)
@click.option("--delimiter", default=DEFAULT_DELIMITER, show_default=True, help="Separator between payee and memo")
@click.option(
    "--transfer-marker",
    default=DEFAULT_TRANSFER_MARKER,
    show_default=True,
    help="Payee prefix that marks transfers, which are never changed",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="INFO",
    envvar="YNAB_LOG_LEVEL",
    show_default=True,
)
def main(
    token: str,
    budget_id: str | None,
    budget_ids: str | None,
    account_id: str | None,
    dry_run: bool,
    days_back: int,
    only_unapproved: bool,
    batch_size: int,
    delimiter: str,
    transfer_marker: str,
    log_level: str,
) -> None:
    """Split bank-imported YNAB payees of the form "Payee - Description" into payee and memo."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = Settings(
        token=token,
        budget_id=budget_id,
        budget_ids=budget_ids,
        account_id=account_id,
        dry_run=dry_run,
        days_back=days_back,
        only_unapproved=only_unapproved,
        batch_size=batch_size,
        delimiter=delimiter,
        transfer_marker=transfer_marker,
    )
    try:
        settings.validate()
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e

    logger.info("Starting YNAB Split Payee and Memo")
    logger.info("Token: %s...", settings.token[:5])
    logger.info("Budget ID: %s", settings.budget_id or "default")
    logger.info("Budget IDs: %s", settings.budget_ids)
    logger.info("Account ID: %s", settings.account_id or "all")
    logger.info("Days back: %d", settings.days_back)
    logger.info("Dry run: %s", settings.dry_run)
    logger.info("Only unapproved: %s", settings.only_unapproved)

    api = YnabAPI(settings.token)
    since_date = settings.since_date()
    splitter = PayeeMemoSplitter(settings.splitter_config())

    failed = []
    for budget in resolve_budget_ids(api, settings):
        logger.info("Processing budget %s", budget)
        try:
            summary = process_budget(api, settings, budget, since_date, splitter)
        except (YnabAPIError, requests.RequestException, ValidationError, KeyError):
            # One budget failing must not stop the others.
            logger.exception("Failed to process budget %s", budget)
            failed.append(budget)
            continue
        if summary.dry_run:
            changed = f"would update {summary.eligible_count}"
        else:
            changed = f"updated {summary.updated_count}"
        click.echo(
            f"Budget {budget}: {changed} transactions, "
            f"skipped {summary.skipped_count} ({summary.batch_count} batches)"
        )

    if failed:
        raise click.ClickException(f"Failed to process budget(s): {', '.join(failed)}")


if __name__ == "__main__":
    main()
