import datetime
import logging
from http import HTTPStatus

import requests

from .models import (
    BudgetSummary,
    BudgetSummaryResponse,
    SaveTransactionsResponse,
    SaveTransactionWithId,
    Transaction,
    TransactionsResponse,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.ynab.com/v1"

# YNAB answers a bulk update with 209 when it succeeded but also has notices,
# e.g. duplicate import ids.
BULK_UPDATE_OK = (HTTPStatus.OK, 209)


class YnabAPIError(Exception):
    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(f"{message}: {status_code}, {body}")
        self.status_code = status_code
        self.body = body


class YnabAPI:
    def __init__(self, token: str, base_url: str = DEFAULT_BASE_URL, timeout: float = 30) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    def get_budgets(self) -> BudgetSummaryResponse:
        url = f"{self.base_url}/budgets"
        r = self.session.get(url, timeout=self.timeout)
        r.raise_for_status()
        return BudgetSummaryResponse(**r.json()["data"])

    def get_default_budget(self) -> BudgetSummary:
        """Return the budget YNAB marks as default, else the first one listed."""
        response = self.get_budgets()
        if not response.budgets:
            raise LookupError("No budgets found")
        budget = response.default_budget or response.budgets[0]
        logger.info("Using budget: %s (%s)", budget.name, budget.id)
        return budget

    def get_transactions(
        self,
        budget_id: str,
        account_id: str | None = None,
        since_date: datetime.date | None = None,
        only_unapproved: bool = False,
    ) -> list[Transaction]:
        if account_id:
            url = f"{self.base_url}/budgets/{budget_id}/accounts/{account_id}/transactions"
        else:
            url = f"{self.base_url}/budgets/{budget_id}/transactions"
        params = {}
        if since_date:
            params["since_date"] = since_date.isoformat()
        if only_unapproved:
            params["type"] = "unapproved"
        logger.info("Fetching transactions for budget %s", budget_id)
        response = self.session.get(url, params=params, timeout=self.timeout)
        response.raise_for_status()
        transactions = TransactionsResponse(**response.json()["data"]).transactions
        return [t for t in transactions if not t.deleted]

    def update_transactions(
        self,
        budget_id: str,
        transactions: list[SaveTransactionWithId],
    ) -> list[Transaction]:
        url = f"{self.base_url}/budgets/{budget_id}/transactions"
        data = {"transactions": [t.model_dump(mode="json") for t in transactions]}
        logger.info("Batch updating %d transactions", len(transactions))
        response = self.session.patch(url, json=data, timeout=self.timeout)
        if response.status_code not in BULK_UPDATE_OK:
            raise YnabAPIError("Failed to update transactions", response.status_code, response.text)
        return SaveTransactionsResponse(**response.json()["data"]).transactions

    def update_transaction(
        self,
        budget_id: str,
        transaction_id: str,
        payee_name: str,
        memo: str | None,
    ) -> Transaction:
        url = f"{self.base_url}/budgets/{budget_id}/transactions/{transaction_id}"
        data = {"transaction": {"payee_name": payee_name, "memo": memo}}
        logger.info("Updating transaction %s", transaction_id)
        response = self.session.put(url, json=data, timeout=self.timeout)
        if response.status_code != HTTPStatus.OK:
            raise YnabAPIError("Failed to update transaction", response.status_code, response.text)
        return Transaction(**response.json()["data"]["transaction"])
