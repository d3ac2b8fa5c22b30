import datetime

from pydantic import BaseModel


class BudgetSummary(BaseModel):
    id: str
    name: str
    last_modified_on: str | None = None
    first_month: str | None = None
    last_month: str | None = None


class BudgetSummaryResponse(BaseModel):
    budgets: list[BudgetSummary]
    default_budget: BudgetSummary | None = None


class Transaction(BaseModel):
    id: str
    date: datetime.date
    amount: int
    cleared: str
    approved: bool
    deleted: bool = False
    account_id: str
    account_name: str | None = None
    payee_id: str | None = None
    payee_name: str | None = None
    category_id: str | None = None
    category_name: str | None = None
    memo: str | None = None
    flag_color: str | None = None
    import_id: str | None = None
    import_payee_name: str | None = None
    import_memo: str | None = None


class TransactionsResponse(BaseModel):
    transactions: list[Transaction]
    server_knowledge: int | None = None


class SaveTransactionWithId(BaseModel):
    """Full-replace payload for one transaction in a bulk update.

    ``payee_id`` is always sent as an explicit ``null`` so the service does not
    match the transaction back to its old payee and ignore ``payee_name``.
    """

    id: str
    account_id: str
    date: datetime.date
    amount: int
    payee_id: str | None = None
    payee_name: str | None
    category_id: str | None
    memo: str | None
    cleared: str | None
    approved: bool | None
    flag_color: str | None


class SaveTransactionsResponse(BaseModel):
    transactions: list[Transaction] = []
    transaction_ids: list[str] = []
    duplicate_import_ids: list[str] = []
    server_knowledge: int | None = None
