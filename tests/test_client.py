import datetime
from typing import TYPE_CHECKING

import pytest
import requests

from ynab_split_payee.client import DEFAULT_BASE_URL, YnabAPI, YnabAPIError
from ynab_split_payee.models import BudgetSummary, SaveTransactionWithId, Transaction

if TYPE_CHECKING:
    from requests_mock import Mocker


BUDGET_ID = "budget1"
HOST = DEFAULT_BASE_URL


def transaction_json(transaction_id: str, **fields) -> dict:
    data = {
        "id": transaction_id,
        "date": "2026-01-02",
        "amount": -12340,
        "cleared": "uncleared",
        "approved": False,
        "deleted": False,
        "account_id": "acc1",
        "account_name": "Checking",
        "payee_id": "p1",
        "payee_name": "John Doe - Rent",
        "category_id": None,
        "memo": None,
        "flag_color": None,
        "import_id": "YNAB:-12340:2026-01-02:1",
        "import_payee_name": "John Doe - Rent",
        "import_payee_name_original": "JOHN DOE - RENT",
        "import_memo": "Rent March",
        "subtransactions": [],
    }
    data.update(fields)
    return data


def update_request(transaction_id: str) -> SaveTransactionWithId:
    return SaveTransactionWithId(
        id=transaction_id,
        account_id="acc1",
        date=datetime.date(2026, 1, 2),
        amount=-12340,
        payee_name="John Doe",
        category_id=None,
        memo="Rent",
        cleared="uncleared",
        approved=False,
        flag_color=None,
    )


@pytest.fixture
def ynab_api() -> YnabAPI:
    return YnabAPI(token="test_token")


def test_sends_bearer_token(requests_mock: "Mocker", ynab_api: YnabAPI):
    requests_mock.get(f"{HOST}/budgets", json={"data": {"budgets": []}})

    ynab_api.get_budgets()

    assert requests_mock.last_request.headers["Authorization"] == "Bearer test_token"  # pyright: ignore[reportOptionalMemberAccess]


def test_get_default_budget_prefers_default(requests_mock: "Mocker", ynab_api: YnabAPI):
    budgets = [{"id": "b1", "name": "Household"}, {"id": "b2", "name": "Personal"}]
    requests_mock.get(
        f"{HOST}/budgets",
        json={"data": {"budgets": budgets, "default_budget": budgets[1]}},
    )

    assert ynab_api.get_default_budget() == BudgetSummary(id="b2", name="Personal")


def test_get_default_budget_falls_back_to_first(requests_mock: "Mocker", ynab_api: YnabAPI):
    budgets = [{"id": "b1", "name": "Household"}, {"id": "b2", "name": "Personal"}]
    requests_mock.get(f"{HOST}/budgets", json={"data": {"budgets": budgets, "default_budget": None}})

    assert ynab_api.get_default_budget() == BudgetSummary(id="b1", name="Household")


def test_get_default_budget_without_budgets(requests_mock: "Mocker", ynab_api: YnabAPI):
    requests_mock.get(f"{HOST}/budgets", json={"data": {"budgets": []}})

    with pytest.raises(LookupError):
        ynab_api.get_default_budget()


def test_get_transactions_for_budget(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/transactions"
    data = [transaction_json("t1"), transaction_json("t2", deleted=True)]
    requests_mock.get(url, json={"data": {"transactions": data, "server_knowledge": 42}})

    result = ynab_api.get_transactions(
        BUDGET_ID,
        since_date=datetime.date(2026, 1, 1),
        only_unapproved=True,
    )

    assert result == [
        Transaction(
            id="t1",
            date=datetime.date(2026, 1, 2),
            amount=-12340,
            cleared="uncleared",
            approved=False,
            account_id="acc1",
            account_name="Checking",
            payee_id="p1",
            payee_name="John Doe - Rent",
            import_id="YNAB:-12340:2026-01-02:1",
            import_payee_name="John Doe - Rent",
            import_memo="Rent March",
        ),
    ]
    assert requests_mock.last_request.qs == {"since_date": ["2026-01-01"], "type": ["unapproved"]}  # pyright: ignore[reportOptionalMemberAccess]


def test_get_transactions_for_account(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/accounts/acc1/transactions"
    requests_mock.get(url, json={"data": {"transactions": [transaction_json("t1")]}})

    result = ynab_api.get_transactions(BUDGET_ID, account_id="acc1")

    assert [t.id for t in result] == ["t1"]
    assert requests_mock.last_request.qs == {}  # pyright: ignore[reportOptionalMemberAccess]


def test_get_transactions_http_error(requests_mock: "Mocker", ynab_api: YnabAPI):
    requests_mock.get(f"{HOST}/budgets/{BUDGET_ID}/transactions", status_code=401)

    with pytest.raises(requests.HTTPError):
        ynab_api.get_transactions(BUDGET_ID)


def test_update_transactions(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/transactions"
    updated = transaction_json("t1", payee_id="p2", payee_name="John Doe", memo="Rent")
    requests_mock.patch(
        url,
        json={"data": {"transaction_ids": ["t1"], "transactions": [updated], "server_knowledge": 43}},
    )

    result = ynab_api.update_transactions(BUDGET_ID, [update_request("t1")])

    assert [(t.id, t.payee_name, t.memo) for t in result] == [("t1", "John Doe", "Rent")]
    body = requests_mock.last_request.json()  # pyright: ignore[reportOptionalMemberAccess]
    assert body == {"transactions": [update_request("t1").model_dump(mode="json")]}
    assert "payee_id" in body["transactions"][0]
    assert body["transactions"][0]["payee_id"] is None


def test_update_transactions_accepts_209(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/transactions"
    requests_mock.patch(
        url,
        status_code=209,
        json={"data": {"transactions": [transaction_json("t1")], "duplicate_import_ids": ["x"]}},
    )

    result = ynab_api.update_transactions(BUDGET_ID, [update_request("t1")])

    assert len(result) == 1


def test_update_transactions_failure(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/transactions"
    requests_mock.patch(url, status_code=400, text='{"error": {"id": "400", "detail": "Bad request"}}')

    with pytest.raises(YnabAPIError) as excinfo:
        ynab_api.update_transactions(BUDGET_ID, [update_request("t1")])

    assert excinfo.value.status_code == 400
    assert "Bad request" in excinfo.value.body


def test_update_transaction(requests_mock: "Mocker", ynab_api: YnabAPI):
    url = f"{HOST}/budgets/{BUDGET_ID}/transactions/t1"
    updated = transaction_json("t1", payee_name="John Doe", memo="Rent")
    requests_mock.put(url, json={"data": {"transaction": updated}})

    result = ynab_api.update_transaction(BUDGET_ID, "t1", "John Doe", "Rent")

    assert (result.payee_name, result.memo) == ("John Doe", "Rent")
    assert requests_mock.last_request.json() == {  # pyright: ignore[reportOptionalMemberAccess]
        "transaction": {"payee_name": "John Doe", "memo": "Rent"},
    }


def test_update_transaction_failure(requests_mock: "Mocker", ynab_api: YnabAPI):
    requests_mock.put(f"{HOST}/budgets/{BUDGET_ID}/transactions/t1", status_code=404, text="not found")

    with pytest.raises(YnabAPIError) as excinfo:
        ynab_api.update_transaction(BUDGET_ID, "t1", "John Doe", None)

    assert excinfo.value.status_code == 404
