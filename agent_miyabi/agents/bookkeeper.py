"""
Bookkeeping agent: journal entries, expense reimbursements and trial balances.
"""

from collections import OrderedDict
from datetime import datetime
from typing import Any, Dict, List

from ..models.core import AgentConfig, AgentTask
from .base import BaseAgent

ACCOUNT_NAMES = {
    "100": "Cash",
    "110": "Bank Deposits",
    "130": "Accounts Receivable",
    "200": "Accounts Payable",
    "210": "Accrued Expenses",
    "400": "Sales Revenue",
    "500": "Cost of Goods Sold",
    "600": "Operating Expenses",
    "610": "Travel Expenses",
    "620": "Communication Expenses",
}

# Offsetting account used when only one side of a transaction is given
COUNTER_ACCOUNTS = {
    "sales": "130",
    "purchase": "200",
    "travel": "100",
    "communication": "110",
    "expense": "100",
}


class BookkeeperAgent(BaseAgent):
    """Produces double-entry bookkeeping documents from raw transactions."""

    task_handlers = {
        "journal-entry": "create_journal_entry",
        "expense-reimbursement": "process_expense_reimbursement",
        "trial-balance": "generate_trial_balance",
    }

    def __init__(self, config: AgentConfig):
        super().__init__(config)
        self._entry_counter = 0

    async def create_journal_entry(self, task: AgentTask) -> Dict[str, Any]:
        self.validate_input(task.input, ["transaction"])
        transaction = self._validate_transaction(task.input["transaction"])

        amount = transaction["amount"]
        account = transaction["account"]
        counter = self.get_counter_account(account, transaction.get("category", ""))
        is_debit = transaction["type"] == "debit"

        self._entry_counter += 1
        return {
            "entry_id": f"JE-{self._entry_counter:05d}",
            "date": transaction["date"],
            "description": transaction["description"],
            "entries": [
                {
                    "account": account,
                    "account_name": self.get_account_name(account),
                    "debit": amount if is_debit else 0.0,
                    "credit": 0.0 if is_debit else amount,
                },
                {
                    "account": counter,
                    "account_name": self.get_account_name(counter),
                    "debit": 0.0 if is_debit else amount,
                    "credit": amount if is_debit else 0.0,
                },
            ],
            "total_debit": amount,
            "total_credit": amount,
            "balanced": True,
        }

    async def process_expense_reimbursement(self, task: AgentTask) -> Dict[str, Any]:
        self.validate_input(task.input, ["expense"])
        expense = task.input["expense"]
        self.validate_input(expense, ["employee_name", "amount", "category"])

        if expense.get("status") == "rejected":
            raise ValueError(f"Expense for {expense['employee_name']} was rejected")

        amount = round(float(expense["amount"]), 2)
        if amount <= 0:
            raise ValueError("Expense amount must be positive")

        account = "610" if expense["category"] == "travel" else "600"
        return {
            "employee_name": expense["employee_name"],
            "category": expense["category"],
            "amount": amount,
            "status": "approved" if expense.get("status") != "paid" else "paid",
            "journal": [
                {"account": account, "account_name": self.get_account_name(account), "debit": amount, "credit": 0.0},
                {"account": "210", "account_name": self.get_account_name("210"), "debit": 0.0, "credit": amount},
            ],
        }

    async def generate_trial_balance(self, task: AgentTask) -> Dict[str, Any]:
        self.validate_input(task.input, ["transactions"])
        transactions: List[Dict[str, Any]] = [
            self._validate_transaction(t) for t in task.input["transactions"]
        ]

        balances: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        for transaction in sorted(transactions, key=lambda t: t["account"]):
            row = balances.setdefault(transaction["account"], {
                "account": transaction["account"],
                "account_name": self.get_account_name(transaction["account"]),
                "debit": 0.0,
                "credit": 0.0,
            })
            row[transaction["type"]] = round(row[transaction["type"]] + transaction["amount"], 2)

        total_debit = round(sum(row["debit"] for row in balances.values()), 2)
        total_credit = round(sum(row["credit"] for row in balances.values()), 2)
        return {
            "period": task.input.get("period", datetime.now().strftime("%Y-%m")),
            "accounts": list(balances.values()),
            "total_debit": total_debit,
            "total_credit": total_credit,
            "balanced": total_debit == total_credit,
        }

    def get_account_name(self, account: str) -> str:
        return ACCOUNT_NAMES.get(account, "Miscellaneous")

    def get_counter_account(self, account: str, category: str) -> str:
        counter = COUNTER_ACCOUNTS.get(category, "100")
        # Never offset an account against itself
        return "110" if counter == account else counter

    def _validate_transaction(self, transaction: Dict[str, Any]) -> Dict[str, Any]:
        self.validate_input(transaction, ["date", "description", "amount", "type", "account"])
        if transaction["type"] not in ("debit", "credit"):
            raise ValueError(f"Invalid transaction type: {transaction['type']}")

        amount = round(float(transaction["amount"]), 2)
        if amount <= 0:
            raise ValueError("Transaction amount must be positive")
        return {**transaction, "amount": amount}
