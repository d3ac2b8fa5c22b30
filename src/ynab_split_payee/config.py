"""Run configuration, assembled by the CLI from options and environment variables."""

import datetime
from dataclasses import dataclass

from dotenv import load_dotenv

from .reconciler import DEFAULT_BATCH_SIZE
from .splitter import DEFAULT_DELIMITER, DEFAULT_TRANSFER_MARKER, SplitterConfig

# Pick up YNAB_* variables from a local .env file
load_dotenv()


class ConfigurationError(ValueError):
    pass


@dataclass
class Settings:
    token: str
    budget_id: str | None = None
    budget_ids: str | None = None
    account_id: str | None = None
    dry_run: bool = False
    days_back: int = 30
    only_unapproved: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE
    delimiter: str = DEFAULT_DELIMITER
    transfer_marker: str = DEFAULT_TRANSFER_MARKER

    def validate(self) -> None:
        if self.budget_id is not None and self.budget_ids is not None:
            raise ConfigurationError("Either budget-id or budget-ids should be provided, but not both")
        if self.budget_ids is not None and not self.budget_id_list():
            raise ConfigurationError("budget-ids was given but contains no budget ID")
        if not self.token or not self.token.strip():
            raise ConfigurationError("A YNAB personal access token is required")
        if self.batch_size < 1:
            raise ConfigurationError(f"Batch size must be at least 1, got {self.batch_size}")
        if self.days_back < 0:
            raise ConfigurationError(f"Days back cannot be negative, got {self.days_back}")
        if not self.delimiter.strip():
            raise ConfigurationError("The split delimiter must contain a non-whitespace character")

    def budget_id_list(self) -> list[str]:
        """Explicitly selected budgets; empty means the service's default budget."""
        if self.budget_ids is not None:
            return [b.strip() for b in self.budget_ids.split(",") if b.strip()]
        if self.budget_id is not None:
            return [self.budget_id]
        return []

    def since_date(self, today: datetime.date | None = None) -> datetime.date:
        today = today or datetime.date.today()
        return today - datetime.timedelta(days=self.days_back)

    def splitter_config(self) -> SplitterConfig:
        return SplitterConfig(delimiter=self.delimiter, transfer_marker=self.transfer_marker)
