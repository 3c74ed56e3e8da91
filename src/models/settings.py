"""
Runtime switches for the commission and visibility engines.
"""

from typing import Any

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class SystemSetting(Base):
    """
    One operator-tunable switch, stored as ``{"v": value}``.

    Keys read by SettingsStore:
    - max_hierarchy_depth: cap for upward chain walks
    - max_team_depth: cap for downward team walks
    - recompute_commissions_on_update: recalc when payable fields change
    """

    __tablename__ = "system_settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[dict] = mapped_column(JSON, nullable=False)

    @classmethod
    def wrap(cls, key: str, value: Any) -> "SystemSetting":
        return cls(key=key, value={"v": value})

    def get_value(self) -> Any:
        # rows written by hand may hold a bare value
        if isinstance(self.value, dict) and "v" in self.value:
            return self.value["v"]
        return self.value

    def set_value(self, value: Any) -> None:
        self.value = {"v": value}
