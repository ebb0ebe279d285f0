"""Persisted provider API keys, models and preferences (SQLite)."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from repo_lens.infrastructure.database import PreferenceRow, ProviderSettingRow

PREFERRED_PROVIDER_KEY = "preferred_provider"


@dataclass(frozen=True, slots=True)
class StoredProviderSetting:
    provider: str
    api_key: str | None
    model: str | None


class SettingsRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._sessions = session_factory

    def all_providers(self) -> dict[str, StoredProviderSetting]:
        with self._sessions() as session:
            rows = session.scalars(select(ProviderSettingRow)).all()
        return {
            row.provider: StoredProviderSetting(row.provider, row.api_key, row.model)  # type: ignore[arg-type]
            for row in rows
        }

    def save_provider(
        self,
        provider: str,
        *,
        api_key: str | None = None,
        model: str | None = None,
    ) -> None:
        """Upsert a provider row; ``None`` arguments leave the stored value untouched."""
        with self._sessions() as session:
            row = session.get(ProviderSettingRow, provider)
            if row is None:
                row = ProviderSettingRow(provider=provider)
                session.add(row)
            if api_key is not None:
                row.api_key = api_key
            if model is not None:
                row.model = model
            session.commit()

    def get_preference(self, key: str) -> str | None:
        with self._sessions() as session:
            row = session.get(PreferenceRow, key)
            return row.value if row else None  # type: ignore[return-value]

    def set_preference(self, key: str, value: str) -> None:
        with self._sessions() as session:
            row = session.get(PreferenceRow, key)
            if row is None:
                session.add(PreferenceRow(key=key, value=value))
            else:
                row.value = value
            session.commit()
