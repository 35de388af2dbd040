from __future__ import annotations

import logging
from threading import Lock
from typing import Callable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.institution_settings import InstitutionSettings
from app.schemas.settings import DEFAULT_RESERVATION_POLICY, ReservationPolicy, ReservationPolicyUpdate

logger = logging.getLogger(__name__)

SettingsListener = Callable[[ReservationPolicy], None]


def get_settings_record(db: Session) -> InstitutionSettings | None:
    return db.execute(select(InstitutionSettings).where(InstitutionSettings.id == 1)).scalar_one_or_none()


def build_default_settings_record() -> InstitutionSettings:
    return InstitutionSettings(id=1, **DEFAULT_RESERVATION_POLICY.model_dump())


class SettingsProvider:
    """Process-wide reservation policy read model.

    ``get`` lazily loads the persisted record; ``publish`` swaps the cached
    model and notifies subscribers. Consumers receive immutable snapshots.
    """

    def __init__(self) -> None:
        self._cached: ReservationPolicy | None = None
        self._listeners: list[SettingsListener] = []
        self._lock = Lock()

    def subscribe(self, listener: SettingsListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def get(self, db: Session) -> ReservationPolicy:
        cached = self._cached
        if cached is not None:
            return cached
        return self.refresh(db)

    def refresh(self, db: Session) -> ReservationPolicy:
        record = get_settings_record(db)
        policy = DEFAULT_RESERVATION_POLICY if record is None else ReservationPolicy.model_validate(record)
        with self._lock:
            self._cached = policy
        return policy

    def update(self, db: Session, payload: ReservationPolicyUpdate) -> ReservationPolicy:
        record = get_settings_record(db)
        if record is None:
            record = build_default_settings_record()
            db.add(record)
        for key, value in payload.model_dump().items():
            setattr(record, key, value)
        db.flush()
        return ReservationPolicy.model_validate(record)

    def publish(self, policy: ReservationPolicy) -> None:
        with self._lock:
            self._cached = policy
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(policy)
            except Exception:
                logger.exception("Settings listener %r failed", listener)

    def clear(self) -> None:
        with self._lock:
            self._cached = None


settings_provider = SettingsProvider()
