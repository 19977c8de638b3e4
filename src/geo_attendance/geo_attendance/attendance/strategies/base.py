from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ...companies.model import AttendanceSettings
from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(
        self,
        *,
        local_now: datetime,
        work_date: date,
        settings: AttendanceSettings,
        within_office: bool,
    ) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(
        self,
        *,
        current: AttendanceStatus,
        work_minutes: int,
        settings: AttendanceSettings,
    ) -> StatusDecision:
        raise NotImplementedError
