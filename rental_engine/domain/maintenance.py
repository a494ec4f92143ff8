"""
Maintenance Tracker.

Issues live on the vehicle they belong to.  The tracker only allocates
ids and applies report / resolve; status escalation happens through the
status machine, which consults ``has_critical_open_issues``.
"""

from __future__ import annotations

import itertools
from datetime import datetime
from typing import Iterable, Optional

from .entities import MaintenanceIssue, Vehicle
from .enums import IssueStatus, MaintenanceCategory
from .errors import NotFound, ValidationError

CRITICAL_SEVERITY = 3  # open issues at or above this ground the vehicle
BROADCAST_SEVERITY = 4  # reports at or above this alert every admin
MIN_SEVERITY, MAX_SEVERITY = 1, 5


def clamp_severity(severity: int) -> int:
    return max(MIN_SEVERITY, min(MAX_SEVERITY, severity))


def has_critical_open_issues(
    vehicle: Vehicle, critical_severity: int = CRITICAL_SEVERITY
) -> bool:
    return any(i.is_open and i.severity >= critical_severity for i in vehicle.issues)


def open_issues(vehicle: Vehicle) -> list[MaintenanceIssue]:
    return [i for i in vehicle.issues if i.is_open]


class MaintenanceTracker:
    def __init__(
        self,
        start_id: int = 1,
        broadcast_severity: int = BROADCAST_SEVERITY,
    ):
        self._ids = itertools.count(start_id)
        self.broadcast_severity = broadcast_severity

    @classmethod
    def from_existing(
        cls, issues: Iterable[MaintenanceIssue], **kwargs
    ) -> "MaintenanceTracker":
        last = max((i.id for i in issues), default=0)
        return cls(start_id=last + 1, **kwargs)

    def report(
        self,
        vehicle: Vehicle,
        category: MaintenanceCategory,
        description: str,
        reported_by: str,
        severity: int,
        now: Optional[datetime] = None,
    ) -> MaintenanceIssue:
        if not description.strip():
            raise ValidationError("Issue description must not be empty")
        issue = MaintenanceIssue(
            id=next(self._ids),
            vehicle_id=vehicle.id,
            category=category,
            description=description.strip(),
            severity=clamp_severity(severity),
            reported_by=reported_by,
            reported_at=now or datetime.now(),
        )
        vehicle.issues.append(issue)
        return issue

    def should_broadcast(self, issue: MaintenanceIssue) -> bool:
        return issue.severity >= self.broadcast_severity

    def resolve(
        self,
        vehicle: Vehicle,
        issue_id: int,
        cost: float,
        resolved_by: str,
        now: Optional[datetime] = None,
    ) -> MaintenanceIssue:
        issue = next((i for i in vehicle.issues if i.id == issue_id), None)
        if issue is None:
            raise NotFound(f"Issue {issue_id} not found on vehicle {vehicle.id}")
        if not issue.is_open:
            raise ValidationError(f"Issue {issue_id} is already resolved")
        if cost < 0:
            raise ValidationError("Resolution cost cannot be negative")
        issue.status = IssueStatus.RESOLVED
        issue.cost = cost
        issue.resolved_by = resolved_by
        issue.resolved_at = now or datetime.now()
        return issue
