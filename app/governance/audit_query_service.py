"""Read side of the audit log: per-record and per-user history, activity reports, CSV export."""

import csv
import io
import math
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from app.governance.audit_models import AuditAction, AuditQuery, AuditRecord
from app.governance.audit_repository import AuditRepository

CSV_HEADER = [
    "Date",
    "Time",
    "Record Type",
    "Record ID",
    "Action",
    "Performed By",
    "Role",
    "IP Address",
    "Changes",
]

# Upper bound for reports that aggregate over a whole time window.
_REPORT_SCAN_LIMIT = 100_000


@dataclass(frozen=True)
class UserActivity:
    entries: List[AuditRecord]
    grouped_by_type: Dict[str, List[AuditRecord]]


@dataclass(frozen=True)
class RecentActivity:
    start: datetime
    end: datetime
    entries: List[AuditRecord]
    stats: Dict[str, Any]


@dataclass(frozen=True)
class AuditStatistics:
    days: int
    daily: List[Dict[str, Any]]
    top_users: List[Dict[str, Any]]


@dataclass(frozen=True)
class SearchPage:
    entries: List[AuditRecord]
    total: int
    page: int
    total_pages: int


def _summarize_changes(record: AuditRecord) -> str:
    return "; ".join(f"{c.field}: {c.old_value} -> {c.new_value}" for c in record.changes)


class AuditQueryService:
    """Every listing is newest first."""

    def __init__(self, repository: AuditRepository, *, export_limit: int = 10_000) -> None:
        self._repository = repository
        self._export_limit = export_limit

    async def for_record(
        self, record_type: str, record_id: str, limit: int = 50, skip: int = 0
    ) -> List[AuditRecord]:
        query = AuditQuery(record_type=record_type, record_id=record_id)
        return await self._repository.find(query, limit=limit, skip=skip)

    async def for_user(
        self,
        user_id: str,
        action: Optional[AuditAction] = None,
        record_type: Optional[str] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> UserActivity:
        query = AuditQuery(performed_by=user_id, action=action, record_type=record_type)
        entries = await self._repository.find(query, limit=limit, skip=skip)
        grouped: Dict[str, List[AuditRecord]] = defaultdict(list)
        for entry in entries:
            grouped[entry.record_type].append(entry)
        return UserActivity(entries=entries, grouped_by_type=dict(grouped))

    async def recent(self, hours: int = 24, limit: int = 200) -> RecentActivity:
        end = datetime.now(timezone.utc)
        start = end - timedelta(hours=hours)
        entries = await self._repository.find(AuditQuery(start=start, end=end), limit=limit)
        stats = {
            "total": len(entries),
            "by_action": dict(Counter(e.action.value for e in entries)),
            "by_record_type": dict(Counter(e.record_type for e in entries)),
            "unique_users": len({e.performed_by for e in entries}),
        }
        return RecentActivity(start=start, end=end, entries=entries, stats=stats)

    async def statistics(self, days: int = 7) -> AuditStatistics:
        start = datetime.now(timezone.utc) - timedelta(days=days)
        entries = await self._repository.find(AuditQuery(start=start), limit=_REPORT_SCAN_LIMIT)

        buckets: Dict[tuple, Dict[str, Any]] = {}
        for entry in entries:
            key = (entry.performed_at.date().isoformat(), entry.action.value, entry.record_type)
            bucket = buckets.setdefault(key, {"count": 0, "users": set()})
            bucket["count"] += 1
            bucket["users"].add(entry.performed_by_name)
        daily = [
            {
                "date": date,
                "action": action,
                "record_type": record_type,
                "count": bucket["count"],
                "users": sorted(bucket["users"]),
            }
            for (date, action, record_type), bucket in sorted(buckets.items(), reverse=True)
        ]

        actors: Dict[str, Dict[str, Any]] = {}
        for entry in entries:
            actor = actors.setdefault(
                entry.performed_by,
                {"user_id": entry.performed_by, "name": entry.performed_by_name, "count": 0},
            )
            actor["count"] += 1
        top_users = sorted(actors.values(), key=lambda a: a["count"], reverse=True)[:10]
        return AuditStatistics(days=days, daily=daily, top_users=top_users)

    async def search(
        self,
        record_type: Optional[str] = None,
        action: Optional[AuditAction] = None,
        performed_by: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        search_field: Optional[str] = None,
        limit: int = 100,
        skip: int = 0,
    ) -> SearchPage:
        query = AuditQuery(
            record_type=record_type,
            action=action,
            performed_by=performed_by,
            start=start_date,
            end=end_date,
            changed_field=search_field,
        )
        entries = await self._repository.find(query, limit=limit, skip=skip)
        total = await self._repository.count(query)
        page = skip // limit + 1 if limit > 0 else 1
        total_pages = math.ceil(total / limit) if limit > 0 else 1
        return SearchPage(entries=entries, total=total, page=page, total_pages=total_pages)

    async def export_csv(
        self,
        record_type: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> str:
        query = AuditQuery(record_type=record_type, start=start_date, end=end_date)
        entries = await self._repository.find(query, limit=self._export_limit)
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for entry in entries:
            writer.writerow(
                [
                    entry.performed_at.date().isoformat(),
                    entry.performed_at.time().isoformat(timespec="seconds"),
                    entry.record_type,
                    entry.record_id,
                    entry.action.value,
                    entry.performed_by_name,
                    entry.performed_by_role,
                    entry.ip_address or "",
                    _summarize_changes(entry),
                ]
            )
        return buffer.getvalue()
