"""Example: drive the service layer directly (no Flask).

Controllers are a thin layer; the attendance rules live in the services.
Runs against the in-memory backend with the demo company in Bengaluru.
"""

import sys
from datetime import datetime
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src" / "geo_attendance"))

from geo_attendance.container import build_container
from geo_attendance.database.bootstrap import seed_memory_demo


def main():
    container = build_container(backend="memory")
    seed_memory_demo(container.users_repo, container.companies_repo)
    employee = container.users_repo.get_by_username("employee")

    service = container.attendance_service
    service.check_in(employee.user_id, latitude=12.9716, longitude=77.5946, now=datetime(2026, 3, 2, 9, 0))
    record = service.check_out(employee.user_id, now=datetime(2026, 3, 2, 18, 30))
    print(record.status.value, record.work_minutes, record.overtime_minutes)

    print(container.report_service.summary(user_id=employee.user_id))


if __name__ == "__main__":
    main()
