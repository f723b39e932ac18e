"""Repository layer responsible for all database access."""

from __future__ import annotations

import random
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from itertools import count
from pathlib import Path
from typing import Iterator, Optional, Sequence

from timetable.domain.models import (
    AssignmentHistoryRecord,
    College,
    DayOfWeek,
    Personnel,
    ResourceType,
    Room,
    ScheduledEvent,
    ScheduleInstance,
    ScheduleStatus,
    TimeslotPreference,
)
from timetable.utils.config import Settings, get_settings
from timetable.utils.logger import get_logger


logger = get_logger(__name__)

_SAVEPOINT_COUNTER = count(1)

_COUNTABLE_TABLES = frozenset(
    {
        "Colleges",
        "ScheduleInstances",
        "ScheduledEvents",
        "EventPersonnel",
        "TimeslotPreferences",
        "AssignmentHistory",
    }
)

_SCHEMA_STATEMENTS = (
    """
    CREATE TABLE IF NOT EXISTS Colleges (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL,
        code TEXT NOT NULL UNIQUE,
        created_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ScheduleInstances (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        college_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'DRAFT'
            CHECK (status IN ('DRAFT', 'LOCKED', 'COMPLETED')),
        start_date TEXT NOT NULL,
        end_date TEXT NOT NULL,
        FOREIGN KEY (college_id) REFERENCES Colleges(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS Courses (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        college_id INTEGER NOT NULL,
        code TEXT NOT NULL,
        title TEXT NOT NULL,
        FOREIGN KEY (college_id) REFERENCES Colleges(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ActivityTemplates (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        course_id INTEGER NOT NULL,
        title TEXT NOT NULL,
        duration_minutes INTEGER NOT NULL CHECK (duration_minutes > 0),
        FOREIGN KEY (course_id) REFERENCES Courses(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS Personnel (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        college_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        roles TEXT NOT NULL DEFAULT '',
        FOREIGN KEY (college_id) REFERENCES Colleges(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS Rooms (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        college_id INTEGER NOT NULL,
        name TEXT NOT NULL,
        capacity INTEGER NOT NULL CHECK (capacity > 0),
        room_type TEXT NOT NULL,
        FOREIGN KEY (college_id) REFERENCES Colleges(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ScheduledEvents (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        schedule_instance_id INTEGER NOT NULL,
        day_of_week TEXT NOT NULL,
        start_time TEXT NOT NULL,
        end_time TEXT NOT NULL,
        activity_template_id INTEGER NOT NULL,
        room_id INTEGER,
        version INTEGER NOT NULL DEFAULT 0,
        FOREIGN KEY (schedule_instance_id) REFERENCES ScheduleInstances(id),
        FOREIGN KEY (activity_template_id) REFERENCES ActivityTemplates(id),
        FOREIGN KEY (room_id) REFERENCES Rooms(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS EventPersonnel (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        event_id INTEGER NOT NULL,
        personnel_id INTEGER NOT NULL,
        UNIQUE (event_id, personnel_id),
        FOREIGN KEY (event_id) REFERENCES ScheduledEvents(id),
        FOREIGN KEY (personnel_id) REFERENCES Personnel(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS TimeslotPreferences (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        resource_id INTEGER NOT NULL,
        resource_type TEXT NOT NULL CHECK (resource_type IN ('PERSONNEL', 'ROOM')),
        schedule_instance_id INTEGER NOT NULL,
        timeslot_id TEXT NOT NULL,
        rank INTEGER NOT NULL CHECK (rank >= 1),
        UNIQUE (resource_id, resource_type, schedule_instance_id, rank),
        UNIQUE (resource_id, resource_type, schedule_instance_id, timeslot_id),
        FOREIGN KEY (schedule_instance_id) REFERENCES ScheduleInstances(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS AssignmentHistory (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        personnel_id INTEGER NOT NULL,
        course_id INTEGER NOT NULL,
        activity_template_id INTEGER,
        schedule_instance_id INTEGER,
        college_id INTEGER NOT NULL,
        performance TEXT,
        assigned_at TEXT NOT NULL,
        FOREIGN KEY (personnel_id) REFERENCES Personnel(id),
        FOREIGN KEY (course_id) REFERENCES Courses(id),
        FOREIGN KEY (college_id) REFERENCES Colleges(id)
    );
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_events_schedule_slot
    ON ScheduledEvents(schedule_instance_id, day_of_week, start_time);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_preferences_group
    ON TimeslotPreferences(schedule_instance_id, resource_type, resource_id, rank);
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_history_college_pair
    ON AssignmentHistory(college_id, personnel_id, course_id);
    """,
)

_EVENT_SELECT = """
    SELECT
        e.id,
        e.schedule_instance_id,
        e.day_of_week,
        e.start_time,
        e.end_time,
        e.activity_template_id,
        t.course_id,
        e.room_id,
        e.version
    FROM ScheduledEvents AS e
    INNER JOIN ActivityTemplates AS t ON t.id = e.activity_template_id
"""


def _split_roles(raw: str) -> tuple[str, ...]:
    return tuple(role for role in raw.split(",") if role)


def _personnel_from_row(row: sqlite3.Row) -> Personnel:
    return Personnel(
        personnel_id=int(row["id"]),
        college_id=int(row["college_id"]),
        name=str(row["name"]),
        roles=_split_roles(str(row["roles"])),
    )


def _room_from_row(row: sqlite3.Row) -> Room:
    return Room(
        room_id=int(row["id"]),
        college_id=int(row["college_id"]),
        name=str(row["name"]),
        capacity=int(row["capacity"]),
        room_type=str(row["room_type"]),
    )


def _history_from_row(row: sqlite3.Row) -> AssignmentHistoryRecord:
    return AssignmentHistoryRecord(
        record_id=int(row["id"]),
        personnel_id=int(row["personnel_id"]),
        course_id=int(row["course_id"]),
        activity_template_id=(
            int(row["activity_template_id"]) if row["activity_template_id"] is not None else None
        ),
        schedule_instance_id=(
            int(row["schedule_instance_id"]) if row["schedule_instance_id"] is not None else None
        ),
        college_id=int(row["college_id"]),
        performance=str(row["performance"]) if row["performance"] is not None else None,
        assigned_at=str(row["assigned_at"]),
    )


class SchedulingTransaction:
    """Reads and writes bound to one open SQLite unit of work."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    @contextmanager
    def savepoint(self) -> Iterator[None]:
        """Nested unit that rolls back on its own without ending the transaction."""
        name = f"unit_{next(_SAVEPOINT_COUNTER)}"
        self._conn.execute(f"SAVEPOINT {name};")
        try:
            yield
        except BaseException:
            self._conn.execute(f"ROLLBACK TO {name};")
            self._conn.execute(f"RELEASE {name};")
            raise
        self._conn.execute(f"RELEASE {name};")

    # ------------------------------------------------------------------
    # Organisation and schedule lookups
    # ------------------------------------------------------------------
    def get_college(self, college_id: int) -> Optional[College]:
        row = self._conn.execute(
            "SELECT id, name, code FROM Colleges WHERE id = ?;",
            (college_id,),
        ).fetchone()
        if row is None:
            return None
        return College(college_id=int(row["id"]), name=str(row["name"]), code=str(row["code"]))

    def get_schedule_instance(self, schedule_instance_id: int) -> Optional[ScheduleInstance]:
        row = self._conn.execute(
            """
            SELECT id, college_id, name, status, start_date, end_date
            FROM ScheduleInstances
            WHERE id = ?;
            """,
            (schedule_instance_id,),
        ).fetchone()
        if row is None:
            return None
        return ScheduleInstance(
            schedule_instance_id=int(row["id"]),
            college_id=int(row["college_id"]),
            name=str(row["name"]),
            status=ScheduleStatus(str(row["status"])),
            start_date=str(row["start_date"]),
            end_date=str(row["end_date"]),
        )

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def get_personnel(self, personnel_id: int) -> Optional[Personnel]:
        row = self._conn.execute(
            "SELECT id, college_id, name, roles FROM Personnel WHERE id = ?;",
            (personnel_id,),
        ).fetchone()
        return _personnel_from_row(row) if row is not None else None

    def get_room(self, room_id: int) -> Optional[Room]:
        row = self._conn.execute(
            "SELECT id, college_id, name, capacity, room_type FROM Rooms WHERE id = ?;",
            (room_id,),
        ).fetchone()
        return _room_from_row(row) if row is not None else None

    def list_college_personnel(self, college_id: int) -> list[Personnel]:
        rows = self._conn.execute(
            """
            SELECT id, college_id, name, roles
            FROM Personnel
            WHERE college_id = ?
            ORDER BY id ASC;
            """,
            (college_id,),
        ).fetchall()
        return [_personnel_from_row(row) for row in rows]

    def list_college_rooms(self, college_id: int) -> list[Room]:
        rows = self._conn.execute(
            """
            SELECT id, college_id, name, capacity, room_type
            FROM Rooms
            WHERE college_id = ?
            ORDER BY id ASC;
            """,
            (college_id,),
        ).fetchall()
        return [_room_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Scheduled events
    # ------------------------------------------------------------------
    def _load_events(self, where_clause: str, params: Sequence[object]) -> list[ScheduledEvent]:
        rows = self._conn.execute(
            f"{_EVENT_SELECT} WHERE {where_clause} ORDER BY e.id ASC;",
            tuple(params),
        ).fetchall()
        if not rows:
            return []

        event_ids = [int(row["id"]) for row in rows]
        placeholders = ",".join("?" for _ in event_ids)
        personnel_rows = self._conn.execute(
            f"""
            SELECT event_id, personnel_id
            FROM EventPersonnel
            WHERE event_id IN ({placeholders})
            ORDER BY id ASC;
            """,
            tuple(event_ids),
        ).fetchall()
        personnel_by_event: dict[int, list[int]] = {event_id: [] for event_id in event_ids}
        for personnel_row in personnel_rows:
            personnel_by_event[int(personnel_row["event_id"])].append(
                int(personnel_row["personnel_id"])
            )

        return [
            ScheduledEvent(
                event_id=int(row["id"]),
                schedule_instance_id=int(row["schedule_instance_id"]),
                day=DayOfWeek(str(row["day_of_week"])),
                start_time=str(row["start_time"]),
                end_time=str(row["end_time"]),
                activity_template_id=int(row["activity_template_id"]),
                course_id=int(row["course_id"]),
                room_id=int(row["room_id"]) if row["room_id"] is not None else None,
                personnel_ids=tuple(personnel_by_event[int(row["id"])]),
                version=int(row["version"]),
            )
            for row in rows
        ]

    def get_event(self, event_id: int) -> Optional[ScheduledEvent]:
        events = self._load_events("e.id = ?", (event_id,))
        return events[0] if events else None

    def list_events_at_timeslot(
        self,
        schedule_instance_id: int,
        day: DayOfWeek,
        start_time: str,
        end_time: str,
    ) -> list[ScheduledEvent]:
        return self._load_events(
            """
            e.schedule_instance_id = ?
            AND e.day_of_week = ?
            AND e.start_time = ?
            AND e.end_time = ?
            """,
            (schedule_instance_id, day.value, start_time, end_time),
        )

    def list_schedule_events(self, schedule_instance_id: int) -> list[ScheduledEvent]:
        return self._load_events("e.schedule_instance_id = ?", (schedule_instance_id,))

    def list_college_events_on_day(self, college_id: int, day: DayOfWeek) -> list[ScheduledEvent]:
        """Every event of the college's schedule instances on ``day``."""
        return self._load_events(
            """
            e.day_of_week = ?
            AND e.schedule_instance_id IN (
                SELECT id FROM ScheduleInstances WHERE college_id = ?
            )
            """,
            (day.value, college_id),
        )

    def set_event_room(self, event_id: int, room_id: int | None) -> None:
        self._conn.execute(
            """
            UPDATE ScheduledEvents
            SET room_id = ?, version = version + 1
            WHERE id = ?;
            """,
            (room_id, event_id),
        )

    def add_event_personnel(self, event_id: int, personnel_id: int) -> bool:
        cursor = self._conn.execute(
            """
            INSERT OR IGNORE INTO EventPersonnel (event_id, personnel_id)
            VALUES (?, ?);
            """,
            (event_id, personnel_id),
        )
        if cursor.rowcount == 0:
            return False
        self._bump_event_version(event_id)
        return True

    def remove_event_personnel(self, event_id: int, personnel_id: int) -> bool:
        cursor = self._conn.execute(
            "DELETE FROM EventPersonnel WHERE event_id = ? AND personnel_id = ?;",
            (event_id, personnel_id),
        )
        if cursor.rowcount == 0:
            return False
        self._bump_event_version(event_id)
        return True

    def _bump_event_version(self, event_id: int) -> None:
        self._conn.execute(
            "UPDATE ScheduledEvents SET version = version + 1 WHERE id = ?;",
            (event_id,),
        )

    # ------------------------------------------------------------------
    # Timeslot preferences
    # ------------------------------------------------------------------
    def list_preferences(
        self,
        resource_id: int,
        resource_type: ResourceType,
        schedule_instance_id: int,
    ) -> list[TimeslotPreference]:
        rows = self._conn.execute(
            """
            SELECT resource_id, resource_type, schedule_instance_id, timeslot_id, rank
            FROM TimeslotPreferences
            WHERE resource_id = ?
              AND resource_type = ?
              AND schedule_instance_id = ?
            ORDER BY rank ASC;
            """,
            (resource_id, resource_type.value, schedule_instance_id),
        ).fetchall()
        return [
            TimeslotPreference(
                resource_id=int(row["resource_id"]),
                resource_type=ResourceType(str(row["resource_type"])),
                schedule_instance_id=int(row["schedule_instance_id"]),
                timeslot_id=str(row["timeslot_id"]),
                rank=int(row["rank"]),
            )
            for row in rows
        ]

    def list_preferences_by_resource(
        self,
        schedule_instance_id: int,
        resource_type: ResourceType,
    ) -> dict[int, list[str]]:
        """Ranked timeslot ids for every resource of one type in a schedule."""
        rows = self._conn.execute(
            """
            SELECT resource_id, timeslot_id
            FROM TimeslotPreferences
            WHERE schedule_instance_id = ? AND resource_type = ?
            ORDER BY resource_id ASC, rank ASC;
            """,
            (schedule_instance_id, resource_type.value),
        ).fetchall()
        preferences: dict[int, list[str]] = {}
        for row in rows:
            preferences.setdefault(int(row["resource_id"]), []).append(str(row["timeslot_id"]))
        return preferences

    def delete_preferences(
        self,
        resource_id: int,
        resource_type: ResourceType,
        schedule_instance_id: int,
    ) -> int:
        cursor = self._conn.execute(
            """
            DELETE FROM TimeslotPreferences
            WHERE resource_id = ?
              AND resource_type = ?
              AND schedule_instance_id = ?;
            """,
            (resource_id, resource_type.value, schedule_instance_id),
        )
        return int(cursor.rowcount)

    def insert_preferences(
        self,
        resource_id: int,
        resource_type: ResourceType,
        schedule_instance_id: int,
        ordered_timeslot_ids: Sequence[str],
    ) -> None:
        self._conn.executemany(
            """
            INSERT INTO TimeslotPreferences (
                resource_id,
                resource_type,
                schedule_instance_id,
                timeslot_id,
                rank
            )
            VALUES (?, ?, ?, ?, ?);
            """,
            [
                (resource_id, resource_type.value, schedule_instance_id, timeslot_id, rank)
                for rank, timeslot_id in enumerate(ordered_timeslot_ids, start=1)
            ],
        )

    # ------------------------------------------------------------------
    # Assignment history
    # ------------------------------------------------------------------
    def list_assignment_history(
        self,
        *,
        college_id: int | None = None,
        personnel_id: int | None = None,
        course_id: int | None = None,
        schedule_instance_id: int | None = None,
        assigned_from: str | None = None,
        assigned_to: str | None = None,
        newest_first: bool = False,
    ) -> list[AssignmentHistoryRecord]:
        clauses: list[str] = []
        params: list[object] = []
        for column, value in (
            ("college_id", college_id),
            ("personnel_id", personnel_id),
            ("course_id", course_id),
            ("schedule_instance_id", schedule_instance_id),
        ):
            if value is not None:
                clauses.append(f"{column} = ?")
                params.append(value)
        if assigned_from is not None:
            clauses.append("assigned_at >= ?")
            params.append(assigned_from)
        if assigned_to is not None:
            clauses.append("assigned_at < ?")
            params.append(assigned_to)

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        direction = "DESC" if newest_first else "ASC"
        rows = self._conn.execute(
            f"""
            SELECT
                id,
                personnel_id,
                course_id,
                activity_template_id,
                schedule_instance_id,
                college_id,
                performance,
                assigned_at
            FROM AssignmentHistory
            {where}
            ORDER BY assigned_at {direction}, id {direction};
            """,
            tuple(params),
        ).fetchall()
        return [_history_from_row(row) for row in rows]

    # ------------------------------------------------------------------
    # Inserts used by seeding and by collaborators materialising schedules
    # ------------------------------------------------------------------
    def insert_row(self, statement: str, params: Sequence[object]) -> int:
        cursor = self._conn.execute(statement, tuple(params))
        return int(cursor.lastrowid)

    def count_rows(self, table: str) -> int:
        if table not in _COUNTABLE_TABLES:
            raise ValueError(f"unknown table {table!r}")
        row = self._conn.execute(f"SELECT COUNT(*) AS count FROM {table};").fetchone()
        return int(row["count"])


class DataRepository:
    """Encapsulates SQLite access so business logic stays storage-agnostic."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._db_path = Path(self._settings.database_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def database_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(
            self._db_path,
            timeout=self._settings.sqlite_busy_timeout_seconds,
            isolation_level=None,
            check_same_thread=False,
        )
        connection.row_factory = sqlite3.Row
        connection.execute("PRAGMA foreign_keys = ON;")
        return connection

    @contextmanager
    def transaction(self) -> Iterator[SchedulingTransaction]:
        """Write unit of work holding the database write lock from the first read.

        ``BEGIN IMMEDIATE`` makes read-then-write sequences indivisible with
        respect to every other writer; the block commits on success and rolls
        back on any exception.
        """
        connection = self._connect()
        try:
            connection.execute("BEGIN IMMEDIATE;")
            try:
                yield SchedulingTransaction(connection)
            except BaseException:
                connection.execute("ROLLBACK;")
                raise
            connection.execute("COMMIT;")
        finally:
            connection.close()

    @contextmanager
    def snapshot(self) -> Iterator[SchedulingTransaction]:
        """Read-only unit of work with a consistent view across queries."""
        connection = self._connect()
        try:
            connection.execute("BEGIN;")
            try:
                yield SchedulingTransaction(connection)
            finally:
                connection.execute("ROLLBACK;")
        finally:
            connection.close()

    def initialize_database(self) -> None:
        """Create all persistence artifacts before API startup."""
        try:
            connection = self._connect()
            try:
                for statement in _SCHEMA_STATEMENTS:
                    connection.execute(statement)
            finally:
                connection.close()
            logger.info("Database initialized at %s", self._db_path)
        except sqlite3.Error as exc:
            raise RuntimeError(f"Database initialization failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Fixture writers
    # ------------------------------------------------------------------
    def create_college(self, name: str, code: str) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                "INSERT INTO Colleges (name, code) VALUES (?, ?);",
                (name, code),
            )

    def create_schedule_instance(
        self,
        college_id: int,
        name: str,
        start_date: str,
        end_date: str,
        status: ScheduleStatus = ScheduleStatus.DRAFT,
    ) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                """
                INSERT INTO ScheduleInstances (college_id, name, status, start_date, end_date)
                VALUES (?, ?, ?, ?, ?);
                """,
                (college_id, name, status.value, start_date, end_date),
            )

    def create_course(self, college_id: int, code: str, title: str) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                "INSERT INTO Courses (college_id, code, title) VALUES (?, ?, ?);",
                (college_id, code, title),
            )

    def create_activity_template(
        self,
        course_id: int,
        title: str,
        duration_minutes: int = 60,
    ) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                """
                INSERT INTO ActivityTemplates (course_id, title, duration_minutes)
                VALUES (?, ?, ?);
                """,
                (course_id, title, duration_minutes),
            )

    def create_personnel(
        self,
        college_id: int,
        name: str,
        roles: Sequence[str] = ("INSTRUCTOR",),
    ) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                "INSERT INTO Personnel (college_id, name, roles) VALUES (?, ?, ?);",
                (college_id, name, ",".join(role.upper() for role in roles)),
            )

    def create_room(
        self,
        college_id: int,
        name: str,
        capacity: int = 30,
        room_type: str = "Classroom",
    ) -> int:
        with self.transaction() as tx:
            return tx.insert_row(
                """
                INSERT INTO Rooms (college_id, name, capacity, room_type)
                VALUES (?, ?, ?, ?);
                """,
                (college_id, name, capacity, room_type),
            )

    def create_scheduled_event(
        self,
        schedule_instance_id: int,
        day: DayOfWeek,
        start_time: str,
        end_time: str,
        activity_template_id: int,
        room_id: int | None = None,
        personnel_ids: Sequence[int] = (),
    ) -> int:
        """Materialise one event slot; assignments here bypass availability checks."""
        with self.transaction() as tx:
            event_id = tx.insert_row(
                """
                INSERT INTO ScheduledEvents (
                    schedule_instance_id,
                    day_of_week,
                    start_time,
                    end_time,
                    activity_template_id,
                    room_id
                )
                VALUES (?, ?, ?, ?, ?, ?);
                """,
                (schedule_instance_id, day.value, start_time, end_time, activity_template_id, room_id),
            )
            for personnel_id in personnel_ids:
                tx.insert_row(
                    "INSERT OR IGNORE INTO EventPersonnel (event_id, personnel_id) VALUES (?, ?);",
                    (event_id, personnel_id),
                )
            return event_id

    def create_assignment_history(
        self,
        personnel_id: int,
        course_id: int,
        college_id: int,
        performance: str | None,
        assigned_at: str | None = None,
        activity_template_id: int | None = None,
        schedule_instance_id: int | None = None,
    ) -> int:
        timestamp = assigned_at or datetime.now(timezone.utc).isoformat()
        with self.transaction() as tx:
            return tx.insert_row(
                """
                INSERT INTO AssignmentHistory (
                    personnel_id,
                    course_id,
                    activity_template_id,
                    schedule_instance_id,
                    college_id,
                    performance,
                    assigned_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    personnel_id,
                    course_id,
                    activity_template_id,
                    schedule_instance_id,
                    college_id,
                    performance,
                    timestamp,
                ),
            )

    def count_rows(self, table: str) -> int:
        """Row count for diagnostics and tests."""
        with self.snapshot() as tx:
            return tx.count_rows(table)

    def seed_demo_data(self) -> None:
        """Seed a deterministic demo college only when no college exists."""
        with self.snapshot() as tx:
            if tx.count_rows("Colleges") > 0:
                logger.info("Demo data already present; skipping seed")
                return

        rng = random.Random(self._settings.demo_random_seed)
        college_id = self.create_college("Default College", "DEF")
        schedule_id = self.create_schedule_instance(
            college_id,
            "Autumn Term",
            start_date="2026-09-01",
            end_date="2026-12-18",
        )

        course_ids = [
            self.create_course(college_id, code, title)
            for code, title in (
                ("CS101", "Introduction to Programming"),
                ("CS201", "Data Structures"),
                ("MA101", "Linear Algebra"),
                ("PH101", "Mechanics"),
            )
        ]
        template_ids = [
            self.create_activity_template(course_id, "Lecture", 60) for course_id in course_ids
        ]
        personnel_ids = [
            self.create_personnel(college_id, name, roles)
            for name, roles in (
                ("Ada Byron", ("INSTRUCTOR",)),
                ("Alan Turing", ("INSTRUCTOR",)),
                ("Grace Hopper", ("INSTRUCTOR", "ASSISTANT")),
                ("Edsger Dijkstra", ("ASSISTANT",)),
                ("Barbara Liskov", ("INSTRUCTOR",)),
            )
        ]
        for name, capacity, room_type in (
            ("Room A", 30, "Classroom"),
            ("Room B", 60, "Auditorium"),
            ("Room C", 20, "Lab"),
            ("Room D", 40, "Classroom"),
        ):
            self.create_room(college_id, name, capacity, room_type)

        for day in (DayOfWeek.MONDAY, DayOfWeek.WEDNESDAY):
            for start_time, end_time in (("09:00", "10:00"), ("10:00", "11:00")):
                for template_id in template_ids:
                    self.create_scheduled_event(schedule_id, day, start_time, end_time, template_id)

        performances = ("EXCELLENT", "GOOD", "AVERAGE", "POOR", None)
        base_time = datetime(2025, 9, 1, tzinfo=timezone.utc)
        history_rows = 0
        for offset in range(40):
            course_index = rng.randrange(len(course_ids))
            self.create_assignment_history(
                personnel_id=rng.choice(personnel_ids),
                course_id=course_ids[course_index],
                college_id=college_id,
                performance=rng.choice(performances),
                assigned_at=(base_time + timedelta(days=offset * 3)).isoformat(),
                activity_template_id=template_ids[course_index],
            )
            history_rows += 1

        logger.info(
            "Demo seed completed | college_id=%s | schedule_instance_id=%s | history_rows=%s",
            college_id,
            schedule_id,
            history_rows,
        )
