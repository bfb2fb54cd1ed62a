"""SQLite helpers."""
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional
from uuid import uuid4

from .config import CONFIG

_DB_PATH = CONFIG.resolved_database_path

_UNSET = object()

CHILD_FIELDS = (
    "first_name",
    "last_name",
    "date_of_birth",
    "gender",
    "allergies",
    "medical_info",
    "notes",
    "signed_in",
    "booked_in",
)


def _now_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat()


def new_id() -> str:
    return uuid4().hex


def _ensure_column(conn: sqlite3.Connection, table: str, column: str, ddl: str) -> None:
    cursor = conn.execute(f"PRAGMA table_info({table})")
    existing = {row[1] for row in cursor.fetchall()}
    if column not in existing:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}")


def initialize_db() -> None:
    _DB_PATH.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(_DB_PATH) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS users (
                id TEXT PRIMARY KEY,
                name TEXT,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT,
                email_verified TEXT,
                image TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS children (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                first_name TEXT NOT NULL,
                last_name TEXT,
                date_of_birth TEXT NOT NULL,
                gender TEXT,
                allergies TEXT,
                medical_info TEXT,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )
        _ensure_column(conn, "children", "signed_in", "INTEGER DEFAULT 0")
        _ensure_column(conn, "children", "booked_in", "INTEGER DEFAULT 0")

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS child_events (
                id TEXT PRIMARY KEY,
                child_id TEXT NOT NULL,
                name TEXT NOT NULL,
                event_type TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (child_id) REFERENCES children(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS bookings (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                child_id TEXT,
                name TEXT NOT NULL,
                date TEXT NOT NULL,
                time TEXT NOT NULL,
                notes TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
                FOREIGN KEY (child_id) REFERENCES children(id) ON DELETE SET NULL
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meals (
                id TEXT PRIMARY KEY,
                user_id TEXT,
                name TEXT NOT NULL,
                description TEXT,
                ingredients TEXT,
                category TEXT NOT NULL,
                allergy_info TEXT,
                prep_time INTEGER,
                is_template INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meal_plans (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                name TEXT NOT NULL,
                start_date TEXT NOT NULL,
                end_date TEXT NOT NULL,
                is_active INTEGER DEFAULT 1,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meal_plan_entries (
                id TEXT PRIMARY KEY,
                meal_plan_id TEXT NOT NULL,
                meal_id TEXT NOT NULL,
                day_of_week INTEGER NOT NULL,
                meal_time TEXT NOT NULL,
                created_at TEXT NOT NULL,
                UNIQUE (meal_plan_id, day_of_week, meal_time),
                FOREIGN KEY (meal_plan_id) REFERENCES meal_plans(id) ON DELETE CASCADE,
                FOREIGN KEY (meal_id) REFERENCES meals(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS meal_plan_children (
                meal_plan_id TEXT NOT NULL,
                child_id TEXT NOT NULL,
                PRIMARY KEY (meal_plan_id, child_id),
                FOREIGN KEY (meal_plan_id) REFERENCES meal_plans(id) ON DELETE CASCADE,
                FOREIGN KEY (child_id) REFERENCES children(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS location_data (
                id TEXT PRIMARY KEY,
                user_id TEXT NOT NULL,
                suburb_name TEXT NOT NULL,
                state TEXT,
                median_house_price REAL,
                median_unit_price REAL,
                rental_price_house REAL,
                rental_price_unit REAL,
                vacancy_rate REAL,
                notes TEXT,
                is_favorite INTEGER DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE
            );
            """
        )

        conn.execute("CREATE INDEX IF NOT EXISTS idx_children_user ON children(user_id)")
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_child_events_child ON child_events(child_id, created_at)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_bookings_user_date ON bookings(user_id, date)")
        conn.commit()


@contextmanager
def get_connection() -> Iterator[sqlite3.Connection]:
    conn = sqlite3.connect(_DB_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def _row_to_dict(row: Optional[sqlite3.Row]) -> Dict[str, Any]:
    if row is None:
        return {}
    return {key: row[key] for key in row.keys()}


def _child_row(row: sqlite3.Row) -> Dict[str, Any]:
    data = _row_to_dict(row)
    data["signed_in"] = bool(data.get("signed_in"))
    data["booked_in"] = bool(data.get("booked_in"))
    return data


def _as_iso_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


def create_user(
    *,
    email: str,
    password_hash: Optional[str],
    name: Optional[str] = None,
    user_id: Optional[str] = None,
) -> Dict[str, Any]:
    now = _now_iso()
    user_id = user_id or new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO users (id, name, email, password_hash, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, name, email, password_hash, now, now),
        )
        conn.commit()
    return get_user(user_id)


def get_user(user_id: str) -> Dict[str, Any]:
    with get_connection() as conn:
        row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()
    if not row:
        raise ValueError("User not found")
    return _row_to_dict(row)


def find_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    with get_connection() as conn:
        row = conn.execute(
            "SELECT * FROM users WHERE lower(email) = lower(?)",
            (email.strip(),),
        ).fetchone()
    return _row_to_dict(row) if row else None


def ensure_user(user_id: str, *, email: str, name: Optional[str]) -> Dict[str, Any]:
    """Return the user row, creating a password-less placeholder when absent.

    An unknown id whose email is already registered resolves to that account.
    """
    try:
        return get_user(user_id)
    except ValueError:
        existing = find_user_by_email(email)
        if existing:
            return existing
        return create_user(email=email, password_hash=None, name=name, user_id=user_id)


# ---------------------------------------------------------------------------
# Children
# ---------------------------------------------------------------------------


def _events_for_children(conn: sqlite3.Connection, child_ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
    grouped: Dict[str, List[Dict[str, Any]]] = {child_id: [] for child_id in child_ids}
    if not child_ids:
        return grouped
    placeholders = ",".join("?" for _ in child_ids)
    rows = conn.execute(
        f"""
        SELECT * FROM child_events
        WHERE child_id IN ({placeholders})
        ORDER BY created_at DESC
        """,
        child_ids,
    ).fetchall()
    for row in rows:
        grouped[row["child_id"]].append(_row_to_dict(row))
    return grouped


def list_children(user_id: str, *, include_events: bool = True) -> List[Dict[str, Any]]:
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM children WHERE user_id = ? ORDER BY created_at DESC",
            (user_id,),
        ).fetchall()
        children = [_child_row(row) for row in rows]
        if include_events:
            events = _events_for_children(conn, [child["id"] for child in children])
            for child in children:
                child["events"] = events[child["id"]]
    return children


def list_all_children() -> List[Dict[str, Any]]:
    with get_connection() as conn:
        rows = conn.execute(
            """
            SELECT c.*, u.name AS owner_name, u.email AS owner_email
            FROM children c
            LEFT JOIN users u ON u.id = c.user_id
            ORDER BY c.created_at DESC
            """
        ).fetchall()
        children = []
        for row in rows:
            child = _child_row(row)
            child["user"] = {"name": child.pop("owner_name"), "email": child.pop("owner_email")}
            children.append(child)
        events = _events_for_children(conn, [child["id"] for child in children])
        for child in children:
            child["events"] = events[child["id"]]
    return children


def get_child(child_id: str, *, user_id: Optional[str] = None, include_events: bool = True) -> Dict[str, Any]:
    query = "SELECT * FROM children WHERE id = ?"
    params: List[Any] = [child_id]
    if user_id is not None:
        query += " AND user_id = ?"
        params.append(user_id)
    with get_connection() as conn:
        row = conn.execute(query, params).fetchone()
        if not row:
            raise ValueError("Child not found")
        child = _child_row(row)
        if include_events:
            child["events"] = _events_for_children(conn, [child_id])[child_id]
    return child


def create_child(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    now = _now_iso()
    child_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO children (
                id, user_id, first_name, last_name, date_of_birth, gender,
                allergies, medical_info, notes, signed_in, booked_in,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                child_id,
                user_id,
                data["first_name"],
                data.get("last_name"),
                _as_iso_date(data["date_of_birth"]),
                data.get("gender"),
                data.get("allergies"),
                data.get("medical_info"),
                data.get("notes"),
                int(bool(data.get("signed_in"))),
                int(bool(data.get("booked_in"))),
                now,
                now,
            ),
        )
        conn.commit()
    return get_child(child_id)


def update_child(child_id: str, user_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
    get_child(child_id, user_id=user_id, include_events=False)
    assignments = []
    params: List[Any] = []
    for field in CHILD_FIELDS:
        if field not in updates:
            continue
        value = updates[field]
        if field in {"signed_in", "booked_in"}:
            value = int(bool(value))
        elif field == "date_of_birth":
            value = _as_iso_date(value)
        assignments.append(f"{field} = ?")
        params.append(value)
    if assignments:
        assignments.append("updated_at = ?")
        params.extend([_now_iso(), child_id])
        with get_connection() as conn:
            conn.execute(f"UPDATE children SET {', '.join(assignments)} WHERE id = ?", params)
            conn.commit()
    return get_child(child_id)


def delete_child(child_id: str, user_id: str) -> None:
    get_child(child_id, user_id=user_id, include_events=False)
    with get_connection() as conn:
        conn.execute("DELETE FROM children WHERE id = ?", (child_id,))
        conn.commit()


def search_children(
    *,
    user_id: Optional[str] = None,
    name: Optional[str] = None,
    first_name_only: bool = False,
) -> List[Dict[str, Any]]:
    """Case-insensitive partial name match, ordered by first then last name."""
    query = "SELECT * FROM children WHERE 1=1"
    params: List[Any] = []
    if user_id:
        query += " AND user_id = ?"
        params.append(user_id)
    if name:
        pattern = f"%{name.strip().lower()}%"
        if first_name_only:
            query += " AND lower(first_name) LIKE ?"
            params.append(pattern)
        else:
            query += " AND (lower(first_name) LIKE ? OR lower(coalesce(last_name, '')) LIKE ?)"
            params.extend([pattern, pattern])
    query += " ORDER BY first_name, last_name"
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_child_row(row) for row in rows]


def child_age(date_of_birth: Any, today: Optional[date] = None) -> int:
    """Whole years since ``date_of_birth``."""
    born = date.fromisoformat(_as_iso_date(date_of_birth)[:10])
    today = today or date.today()
    age = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        age -= 1
    return age


# ---------------------------------------------------------------------------
# Child events
# ---------------------------------------------------------------------------


def insert_child_event(
    *,
    child_id: str,
    name: str,
    event_type: str,
    occurred_at: Optional[str] = None,
) -> Dict[str, Any]:
    now = _now_iso()
    event_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO child_events (id, child_id, name, event_type, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (event_id, child_id, name, event_type, occurred_at or now, now),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM child_events WHERE id = ?", (event_id,)).fetchone()
    return _row_to_dict(row)


def list_child_events(child_id: str) -> List[Dict[str, Any]]:
    with get_connection() as conn:
        rows = conn.execute(
            "SELECT * FROM child_events WHERE child_id = ? ORDER BY created_at DESC",
            (child_id,),
        ).fetchall()
    return [_row_to_dict(row) for row in rows]


def delete_child_event(event_id: str, user_id: str) -> None:
    with get_connection() as conn:
        row = conn.execute(
            """
            SELECT e.id FROM child_events e
            JOIN children c ON c.id = e.child_id
            WHERE e.id = ? AND c.user_id = ?
            """,
            (event_id, user_id),
        ).fetchone()
        if not row:
            raise ValueError("Event not found")
        conn.execute("DELETE FROM child_events WHERE id = ?", (event_id,))
        conn.commit()


def list_user_events_between(
    user_id: Optional[str],
    start: str,
    end: str,
    *,
    child_id: Optional[str] = None,
    event_type: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Events of the user's children created in [start, end], newest first."""
    query = """
        SELECT e.*, c.first_name, c.last_name
        FROM child_events e
        JOIN children c ON c.id = e.child_id
        WHERE e.created_at >= ? AND e.created_at <= ?
    """
    params: List[Any] = [start, end]
    if user_id:
        query += " AND c.user_id = ?"
        params.append(user_id)
    if child_id:
        query += " AND e.child_id = ?"
        params.append(child_id)
    if event_type:
        query += " AND e.event_type = ?"
        params.append(event_type)
    query += " ORDER BY e.created_at DESC"
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_dict(row) for row in rows]


def event_statistics(child_id: Optional[str] = None, *, user_id: Optional[str] = None) -> Dict[str, Any]:
    where = []
    params: List[Any] = []
    if child_id:
        where.append("e.child_id = ?")
        params.append(child_id)
    if user_id:
        where.append("c.user_id = ?")
        params.append(user_id)
    clause = f"WHERE {' AND '.join(where)}" if where else ""
    with get_connection() as conn:
        by_type = conn.execute(
            f"""
            SELECT e.event_type, COUNT(*) AS count,
                   MIN(e.created_at) AS earliest, MAX(e.created_at) AS latest
            FROM child_events e
            JOIN children c ON c.id = e.child_id
            {clause}
            GROUP BY e.event_type
            ORDER BY count DESC, e.event_type
            """,
            params,
        ).fetchall()
        totals = conn.execute(
            f"""
            SELECT COUNT(*) AS total_events, COUNT(DISTINCT e.child_id) AS total_children
            FROM child_events e
            JOIN children c ON c.id = e.child_id
            {clause}
            """,
            params,
        ).fetchone()
    return {
        "events_by_type": [_row_to_dict(row) for row in by_type],
        "totals": _row_to_dict(totals),
        "filtered_by_child": bool(child_id),
    }


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


def create_booking(
    *,
    user_id: str,
    name: str,
    booking_date: Any,
    time: str,
    child_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Dict[str, Any]:
    now = _now_iso()
    booking_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO bookings (id, user_id, child_id, name, date, time, notes, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (booking_id, user_id, child_id, name, _as_iso_date(booking_date), time, notes, now, now),
        )
        conn.commit()
    return get_booking(booking_id)


def get_booking(booking_id: str, *, user_id: Optional[str] = None) -> Dict[str, Any]:
    query = "SELECT * FROM bookings WHERE id = ?"
    params: List[Any] = [booking_id]
    if user_id is not None:
        query += " AND user_id = ?"
        params.append(user_id)
    with get_connection() as conn:
        row = conn.execute(query, params).fetchone()
    if not row:
        raise ValueError("Booking not found")
    return _row_to_dict(row)


def list_bookings(
    user_id: Optional[str],
    *,
    start: Optional[str] = None,
    end: Optional[str] = None,
    child_id: Optional[str] = None,
    newest_first: bool = False,
) -> List[Dict[str, Any]]:
    """Bookings joined with child and owner names; dates compared as ISO strings."""
    query = """
        SELECT b.*, c.first_name, c.last_name, c.date_of_birth,
               u.name AS user_name, u.email AS user_email
        FROM bookings b
        LEFT JOIN children c ON c.id = b.child_id
        LEFT JOIN users u ON u.id = b.user_id
        WHERE 1=1
    """
    params: List[Any] = []
    if user_id:
        query += " AND b.user_id = ?"
        params.append(user_id)
    if start:
        query += " AND b.date >= ?"
        params.append(start[:10])
    if end:
        query += " AND b.date <= ?"
        params.append(end[:10])
    if child_id:
        query += " AND b.child_id = ?"
        params.append(child_id)
    order = "DESC" if newest_first else "ASC"
    query += f" ORDER BY b.date {order}, b.time {order}"
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_row_to_dict(row) for row in rows]


def delete_booking(booking_id: str, user_id: str) -> None:
    get_booking(booking_id, user_id=user_id)
    with get_connection() as conn:
        conn.execute("DELETE FROM bookings WHERE id = ?", (booking_id,))
        conn.commit()


def children_activity_summary(
    user_id: Optional[str],
    start: str,
    end: str,
    *,
    child_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """Children with booking/event counts inside the window."""
    query = """
        SELECT c.*,
               COUNT(DISTINCT b.id) AS total_bookings,
               COUNT(DISTINCT e.id) AS total_events
        FROM children c
        LEFT JOIN bookings b ON b.child_id = c.id AND b.date >= ? AND b.date <= ?
        LEFT JOIN child_events e ON e.child_id = c.id AND e.created_at >= ? AND e.created_at <= ?
        WHERE 1=1
    """
    params: List[Any] = [start[:10], end[:10], start, end]
    if user_id:
        query += " AND c.user_id = ?"
        params.append(user_id)
    if child_id:
        query += " AND c.id = ?"
        params.append(child_id)
    query += " GROUP BY c.id ORDER BY c.first_name, c.last_name"
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_child_row(row) for row in rows]


# ---------------------------------------------------------------------------
# Saved locations
# ---------------------------------------------------------------------------


def save_location(user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    now = _now_iso()
    location_id = new_id()
    with get_connection() as conn:
        conn.execute(
            """
            INSERT INTO location_data (
                id, user_id, suburb_name, state, median_house_price, median_unit_price,
                rental_price_house, rental_price_unit, vacancy_rate, notes, is_favorite,
                created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                location_id,
                user_id,
                data["suburb_name"],
                data.get("state"),
                data.get("median_house_price"),
                data.get("median_unit_price"),
                data.get("rental_price_house"),
                data.get("rental_price_unit"),
                data.get("vacancy_rate"),
                data.get("notes"),
                int(bool(data.get("is_favorite"))),
                now,
                now,
            ),
        )
        conn.commit()
        row = conn.execute("SELECT * FROM location_data WHERE id = ?", (location_id,)).fetchone()
    return _location_row(row)


def _location_row(row: sqlite3.Row) -> Dict[str, Any]:
    data = _row_to_dict(row)
    data["is_favorite"] = bool(data.get("is_favorite"))
    return data


def list_locations(
    user_id: str,
    *,
    suburb_name: Optional[str] = None,
    is_favorite: Any = _UNSET,
) -> List[Dict[str, Any]]:
    query = "SELECT * FROM location_data WHERE user_id = ?"
    params: List[Any] = [user_id]
    if suburb_name:
        query += " AND lower(suburb_name) LIKE ?"
        params.append(f"%{suburb_name.strip().lower()}%")
    if is_favorite is not _UNSET and is_favorite is not None:
        query += " AND is_favorite = ?"
        params.append(int(bool(is_favorite)))
    query += " ORDER BY created_at DESC"
    with get_connection() as conn:
        rows = conn.execute(query, params).fetchall()
    return [_location_row(row) for row in rows]
