"""SQLite CREATE TABLE statements for the factory tables and the assistant logs."""

from __future__ import annotations

TABLES: list[str] = [
    """
    CREATE TABLE IF NOT EXISTS customers (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        name_ar TEXT,
        phone TEXT,
        city TEXT,
        address TEXT,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS customer_products (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id TEXT NOT NULL,
        size_caption TEXT,
        width REAL,
        thickness REAL,
        raw_material TEXT,
        cutting_unit TEXT,
        is_printed INTEGER DEFAULT 0,
        notes TEXT DEFAULT '',
        status TEXT DEFAULT 'active',
        created_at TEXT NOT NULL,
        FOREIGN KEY (customer_id) REFERENCES customers(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS machines (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        name_ar TEXT,
        type TEXT NOT NULL,
        section_id TEXT,
        status TEXT NOT NULL DEFAULT 'active'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        order_number TEXT NOT NULL UNIQUE,
        customer_id TEXT NOT NULL,
        status TEXT NOT NULL DEFAULT 'waiting',
        delivery_date TEXT,
        notes TEXT DEFAULT '',
        created_by INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY (customer_id) REFERENCES customers(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS production_orders (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        production_order_number TEXT NOT NULL UNIQUE,
        order_id INTEGER NOT NULL,
        customer_product_id INTEGER NOT NULL,
        quantity_kg REAL NOT NULL,
        overrun_percentage REAL NOT NULL DEFAULT 5.0,
        final_quantity_kg REAL NOT NULL,
        produced_quantity_kg REAL NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'pending',
        created_at TEXT NOT NULL,
        FOREIGN KEY (order_id) REFERENCES orders(id),
        FOREIGN KEY (customer_product_id) REFERENCES customer_products(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS rolls (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        roll_number TEXT NOT NULL UNIQUE,
        production_order_id INTEGER NOT NULL,
        weight_kg REAL NOT NULL DEFAULT 0,
        stage TEXT NOT NULL DEFAULT 'film',
        status TEXT NOT NULL DEFAULT 'for_printing',
        machine_id TEXT,
        created_by INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY (production_order_id) REFERENCES production_orders(id),
        FOREIGN KEY (machine_id) REFERENCES machines(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS maintenance_requests (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        machine_id TEXT NOT NULL,
        request_type TEXT DEFAULT 'general',
        description TEXT DEFAULT '',
        priority TEXT DEFAULT 'medium',
        status TEXT DEFAULT 'pending',
        requested_by INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY (machine_id) REFERENCES machines(id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS quality_checks (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        target_type TEXT NOT NULL,
        target_id INTEGER NOT NULL,
        result TEXT NOT NULL DEFAULT 'pass',
        score INTEGER DEFAULT 100,
        notes TEXT DEFAULT '',
        checked_by INTEGER,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS waste (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        roll_id INTEGER,
        production_order_id INTEGER,
        quantity_wasted REAL NOT NULL DEFAULT 0,
        reason TEXT DEFAULT '',
        stage TEXT DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS learning_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        user_id INTEGER NOT NULL,
        action_type TEXT NOT NULL,
        context TEXT DEFAULT '',
        success INTEGER NOT NULL,
        execution_time_ms INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS notifications (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        title TEXT NOT NULL,
        message TEXT NOT NULL,
        priority TEXT DEFAULT 'normal',
        context_type TEXT DEFAULT '',
        context_id TEXT DEFAULT '',
        created_at TEXT NOT NULL
    )
    """,
]

# Identifiers that may be interpolated into SQL; values are always bound.
SAMPLE_COLUMNS: dict[str, frozenset[str]] = {
    "customers": frozenset({"id", "name", "name_ar", "city"}),
    "customer_products": frozenset({"id", "size_caption"}),
    "machines": frozenset({"id", "name", "type"}),
    "orders": frozenset({"id", "order_number"}),
    "production_orders": frozenset({"id", "production_order_number"}),
    "rolls": frozenset({"id", "roll_number"}),
}
