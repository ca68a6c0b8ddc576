"""Database schema definitions."""

from __future__ import annotations

import sqlite3

PLAYER_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS players (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    passport_code TEXT NOT NULL UNIQUE,
    username TEXT NOT NULL,
    display_name TEXT,
    gender TEXT,
    birth_date TEXT,
    ranking_points REAL NOT NULL DEFAULT 0,
    pickle_points INTEGER NOT NULL DEFAULT 0,
    total_matches INTEGER NOT NULL DEFAULT 0,
    matches_won INTEGER NOT NULL DEFAULT 0,
    last_match_date TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (gender IN ('male', 'female') OR gender IS NULL)
);
"""

PLAYER_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_players_username ON players (username);",
]

COMPETITION_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS competitions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    points_multiplier REAL NOT NULL DEFAULT 1.0,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (points_multiplier > 0)
);
"""

TOURNAMENT_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS tournaments (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL UNIQUE,
    description TEXT,
    start_date TEXT,
    source_file TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
"""

MATCH_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS matches (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    tournament_id INTEGER,
    player_one_id INTEGER NOT NULL,
    player_two_id INTEGER NOT NULL,
    player_one_partner_id INTEGER,
    player_two_partner_id INTEGER,
    score_player_one INTEGER NOT NULL,
    score_player_two INTEGER NOT NULL,
    winner_team INTEGER NOT NULL,
    format_type TEXT NOT NULL,
    match_date TEXT,
    location TEXT,
    notes TEXT,
    points_awarded REAL NOT NULL DEFAULT 0,
    pickle_points_awarded INTEGER NOT NULL DEFAULT 0,
    cross_gender_bonus INTEGER NOT NULL DEFAULT 0,
    idempotency_key TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (winner_team IN (1, 2)),
    CHECK (format_type IN ('singles', 'doubles')),
    FOREIGN KEY (tournament_id) REFERENCES tournaments(id) ON DELETE SET NULL,
    FOREIGN KEY (player_one_id) REFERENCES players(id),
    FOREIGN KEY (player_two_id) REFERENCES players(id),
    FOREIGN KEY (player_one_partner_id) REFERENCES players(id),
    FOREIGN KEY (player_two_partner_id) REFERENCES players(id)
);
"""

MATCH_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_matches_tournament ON matches (tournament_id);",
    "CREATE INDEX IF NOT EXISTS idx_matches_date ON matches (match_date);",
]

AUDIT_LOG_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS audit_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    event_type TEXT NOT NULL,
    file_name TEXT,
    message TEXT NOT NULL,
    level TEXT NOT NULL DEFAULT 'info',
    context_json TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    CHECK (level IN ('info', 'warning', 'error'))
);
"""

AUDIT_LOG_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_audit_log_file_name ON audit_log (file_name);",
]


SCHEMA_SQL = [
    PLAYER_TABLE_SQL,
    COMPETITION_TABLE_SQL,
    TOURNAMENT_TABLE_SQL,
    MATCH_TABLE_SQL,
    AUDIT_LOG_TABLE_SQL,
    *PLAYER_INDEXES_SQL,
    *MATCH_INDEXES_SQL,
    *AUDIT_LOG_INDEXES_SQL,
]


def initialize_schema(connection: sqlite3.Connection) -> None:
    """Initialize database schema if needed."""
    with connection:
        for statement in SCHEMA_SQL:
            connection.execute(statement)
