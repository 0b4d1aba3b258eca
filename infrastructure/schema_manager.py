"""
Schema and migration management for SQLite database.
"""

import logging
import sqlite3

logger = logging.getLogger("predictor_bot.schema")


class SchemaManager:
    """
    Owns schema creation and migrations.

    Call initialize() to ensure schema is present and migrations are applied.
    """

    def __init__(self, db_path: str, use_uri: bool = False):
        self.db_path = db_path
        self.use_uri = use_uri

    def initialize(self) -> None:
        """Create base schema and apply migrations."""
        logger.info(f"Initializing database schema: {self.db_path}")
        with self._connect() as conn:
            cursor = conn.cursor()
            self._create_base_schema(cursor)
            self._create_schema_migrations_table(cursor)
            self._run_migrations(cursor)
            conn.commit()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, uri=self.use_uri)
        conn.row_factory = sqlite3.Row
        if not self.use_uri:  # Skip WAL for in-memory databases
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=5000")
        return conn

    def _create_base_schema(self, cursor) -> None:
        # Accounts
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS players (
                discord_id INTEGER PRIMARY KEY,
                discord_username TEXT NOT NULL,
                balance REAL NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

        # Predictor matches
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS predictor_matches (
                match_id INTEGER PRIMARY KEY AUTOINCREMENT,
                game TEXT NOT NULL,
                team1_name TEXT NOT NULL,
                team1_logo_url TEXT NOT NULL DEFAULT '',
                team2_name TEXT NOT NULL,
                team2_logo_url TEXT NOT NULL DEFAULT '',
                start_time INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'upcoming',
                draft_completed INTEGER NOT NULL DEFAULT 0,
                draft_results TEXT,
                created_at INTEGER NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    # --- Migration helpers ---

    def _add_column_if_not_exists(self, cursor, table: str, column: str, column_type: str) -> None:
        existing = {row["name"] for row in cursor.execute(f"PRAGMA table_info({table})")}
        if column not in existing:
            cursor.execute(f"ALTER TABLE {table} ADD COLUMN {column} {column_type}")

    def _create_schema_migrations_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_migrations (
                name TEXT PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
            """
        )

    def _run_migrations(self, cursor) -> None:
        applied = {row["name"] for row in cursor.execute("SELECT name FROM schema_migrations")}
        for name, action in self._get_migrations():
            if name in applied:
                continue
            logger.info(f"Applying migration: {name}")
            action(cursor)
            cursor.execute(
                "INSERT INTO schema_migrations (name) VALUES (?)",
                (name,),
            )

    def _get_migrations(self):
        return [
            ("create_prediction_types_table", self._migration_create_prediction_types_table),
            ("create_predictor_bets_tables", self._migration_create_predictor_bets_tables),
            ("create_notifications_table", self._migration_create_notifications_table),
            ("add_start_notified_at", self._migration_add_start_notified_at),
            ("add_rewards_distributed_at", self._migration_add_rewards_distributed_at),
            ("add_predictor_indexes_v1", self._migration_add_predictor_indexes_v1),
        ]

    # --- Migrations ---

    def _migration_create_prediction_types_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS prediction_types (
                match_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                title TEXT NOT NULL DEFAULT '',
                options TEXT NOT NULL,
                position INTEGER NOT NULL DEFAULT 0,
                reward_pool INTEGER NOT NULL DEFAULT 0,
                bets_count INTEGER NOT NULL DEFAULT 0,
                closed INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (match_id, type),
                FOREIGN KEY (match_id) REFERENCES predictor_matches(match_id)
            )
            """
        )

    def _migration_create_predictor_bets_tables(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS predictor_bets (
                bet_id INTEGER PRIMARY KEY AUTOINCREMENT,
                discord_id INTEGER NOT NULL,
                match_id INTEGER NOT NULL,
                total_bet INTEGER NOT NULL,
                total_reward REAL NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                UNIQUE (discord_id, match_id),
                FOREIGN KEY (discord_id) REFERENCES players(discord_id),
                FOREIGN KEY (match_id) REFERENCES predictor_matches(match_id)
            )
            """
        )
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS bet_predictions (
                prediction_id INTEGER PRIMARY KEY AUTOINCREMENT,
                bet_id INTEGER NOT NULL,
                position INTEGER NOT NULL,
                type TEXT NOT NULL,
                choice TEXT NOT NULL,
                bet_amount INTEGER NOT NULL,
                odds REAL NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                reward REAL NOT NULL DEFAULT 0,
                FOREIGN KEY (bet_id) REFERENCES predictor_bets(bet_id)
            )
            """
        )

    def _migration_create_notifications_table(self, cursor) -> None:
        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS notifications (
                notification_id INTEGER PRIMARY KEY AUTOINCREMENT,
                discord_id INTEGER NOT NULL,
                kind TEXT NOT NULL,
                title TEXT NOT NULL,
                message TEXT NOT NULL,
                data TEXT,
                read INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                expires_at INTEGER NOT NULL
            )
            """
        )

    def _migration_add_start_notified_at(self, cursor) -> None:
        self._add_column_if_not_exists(cursor, "predictor_matches", "start_notified_at", "INTEGER")

    def _migration_add_rewards_distributed_at(self, cursor) -> None:
        self._add_column_if_not_exists(
            cursor, "predictor_matches", "rewards_distributed_at", "INTEGER"
        )

    def _migration_add_predictor_indexes_v1(self, cursor) -> None:
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_predictor_matches_status_start "
            "ON predictor_matches(status, start_time)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_predictor_matches_game ON predictor_matches(game)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_predictor_bets_match ON predictor_bets(match_id)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_predictor_bets_user_created "
            "ON predictor_bets(discord_id, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_bet_predictions_bet ON bet_predictions(bet_id)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_bet_predictions_type_choice "
            "ON bet_predictions(type, choice)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_notifications_user_read "
            "ON notifications(discord_id, read, created_at DESC)"
        )
        cursor.execute(
            "CREATE INDEX IF NOT EXISTS idx_notifications_expires ON notifications(expires_at)"
        )
