import sqlite3

from .config import DEFAULT_CONFIG


class ParserDB:
    def __init__(self, db_path="data.db"):
        self.conn = sqlite3.connect(db_path)
        self.create_table()

    def create_table(self):
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS stats (
                category TEXT,
                value TEXT,
                count INTEGER,
                PRIMARY KEY (category, value)
            )
        """)
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS config (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        self.conn.commit()

    # Stats
    def add(self, category, value):
        self.conn.execute("""
            INSERT INTO stats (category, value, count)
            VALUES (?, ?, 1)
            ON CONFLICT(category, value) DO UPDATE SET count = count + 1
        """, (category, value))

    def record(self, info):
        for category in ("mentions", "emotions"):
            for value in getattr(info, category):
                self.add(category, value)
        self.conn.commit()

    def get_top(self, category, limit=5):
        cur = self.conn.cursor()
        cur.execute("""
            SELECT value, count FROM stats
            WHERE category = ?
            ORDER BY count DESC, value
            LIMIT ?
        """, (category, limit))
        return cur.fetchall()

    def clear_stats(self):
        self.conn.execute("DELETE FROM stats")
        self.conn.commit()

    # Configuration
    def set_config(self, key, value):
        self.conn.execute("""
            INSERT INTO config (key, value)
            VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """, (key, str(value)))
        self.conn.commit()

    def reset_config(self):
        self.conn.execute("DELETE FROM config")
        self.conn.commit()

    def get_all_config(self):
        cur = self.conn.cursor()
        cur.execute("SELECT key, value FROM config")
        config = {key: value for key, value in cur.fetchall()}
        for item in DEFAULT_CONFIG:
            config.setdefault(item["key"], item["default"])
        return config

    def close(self):
        self.conn.close()
