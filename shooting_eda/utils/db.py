import duckdb


class DatabaseManager:
    """Short-lived DuckDB connection used for SQL aggregation over DataFrames."""

    def __init__(self, db_path: str = ":memory:", memory_limit: str = "1GB"):
        self.db_path = db_path
        self.memory_limit = memory_limit
        self.conn = None

    def connect(self):
        if not self.conn:
            self.conn = duckdb.connect(self.db_path)
            self.conn.execute(f"SET memory_limit = '{self.memory_limit}'")
        return self.conn

    def close(self):
        if self.conn:
            self.conn.close()
            self.conn = None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def register(self, name, frame):
        self.connect().register(name, frame)

    def q_to_df(self, sql, params=None):
        """Standardizes DuckDB output to lowercase for Seaborn/Pandas compatibility."""
        df = self.connect().execute(sql, params or []).df()
        df.columns = [c.lower() for c in df.columns]
        return df
