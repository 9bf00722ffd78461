from tzdecode.storage.arrow import to_arrow_table, write_parquet

__all__ = ["to_arrow_table", "write_parquet"]
