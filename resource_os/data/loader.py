"""
Record table loading from parquet or CSV files.
"""
import logging

import pandas as pd
from pathlib import Path
from typing import Optional, Dict, Any

from resource_os.config import config, TABLE_FILES
from resource_os.data.schema import empty_table, ensure_column_types, validate_schema


logger = logging.getLogger(__name__)


# Keys stay strings so "001" and "7" are not read back as numbers.
CSV_DTYPES = {"id": str, "employee_id": str, "project_id": str}


def _load_file(filepath: Path) -> Optional[pd.DataFrame]:
    """Load a single file, preferring parquet over csv."""
    parquet_path = filepath.with_suffix(".parquet")
    csv_path = filepath.with_suffix(".csv")

    if parquet_path.exists():
        return pd.read_parquet(parquet_path)
    elif csv_path.exists():
        return pd.read_csv(csv_path, dtype=CSV_DTYPES)
    return None


def read_table(table_name: str, data_dir: Optional[Path] = None) -> pd.DataFrame:
    """
    Read and type one record table from data_dir.

    A missing file gives an empty typed table; missing required columns raise
    SchemaValidationError.
    """
    data_dir = Path(data_dir) if data_dir is not None else config.data_dir
    filepath = data_dir / TABLE_FILES[table_name]
    df = _load_file(filepath)

    if df is None:
        logger.warning("No %s table found in %s", table_name, data_dir)
        return empty_table(table_name)

    validate_schema(df, table_name, strict=True)
    df = ensure_column_types(df)
    logger.info("Loaded %s: %d rows from %s", table_name, len(df), data_dir)
    return df


def get_data_status(data_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Get status of all data files."""
    data_dir = Path(data_dir) if data_dir is not None else config.data_dir
    status = {}

    for key, filename in TABLE_FILES.items():
        parquet_path = data_dir / f"{filename}.parquet"
        csv_path = data_dir / f"{filename}.csv"
        status[key] = {
            "parquet_exists": parquet_path.exists(),
            "csv_exists": csv_path.exists(),
        }

    return status
