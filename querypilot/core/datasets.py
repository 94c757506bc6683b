"""
Local dataset catalog - read-only metadata lookups over ingested datasets.
Ingestion itself happens elsewhere; a dataset is any datasets/<id>/dataset.db file.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .db import DatasetStore
from .errors import DatasetNotFoundError
from .paths import get_dataset_root, get_project_paths


DATABASE_FILE_NAME = "dataset.db"
DEFAULT_MAIN_TABLE = "main_table"


class DatasetCatalog:
    def __init__(self, project_root: Optional[Union[str, Path]] = None):
        self.paths = get_project_paths(project_root)

    def list_datasets(self) -> List[str]:
        if not self.paths.datasets_root.is_dir():
            return []
        return sorted(
            entry.name for entry in self.paths.datasets_root.iterdir()
            if (entry / DATABASE_FILE_NAME).is_file()
        )

    def exists(self, dataset_id: str) -> bool:
        return self.database_path(dataset_id).is_file()

    def database_path(self, dataset_id: str) -> Path:
        return get_dataset_root(dataset_id, self.paths.project_root) / DATABASE_FILE_NAME

    def get_store(self, dataset_id: str) -> DatasetStore:
        if not self.exists(dataset_id):
            raise DatasetNotFoundError(dataset_id)
        return DatasetStore(self.database_path(dataset_id))

    def get_schema(self, dataset_id: str) -> Dict[str, Any]:
        """Tables and columns of a dataset, as sent to the planner."""
        store = self.get_store(dataset_id)
        return {"dataset_id": dataset_id, "tables": store.get_table_schemas()}

    def get_source_tables(self, dataset_id: str) -> List[str]:
        return self.get_store(dataset_id).list_tables()

    def main_table(self, dataset_id: str) -> str:
        """The canonical table name when present, else the first table."""
        tables = self.get_source_tables(dataset_id)
        if DEFAULT_MAIN_TABLE in tables or not tables:
            return DEFAULT_MAIN_TABLE
        return tables[0]
