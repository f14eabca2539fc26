from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class IngestionConfig:
    """
    Configuration for the catalog ingestion pipeline.
    """

    source_path: Path = Path("course_recommender/data/raw/export.json")
    processed_data_dir: Path = Path("course_recommender/data/processed")
    learners_filename: str = "learners.csv"
    courses_filename: str = "courses.csv"
    enrollments_filename: str = "enrollments.csv"

    @property
    def learners_path(self) -> Path:
        return self.processed_data_dir / self.learners_filename

    @property
    def courses_path(self) -> Path:
        return self.processed_data_dir / self.courses_filename

    @property
    def enrollments_path(self) -> Path:
        return self.processed_data_dir / self.enrollments_filename


DEFAULT_INGESTION_CONFIG = IngestionConfig()
