from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Tuple

BASE_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = BASE_DIR / 'data' / 'input'
OUTPUT_DIR = BASE_DIR / 'data' / 'output'

MODEL_NAMES = ('tree', 'rf', 'lda', 'svm')


@dataclass(frozen=True)
class PipelineConfig:
    """Every knob of a pipeline run. Seed and n_jobs are the only ones that matter day to day."""

    data_dir: Path = DATA_DIR
    output_dir: Path = OUTPUT_DIR
    train_file: str = 'pml-training.csv'
    test_file: str = 'pml-testing.csv'
    label_col: str = 'classe'
    id_col: str = 'problem_id'
    na_values: Tuple[str, ...] = ('', 'NA')
    n_metadata_cols: int = 7
    pca_threshold: float = 0.95
    train_fraction: float = 0.8
    cv_folds: int = 4
    cv_repeats: int = 4
    seed: int = 42
    n_jobs: int = -1
    rf_trees: int = 500
    meta_trees: int = 500
    models: Tuple[str, ...] = field(default=MODEL_NAMES)

    def __post_init__(self):
        object.__setattr__(self, 'data_dir', Path(self.data_dir))
        object.__setattr__(self, 'output_dir', Path(self.output_dir))
        object.__setattr__(self, 'models', tuple(self.models))

        if not 0.0 < self.pca_threshold <= 1.0:
            raise ValueError(f'pca_threshold must be in (0, 1], got {self.pca_threshold}')
        if not 0.0 < self.train_fraction < 1.0:
            raise ValueError(f'train_fraction must be in (0, 1), got {self.train_fraction}')
        if self.cv_folds < 2:
            raise ValueError('cv_folds must be at least 2')
        if self.cv_repeats < 1:
            raise ValueError('cv_repeats must be at least 1')
        if self.n_metadata_cols < 0:
            raise ValueError('n_metadata_cols cannot be negative')
        if not self.models:
            raise ValueError('at least one base model is required')
        unknown = [m for m in self.models if m not in MODEL_NAMES]
        if unknown:
            raise ValueError(f'unknown models {unknown}; expected a subset of {list(MODEL_NAMES)}')

    @property
    def train_path(self) -> Path:
        return self.data_dir / self.train_file

    @property
    def test_path(self) -> Path:
        return self.data_dir / self.test_file

    def with_overrides(self, **kwargs) -> 'PipelineConfig':
        # argparse leaves unset flags as None
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})
