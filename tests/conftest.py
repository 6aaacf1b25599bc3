import numpy as np
import pandas as pd
import pytest

from config import PipelineConfig

METADATA = [
    'X', 'user_name', 'raw_timestamp_part_1', 'raw_timestamp_part_2',
    'cvtd_timestamp', 'new_window', 'num_window',
]
SENSORS = [f'sensor{i}' for i in range(1, 9)]
CLASSES = ['A', 'B', 'C', 'D', 'E']


def make_frame(n_rows: int, seed: int, labelled: bool = True) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    # three latent directions mixed into eight correlated sensors
    centers = np.random.default_rng(0).normal(0.0, 3.0, size=(len(CLASSES), 3))
    mixing = np.random.default_rng(1).normal(0.0, 1.0, size=(3, len(SENSORS)))
    cls = np.arange(n_rows) % len(CLASSES)
    latent = centers[cls] + rng.normal(0.0, 0.5, size=(n_rows, 3))
    sensors = latent @ mixing + rng.normal(0.0, 0.05, size=(n_rows, len(SENSORS)))

    df = pd.DataFrame({
        'X': np.arange(1, n_rows + 1),
        'user_name': rng.choice(['adelmo', 'carlitos', 'pedro'], size=n_rows),
        'raw_timestamp_part_1': 1322489000 + np.arange(n_rows),
        'raw_timestamp_part_2': rng.integers(0, 999999, size=n_rows),
        'cvtd_timestamp': '05/12/2011 11:23',
        'new_window': 'no',
        'num_window': rng.integers(1, 800, size=n_rows),
    })
    for i, name in enumerate(SENSORS):
        df[name] = sensors[:, i]
    # summary-statistic columns that are mostly empty or "NA"
    kurtosis = np.full(n_rows, np.nan)
    kurtosis[::25] = 1.5
    df['kurtosis_roll_belt'] = kurtosis
    df['max_picth_arm'] = ['NA' if i % 10 else '3.2' for i in range(n_rows)]

    if labelled:
        df['classe'] = [CLASSES[c] for c in cls]
    else:
        df['problem_id'] = np.arange(1, n_rows + 1)
    return df


@pytest.fixture
def data_dir(tmp_path):
    d = tmp_path / 'input'
    d.mkdir()
    make_frame(100, seed=10).to_csv(d / 'pml-training.csv', index=False)
    make_frame(20, seed=11, labelled=False).to_csv(d / 'pml-testing.csv', index=False)
    return d


@pytest.fixture
def cfg(data_dir, tmp_path):
    return PipelineConfig(
        data_dir=data_dir,
        output_dir=tmp_path / 'output',
        cv_folds=2,
        cv_repeats=2,
        n_jobs=1,
        rf_trees=25,
        meta_trees=25,
    )
