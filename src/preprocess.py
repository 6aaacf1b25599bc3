import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
from pandas.api.types import is_numeric_dtype
from sklearn.decomposition import PCA
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from config import PipelineConfig

logger = logging.getLogger(__name__)


@dataclass
class PreparedData:
    X_train: np.ndarray
    y_train: np.ndarray
    X_test: np.ndarray
    test_ids: np.ndarray
    feature_names: List[str]
    reducer: Pipeline

    @property
    def n_components(self) -> int:
        return int(self.reducer.named_steps['pca'].n_components_)

    @property
    def explained_variance(self) -> float:
        return float(self.reducer.named_steps['pca'].explained_variance_ratio_.sum())


def load_table(path, na_values: Iterable[str] = ('', 'NA')) -> pd.DataFrame:
    """Read a delimited file; only the given sentinel strings count as missing."""
    df = pd.read_csv(path, na_values=list(na_values), keep_default_na=False, low_memory=False)
    logger.info('loaded %s: %d rows x %d cols', Path(path).name, df.shape[0], df.shape[1])
    return df


def clean_table(df: pd.DataFrame, n_metadata_cols: int = 7) -> pd.DataFrame:
    """Drop the leading metadata columns, then every column holding a missing value."""
    sensors = df.iloc[:, n_metadata_cols:]
    complete = sensors.loc[:, sensors.notna().all()]
    dropped = sensors.shape[1] - complete.shape[1]
    if dropped:
        logger.info('dropped %d columns with missing values', dropped)
    return complete.copy()


def split_features(
    df: pd.DataFrame, label_col: str, id_col: Optional[str] = None
) -> Tuple[pd.DataFrame, Optional[pd.Series]]:
    """Separate the feature columns from the label (training) or the row id (test)."""
    target = None
    if label_col in df.columns:
        target = df[label_col]
    elif id_col is not None and id_col in df.columns:
        target = df[id_col]
    drop = [c for c in (label_col, id_col) if c is not None and c in df.columns]
    X = df.drop(columns=drop)

    if X.shape[1] == 0:
        raise ValueError('no feature columns left after cleaning')
    non_numeric = X.select_dtypes(exclude='number').columns.tolist()
    if non_numeric:
        raise ValueError(f'non-numeric feature columns after cleaning: {non_numeric}')
    return X, target


def fit_reducer(train_X: pd.DataFrame, test_X: pd.DataFrame, threshold: float = 0.95) -> Pipeline:
    """Fit center/scale/PCA on the union of training and test rows.

    Both frames must carry exactly the same columns in the same order; nothing
    is truncated or realigned here.
    """
    train_cols = list(train_X.columns)
    test_cols = list(test_X.columns)
    if train_cols != test_cols:
        only_train = sorted(set(train_cols) - set(test_cols))
        only_test = sorted(set(test_cols) - set(train_cols))
        raise ValueError(
            'training and test feature columns differ '
            f'(train only: {only_train}, test only: {only_test}, '
            f'same set but different order: {not only_train and not only_test})'
        )

    combined = pd.concat([train_X, test_X], axis=0, ignore_index=True)
    n_components = threshold if threshold < 1.0 else None
    reducer = Pipeline([
        ('scale', StandardScaler()),
        ('pca', PCA(n_components=n_components, svd_solver='full')),
    ])
    reducer.fit(combined.to_numpy(dtype=float))

    pca = reducer.named_steps['pca']
    logger.info(
        'PCA kept %d of %d components (%.3f of variance)',
        pca.n_components_, combined.shape[1], pca.explained_variance_ratio_.sum(),
    )
    return reducer


def reduce(reducer: Pipeline, X: pd.DataFrame) -> np.ndarray:
    return reducer.transform(X.to_numpy(dtype=float))


def prepare(cfg: PipelineConfig) -> PreparedData:
    """Load, clean and project both tables with one shared transform."""
    train = clean_table(load_table(cfg.train_path, cfg.na_values), cfg.n_metadata_cols)
    test = clean_table(load_table(cfg.test_path, cfg.na_values), cfg.n_metadata_cols)

    train_X, y = split_features(train, cfg.label_col, cfg.id_col)
    if y is None or y.name != cfg.label_col:
        raise ValueError(f'training data has no {cfg.label_col!r} column after cleaning')
    test_X, ids = split_features(test, cfg.label_col, cfg.id_col)
    if ids is None:
        ids = pd.Series(np.arange(1, len(test_X) + 1), name=cfg.id_col)

    reducer = fit_reducer(train_X, test_X, cfg.pca_threshold)
    return PreparedData(
        X_train=reduce(reducer, train_X),
        y_train=y.to_numpy(dtype=str),
        X_test=reduce(reducer, test_X),
        test_ids=ids.to_numpy() if is_numeric_dtype(ids) else ids.to_numpy(dtype=str),
        feature_names=list(train_X.columns),
        reducer=reducer,
    )


def main(cfg: Optional[PipelineConfig] = None) -> PreparedData:
    cfg = cfg or PipelineConfig()
    output_dir = cfg.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    data = prepare(cfg)

    np.savez_compressed(output_dir / 'train_preprocessed.npz', X=data.X_train, y=data.y_train)
    np.savez_compressed(output_dir / 'test_preprocessed.npz', X=data.X_test, ids=data.test_ids)

    info = {
        'feature_names': data.feature_names,
        'n_features': len(data.feature_names),
        'n_components': data.n_components,
        'explained_variance': data.explained_variance,
        'pca_threshold': cfg.pca_threshold,
        'n_train': int(data.X_train.shape[0]),
        'n_test': int(data.X_test.shape[0]),
    }
    with open(output_dir / 'preprocess_info.json', 'w', encoding='utf-8') as f:
        json.dump(info, f, ensure_ascii=False, indent=2)
    return data


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
