import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.discriminant_analysis import LinearDiscriminantAnalysis
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import GridSearchCV
from sklearn.svm import SVC
from sklearn.tree import DecisionTreeClassifier

from config import PipelineConfig
from create_folds import make_cv

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    build: Callable[[PipelineConfig], BaseEstimator]
    grid: Dict[str, List[Any]]


MODEL_SPECS: Dict[str, ModelSpec] = {
    'tree': ModelSpec(
        build=lambda cfg: DecisionTreeClassifier(random_state=cfg.seed),
        grid={'ccp_alpha': [0.0, 0.005, 0.02]},
    ),
    'rf': ModelSpec(
        build=lambda cfg: RandomForestClassifier(n_estimators=cfg.rf_trees, random_state=cfg.seed),
        grid={'max_features': ['sqrt', 0.5, 1.0]},
    ),
    'lda': ModelSpec(
        build=lambda cfg: LinearDiscriminantAnalysis(),
        grid={'solver': ['svd']},
    ),
    'svm': ModelSpec(
        build=lambda cfg: SVC(kernel='rbf', gamma='scale', random_state=cfg.seed),
        grid={'C': [0.25, 0.5, 1.0, 4.0]},
    ),
}


@dataclass(frozen=True)
class FittedModel:
    name: str
    estimator: BaseEstimator
    best_params: Dict[str, Any]
    cv_accuracy: float

    def predict(self, X) -> np.ndarray:
        return self.estimator.predict(X)


def fit_model(
    name: str,
    X,
    y,
    cfg: PipelineConfig,
    tuned: Optional[Dict[str, Any]] = None,
) -> FittedModel:
    """Grid-search one base model over repeated stratified CV and refit on all rows.

    Values in ``tuned`` pin the corresponding grid entries.
    """
    if name not in MODEL_SPECS:
        raise KeyError(f'unknown model {name!r}')
    spec = MODEL_SPECS[name]
    grid = dict(spec.grid)
    for key, value in (tuned or {}).items():
        grid[key] = [value]

    search = GridSearchCV(
        spec.build(cfg),
        param_grid=grid,
        scoring='accuracy',
        cv=make_cv(cfg),
        n_jobs=cfg.n_jobs,
        refit=True,
    )
    search.fit(X, y)
    logger.info('%s: cv accuracy %.4f with %s', name, search.best_score_, search.best_params_)
    return FittedModel(
        name=name,
        estimator=search.best_estimator_,
        best_params=dict(search.best_params_),
        cv_accuracy=float(search.best_score_),
    )


def fit_model_bank(
    X,
    y,
    cfg: PipelineConfig,
    tuned: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, FittedModel]:
    tuned = tuned or {}
    return {name: fit_model(name, X, y, cfg, tuned.get(name)) for name in cfg.models}


def load_tuned_params(output_dir: Path, seed: Optional[int] = None) -> Dict[str, Dict[str, Any]]:
    """Collect ``optuna_<name>_best.json`` results; with ``seed`` set, skip files tuned under another seed."""
    tuned = {}
    for name in MODEL_SPECS:
        path = Path(output_dir) / f'optuna_{name}_best.json'
        if not path.exists():
            continue
        with path.open('r', encoding='utf-8') as f:
            saved = json.load(f)
        if seed is not None and saved.get('seed') != seed:
            logger.warning('ignoring %s: tuned with seed %s, run uses seed %s', path.name, saved.get('seed'), seed)
            continue
        tuned[name] = saved.get('best_params', {})
        logger.info('using tuned params for %s from %s (seed %s)', name, path.name, saved.get('seed'))
    return tuned


def cv_summary(models: Dict[str, FittedModel]) -> Dict[str, Dict[str, Any]]:
    return {
        name: {'best_params': m.best_params, 'cv_accuracy': m.cv_accuracy}
        for name, m in models.items()
    }
