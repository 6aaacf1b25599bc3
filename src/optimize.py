import json
import logging
from typing import Any, Callable, Dict, Optional

import numpy as np
import optuna
from sklearn.model_selection import cross_val_score

from config import PipelineConfig
from create_folds import make_cv, make_partition
from train import MODEL_SPECS

logger = logging.getLogger(__name__)


SEARCH_SPACES: Dict[str, Callable[[optuna.Trial], Dict[str, Any]]] = {
    'tree': lambda trial: {
        'ccp_alpha': trial.suggest_float('ccp_alpha', 1e-5, 0.05, log=True),
        'min_samples_leaf': trial.suggest_int('min_samples_leaf', 1, 20),
    },
    'rf': lambda trial: {
        'max_features': trial.suggest_float('max_features', 0.1, 1.0),
        'min_samples_leaf': trial.suggest_int('min_samples_leaf', 1, 10),
    },
    'svm': lambda trial: {
        'C': trial.suggest_float('C', 0.05, 100.0, log=True),
        'gamma': trial.suggest_float('gamma', 1e-4, 1.0, log=True),
    },
}


def tune_model(name: str, X, y, cfg: PipelineConfig, n_trials: int = 30) -> Dict[str, Any]:
    if name not in SEARCH_SPACES:
        raise KeyError(f'no search space for model {name!r}')
    space = SEARCH_SPACES[name]
    cv = make_cv(cfg)
    optuna.logging.set_verbosity(optuna.logging.WARNING)

    def objective(trial: optuna.Trial) -> float:
        model = MODEL_SPECS[name].build(cfg).set_params(**space(trial))
        scores = cross_val_score(model, X, y, cv=cv, scoring='accuracy', n_jobs=cfg.n_jobs)
        return float(np.mean(scores))

    study = optuna.create_study(
        direction='maximize', sampler=optuna.samplers.TPESampler(seed=cfg.seed)
    )
    study.optimize(objective, n_trials=n_trials)
    logger.info('%s: best cv accuracy %.4f with %s', name, study.best_value, study.best_params)
    return {'best_params': study.best_params, 'best_score': float(study.best_value), 'seed': cfg.seed}


def main(n_trials: int = 30, cfg: Optional[PipelineConfig] = None) -> Dict[str, Dict[str, Any]]:
    cfg = cfg or PipelineConfig()
    out = cfg.output_dir
    path = out / 'train_preprocessed.npz'
    if not path.exists():
        raise RuntimeError(f'{path} not found; run preprocess.py first')
    data = np.load(path)
    X = data['X']
    y = data['y']

    # tune on the training subset only so the validation rows stay unseen
    part = make_partition(y, cfg.train_fraction, cfg.seed)
    X, y = X[part.train_idx], y[part.train_idx]

    results = {}
    for name in cfg.models:
        if name not in SEARCH_SPACES:
            continue
        results[name] = tune_model(name, X, y, cfg, n_trials)
        with (out / f'optuna_{name}_best.json').open('w', encoding='utf-8') as f:
            json.dump(results[name], f, ensure_ascii=False, indent=2)
    return results


if __name__ == '__main__':
    import argparse
    p = argparse.ArgumentParser()
    p.add_argument('--trials', type=int, default=30)
    args = p.parse_args()
    logging.basicConfig(level=logging.INFO)
    main(n_trials=args.trials)
