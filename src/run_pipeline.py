"""Run the entire training and prediction pipeline.

Loads and cleans both tables, projects them with one shared PCA transform,
splits the training rows 80/20, fits the four base models and the stacked
random forest, reports resubstitution and held-out error, and writes one
prediction file per test row to `data/output/predictions/`.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np

import eda
from config import MODEL_NAMES, PipelineConfig
from create_folds import Partition, make_partition
from evaluate import HOLDOUT, RESUBSTITUTION, ConfusionReport, confusion_report, model_accuracies
from optimize import SEARCH_SPACES, tune_model
from predict import write_prediction_files, write_submission
from preprocess import PreparedData, prepare
from stacking import StackedEnsemble
from train import FittedModel, cv_summary, fit_model_bank, load_tuned_params

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    data: PreparedData
    partition: Partition
    models: Dict[str, FittedModel]
    ensemble: StackedEnsemble
    resubstitution: ConfusionReport
    holdout: ConfusionReport
    base_holdout_accuracy: Dict[str, float]
    test_predictions: np.ndarray
    prediction_files: List[Path]


def _dump(obj, path: Path) -> None:
    with path.open('w', encoding='utf-8') as f:
        json.dump(obj, f, ensure_ascii=False, indent=2)


def run(cfg: PipelineConfig, tune_trials: int = 0) -> PipelineResult:
    """Execute all pipeline steps sequentially."""
    out = cfg.output_dir
    out.mkdir(parents=True, exist_ok=True)

    eda.main(cfg)
    data = prepare(cfg)

    part = make_partition(data.y_train, cfg.train_fraction, cfg.seed)
    X_tr, y_tr = data.X_train[part.train_idx], data.y_train[part.train_idx]
    X_va, y_va = data.X_train[part.valid_idx], data.y_train[part.valid_idx]

    tuned = load_tuned_params(out, cfg.seed)
    if tune_trials > 0:
        for name in cfg.models:
            if name in SEARCH_SPACES:
                result = tune_model(name, X_tr, y_tr, cfg, tune_trials)
                _dump(result, out / f'optuna_{name}_best.json')
                tuned[name] = result['best_params']

    models = fit_model_bank(X_tr, y_tr, cfg, tuned)
    _dump(cv_summary(models), out / 'cv_results.json')

    ensemble = StackedEnsemble(models, cfg).fit(X_tr, y_tr)
    labels = sorted(set(data.y_train))

    resub = confusion_report(y_tr, ensemble.predict(X_tr), labels, kind=RESUBSTITUTION)
    holdout = confusion_report(y_va, ensemble.predict(X_va), labels, kind=HOLDOUT)
    base_acc = model_accuracies(models, X_va, y_va)
    logger.info('resubstitution error %.4f (optimistic, rows seen during fitting)', resub.error)
    logger.info('held-out error %.4f on %d validation rows', holdout.error, len(y_va))

    _dump(
        {
            'resubstitution': resub.to_dict(),
            'holdout': holdout.to_dict(),
            'base_model_holdout_accuracy': base_acc,
            'ensemble_cv_accuracy': ensemble.cv_accuracy_,
            'n_components': data.n_components,
            'explained_variance': data.explained_variance,
        },
        out / 'evaluation.json',
    )

    test_pred = ensemble.predict(data.X_test)
    files = write_prediction_files(test_pred, out / 'predictions')
    write_submission(data.test_ids, test_pred, out / 'submission.csv', cfg.id_col, cfg.label_col)

    return PipelineResult(
        data=data,
        partition=part,
        models=models,
        ensemble=ensemble,
        resubstitution=resub,
        holdout=holdout,
        base_holdout_accuracy=base_acc,
        test_predictions=test_pred,
        prediction_files=files,
    )


def main(argv: Optional[List[str]] = None) -> PipelineResult:
    import argparse
    p = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    p.add_argument('--data-dir', type=Path)
    p.add_argument('--output-dir', type=Path)
    p.add_argument('--train-file')
    p.add_argument('--test-file')
    p.add_argument('--seed', type=int)
    p.add_argument('--n-jobs', type=int)
    p.add_argument('--pca-threshold', type=float)
    p.add_argument('--train-fraction', type=float)
    p.add_argument('--cv-folds', type=int)
    p.add_argument('--cv-repeats', type=int)
    p.add_argument('--rf-trees', type=int)
    p.add_argument('--meta-trees', type=int)
    p.add_argument('--models', nargs='+', choices=MODEL_NAMES)
    p.add_argument('--tune-trials', type=int, default=0)
    p.add_argument('--log-level', default='INFO')
    args = p.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    cfg = PipelineConfig().with_overrides(
        data_dir=args.data_dir,
        output_dir=args.output_dir,
        train_file=args.train_file,
        test_file=args.test_file,
        seed=args.seed,
        n_jobs=args.n_jobs,
        pca_threshold=args.pca_threshold,
        train_fraction=args.train_fraction,
        cv_folds=args.cv_folds,
        cv_repeats=args.cv_repeats,
        rf_trees=args.rf_trees,
        meta_trees=args.meta_trees,
        models=tuple(args.models) if args.models else None,
    )
    return run(cfg, tune_trials=args.tune_trials)


if __name__ == '__main__':
    main()
