import json

import pandas as pd
import pytest

import eda
import run_pipeline
from config import PipelineConfig


def test_end_to_end(cfg):
    result = run_pipeline.run(cfg)
    out = cfg.output_dir

    assert len(result.partition.train_idx) == 80
    assert len(result.partition.valid_idx) == 20
    assert list(result.models) == ['tree', 'rf', 'lda', 'svm']

    files = sorted(p.name for p in (out / 'predictions').iterdir())
    assert files == sorted(f'problem_id_{i}.txt' for i in range(1, 21))
    for i in range(1, 21):
        assert (out / 'predictions' / f'problem_id_{i}.txt').read_text(encoding='utf-8') in set('ABCDE')

    evaluation = json.loads((out / 'evaluation.json').read_text(encoding='utf-8'))
    assert evaluation['resubstitution']['optimistic'] is True
    assert evaluation['holdout']['optimistic'] is False
    assert evaluation['holdout']['error'] == pytest.approx(result.holdout.error)
    assert sum(map(sum, evaluation['holdout']['matrix'])) == 20
    assert set(evaluation['base_model_holdout_accuracy']) == {'tree', 'rf', 'lda', 'svm'}
    assert evaluation['explained_variance'] >= 0.95

    cv_results = json.loads((out / 'cv_results.json').read_text(encoding='utf-8'))
    assert set(cv_results) == {'tree', 'rf', 'lda', 'svm'}

    submission = pd.read_csv(out / 'submission.csv')
    assert submission['problem_id'].tolist() == list(range(1, 21))
    assert submission['classe'].tolist() == list(result.test_predictions)
    assert (out / 'eda_summary.json').exists()


def test_resubstitution_error_repeats_with_same_seed(cfg):
    small = cfg.with_overrides(models=('tree', 'lda'))
    first = run_pipeline.run(small)
    second = run_pipeline.run(small)
    assert first.resubstitution.error == second.resubstitution.error
    assert first.holdout.error == second.holdout.error
    assert list(first.test_predictions) == list(second.test_predictions)


def test_cli_flags(data_dir, tmp_path):
    out = tmp_path / 'cli'
    result = run_pipeline.main([
        '--data-dir', str(data_dir),
        '--output-dir', str(out),
        '--seed', '7',
        '--n-jobs', '1',
        '--cv-folds', '2',
        '--cv-repeats', '1',
        '--rf-trees', '10',
        '--meta-trees', '10',
        '--models', 'lda', 'tree',
        '--tune-trials', '2',
        '--log-level', 'warning',
    ])
    assert list(result.models) == ['lda', 'tree']
    assert (out / 'optuna_tree_best.json').exists()
    assert len(result.prediction_files) == 20


def test_eda_summary(cfg):
    summary = eda.main(cfg)
    assert summary['n_rows'] == 100
    assert set(summary['columns_with_missing']) == {'kurtosis_roll_belt', 'max_picth_arm'}
    assert summary['label_distribution'] == {k: 0.2 for k in 'ABCDE'}


def test_config_validation():
    with pytest.raises(ValueError):
        PipelineConfig(pca_threshold=0.0)
    with pytest.raises(ValueError):
        PipelineConfig(train_fraction=1.0)
    with pytest.raises(ValueError):
        PipelineConfig(models=('tree', 'knn'))
    with pytest.raises(ValueError):
        PipelineConfig(models=())
    assert PipelineConfig().with_overrides(seed=None, n_jobs=2).n_jobs == 2
