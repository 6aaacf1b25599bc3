import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import pandas as pd
from sklearn.model_selection import RepeatedStratifiedKFold, train_test_split

from config import PipelineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Partition:
    train_idx: np.ndarray
    valid_idx: np.ndarray

    def distribution(self, y) -> Dict[str, Dict[str, float]]:
        y = pd.Series(np.asarray(y))
        return {
            'all': y.value_counts(normalize=True).sort_index().to_dict(),
            'train': y.iloc[self.train_idx].value_counts(normalize=True).sort_index().to_dict(),
            'valid': y.iloc[self.valid_idx].value_counts(normalize=True).sort_index().to_dict(),
        }


def make_partition(y, train_fraction: float = 0.8, seed: int = 42) -> Partition:
    """Stratified train/validation split of row positions, stable for a given seed."""
    y = np.asarray(y)
    idx = np.arange(len(y))
    train_idx, valid_idx = train_test_split(
        idx, train_size=train_fraction, stratify=y, random_state=seed, shuffle=True
    )
    logger.info('partition: %d training rows, %d validation rows', len(train_idx), len(valid_idx))
    return Partition(np.sort(train_idx), np.sort(valid_idx))


def make_cv(cfg: PipelineConfig) -> RepeatedStratifiedKFold:
    return RepeatedStratifiedKFold(
        n_splits=cfg.cv_folds, n_repeats=cfg.cv_repeats, random_state=cfg.seed
    )


def main(cfg: Optional[PipelineConfig] = None) -> Partition:
    cfg = cfg or PipelineConfig()
    output_dir = cfg.output_dir
    output_dir.mkdir(parents=True, exist_ok=True)

    data = np.load(output_dir / 'train_preprocessed.npz')
    y = data['y']
    part = make_partition(y, cfg.train_fraction, cfg.seed)

    record = {
        'seed': cfg.seed,
        'train_fraction': cfg.train_fraction,
        'train_idx': part.train_idx.tolist(),
        'valid_idx': part.valid_idx.tolist(),
        'label_distribution': part.distribution(y),
    }
    with open(output_dir / 'partition.json', 'w', encoding='utf-8') as f:
        json.dump(record, f, ensure_ascii=False, indent=2)
    return part


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
