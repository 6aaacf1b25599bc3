import json
import logging
from typing import Any, Dict, Optional

import pandas as pd

from config import PipelineConfig
from preprocess import load_table

logger = logging.getLogger(__name__)


def summarize(df: pd.DataFrame, label_col: str = 'classe') -> Dict[str, Any]:
    missing = df.isnull().sum()
    summary = {
        'n_rows': int(df.shape[0]),
        'n_cols': int(df.shape[1]),
        'missing_by_column': {str(k): int(v) for k, v in missing.items()},
        'columns_with_missing': [str(c) for c in missing[missing > 0].index],
    }
    if label_col in df.columns:
        dist = df[label_col].astype(str).value_counts(normalize=True).sort_index()
        summary['label_distribution'] = {k: float(v) for k, v in dist.items()}
    return summary


def main(cfg: Optional[PipelineConfig] = None) -> Dict[str, Any]:
    cfg = cfg or PipelineConfig()
    cfg.output_dir.mkdir(parents=True, exist_ok=True)

    df = load_table(cfg.train_path, cfg.na_values)
    summary = summarize(df, cfg.label_col)

    output_file = cfg.output_dir / 'eda_summary.json'
    with output_file.open('w', encoding='utf-8') as f:
        json.dump(summary, f, ensure_ascii=False, indent=2)

    logger.info(
        'EDA summary saved to %s (%d of %d columns have missing values)',
        output_file, len(summary['columns_with_missing']), summary['n_cols'],
    )
    return summary


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    main()
