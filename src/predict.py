import logging
from pathlib import Path
from typing import Iterable, List

import pandas as pd

logger = logging.getLogger(__name__)


def write_prediction_files(labels: Iterable, output_dir, prefix: str = 'problem_id_') -> List[Path]:
    """Write each label, bare, to its own ``<prefix><i>.txt`` (1-based).

    A failed write raises; files written before it stay on disk.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i, label in enumerate(labels, 1):
        path = output_dir / f'{prefix}{i}.txt'
        path.write_text(str(label), encoding='utf-8')
        paths.append(path)
    logger.info('wrote %d prediction files to %s', len(paths), output_dir)
    return paths


def write_submission(ids, labels, path, id_col: str = 'problem_id', label_col: str = 'classe') -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    submission = pd.DataFrame({id_col: list(ids), label_col: list(labels)})
    submission.to_csv(path, index=False)
    return path
