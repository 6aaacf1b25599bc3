from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    classification_report,
    cohen_kappa_score,
    confusion_matrix,
)

RESUBSTITUTION = 'resubstitution'
HOLDOUT = 'holdout'


@dataclass
class ConfusionReport:
    kind: str
    labels: List[str]
    matrix: np.ndarray
    accuracy: float
    kappa: float
    per_class: Dict[str, Dict[str, float]] = field(default_factory=dict)

    @property
    def error(self) -> float:
        return 1.0 - self.accuracy

    @property
    def optimistic(self) -> bool:
        # measured on the rows the model was fit on
        return self.kind == RESUBSTITUTION

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'optimistic': self.optimistic,
            'accuracy': self.accuracy,
            'error': self.error,
            'kappa': self.kappa,
            'labels': self.labels,
            # rows are predictions, columns are reference labels
            'matrix': self.matrix.tolist(),
            'per_class': self.per_class,
        }


def confusion_report(y_true, y_pred, labels: Optional[List[str]] = None, kind: str = HOLDOUT) -> ConfusionReport:
    if kind not in (RESUBSTITUTION, HOLDOUT):
        raise ValueError(f'unknown report kind {kind!r}')
    y_true = np.asarray(y_true).astype(str)
    y_pred = np.asarray(y_pred).astype(str)
    if labels is None:
        labels = sorted(set(y_true) | set(y_pred))
    labels = [str(label) for label in labels]

    matrix = confusion_matrix(y_true, y_pred, labels=labels).T
    stats = classification_report(y_true, y_pred, labels=labels, output_dict=True, zero_division=0)
    per_class = {
        label: {
            'precision': float(stats[label]['precision']),
            'recall': float(stats[label]['recall']),
            'support': int(stats[label]['support']),
        }
        for label in labels
    }
    return ConfusionReport(
        kind=kind,
        labels=labels,
        matrix=matrix,
        accuracy=float(accuracy_score(y_true, y_pred)),
        kappa=float(cohen_kappa_score(y_true, y_pred, labels=labels)),
        per_class=per_class,
    )


def model_accuracies(models, X, y) -> Dict[str, float]:
    """Held-out accuracy of each base model, for comparison with the ensemble."""
    y = np.asarray(y).astype(str)
    return {name: float(accuracy_score(y, np.asarray(m.predict(X)).astype(str))) for name, m in models.items()}
