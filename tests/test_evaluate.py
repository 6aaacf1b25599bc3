import numpy as np
import pytest

from evaluate import confusion_report, model_accuracies


def test_confusion_report_counts_and_error():
    report = confusion_report(['A', 'A', 'B', 'B'], ['A', 'B', 'B', 'B'], labels=['A', 'B'])
    assert report.accuracy == pytest.approx(0.75)
    assert report.error == pytest.approx(0.25)
    # rows are predictions, columns reference labels
    assert report.matrix.tolist() == [[1, 0], [1, 2]]
    assert report.per_class['A']['recall'] == pytest.approx(0.5)
    assert report.per_class['B']['precision'] == pytest.approx(2 / 3)
    assert report.per_class['B']['support'] == 2
    assert not report.optimistic


def test_resubstitution_is_flagged_optimistic():
    report = confusion_report(['A', 'B', 'C'], ['A', 'B', 'C'], kind='resubstitution')
    assert report.optimistic
    assert report.error == 0.0
    d = report.to_dict()
    assert d['optimistic'] is True
    assert d['labels'] == ['A', 'B', 'C']
    assert d['kappa'] == pytest.approx(1.0)


def test_labels_default_to_union_and_unknown_kind_fails():
    report = confusion_report(['A', 'B'], ['A', 'C'])
    assert report.labels == ['A', 'B', 'C']
    assert report.matrix.shape == (3, 3)
    with pytest.raises(ValueError):
        confusion_report(['A'], ['A'], kind='training')


class _Constant:
    def __init__(self, label):
        self.label = label

    def predict(self, X):
        return np.full(len(X), self.label)


def test_model_accuracies():
    X = np.zeros((4, 2))
    acc = model_accuracies({'a': _Constant('A'), 'b': _Constant('B')}, X, ['A', 'A', 'A', 'B'])
    assert acc == {'a': 0.75, 'b': 0.25}
