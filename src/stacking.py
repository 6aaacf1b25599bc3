import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestClassifier
from sklearn.model_selection import GridSearchCV
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import OneHotEncoder

from config import PipelineConfig
from create_folds import make_cv
from train import FittedModel

logger = logging.getLogger(__name__)


class StackedEnsemble:
    """Random forest over the labels predicted by the base models.

    The meta frame has one column per base model, in the order the models were
    given; predict refuses frames whose columns differ from the fitted ones.
    """

    def __init__(self, models: Dict[str, FittedModel], cfg: PipelineConfig):
        if not models:
            raise ValueError('stacking needs at least one base model')
        self.models = dict(models)
        self.cfg = cfg
        self.columns_: Optional[List[str]] = None
        self.classes_: Optional[np.ndarray] = None
        self.meta_: Optional[Pipeline] = None
        self.cv_accuracy_: Optional[float] = None

    def meta_frame(self, X) -> pd.DataFrame:
        return pd.DataFrame({name: model.predict(X) for name, model in self.models.items()})

    def fit(self, X, y) -> 'StackedEnsemble':
        frame = self.meta_frame(X)
        y = np.asarray(y)
        self.columns_ = list(frame.columns)
        self.classes_ = np.unique(np.concatenate([y, frame.to_numpy().ravel()]))

        pipe = Pipeline([
            ('encode', OneHotEncoder(
                categories=[self.classes_] * len(self.columns_),
                handle_unknown='ignore',
                sparse_output=False,
            )),
            ('model', RandomForestClassifier(n_estimators=self.cfg.meta_trees, random_state=self.cfg.seed)),
        ])
        search = GridSearchCV(
            pipe,
            param_grid={'model__max_features': ['sqrt', 1.0]},
            scoring='accuracy',
            cv=make_cv(self.cfg),
            n_jobs=self.cfg.n_jobs,
        )
        search.fit(frame, y)
        self.meta_ = search.best_estimator_
        self.cv_accuracy_ = float(search.best_score_)
        logger.info('ensemble over %s: cv accuracy %.4f', self.columns_, self.cv_accuracy_)
        return self

    def predict_frame(self, frame: pd.DataFrame) -> np.ndarray:
        if self.meta_ is None:
            raise RuntimeError('ensemble is not fitted')
        if list(frame.columns) != self.columns_:
            raise ValueError(
                f'meta frame columns {list(frame.columns)} do not match fitted columns {self.columns_}'
            )
        return self.meta_.predict(frame)

    def predict(self, X) -> np.ndarray:
        return self.predict_frame(self.meta_frame(X))
