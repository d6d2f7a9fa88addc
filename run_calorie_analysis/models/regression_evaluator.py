"""
Comparative regression of calories against duration and pace.

Seven OLS models are fit with statsmodels on the full and the outlier-filtered
record sets. Separately, a frozen coefficient snapshot of the moving-time model
and the moving-time x moving-pace interaction model is applied to every record
to count how often the single-predictor model lands closer to the observed
calories.
"""

import logging
from collections import namedtuple
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd
import statsmodels.api as sm
from sklearn.metrics import mean_absolute_error

from run_calorie_analysis.exceptions import FitError

logger = logging.getLogger(__name__)

RESPONSE = 'CALORIES'

ModelSpec = namedtuple('ModelSpec', ['name', 'predictors', 'dataset', 'interaction'])

MODEL_SPECS = [
    ModelSpec('calories~moving_time', ('MOVING_MIN',), 'full', False),
    ModelSpec('calories~elapsed_time', ('ELAPSED_MIN',), 'full', False),
    ModelSpec('calories~moving_pace', ('MOVING_PACE',), 'full', False),
    ModelSpec('calories~elapsed_pace', ('ELAPSED_PACE',), 'full', False),
    ModelSpec('calories~moving_pace_filtered', ('MOVING_PACE',), 'filtered', False),
    ModelSpec('calories~elapsed_pace_filtered', ('ELAPSED_PACE',), 'filtered', False),
    ModelSpec('calories~moving_time*moving_pace_filtered', ('MOVING_MIN', 'MOVING_PACE'), 'filtered', True),
]


def interaction_term(predictors: Sequence[str]) -> str:
    return ':'.join(predictors)


def build_design(data: pd.DataFrame, predictors: Sequence[str], interaction: bool = False) -> pd.DataFrame:
    """Design matrix with a leading 'const' column and an optional cross term."""
    X = data[list(predictors)].astype(float)
    if interaction:
        X = X.assign(**{interaction_term(predictors): X[predictors[0]] * X[predictors[1]]})
    return sm.add_constant(X, has_constant='add')


@dataclass(frozen=True, eq=False)
class ModelFit:
    """Statistics of one fitted OLS model."""

    name: str
    predictors: tuple
    dataset: str
    params: pd.Series
    pvalues: pd.Series
    bse: pd.Series
    rsquared: float
    rsquared_adj: float
    nobs: int
    interaction: bool = False
    response: str = RESPONSE

    def predict(self, data: pd.DataFrame) -> pd.Series:
        X = build_design(data, self.predictors, self.interaction)
        return X[self.params.index].dot(self.params)


def fit_model(data: pd.DataFrame, predictors: Sequence[str], name: str,
              dataset: str = 'full', interaction: bool = False) -> ModelFit:
    """
    Fit an OLS model of calories on the given predictors.

    Rows where the response or any predictor is missing or non-finite are
    dropped first, which is how zero-distance runs (NaN pace) stay out of
    the pace models.

    Raises:
        FitError: a column is absent, a predictor has no values or no
            variation, the design is rank deficient, or too few rows remain.
    """
    predictors = tuple(predictors)
    if interaction and len(predictors) != 2:
        raise ValueError("An interaction model takes exactly two predictors")

    absent = [col for col in (RESPONSE,) + predictors if col not in data.columns]
    if absent:
        raise FitError(f"{name}: missing columns {absent}")

    subset = data[[RESPONSE, *predictors]].apply(pd.to_numeric, errors='coerce')
    subset = subset.replace([np.inf, -np.inf], np.nan)

    for col in predictors:
        if subset[col].notna().sum() == 0:
            raise FitError(f"{name}: predictor {col} has no values")

    subset = subset.dropna()
    X = build_design(subset, predictors, interaction)
    n_params = X.shape[1]

    # At least one residual degree of freedom is needed for p-values
    if len(subset) <= n_params:
        raise FitError(f"{name}: {len(subset)} usable observations for {n_params} parameters")

    for col in predictors:
        if subset[col].nunique() < 2:
            raise FitError(f"{name}: predictor {col} is constant")

    if np.linalg.matrix_rank(X.to_numpy()) < n_params:
        raise FitError(f"{name}: design matrix is singular")

    result = sm.OLS(subset[RESPONSE], X).fit()

    return ModelFit(
        name=name,
        predictors=predictors,
        dataset=dataset,
        params=result.params,
        pvalues=result.pvalues,
        bse=result.bse,
        rsquared=float(result.rsquared),
        rsquared_adj=float(result.rsquared_adj),
        nobs=int(result.nobs),
        interaction=interaction,
    )


@dataclass(frozen=True)
class FrozenCoefficients:
    """
    Snapshot of the two models compared record by record.

    interaction: calories = a + b*t + c*p + d*t*p
    simple:      calories = e + f*t

    where t is moving minutes and p is moving pace (min/mile). The defaults
    are a historical fit and are applied as-is to current data.
    """

    interaction_intercept: float = 18.3325
    interaction_time: float = 42.1752
    interaction_pace: float = -0.8559
    interaction_time_pace: float = -2.8583
    simple_intercept: float = 0.0
    simple_time: float = 19.9026

    def predict_interaction(self, moving_minutes, moving_pace):
        return (self.interaction_intercept
                + self.interaction_time * moving_minutes
                + self.interaction_pace * moving_pace
                + self.interaction_time_pace * moving_minutes * moving_pace)

    def predict_simple(self, moving_minutes):
        return self.simple_intercept + self.simple_time * moving_minutes

    def predict_calories(self, moving_minutes, distance_miles):
        # Calories for a planned run under both models
        moving_pace = moving_minutes / distance_miles if distance_miles > 0 else np.nan
        return {
            'moving_pace': moving_pace,
            'simple': self.predict_simple(moving_minutes),
            'interaction': self.predict_interaction(moving_minutes, moving_pace),
        }

    @classmethod
    def from_fits(cls, simple_fit: ModelFit, interaction_fit: ModelFit) -> 'FrozenCoefficients':
        # Take a new snapshot from live fits; only done when asked for explicitly
        time_col, pace_col = interaction_fit.predictors
        params = interaction_fit.params
        return cls(
            interaction_intercept=float(params['const']),
            interaction_time=float(params[time_col]),
            interaction_pace=float(params[pace_col]),
            interaction_time_pace=float(params[interaction_term(interaction_fit.predictors)]),
            simple_intercept=float(simple_fit.params.get('const', 0.0)),
            simple_time=float(simple_fit.params[simple_fit.predictors[0]]),
        )


FROZEN_COEFFICIENTS = FrozenCoefficients()


@dataclass(frozen=True, eq=False)
class ModelComparison:
    table: pd.DataFrame
    simple_wins: int
    evaluated: int
    excluded: int
    fraction: float
    scored_fraction: float
    simple_mae: float
    interaction_mae: float
    coefficients: FrozenCoefficients


def compare_frozen_models(records: pd.DataFrame,
                          coefficients: FrozenCoefficients = FROZEN_COEFFICIENTS) -> ModelComparison:
    """
    Score both frozen models against observed calories in one pass.

    SIMPLE_WINS is True where the interaction model's absolute error is larger
    than the moving-time model's. Records without calories or without a finite
    moving time and pace cannot be scored: they are counted in `excluded` and
    count as not won, so `fraction` is over every record. `scored_fraction`
    is the same count over the scored records only.
    """
    moving_min = pd.to_numeric(records['MOVING_MIN'], errors='coerce')
    moving_pace = pd.to_numeric(records['MOVING_PACE'], errors='coerce')
    calories = pd.to_numeric(records[RESPONSE], errors='coerce')

    evaluable = np.isfinite(moving_min) & np.isfinite(moving_pace) & np.isfinite(calories)
    if not evaluable.any():
        raise FitError("No records with calories, moving time and pace to compare")

    t = moving_min[evaluable]
    p = moving_pace[evaluable]
    observed = calories[evaluable]

    simple_pred = coefficients.predict_simple(t)
    interaction_pred = coefficients.predict_interaction(t, p)
    simple_error = (observed - simple_pred).abs()
    interaction_error = (observed - interaction_pred).abs()

    table = pd.DataFrame({
        'MOVING_MIN': t,
        'MOVING_PACE': p,
        RESPONSE: observed,
        'SIMPLE_PRED': simple_pred,
        'INTERACTION_PRED': interaction_pred,
        'SIMPLE_ABS_ERROR': simple_error,
        'INTERACTION_ABS_ERROR': interaction_error,
        'SIMPLE_WINS': interaction_error > simple_error,
    })

    simple_wins = int(table['SIMPLE_WINS'].sum())
    evaluated = len(table)

    return ModelComparison(
        table=table,
        simple_wins=simple_wins,
        evaluated=evaluated,
        excluded=len(records) - evaluated,
        fraction=simple_wins / len(records),
        scored_fraction=simple_wins / evaluated,
        simple_mae=float(mean_absolute_error(observed, simple_pred)),
        interaction_mae=float(mean_absolute_error(observed, interaction_pred)),
        coefficients=coefficients,
    )


class RegressionEvaluator:

    def __init__(self, records: pd.DataFrame, filtered_records: pd.DataFrame,
                 coefficients: FrozenCoefficients = FROZEN_COEFFICIENTS):
        self.records = records
        self.filtered_records = filtered_records
        self.coefficients = coefficients
        self.fits: Dict[str, ModelFit] = {}
        self.comparison: Optional[ModelComparison] = None

    def fit_all(self) -> Dict[str, ModelFit]:
        """Fit every model in MODEL_SPECS on its dataset."""
        logger.info("Fitting regression models...")
        datasets = {'full': self.records, 'filtered': self.filtered_records}

        for spec in MODEL_SPECS:
            model_fit = fit_model(datasets[spec.dataset], spec.predictors, spec.name,
                                  dataset=spec.dataset, interaction=spec.interaction)
            self.fits[spec.name] = model_fit
            logger.info(f"  {spec.name:<45} n = {model_fit.nobs:>5,}  R² = {model_fit.rsquared:.3f}")

        return self.fits

    def summary_table(self) -> pd.DataFrame:
        """One row per model term: estimate, standard error, p-value and fit R²."""
        rows = []
        for model_fit in self.fits.values():
            for term, coef in model_fit.params.items():
                rows.append({
                    'MODEL': model_fit.name,
                    'DATASET': model_fit.dataset,
                    'TERM': term,
                    'COEF': coef,
                    'STD_ERR': model_fit.bse[term],
                    'P_VALUE': model_fit.pvalues[term],
                    'R2': model_fit.rsquared,
                    'ADJ_R2': model_fit.rsquared_adj,
                    'N': model_fit.nobs,
                })
        return pd.DataFrame(rows, columns=['MODEL', 'DATASET', 'TERM', 'COEF', 'STD_ERR',
                                           'P_VALUE', 'R2', 'ADJ_R2', 'N'])

    def compare_frozen_models(self, records: Optional[pd.DataFrame] = None) -> ModelComparison:
        records = self.records if records is None else records
        self.comparison = compare_frozen_models(records, self.coefficients)

        logger.info(f"Moving-time model closer on {self.comparison.simple_wins:,} of "
                    f"{len(records):,} runs ({self.comparison.fraction:.1%})")
        if self.comparison.excluded:
            logger.info(f"  {self.comparison.excluded:,} runs without calories or pace "
                        f"were not scored and count as not closer")

        return self.comparison
