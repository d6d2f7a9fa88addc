from run_calorie_analysis.models.regression_evaluator import (
    FROZEN_COEFFICIENTS,
    MODEL_SPECS,
    FrozenCoefficients,
    ModelComparison,
    ModelFit,
    RegressionEvaluator,
    compare_frozen_models,
    fit_model,
)

__all__ = [
    "FROZEN_COEFFICIENTS",
    "MODEL_SPECS",
    "FrozenCoefficients",
    "ModelComparison",
    "ModelFit",
    "RegressionEvaluator",
    "compare_frozen_models",
    "fit_model",
]
