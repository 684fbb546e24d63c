from nyc_shootings.modeling.regression import (
    InsufficientDataError,
    RegressionResult,
    fit_month_model,
    fit_month_year_model,
    fit_ols,
)

__all__ = [
    "InsufficientDataError",
    "RegressionResult",
    "fit_ols",
    "fit_month_model",
    "fit_month_year_model",
]
