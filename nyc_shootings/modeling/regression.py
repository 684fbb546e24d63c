"""
NYC Shootings - Monthly Count Regressions

Ordinary least squares fits of a borough's monthly incident counts:

    Model A: count ~ MONTH          (month-only series)
    Model B: count ~ MONTH + YEAR   (year-and-month series)

Model A pools every year into one point per month, so any multi-year trend
is folded into the month effect. Model B adds YEAR as a covariate and
separates seasonality from that trend.

Usage:
    from nyc_shootings.modeling.regression import fit_month_model

    result = fit_month_model(month_series, borough="BROOKLYN")
    print(result.summary)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

logger = logging.getLogger(__name__)

MONTH_FORMULA = "count ~ MONTH"
MONTH_YEAR_FORMULA = "count ~ MONTH + YEAR"


class InsufficientDataError(ValueError):
    """Raised when a series cannot support the requested model."""


@dataclass
class RegressionResult:
    """Fitted linear model and its headline statistics."""

    name: str
    formula: str
    borough: str | None
    nobs: int
    params: dict[str, float]
    bse: dict[str, float]
    pvalues: dict[str, float]
    rsquared: float
    rsquared_adj: float
    summary: str
    fitted: Any = field(default=None, repr=False)

    def predict(self, data: pd.DataFrame) -> pd.Series:
        """Predicted counts for the given MONTH (and YEAR) values."""
        return pd.Series(np.asarray(self.fitted.predict(data)), index=data.index)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for logging and reports."""
        return {
            "name": self.name,
            "formula": self.formula,
            "borough": self.borough,
            "nobs": self.nobs,
            "params": self.params,
            "bse": self.bse,
            "pvalues": self.pvalues,
            "rsquared": self.rsquared,
            "rsquared_adj": self.rsquared_adj,
        }


def formula_terms(formula: str) -> tuple[str, list[str]]:
    """Split "y ~ a + b" into ("y", ["a", "b"])."""
    response, rhs = formula.split("~", 1)
    return response.strip(), [term.strip() for term in rhs.split("+")]


def fit_ols(
    series: pd.DataFrame,
    formula: str,
    name: str,
    borough: str | None = None,
    min_residual_dof: int = 1,
) -> RegressionResult:
    """
    Fit an OLS model after checking the series can support it.

    A model with k parameters (intercept included) needs at least
    k + min_residual_dof observations and a full-rank design matrix.

    Args:
        series: Monthly count series
        formula: Patsy formula, e.g. "count ~ MONTH"
        name: Model name used in logs and reports
        borough: Borough the series was filtered to
        min_residual_dof: Observations required beyond the parameter count

    Returns:
        RegressionResult with the fitted model

    Raises:
        InsufficientDataError: too few observations or rank-deficient design
        ValueError: a formula variable is not a column of the series
    """
    response, regressors = formula_terms(formula)
    missing = [c for c in [response, *regressors] if c not in series.columns]
    if missing:
        raise ValueError(f"{name}: series is missing columns {missing}")

    # Checked before statsmodels sees the data; it cannot build a zero-row model
    nobs = len(series[[response, *regressors]].dropna())
    n_params = len(regressors) + 1
    required = n_params + min_residual_dof
    if nobs < required:
        raise InsufficientDataError(
            f"{name}: {nobs} observations, need at least {required} "
            f"to fit {n_params} parameters"
        )

    model = smf.ols(formula, data=series)

    rank = int(np.linalg.matrix_rank(model.exog))
    if rank < n_params:
        raise InsufficientDataError(
            f"{name}: design matrix is rank-deficient (rank {rank} < {n_params} parameters)"
        )

    fitted = model.fit()

    logger.info(
        f"Fitted {name}: R^2={fitted.rsquared:.4f}, n={nobs}",
        extra={"model": name, "formula": formula, "borough": borough, "nobs": nobs},
    )

    return RegressionResult(
        name=name,
        formula=formula,
        borough=borough,
        nobs=int(fitted.nobs),
        params={k: float(v) for k, v in fitted.params.items()},
        bse={k: float(v) for k, v in fitted.bse.items()},
        pvalues={k: float(v) for k, v in fitted.pvalues.items()},
        rsquared=float(fitted.rsquared),
        rsquared_adj=float(fitted.rsquared_adj),
        summary=str(fitted.summary(title=f"{name}: {formula}")),
        fitted=fitted,
    )


def fit_month_model(
    series: pd.DataFrame,
    borough: str | None = None,
    min_residual_dof: int = 1,
) -> RegressionResult:
    """Model A: count ~ MONTH on a month-only series."""
    return fit_ols(series, MONTH_FORMULA, "Model A", borough, min_residual_dof)


def fit_month_year_model(
    series: pd.DataFrame,
    borough: str | None = None,
    min_residual_dof: int = 1,
) -> RegressionResult:
    """Model B: count ~ MONTH + YEAR on a year-and-month series."""
    return fit_ols(series, MONTH_YEAR_FORMULA, "Model B", borough, min_residual_dof)
