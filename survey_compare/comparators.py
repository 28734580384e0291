"""Mixed-effects regressions and two-sample tests between collection methods."""

import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf
from scipy import stats

from .config import ABUNDANCE, METHOD, SITE
from .errors import ConvergenceError, InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WelchResult:
    statistic: float
    pvalue: float
    mean_a: float
    mean_b: float
    n_a: int
    n_b: int


@dataclass(frozen=True)
class MixedModelResult:
    formula: str
    n_obs: int
    n_groups: int
    coefficients: pd.DataFrame   # index: fixed-effect term; coef, std_err, t, p_value
    group_variance: float
    converged: bool
    warnings: list = field(default_factory=list)

    @property
    def terms(self):
        return list(self.coefficients.index)

    def term(self, name):
        return self.coefficients.loc[name]


def model_formula(response=ABUNDANCE, covariate=None, interaction=True, method=METHOD):
    formula = f"{response} ~ C({method})"
    if covariate:
        formula += f" {'*' if interaction else '+'} {covariate}"
    return formula


def fit_mixed_model(long, covariate=None, interaction=True, response=ABUNDANCE,
                    group=SITE, method=METHOD, reml=True):
    """Linear mixed model of `response` on collection method with a random intercept per site.

    covariate: optional continuous column (e.g. "size"), entered as a main
        effect plus its interaction with method unless interaction=False.

    Raises ConvergenceError when the optimiser does not converge or the solver
    fails; warnings emitted by statsmodels during the fit are logged and kept
    on the result.
    """
    formula = model_formula(response, covariate, interaction, method)
    needed = [response, method, group] + ([covariate] if covariate else [])
    data = long.dropna(subset=needed).reset_index(drop=True)

    model = smf.mixedlm(formula, data=data, groups=data[group])
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            result = model.fit(reml=reml)
        except (np.linalg.LinAlgError, ValueError) as exc:
            messages = [str(w.message) for w in caught]
            raise ConvergenceError(f"Mixed model fit failed: {exc}", formula=formula, warnings=messages) from exc
    messages = [str(w.message) for w in caught]
    for msg in messages:
        logger.warning("%s: %s", formula, msg)

    if not result.converged:
        raise ConvergenceError("Mixed model did not converge", formula=formula, warnings=messages)

    fe = result.fe_params.index
    tvalues = pd.Series(result.tvalues, index=result.params.index)
    pvalues = pd.Series(result.pvalues, index=result.params.index)
    coefficients = pd.DataFrame({
        "coef": result.fe_params,
        "std_err": pd.Series(result.bse_fe, index=fe),
        "t": tvalues.loc[fe],
        "p_value": pvalues.loc[fe],
    })

    return MixedModelResult(
        formula=formula,
        n_obs=int(result.nobs),
        n_groups=len(model.group_labels),
        coefficients=coefficients,
        group_variance=float(np.asarray(result.cov_re)[0, 0]),
        converged=bool(result.converged),
        warnings=messages,
    )


def welch_test(a, b):
    """Welch's unequal-variance t-test of mean(a) vs mean(b)."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    a = a[np.isfinite(a)]
    b = b[np.isfinite(b)]
    if len(a) < 2 or len(b) < 2:
        raise InsufficientDataError(f"Welch test needs at least two values per sample (got {len(a)} and {len(b)})")

    t, p = stats.ttest_ind(a, b, equal_var=False, nan_policy="omit")
    return WelchResult(
        statistic=float(t),
        pvalue=float(p),
        mean_a=float(a.mean()),
        mean_b=float(b.mean()),
        n_a=len(a),
        n_b=len(b),
    )
