"""
Empirical-Bayes local false discovery rate.

Test statistics are mapped to a common z-scale, the marginal density f(z) is
estimated by Poisson regression of histogram counts on a cubic spline basis
(Lindsey's method), and the null component p0 * f0(z) is either the
theoretical N(0, 1) or an empirical N(delta, sigma^2) fitted by central
matching. The local fdr of each feature is p0 * f0(z) / f(z), capped at 1.

References:
    - Efron (2004). Large-scale simultaneous hypothesis testing: the choice
      of a null hypothesis. JASA 99:96-104.
    - Efron (2010). Large-Scale Inference, chapters 5-6.
"""

import logging
import warnings
from dataclasses import dataclass, field

import numpy as np
from scipy import stats
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import PoissonRegressor
from sklearn.pipeline import make_pipeline
from sklearn.preprocessing import SplineTransformer

logger = logging.getLogger(__name__)

# Smallest sample of finite z-scores for which a density fit is attempted
MIN_Z_FOR_FIT = 10

# |z| cap so that extreme tail probabilities stay finite
Z_CLIP = 38.0


@dataclass(frozen=True)
class LocalFdrResult:
    """Local fdr estimates and the fitted mixture summary.

    Attributes:
        z: Per-feature z-scores (NaN where undefined)
        local_fdr: Per-feature local fdr in [0, 1] (NaN where undefined)
        p0: Estimated null proportion
        delta: Null location
        sigma: Null scale
        null_type: "theoretical" or "empirical" (after any fallback)
        lower_threshold: Largest z below delta with fdr <= cutoff (NaN if none)
        upper_threshold: Smallest z above delta with fdr <= cutoff (NaN if none)
        fdr_cutoff: Cutoff used for the thresholds
        grid: z grid on which the fitted curves are reported
        mixture_density: Fitted f(z) on the grid
        null_density: p0 * f0(z) on the grid
    """

    z: np.ndarray
    local_fdr: np.ndarray
    p0: float
    delta: float
    sigma: float
    null_type: str
    lower_threshold: float
    upper_threshold: float
    fdr_cutoff: float
    grid: np.ndarray = field(default_factory=lambda: np.array([]))
    mixture_density: np.ndarray = field(default_factory=lambda: np.array([]))
    null_density: np.ndarray = field(default_factory=lambda: np.array([]))

    def summary(self) -> dict:
        return {
            "null_type": self.null_type,
            "p0": self.p0,
            "delta": self.delta,
            "sigma": self.sigma,
            "fdr_cutoff": self.fdr_cutoff,
            "lower_threshold": self.lower_threshold,
            "upper_threshold": self.upper_threshold,
            "n_below_cutoff": int(np.sum(self.local_fdr[np.isfinite(self.local_fdr)] <= self.fdr_cutoff)),
        }


def t_to_z(t_statistic: np.ndarray, df: np.ndarray) -> np.ndarray:
    """
    Probability-integral transform of t-statistics to standard-normal z-scores.

    z = Phi^-1(F_t(t; df)); the lower tail is used for t <= 0 and the upper
    tail for t > 0 so that large |t| does not round to 0 or 1.
    """
    t = np.asarray(t_statistic, dtype=float)
    dof = np.asarray(df, dtype=float)
    with np.errstate(invalid="ignore"):
        lower = stats.norm.ppf(stats.t.cdf(t, dof))
        upper = stats.norm.isf(stats.t.sf(t, dof))
    z = np.where(t <= 0, lower, upper)
    z = np.where(np.isnan(t) | np.isnan(dof), np.nan, z)
    return np.clip(z, -Z_CLIP, Z_CLIP)


def _fit_mixture_density(z: np.ndarray, n_bins: int, spline_df: int):
    """
    Lindsey's method: Poisson GLM of bin counts on a spline basis.

    Returns:
        Callable mapping z values to the fitted density f(z)
    """
    counts, edges = np.histogram(z, bins=n_bins)
    centers = (edges[:-1] + edges[1:]) / 2.0
    width = float(edges[1] - edges[0])

    degree = 3
    model = make_pipeline(
        SplineTransformer(
            n_knots=max(2, spline_df - degree + 2),
            degree=degree,
            knots="uniform",
            extrapolation="linear",
            include_bias=False,
        ),
        PoissonRegressor(alpha=1e-6, max_iter=1000),
    )
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", ConvergenceWarning)
        model.fit(centers[:, None], counts)
    if any(issubclass(w.category, ConvergenceWarning) for w in caught):
        logger.debug("Spline Poisson fit did not fully converge")

    n = float(z.size)

    def density(values: np.ndarray) -> np.ndarray:
        values = np.asarray(values, dtype=float)
        return model.predict(values[:, None]) / (n * width)

    return density, centers


def _central_matching(
    centers: np.ndarray, density, lo: float, hi: float
) -> tuple[float, float, float] | None:
    """
    Fit log f(z) ~ b0 + b1 z + b2 z^2 over the central region.

    Returns:
        (p0, delta, sigma), or None if the fit is not concave
    """
    central = centers[(centers >= lo) & (centers <= hi)]
    if central.size < 3:
        return None
    b2, b1, b0 = np.polyfit(central, np.log(density(central)), 2)
    if b2 >= 0:
        return None
    sigma2 = -1.0 / (2.0 * b2)
    delta = b1 * sigma2
    sigma = float(np.sqrt(sigma2))
    p0 = float(np.exp(b0 + delta**2 / (2.0 * sigma2)) * sigma * np.sqrt(2.0 * np.pi))
    return min(p0, 1.0), float(delta), sigma


def _theoretical_p0(z: np.ndarray, lo: float, hi: float, delta: float, sigma: float) -> float:
    """Null proportion from the share of z inside [lo, hi] relative to the null mass there."""
    mass = stats.norm.cdf(hi, delta, sigma) - stats.norm.cdf(lo, delta, sigma)
    if mass <= 0:
        return 1.0
    return float(min(1.0, np.mean((z >= lo) & (z <= hi)) / mass))


def _crossings(grid: np.ndarray, fdr: np.ndarray, delta: float, cutoff: float):
    below = fdr <= cutoff
    left = grid[(grid < delta) & below]
    right = grid[(grid > delta) & below]
    lower = float(left.max()) if left.size else np.nan
    upper = float(right.min()) if right.size else np.nan
    return lower, upper


def estimate_local_fdr(
    z: np.ndarray,
    null: str = "theoretical",
    n_bins: int = 120,
    spline_df: int = 7,
    central_quantile: float = 0.25,
    fdr_cutoff: float = 0.2,
    grid_size: int = 500,
) -> LocalFdrResult:
    """
    Estimate per-feature local fdr from z-scores.

    Args:
        z: Per-feature z-scores (NaN allowed; excluded from the fit)
        null: "theoretical" (N(0,1)) or "empirical" (central matching)
        n_bins: Maximum number of histogram bins (reduced for small samples)
        spline_df: Spline basis dimension for the density fit
        central_quantile: Central region is [q, 1 - q] quantiles of z
        fdr_cutoff: Local fdr level for the reported z thresholds
        grid_size: Points in the reporting grid

    Returns:
        LocalFdrResult (all-NaN estimates when too few finite z-scores)

    Raises:
        ValueError: If null is not recognized
    """
    null = (null or "").strip().lower()
    if null not in ("theoretical", "empirical"):
        raise ValueError(f"Unknown null='{null}'. Valid: 'theoretical', 'empirical'")

    z = np.asarray(z, dtype=float)
    ok = np.isfinite(z)
    zf = z[ok]

    if zf.size < MIN_Z_FOR_FIT or np.ptp(zf) <= 0:
        logger.warning(
            f"Local fdr not estimated: {zf.size} finite z-scores "
            f"(need >= {MIN_Z_FOR_FIT} with non-zero spread)"
        )
        return LocalFdrResult(
            z=z,
            local_fdr=np.full(z.shape, np.nan),
            p0=np.nan,
            delta=np.nan,
            sigma=np.nan,
            null_type=null,
            lower_threshold=np.nan,
            upper_threshold=np.nan,
            fdr_cutoff=fdr_cutoff,
        )

    bins = int(min(n_bins, max(10, zf.size // 5)))
    df_eff = int(min(spline_df, bins - 2))
    density, centers = _fit_mixture_density(zf, bins, df_eff)

    lo, hi = np.quantile(zf, [central_quantile, 1.0 - central_quantile])
    delta, sigma, null_type = 0.0, 1.0, "theoretical"
    p0 = None
    if null == "empirical":
        matched = _central_matching(centers, density, lo, hi)
        if matched is None:
            logger.warning("Central matching failed (non-concave log density); using N(0,1) null")
        else:
            p0, delta, sigma = matched
            null_type = "empirical"
    if p0 is None:
        p0 = _theoretical_p0(zf, lo, hi, delta, sigma)

    fdr = np.full(z.shape, np.nan)
    f_hat = density(zf)
    f0 = stats.norm.pdf(zf, delta, sigma)
    fdr[ok] = np.clip(p0 * f0 / f_hat, 0.0, 1.0)

    grid = np.linspace(zf.min(), zf.max(), grid_size)
    mix_grid = density(grid)
    null_grid = p0 * stats.norm.pdf(grid, delta, sigma)
    fdr_grid = np.clip(null_grid / mix_grid, 0.0, 1.0)
    lower, upper = _crossings(grid, fdr_grid, delta, fdr_cutoff)

    logger.info(
        f"Local fdr ({null_type} null): p0={p0:.3f}, delta={delta:.3f}, sigma={sigma:.3f}, "
        f"fdr<={fdr_cutoff:g} for z<={lower:.3f} or z>={upper:.3f}"
    )

    return LocalFdrResult(
        z=z,
        local_fdr=fdr,
        p0=float(p0),
        delta=float(delta),
        sigma=float(sigma),
        null_type=null_type,
        lower_threshold=lower,
        upper_threshold=upper,
        fdr_cutoff=float(fdr_cutoff),
        grid=grid,
        mixture_density=mix_grid,
        null_density=null_grid,
    )
