"""
CLI implementation for the differential, classify and run commands.

Each run_* function resolves the configuration, builds one RunContext, loads
and aligns the inputs, and writes its artifacts under config.outdir.
"""

import logging
from pathlib import Path

from ktx_ml.config.context import RunContext
from ktx_ml.config.loader import load_analysis_config, log_config_summary
from ktx_ml.config.schema import AnalysisConfig
from ktx_ml.data.io import ExpressionData, load_expression_data
from ktx_ml.evaluation.differential import DifferentialResult, differential_expression
from ktx_ml.evaluation.holdout import ClassificationResult, classify
from ktx_ml.evaluation.reports import OutputDirectories, ResultsWriter
from ktx_ml.utils.logging import log_section, setup_logger


def _resolve_config(
    config_file: str | None,
    cli_args: dict | None,
    overrides: list[str] | None,
) -> AnalysisConfig:
    """Merge defaults, YAML and CLI options (explicit CLI values win)."""
    all_overrides = list(overrides) if overrides else []
    for key, value in (cli_args or {}).items():
        if value is not None:
            all_overrides.append(f"{key}={value}")
    return load_analysis_config(config_file=config_file, overrides=all_overrides)


def _prepare(
    title: str,
    config_file: str | None,
    cli_args: dict | None,
    overrides: list[str] | None,
    verbose: int,
) -> tuple[RunContext, ExpressionData, ResultsWriter, logging.Logger]:
    log_level = 20 - (verbose * 10)  # INFO=20, DEBUG=10
    logger = setup_logger("ktx_ml", level=log_level)
    log_section(logger, title)

    config = _resolve_config(config_file, cli_args, overrides)
    if config.expression_file is None or config.labels_file is None:
        raise ValueError("Both expression_file and labels_file must be provided")

    ctx = RunContext.from_config(config)
    writer = ResultsWriter(OutputDirectories.create(config.outdir))
    writer.save_resolved_config(config)
    log_config_summary(config)

    logger.info(f"Loading expression data: {config.expression_file}")
    data = load_expression_data(config.expression_file, config.labels_file)
    logger.info(
        f"Aligned {data.n_samples} samples x {data.n_features:,} features "
        f"({int(data.y.sum())} positive)"
    )
    return ctx, data, writer, logger


def _differential_stage(
    ctx: RunContext, data: ExpressionData, writer: ResultsWriter, logger: logging.Logger
) -> DifferentialResult:
    cfg = ctx.config
    log_section(logger, "Differential expression")
    result = differential_expression(
        data.X,
        data.y,
        data.feature_names,
        testing=cfg.testing,
        local_fdr=cfg.local_fdr,
        n_jobs=cfg.n_jobs,
    )
    lfdr = result.local_fdr
    logger.info(
        f"Local fdr ({lfdr.null_type} null): p0={lfdr.p0:.3f}, "
        f"z thresholds=({lfdr.lower_threshold:.3f}, {lfdr.upper_threshold:.3f})"
    )
    writer.save_differential(result)
    return result


def _classification_stage(
    ctx: RunContext, data: ExpressionData, writer: ResultsWriter, logger: logging.Logger
) -> ClassificationResult:
    log_section(logger, "Classifier selection")
    result = classify(data, ctx)
    writer.save_classification(result, data.feature_names, data.sample_ids)
    return result


def run_differential(
    config_file: str | None = None,
    cli_args: dict | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> DifferentialResult:
    """Welch tests, BH q-values and local fdr over the full matrix."""
    ctx, data, writer, logger = _prepare(
        "KTX-ML Differential Expression", config_file, cli_args, overrides, verbose
    )
    result = _differential_stage(ctx, data, writer, logger)
    logger.info(f"Results written to {Path(ctx.config.outdir)}")
    return result


def run_classify(
    config_file: str | None = None,
    cli_args: dict | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> ClassificationResult:
    """Lasso/Ridge/PCR selection on one split, plus the F1-optimal cutoff."""
    ctx, data, writer, logger = _prepare(
        "KTX-ML Classifier Selection", config_file, cli_args, overrides, verbose
    )
    result = _classification_stage(ctx, data, writer, logger)
    logger.info(f"Results written to {Path(ctx.config.outdir)}")
    return result


def run_all(
    config_file: str | None = None,
    cli_args: dict | None = None,
    overrides: list[str] | None = None,
    verbose: int = 0,
) -> tuple[DifferentialResult, ClassificationResult]:
    """Both stages against one RunContext and one output directory."""
    ctx, data, writer, logger = _prepare(
        "KTX-ML Full Analysis", config_file, cli_args, overrides, verbose
    )
    de_result = _differential_stage(ctx, data, writer, logger)
    cls_result = _classification_stage(ctx, data, writer, logger)
    logger.info(f"Results written to {Path(ctx.config.outdir)}")
    return de_result, cls_result
