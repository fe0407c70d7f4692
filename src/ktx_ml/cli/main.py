"""
Main CLI entry point for the KTX-ML pipeline.

Provides subcommands:
  - ktx differential: Welch tests, BH q-values and local fdr
  - ktx classify: Lasso / Ridge / PCR selection and F1-optimal cutoff
  - ktx run: both stages in one run
"""

import click

from ktx_ml import __version__


def _common_options(func):
    """Options shared by every analysis command."""
    options = [
        click.option(
            "--config",
            "-c",
            type=click.Path(exists=True),
            help="Path to YAML configuration file",
        ),
        click.option(
            "--expression",
            "expression_file",
            type=click.Path(exists=True),
            default=None,
            help="Expression matrix (samples x genes, CSV/TSV/Parquet)",
        ),
        click.option(
            "--labels",
            "labels_file",
            type=click.Path(exists=True),
            default=None,
            help="Label table with sample_id and rejection columns",
        ),
        click.option(
            "--outdir",
            type=click.Path(),
            default=None,
            help="Output directory (default: results/)",
        ),
        click.option(
            "--seed",
            type=int,
            default=None,
            help="Run seed (overrides config)",
        ),
        click.option(
            "--override",
            multiple=True,
            help="Override config values (format: key=value or nested.key=value)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _invoke(ctx, runner, config, override, **cli_args):
    try:
        runner(
            config_file=config,
            cli_args=cli_args,
            overrides=list(override),
            verbose=ctx.obj.get("verbose", 0),
        )
    except (ValueError, FileNotFoundError) as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="ktx")
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (-v for DEBUG)",
)
@click.pass_context
def cli(ctx, verbose):
    """
    KTX-ML: Differential Expression and Classifier Selection for Kidney Rejection

    Per-gene Welch tests with FDR control, and cross-validated Lasso, Ridge
    and principal-component classifiers compared by grid AUC.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = min(verbose, 1)


@cli.command("differential")
@_common_options
@click.pass_context
def differential(ctx, config, override, **kwargs):
    """Per-feature Welch tests, BH q-values and local fdr."""
    from ktx_ml.cli.run_analysis import run_differential

    _invoke(ctx, run_differential, config, override, **kwargs)


@cli.command("classify")
@_common_options
@click.pass_context
def classify(ctx, config, override, **kwargs):
    """Train Lasso, Ridge and PCR; select on the test split; choose a cutoff."""
    from ktx_ml.cli.run_analysis import run_classify

    _invoke(ctx, run_classify, config, override, **kwargs)


@cli.command("run")
@_common_options
@click.pass_context
def run(ctx, config, override, **kwargs):
    """Differential expression and classifier selection in one run."""
    from ktx_ml.cli.run_analysis import run_all

    _invoke(ctx, run_all, config, override, **kwargs)


def main():
    """Entry point for console script."""
    cli(obj={})


if __name__ == "__main__":
    main()
