"""Command-line interface for bsatriage.

This module defines the Click-based CLI for the bsatriage package,
providing commands for ranking assembly contigs by bulk segregant
variant evidence.
"""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from bsatriage import __version__
from bsatriage.analysis.pipeline import run_analysis
from bsatriage.core.config import AnalysisSettings, InputFiles
from bsatriage.core.models import CrossType, InputFormat, ScoreKind
from bsatriage.io.vcf import filtering, iter_vcf_pileup_lines
from bsatriage.io.writers import rank_contigs, write_selected_variants, write_variant_buckets_tsv
from bsatriage.utils.errors import BSATriageError, display_warning, format_no_candidates_error
from bsatriage.utils.logging import (
    console,
    print_error,
    print_file_created,
    print_info,
    print_stats,
    print_success,
    print_warning,
    setup_logging,
)
from bsatriage.utils.validation import validate_inputs, validate_output_tag, validate_settings

# Context settings for all commands
CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}

TOP_CONTIGS_SHOWN = 10

PLOT_NAMES = {ScoreKind.HMES: "hme", ScoreKind.BFR: "bfr"}


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(version=__version__, prog_name="bsatriage")
@click.option(
    "--verbose", "-v", is_flag=True, default=False, help="Enable verbose output"
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """bsatriage: Rank assembly contigs by bulk segregant variant evidence.

    Compare variant calls of a mutant bulk against a background bulk (and
    optionally the two parents) and list the contigs most likely to carry
    the causative mutation.

    \b
    Quick start:
        bsatriage run -f assembly.fa -a mut.pileup -b bg.pileup --output run1

    \b
    Common workflows:
        bsatriage run -F vcf -f asm.fa -a mut.vcf -b bg.vcf ...   # VCF input
        bsatriage filter-vcf --mut-vcf mut.vcf --bg-vcf bg.vcf ...  # VCF subtraction
        bsatriage vcf-to-pileup --vcf mut.vcf                       # Pileup lines
    """
    import logging

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    setup_logging(level=level)


def _band_options(func):
    """Attach the heterozygosity band options shared by several commands."""
    func = click.option(
        "--ht-high",
        default=0.75,
        show_default=True,
        type=float,
        metavar="FLOAT",
        help="Upper bound of the heterozygous allele-fraction band.",
    )(func)
    func = click.option(
        "--ht-low",
        default=0.25,
        show_default=True,
        type=float,
        metavar="FLOAT",
        help="Lower bound of the heterozygous allele-fraction band.",
    )(func)
    return func


@cli.command()
@click.option(
    "--assembly",
    "-f",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Assembly in FASTA format.",
)
@click.option(
    "--input-format",
    "-F",
    type=click.Choice([f.value for f in InputFormat]),
    default=InputFormat.PILEUP.value,
    show_default=True,
    help="Format of the bulk and parent files.",
)
@click.option(
    "--mut-bulk",
    "-a",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Pileup or VCF file of the mutant bulk.",
)
@click.option(
    "--bg-bulk",
    "-b",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Pileup or VCF file of the background bulk.",
)
@click.option(
    "--mut-parent",
    "-p",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Pileup or VCF file of the mutant parent.",
)
@click.option(
    "--bg-parent",
    "-r",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Pileup or VCF file of the background parent.",
)
@click.option(
    "--output",
    "-o",
    default="bsatriage_results",
    show_default=True,
    metavar="TAG",
    help="Name tag for output files: {TAG}_selected_hme_variants.txt, etc.",
)
@click.option(
    "--overwrite",
    is_flag=True,
    default=False,
    help="Replace report files left by an earlier run with the same tag.",
)
@_band_options
@click.option(
    "--min-depth",
    default=6,
    show_default=True,
    type=int,
    metavar="INT",
    help="Minimum read depth at a position to call a variant.",
)
@click.option(
    "--max-depth",
    default=0,
    show_default=True,
    type=int,
    metavar="INT",
    help="Maximum read depth at a position to call a variant (0 for no limit).",
)
@click.option(
    "--min-non-ref-count",
    default=3,
    show_default=True,
    type=int,
    metavar="INT",
    help="Minimum reads supporting a non-reference base.",
)
@click.option(
    "--min-indel-count-support",
    default=3,
    show_default=True,
    type=int,
    metavar="INT",
    help="Minimum reads supporting an indel.",
)
@click.option(
    "--ambiguous-ref-bases",
    is_flag=True,
    default=False,
    help="Call variants at positions where the reference base is N.",
)
@click.option(
    "--mapping-quality",
    default=20,
    show_default=True,
    type=int,
    metavar="INT",
    help="Minimum read mapping quality (pileups with a mapping quality column).",
)
@click.option(
    "--base-quality",
    default=15,
    show_default=True,
    type=int,
    metavar="INT",
    help="Minimum base quality of read bases.",
)
@click.option(
    "--noise",
    default=0.1,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="Read fraction below which a base is treated as sequencing noise.",
)
@click.option(
    "--hmes-adjust",
    default=0.5,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="Factor added to SNP counts when computing the hme score.",
)
@click.option(
    "--bfr-adjust",
    default=0.05,
    show_default=True,
    type=float,
    metavar="FLOAT",
    help="Factor added to allele fractions when computing bfr values.",
)
@click.option(
    "--cross-type",
    type=click.Choice([c.value for c in CrossType]),
    default=CrossType.BACK.value,
    show_default=True,
    help="Mapping population: back-cross or out-cross.",
)
@click.option(
    "--only-frag-with-vars/--use-all-contigs",
    default=True,
    show_default=True,
    help="Rank only contigs that carry variants.",
)
@click.option(
    "--filter-out-low-hmes/--include-low-hmes",
    default=True,
    show_default=True,
    help="Drop contigs scoring below the adaptive cutoff.",
)
@click.option(
    "--polyploidy",
    is_flag=True,
    default=False,
    help="Polyploid data: also rank contigs by parental hemi-SNP bfr score.",
)
@click.option(
    "--bfr-proportion",
    default=0.1,
    show_default=True,
    type=float,
    metavar="PERCENT",
    help="Top percentage of contigs kept by bfr score.",
)
@click.option(
    "--flank-length",
    default=50,
    show_default=True,
    type=int,
    metavar="INT",
    help="Assembly bases reported on either side of each selected variant.",
)
@click.option(
    "--plot/--no-plot",
    default=False,
    show_default=True,
    help="Generate score distribution plots.",
)
@click.pass_context
def run(
    ctx: click.Context,
    assembly: Path | None,
    input_format: str,
    mut_bulk: Path | None,
    bg_bulk: Path | None,
    mut_parent: Path | None,
    bg_parent: Path | None,
    output: str,
    overwrite: bool,
    ht_low: float,
    ht_high: float,
    min_depth: int,
    max_depth: int,
    min_non_ref_count: int,
    min_indel_count_support: int,
    ambiguous_ref_bases: bool,
    mapping_quality: int,
    base_quality: int,
    noise: float,
    hmes_adjust: float,
    bfr_adjust: float,
    cross_type: str,
    only_frag_with_vars: bool,
    filter_out_low_hmes: bool,
    polyploidy: bool,
    bfr_proportion: float,
    flank_length: int,
    plot: bool,
) -> None:
    """Rank assembly contigs by bulk segregant variant evidence.

    Reads the variant calls of the mutant bulk and the optional background
    bulk and parents, classifies every variant position per contig as
    homozygous or heterozygous, scores each contig and writes the contigs
    passing the score cutoff.

    \b
    Examples:
      Pileup input:
        bsatriage run -f assembly.fa -a mut.pileup -b bg.pileup --output run1

      VCF input, out-cross:
        bsatriage run -F vcf -f assembly.fa -a mut.vcf -b bg.vcf \\
            --cross-type out --output run1

      Polyploid data with parents:
        bsatriage run -f assembly.fa -a mut.pileup -b bg.pileup \\
            -p mut_parent.pileup -r bg_parent.pileup --polyploidy

    \b
    Output files:
      {TAG}_selected_hme_variants.txt   Contigs selected by hme score
      {TAG}_selected_bfr_variants.txt   Contigs selected by bfr score (if --polyploidy)
      {TAG}_hme_scores.png              Score distribution (if --plot)
      {TAG}_bfr_scores.png              Score distribution (if --plot --polyploidy)
    """
    inputs = InputFiles(
        assembly=assembly or "",
        mut_bulk=mut_bulk or "",
        bg_bulk=bg_bulk,
        mut_parent=mut_parent,
        bg_parent=bg_parent,
        input_format=InputFormat(input_format),
    )
    settings = AnalysisSettings(
        ht_low=ht_low,
        ht_high=ht_high,
        min_depth=min_depth,
        max_depth=max_depth,
        min_non_ref_count=min_non_ref_count,
        min_indel_count_support=min_indel_count_support,
        ambiguous_ref_bases=ambiguous_ref_bases,
        mapping_quality=mapping_quality,
        base_quality=base_quality,
        noise=noise,
        hmes_adjust=hmes_adjust,
        bfr_adjust=bfr_adjust,
        cross_type=CrossType(cross_type),
        only_frag_with_vars=only_frag_with_vars,
        filter_out_low_hmes=filter_out_low_hmes,
        polyploidy=polyploidy,
        bfr_proportion=bfr_proportion,
        flank_length=flank_length,
    )

    try:
        validate_inputs(inputs, polyploidy=polyploidy)
        validate_settings(settings)
        report_files = validate_output_tag(output, overwrite=overwrite)

        print_info("Starting contig triage")
        print_info(f"Assembly: {assembly}")
        print_info(f"Mutant bulk: {mut_bulk}")
        if bg_bulk:
            print_info(f"Background bulk: {bg_bulk}")
        if inputs.has_parents:
            print_info(f"Parents: {mut_parent or '-'}, {bg_parent or '-'}")
        print_info(f"Input format: {input_format}, cross type: {cross_type}")

        result = run_analysis(inputs, settings)

        print_stats(result.summary(), title="Run Summary")

        selections = {ScoreKind.HMES: (result.hme_contigs, result.hme_cutoff)}
        if polyploidy:
            selections[ScoreKind.BFR] = (result.bfr_contigs, result.bfr_cutoff)

        for kind, (contigs, _cutoff) in selections.items():
            write_selected_variants(
                contigs, kind, report_files[kind], flank_length=settings.flank_length
            )
            if contigs:
                _print_top_contigs(contigs, kind)
            else:
                display_warning(format_no_candidates_error(kind.value))

        plot_files: list[Path] = []
        if plot:
            print_info("Generating plots...")
            try:
                import matplotlib.pyplot as plt

                from bsatriage.plotting.diagnostics import plot_score_distribution

                for kind, (contigs, cutoff) in selections.items():
                    out_plot = Path(f"{output}_{PLOT_NAMES[kind]}_scores.png")
                    fig = plot_score_distribution(
                        result.variants.assembly,
                        kind,
                        cutoff=cutoff,
                        selected=contigs,
                        output_path=out_plot,
                    )
                    plt.close(fig)
                    if out_plot.exists():
                        plot_files.append(out_plot)

                print_success(f"Generated {len(plot_files)} plot file(s)")

            except ImportError as e:
                print_warning(f"Plotting skipped: {e}")

        print_success("Analysis complete!")
        print_info("Output files:")
        for kind in selections:
            print_file_created(report_files[kind])
        for pf in plot_files:
            print_file_created(pf)

    except BSATriageError as e:
        e.display()
        raise SystemExit(1) from e
    except FileNotFoundError as e:
        print_error(str(e))
        raise SystemExit(1) from e
    except Exception as e:
        print_error(f"Analysis failed: {e}")
        if ctx.obj.get("verbose"):
            console.print_exception()
        raise SystemExit(1) from e


def _print_top_contigs(contigs: dict, kind: ScoreKind) -> None:
    ranked = rank_contigs(contigs, kind)
    console.print(f"\n[bold]Top contigs by {kind.value} score:[/bold]")
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Contig")
    table.add_column("Score", justify="right")
    table.add_column("hom", justify="right")
    table.add_column("het", justify="right")
    if kind == ScoreKind.BFR:
        table.add_column("hemi", justify="right")

    for contig in ranked[:TOP_CONTIGS_SHOWN]:
        row = [contig.id, f"{contig.score(kind):.3f}", f"{contig.hm_num:,}", f"{contig.ht_num:,}"]
        if kind == ScoreKind.BFR:
            row.append(f"{contig.hemi_num:,}")
        table.add_row(*row)

    console.print(table)
    if len(ranked) > TOP_CONTIGS_SHOWN:
        console.print(f"[dim]... and {len(ranked) - TOP_CONTIGS_SHOWN:,} more[/dim]")


def _split_paths(values: tuple[str, ...]) -> list[Path]:
    """Flatten repeated and comma-separated path options."""
    return [Path(part.strip()) for value in values for part in value.split(",") if part.strip()]


@cli.command("filter-vcf")
@click.option(
    "--mut-vcf",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    metavar="FILE",
    help="Single-sample VCF file of the mutant bulk.",
)
@click.option(
    "--bg-vcf",
    multiple=True,
    metavar="FILES",
    help='Background bulk VCF file(s). Repeat or comma-separate: "bg1.vcf,bg2.vcf".',
)
@_band_options
@click.option(
    "--out",
    "-o",
    required=True,
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Output TSV file.",
)
@click.pass_context
def filter_vcf(
    ctx: click.Context,
    mut_vcf: Path,
    bg_vcf: tuple[str, ...],
    ht_low: float,
    ht_high: float,
    out: Path,
) -> None:
    """Remove homozygous variants shared with background bulks.

    Buckets the mutant bulk variants by contig and zygosity, then drops
    homozygous positions that are also homozygous in any background bulk.

    \b
    Example:
        bsatriage filter-vcf --mut-vcf mut.vcf --bg-vcf bg1.vcf,bg2.vcf -o filtered.tsv

    Output columns: contig, pos, call, frequency.
    """
    bg_files = _split_paths(bg_vcf)
    settings = AnalysisSettings(ht_low=ht_low, ht_high=ht_high)

    try:
        validate_settings(settings)
        for bg_file in bg_files:
            if not bg_file.exists():
                raise FileNotFoundError(f"Background VCF file not found: {bg_file}")

        print_info(f"Mutant VCF: {mut_vcf}")
        if bg_files:
            print_info(f"Background VCF: {', '.join(str(p) for p in bg_files)}")

        buckets = filtering(mut_vcf, bg_files or None, settings)

        if out.parent and not out.parent.exists():
            out.parent.mkdir(parents=True, exist_ok=True)
        count = write_variant_buckets_tsv(buckets, out)

        print_stats({"Contigs": len(buckets), "Variants kept": count}, title="Filter Summary")
        print_success(f"Filtered variants written to {out}")

    except BSATriageError as e:
        e.display()
        raise SystemExit(1) from e
    except FileNotFoundError as e:
        print_error(str(e))
        raise SystemExit(1) from e
    except Exception as e:
        print_error(f"Filtering failed: {e}")
        if ctx.obj.get("verbose"):
            console.print_exception()
        raise SystemExit(1) from e


@cli.command("vcf-to-pileup")
@click.option(
    "--vcf",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    metavar="FILE",
    help="Single-sample VCF file.",
)
@click.option(
    "--out",
    "-o",
    type=click.Path(path_type=Path),
    metavar="FILE",
    help="Output pileup file. Written to stdout when omitted.",
)
@click.pass_context
def vcf_to_pileup(ctx: click.Context, vcf: Path, out: Path | None) -> None:
    """Render VCF records as pileup lines.

    Every record with an alternate allele becomes one pileup line with a
    reference read per reference depth and an alternate call per
    alternate depth.

    \b
    Example:
        bsatriage vcf-to-pileup --vcf mut.vcf -o mut.pileup
    """
    try:
        lines = iter_vcf_pileup_lines(vcf)
        if out is None:
            for line in lines:
                click.echo(line)
            return

        count = 0
        with open(out, "w") as f:
            for line in lines:
                f.write(line + "\n")
                count += 1
        print_success(f"Wrote {count:,} pileup lines to {out}")

    except BSATriageError as e:
        e.display()
        raise SystemExit(1) from e
    except Exception as e:
        print_error(f"Conversion failed: {e}")
        if ctx.obj.get("verbose"):
            console.print_exception()
        raise SystemExit(1) from e


def main() -> None:
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
