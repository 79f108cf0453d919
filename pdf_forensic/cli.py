"""Command-line interface for PDF Forensic Tool."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from pdf_forensic import __version__
from pdf_forensic.config import AnalysisSettings, ToolMode, load_settings
from pdf_forensic.core.engine import AnalysisStage, DetectionEngine
from pdf_forensic.external.locator import ToolLocator
from pdf_forensic.models import DetectionReport, SingleDocumentReport, TamperingAnalysis
from pdf_forensic.output.json_export import JSONExporter
from pdf_forensic.utils.audit import AuditLogger
from pdf_forensic.utils.exceptions import PDFForensicError

console = Console()

RISK_COLORS = {
    "Minimal": "green",
    "Low": "green",
    "Medium": "yellow",
    "High": "red bold",
}

SEVERITY_COLORS = {
    "Critical": "red bold",
    "High": "red",
    "Medium": "yellow",
    "Low": "cyan",
    "Info": "dim",
}


def print_status(status: str, message: str) -> None:
    """Print a status message with consistent formatting.

    Args:
        status: Status indicator ([OK], [FAIL], [WARN], [INFO], [ERROR])
        message: Message to display
    """
    color_map = {
        "[OK]": "green",
        "[FAIL]": "red",
        "[WARN]": "yellow",
        "[INFO]": "blue",
        "[ERROR]": "red bold",
    }
    color = color_map.get(status, "white")
    console.print(f"[{color}]{status}[/{color}] {message}", highlight=False)


def _configure_logging(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _build_settings(config_path: Optional[str], no_tools: bool) -> AnalysisSettings:
    settings = load_settings(config_path)
    if no_tools:
        settings = settings.model_copy(update={"tool_mode": ToolMode.OFF})
    return settings


def _create_progress_callback(verbose: int):
    """Create a progress callback for the engine.

    Args:
        verbose: Verbosity level (0=quiet, 1=stage completions, 2+=stage starts too)

    Returns:
        Callback function for progress updates
    """

    def callback(stage: AnalysisStage, stage_progress: float, overall_progress: float) -> None:
        if verbose < 1:
            return
        if stage_progress >= 1.0:
            console.print(f"  [green][OK][/green] {stage.value} ({overall_progress:.0%})")
        elif stage_progress == 0.0 and verbose >= 2:
            console.print(f"  [dim][...] {stage.value}[/dim]")

    return callback


def _open_audit(audit_dir: Optional[str]) -> Optional[AuditLogger]:
    return AuditLogger(Path(audit_dir)) if audit_dir else None


@click.group()
@click.version_option(version=__version__, prog_name="pdf-forensic")
def main():
    """PDF Forensic Tool - Forensic comparison and tampering detection for PDF documents.

    Compare a questioned PDF against a reference copy, or analyze a single
    PDF for signs of post-creation modification.
    """


@main.command()
@click.argument("original", type=click.Path(exists=True, dir_okay=False))
@click.argument("comparison", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", help="Output file path for JSON report")
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("-v", "--verbose", count=True, help="Verbosity level")
@click.option("--no-tools", is_flag=True, help="Skip external tools (mutool, exiftool)")
@click.option("--config", "config_path", type=click.Path(), help="YAML or JSON settings file")
@click.option("--audit-dir", type=click.Path(file_okay=False), help="Directory for audit trail logs")
def compare(original: str, comparison: str, output: str, output_format: str, verbose: int,
            no_tools: bool, config_path: str, audit_dir: str):
    """Compare two PDF documents for signs of alteration.

    ORIGINAL is the reference PDF; COMPARISON is the questioned PDF.
    """
    _configure_logging(verbose)
    audit = _open_audit(audit_dir)

    if output_format == "table":
        console.print(Panel(
            f"[bold]PDF Forensic Comparison[/bold]\n"
            f"Original:   {Path(original).name}\n"
            f"Comparison: {Path(comparison).name}",
            style="blue",
        ))

    try:
        settings = _build_settings(config_path, no_tools)
        engine = DetectionEngine(settings=settings)
        report = engine.run(original, comparison, progress_callback=_create_progress_callback(verbose))

        if audit:
            audit.log_comparison(
                original, comparison, report.risk_score, report.risk_level.value, len(report.findings)
            )

        exporter = JSONExporter(indent=2)
        if output:
            exporter.to_file(report, output)
            if audit:
                audit.log_export(output, "json")
            print_status("[OK]", f"Report saved to: {output}")

        if output_format == "json":
            if not output:
                click.echo(exporter.to_json(report))
        else:
            _print_comparison_report(report, verbose)

    except (PDFForensicError, FileNotFoundError, ValueError) as e:
        if audit:
            audit.log_error("DOCUMENT_COMPARISON", e)
        print_status("[ERROR]", str(e))
        sys.exit(1)
    except Exception as e:
        if audit:
            audit.log_error("DOCUMENT_COMPARISON", e)
        print_status("[ERROR]", f"Comparison failed: {e}")
        if verbose > 0:
            console.print_exception()
        sys.exit(1)
    finally:
        if audit:
            audit.close()


@main.command()
@click.argument("filepath", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", help="Output file path for JSON report")
@click.option("-f", "--format", "output_format", type=click.Choice(["table", "json"]), default="table")
@click.option("-v", "--verbose", count=True, help="Verbosity level")
@click.option("--no-tools", is_flag=True, help="Skip external tools (mutool, exiftool)")
@click.option("--config", "config_path", type=click.Path(), help="YAML or JSON settings file")
@click.option("--audit-dir", type=click.Path(file_okay=False), help="Directory for audit trail logs")
def analyze(filepath: str, output: str, output_format: str, verbose: int,
            no_tools: bool, config_path: str, audit_dir: str):
    """Analyze a single PDF for tampering indicators.

    FILEPATH is the path to the PDF document.
    """
    _configure_logging(verbose)
    audit = _open_audit(audit_dir)

    if output_format == "table":
        console.print(Panel(f"[bold]PDF Tampering Analysis[/bold]\nFile: {Path(filepath).name}", style="blue"))

    try:
        settings = _build_settings(config_path, no_tools)
        engine = DetectionEngine(settings=settings)
        report = engine.analyze_document(filepath, progress_callback=_create_progress_callback(verbose))

        if audit:
            audit.log_analysis(filepath, report.risk_score, report.risk_level.value, report.file.checksum)

        exporter = JSONExporter(indent=2)
        if output:
            exporter.to_file(report, output)
            if audit:
                audit.log_export(output, "json")
            print_status("[OK]", f"Report saved to: {output}")

        if output_format == "json":
            if not output:
                click.echo(exporter.to_json(report))
        else:
            _print_document_report(report, verbose)

    except (PDFForensicError, FileNotFoundError, ValueError) as e:
        if audit:
            audit.log_error("DOCUMENT_ANALYSIS", e)
        print_status("[ERROR]", str(e))
        sys.exit(1)
    except Exception as e:
        if audit:
            audit.log_error("DOCUMENT_ANALYSIS", e)
        print_status("[ERROR]", f"Analysis failed: {e}")
        if verbose > 0:
            console.print_exception()
        sys.exit(1)
    finally:
        if audit:
            audit.close()


@main.command()
@click.option("--config", "config_path", type=click.Path(), help="YAML or JSON settings file")
def tools(config_path: str):
    """Show which external inspection tools are available."""
    try:
        settings = load_settings(config_path)
    except (FileNotFoundError, ValueError) as e:
        print_status("[ERROR]", str(e))
        sys.exit(1)

    locator = ToolLocator(search_paths=settings.tool_search_paths)
    availability = locator.check()

    table = Table(title="External Tools", show_header=True, header_style="bold")
    table.add_column("Tool", style="cyan")
    table.add_column("Status")
    table.add_column("Path")
    for name, path in (("mutool", availability.mutool_path), ("exiftool", availability.exiftool_path)):
        status = "[green][OK][/green]" if path else "[red][MISSING][/red]"
        table.add_row(name, status, path or "-")
    console.print(table)

    if availability.missing_tools_message:
        print_status("[WARN]", availability.missing_tools_message)
    else:
        print_status("[OK]", "All external tools available")


def _print_findings(findings, verbose: int) -> None:
    if not findings:
        print_status("[OK]", "No findings")
        return

    limit = None if verbose > 0 else 20
    table = Table(title=f"Findings ({len(findings)})", show_header=True, header_style="bold")
    table.add_column("Severity")
    table.add_column("Category", style="cyan")
    table.add_column("Title")
    table.add_column("Page", justify="right")
    table.add_column("Description")

    for finding in findings[:limit]:
        color = SEVERITY_COLORS.get(finding.severity.value, "white")
        description = finding.description
        if verbose == 0 and len(description) > 60:
            description = description[:60] + "..."
        table.add_row(
            f"[{color}]{finding.severity.value}[/{color}]",
            finding.category.value,
            finding.title,
            str(finding.page_number) if finding.page_number else "",
            description,
        )
    console.print(table)
    if limit is not None and len(findings) > limit:
        console.print(f"  [dim]... {len(findings) - limit} more (use -v to show all)[/dim]")
    console.print()


def _print_tampering(analysis: TamperingAnalysis, verbose: int) -> None:
    lines = [
        f"Likelihood: {analysis.likelihood.value}",
        f"Score: {analysis.score:.1f}",
        f"[dim]{analysis.summary}[/dim]",
    ]
    console.print(Panel("\n".join(lines), title="Tampering Analysis", style="bold"))

    if analysis.indicators and (verbose > 0 or len(analysis.indicators) <= 10):
        table = Table(title="Tampering Indicators", show_header=True, header_style="bold red")
        table.add_column("Severity")
        table.add_column("Category", style="cyan")
        table.add_column("Title")
        table.add_column("Weight", justify="right")
        for indicator in analysis.indicators:
            color = SEVERITY_COLORS.get(indicator.severity.value, "white")
            table.add_row(
                f"[{color}]{indicator.severity.value}[/{color}]",
                indicator.category.value,
                indicator.title,
                f"{indicator.weight:.1f}",
            )
        console.print(table)
    console.print()


def _print_risk(score: float, level: str) -> None:
    color = RISK_COLORS.get(level, "white")
    console.print(Panel(
        f"[{color}]Risk Level: {level}[/{color}]\nRisk Score: {score:.1f}",
        title="Risk Assessment",
        style="bold",
    ))
    console.print()


def _print_comparison_report(report: DetectionReport, verbose: int) -> None:
    """Print comparison results as formatted tables."""
    _print_risk(report.risk_score, report.risk_level.value)

    table = Table(title="Files", show_header=True, header_style="bold")
    table.add_column("Property", style="cyan")
    table.add_column("Original")
    table.add_column("Comparison")
    table.add_row("Name", report.original_file.name, report.comparison_file.name)
    table.add_row("Size", report.original_file.formatted_size, report.comparison_file.formatted_size)
    if verbose:
        table.add_row("SHA-256", report.original_file.checksum, report.comparison_file.checksum)
    else:
        table.add_row(
            "SHA-256", report.original_file.checksum[:16] + "...", report.comparison_file.checksum[:16] + "..."
        )
    console.print(table)
    console.print()

    def yes_no(flag: bool) -> str:
        return "[green]Yes[/green]" if flag else "[red]No[/red]"

    table = Table(title="Comparison Summary", show_header=True, header_style="bold")
    table.add_column("Check", style="cyan")
    table.add_column("Result")
    table.add_row("Text Similarity", f"{report.text_comparison.overall_similarity:.1%}")
    table.add_row("Visual Similarity (SSIM)", f"{report.visual_comparison.average_ssim:.1%}")
    table.add_row(
        "Pages With Visual Differences",
        f"{report.visual_comparison.pages_with_differences} / {report.visual_comparison.page_count}",
    )
    table.add_row("PDF Metadata Match", yes_no(report.metadata_comparison.pdf_metadata_match))
    table.add_row("File Info Match", yes_no(report.metadata_comparison.file_info_match))
    table.add_row(
        "Timestamp Anomalies",
        "[red]Yes[/red]" if report.metadata_comparison.timestamp_anomalies else "[green]No[/green]",
    )
    table.add_row(
        "Critical / High Findings",
        f"{len(report.critical_findings)} / {len(report.high_findings)}",
    )
    console.print(table)
    console.print()

    _print_findings(report.findings, verbose)

    if report.tampering_analysis is not None:
        _print_tampering(report.tampering_analysis, verbose)

    external = report.external_tools
    if external is not None:
        for finding in external.suspicious_findings:
            print_status("[WARN]", finding)
        if external.font_comparison and external.font_comparison.has_differences:
            print_status(
                "[WARN]",
                f"External font listing differs: +{len(external.font_comparison.added_fonts)} "
                f"-{len(external.font_comparison.removed_fonts)}",
            )
        if external.missing_tools_message:
            print_status("[INFO]", external.missing_tools_message)


def _print_document_report(report: SingleDocumentReport, verbose: int) -> None:
    """Print single-document analysis results as formatted tables."""
    _print_risk(report.risk_score, report.risk_level.value)

    metadata = report.metadata
    table = Table(title="Document", show_header=True, header_style="bold")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Filename", report.file.name)
    table.add_row("SHA-256", report.file.checksum if verbose else report.file.checksum[:16] + "...")
    table.add_row("Size", report.file.formatted_size)
    table.add_row("Pages", str(report.page_count))
    table.add_row("PDF Version", metadata.version or "-")
    table.add_row("Creator", metadata.creator or "-")
    table.add_row("Producer", metadata.producer or "-")
    table.add_row("Created", metadata.creation_date.isoformat() if metadata.creation_date else "-")
    table.add_row("Modified", metadata.modification_date.isoformat() if metadata.modification_date else "-")
    table.add_row("Incremental Updates", str(metadata.incremental_updates))
    table.add_row("Signatures", str(len(report.forensics.signatures)))
    console.print(table)
    console.print()

    _print_findings(report.findings, verbose)
    _print_tampering(report.tampering_analysis, verbose)

    if report.external_signals is not None:
        for finding in report.external_signals.suspicious_findings():
            print_status("[WARN]", finding)
    if report.missing_tools_message:
        print_status("[INFO]", report.missing_tools_message)


if __name__ == "__main__":
    main()
