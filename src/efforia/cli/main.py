"""Typer CLI entrypoint and command definitions for efforia."""

import json
from pathlib import Path
from typing import Optional

import typer

from efforia.core.defaults import (
    DEFAULT_CERTIFICATE_FILE,
    DEFAULT_DATA_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_REPORT_DIR,
    DEFAULT_SESSION_FILE,
)

app = typer.Typer(help="Human-effort certificates from editing-session telemetry.")


@app.callback()
def main(
    log_level: str = typer.Option(DEFAULT_LOG_LEVEL, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)"),
) -> None:
    from efforia.core.logging import configure_logging

    configure_logging(log_level)


def _load_session_or_exit(path: Path):
    from efforia.core.validation import SchemaError, load_session

    if not path.exists():
        typer.echo(f"Session file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_session(path)
    except SchemaError as exc:
        typer.echo(f"Failed to read or validate session JSON: {exc}", err=True)
        raise typer.Exit(code=1)


def _load_scoring_config(path: Optional[str], data_dir: Optional[str] = None):
    from efforia.core.config import UserConfig
    from efforia.scoring.config import DEFAULT_SCORING_CONFIG, load_scoring_config

    if path is None and data_dir is not None:
        path = UserConfig(data_dir).scoring_config_path
    if path is None:
        return DEFAULT_SCORING_CONFIG
    config_path = Path(path)
    if not config_path.exists():
        typer.echo(f"Scoring config not found: {config_path}", err=True)
        raise typer.Exit(code=1)
    try:
        return load_scoring_config(config_path)
    except ValueError as exc:
        typer.echo(f"Invalid scoring config: {exc}", err=True)
        raise typer.Exit(code=1)


def _read_json_or_exit(path: Path, what: str) -> object:
    if not path.exists():
        typer.echo(f"{what} file not found: {path}", err=True)
        raise typer.Exit(code=1)
    try:
        return json.loads(path.read_text("utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"{what} file is not valid JSON: {exc}", err=True)
        raise typer.Exit(code=1)


# -- certify -------------------------------------------------------------------


@app.command("certify")
def certify_cmd(
    session_file: str = typer.Argument(DEFAULT_SESSION_FILE, help="Session telemetry JSON"),
    out: str = typer.Option(DEFAULT_CERTIFICATE_FILE, "--out", help="Certificate output path"),
    breakdown: bool = typer.Option(False, "--breakdown", help="Include the six sub-scores"),
    author: Optional[str] = typer.Option(None, "--author", help="Author address to embed"),
    scoring_config: Optional[str] = typer.Option(None, "--scoring-config", help="YAML scoring config override"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Config directory whose scoring_config applies when --scoring-config is absent"),
) -> None:
    """Validate a session and write its human-effort certificate."""
    from efforia.certify.assemble import session_to_certificate, write_certificate

    session = _load_session_or_exit(Path(session_file))
    config = _load_scoring_config(scoring_config, data_dir)

    cert = session_to_certificate(
        session, config=config, include_breakdown=breakdown, author_address=author,
    )
    out_path = write_certificate(cert, Path(out))
    typer.echo(f"Certificate written to {out_path}")
    typer.echo(f"  fingerprint_hash:   {cert.fingerprint_hash}")
    typer.echo(f"  human_effort_score: {cert.human_effort_score}")
    typer.echo(f"  confidence_level:   {cert.confidence_level.value}")


# -- features ------------------------------------------------------------------


@app.command("features")
def features_cmd(
    session_file: str = typer.Argument(DEFAULT_SESSION_FILE, help="Session telemetry JSON"),
) -> None:
    """Print the normalized feature vector and its fingerprint payload."""
    from efforia.core.hashing import fingerprint_hash, fingerprint_payload
    from efforia.features.normalize import normalize

    features = normalize(_load_session_or_exit(Path(session_file)))
    typer.echo(json.dumps(features.model_dump(by_alias=True), indent=2))
    typer.echo(f"payload:          {fingerprint_payload(features)}")
    typer.echo(f"fingerprint_hash: {fingerprint_hash(features)}")


# -- verify --------------------------------------------------------------------


@app.command("verify")
def verify_cmd(
    certificate_file: str = typer.Argument(DEFAULT_CERTIFICATE_FILE, help="Certificate JSON"),
    session: Optional[str] = typer.Option(None, "--session", help="Session JSON to re-derive the fingerprint from"),
    ledger: Optional[str] = typer.Option(None, "--ledger", help="Ledger file to look the fingerprint up in"),
) -> None:
    """Verify a certificate's shape, session match, and anchoring."""
    from efforia.anchor.ledger import AnchorLedger
    from efforia.certify.verify import verify_certificate

    cert_data = _read_json_or_exit(Path(certificate_file), "Certificate")
    session_data = _read_json_or_exit(Path(session), "Session") if session else None
    result = verify_certificate(
        cert_data,
        session=session_data,
        ledger=AnchorLedger(ledger) if ledger else None,
    )
    typer.echo(result.message)
    if not result.valid:
        raise typer.Exit(code=1)


# -- anchor --------------------------------------------------------------------
anchor_app = typer.Typer(help="Anchor fingerprints in a local ledger.")
app.add_typer(anchor_app, name="anchor")


@anchor_app.command("add")
def anchor_add_cmd(
    certificate_file: str = typer.Argument(DEFAULT_CERTIFICATE_FILE, help="Certificate JSON"),
    ledger: Optional[str] = typer.Option(None, "--ledger", help="Ledger file (defaults to the configured one)"),
    author: Optional[str] = typer.Option(None, "--author", help="Author address (defaults to the configured one)"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Config directory"),
) -> None:
    """Anchor a certificate's fingerprint and score."""
    from efforia.anchor.ledger import AnchorError, AnchorLedger
    from efforia.certify.verify import CertificateError, validate_certificate
    from efforia.core.config import UserConfig

    cfg = UserConfig(data_dir)
    try:
        cert = validate_certificate(_read_json_or_exit(Path(certificate_file), "Certificate"))
        record = AnchorLedger(ledger or cfg.ledger_path).anchor_certificate(
            cert, author or cert.author_address or cfg.author_address,
        )
    except (CertificateError, AnchorError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Anchored {record.key} (score {record.score}) by {record.author}")


@anchor_app.command("lookup")
def anchor_lookup_cmd(
    fingerprint: str = typer.Argument(..., help="Fingerprint hash (hex)"),
    ledger: Optional[str] = typer.Option(None, "--ledger", help="Ledger file (defaults to the configured one)"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Config directory"),
) -> None:
    """Look up an anchored fingerprint."""
    from efforia.anchor.ledger import AnchorError, AnchorLedger
    from efforia.core.config import UserConfig

    path = ledger or UserConfig(data_dir).ledger_path
    try:
        record = AnchorLedger(path).get_record(fingerprint)
    except AnchorError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    if record is None:
        typer.echo(f"Not anchored: {fingerprint}", err=True)
        raise typer.Exit(code=1)
    typer.echo(record.model_dump_json(indent=2))


# -- report --------------------------------------------------------------------
report_app = typer.Typer(help="Batch certification reports.")
app.add_typer(report_app, name="report")


@report_app.command("batch")
def report_batch_cmd(
    sessions_dir: str = typer.Option(..., "--sessions-dir", help="Directory of session JSON files"),
    out_dir: str = typer.Option(DEFAULT_REPORT_DIR, "--out-dir", help="Output directory"),
    fmt: str = typer.Option("csv", "--format", help="Table format: csv, parquet, or json"),
    scoring_config: Optional[str] = typer.Option(None, "--scoring-config", help="YAML scoring config override"),
    data_dir: Optional[str] = typer.Option(None, "--data-dir", help="Config directory whose scoring_config applies when --scoring-config is absent"),
) -> None:
    """Certify every session in a directory and write a table plus a summary."""
    from efforia.report.batch import certify_directory
    from efforia.report.export import (
        batch_to_frame,
        export_certificates_csv,
        export_certificates_json,
        export_certificates_parquet,
        export_summary_json,
    )
    from efforia.report.summary import summarize_certificates

    src = Path(sessions_dir)
    if not src.is_dir():
        typer.echo(f"Sessions directory not found: {src}", err=True)
        raise typer.Exit(code=1)
    if fmt not in ("csv", "parquet", "json"):
        typer.echo(f"Unknown format {fmt!r}; expected csv, parquet, or json", err=True)
        raise typer.Exit(code=1)

    result = certify_directory(src, config=_load_scoring_config(scoring_config, data_dir))
    for rejected in result.rejected:
        typer.echo(f"  rejected {rejected.source}: {rejected.reason}", err=True)
    typer.echo(f"Certified {len(result.certified)} session(s), rejected {len(result.rejected)}")

    out = Path(out_dir)
    if fmt == "csv":
        table_path = export_certificates_csv(batch_to_frame(result), out / "certificates.csv")
    elif fmt == "parquet":
        table_path = export_certificates_parquet(batch_to_frame(result), out / "certificates.parquet")
    else:
        table_path = export_certificates_json(result.certificates, out / "certificates.json")

    summary = summarize_certificates(result.certificates, rejected=len(result.rejected))
    summary_path = export_summary_json(summary, out / "summary.json")
    typer.echo(f"Certificates: {table_path}")
    typer.echo(f"Summary:      {summary_path}")


# -- config --------------------------------------------------------------------
config_app = typer.Typer(help="Show or edit the local configuration.")
app.add_typer(config_app, name="config")


@config_app.command("show")
def config_show_cmd(
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Config directory"),
) -> None:
    """Print the current configuration."""
    from efforia.core.config import UserConfig

    typer.echo(json.dumps(UserConfig(data_dir).as_dict(), indent=2))


@config_app.command("set-author")
def config_set_author_cmd(
    address: str = typer.Argument(..., help="Author address for certificates and anchors"),
    data_dir: str = typer.Option(DEFAULT_DATA_DIR, help="Config directory"),
) -> None:
    """Set the author address."""
    from efforia.core.config import UserConfig

    cfg = UserConfig(data_dir)
    try:
        cfg.author_address = address
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    typer.echo(f"author_address = {cfg.author_address}")


if __name__ == "__main__":
    app()
