"""Command-line interface router for flexlm-options."""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from flexlm_options.config import (
    LOG_LEVELS,
    ConfigLoadError,
    ConfigValidationError,
    RuntimeSettings,
    load_config,
)
from flexlm_options.domain.models import LicenseData
from flexlm_options.export.options_writer import export_options
from flexlm_options.observability.logging import configure_logging
from flexlm_options.parsing.license_file import LicenseParseResult
from flexlm_options.parsing.options_file import OptionsParseResult, parse_options_file
from flexlm_options.parsing.reference import load_product_catalog
from flexlm_options.state.session import EditorSession
from flexlm_options.ui.render import CLIRenderer, create_renderer

PARSE_ERROR_EXIT_CODE: Final[int] = 3
CONFIG_ERROR_EXIT_CODE: Final[int] = 2
VALIDATION_FAILED_EXIT_CODE: Final[int] = 1


@dataclass(frozen=True, slots=True)
class CLIError(RuntimeError):
    """Typed CLI failure with an explicit process exit code."""

    message: str
    exit_code: int = 1

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse command router for all supported CLI workflows."""

    parser = argparse.ArgumentParser(
        prog="flexlm-options",
        description=(
            "flexlm-options — FlexLM license and options file checker.\n\n"
            "Common workflows:\n"
            "  flexlm-options license license.dat              List entitlements\n"
            "  flexlm-options check -l license.dat -o MLM.opt  Validate an options file\n"
            "  flexlm-options seats -l license.dat -o MLM.opt  Show seat allocation\n"
            "  flexlm-options format MLM.opt -o clean.opt      Normalize an options file\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        dest="config_path",
        default=None,
        help="Path to TOML config (default: ./flexlm_options.toml if present).",
    )
    common.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=None,
        help="Log level for diagnostic output on stderr.",
    )
    common.add_argument(
        "--json-logs",
        action="store_true",
        default=False,
        help="Emit diagnostic logs as JSON lines.",
    )
    common.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=False,
        help="Show detailed output.",
    )
    common.add_argument(
        "--no-color",
        action="store_true",
        default=False,
        help="Disable colored output (also respects NO_COLOR env var).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # license -------------------------------------------------------------
    license_parser = subparsers.add_parser(
        "license",
        parents=[common],
        help="Parse a license file and list its entitlements",
        description=(
            "Parse a license file and list every entitlement with its offering,\n"
            "seat count and expiry.\n\n"
            "Examples:\n"
            "  flexlm-options license license.dat\n"
            "  flexlm-options license license.dat --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    license_parser.add_argument("license_path", help="License file to parse")
    license_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    license_parser.set_defaults(handler=_cmd_license)

    # check ---------------------------------------------------------------
    check_parser = subparsers.add_parser(
        "check",
        parents=[common],
        help="Validate an options file against a license file",
        description=(
            "Run every validator and the seat calculator. Exits 1 when any\n"
            "error-severity finding is reported.\n\n"
            "Examples:\n"
            "  flexlm-options check --license license.dat --options MLM.opt\n"
            "  flexlm-options check --options MLM.opt --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_input_arguments(check_parser, license_required=False)
    check_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    check_parser.set_defaults(handler=_cmd_check)

    # seats ---------------------------------------------------------------
    seats_parser = subparsers.add_parser(
        "seats",
        parents=[common],
        help="Show remaining seats after the options file is applied",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_input_arguments(seats_parser, license_required=True)
    seats_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    seats_parser.set_defaults(handler=_cmd_seats)

    # format --------------------------------------------------------------
    format_parser = subparsers.add_parser(
        "format",
        parents=[common],
        help="Parse an options file and write it back in normalized form",
        description=(
            "Examples:\n"
            "  flexlm-options format MLM.opt\n"
            "  flexlm-options format MLM.opt --output MLM.clean.opt\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    format_parser.add_argument("options_path", help="Options file to normalize")
    format_parser.add_argument(
        "--output", "-o", dest="output_path", default=None, help="Write here instead of stdout"
    )
    format_parser.set_defaults(handler=_cmd_format)

    # config --------------------------------------------------------------
    config_parser = subparsers.add_parser(
        "config",
        parents=[common],
        help="Show effective configuration",
        description=(
            "Display the effective config after merging defaults, file, env, and flags.\n\n"
            "Examples:\n"
            "  flexlm-options config\n"
            "  flexlm-options config --json\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    config_parser.add_argument("--json", action="store_true", help="Emit JSON output")
    config_parser.set_defaults(handler=_cmd_config)

    return parser


def _add_input_arguments(parser: argparse.ArgumentParser, *, license_required: bool) -> None:
    parser.add_argument(
        "--license",
        "-l",
        dest="license_path",
        required=license_required,
        default=None,
        help="License file (license.dat / license.lic)",
    )
    parser.add_argument(
        "--options",
        "-o",
        dest="options_path",
        required=True,
        help="Options file (MLM.opt)",
    )


def run_cli(argv: Sequence[str] | None = None) -> int:
    """Parse argv, route to a command handler, and return process exit code."""

    parser = build_parser()
    namespace = parser.parse_args(list(argv) if argv is not None else None)
    handler = getattr(namespace, "handler", None)
    if not callable(handler):
        parser.print_help(sys.stderr)
        return 2

    try:
        result = handler(namespace)
    except CLIError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return exc.exit_code
    return int(result)


def main(argv: Sequence[str] | None = None) -> int:
    """Compatibility wrapper for main-module wiring."""

    return run_cli(argv)


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


def _cmd_license(args: argparse.Namespace) -> int:
    settings = _prepare(args)
    session = EditorSession.from_settings(settings)
    path = Path(args.license_path)
    result = session.load_license_text(_read_text(path))
    license_data = _require_license(result, path)

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "license",
                "path": str(path),
                "license": _license_payload(license_data),
                "warnings": list(result.warnings),
            }
        )
        return 0

    renderer = _get_renderer(args)
    renderer.kv("License file", path)
    renderer.entitlements(license_data)
    _render_parse_warnings(renderer, result.warnings)
    return 0


def _cmd_check(args: argparse.Namespace) -> int:
    settings = _prepare(args)
    session, license_result, options_result = _load_inputs(args, settings)
    report = session.report

    if _flag(args, "json"):
        _emit_json(
            {
                "command": "check",
                "license_warnings": list(license_result.warnings) if license_result else [],
                "options_warnings": list(options_result.warnings),
                "report": report.to_dict(),
            }
        )
    else:
        renderer = _get_renderer(args)
        counts = report.severity_counts()
        renderer.heading("Check: " + ", ".join(f"{count} {name}" for name, count in counts.items()))
        if license_result is not None:
            _render_parse_warnings(renderer, license_result.warnings, source="license")
        _render_parse_warnings(renderer, options_result.warnings, source="options")
        renderer.findings(report.results)
        renderer.seat_summary(report.seat_summary)

    return VALIDATION_FAILED_EXIT_CODE if report.has_errors else 0


def _cmd_seats(args: argparse.Namespace) -> int:
    settings = _prepare(args)
    session, _, _ = _load_inputs(args, settings)
    report = session.report

    if _flag(args, "json"):
        _emit_json({"command": "seats", "seat_summary": report.seat_summary.to_dict()})
        return 0

    _get_renderer(args).seat_summary(report.seat_summary)
    return 0


def _cmd_format(args: argparse.Namespace) -> int:
    settings = _prepare(args)
    path = Path(args.options_path)
    result = parse_options_file(
        _read_text(path),
        reference_products=load_product_catalog(settings.reference_products),
    )
    if result.document is None:
        raise CLIError(_parse_failure(path, result), exit_code=PARSE_ERROR_EXIT_CODE)

    text = export_options(result.document)
    output = _optional_str(getattr(args, "output_path", None))
    if output is None:
        sys.stdout.write(text)
        return 0

    target = Path(output)
    try:
        target.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"unable to write {target}: {exc}", exit_code=CONFIG_ERROR_EXIT_CODE) from exc
    print(f"Wrote {len(result.document)} directives to {target}", file=sys.stderr)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    config = _load_effective_config(args)
    _configure_logging(RuntimeSettings.from_config(config))

    if _flag(args, "json"):
        _emit_json({"command": "config", "config": config})
        return 0

    _get_renderer(args).text(json.dumps(config, indent=2, sort_keys=True, ensure_ascii=False))
    return 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _emit_json(payload: Mapping[str, object]) -> None:
    """Emit a JSON payload to stdout with deterministic formatting."""

    print(json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False))


def _get_renderer(args: argparse.Namespace) -> CLIRenderer:
    return create_renderer(no_color=_flag(args, "no_color"), verbose=_flag(args, "verbose"))


def _prepare(args: argparse.Namespace) -> RuntimeSettings:
    settings = RuntimeSettings.from_config(_load_effective_config(args))
    _configure_logging(settings)
    return settings


def _configure_logging(settings: RuntimeSettings) -> None:
    configure_logging(settings.log_level, json_output=settings.json_logs)


def _load_effective_config(args: argparse.Namespace) -> dict[str, object]:
    config_path = _optional_str(getattr(args, "config_path", None))
    overrides: dict[str, object] = {"observability.log_level": getattr(args, "log_level", None)}
    if _flag(args, "json_logs"):
        overrides["observability.json_logs"] = True

    try:
        return load_config(config_path, cli_overrides=overrides)
    except (ConfigLoadError, ConfigValidationError) as exc:
        raise CLIError(str(exc), exit_code=CONFIG_ERROR_EXIT_CODE) from exc


def _load_inputs(
    args: argparse.Namespace, settings: RuntimeSettings
) -> tuple[EditorSession, LicenseParseResult | None, OptionsParseResult]:
    try:
        session = EditorSession.from_settings(settings)
    except ValueError as exc:
        raise CLIError(str(exc), exit_code=CONFIG_ERROR_EXIT_CODE) from exc

    license_result: LicenseParseResult | None = None
    license_arg = _optional_str(getattr(args, "license_path", None))
    if license_arg is not None:
        license_path = Path(license_arg)
        license_result = session.load_license_text(_read_text(license_path))
        _require_license(license_result, license_path)

    options_path = Path(args.options_path)
    options_result = session.load_options_text(_read_text(options_path))
    if options_result.document is None:
        raise CLIError(_parse_failure(options_path, options_result), exit_code=PARSE_ERROR_EXIT_CODE)
    return session, license_result, options_result


def _require_license(result: LicenseParseResult, path: Path) -> LicenseData:
    if result.license_data is None:
        raise CLIError(_parse_failure(path, result), exit_code=PARSE_ERROR_EXIT_CODE)
    return result.license_data


def _parse_failure(path: Path, result: LicenseParseResult | OptionsParseResult) -> str:
    where = f"{path}:{result.error_line}" if result.error_line is not None else str(path)
    return f"{where}: {result.error}"


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise CLIError(f"unable to read {path}: {exc}", exit_code=CONFIG_ERROR_EXIT_CODE) from exc


def _license_payload(license_data: LicenseData) -> dict[str, object]:
    return {
        "products": [product.to_dict() for product in license_data.products],
        "server_line_has_port": license_data.server_line_has_port,
        "daemon_line_has_port": license_data.daemon_line_has_port,
        "daemon_port_is_cnu_friendly": license_data.daemon_port_is_cnu_friendly,
    }


def _render_parse_warnings(
    renderer: CLIRenderer, warnings: Sequence[str], *, source: str | None = None
) -> None:
    if not warnings:
        return
    renderer.section(f"Parser warnings ({source}):" if source else "Parser warnings:")
    for warning in warnings:
        renderer.warning(warning)


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise CLIError("invalid optional string argument", exit_code=CONFIG_ERROR_EXIT_CODE)
    cleaned = value.strip()
    return cleaned or None


def _flag(args: argparse.Namespace, name: str) -> bool:
    return bool(getattr(args, name, False))


__all__ = ["CLIError", "build_parser", "main", "run_cli"]
