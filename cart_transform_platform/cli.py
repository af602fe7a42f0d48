from __future__ import annotations

import json
import logging
import sys
from dataclasses import replace
from typing import Optional

import typer

from cart_transform_platform.core.errors import (
    BundleCompositionError,
    CartError,
    CartLoadError,
    CartValidationError,
    MetafieldDecodeError,
)
from cart_transform_platform.core.expand.expand_cart import can_expand, expand_cart
from cart_transform_platform.core.expand.metafield_config import (
    MetafieldConfigError,
    MetafieldFields,
    load_and_merge,
)
from cart_transform_platform.core.io.dump_result import dump_result_json, result_to_json
from cart_transform_platform.core.io.load_input import load_input
from cart_transform_platform.core.lint.lint_cart import lint_cart
from cart_transform_platform.core.validate.validate_input import summarize_cart, validate_input

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def _callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
) -> None:
    """Cart transform CLI: expand bundle lines into their components."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
            force=True,
        )


@app.command("run")
def run(
    path: str = typer.Argument(..., help="Path to a function input (.json/.yaml/.yml), or - for stdin"),
    out: Optional[str] = typer.Option(None, "--out", help="Write the result JSON here instead of stdout"),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML file overriding metafield keys"),
) -> None:
    """Expand bundle lines and print the cart transform result."""
    fields = _load_fields(config)

    try:
        data = load_input(path)
    except CartLoadError as e:
        _print_errors([e])
        raise typer.Exit(code=1)

    cart, errors = validate_input(data, fields=fields)
    if errors or cart is None:
        _print_errors(errors)
        raise typer.Exit(code=2)
    logger.debug("loaded %d cart lines from %s", len(cart.lines), data.get("__file__"))

    try:
        result = expand_cart(cart, fields=fields)
    except (MetafieldDecodeError, BundleCompositionError) as e:
        # All-or-nothing: no operations are emitted for the cart.
        logger.debug("expansion aborted: %s", e)
        _print_errors([replace(e, file=data.get("__file__"))])
        raise typer.Exit(code=2)

    logger.debug("emitting %d expand operations", len(result.operations))

    if out is None:
        typer.echo(result_to_json(result))
        return

    dump_result_json(result, out)
    typer.echo(f"OK: wrote result to {out} (operations={len(result.operations)})")


@app.command("validate")
def validate(
    path: str = typer.Argument(..., help="Path to a function input (.json/.yaml/.yml), or - for stdin"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML file overriding metafield keys"),
) -> None:
    """Validate the shape of a function input."""
    if format not in ("text", "json"):
        _print_errors([_unknown_format("E_VALIDATE_UNKNOWN_FORMAT", format)])
        raise typer.Exit(code=2)

    fields = _load_fields(config)

    def _emit_json(ok: bool, *, exit_code: int, errors: list[CartError], summary: dict | None) -> None:
        payload = {
            "tool": "cart-transform",
            "command": "validate",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
            "summary": summary,
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        data = load_input(path)
    except CartLoadError as e:
        if format == "json":
            _emit_json(False, exit_code=1, errors=[e], summary=None)
        _print_errors([e])
        raise typer.Exit(code=1)

    cart, errors = validate_input(data, fields=fields)
    if errors:
        if format == "json":
            _emit_json(False, exit_code=2, errors=list(errors), summary=None)
        _print_errors(errors)
        raise typer.Exit(code=2)

    assert cart is not None

    if format == "text":
        typer.echo(summarize_cart(cart))
        return

    summary = {
        "line_count": len(cart.lines),
        "bundle_line_ids": [line.id for line in cart.lines if can_expand(line.merchandise)],
    }
    _emit_json(True, exit_code=0, errors=[], summary=summary)


@app.command("lint")
def lint(
    path: str = typer.Argument(..., help="Path to a function input (.json/.yaml/.yml), or - for stdin"),
    format: str = typer.Option("text", "--format", help="Output format: text|json"),
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML file overriding metafield keys"),
) -> None:
    """Lint bundle metafields (rules beyond shape validation)."""
    if format not in ("text", "json"):
        _print_errors([_unknown_format("E_LINT_UNKNOWN_FORMAT", format)])
        raise typer.Exit(code=2)

    fields = _load_fields(config)

    def _emit_json(ok: bool, errors: list[CartError], exit_code: int) -> None:
        payload = {
            "tool": "cart-transform",
            "command": "lint",
            "ok": ok,
            "error_count": len(errors),
            "errors": [_to_item(e) for e in errors],
        }
        typer.echo(json.dumps(payload, indent=2, sort_keys=True))
        raise typer.Exit(code=exit_code)

    try:
        data = load_input(path)
    except CartLoadError as e:
        if format == "json":
            _emit_json(False, [e], 1)
        _print_errors([e])
        raise typer.Exit(code=1)

    lint_errors = lint_cart(data, fields=fields)
    _, validation_errors = validate_input(data, fields=fields)
    errors: list[CartError] = [*lint_errors, *validation_errors]

    if format == "text":
        if errors:
            _print_errors(errors)
            raise typer.Exit(code=2)
        typer.echo("OK: lint passed")
        return

    if errors:
        _emit_json(False, errors, 2)
    _emit_json(True, [], 0)


@app.command("fields")
def fields_cmd(
    config: Optional[str] = typer.Option(None, "--config", help="Optional YAML file overriding metafield keys"),
) -> None:
    """Show the input keys read for the bundle metafields."""
    fields = _load_fields(config)
    typer.echo("Metafield keys:")
    typer.echo(f"- components: {fields.components}")
    typer.echo(f"- quantities: {fields.quantities}")


def _load_fields(config: Optional[str]) -> MetafieldFields:
    try:
        return load_and_merge(config)
    except FileNotFoundError:
        _print_errors(
            [
                CartLoadError(
                    code="E_CONFIG_FILE_NOT_FOUND",
                    message=f"config file not found: {config}",
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=1)
    except MetafieldConfigError as e:
        _print_errors(
            [
                CartValidationError(
                    code="E_CONFIG_FILE_INVALID",
                    message=str(e),
                    file=config,
                    path="config",
                )
            ]
        )
        raise typer.Exit(code=2)


def _unknown_format(code: str, format: str) -> CartValidationError:
    return CartValidationError(
        code=code,
        message=f"unknown format: {format} (choose one of: text, json)",
        path="format",
    )


def _to_item(e: CartError) -> dict:
    if isinstance(e, CartLoadError):
        source = "load"
    elif e.code.startswith("L_"):
        source = "lint"
    else:
        source = "validate"
    return {
        "code": e.code,
        "message": e.message,
        "file": e.file,
        "path": e.path,
        "severity": "error",
        "source": source,
    }


def _print_errors(errors: list[CartError]) -> None:
    errors_sorted = sorted(errors, key=lambda e: (e.file or "", e.path or "", e.code))
    for e in errors_sorted:
        typer.echo(str(e), err=True)


def main() -> None:
    app(prog_name="cart-transform")


cli = typer.main.get_command(app)

if __name__ == "__main__":
    main()
