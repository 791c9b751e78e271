"""Command line interface for occultation searches."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from . import __version__
from .boot.logging import configure_logging
from .config.settings import ConfigError, EngineSettings, SearchConfig, load_engine_settings, load_search_config
from .core.bodies import OcclusionKind, TargetRadiusMode
from .core.time import SECONDS_PER_DAY, EpochFormatError, parse_epoch
from .occultation.engine import OccultationSearch, SearchResult
from .occultation.geometry import GeometryError
from .providers import EphemerisProvider, ProviderError, get_provider
from .providers.kinematic import KinematicProvider, default_bodies

EXIT_UNCONVERGED = 2
NO_EVENTS_MESSAGE = "No occultation events were detected"

_KIND_CHOICES = [kind.value for kind in OcclusionKind]


def _echo_json(payload: dict[str, Any]) -> None:
    click.echo(json.dumps(payload))


def _emit(result: SearchResult) -> None:
    for event in result.transitions:
        _echo_json({"type": "transition", **event.as_dict()})
    for index, window in enumerate(result.windows(), start=1):
        _echo_json({"type": "window", "interval": index, **window.as_dict()})
    for failure in result.failures:
        _echo_json({"type": "failure", **failure.as_dict()})
    summary: dict[str, Any] = {
        "type": "summary",
        "samples": result.samples_evaluated,
        "brackets": len(result.brackets),
        "transitions": len(result.transitions),
        "failures": len(result.failures),
    }
    if not result.transitions and not result.failures:
        summary["message"] = NO_EVENTS_MESSAGE
    _echo_json(summary)


def _execute(
    ctx: click.Context,
    provider: EphemerisProvider,
    config: SearchConfig,
    settings: EngineSettings,
) -> None:
    try:
        result = OccultationSearch(provider, settings).run(config)
    except (ProviderError, GeometryError) as exc:
        raise click.ClickException(str(exc)) from exc
    _emit(result)
    if result.failures:
        ctx.exit(EXIT_UNCONVERGED)


@click.group()
@click.version_option(__version__, prog_name="occultengine")
@click.option(
    "--log-level",
    default=None,
    help="Logging level (defaults to OCCULTENGINE_LOG_LEVEL / LOG_LEVEL, then WARNING)",
)
def main(log_level: str | None) -> None:
    """Occultation search utilities."""

    configure_logging(level=log_level)


@main.command("search")
@click.argument("config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--provider",
    "provider_name",
    type=click.Choice(["skyfield", "kinematic"]),
    default="skyfield",
    show_default=True,
    help="Ephemeris provider",
)
@click.option("--kernel", "kernels", multiple=True, help="SPK kernel to load (repeatable)")
@click.option("--workers", type=int, default=None, help="Worker threads for scanning and refinement")
@click.option("--iteration-limit", type=int, default=None, help="Refinement iteration budget per bracket")
@click.option(
    "--corrected-target-radius",
    is_flag=True,
    help="Use the target's own equatorial radius instead of scaling it by the occulter flattening",
)
@click.pass_context
def search(
    ctx: click.Context,
    config_path: Path,
    provider_name: str,
    kernels: tuple[str, ...],
    workers: int | None,
    iteration_limit: int | None,
    corrected_target_radius: bool,
) -> None:
    """Run the search described by CONFIG_PATH and print JSON lines."""

    try:
        config = load_search_config(config_path)
        settings = load_engine_settings(
            config_path, workers=workers, iteration_limit=iteration_limit
        )
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if corrected_target_radius:
        config = config.model_copy(update={"target_radius_mode": TargetRadiusMode.UNSCALED})

    options: dict[str, Any] = {}
    if provider_name == "skyfield":
        options["kernels"] = list(kernels) or list(config.kernels) or None
    try:
        provider = get_provider(provider_name, **options)
    except OSError as exc:
        raise click.ClickException(str(exc)) from exc

    _execute(ctx, provider, config, settings)


@main.command("scan-mock")
@click.option("--start", default="2000 JAN 01 12:00:00 TDB", show_default=True, help="Search start epoch")
@click.option("--days", type=float, default=30.0, show_default=True, help="Search span in days")
@click.option("--step", type=float, default=600.0, show_default=True, help="Scan step in seconds")
@click.option("--tolerance", type=float, default=0.01, show_default=True, help="Refinement tolerance in seconds")
@click.option(
    "--type",
    "kind",
    type=click.Choice(_KIND_CHOICES, case_sensitive=False),
    default="ANY",
    show_default=True,
    help="Occultation type",
)
@click.option("--moon-phase", type=float, default=-5.0, show_default=True, help="Lunar orbital phase at epoch 0 (deg)")
@click.option("--moon-inclination", type=float, default=0.0, show_default=True, help="Lunar orbit tilt (deg)")
@click.option("--workers", type=int, default=None, help="Worker threads for scanning and refinement")
@click.pass_context
def scan_mock(
    ctx: click.Context,
    start: str,
    days: float,
    step: float,
    tolerance: float,
    kind: str,
    moon_phase: float,
    moon_inclination: float,
    workers: int | None,
) -> None:
    """Search for solar eclipses seen from Earth with the analytic provider."""

    try:
        lower = parse_epoch(start)
    except EpochFormatError as exc:
        raise click.BadParameter(str(exc), param_hint="--start") from exc
    if days <= 0:
        raise click.BadParameter("--days must be positive")

    try:
        config = SearchConfig(
            lower_epoch=lower,
            upper_epoch=lower + days * SECONDS_PER_DAY,
            step_size=step,
            occultation_type=kind,
            occulter="MOON",
            target="SUN",
            observer="EARTH",
            tolerance=tolerance,
        )
        settings = EngineSettings.from_env(workers=workers)
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc

    provider = KinematicProvider(
        default_bodies(moon_phase_deg=moon_phase, moon_inclination_deg=moon_inclination)
    )
    _execute(ctx, provider, config, settings)


if __name__ == "__main__":  # pragma: no cover
    main()
