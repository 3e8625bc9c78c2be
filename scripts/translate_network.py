#!/usr/bin/env python3
"""Translate every model referenced by a low-level SpineML network.

The tool reads the network document, translates each distinct
(component URL, variable parameter set) pair exactly once and writes a JSON
manifest holding the generated code of every model together with the
parameter and initial variable vectors of every population and projection.
The manifest is what the GeNN model-building step consumes.

Typical usage::

    python -m scripts.translate_network experiments/model.xml \
        --output artifacts/model_manifest.json --csv artifacts/model_summary.csv

``--dry-run`` performs the full translation without writing anything, which
is useful for validating a network description in CI.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Dict, Iterable

from spineml_codegen import DEFAULT_OPTIONS, NetworkDescription, SpineMLError, load_network

LOGGER = logging.getLogger("translate_network")


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Translate a low-level SpineML network for GeNN")
    parser.add_argument("network", type=Path, help="Low-level SpineML network XML file")
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Destination JSON manifest (default: <network>_manifest.json beside the network file)",
    )
    parser.add_argument(
        "--csv",
        type=Path,
        default=None,
        help="Optional CSV summary of populations and projections",
    )
    parser.add_argument(
        "--dt",
        type=float,
        default=None,
        help=f"Simulation timestep in ms used to convert delays (default: {DEFAULT_OPTIONS.dt})",
    )
    parser.add_argument(
        "--weight-update-port-suffix",
        default=None,
        help=f"Suffix for weight update analogue receive ports (default: {DEFAULT_OPTIONS.weight_update_port_suffix!r})",
    )
    parser.add_argument(
        "--postsynaptic-port-suffix",
        default=None,
        help=f"Suffix for postsynaptic analogue receive ports (default: {DEFAULT_OPTIONS.postsynaptic_port_suffix!r})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Translate without writing the manifest or summary",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit debug logging (generated code, substitutions)",
    )
    return parser.parse_args(argv)


def build_manifest(network: NetworkDescription) -> Dict[str, object]:
    models = network.models()
    populations = []
    for population in network.populations.values():
        populations.append(
            {
                "name": population.name,
                "size": population.size,
                "model": None if population.model is None else population.model.url,
                "param_values": population.param_values.tolist(),
                "var_values": population.var_values.tolist(),
            }
        )
    projections = []
    for projection in network.projections:
        projections.append(
            {
                "name": projection.name,
                "source": projection.source,
                "target": projection.target,
                "connector": projection.connector,
                "delay_steps": projection.delay_steps,
                "global_g": projection.global_g,
                "weight_update": {
                    "model": projection.weight_update.url,
                    "param_values": projection.weight_update_param_values.tolist(),
                    "var_values": projection.weight_update_var_values.tolist(),
                },
                "postsynaptic": {
                    "model": projection.postsynaptic.url,
                    "param_values": projection.postsynaptic_param_values.tolist(),
                    "var_values": projection.postsynaptic_var_values.tolist(),
                },
            }
        )
    return {
        "network": network.name,
        "dt": network.dt,
        "models": [model.to_dict() for model in models],
        "populations": populations,
        "projections": projections,
    }


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    try:
        options = DEFAULT_OPTIONS.with_overrides(
            dt=args.dt,
            weight_update_port_suffix=args.weight_update_port_suffix,
            postsynaptic_port_suffix=args.postsynaptic_port_suffix,
        )
        network = load_network(args.network, options=options)
    except SpineMLError as exc:
        raise SystemExit(str(exc)) from exc

    manifest = build_manifest(network)
    if args.dry_run:
        LOGGER.info("Dry run: translated %d models, nothing written", len(manifest["models"]))
        return 0

    output = args.output or args.network.with_name(f"{network.name}_manifest.json")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(json.dumps(manifest, indent=2, sort_keys=True), encoding="utf8")
    LOGGER.info("Wrote manifest for network '%s' to %s", network.name, output)

    if args.csv is not None:
        args.csv.parent.mkdir(parents=True, exist_ok=True)
        network.to_frame().to_csv(args.csv, index=False)
        LOGGER.info("Wrote summary to %s", args.csv)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
