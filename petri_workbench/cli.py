"""
Command-line interface.

    petri-workbench validate --model net.pnml
    petri-workbench convert --model net.json --to mermaid
    petri-workbench replay --model net.json --sequence T0 T1 --lenient
    petri-workbench align --trace Enqueue Finish
    petri-workbench check-log log.csv --model net.json --n-jobs -1
    petri-workbench check-log log.xes --method replay

Without --model the built-in sample net is used.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .alignment import alignment_fitness, find_optimal_alignment
from .classes import PetriNetInput
from .conformance_checking import (
    LogReplayResult,
    check_log_conformance,
    replay_log_conformance,
    summarize_conformance,
)
from .event_log import read_event_log, traces_from_dataframe
from .exceptions import ReplayError
from .firing import replay_transitions
from .parser import SUPPORTED_FORMATS, format_from_filename, parse_petri_net, serialize_petri_net
from .sample import sample_petri_net
from .trace import resolve_transition_refs
from .utils import DEFAULT_MAX_EXPANSIONS, setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog='petri-workbench',
        description='Validate, convert, replay and align Petri net models.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='WARNING',
        help='Logging level'
    )

    model_args = argparse.ArgumentParser(add_help=False)
    model_args.add_argument(
        '-m', '--model',
        type=str,
        default=None,
        help='Model file; the sample net is used when omitted'
    )
    model_args.add_argument(
        '-f', '--format',
        type=str,
        choices=SUPPORTED_FORMATS,
        default=None,
        help='Model format; guessed from the file extension when omitted'
    )

    search_args = argparse.ArgumentParser(add_help=False)
    search_args.add_argument(
        '--max-expansions',
        type=int,
        default=DEFAULT_MAX_EXPANSIONS,
        help='Upper bound on expanded search states per trace'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    commands.add_parser('validate', parents=[model_args], help='Parse and validate a model')

    convert = commands.add_parser('convert', parents=[model_args], help='Convert a model to another format')
    convert.add_argument(
        '--to',
        type=str,
        choices=SUPPORTED_FORMATS,
        required=True,
        help='Target format'
    )
    convert.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Output file; stdout when omitted'
    )

    replay = commands.add_parser('replay', parents=[model_args], help='Fire a sequence of transition references')
    replay.add_argument(
        '--sequence',
        nargs='*',
        default=[],
        help='Transition ids or unique labels in firing order'
    )
    replay.add_argument(
        '--lenient',
        action='store_true',
        help='Skip unknown or non-enabled steps instead of failing'
    )

    align = commands.add_parser('align', parents=[model_args, search_args], help='Align one trace against a model')
    align.add_argument(
        '--trace',
        nargs='*',
        default=[],
        help='Activity tokens (transition ids or labels)'
    )

    check_log = commands.add_parser(
        'check-log', parents=[model_args, search_args], help='Check every trace of a CSV or XES event log'
    )
    check_log.add_argument('log', type=str, help='Event log (.csv or .xes)')
    check_log.add_argument(
        '-j', '--n-jobs',
        type=int,
        default=1,
        help='Number of parallel workers (-1 for all cores)'
    )
    check_log.add_argument(
        '--method',
        type=str,
        choices=['alignment', 'replay'],
        default='alignment',
        help='Optimal alignment per trace, or token replay with per-event deviations'
    )
    check_log.add_argument(
        '-o', '--output',
        type=str,
        default=None,
        help='Write per-trace results (alignment) or deviations (replay) to this CSV file'
    )

    return parser.parse_args(argv)


def load_model(path: Optional[str], fmt: Optional[str] = None) -> PetriNetInput:
    if path is None:
        return sample_petri_net()
    text = Path(path).read_text(encoding='utf-8')
    return parse_petri_net(text, fmt or format_from_filename(path))


def _cmd_validate(args: argparse.Namespace) -> None:
    model = load_model(args.model, args.format)
    print(
        f"Valid Petri net: {len(model.places)} places, "
        f"{len(model.transitions)} transitions, {len(model.arcs)} arcs"
    )


def _cmd_convert(args: argparse.Namespace) -> None:
    model = load_model(args.model, args.format)
    text = serialize_petri_net(model, args.to)
    if args.output:
        Path(args.output).write_text(text, encoding='utf-8')
        logger.info(f"Wrote {args.to} model to {args.output}")
    else:
        print(text)


def _cmd_replay(args: argparse.Namespace) -> None:
    model = load_model(args.model, args.format)
    resolved = resolve_transition_refs(model, args.sequence)
    problems = list(resolved.warnings) + [f"Unknown transition reference: {ref}" for ref in resolved.unknown]
    if problems and not args.lenient:
        raise ReplayError('; '.join(problems))
    for problem in problems:
        print(f"warning: {problem}", file=sys.stderr)

    result = replay_transitions(model, resolved.ids, strict=not args.lenient)
    for warning in result.warnings:
        print(f"warning: {warning}", file=sys.stderr)
    for place in result.model.places:
        print(f"{place.id}: {place.tokens}")


def _cmd_align(args: argparse.Namespace) -> None:
    model = load_model(args.model, args.format)
    result = find_optimal_alignment(args.trace, model, max_expansions=args.max_expansions)
    for move in result.alignment:
        print(f"{move.move_type:<6} {move.activity}")
    print(f"cost={result.cost} fitness={alignment_fitness(result):.4f} "
          f"status={result.status.value} expansions={result.expansions}")


def _cmd_check_log(args: argparse.Namespace) -> None:
    model = load_model(args.model, args.format)
    traces = traces_from_dataframe(read_event_log(args.log))
    if args.method == 'replay':
        _report_replay(replay_log_conformance(traces, model), args.output)
        return

    df = check_log_conformance(traces, model, n_jobs=args.n_jobs, max_expansions=args.max_expansions)
    if args.output:
        df.to_csv(args.output, index=False)
        logger.info(f"Wrote per-trace results to {args.output}")
    else:
        print(df.to_string(index=False))

    summary = summarize_conformance(df)
    print(f"\nTraces: {summary['n_traces']}")
    print(f"  Mean fitness:      {summary['mean_fitness']:.4f}")
    print(f"  Perfectly fitting: {summary['perfect_fit_ratio']:.2%}")
    print(f"  Capped searches:   {summary['n_capped']}")
    print(f"  Exhausted:         {summary['n_exhausted']}")


def _report_replay(result: LogReplayResult, output: Optional[str]) -> None:
    if output:
        result.deviations.to_csv(output, index=False)
        logger.info(f"Wrote {result.n_deviations} deviations to {output}")
    else:
        for row in result.deviations.itertuples(index=False):
            print(f"[{row.severity}] case {row.case_id}: {row.description}")

    print(f"\nTraces: {result.n_traces}")
    print(f"  Events:         {result.n_events}")
    print(f"  Replay fitness: {result.fitness:.4f}")
    print(f"  Deviations:     {result.n_deviations}")


_COMMANDS = {
    'validate': _cmd_validate,
    'convert': _cmd_convert,
    'replay': _cmd_replay,
    'align': _cmd_align,
    'check-log': _cmd_check_log,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run the CLI and return a process exit code.

    0 on success, 1 when the model, log or replay is rejected (ParseError and
    ReplayError are ValueErrors) or a file cannot be read, 2 on usage errors
    (raised by argparse as SystemExit).
    """
    args = parse_args(argv)
    setup_logging(getattr(logging, args.log_level))
    try:
        _COMMANDS[args.command](args)
    except (ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
