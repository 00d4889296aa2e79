import os
import sys
import logging
import argparse
from typing import Dict, List, Optional, Tuple
from .config import DEFAULT_DATA_NAME, AnalyzerConfig, load_config_defaults
from .dialects import DEFAULT_DIALECT, DIALECTS, get_dialect
from .errors import UnknownSignal
from .iotrace import IOSignal, load_io_map, parse_signal_definition, resolve_signals
from .metrics import METRIC_PIPELINE
from .analysis import print_summary, run_iotrace, run_stat
from .plotting import run_plot
from . import SCRIPT_NAME, SCRIPT_VERSION
logger = logging.getLogger(__name__)
def _dialect_help() -> str:
    known = '; '.join(f"{d.name}: {d.description}" for d in DIALECTS.values())
    return f"Firmware log dialect ({known})."
def _metrics_epilog() -> str:
    lines = ['CSV metric columns:']
    lines.extend(f"  {c.name:<18} {c.description}" for c in METRIC_PIPELINE)
    return '\n'.join(lines)
class _HelpFormatter(argparse.ArgumentDefaultsHelpFormatter, argparse.RawDescriptionHelpFormatter):
    pass
def _build_parsers() -> Tuple[argparse.ArgumentParser, List[argparse.ArgumentParser]]:
    parser = argparse.ArgumentParser(
        prog='plogspector',
        description=f"{SCRIPT_NAME} v{SCRIPT_VERSION} - Analyze power-cycle logs of embedded firmware.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument('--version', action='version', version=f"%(prog)s {SCRIPT_VERSION}")
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--config', type=str, help="Path to a JSON configuration file. CLI arguments override file values.")
    common.add_argument('-f', '--file', help="Log file to analyze; '-' or omitted reads standard input.")
    common.add_argument('-m', '--max-lines', dest='max_lines', type=int, help='Max number of lines to read from the log.')
    common.add_argument('--dialect', default=DEFAULT_DIALECT, choices=sorted(DIALECTS), help=_dialect_help())
    common.add_argument('-V', '--verbose', action='store_true', help='Print debug info.')
    sub = parser.add_subparsers(dest='command', required=True)
    stat = sub.add_parser('stat', parents=[common], help='Per-cycle statistics written to <data-name>.csv.',
                          epilog=_metrics_epilog(), formatter_class=_HelpFormatter)
    stat.add_argument('-d', '--data-name', dest='data_name', default=DEFAULT_DATA_NAME,
                      help='Dataset name used to create csv and plot files.')
    stat.add_argument('-w', '--work-dir', dest='work_dir', default='.', help='Directory for the csv and plot files.')
    stat.add_argument('-i', '--ignore', type=int, action='append', default=[], help='Ignore the specified power cycle (repeatable).')
    stat.add_argument('-P', '--plot', action=argparse.BooleanOptionalAction, default=True, help='Plot the metrics after the run.')
    stat.add_argument('--plot-script', dest='plot_script', help='External plot script, called with --dir and --data.')
    trace = sub.add_parser('iotrace', parents=[common], help='Replay named GPIO signals across cycles.',
                           formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    trace.add_argument('-s', '--signal', dest='signals', action='append', default=[],
                       help='Signal to trace: NAME from the IO map, or NAME=PORT:PIN (repeatable).')
    trace.add_argument('--io-map', dest='io_map', help='JSON file with the known IO signals.')
    trace.add_argument('-c', '--cycle', dest='cycles', type=int, action='append', default=[],
                       help='Only trace this cycle sequence number (repeatable).')
    return parser, [stat, trace]
def build_parser() -> argparse.ArgumentParser:
    parser, _ = _build_parsers()
    return parser
def apply_config_defaults(parsers: List[argparse.ArgumentParser], config_data: Dict) -> None:
    for p in parsers:
        p.set_defaults(**config_data)
def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser, commands = _build_parsers()
    args = parser.parse_args(argv)
    if args.config:
        try:
            config_data = load_config_defaults(args.config)
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: {e}")
            sys.exit(1)
        apply_config_defaults([parser] + commands, config_data)
        args = parser.parse_args(argv)
    return args
def config_from_args(args: argparse.Namespace) -> AnalyzerConfig:
    return AnalyzerConfig(
        dialect=args.dialect,
        data_name=getattr(args, 'data_name', DEFAULT_DATA_NAME),
        work_dir=getattr(args, 'work_dir', '.'),
        plot=bool(getattr(args, 'plot', False)),
        plot_script=getattr(args, 'plot_script', None),
        max_lines=args.max_lines,
        ignore=tuple(getattr(args, 'ignore', None) or ()),
        cycles=tuple(getattr(args, 'cycles', None) or ()),
        signals=tuple(getattr(args, 'signals', None) or ()),
        io_map=getattr(args, 'io_map', None),
        verbose=bool(args.verbose),
    )
def build_signal_list(config: AnalyzerConfig) -> List[IOSignal]:
    """
    Resolve os sinais pedidos contra o catálogo (--io-map) e definições inline.

    Raises:
        UnknownSignal: Se um nome não estiver no catálogo
        ValueError: Se o catálogo não puder ser lido ou uma definição inline for inválida
    """
    catalog: Dict[str, IOSignal] = {}
    if config.io_map:
        loaded = load_io_map(config.io_map)
        if loaded is None:
            raise ValueError(f"Could not load IO map: {config.io_map}")
        catalog.update(loaded)
    names = []
    for definition in config.signals:
        if '=' in definition:
            signal = parse_signal_definition(definition)
            catalog[signal.name] = signal
            names.append(signal.name)
        else:
            names.append(definition)
    return resolve_signals(names, catalog)
def cmd_stat(args: argparse.Namespace, config: AnalyzerConfig) -> int:
    if not os.path.isdir(config.work_dir):
        print(f"ERROR: Work directory not found: {config.work_dir}")
        return 1
    stats = run_stat(args.file, config)
    print_summary(stats)
    if config.plot:
        if run_plot(config.data_name, config.work_dir, config.plot_script) is None:
            logger.warning("Plotting failed; metrics in %s are still valid", config.csv_path)
    return 0
def cmd_iotrace(args: argparse.Namespace, config: AnalyzerConfig) -> int:
    if not config.signals:
        print("ERROR: At least one --signal is required for iotrace.")
        return 1
    try:
        signals = build_signal_list(config)
    except (UnknownSignal, ValueError) as e:
        print(f"ERROR: {e}")
        return 1
    run_iotrace(args.file, signals, config)
    return 0
def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
    config = config_from_args(args)
    try:
        get_dialect(config.dialect)
    except ValueError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    if args.file and args.file != '-' and not os.path.isfile(args.file):
        print(f"ERROR: Log file not found: {args.file}")
        sys.exit(1)
    handler = cmd_stat if args.command == 'stat' else cmd_iotrace
    try:
        status = handler(args, config)
    except OSError as e:
        print(f"ERROR: {e}")
        sys.exit(1)
    if status:
        sys.exit(status)
    return 0
