#!/usr/bin/env python3
"""
CLI application for sampling metrics from collectors and flushing the changes
to a statsd server.
"""
import argparse
import importlib
import inspect
import json
import logging
import os
import pkgutil
import sys
import time
from typing import List, Dict, Any, Optional, Type, Tuple

from statsd_sync import config as statsd_config
from statsd_sync.collector import SnapshotSource, CompositeSource
from statsd_sync.syncer import StatsdOptions, fork_statsd

# Setup logging
logger = logging.getLogger(__name__)


class CollectorRegistry:
    """
    Registry for dynamically discovering and instantiating collectors.
    This keeps main.py free of specific knowledge of collectors.
    """

    def __init__(self):
        self.collectors = {}

    def discover_collectors(self):
        """
        Discover all collector classes that inherit from SnapshotSource.
        """
        import collectors
        logger.debug("Starting collector discovery...")

        collector_modules = self._find_collector_modules(collectors)
        logger.debug("Found collector modules: %s", collector_modules)

        for module_name in collector_modules:
            try:
                logger.debug("Attempting to import module: %s", module_name)
                module = importlib.import_module(module_name)
                self._register_collectors_from_module(module)
            except ImportError as e:
                logger.warning("Could not import collector module %s: %s", module_name, e)

    def _find_collector_modules(self, package) -> List[str]:
        """
        Find all modules in the collectors package that might contain collectors.
        """
        modules = []
        prefix = package.__name__ + "."

        for _, name, is_pkg in pkgutil.iter_modules(package.__path__, prefix):
            if is_pkg:
                try:
                    subpackage = importlib.import_module(name)
                    modules.extend(self._find_collector_modules(subpackage))
                except ImportError as e:
                    logger.warning("Could not import collector package %s: %s", name, e)
            else:
                modules.append(name)

        return modules

    def _register_collectors_from_module(self, module):
        """
        Register all collector classes defined in a module.
        """
        for name, obj in inspect.getmembers(module, inspect.isclass):
            if (issubclass(obj, SnapshotSource) and
                    obj.__module__ == module.__name__ and
                    not inspect.isabstract(obj)):
                collector_type = obj.__name__.replace('Collector', '').lower()
                self.collectors[collector_type] = obj
                logger.info("Registered collector: %s from class %s", collector_type, obj.__name__)

    def register(self, collector_type: str, collector_class: Type[SnapshotSource]) -> None:
        self.collectors[collector_type.lower()] = collector_class

    def get_collector_class(self, collector_type: str) -> Optional[Type[SnapshotSource]]:
        """
        Get the collector class for a given collector type.

        Args:
            collector_type (str): The type of collector to get

        Returns:
            Type[SnapshotSource]: The collector class or None if not found
        """
        return self.collectors.get(collector_type.lower())

    def get_available_collectors(self) -> List[str]:
        """
        Get a list of available collector types.

        Returns:
            list: List of available collector types
        """
        return sorted(self.collectors.keys())


# Initialize collector registry
collector_registry = CollectorRegistry()


def setup_logging(log_level: str) -> None:
    """
    Setup logging with the specified log level.

    Args:
        log_level (str): Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {log_level}")

    logging.basicConfig(
        level=numeric_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        force=True
    )


def parse_collector_spec(spec: str) -> Tuple[str, Dict[str, Any]]:
    """
    Parse a collector specification string into a collector type and parameters.

    Args:
        spec (str): Collector specification in format "type:param1=value1,param2=value2"

    Returns:
        tuple: (collector_type, parameters_dict)
    """
    parts = spec.split(':', 1)
    collector_type = parts[0].strip().lower()
    if not collector_type:
        raise ValueError("Collector type is missing")

    params = {}
    if len(parts) > 1 and parts[1].strip():
        for param in parts[1].strip().split(','):
            if '=' not in param:
                raise ValueError(f"Expected key=value, got {param!r}")
            key, value = param.split('=', 1)
            params[key.strip()] = value.strip()

    return collector_type, params


def instantiate_collector(collector_type: str, collector_args: Dict[str, Any]) -> SnapshotSource:
    """
    Instantiate a collector of the specified type with the provided arguments.

    Args:
        collector_type (str): Type of collector to instantiate
        collector_args (dict): Arguments to pass to the collector constructor

    Returns:
        SnapshotSource: An instance of the requested collector

    Raises:
        ValueError: If the collector type is unknown
    """
    # Handle common variations in collector type names
    collector_type = collector_type.lower()
    if collector_type.endswith('collector'):
        collector_type = collector_type[:-9]

    collector_class = collector_registry.get_collector_class(collector_type)
    if not collector_class:
        available = collector_registry.get_available_collectors()
        raise ValueError("Collector type not found: %s. Available collectors: %s" %
                         (collector_type, available if available else "None discovered"))

    return collector_class(**collector_args)


def build_source(collector_specs: List[str]) -> SnapshotSource:
    """
    Build one snapshot source from the collector specifications.

    Args:
        collector_specs (list): Specifications in format "type:param1=value1"

    Returns:
        SnapshotSource: The merged source
    """
    source = CompositeSource([])
    for spec in collector_specs:
        collector_type, params = parse_collector_spec(spec)
        source.register_source(instantiate_collector(collector_type, params))
    return source


def load_config_from_file(config_file: str) -> Dict[str, Any]:
    """
    Load configuration from a JSON file.

    Args:
        config_file (str): Path to the JSON config file

    Returns:
        dict: Configuration dictionary with argument names as keys
    """
    if not os.path.exists(config_file):
        logger.error("Config file not found: %s", config_file)
        return {}

    try:
        with open(config_file, 'r') as f:
            config = json.load(f)
            logger.debug("Loaded configuration from %s: %s", config_file, config)
            return config
    except (json.JSONDecodeError, ValueError) as e:
        logger.error("Error parsing config file %s: %s", config_file, e)
        return {}


def merge_config_with_args(config: Dict[str, Any], args: argparse.Namespace,
                           parser: argparse.ArgumentParser) -> argparse.Namespace:
    """
    Merge configuration from a file with command line arguments.
    Command line arguments take precedence over config file values.

    Args:
        config (dict): Configuration dictionary from file
        args (argparse.Namespace): Command line arguments
        parser (argparse.ArgumentParser): Parser used, to tell defaults apart

    Returns:
        argparse.Namespace: Updated arguments namespace
    """
    args_dict = vars(args)

    for key, value in config.items():
        arg_key = key.replace('-', '_')
        # Only override values left at their parser default
        if arg_key not in args_dict or args_dict[arg_key] == parser.get_default(arg_key):
            args_dict[arg_key] = value

    return argparse.Namespace(**args_dict)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Flush metric changes from collectors to a statsd server.',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )

    parser.add_argument('--config-file', type=str,
                        help='Path to JSON configuration file')
    parser.add_argument('--log-level', type=str, default=statsd_config.LOG_LEVEL,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Log level')
    parser.add_argument('--collectors', type=str, nargs='*',
                        help='List of collectors to sample in format "type:param1=value1,param2=value2"')

    # Statsd options
    parser.add_argument('--host', type=str, default=statsd_config.STATSD_HOST,
                        help='Statsd server hostname or IP address')
    parser.add_argument('--port', type=int, default=statsd_config.STATSD_PORT,
                        help='Statsd server port')
    parser.add_argument('--flush-interval', type=int, default=statsd_config.FLUSH_INTERVAL,
                        help='Interval between flushes in milliseconds')
    parser.add_argument('--debug', action='store_true', default=statsd_config.DEBUG,
                        help='Print every line sent to stderr')
    parser.add_argument('--prefix', type=str, default=statsd_config.PREFIX,
                        help='Prefix added to all metric names')
    parser.add_argument('--suffix', type=str, default=statsd_config.SUFFIX,
                        help='Suffix added to all metric names')
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments, filling gaps from the config file.

    Args:
        argv (list, optional): Arguments to parse. Defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: The merged arguments
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config_file:
        logger.info("Loading configuration from %s", args.config_file)
        config = load_config_from_file(args.config_file)
        if config:
            args = merge_config_with_args(config, args, parser)

    if not args.collectors:
        parser.error("the --collectors argument is required either on command line or in config file")
    return args


def options_from_args(args: argparse.Namespace) -> StatsdOptions:
    return StatsdOptions(
        host=args.host,
        port=int(args.port),
        flush_interval=int(args.flush_interval),
        debug=bool(args.debug),
        prefix=args.prefix or '',
        suffix=args.suffix or ''
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main function to parse arguments and run the exporter."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    logger.info("Discovering collectors...")
    collector_registry.discover_collectors()
    logger.info("Available collectors: %s", collector_registry.get_available_collectors())

    try:
        source = build_source(args.collectors)
        statsd = fork_statsd(options_from_args(args), source)
    except (ValueError, OSError) as e:
        logger.error("Could not start statsd exporter: %s", e)
        return 1

    try:
        while statsd.is_running():
            time.sleep(0.5)
    except KeyboardInterrupt:
        logger.info("Interrupted by user, stopping...")
        statsd.stop(timeout=5)

    if statsd.error is not None:
        logger.error("Statsd exporter stopped on error: %s", statsd.error)
        return 1

    logger.info("Statsd exporter stopped after %d flushes.", statsd.cycles)
    return 0


if __name__ == "__main__":
    sys.exit(main())
