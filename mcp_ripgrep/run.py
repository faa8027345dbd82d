'''
Run the ripgrep MCP server from a configuration file.

Usage:
    mcp-ripgrep [--config CONFIG] [--extra-config EXTRA ...] [--transport stdio]
    python -m mcp_ripgrep.run
'''

import argparse
import logging
import os

import yaml

from . import server

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)
logger.setLevel(logging.ERROR)

DEFAULT_CONFIG_PATH = os.path.join(os.path.dirname(__file__), "configs", "default.yaml")

TRANSPORTS = ['stdio', 'sse', 'http', 'streamable-http']


def run_server(transport: str,
               host: str,
               port: int,
               path: str,
               options: dict = {}) -> bool:
    """
    Start the ripgrep MCP server with the provided configuration.

    Args:
        transport (str): Transport protocol (e.g., 'stdio', 'sse')
        host (str): Host address to bind for HTTP transports
        port (int): Port number for HTTP transports
        path (str): URL path for the server endpoint
        options (dict): Server options (verbose, rg_path, base_args)

    Returns:
        bool: True if the server ran and shut down cleanly, False otherwise
    """
    try:
        if transport == 'stdio':
            logger.info("Starting ripgrep server using stdio transport")
        else:
            logger.info(f"Starting ripgrep server at {host}:{port} with path {path} using transport {transport}")

        server.run(transport=transport, host=host, port=port, path=path, options=options)
        return True

    except Exception as e:
        logger.error(f"Error running ripgrep server: {e}")
        return False


def load_config(config_path=None, extra_configs=None):
    """
    Load server configuration from YAML file, optionally merging additional
    configs supplied via ``--extra-config``.

    Args:
        config_path (str, optional): Path to the base configuration file.
            Defaults to the built-in ``configs/default.yaml``.
        extra_configs (list[str], optional): Paths to additional YAML config
            files. Their ``server`` keys override the base config, and their
            ``server.options`` are merged key by key.

    Returns:
        dict: Merged configuration with a ``server`` mapping.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    logger.info(f"Loading configuration from {config_path}")
    config = _read_yaml(config_path) or {}
    config.setdefault('server', {})

    for extra_path in (extra_configs or []):
        logger.info(f"Merging extra config from {extra_path}")
        extra = _read_yaml(extra_path) or {}
        extra_server = dict(extra.get('server') or {})
        extra_options = extra_server.pop('options', None) or {}
        config['server'].update(extra_server)
        options = dict(config['server'].get('options') or {})
        options.update(extra_options)
        config['server']['options'] = options

    return config


def _read_yaml(path):
    if not os.path.exists(path):
        raise FileNotFoundError(f"Configuration file not found at {path}")
    try:
        with open(path, 'r') as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML configuration {path}: {e}")
        raise


def prepare_server_args(config, transport=None):
    """Extract (transport, host, port, path, options) from configuration.

    Returns None when the server is disabled.
    """
    server_config = config.get('server') or {}

    if not server_config.get('enabled', True):
        logger.info("Ripgrep server is disabled in the configuration.")
        return None

    transport = transport or server_config.get('transport', server.DEFAULT_TRANSPORT)
    host = server_config.get('host', '0.0.0.0')
    port = int(server_config.get('port', 18220))
    path = server_config.get('path', '/ripgrep')
    options = dict(server_config.get('options') or {})

    if transport not in TRANSPORTS:
        raise ValueError(f"Unsupported transport '{transport}'. Choose one of: {', '.join(TRANSPORTS)}")

    return (transport, host, port, path, options)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Ripgrep MCP Server")
    parser.add_argument('--config', help='Path to configuration file')
    parser.add_argument('--extra-config', action='append', default=[],
                        help='Additional configuration file to merge (repeatable)')
    parser.add_argument('--transport', choices=TRANSPORTS,
                        help='Override the transport from the configuration')
    parser.add_argument('--log-level', default='INFO',
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        help='Set the logging level')
    args = parser.parse_args(argv)

    logging.getLogger().setLevel(getattr(logging, args.log_level))
    logger.setLevel(getattr(logging, args.log_level))

    config = load_config(args.config, extra_configs=args.extra_config)
    server_args = prepare_server_args(config, transport=args.transport)
    if server_args is None:
        logger.warning("No enabled server found in configuration")
        return 1

    return 0 if run_server(*server_args) else 1


if __name__ == "__main__":
    raise SystemExit(main())
