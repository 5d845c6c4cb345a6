"""
Main entry point for the OpenRVS beacon client

Commands:
- report: Query one beacon port and print the full report
- list: Query every server in a server list file
- debug: Query every server in the OpenRVS registry and log failures
"""

import argparse
import asyncio
import logging
import sys

from openrvs_beacon.config import config
from openrvs_beacon.servers.beacon_client import query_server, query_servers
from openrvs_beacon.servers.server_list import fetch_server_list, read_server_list
from openrvs_beacon.utils.formatting import format_json, format_report, format_summary

logger = logging.getLogger(__name__)


LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def setup_logging(level: str = None):
    level = (level or config.LOG_LEVEL).upper()
    if level not in LOG_LEVELS:
        level = 'INFO'
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='openrvs-beacon',
        description='Query Raven Shield game servers over the UDP beacon protocol.'
    )
    parser.add_argument('--log-level', default=None, type=str.upper, choices=LOG_LEVELS,
                        help='Log level (default: from LOG_LEVEL)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    report = subparsers.add_parser('report', help='Print the full report from one server')
    report.add_argument('--ip', default=config.BEACON_HOST, help='IP address of RS3 server')
    report.add_argument(
        '--port', type=int, default=config.BEACON_PORT,
        help='Beacon port of RS3 server (usually game port + 1000)'
    )
    report.add_argument('--timeout', type=float, default=config.BEACON_TIMEOUT,
                        help='Seconds to wait for a response')
    report.add_argument('--json', action='store_true', help='Print the report as JSON')

    server_list = subparsers.add_parser('list', help='Summarize every server in a server list file')
    server_list.add_argument('--file', default=config.SERVER_LIST_FILE,
                             help='File with one "<ip> <game port>" per line')
    server_list.add_argument('--timeout', type=float, default=config.BEACON_TIMEOUT)

    debug = subparsers.add_parser('debug', help='Query the OpenRVS registry and log missing data')
    debug.add_argument('--url', default=config.SERVER_LIST_URL, help='Registry server list URL')
    debug.add_argument('--timeout', type=float, default=config.BEACON_TIMEOUT)

    return parser


async def run_report(args) -> int:
    try:
        report = await query_server(args.ip, args.port, args.timeout)
    except asyncio.TimeoutError:
        logger.error(f"Timed out waiting for {args.ip}:{args.port}")
        return 1
    except Exception as e:
        logger.error(f"Failed to read from server {args.ip}:{args.port}: {e}")
        return 1

    print(format_json(report) if args.json else format_report(report))
    return 0


async def run_list(args) -> int:
    try:
        servers = read_server_list(args.file)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read server list: {e}")
        return 1

    for result in await query_servers(servers, args.timeout):
        if result.ok:
            print(format_summary(result.report))
            print()

    return 0


async def run_debug(args) -> int:
    try:
        servers = await fetch_server_list(args.url)
    except Exception as e:
        logger.error(f"Failed to fetch server list from {args.url}: {e}")
        return 1

    results = await query_servers(servers, args.timeout)

    failed = [r for r in results if not r.ok]
    lossy = [r for r in results if r.ok and r.report.data_loss]
    logger.info(
        f"Queried {len(results)} server(s): {len(failed)} failed, "
        f"{len(lossy)} with data loss"
    )
    return 0


COMMANDS = {
    'report': run_report,
    'list': run_list,
    'debug': run_debug,
}


async def main(argv=None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    return await COMMANDS[args.command](args)


def run():
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted")
        sys.exit(130)


if __name__ == '__main__':
    run()
